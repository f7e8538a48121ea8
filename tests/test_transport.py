"""Tests for HttpServerConnection."""

import json

import httpx
import pytest

from codedrafts.config.models import ApiConfig
from codedrafts.transport.http import HttpServerConnection


@pytest.fixture
def seen():
    return []


@pytest.fixture
async def conn(seen, api_config):
    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": {}})

    connection = HttpServerConnection(api_config, token="api-token", transport=httpx.MockTransport(handler))
    yield connection
    await connection.aclose()


class TestFetchApi:
    async def test_base_url_and_bearer_token(self, conn, seen):
        await conn.fetch_api("v1/drafts")

        (request,) = seen
        assert str(request.url) == "https://api.test/v1/drafts"
        assert request.headers["Authorization"] == "Bearer api-token"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["User-Agent"].startswith("codedrafts/")

    async def test_leading_slash_is_relative_to_base(self, conn, seen):
        await conn.fetch_api("/v1/drafts/d1")
        assert str(seen[0].url) == "https://api.test/v1/drafts/d1"

    async def test_json_body(self, conn, seen):
        await conn.fetch_api("v1/drafts", "POST", body={"title": "x"})

        (request,) = seen
        assert request.method == "POST"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"title": "x"}

    async def test_query_and_extra_headers(self, conn, seen):
        await conn.fetch_api("v1/drafts", query={"prEntityId": "a b", "archived": "true"}, headers={"X-Extra": "1"})

        (request,) = seen
        assert request.url.params["prEntityId"] == "a b"
        assert request.url.params["archived"] == "true"
        assert request.headers["X-Extra"] == "1"

    async def test_token_from_environment(self, monkeypatch, seen):
        monkeypatch.setenv("CODEDRAFTS_TOKEN", "env-token")

        def handler(request):
            seen.append(request)
            return httpx.Response(200)

        async with HttpServerConnection(
            ApiConfig(base_url="https://api.test"), transport=httpx.MockTransport(handler)
        ) as connection:
            await connection.fetch_api("v1/drafts")

        assert seen[0].headers["Authorization"] == "Bearer env-token"

    async def test_non_2xx_is_returned(self, api_config):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "x"}))
        async with HttpServerConnection(api_config, token="t", transport=transport) as connection:
            rsp = await connection.fetch_api("v1/drafts")

        assert rsp.status_code == 500


class TestFetch:
    async def test_raw_request_has_no_bearer_token(self, conn, seen):
        await conn.fetch("https://storage.test/upload/p1", "PUT", headers={"Content-Type": "text/plain"}, content="diff")

        (request,) = seen
        assert str(request.url) == "https://storage.test/upload/p1"
        assert request.method == "PUT"
        assert request.content == b"diff"
        assert "Authorization" not in request.headers


class TestWebUrl:
    async def test_with_query(self, conn):
        assert conn.web_url("drafts/d1", {"source": "cli"}) == "https://web.test/drafts/d1?source=cli"

    async def test_without_query(self, conn):
        assert conn.web_url("/drafts/d1") == "https://web.test/drafts/d1"
