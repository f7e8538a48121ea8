"""httpx-backed ServerConnection."""

from __future__ import annotations

import json
import logging
import os
from typing import Any
from urllib.parse import urlencode

import httpx

from codedrafts.config.models import ApiConfig
from codedrafts.transport.base import ServerConnection

logger = logging.getLogger(__name__)


class HttpServerConnection(ServerConnection):
    """Talks to the drafts API with a shared httpx.AsyncClient.

    The bearer token is read from the env var named in ``ApiConfig.token_env``.
    Pre-signed storage URLs are fetched without it.
    """

    def __init__(
        self,
        config: ApiConfig,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._token = token or os.environ.get(config.token_env, "")
        if not self._token:
            logger.warning(
                "No drafts API token found; set the %s environment variable", config.token_env
            )
        headers = {"User-Agent": config.user_agent, "Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        self._api = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/") + "/",
            headers=headers,
            timeout=config.timeout,
            transport=transport,
        )
        self._raw = httpx.AsyncClient(
            headers={"User-Agent": config.user_agent},
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> HttpServerConnection:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._api.aclose()
        await self._raw.aclose()

    async def fetch_api(
        self,
        path: str,
        method: str = "GET",
        *,
        body: Any = None,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | str | None = None,
    ) -> httpx.Response:
        url = path.lstrip("/")
        if query:
            url = f"{url}?{query if isinstance(query, str) else urlencode(query)}"
        request_headers = dict(headers or {})
        content = None
        if body is not None:
            content = json.dumps(body)
            request_headers.setdefault("Content-Type", "application/json")
        logger.debug("%s %s", method, url)
        return await self._api.request(method, url, content=content, headers=request_headers)

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        *,
        headers: dict[str, str] | None = None,
        content: str | bytes | None = None,
    ) -> httpx.Response:
        return await self._raw.request(method, url, content=content, headers=headers)

    def web_url(self, path: str, query: dict[str, str] | None = None) -> str:
        url = f"{self.config.web_url.rstrip('/')}/{path.lstrip('/')}"
        if query:
            url = f"{url}?{urlencode(query)}"
        return url
