"""Shared test fixtures for codedrafts."""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from codedrafts.config.models import ApiConfig, DraftsConfig
from codedrafts.drafts.models import Account
from codedrafts.drafts.service import DraftService
from codedrafts.git.base import GitProvider
from codedrafts.git.diff import parse_diff_files
from codedrafts.git.models import (
    DiffResult,
    GitBranch,
    GitCommit,
    GitRemote,
    GitUser,
    Repository,
)
from codedrafts.git.remotes import match_remote_provider
from codedrafts.identities.base import RepositoryRegistry
from codedrafts.identities.resolver import RepositoryIdentityResolver
from codedrafts.integrations.auth import ProviderAuthResolver
from codedrafts.integrations.base import IntegrationSessionStore
from codedrafts.integrations.models import AuthSession
from codedrafts.transport.http import HttpServerConnection

TS = "2026-01-02T03:04:05Z"
FIRST_SHA = "f" * 40
BASE_SHA = "b" * 40

SAMPLE_DIFF = """\
diff --git a/src/app.py b/src/app.py
index 1111111..2222222 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1 +1 @@
-print("hello")
+print("hello, world")
diff --git a/docs/new.md b/docs/new.md
new file mode 100644
index 0000000..3333333
--- /dev/null
+++ b/docs/new.md
@@ -0,0 +1 @@
+# New
"""

# A Latin-1 encoded source file: not valid UTF-8
LATIN1_DIFF_BYTES = (
    b"diff --git a/legacy.txt b/legacy.txt\n"
    b"index 4444444..5555555 100644\n"
    b"--- a/legacy.txt\n"
    b"+++ b/legacy.txt\n"
    b"@@ -1 +1 @@\n"
    b"-caf\xe9\n"
    b"+caf\xe9 cr\xe8me\n"
)


def draft_payload(**overrides):
    payload = {
        "id": "d1",
        "type": "patch",
        "createdBy": "user-1",
        "createdAt": TS,
        "updatedAt": TS,
        "organizationId": "org-1",
        "role": "owner",
        "isPublished": True,
        "title": "Fix flaky retry",
        "description": "Retries were not awaited",
        "deepLink": "https://web.test/drafts/d1",
        "visibility": "public",
        "isArchived": False,
        "latestChangesetId": "cs1",
    }
    payload.update(overrides)
    return payload


def patch_payload(**overrides):
    payload = {
        "id": "p1",
        "createdAt": TS,
        "updatedAt": TS,
        "draftId": "d1",
        "changesetId": "cs1",
        "userId": "user-1",
        "baseBranchName": "main",
        "baseCommitSha": BASE_SHA,
        "gitRepositoryId": "gr1",
        "secureDownloadData": {
            "url": "https://storage.test/download/p1",
            "method": "GET",
            "headers": {"x-sig": "abc"},
        },
    }
    payload.update(overrides)
    return payload


def changeset_payload(patches=None, **overrides):
    payload = {
        "id": "cs1",
        "createdAt": TS,
        "updatedAt": TS,
        "draftId": "d1",
        "userId": "user-1",
        "gitUserName": "Ada",
        "gitUserEmail": "ada@example.com",
        "patches": [patch_payload()] if patches is None else patches,
    }
    payload.update(overrides)
    return payload


def created_patch_payload(patch_id="p1", repo_id="gr1"):
    """Sparse patch echoed by changeset creation."""
    return {
        "id": patch_id,
        "gitRepositoryId": repo_id,
        "secureUploadData": {
            "url": f"https://storage.test/upload/{patch_id}",
            "method": "PUT",
            "headers": {"x-amz-acl": "private"},
        },
    }


def identity_payload(**overrides):
    payload = {
        "id": "gr1",
        "name": "widget",
        "createdAt": TS,
        "updatedAt": TS,
        "initialCommitSha": FIRST_SHA,
        "remote": {
            "url": "git@github.com:acme/widget.git",
            "domain": "github.com",
            "path": "acme/widget",
        },
        "provider": {"id": "github", "repoDomain": "acme", "repoName": "widget"},
    }
    payload.update(overrides)
    return payload


class FakeDraftsApi:
    """Routes requests by (method, path) and records every request it sees."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, body=None, status=200):
        self.routes[(method, path)] = (status, body)

    def add_data(self, method, path, data, status=200):
        self.add(method, path, {"data": data}, status)

    def on(self, method, path, handler):
        self.routes[(method, path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": f"no route {request.method} {request.url.path}"})
        if callable(route):
            return route(request)
        status, body = route
        if body is None:
            return httpx.Response(status)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def calls(self):
        return [f"{r.method} {r.url.path}" for r in self.requests]

    def find(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def json_body(self, method, path):
        (request,) = self.find(method, path)
        return json.loads(request.content)


@pytest.fixture
def api():
    return FakeDraftsApi()


@pytest.fixture
def api_config():
    return ApiConfig(base_url="https://api.test", web_url="https://web.test")


@pytest.fixture
async def connection(api, api_config):
    conn = HttpServerConnection(api_config, token="api-token", transport=httpx.MockTransport(api.handle))
    yield conn
    await conn.aclose()


@pytest.fixture
def sample_repo():
    return Repository(id="r1", name="widget", path="/work/widget", uri="file:///work/widget")


@pytest.fixture
def other_repo():
    return Repository(id="r2", name="shared", path="/work/shared", uri="file:///work/shared")


@pytest.fixture
def github_remote():
    url = "git@github.com:acme/widget.git"
    return GitRemote(
        name="origin",
        url=url,
        domain="github.com",
        path="acme/widget",
        provider=match_remote_provider(url, "github.com", "acme/widget"),
    )


@pytest.fixture
def mock_git(github_remote):
    git = MagicMock(spec=GitProvider)
    git.get_diff = AsyncMock(return_value=DiffResult(contents=SAMPLE_DIFF))
    git.get_diff_files = AsyncMock(side_effect=lambda repo_path, contents: parse_diff_files(contents))
    git.get_branch = AsyncMock(return_value=GitBranch(name="main"))
    git.get_commit_branches = AsyncMock(return_value=["main"])
    git.get_current_user = AsyncMock(return_value=GitUser(name="Ada", email="ada@example.com"))
    git.get_first_commit_sha = AsyncMock(return_value=FIRST_SHA)
    git.get_remotes = AsyncMock(return_value=[github_remote])
    git.get_best_remote_with_provider = AsyncMock(return_value=github_remote)
    git.get_best_remote_with_integration = AsyncMock(return_value=github_remote)
    git.get_commit = AsyncMock(return_value=GitCommit(sha=BASE_SHA))
    return git


@pytest.fixture
def mock_registry(sample_repo):
    registry = MagicMock(spec=RepositoryRegistry)
    registry.repositories = AsyncMock(return_value=[sample_repo])
    registry.open_virtual_repository = AsyncMock(return_value=None)
    registry.prompt_for_repository = AsyncMock(return_value=None)
    return registry


@pytest.fixture
def mock_sessions():
    sessions = MagicMock(spec=IntegrationSessionStore)
    sessions.get_session = AsyncMock(return_value=AuthSession(access_token="gh-token"))
    return sessions


@pytest.fixture
def identities(mock_registry, mock_git):
    return RepositoryIdentityResolver(mock_registry, mock_git)


@pytest.fixture
def auth(mock_git, mock_sessions, identities):
    return ProviderAuthResolver(mock_git, mock_sessions, identities)


@pytest.fixture
def account():
    return Account(id="user-1", name="Ada", email="ada@example.com")


@pytest.fixture
def service(connection, mock_git, identities, auth, account):
    return DraftService(connection, mock_git, identities, auth, account=account)


@pytest.fixture
def sample_config():
    return DraftsConfig()
