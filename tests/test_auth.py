"""Tests for provider credentials: ProviderAuth, the resolver and the env session store."""

import base64
import json

import pytest
from unittest.mock import AsyncMock

from conftest import changeset_payload, draft_payload, identity_payload
from codedrafts.drafts.normalizer import format_changeset, format_draft
from codedrafts.git.models import GitRemote
from codedrafts.identities.models import RepositoryIdentityResponse
from codedrafts.identities.resolver import format_repository_identity
from codedrafts.integrations.env import EnvSessionStore
from codedrafts.integrations.models import PROVIDERS_METADATA, ProviderAuth


class TestProviderAuth:
    def test_header_is_base64_json(self):
        headers = ProviderAuth(provider="github", token="secret").to_headers()

        assert json.loads(base64.b64decode(headers["Provider-Auth"])) == {
            "provider": "github",
            "token": "secret",
        }

    def test_repr_hides_token(self):
        assert "secret" not in repr(ProviderAuth(provider="github", token="secret"))


class TestFromRepository:
    async def test_resolves_token(self, auth, mock_git, mock_sessions, sample_repo):
        result = await auth.from_repository(sample_repo)

        assert result == ProviderAuth(provider="github", token="gh-token")
        mock_git.get_best_remote_with_integration.assert_awaited_once_with(sample_repo.path)
        integration_id, metadata = mock_sessions.get_session.await_args.args
        assert integration_id == "github"
        assert metadata.domain == "github.com"

    async def test_no_remote(self, auth, mock_git, sample_repo):
        mock_git.get_best_remote_with_integration = AsyncMock(return_value=None)
        assert await auth.from_repository(sample_repo) is None

    async def test_remote_without_integration(self, auth, mock_git, mock_sessions, sample_repo):
        mock_git.get_best_remote_with_integration = AsyncMock(
            return_value=GitRemote(name="origin", url="https://git.example.com/a/b", domain="git.example.com", path="a/b")
        )

        assert await auth.from_repository(sample_repo) is None
        mock_sessions.get_session.assert_not_awaited()

    async def test_no_session(self, auth, mock_sessions, sample_repo):
        mock_sessions.get_session = AsyncMock(return_value=None)
        assert await auth.from_repository(sample_repo) is None


class TestFromIntegrationId:
    async def test_known_integration(self, auth, mock_sessions):
        result = await auth.from_integration_id("gitlab")

        assert result.provider == "gitlab"
        mock_sessions.get_session.assert_awaited_once_with("gitlab", PROVIDERS_METADATA["gitlab"])

    async def test_unknown_integration(self, auth, mock_sessions):
        assert await auth.from_integration_id("sourcehut") is None
        mock_sessions.get_session.assert_not_awaited()


class TestForDraft:
    def _draft(self, patches):
        draft = format_draft(draft_payload(visibility="provider_access"))
        changeset = format_changeset(changeset_payload()).model_copy(update={"patches": patches})
        return draft.model_copy(update={"changesets": [changeset]})

    def _patch(self, **update):
        return format_changeset(changeset_payload()).patches[0].model_copy(update=update)

    async def test_no_changesets(self, auth):
        assert await auth.for_draft(format_draft(draft_payload())) is None

    async def test_local_repository(self, auth, mock_git, sample_repo):
        draft = self._draft([self._patch(repository=sample_repo)])

        assert await auth.for_draft(draft) is not None
        mock_git.get_best_remote_with_integration.assert_awaited_once_with(sample_repo.path)

    async def test_identity_resolved_locally(self, auth, mock_git, sample_repo):
        identity = format_repository_identity(RepositoryIdentityResponse.model_validate(identity_payload()))
        draft = self._draft([self._patch(repository=identity)])

        assert await auth.for_draft(draft) is not None
        mock_git.get_best_remote_with_integration.assert_awaited_once_with(sample_repo.path)

    async def test_lookup_for_unresolved_repository(self, auth, sample_repo):
        lookup = AsyncMock(return_value=sample_repo)
        draft = self._draft([self._patch()])

        assert await auth.for_draft(draft, lookup) is not None
        lookup.assert_awaited_once_with("d1", "gr1")

    async def test_lookup_returning_identity(self, auth):
        identity = format_repository_identity(RepositoryIdentityResponse.model_validate(identity_payload()))
        lookup = AsyncMock(return_value=identity)

        assert await auth.for_draft(self._draft([self._patch()]), lookup) is None

    async def test_without_lookup(self, auth):
        assert await auth.for_draft(self._draft([self._patch()])) is None

    async def test_no_patches(self, auth):
        assert await auth.for_draft(self._draft([])) is None


class TestEnvSessionStore:
    async def test_reads_token(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", " ghp_abc \n")
        store = EnvSessionStore({"github": "GITHUB_TOKEN"})

        session = await store.get_session("github", PROVIDERS_METADATA["github"])

        assert session.access_token == "ghp_abc"
        assert session.account_label == "github.com"

    async def test_missing_env(self, monkeypatch):
        monkeypatch.delenv("GITLAB_TOKEN", raising=False)
        store = EnvSessionStore({"gitlab": "GITLAB_TOKEN"})

        assert await store.get_session("gitlab", PROVIDERS_METADATA["gitlab"]) is None

    async def test_unmapped_integration(self):
        store = EnvSessionStore({})
        assert await store.get_session("github", PROVIDERS_METADATA["github"]) is None
