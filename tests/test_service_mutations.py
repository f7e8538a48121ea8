"""Tests for DraftService mutations: delete, archive, visibility and users."""

import pytest
from unittest.mock import AsyncMock

from conftest import changeset_payload, draft_payload, identity_payload
from codedrafts.drafts.errors import (
    DraftResponseError,
    DraftValidationError,
    ProviderAuthRequiredError,
)
from codedrafts.drafts.models import DraftPendingUser
from codedrafts.drafts.normalizer import format_changeset, format_draft
from codedrafts.integrations.models import ProviderAuth


@pytest.fixture
def public_draft(account):
    return format_draft(draft_payload(), account=account)


@pytest.fixture
def provider_access_draft(account):
    draft = format_draft(draft_payload(visibility="provider_access"), account=account)
    return draft.model_copy(update={"changesets": [format_changeset(changeset_payload())]})


class TestDeleteDraft:
    async def test_deletes(self, service, api):
        api.add("DELETE", "/v1/drafts/d1")

        await service.delete_draft("d1")

        assert api.calls() == ["DELETE /v1/drafts/d1"]

    async def test_failure(self, service, api):
        api.add("DELETE", "/v1/drafts/d1", {"error": "forbidden"}, status=403)

        with pytest.raises(DraftResponseError, match=r"Unable to delete draft 'd1': \(403\) forbidden"):
            await service.delete_draft("d1")


class TestArchiveDraft:
    async def test_archive_with_reason(self, service, api, public_draft, mock_sessions):
        api.add("POST", "/v1/drafts/d1/archive")

        await service.archive_draft(public_draft, archive_reason="accepted")

        assert api.json_body("POST", "/v1/drafts/d1/archive") == {"archiveReason": "accepted"}
        (request,) = api.requests
        assert "Provider-Auth" not in request.headers
        mock_sessions.get_session.assert_not_awaited()

    async def test_archive_without_reason_sends_no_body(self, service, api, public_draft):
        api.add("POST", "/v1/drafts/d1/archive")

        await service.archive_draft(public_draft)

        (request,) = api.requests
        assert request.content == b""

    async def test_provider_access_resolves_auth(self, service, api, provider_access_draft):
        api.add_data("GET", "/v1/drafts/d1/git-repositories/gr1", identity_payload())
        api.add("POST", "/v1/drafts/d1/archive")

        await service.archive_draft(provider_access_draft, archive_reason="rejected")

        (archive,) = api.find("POST", "/v1/drafts/d1/archive")
        assert "Provider-Auth" in archive.headers

    async def test_provider_access_without_credentials(
        self, service, api, provider_access_draft, mock_sessions
    ):
        mock_sessions.get_session = AsyncMock(return_value=None)
        api.add_data("GET", "/v1/drafts/d1/git-repositories/gr1", identity_payload())

        with pytest.raises(ProviderAuthRequiredError):
            await service.archive_draft(provider_access_draft)

        assert api.find("POST", "/v1/drafts/d1/archive") == []

    async def test_explicit_provider_auth_skips_lookup(self, service, api, provider_access_draft):
        api.add("POST", "/v1/drafts/d1/archive")

        await service.archive_draft(
            provider_access_draft, provider_auth=ProviderAuth(provider="gitlab", token="gl")
        )

        assert api.calls() == ["POST /v1/drafts/d1/archive"]

    async def test_failure(self, service, api, public_draft):
        api.add("POST", "/v1/drafts/d1/archive", {"error": "already archived"}, status=409)

        with pytest.raises(DraftResponseError, match="already archived"):
            await service.archive_draft(public_draft)


class TestUpdateVisibility:
    async def test_returns_normalized_draft(self, service, api):
        api.add_data("PATCH", "/v1/drafts/d1", draft_payload(visibility="private", role=""))

        draft = await service.update_draft_visibility("d1", "private")

        assert draft.visibility == "private"
        assert draft.role == "viewer"
        assert api.json_body("PATCH", "/v1/drafts/d1") == {"visibility": "private"}

    async def test_failure(self, service, api):
        api.add("PATCH", "/v1/drafts/d1", {"error": "invalid visibility"}, status=400)

        with pytest.raises(DraftResponseError, match="Unable to update draft 'd1'"):
            await service.update_draft_visibility("d1", "private")


class TestDraftUsers:
    async def test_list(self, service, api):
        api.add_data(
            "GET",
            "/v1/drafts/d1/users",
            [{"userId": "u1", "role": "owner", "draftId": "d1"}, {"userId": "u2", "role": "viewer"}],
        )

        users = await service.get_draft_users("d1")

        assert [(u.user_id, u.role) for u in users] == [("u1", "owner"), ("u2", "viewer")]

    async def test_add(self, service, api):
        api.add_data("POST", "/v1/drafts/d1/users", [{"userId": "u2", "role": "editor"}])

        users = await service.add_draft_users("d1", [DraftPendingUser(user_id="u2", role="editor")])

        assert users[0].user_id == "u2"
        assert api.json_body("POST", "/v1/drafts/d1/users") == {
            "id": "d1",
            "users": [{"userId": "u2", "role": "editor"}],
        }

    async def test_add_requires_users(self, service, api):
        with pytest.raises(DraftValidationError, match="No users provided"):
            await service.add_draft_users("d1", [])
        assert api.requests == []

    async def test_add_failure_raises_before_reading_body(self, service, api):
        api.add("POST", "/v1/drafts/d1/users", "<html>Bad Gateway</html>", status=502)

        with pytest.raises(DraftResponseError) as exc_info:
            await service.add_draft_users("d1", [DraftPendingUser(user_id="u2")])

        assert exc_info.value.status == 502
        assert exc_info.value.server_message == "Bad Gateway"

    async def test_remove(self, service, api):
        api.add("DELETE", "/v1/drafts/d1/users/u2")

        assert await service.remove_draft_user("d1", "u2") is True

    async def test_remove_failure(self, service, api):
        api.add("DELETE", "/v1/drafts/d1/users/u2", {"error": "not a member"}, status=404)

        with pytest.raises(DraftResponseError, match="Unable to update user u2 for draft 'd1'"):
            await service.remove_draft_user("d1", "u2")
