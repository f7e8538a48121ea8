"""Draft service: drives the drafts API protocol.

Creating a draft is a dependent chain of remote calls:

    POST v1/drafts -> POST v1/drafts/:id/changesets -> upload each patch
    -> POST v1/drafts/:id/publish -> GET v1/drafts/:id

Local work that does not depend on earlier results (resolving each change,
uploading each patch, fetching a draft's header and changesets) runs
concurrently and is always allowed to settle before failures are inspected.
Nothing is retried and nothing is rolled back: a failure after the draft was
created leaves it on the service, unpublished.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from codedrafts.config.models import DraftSettings
from codedrafts.drafts.errors import (
    AggregateDraftError,
    DraftError,
    DraftValidationError,
    ProviderAuthRequiredError,
    ensure_ok,
)
from codedrafts.drafts.models import (
    SUGGESTED_PR_CHANGE,
    Account,
    CreateDraftChange,
    CreateDraftPatchRequest,
    Draft,
    DraftChangeset,
    DraftPatch,
    DraftPatchDetails,
    DraftPatchFileChange,
    DraftPendingUser,
    DraftUser,
)
from codedrafts.drafts.normalizer import format_changeset, format_draft, format_patch
from codedrafts.drafts.patches import PatchRequestBuilder
from codedrafts.drafts.wire import (
    CodeSuggestionCountsResponse,
    CreateDraftRequest,
    CreateDraftResponse,
    DraftChangesetCreateRequest,
    DraftChangesetCreateResponse,
    DraftPatchCreateResponse,
    DraftPatchResponse,
    SecureLink,
)
from codedrafts.git.base import GitProvider
from codedrafts.git.diff import decode_diff, encode_diff
from codedrafts.git.models import Repository
from codedrafts.git.remotes import RemoteProviderMatcher, match_remote_provider
from codedrafts.identities.models import RepositoryIdentity, RepositoryIdentityResponse
from codedrafts.identities.resolver import RepositoryIdentityResolver, format_repository_identity
from codedrafts.integrations.auth import ProviderAuthResolver
from codedrafts.integrations.models import ProviderAuth
from codedrafts.logging_config import log_operation
from codedrafts.transport.base import ServerConnection

logger = logging.getLogger(__name__)


def _data(rsp: httpx.Response) -> Any:
    """Unwrap the `{data: ...}` envelope."""
    try:
        body = rsp.json()
    except ValueError as e:
        raise DraftError(f"Malformed response from {rsp.request.url}: {e}") from e
    if not isinstance(body, dict) or "data" not in body:
        raise DraftError(f"Malformed response from {rsp.request.url}: missing 'data'")
    return body["data"]


def _auth_headers(provider_auth: ProviderAuth | None) -> dict[str, str] | None:
    return provider_auth.to_headers() if provider_auth is not None else None


class DraftService:
    """Create, publish, fetch and manage drafts.

    Collaborators are passed in explicitly; the active account (used to mark
    drafts as "mine") is optional.
    """

    def __init__(
        self,
        connection: ServerConnection,
        git: GitProvider,
        identities: RepositoryIdentityResolver,
        auth: ProviderAuthResolver,
        *,
        account: Account | None = None,
        settings: DraftSettings | None = None,
        matcher: RemoteProviderMatcher = match_remote_provider,
    ) -> None:
        self.connection = connection
        self.git = git
        self.identities = identities
        self.auth = auth
        self.account = account
        self.settings = settings or DraftSettings()
        self.matcher = matcher
        self.patches = PatchRequestBuilder(git)

    # ── create ─────────────────────────────────────────────────────────

    async def create_draft(
        self,
        type: str,
        title: str,
        changes: list[CreateDraftChange],
        *,
        description: str | None = None,
        visibility: str | None = None,
        pr_entity_id: str | None = None,
    ) -> Draft:
        async with log_operation(
            "DraftService.create_draft", draft_type=type, change_count=len(changes)
        ):
            requests = await self._build_patch_requests(changes)

            provider_auth: ProviderAuth | None = None
            publish_body: dict[str, str] | None = None
            if type == SUGGESTED_PR_CHANGE:
                if pr_entity_id is None:
                    raise DraftValidationError("No pull request info provided")
                publish_body = {"prEntityId": pr_entity_id}

                provider_auth = await self.auth.from_repository(requests[0].repository)
                if provider_auth is None:
                    raise ProviderAuthRequiredError()
            headers = _auth_headers(provider_auth)

            # POST v1/drafts
            rsp = await self.connection.fetch_api(
                "v1/drafts",
                "POST",
                body=CreateDraftRequest(
                    type=type,
                    title=title,
                    description=description,
                    visibility=visibility or self.settings.default_visibility,
                ).to_wire(),
            )
            ensure_ok("Unable to create draft", rsp)
            draft_id = CreateDraftResponse.model_validate(_data(rsp)).id

            # POST v1/drafts/:id/changesets
            user = next((r.user for r in requests if r.user is not None), None)
            rsp = await self.connection.fetch_api(
                f"v1/drafts/{draft_id}/changesets",
                "POST",
                body=DraftChangesetCreateRequest(
                    git_user_name=user.name if user else None,
                    git_user_email=user.email if user else None,
                    patches=[r.patch for r in requests],
                ).to_wire(),
                headers=headers,
            )
            ensure_ok(f"Unable to create changeset for draft '{draft_id}'", rsp)
            created = DraftChangesetCreateResponse.model_validate(_data(rsp))
            if len(created.patches) != len(requests):
                raise DraftError(
                    f"Changeset for draft '{draft_id}' returned {len(created.patches)} "
                    f"patches, expected {len(requests)}"
                )

            changeset = self._created_changeset(draft_id, created)
            patches = await self._upload_patches(changeset, created.patches, requests)

            # POST v1/drafts/:id/publish
            rsp = await self.connection.fetch_api(
                f"v1/drafts/{draft_id}/publish", "POST", body=publish_body, headers=headers
            )
            ensure_ok(f"Failed to publish draft '{draft_id}'", rsp)

            # GET v1/drafts/:id
            rsp = await self.connection.fetch_api(f"v1/drafts/{draft_id}", headers=headers)
            ensure_ok(f"Unable to open draft '{draft_id}'", rsp)

            draft = format_draft(_data(rsp), account=self.account)
            changeset = changeset.model_copy(update={"patches": patches})
            return draft.model_copy(update={"changesets": [changeset]})

    async def _build_patch_requests(
        self, changes: list[CreateDraftChange]
    ) -> list[CreateDraftPatchRequest]:
        if not changes:
            raise DraftValidationError("No changes found")

        results = await asyncio.gather(
            *(self.patches.build(c) for c in changes), return_exceptions=True
        )

        requests: list[CreateDraftPatchRequest] = []
        failed: list[BaseException] = []
        for result in results:
            if isinstance(result, BaseException):
                failed.append(result)
            # Changes in a range can undo each other; skip the resulting empty patch
            elif result.contents:
                requests.append(result)

        if failed:
            raise AggregateDraftError("Unable to create draft", failed)
        if not requests:
            raise DraftValidationError("No changes found")
        return requests

    def _created_changeset(
        self, draft_id: str, created: DraftChangesetCreateResponse
    ) -> DraftChangeset:
        created_at = created.created_at or datetime.now(timezone.utc)
        return DraftChangeset(
            id=created.id,
            created_at=created_at,
            updated_at=created.updated_at or created_at,
            draft_id=created.draft_id or draft_id,
            parent_changeset_id=created.parent_changeset_id,
            user_id=created.user_id,
            git_user_name=created.git_user_name,
            git_user_email=created.git_user_email,
            deep_link_url=created.deep_link,
        )

    async def _upload_patches(
        self,
        changeset: DraftChangeset,
        created: list[DraftPatchCreateResponse],
        requests: list[CreateDraftPatchRequest],
    ) -> list[DraftPatch]:
        """Upload every patch; the first failure (in input order) is raised once all settle."""
        results = await asyncio.gather(
            *(self._upload_patch(changeset, p, r) for p, r in zip(created, requests)),
            return_exceptions=True,
        )
        patches: list[DraftPatch] = []
        for result in results:
            if isinstance(result, BaseException):
                raise result
            patches.append(result)
        return patches

    async def _upload_patch(
        self,
        changeset: DraftChangeset,
        created: DraftPatchCreateResponse,
        request: CreateDraftPatchRequest,
    ) -> DraftPatch:
        link = created.secure_upload_data
        if link is None:
            raise DraftError(f"No upload target returned for patch '{created.id}'")

        repository_id = created.git_repository_id or ""
        files = await self._file_changes(request.repository.path, request.contents, repository_id)

        rsp = await self.connection.fetch(
            link.url,
            link.method,
            headers={"Content-Type": "text/plain", **link.headers},
            content=encode_diff(request.contents),
        )
        ensure_ok(f"Unable to upload patch '{created.id}'", rsp)

        return format_patch(
            DraftPatchResponse(
                id=created.id,
                created_at=created.created_at or changeset.created_at,
                updated_at=created.updated_at,
                draft_id=created.draft_id or changeset.draft_id,
                changeset_id=created.changeset_id or changeset.id,
                user_id=created.user_id,
                base_branch_name=created.base_branch_name or request.patch.base_branch_name,
                base_commit_sha=created.base_commit_sha or request.patch.base_commit_sha,
                git_repository_id=repository_id,
            ),
            contents=request.contents,
            files=files,
            repository=request.repository,
        )

    async def _file_changes(
        self, repo_path: str, contents: str, repository_id: str
    ) -> list[DraftPatchFileChange]:
        diff_files = await self.git.get_diff_files(repo_path, contents)
        if diff_files is None:
            return []
        return [
            DraftPatchFileChange(
                path=f.path,
                original_path=f.original_path,
                status=f.status,
                repository_id=repository_id,
            )
            for f in diff_files.files
        ]

    # ── read ───────────────────────────────────────────────────────────

    async def get_draft(self, id: str, *, provider_auth: ProviderAuth | None = None) -> Draft:
        async with log_operation("DraftService.get_draft", draft_id=id):
            header_result, changesets_result = await asyncio.gather(
                self.connection.fetch_api(f"v1/drafts/{id}", headers=_auth_headers(provider_auth)),
                self.get_changesets(id),
                return_exceptions=True,
            )

            if isinstance(header_result, BaseException):
                raise DraftError(f"Unable to open draft '{id}': {header_result}") from header_result
            if isinstance(changesets_result, BaseException):
                raise DraftError(
                    f"Unable to open changesets for draft '{id}': {changesets_result}"
                ) from changesets_result

            ensure_ok(f"Unable to open draft '{id}'", header_result)
            draft = format_draft(_data(header_result), account=self.account)
            return draft.model_copy(update={"changesets": changesets_result})

    async def get_changesets(self, id: str) -> list[DraftChangeset]:
        rsp = await self.connection.fetch_api(f"v1/drafts/{id}/changesets")
        ensure_ok(f"Unable to open changesets for draft '{id}'", rsp)
        return [format_changeset(c) for c in _data(rsp)]

    async def get_drafts(self, is_archived: bool = False) -> list[Draft]:
        async with log_operation("DraftService.get_drafts", is_archived=is_archived):
            return await self.get_drafts_core(is_archived=is_archived)

    async def get_drafts_core(
        self,
        *,
        pr_entity_id: str | None = None,
        provider_auth: ProviderAuth | None = None,
        is_archived: bool = False,
    ) -> list[Draft]:
        query: dict[str, str] = {}
        from_pr_entity_id = False
        if pr_entity_id is not None:
            if provider_auth is None:
                raise ProviderAuthRequiredError()
            from_pr_entity_id = True
            query["prEntityId"] = pr_entity_id
        if is_archived:
            query["archived"] = "true"

        rsp = await self.connection.fetch_api(
            "v1/drafts", headers=_auth_headers(provider_auth), query=query or None
        )
        ensure_ok("Unable to open drafts", rsp)

        return [
            format_draft(
                d,
                account=self.account,
                fallback_author_name=self.settings.fallback_author_name,
                from_pr_entity_id=from_pr_entity_id,
            )
            for d in _data(rsp)
        ]

    async def get_patch(self, id: str) -> DraftPatch:
        async with log_operation("DraftService.get_patch", patch_id=id):
            patch = await self._get_patch_core(id)
            details = await self.get_patch_details(patch)
            return patch.model_copy(
                update={
                    "contents": details.contents,
                    "files": details.files,
                    "repository": details.repository,
                }
            )

    async def _get_patch_core(self, id: str) -> DraftPatch:
        rsp = await self.connection.fetch_api(f"v1/patches/{id}")
        ensure_ok(f"Unable to open patch '{id}'", rsp)
        return format_patch(_data(rsp))

    async def get_patch_details(self, id_or_patch: str | DraftPatch) -> DraftPatchDetails:
        patch_id = id_or_patch if isinstance(id_or_patch, str) else id_or_patch.id
        async with log_operation("DraftService.get_patch_details", patch_id=patch_id):
            patch = (
                await self._get_patch_core(id_or_patch)
                if isinstance(id_or_patch, str)
                else id_or_patch
            )
            if patch.secure_link is None:
                raise DraftError(f"No download link for patch '{patch.id}'")

            contents_result, repository_result = await asyncio.gather(
                self._download_contents(patch.secure_link),
                self.get_repository_or_identity(
                    patch.draft_id,
                    patch.repository_id,
                    open_if_needed=True,
                    skip_ref_validation=True,
                ),
                return_exceptions=True,
            )
            if isinstance(contents_result, BaseException):
                raise DraftError(
                    f"Unable to download patch '{patch.id}': {contents_result}"
                ) from contents_result
            if isinstance(repository_result, BaseException):
                raise DraftError(
                    f"Unable to resolve repository for patch '{patch.id}': {repository_result}"
                ) from repository_result

            repo_path = repository_result.path if isinstance(repository_result, Repository) else ""
            files = await self._file_changes(repo_path, contents_result, patch.repository_id)

            return DraftPatchDetails(
                id=patch.id,
                contents=contents_result,
                files=files,
                repository=repository_result,
            )

    async def _download_contents(self, link: SecureLink) -> str:
        rsp = await self.connection.fetch(
            link.url, link.method, headers={"Accept": "text/plain", **link.headers}
        )
        ensure_ok("Unable to download patch contents", rsp)
        return decode_diff(rsp.content)

    async def get_repository_identity(self, draft_id: str, repo_id: str) -> RepositoryIdentity:
        rsp = await self.connection.fetch_api(f"v1/drafts/{draft_id}/git-repositories/{repo_id}")
        ensure_ok(f"Unable to open repository '{repo_id}' for draft '{draft_id}'", rsp)
        data = RepositoryIdentityResponse.model_validate(_data(rsp))
        return format_repository_identity(data, self.matcher)

    async def get_repository_or_identity(
        self,
        draft_id: str,
        repo_id: str,
        *,
        open_if_needed: bool = False,
        keep_open: bool = False,
        prompt: bool = False,
        skip_ref_validation: bool = False,
    ) -> Repository | RepositoryIdentity:
        identity = await self.get_repository_identity(draft_id, repo_id)
        return await self.identities.resolve(
            identity,
            open_if_needed=open_if_needed,
            keep_open=keep_open,
            prompt=prompt,
            skip_ref_validation=skip_ref_validation,
        )

    async def get_code_suggestions(
        self,
        pr_entity_id: str,
        repository_or_integration_id: Repository | str,
        *,
        include_archived: bool = True,
    ) -> list[Draft]:
        """Suggested changes attached to a pull request; any failure yields []."""
        async with log_operation("DraftService.get_code_suggestions", pr_entity_id=pr_entity_id):
            if isinstance(repository_or_integration_id, Repository):
                provider_auth = await self.auth.from_repository(repository_or_integration_id)
            else:
                provider_auth = await self.auth.from_integration_id(repository_or_integration_id)

            try:
                return await self.get_drafts_core(
                    pr_entity_id=pr_entity_id,
                    provider_auth=provider_auth,
                    is_archived=include_archived,
                )
            except Exception as e:
                logger.warning("Unable to load code suggestions for %s: %s", pr_entity_id, e)
                return []

    async def get_code_suggestion_counts(self, pr_entity_ids: list[str]) -> dict[str, int]:
        async with log_operation("DraftService.get_code_suggestion_counts", count=len(pr_entity_ids)):
            rsp = await self.connection.fetch_api(
                "v1/drafts/counts",
                "POST",
                body={"prEntityIds": pr_entity_ids},
                query={"type": SUGGESTED_PR_CHANGE},
            )
            ensure_ok("Unable to open code suggestion counts", rsp)
            return CodeSuggestionCountsResponse.model_validate(_data(rsp)).counts

    def generate_web_url(self, draft_or_id: Draft | str) -> str:
        draft_id = draft_or_id if isinstance(draft_or_id, str) else draft_or_id.id
        return self.connection.web_url(f"drafts/{draft_id}", {"source": self.settings.link_source})

    # ── mutate ─────────────────────────────────────────────────────────

    async def delete_draft(self, id: str) -> None:
        async with log_operation("DraftService.delete_draft", draft_id=id):
            rsp = await self.connection.fetch_api(f"v1/drafts/{id}", "DELETE")
            ensure_ok(f"Unable to delete draft '{id}'", rsp)

    async def archive_draft(
        self,
        draft: Draft,
        *,
        provider_auth: ProviderAuth | None = None,
        archive_reason: str | None = None,
    ) -> None:
        async with log_operation(
            "DraftService.archive_draft", draft_id=draft.id, archive_reason=archive_reason
        ):
            if draft.visibility == "provider_access" and provider_auth is None:
                provider_auth = await self.auth.for_draft(draft, self.get_repository_or_identity)
                if provider_auth is None:
                    raise ProviderAuthRequiredError()

            rsp = await self.connection.fetch_api(
                f"v1/drafts/{draft.id}/archive",
                "POST",
                body={"archiveReason": archive_reason} if archive_reason is not None else None,
                headers=_auth_headers(provider_auth),
            )
            ensure_ok(f"Unable to archive draft '{draft.id}'", rsp)

    async def update_draft_visibility(self, id: str, visibility: str) -> Draft:
        async with log_operation("DraftService.update_draft_visibility", draft_id=id, visibility=visibility):
            rsp = await self.connection.fetch_api(
                f"v1/drafts/{id}", "PATCH", body={"visibility": visibility}
            )
            ensure_ok(f"Unable to update draft '{id}'", rsp)
            return format_draft(_data(rsp), account=self.account)

    async def get_draft_users(self, id: str) -> list[DraftUser]:
        async with log_operation("DraftService.get_draft_users", draft_id=id):
            rsp = await self.connection.fetch_api(f"v1/drafts/{id}/users")
            ensure_ok(f"Unable to get users for draft '{id}'", rsp)
            return [DraftUser.model_validate(u) for u in _data(rsp)]

    async def add_draft_users(
        self, id: str, pending_users: list[DraftPendingUser]
    ) -> list[DraftUser]:
        async with log_operation("DraftService.add_draft_users", draft_id=id, user_count=len(pending_users)):
            if not pending_users:
                raise DraftValidationError("No users provided")

            rsp = await self.connection.fetch_api(
                f"v1/drafts/{id}/users",
                "POST",
                body={
                    "id": id,
                    "users": [u.model_dump(by_alias=True) for u in pending_users],
                },
            )
            ensure_ok(f"Unable to add users for draft '{id}'", rsp)
            return [DraftUser.model_validate(u) for u in _data(rsp)]

    async def remove_draft_user(self, id: str, user_id: str) -> bool:
        async with log_operation("DraftService.remove_draft_user", draft_id=id, user_id=user_id):
            rsp = await self.connection.fetch_api(f"v1/drafts/{id}/users/{user_id}", "DELETE")
            ensure_ok(f"Unable to update user {user_id} for draft '{id}'", rsp)
            return True
