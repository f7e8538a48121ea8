"""Map drafts API payloads onto the domain model.

Pure functions: nothing here performs I/O. Derived fields:

- ``is_mine`` / author display name, from the active account
- ``role``, defaulted when the service sends an empty string
- ``updated_at``, falling back to ``created_at``
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from codedrafts.drafts.models import (
    Account,
    Draft,
    DraftAuthor,
    DraftChangeset,
    DraftPatch,
    DraftPatchFileChange,
)
from codedrafts.drafts.wire import (
    DraftChangesetResponse,
    DraftPatchResponse,
    DraftResponse,
)
from codedrafts.git.models import GitCommit, Repository
from codedrafts.identities.models import RepositoryIdentity


def default_role(role: str, from_pr_entity_id: bool = False) -> str:
    """Empty role means editor for drafts fetched through a pull request, viewer otherwise."""
    if role:
        return role
    return "editor" if from_pr_entity_id else "viewer"


def format_draft(
    response: DraftResponse | Mapping[str, Any],
    *,
    account: Account | None = None,
    fallback_author_name: str | None = None,
    from_pr_entity_id: bool = False,
) -> Draft:
    if not isinstance(response, DraftResponse):
        response = DraftResponse.model_validate(response)

    is_mine = False
    author = DraftAuthor(id=response.created_by, name=fallback_author_name)
    if account is not None and account.id and response.created_by == account.id:
        is_mine = True
        author = DraftAuthor(
            id=response.created_by, name=f"{account.name} (you)", email=account.email
        )

    return Draft(
        type=response.type,
        id=response.id,
        created_at=response.created_at,
        updated_at=response.updated_at or response.created_at,
        author=author,
        is_mine=is_mine,
        organization_id=response.organization_id or None,
        role=default_role(response.role, from_pr_entity_id),
        is_published=response.is_published,
        title=response.title,
        description=response.description,
        deep_link_url=response.deep_link,
        visibility=response.visibility,
        is_archived=response.is_archived,
        archived_by=response.archived_by,
        archived_reason=response.archived_reason,
        archived_at=response.archived_at,
        latest_changeset_id=response.latest_changeset_id,
    )


def format_changeset(response: DraftChangesetResponse | Mapping[str, Any]) -> DraftChangeset:
    if not isinstance(response, DraftChangesetResponse):
        response = DraftChangesetResponse.model_validate(response)

    return DraftChangeset(
        id=response.id,
        created_at=response.created_at,
        updated_at=response.updated_at or response.created_at,
        draft_id=response.draft_id,
        parent_changeset_id=response.parent_changeset_id,
        user_id=response.user_id,
        git_user_name=response.git_user_name,
        git_user_email=response.git_user_email,
        deep_link_url=response.deep_link,
        patches=[format_patch(p) for p in response.patches],
    )


def format_patch(
    response: DraftPatchResponse | Mapping[str, Any],
    *,
    commit: GitCommit | None = None,
    contents: str | None = None,
    files: list[DraftPatchFileChange] | None = None,
    repository: Repository | RepositoryIdentity | None = None,
) -> DraftPatch:
    if not isinstance(response, DraftPatchResponse):
        response = DraftPatchResponse.model_validate(response)

    return DraftPatch(
        id=response.id,
        created_at=response.created_at,
        updated_at=response.updated_at or response.created_at,
        draft_id=response.draft_id,
        changeset_id=response.changeset_id,
        user_id=response.user_id,
        base_branch_name=response.base_branch_name,
        base_ref=response.base_commit_sha,
        repository_id=response.git_repository_id,
        secure_link=response.secure_download_data,
        commit=commit,
        contents=contents,
        files=files,
        repository=repository,
    )


def draft_to_response(draft: Draft) -> DraftResponse:
    """Inverse of ``format_draft`` for the fields the service owns."""
    return DraftResponse(
        id=draft.id,
        type=draft.type,
        created_by=draft.author.id,
        created_at=draft.created_at,
        updated_at=draft.updated_at,
        organization_id=draft.organization_id,
        role=draft.role,
        is_published=draft.is_published,
        title=draft.title,
        description=draft.description,
        deep_link=draft.deep_link_url,
        visibility=draft.visibility,
        is_archived=draft.is_archived,
        archived_by=draft.archived_by,
        archived_reason=draft.archived_reason,
        archived_at=draft.archived_at,
        latest_changeset_id=draft.latest_changeset_id,
    )
