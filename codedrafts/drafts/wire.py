"""Wire shapes of the drafts API (camelCase JSON, `{data: ...}` envelope)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from codedrafts.identities.models import RepositoryIdentityRequest


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SecureLink(WireModel):
    """Pre-signed, time-limited storage location for patch contents."""

    url: str
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)


class CreateDraftRequest(WireModel):
    type: str
    title: str
    description: str | None = None
    visibility: str = "public"


class CreateDraftResponse(WireModel):
    id: str
    deep_link: str | None = None


class DraftPatchCreateRequest(WireModel):
    base_commit_sha: str
    base_branch_name: str
    git_repo_data: RepositoryIdentityRequest
    pr_entity_id: str | None = None


class DraftChangesetCreateRequest(WireModel):
    parent_changeset_id: str | None = None
    git_user_name: str | None = None
    git_user_email: str | None = None
    patches: list[DraftPatchCreateRequest]


class DraftPatchResponse(WireModel):
    id: str
    created_at: datetime
    updated_at: datetime | None = None
    draft_id: str
    changeset_id: str
    user_id: str | None = None
    base_branch_name: str
    base_commit_sha: str
    git_repository_id: str
    secure_download_data: SecureLink | None = None


class DraftChangesetResponse(WireModel):
    id: str
    created_at: datetime
    updated_at: datetime | None = None
    draft_id: str
    parent_changeset_id: str | None = None
    user_id: str | None = None
    git_user_name: str | None = None
    git_user_email: str | None = None
    deep_link: str | None = None
    patches: list[DraftPatchResponse] = Field(default_factory=list)


class DraftResponse(WireModel):
    id: str
    type: str
    created_by: str
    created_at: datetime
    updated_at: datetime | None = None
    organization_id: str | None = None
    role: str = ""
    is_published: bool = False
    title: str = ""
    description: str | None = None
    deep_link: str | None = None
    visibility: str = "public"
    is_archived: bool = False
    archived_by: str | None = None
    archived_reason: str | None = None
    archived_at: datetime | None = None
    latest_changeset_id: str | None = None


class CodeSuggestionCountsResponse(WireModel):
    counts: dict[str, int] = Field(default_factory=dict)

    @field_validator("counts", mode="before")
    @classmethod
    def unwrap_counts(cls, v: Any) -> Any:
        # The service may send `{id: {"count": n}}` instead of `{id: n}`.
        if isinstance(v, dict):
            return {k: c.get("count", 0) if isinstance(c, dict) else c for k, c in v.items()}
        return v


class DraftPatchCreateResponse(WireModel):
    """A patch as echoed by changeset creation: sparse, but carries the upload target."""

    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    draft_id: str | None = None
    changeset_id: str | None = None
    user_id: str | None = None
    base_branch_name: str | None = None
    base_commit_sha: str | None = None
    git_repository_id: str | None = None
    secure_upload_data: SecureLink | None = None


class DraftChangesetCreateResponse(WireModel):
    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    draft_id: str | None = None
    parent_changeset_id: str | None = None
    user_id: str | None = None
    git_user_name: str | None = None
    git_user_email: str | None = None
    deep_link: str | None = None
    patches: list[DraftPatchCreateResponse] = Field(default_factory=list)
