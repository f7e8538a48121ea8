"""Domain models for drafts, changesets and patches."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from codedrafts.drafts.wire import DraftPatchCreateRequest, SecureLink
from codedrafts.git.models import GitCommit, GitUser, Repository, RevisionRange
from codedrafts.identities.models import RepositoryRef

DraftType = Literal["patch", "stash", "suggested_pr_change"]
DraftVisibility = Literal["public", "private", "invite_only", "provider_access"]
DraftRole = Literal["owner", "admin", "editor", "viewer"]

SUGGESTED_PR_CHANGE: DraftType = "suggested_pr_change"


class Account(BaseModel):
    """The signed-in account; drafts it created are marked as "mine"."""

    id: str
    name: str | None = None
    email: str | None = None


class DraftAuthor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    email: str | None = None


class DraftPatchFileChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    original_path: str | None = None
    status: str = "M"
    repository_id: str | None = None


class DraftPatch(BaseModel):
    """A single repository's diff within a changeset.

    ``contents`` and ``files`` are hydrated on demand and are either both set
    or both None.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    updated_at: datetime
    draft_id: str
    changeset_id: str
    user_id: str | None = None

    base_branch_name: str
    base_ref: str
    repository_id: str
    secure_link: SecureLink | None = None

    commit: GitCommit | None = None
    contents: str | None = None
    files: list[DraftPatchFileChange] | None = None
    repository: RepositoryRef | None = None

    @model_validator(mode="after")
    def check_hydration(self) -> DraftPatch:
        if (self.contents is None) != (self.files is None):
            raise ValueError("contents and files must be hydrated together")
        return self


class DraftChangeset(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    updated_at: datetime
    draft_id: str
    parent_changeset_id: str | None = None
    user_id: str | None = None
    git_user_name: str | None = None
    git_user_email: str | None = None
    deep_link_url: str | None = None
    patches: list[DraftPatch] = Field(default_factory=list)


class Draft(BaseModel):
    """A shareable bundle of code changes hosted by the drafts service.

    Immutable: refreshes produce a new Draft. ``changesets`` is None until
    loaded.
    """

    model_config = ConfigDict(frozen=True)

    draft_type: Literal["cloud"] = "cloud"
    type: str
    id: str
    created_at: datetime
    updated_at: datetime
    author: DraftAuthor
    is_mine: bool = False
    organization_id: str | None = None
    role: str
    is_published: bool = False

    title: str = ""
    description: str | None = None

    deep_link_url: str | None = None
    visibility: str = "public"

    is_archived: bool = False
    archived_by: str | None = None
    archived_reason: str | None = None
    archived_at: datetime | None = None

    latest_changeset_id: str | None = None
    changesets: list[DraftChangeset] | None = None

    @model_validator(mode="after")
    def check_role(self) -> Draft:
        if not self.role:
            raise ValueError("role must be resolved before building a Draft")
        return self


class DraftPatchDetails(BaseModel):
    id: str
    contents: str
    files: list[DraftPatchFileChange]
    repository: RepositoryRef


class DraftUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId")
    role: str
    draft_id: str | None = Field(default=None, alias="draftId")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class DraftPendingUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    role: str = "viewer"


class CreateDraftChange(BaseModel):
    """One requested change to include in a new draft."""

    repository: Repository
    revision: RevisionRange
    contents: str | None = None
    pr_entity_id: str | None = None


class CreateDraftPatchRequest(BaseModel):
    """A change resolved into the patch body plus the local data needed to upload it."""

    patch: DraftPatchCreateRequest
    contents: str
    repository: Repository
    user: GitUser | None = None
