"""Pydantic models for git data."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Repository(BaseModel):
    """A locally open (or virtually opened) repository handle."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["repository"] = "repository"
    id: str
    name: str
    path: str = Field(description="Filesystem path, or the virtual URI for virtual repos")
    uri: str
    virtual: bool = False


class RevisionRange(BaseModel):
    """A `from_ref` -> `to_ref` pair; `to_ref` may be the uncommitted sentinel."""

    model_config = ConfigDict(frozen=True)

    from_ref: str
    to_ref: str


class GitUser(BaseModel):
    name: str | None = None
    email: str | None = None


class GitCommit(BaseModel):
    sha: str
    message: str | None = None
    author: GitUser | None = None


class GitBranch(BaseModel):
    name: str
    remote: bool = False


class IntegrationDescriptor(BaseModel):
    """How to ask the session store for a token for a remote's integration."""

    integration_id: str
    domain: str
    scopes: list[str] = Field(default_factory=list)


class RemoteProvider(BaseModel):
    """A hosting provider recognized from a remote URL."""

    id: str = Field(description="Matcher id, e.g. 'github'")
    name: str
    domain: str
    path: str
    provider_id: str | None = Field(
        default=None, description="Provider id understood by the drafts service"
    )
    owner: str | None = None
    repo_name: str | None = None
    integration: IntegrationDescriptor | None = None


class GitRemote(BaseModel):
    name: str
    url: str
    domain: str
    path: str
    provider: RemoteProvider | None = None


class DiffResult(BaseModel):
    contents: str
    from_ref: str | None = None
    to_ref: str | None = None


class DiffFileChange(BaseModel):
    path: str
    original_path: str | None = None
    status: Literal["A", "M", "D", "R", "C"] = "M"


class DiffFiles(BaseModel):
    files: list[DiffFileChange] = Field(default_factory=list)
