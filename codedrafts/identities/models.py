"""Pydantic models for repository identities."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from codedrafts.git.models import Repository

_wire = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RepositoryIdentityRemote(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    url: str | None = None
    domain: str | None = None
    path: str | None = None


class RepositoryIdentityProvider(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    repo_domain: str | None = None
    repo_name: str | None = None
    repo_owner_domain: str | None = None


class RepositoryIdentityRequest(BaseModel):
    """Outbound descriptor identifying the repository a patch applies to."""

    model_config = _wire

    initial_commit_sha: str | None = None
    remote: RepositoryIdentityRemote | None = None
    provider: RepositoryIdentityProvider | None = None


class RepositoryIdentityResponse(BaseModel):
    model_config = _wire

    id: str
    name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    initial_commit_sha: str | None = None
    remote: RepositoryIdentityRemote | None = None
    provider: RepositoryIdentityProvider | None = None


class RepositoryIdentity(BaseModel):
    """A repository known to the drafts service but not (yet) open locally."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["identity"] = "identity"
    id: str | None = None
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    initial_commit_sha: str | None = None
    remote: RepositoryIdentityRemote | None = None
    provider: RepositoryIdentityProvider | None = None


# A patch's repository: resolved local handle, or the unresolved identity.
RepositoryRef = Annotated[Repository | RepositoryIdentity, Field(discriminator="kind")]
