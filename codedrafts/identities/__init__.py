"""Repository identities and their resolution to local repositories."""

from codedrafts.identities.base import RepositoryRegistry
from codedrafts.identities.local import LocalRepositoryRegistry, local_repository
from codedrafts.identities.models import (
    RepositoryIdentity,
    RepositoryIdentityProvider,
    RepositoryIdentityRemote,
    RepositoryIdentityRequest,
    RepositoryIdentityResponse,
    RepositoryRef,
)
from codedrafts.identities.resolver import (
    RepositoryIdentityResolver,
    format_repository_identity,
    repository_identity_name,
    virtual_repository_uri,
)

__all__ = [
    "LocalRepositoryRegistry",
    "RepositoryIdentity",
    "RepositoryIdentityProvider",
    "RepositoryIdentityRemote",
    "RepositoryIdentityRequest",
    "RepositoryIdentityResolver",
    "RepositoryIdentityResponse",
    "RepositoryRef",
    "RepositoryRegistry",
    "format_repository_identity",
    "local_repository",
    "repository_identity_name",
    "virtual_repository_uri",
]
