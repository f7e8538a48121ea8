"""Draft service and the models it produces."""

from pathlib import Path

from codedrafts.config.models import DraftsConfig
from codedrafts.drafts.errors import (
    AggregateDraftError,
    DraftError,
    DraftResolutionError,
    DraftResponseError,
    DraftValidationError,
    ProviderAuthRequiredError,
)
from codedrafts.drafts.models import (
    SUGGESTED_PR_CHANGE,
    Account,
    CreateDraftChange,
    Draft,
    DraftChangeset,
    DraftPatch,
    DraftPatchDetails,
    DraftPatchFileChange,
    DraftPendingUser,
    DraftUser,
)
from codedrafts.drafts.service import DraftService
from codedrafts.git.local import LocalGitProvider
from codedrafts.identities.local import LocalRepositoryRegistry
from codedrafts.identities.resolver import RepositoryIdentityResolver
from codedrafts.integrations.auth import ProviderAuthResolver
from codedrafts.integrations.env import EnvSessionStore
from codedrafts.transport.base import ServerConnection
from codedrafts.transport.http import HttpServerConnection


def create_draft_service(
    config: DraftsConfig,
    repo_paths: list[str | Path] | None = None,
    connection: ServerConnection | None = None,
) -> DraftService:
    """Wire a DraftService over local git, env-var tokens and the HTTP API.

    ``repo_paths`` are the working trees treated as "open" when resolving
    repository identities back to local checkouts.
    """
    git = LocalGitProvider()
    identities = RepositoryIdentityResolver(LocalRepositoryRegistry(repo_paths), git)
    auth = ProviderAuthResolver(git, EnvSessionStore(config.integrations), identities)

    account = None
    if config.account.id:
        account = Account(
            id=config.account.id, name=config.account.name, email=config.account.email
        )

    return DraftService(
        connection or HttpServerConnection(config.api),
        git,
        identities,
        auth,
        account=account,
        settings=config.drafts,
    )


__all__ = [
    "Account",
    "AggregateDraftError",
    "CreateDraftChange",
    "Draft",
    "DraftChangeset",
    "DraftError",
    "DraftPatch",
    "DraftPatchDetails",
    "DraftPatchFileChange",
    "DraftPendingUser",
    "DraftResolutionError",
    "DraftResponseError",
    "DraftService",
    "DraftUser",
    "DraftValidationError",
    "ProviderAuthRequiredError",
    "SUGGESTED_PR_CHANGE",
    "create_draft_service",
]
