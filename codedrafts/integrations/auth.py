"""Resolve Provider-Auth credentials for repositories, integrations and drafts."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from codedrafts.git.base import GitProvider
from codedrafts.git.models import Repository
from codedrafts.identities.models import RepositoryIdentity
from codedrafts.identities.resolver import RepositoryIdentityResolver
from codedrafts.integrations.base import IntegrationSessionStore
from codedrafts.integrations.models import (
    PROVIDERS_METADATA,
    IntegrationMetadata,
    ProviderAuth,
)

if TYPE_CHECKING:
    from codedrafts.drafts.models import Draft, DraftPatch

logger = logging.getLogger(__name__)

RepositoryLookup = Callable[[str, str], Awaitable["Repository | RepositoryIdentity"]]


class ProviderAuthResolver:
    """Finds a provider token, returning None whenever a link in the chain is missing."""

    def __init__(
        self,
        git: GitProvider,
        sessions: IntegrationSessionStore,
        identities: RepositoryIdentityResolver,
    ) -> None:
        self.git = git
        self.sessions = sessions
        self.identities = identities

    async def from_repository(self, repository: Repository) -> ProviderAuth | None:
        """best remote -> integration -> session -> ProviderAuth."""
        remote = await self.git.get_best_remote_with_integration(repository.path)
        if remote is None or remote.provider is None:
            return None

        integration = remote.provider.integration
        if integration is None:
            return None

        session = await self.sessions.get_session(
            integration.integration_id,
            IntegrationMetadata(domain=integration.domain, scopes=integration.scopes),
        )
        if session is None:
            logger.debug("No session for integration %s", integration.integration_id)
            return None

        return ProviderAuth(provider=integration.integration_id, token=session.access_token)

    async def from_integration_id(self, integration_id: str) -> ProviderAuth | None:
        metadata = PROVIDERS_METADATA.get(integration_id)
        if metadata is None:
            return None

        session = await self.sessions.get_session(integration_id, metadata)
        if session is None:
            return None

        return ProviderAuth(provider=integration_id, token=session.access_token)

    async def for_draft(
        self, draft: Draft, lookup: RepositoryLookup | None = None
    ) -> ProviderAuth | None:
        """Use the last patch that references a repository to find a token.

        ``lookup(draft_id, repository_id)`` is consulted only when the patch's
        own repository reference could not be opened locally.
        """
        if not draft.changesets:
            return None

        patch: DraftPatch | None = None
        for changeset in draft.changesets:
            found = next(
                (p for p in changeset.patches if p.repository is not None or p.repository_id),
                None,
            )
            if found is not None:
                patch = found
        if patch is None:
            return None

        repo: Repository | None = None
        if isinstance(patch.repository, Repository):
            repo = patch.repository
        elif isinstance(patch.repository, RepositoryIdentity):
            repo = await self.identities.get_repository(patch.repository)

        if repo is None:
            if lookup is None or not patch.repository_id:
                return None
            resolved = await lookup(draft.id, patch.repository_id)
            if not isinstance(resolved, Repository):
                return None
            repo = resolved

        return await self.from_repository(repo)
