"""Map repository identities known to the drafts service onto local repositories."""

from __future__ import annotations

import asyncio
import logging

from codedrafts.git.base import GitProvider
from codedrafts.git.models import GitRemote, Repository
from codedrafts.git.refs import shorten_revision
from codedrafts.git.remotes import (
    RemoteProviderMatcher,
    match_remote_provider,
    normalize_remote_url,
)
from codedrafts.identities.base import RepositoryRegistry
from codedrafts.identities.models import (
    RepositoryIdentity,
    RepositoryIdentityResponse,
)

logger = logging.getLogger(__name__)

# Virtual (read-only, remote-backed) repositories are only available for GitHub.
VIRTUAL_PROVIDER = "github"
VIRTUAL_SCHEME = "vfs"


def repository_identity_name(
    data: RepositoryIdentityResponse,
    matcher: RemoteProviderMatcher = match_remote_provider,
) -> str:
    """Pick a display name for an identity.

    Fallback order: explicit name, provider repo name, matcher-derived repo
    name, raw remote path, then ``Unknown (<short sha>)``.
    """
    if data.name:
        return data.name
    if data.provider is not None and data.provider.repo_name:
        return data.provider.repo_name

    remote = data.remote
    if remote is not None and remote.url and remote.domain and remote.path:
        provider = matcher(remote.url, remote.domain, remote.path)
        if provider is not None and provider.repo_name:
            return provider.repo_name
        return remote.path
    if remote is not None and remote.path:
        return remote.path

    if data.initial_commit_sha:
        return f"Unknown ({shorten_revision(data.initial_commit_sha)})"
    return "Unknown"


def format_repository_identity(
    data: RepositoryIdentityResponse,
    matcher: RemoteProviderMatcher = match_remote_provider,
) -> RepositoryIdentity:
    return RepositoryIdentity(
        id=data.id,
        name=repository_identity_name(data, matcher),
        created_at=data.created_at,
        updated_at=data.updated_at,
        initial_commit_sha=data.initial_commit_sha,
        remote=data.remote,
        provider=data.provider,
    )


def virtual_repository_uri(identity: RepositoryIdentity) -> str | None:
    """URI of the virtual view for ``identity``, or None when its host has none."""
    provider = identity.provider
    if (
        provider is not None
        and provider.id == VIRTUAL_PROVIDER
        and provider.repo_domain
        and provider.repo_name
    ):
        return f"{VIRTUAL_SCHEME}://{VIRTUAL_PROVIDER}/{provider.repo_domain}/{provider.repo_name}"

    remote = identity.remote
    if remote is not None and remote.domain == "github.com" and remote.path:
        return f"{VIRTUAL_SCHEME}://{VIRTUAL_PROVIDER}/{remote.path.strip('/')}"
    return None


def _remote_matches(identity: RepositoryIdentity, remotes: list[GitRemote]) -> bool:
    if identity.remote is not None and identity.remote.url:
        wanted = normalize_remote_url(identity.remote.url)
        if any(normalize_remote_url(r.url) == wanted for r in remotes):
            return True

    p = identity.provider
    if p is None or not p.repo_domain or not p.repo_name:
        return False
    for r in remotes:
        rp = r.provider
        if (
            rp is not None
            and rp.provider_id == p.id
            and (rp.owner or "").lower() == p.repo_domain.lower()
            and (rp.repo_name or "").lower() == p.repo_name.lower()
        ):
            return True
    return False


class RepositoryIdentityResolver:
    """Turns a RepositoryIdentity back into a usable local Repository.

    Resolution order:
        1. an open repository whose remotes (or initial commit) match
        2. a virtual repository (GitHub only), when ``open_if_needed``
        3. asking the user, when ``prompt``
    Failing all three, the identity itself is returned.
    """

    def __init__(
        self,
        registry: RepositoryRegistry,
        git: GitProvider,
        matcher: RemoteProviderMatcher = match_remote_provider,
    ) -> None:
        self.registry = registry
        self.git = git
        self.matcher = matcher

    async def resolve(
        self,
        identity: RepositoryIdentity,
        *,
        open_if_needed: bool = False,
        keep_open: bool = False,
        prompt: bool = False,
        skip_ref_validation: bool = False,
    ) -> Repository | RepositoryIdentity:
        repo = await self.get_repository(
            identity,
            open_if_needed=open_if_needed,
            keep_open=keep_open,
            prompt=prompt,
            skip_ref_validation=skip_ref_validation,
        )
        return repo if repo is not None else identity

    async def get_repository(
        self,
        identity: RepositoryIdentity,
        *,
        open_if_needed: bool = False,
        keep_open: bool = False,
        prompt: bool = False,
        skip_ref_validation: bool = False,
    ) -> Repository | None:
        repo = await self.find_open_repository(identity, skip_ref_validation=skip_ref_validation)
        if repo is not None:
            return repo

        if open_if_needed:
            uri = virtual_repository_uri(identity)
            if uri is not None:
                repo = await self.registry.open_virtual_repository(uri, keep_open=keep_open)
                if repo is not None:
                    logger.debug("Opened virtual repository %s for %s", uri, identity.name)
                    return repo

        if prompt:
            return await self.registry.prompt_for_repository(identity)
        return None

    async def find_open_repository(
        self, identity: RepositoryIdentity, *, skip_ref_validation: bool = False
    ) -> Repository | None:
        """Match ``identity`` against open repositories.

        A remote match wins over an initial-commit match; unless
        ``skip_ref_validation`` a remote match must also agree on the
        initial commit when both sides know it.
        """
        repos = await self.registry.repositories()
        if not repos:
            return None

        results = await asyncio.gather(
            *(self._fingerprint(r) for r in repos), return_exceptions=True
        )

        commit_match: Repository | None = None
        for repo, result in zip(repos, results):
            if isinstance(result, BaseException):
                logger.warning("Unable to inspect repository %s: %s", repo.path, result)
                continue
            remotes, first_sha = result

            if _remote_matches(identity, remotes):
                if (
                    skip_ref_validation
                    or identity.initial_commit_sha is None
                    or first_sha is None
                    or first_sha == identity.initial_commit_sha
                ):
                    return repo
                logger.debug(
                    "Remote of %s matches %s but its initial commit differs",
                    repo.path,
                    identity.name,
                )
                continue

            if (
                commit_match is None
                and identity.initial_commit_sha is not None
                and first_sha == identity.initial_commit_sha
            ):
                commit_match = repo

        return commit_match

    async def _fingerprint(self, repo: Repository) -> tuple[list[GitRemote], str | None]:
        remotes, first_sha = await asyncio.gather(
            self.git.get_remotes(repo.path),
            self.git.get_first_commit_sha(repo.path),
        )
        return remotes, first_sha
