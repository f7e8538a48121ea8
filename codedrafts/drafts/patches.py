"""Resolve a requested change into a patch creation request."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar

from codedrafts.drafts.errors import DraftResolutionError
from codedrafts.drafts.models import CreateDraftChange, CreateDraftPatchRequest
from codedrafts.drafts.wire import DraftPatchCreateRequest
from codedrafts.git.base import GitProvider
from codedrafts.git.models import GitRemote
from codedrafts.git.refs import is_sha, is_uncommitted
from codedrafts.identities.models import (
    RepositoryIdentityProvider,
    RepositoryIdentityRemote,
    RepositoryIdentityRequest,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BRANCH_NAME = "HEAD"


def settled_value(result: T | BaseException, what: str = "") -> T | None:
    """Value of an all-settled gather result, or None (logged) if it failed."""
    if isinstance(result, BaseException):
        logger.debug("Unable to resolve %s: %s", what or "value", result)
        return None
    return result


async def _nothing() -> None:
    return None


def build_repository_identity_request(
    first_sha: str | None, remote: GitRemote | None
) -> RepositoryIdentityRequest:
    """Fingerprint-only without a recognized remote; fingerprint + remote + provider otherwise."""
    if remote is None:
        if first_sha is None:
            raise DraftResolutionError("No remote or initial commit found")
        return RepositoryIdentityRequest(initial_commit_sha=first_sha)

    provider = None
    rp = remote.provider
    if rp is not None and rp.provider_id and rp.owner and rp.repo_name:
        provider = RepositoryIdentityProvider(
            id=rp.provider_id, repo_domain=rp.owner, repo_name=rp.repo_name
        )

    return RepositoryIdentityRequest(
        initial_commit_sha=first_sha,
        remote=RepositoryIdentityRemote(url=remote.url, domain=remote.domain, path=remote.path),
        provider=provider,
    )


class PatchRequestBuilder:
    """Collects everything the drafts service needs to know about one change.

    The independent git lookups run concurrently and are allowed to settle
    individually; only a missing diff, or a repository with neither a remote
    nor an initial commit, is fatal.
    """

    def __init__(self, git: GitProvider) -> None:
        self.git = git

    async def build(self, change: CreateDraftChange) -> CreateDraftPatchRequest:
        repo_path = change.repository.path
        revision = change.revision

        if is_uncommitted(revision.to_ref):
            branches_task: Any = self._current_branch_names(repo_path)
        else:
            branches_task = self.git.get_commit_branches(
                repo_path, [revision.to_ref, revision.from_ref]
            )

        diff_task: Any = (
            self.git.get_diff(repo_path, revision.to_ref, revision.from_ref)
            if change.contents is None
            else _nothing()
        )

        branches_r, diff_r, first_sha_r, remote_r, user_r = await asyncio.gather(
            branches_task,
            diff_task,
            self.git.get_first_commit_sha(repo_path),
            self.git.get_best_remote_with_provider(repo_path),
            self.git.get_current_user(repo_path),
            return_exceptions=True,
        )

        # TODO: with several provider remotes we silently take the "best" one; no way
        # for the user to pick a different remote yet.
        repo_data = build_repository_identity_request(
            settled_value(first_sha_r, "initial commit"),
            settled_value(remote_r, "remote"),
        )

        diff = settled_value(diff_r, "diff")
        contents = change.contents
        if contents is None and diff is not None:
            contents = diff.contents
        if contents is None:
            raise DraftResolutionError(
                f"Unable to diff {revision.from_ref} and {revision.to_ref}"
            )

        branch_names = settled_value(branches_r, "branch") or []
        branch_name = branch_names[0] if branch_names else DEFAULT_BRANCH_NAME

        base_sha = await self._resolve_base_sha(repo_path, revision.from_ref)

        return CreateDraftPatchRequest(
            patch=DraftPatchCreateRequest(
                base_commit_sha=base_sha,
                base_branch_name=branch_name,
                git_repo_data=repo_data,
                pr_entity_id=change.pr_entity_id,
            ),
            contents=contents,
            repository=change.repository,
            user=settled_value(user_r, "git user"),
        )

    async def _current_branch_names(self, repo_path: str) -> list[str] | None:
        branch = await self.git.get_branch(repo_path)
        return [branch.name] if branch is not None else None

    async def _resolve_base_sha(self, repo_path: str, ref: str) -> str:
        """Best effort: keep ``ref`` as given if it cannot be resolved to a sha."""
        if is_sha(ref):
            return ref
        try:
            commit = await self.git.get_commit(repo_path, ref)
        except Exception:
            logger.warning("Unable to resolve base revision %s", ref, exc_info=True)
            return ref
        if commit is None:
            logger.warning("Unable to resolve base revision %s; sending it as-is", ref)
            return ref
        return commit.sha
