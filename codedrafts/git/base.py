"""Abstract git capability interface."""

from abc import ABC, abstractmethod

from codedrafts.git.models import (
    DiffFiles,
    DiffResult,
    GitBranch,
    GitCommit,
    GitRemote,
    GitUser,
)


class GitProvider(ABC):
    """Read-only git operations the draft service depends on.

    Every method takes the repository path (or virtual URI) and returns
    ``None`` / an empty list when the data simply isn't there; exceptions are
    reserved for failures of the underlying engine.
    """

    @abstractmethod
    async def get_diff(self, repo_path: str, to_ref: str, from_ref: str) -> DiffResult | None:
        """Diff ``from_ref`` -> ``to_ref``; ``to_ref`` may be the uncommitted sentinel."""
        ...

    @abstractmethod
    async def get_diff_files(self, repo_path: str, contents: str) -> DiffFiles | None:
        """List the files changed by a diff.

        Args:
            repo_path: Repository the diff applies to, or "" when unknown.
            contents: Raw diff text.
        """
        ...

    @abstractmethod
    async def get_branch(self, repo_path: str) -> GitBranch | None:
        """Current branch of the working tree."""
        ...

    @abstractmethod
    async def get_commit_branches(self, repo_path: str, refs: list[str]) -> list[str]:
        """Names of local branches containing every one of ``refs``."""
        ...

    @abstractmethod
    async def get_current_user(self, repo_path: str) -> GitUser | None: ...

    @abstractmethod
    async def get_first_commit_sha(self, repo_path: str) -> str | None: ...

    @abstractmethod
    async def get_remotes(self, repo_path: str) -> list[GitRemote]: ...

    @abstractmethod
    async def get_best_remote_with_provider(self, repo_path: str) -> GitRemote | None:
        """The preferred remote whose URL maps to a recognized hosting provider."""
        ...

    @abstractmethod
    async def get_best_remote_with_integration(self, repo_path: str) -> GitRemote | None:
        """Like ``get_best_remote_with_provider``, restricted to providers with an integration."""
        ...

    @abstractmethod
    async def get_commit(self, repo_path: str, ref: str) -> GitCommit | None:
        """Resolve ``ref`` to a commit, or None if it does not exist."""
        ...
