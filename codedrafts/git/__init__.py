"""Git capability interface and local adapter."""

from codedrafts.git.base import GitProvider
from codedrafts.git.local import GitCommandError, LocalGitProvider
from codedrafts.git.models import (
    DiffFileChange,
    DiffFiles,
    DiffResult,
    GitBranch,
    GitCommit,
    GitRemote,
    GitUser,
    IntegrationDescriptor,
    RemoteProvider,
    Repository,
    RevisionRange,
)
from codedrafts.git.refs import UNCOMMITTED, UNCOMMITTED_STAGED, is_sha, is_uncommitted

__all__ = [
    "DiffFileChange",
    "DiffFiles",
    "DiffResult",
    "GitBranch",
    "GitCommandError",
    "GitCommit",
    "GitProvider",
    "GitRemote",
    "GitUser",
    "IntegrationDescriptor",
    "LocalGitProvider",
    "RemoteProvider",
    "Repository",
    "RevisionRange",
    "UNCOMMITTED",
    "UNCOMMITTED_STAGED",
    "is_sha",
    "is_uncommitted",
]
