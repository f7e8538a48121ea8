"""Abstract repository registry interface."""

from abc import ABC, abstractmethod

from codedrafts.git.models import Repository
from codedrafts.identities.models import RepositoryIdentity


class RepositoryRegistry(ABC):
    """The set of repositories the host application has open."""

    @abstractmethod
    async def repositories(self) -> list[Repository]:
        """Repositories currently open."""
        ...

    @abstractmethod
    async def open_virtual_repository(self, uri: str, keep_open: bool = False) -> Repository | None:
        """Open a read-only view of a hosted repository, or None if unsupported."""
        ...

    @abstractmethod
    async def prompt_for_repository(self, identity: RepositoryIdentity) -> Repository | None:
        """Ask the user to locate ``identity``; None if they decline."""
        ...
