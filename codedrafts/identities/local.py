"""RepositoryRegistry over an explicit list of local paths."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from codedrafts.git.models import Repository
from codedrafts.identities.base import RepositoryRegistry
from codedrafts.identities.models import RepositoryIdentity

logger = logging.getLogger(__name__)


def local_repository(path: str | Path) -> Repository:
    """Build a Repository handle for a working tree on disk."""
    resolved = Path(path).expanduser().resolve()
    return Repository(
        id=hashlib.sha1(str(resolved).encode()).hexdigest()[:12],
        name=resolved.name,
        path=str(resolved),
        uri=resolved.as_uri(),
    )


class LocalRepositoryRegistry(RepositoryRegistry):
    """Knows only the repositories it was given; cannot open virtual views or prompt."""

    def __init__(self, paths: list[str | Path] | None = None) -> None:
        self._repos = [local_repository(p) for p in paths or []]

    async def repositories(self) -> list[Repository]:
        return list(self._repos)

    async def open_virtual_repository(self, uri: str, keep_open: bool = False) -> Repository | None:
        logger.debug("Virtual repositories are not supported locally: %s", uri)
        return None

    async def prompt_for_repository(self, identity: RepositoryIdentity) -> Repository | None:
        logger.debug("No interactive prompt available for %s", identity.name)
        return None
