"""Abstract connection to the drafts service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx


class ServerConnection(ABC):
    """Issues requests to the drafts API and to pre-signed storage URLs.

    Implementations return the response as-is; status handling is the
    caller's concern.
    """

    @abstractmethod
    async def fetch_api(
        self,
        path: str,
        method: str = "GET",
        *,
        body: Any = None,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | str | None = None,
    ) -> httpx.Response:
        """Authenticated JSON request to the drafts API; ``body`` is JSON-encoded."""
        ...

    @abstractmethod
    async def fetch(
        self,
        url: str,
        method: str = "GET",
        *,
        headers: dict[str, str] | None = None,
        content: str | bytes | None = None,
    ) -> httpx.Response:
        """Raw request to an absolute URL (upload/download targets)."""
        ...

    @abstractmethod
    def web_url(self, path: str, query: dict[str, str] | None = None) -> str:
        """Browser URL on the drafts web site."""
        ...
