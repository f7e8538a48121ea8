"""Exceptions raised by the draft service."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


class DraftError(Exception):
    """Base class for draft operation failures."""


class DraftValidationError(DraftError):
    """The caller's input cannot produce a valid request."""


class DraftResolutionError(DraftError):
    """Local data needed for the request (diff, identity, credentials) is unavailable."""


class ProviderAuthRequiredError(DraftResolutionError):
    def __init__(self, message: str = "No provider integration found") -> None:
        super().__init__(message)


class DraftResponseError(DraftError):
    """The drafts service answered with a non-2xx status."""

    def __init__(self, operation: str, status: int, server_message: str | None) -> None:
        self.operation = operation
        self.status = status
        self.server_message = server_message
        super().__init__(f"{operation}: ({status}) {server_message}")


class AggregateDraftError(DraftError):
    """Several independent sub-operations failed; ``causes`` keeps every one, in order."""

    def __init__(self, message: str, causes: list[BaseException]) -> None:
        self.causes = list(causes)
        detail = "; ".join(str(c) for c in self.causes)
        super().__init__(f"{message} ({len(self.causes)} failed): {detail}")


def _server_error_message(rsp: httpx.Response) -> str | None:
    """Extract `error` (string) or `error.message` from a JSON error body."""
    try:
        body = rsp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, str):
        return error
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return None


def ensure_ok(operation: str, rsp: httpx.Response) -> httpx.Response:
    """Raise DraftResponseError unless ``rsp`` is 2xx; returns ``rsp`` for chaining."""
    if rsp.is_success:
        return rsp
    message = _server_error_message(rsp) or rsp.reason_phrase
    error = DraftResponseError(operation, rsp.status_code, message)
    logger.error("%s", error)
    raise error
