"""Helpers for classifying revision strings."""

import re

UNCOMMITTED = "0" * 40
UNCOMMITTED_STAGED = f"{UNCOMMITTED}:"

_sha_re = re.compile(r"^(?:[0-9a-f]{40}|[0-9a-f]{64})$", re.IGNORECASE)
_uncommitted_re = re.compile(r"^0{40}(?:\^?:?)?$")
_uncommitted_staged_re = re.compile(r"^0{40}\^?:$")


def is_sha(ref: str) -> bool:
    """True for a full (sha1 or sha256) revision id, excluding the uncommitted sentinel."""
    return bool(_sha_re.match(ref)) and not is_uncommitted(ref)


def is_uncommitted(ref: str | None) -> bool:
    return ref is not None and bool(_uncommitted_re.match(ref))


def is_uncommitted_staged(ref: str | None) -> bool:
    return ref is not None and bool(_uncommitted_staged_re.match(ref))


def shorten_revision(ref: str | None, length: int = 7) -> str:
    if not ref:
        return ""
    if is_uncommitted(ref):
        return "Index" if is_uncommitted_staged(ref) else "Working Tree"
    if not is_sha(ref):
        return ref
    return ref[:length]
