"""File-level summary of a unified git diff, and the byte codec for diff text."""

from __future__ import annotations

import re

from codedrafts.git.models import DiffFileChange, DiffFiles

_header_re = re.compile(r'^diff --git "?a/(?P<old>.+?)"? "?b/(?P<new>.+?)"?$')

# Diffs are carried as str; bytes that are not valid UTF-8 (Latin-1 sources,
# binary patches) survive the round trip as lone surrogates.
DIFF_ENCODING = "utf-8"
DIFF_ERRORS = "surrogateescape"


def decode_diff(data: bytes) -> str:
    return data.decode(DIFF_ENCODING, DIFF_ERRORS)


def encode_diff(contents: str) -> bytes:
    return contents.encode(DIFF_ENCODING, DIFF_ERRORS)


def parse_diff_files(contents: str) -> DiffFiles:
    """List the files touched by a `git diff` style patch.

    Only the extended headers are read; hunks are skipped.
    """
    files: list[DiffFileChange] = []
    current: dict | None = None

    def _flush() -> None:
        if current is None:
            return
        status = current["status"]
        original = current["old"] if status in ("R", "C") else None
        path = current["old"] if status == "D" else current["new"]
        files.append(DiffFileChange(path=path, original_path=original, status=status))

    for line in contents.splitlines():
        m = _header_re.match(line)
        if m:
            _flush()
            current = {"old": m.group("old"), "new": m.group("new"), "status": "M"}
            continue
        if current is None:
            continue
        if line.startswith("new file mode"):
            current["status"] = "A"
        elif line.startswith("deleted file mode"):
            current["status"] = "D"
        elif line.startswith("rename from "):
            current["status"] = "R"
            current["old"] = line[len("rename from "):]
        elif line.startswith("rename to "):
            current["new"] = line[len("rename to "):]
        elif line.startswith("copy from "):
            current["status"] = "C"
            current["old"] = line[len("copy from "):]
        elif line.startswith("copy to "):
            current["new"] = line[len("copy to "):]
    _flush()

    return DiffFiles(files=files)
