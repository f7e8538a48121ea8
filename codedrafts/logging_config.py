"""Logging setup and per-operation log scoping.

Every public draft operation runs inside ``log_operation`` which binds the
operation name for the duration of the call, so records emitted by helpers
deeper in the stack carry it too:

    async with log_operation("DraftService.get_draft", draft_id=id):
        ...
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

operation_var: ContextVar[str | None] = ContextVar("operation", default=None)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_RESERVED = frozenset(
    (
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "taskName", "operation",
    )
)


class OperationFilter(logging.Filter):
    """Adds the current operation name to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.operation = operation_var.get() or "-"  # type: ignore[attr-defined]
        return True


class JsonFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        operation = getattr(record, "operation", None)
        if operation and operation != "-":
            log_obj["operation"] = operation

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED or value is None:
                continue
            try:
                json.dumps(value)
                log_obj[key] = value
            except (TypeError, ValueError):
                log_obj[key] = str(value)

        return json.dumps(log_obj)


def configure_logging(level: str = "info", fmt: str = "text") -> None:
    """Install a single stderr handler on the ``codedrafts`` logger."""
    root = logging.getLogger("codedrafts")
    root.setLevel(_LEVELS.get(level, logging.INFO))

    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(OperationFilter())
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-5s [%(name)s] op=%(operation)s %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    root.addHandler(handler)
    root.propagate = False

    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def log_operation(name: str, **fields: Any) -> AsyncIterator[None]:
    """Log entry, exit and failure of one operation, then re-raise failures."""
    logger = logging.getLogger("codedrafts.operations")
    token = operation_var.set(name)
    started = time.monotonic()
    logger.debug("%s started", name, extra=fields)
    try:
        yield
    except Exception as e:
        logger.error(
            "%s failed: %s",
            name,
            e,
            extra={**fields, "elapsed_ms": int((time.monotonic() - started) * 1000)},
        )
        raise
    else:
        logger.debug(
            "%s completed",
            name,
            extra={**fields, "elapsed_ms": int((time.monotonic() - started) * 1000)},
        )
    finally:
        operation_var.reset(token)
