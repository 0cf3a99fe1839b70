"""Logging configuration for the extension auth service.

Two output modes, picked by LOG_JSON:

  _ContainerFormatter: one human-readable line per record, for local runs
    and `docker logs`. The request ID and OAuth client are appended when
    the record carries them.

  _JsonFormatter: JSON Lines for log aggregation. Request context fields
    (request_id from RequestContextMiddleware, client_id/grant_type from
    the OAuth endpoints' ``extra=``) become top-level keys.

Nothing in this service logs client secrets, code verifiers, raw
authorization codes, or bearer tokens. Codes are identified in logs by a
short prefix of their SHA-256 hash.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

# Unset request_id, as stamped by the request context filter outside requests.
_NO_REQUEST = "-"

# Chatty at DEBUG; held at WARNING unless the service itself is quieter.
_QUIET_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "httpcore",
    "httpx",
    "multipart",
)


def _utc_timestamp(record: logging.LogRecord) -> str:
    created = datetime.fromtimestamp(record.created, UTC)
    return created.isoformat(timespec="milliseconds")


def _context(record: logging.LogRecord, fields: tuple[str, ...]) -> dict:
    values = {}
    for key in fields:
        value = getattr(record, key, None)
        if value is None or (key == "request_id" and value == _NO_REQUEST):
            continue
        values[key] = value
    return values


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter tuned for container stdout.

    ``<UTC ISO-8601 ms> LEVEL logger  message  rid=... client=...``, with
    ``[file:line]`` on WARNING+ so a rejected grant points at its gate.
    Tracebacks follow on the next lines.
    """

    _FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"

    def __init__(self) -> None:
        super().__init__(fmt=self._FMT)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return _utc_timestamp(record)

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = _context(record, ("request_id", "client_id"))
        if "request_id" in context:
            line += f"  rid={context['request_id']}"
        if "client_id" in context:
            line += f"  client={context['client_id']}"
        if record.levelno >= logging.WARNING:
            line += f"  [{record.filename}:{record.lineno}]"
        return line


class _JsonFormatter(logging.Formatter):
    """One JSON object per line, with request context as top-level keys."""

    _CONTEXT_FIELDS = (
        "request_id",
        "method",
        "path",
        "client_id",
        "grant_type",
        "status_code",
        "duration_ms",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": _utc_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record, self._CONTEXT_FIELDS),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Configure the root logger for container environments.

    Replaces any existing root handlers with a single stdout handler, so
    calling it again (tests, reloads) does not duplicate lines.

    Args:
        level_name: Log level string (debug/info/warning/error)
        json_format: Emit JSON lines instead of the single-line text format.
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
