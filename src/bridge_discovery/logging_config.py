"""
Logging configuration for bridge discovery.

Supports two formats:
- ``text`` (default): human-readable log lines
- ``json``: one JSON object per line for log aggregation

Settings via env vars:
- ``LOG_LEVEL``: DEBUG / INFO / WARNING / ERROR (default: INFO)
- ``LOG_FORMAT``: text / json (default: text)

Every record carries a ``discovery_id`` correlation id, bound per detection
or registry walk with ``bind_discovery_id``.
"""

from __future__ import annotations

import json as json_mod
import logging
import sys
import uuid
from contextvars import ContextVar, Token

from config import LOG_FORMAT, LOG_LEVEL

discovery_id_ctx: ContextVar[str] = ContextVar("discovery_id", default="-")


class JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "discovery_id": discovery_id_ctx.get("-"),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json_mod.dumps(entry, default=str)


class _DiscoveryIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.discovery_id = discovery_id_ctx.get("-")  # type: ignore[attr-defined]
        return True


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure the root logger (arguments override the env settings)."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    if (fmt or LOG_FORMAT) == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s (%(discovery_id)s) %(message)s",
                defaults={"discovery_id": "-"},
            )
        )
    handler.addFilter(_DiscoveryIdFilter())
    root.addHandler(handler)


def generate_discovery_id() -> str:
    """Create a short unique correlation id."""
    return uuid.uuid4().hex[:12]


def bind_discovery_id(discovery_id: str | None = None) -> Token:
    """Bind a correlation id to the current context; returns the reset token."""
    return discovery_id_ctx.set(discovery_id or generate_discovery_id())
