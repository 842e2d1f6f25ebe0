"""
Project configuration for the bridge discovery toolkit.

This module centralises process-level settings: RPC endpoint overrides,
retry and circuit-breaker tuning, discovery concurrency, the event cache
backend and logging.  Every value can be overridden with an environment
variable of the same name.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _parse_float(name: str, default: str, *, low: float = 0.0, high: float = 1.0) -> float:
    """Parse an env var as a float and validate it within [low, high]."""
    raw = os.getenv(name, default)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.error("Invalid value for %s: %r – using default %s", name, raw, default)
        value = float(default)
    if not (low <= value <= high):
        logger.warning("%s=%.4f is outside [%.1f, %.1f] – clamped", name, value, low, high)
        value = max(low, min(value, high))
    return value


def _parse_int(name: str, default: str, *, minimum: int = 1) -> int:
    """Parse an env var as an int and enforce a minimum."""
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.error("Invalid value for %s: %r – using default %s", name, raw, default)
        value = int(default)
    if value < minimum:
        logger.warning("%s=%d is below minimum %d – clamped", name, value, minimum)
        value = minimum
    return value


def rpc_url_override(network_key: str) -> str | None:
    """Return ``RPC_URL_<NETWORK_KEY>`` from the environment, if set."""
    value = os.getenv(f"RPC_URL_{network_key.upper()}", "").strip()
    return value or None


# ---------------------------------------------------------------------------
# JSON-RPC transport
# ---------------------------------------------------------------------------
REQUEST_TIMEOUT: int = _parse_int("REQUEST_TIMEOUT", "15", minimum=1)
RPC_MAX_RETRIES: int = _parse_int("RPC_MAX_RETRIES", "3", minimum=1)
RPC_BACKOFF_BASE: float = _parse_float("RPC_BACKOFF_BASE", "1.5", low=0.0, high=30.0)

# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------
MAX_CONCURRENT_DISCOVERY: int = _parse_int("MAX_CONCURRENT_DISCOVERY", "5", minimum=1)

# ---------------------------------------------------------------------------
# Circuit breaker
# ---------------------------------------------------------------------------
CB_FAILURE_THRESHOLD: int = _parse_int("CB_FAILURE_THRESHOLD", "8", minimum=1)
CB_RECOVERY_TIMEOUT: float = _parse_float("CB_RECOVERY_TIMEOUT", "60", low=1.0, high=3600.0)

# ---------------------------------------------------------------------------
# Event cache
# ---------------------------------------------------------------------------
EVENT_CACHE_BACKEND: str = os.getenv("EVENT_CACHE_BACKEND", "memory")  # "memory" or "sqlite"
EVENT_CACHE_SQLITE_PATH: str = os.getenv("EVENT_CACHE_SQLITE_PATH", "data/events.db")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT: str = os.getenv("LOG_FORMAT", "text")  # "text" or "json"
