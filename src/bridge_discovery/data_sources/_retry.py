"""
Shared async JSON-RPC POST with retry and exponential backoff.

Used by the EVM RPC client.  Unlike a plain HTTP helper, exhausting the
retries raises ``ChainTransportError`` so callers can tell "the endpoint is
unreachable" apart from "the node answered with an error".
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ..errors import ChainTransportError

logger = logging.getLogger(__name__)


def _parse_retry_after(resp: httpx.Response, default: float) -> float:
    """Extract wait time from a ``Retry-After`` header, or use *default*.

    Only the integer-seconds form is handled.
    """
    raw = resp.headers.get("retry-after")
    if raw is not None:
        try:
            return max(float(raw), 0.5)
        except (ValueError, TypeError):
            pass
    return default


async def async_rpc_post(
    client: httpx.AsyncClient,
    url: str,
    *,
    json_payload: Any,
    max_retries: int = 3,
    backoff_base: float = 1.5,
    label: str = "RPC",
) -> dict[str, Any]:
    """POST a JSON-RPC *json_payload* and return the decoded response body.

    The body is returned as-is, including a JSON-RPC ``error`` member; the
    caller decides what an error means.  Retries on 429, HTTP errors and
    connection failures; raises ``ChainTransportError`` once retries are
    exhausted or when the endpoint refuses access (403).
    """
    last_error = "no attempt made"
    for attempt in range(max_retries):
        try:
            resp = await client.post(url, json=json_payload)
            if resp.status_code == 429:
                wait = _parse_retry_after(resp, backoff_base * (2 ** attempt))
                logger.warning("%s rate-limited, retry in %.1fs", label, wait)
                last_error = "rate limited (429)"
                await asyncio.sleep(wait)
                continue
            if resp.status_code == 403:
                logger.warning("%s 403 for %s – endpoint refuses this client", label, url)
                raise ChainTransportError(f"{label} access denied (403)")
            resp.raise_for_status()
            body = resp.json()
            if not isinstance(body, dict):
                raise ChainTransportError(f"{label} returned a non-object body")
            return body
        except httpx.HTTPStatusError as exc:
            logger.warning("%s HTTP %s", label, exc.response.status_code)
            last_error = f"HTTP {exc.response.status_code}"
        except httpx.RequestError as exc:
            logger.warning("%s request failed: %s", label, exc)
            last_error = str(exc) or exc.__class__.__name__
        except ValueError as exc:
            logger.warning("%s returned invalid JSON: %s", label, exc)
            last_error = "invalid JSON body"
        if attempt < max_retries - 1:
            await asyncio.sleep(backoff_base * (2 ** attempt))
    raise ChainTransportError(f"{label} unreachable after {max_retries} attempts: {last_error}")
