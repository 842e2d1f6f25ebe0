"""
Async circuit breaker for per-network JSON-RPC endpoints.

States
------
CLOSED    : Normal operation. Calls pass through. Transport failures are counted.
OPEN      : Endpoint considered down. Calls fail fast with ``CircuitOpenError``.
HALF_OPEN : Recovery probe. Success streak → CLOSED, any failure → OPEN.

Only ``ChainTransportError`` counts as a failure.  A contract revert is a
normal answer from a healthy node (the detector relies on reverts), so it
resets the failure streak like any other response.

Usage
-----
    cb = CircuitBreaker("rpc:ETHEREUM", failure_threshold=8, recovery_timeout=60)
    result = await cb.call(client.eth_call, address, data)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from .errors import ChainTransportError, CircuitOpenError, ContractCallError

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerStats:
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0  # fast-fails when OPEN

    @property
    def failure_rate(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.failed_calls / self.total_calls


class CircuitBreaker:
    """Async circuit breaker with automatic state transitions.

    Parameters
    ----------
    name:
        Human-readable name for logging.
    failure_threshold:
        Consecutive transport failures before opening the circuit.
    recovery_timeout:
        Seconds to wait in OPEN state before a recovery probe.
    success_threshold:
        Consecutive successes needed in HALF_OPEN to close the circuit.
    """

    def __init__(
        self,
        name: str,
        *,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        success_threshold: int = 2,
    ) -> None:
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.success_threshold = success_threshold

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: Optional[float] = None
        self._lock = asyncio.Lock()
        self.stats = CircuitBreakerStats()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state == CircuitState.CLOSED

    async def call(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Execute *func* through the breaker.

        Raises ``CircuitOpenError`` when the circuit is OPEN.
        """
        async with self._lock:
            state = self._check_state()

        if state == CircuitState.OPEN:
            self.stats.rejected_calls += 1
            raise CircuitOpenError(self.name)

        self.stats.total_calls += 1
        try:
            result = await func(*args, **kwargs)
        except ContractCallError:
            # the node answered; the endpoint is healthy
            await self._on_success()
            raise
        except ChainTransportError:
            await self._on_failure()
            raise
        await self._on_success()
        return result

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _check_state(self) -> CircuitState:
        if self._state == CircuitState.OPEN:
            elapsed = time.monotonic() - (self._last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                self._transition(CircuitState.HALF_OPEN)
        return self._state

    async def _on_success(self) -> None:
        async with self._lock:
            self.stats.successful_calls += 1
            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    self._failure_count = 0
                    self._success_count = 0
                    self._transition(CircuitState.CLOSED)
            elif self._state == CircuitState.CLOSED:
                self._failure_count = 0

    async def _on_failure(self) -> None:
        async with self._lock:
            self.stats.failed_calls += 1
            self._last_failure_time = time.monotonic()
            self._failure_count += 1
            self._success_count = 0

            if self._state == CircuitState.HALF_OPEN:
                self._transition(CircuitState.OPEN)
            elif self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
                self._transition(CircuitState.OPEN)

    def _transition(self, new_state: CircuitState) -> None:
        if new_state != self._state:
            logger.warning(
                "CircuitBreaker '%s': %s → %s (failures=%d)",
                self.name,
                self._state.value,
                new_state.value,
                self._failure_count,
            )
            self._state = new_state

    def status(self) -> dict[str, Any]:
        """Serialisable status, logged by the CLI at DEBUG on shutdown."""
        return {
            "state": self._state.value,
            "failure_count": self._failure_count,
            "total_calls": self.stats.total_calls,
            "failed_calls": self.stats.failed_calls,
            "rejected_calls": self.stats.rejected_calls,
            "failure_rate": round(self.stats.failure_rate, 3),
        }


# ---------------------------------------------------------------------------
# Registry of every breaker created, for diagnostics
# ---------------------------------------------------------------------------
_registry: dict[str, CircuitBreaker] = {}


def register(cb: CircuitBreaker) -> CircuitBreaker:
    _registry[cb.name] = cb
    return cb


def get_all_statuses() -> dict[str, dict[str, Any]]:
    return {name: cb.status() for name, cb in _registry.items()}
