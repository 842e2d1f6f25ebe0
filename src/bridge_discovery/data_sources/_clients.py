"""
Chain access port and per-network client management.

``ChainAccess`` is the single capability discovery code depends on: a
read-only ``call(network_key, address, interface, method, args)``.  The
concrete ``EvmChainAccess`` keeps one lazily created ``EvmRpcClient`` (and
circuit breaker) per network key.

``close()`` should be awaited at shutdown.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence

from ..abi import ContractInterface
from ..circuit_breaker import CircuitBreaker, register
from ..data_sources.evm_rpc import EvmRpcClient
from ..errors import ConfigurationError
from ..networks import NETWORKS
from ..settings_store import SettingsStore
from config import (
    CB_FAILURE_THRESHOLD,
    CB_RECOVERY_TIMEOUT,
    REQUEST_TIMEOUT,
    RPC_BACKOFF_BASE,
    RPC_MAX_RETRIES,
    rpc_url_override,
)

logger = logging.getLogger(__name__)


class ChainAccess(Protocol):
    """Read-only contract-call capability, one namespace per network key."""

    async def call(
        self,
        network_key: str,
        address: str,
        interface: ContractInterface,
        method: str,
        args: Sequence[Any] = (),
    ) -> tuple[Any, ...]:
        ...


class EvmChainAccess:
    """``ChainAccess`` over JSON-RPC ``eth_call``.

    Endpoint precedence: settings store ``rpc_url`` → ``RPC_URL_<KEY>`` env
    var → static network configuration.
    """

    def __init__(self, settings: Optional[SettingsStore] = None) -> None:
        self._settings = settings
        self._clients: dict[str, EvmRpcClient] = {}

    def endpoint_for(self, network_key: str) -> str:
        if network_key not in NETWORKS:
            raise ConfigurationError(f"Unknown network: {network_key!r}")
        if self._settings is not None:
            override = self._settings.get(network_key).rpc_url
            if override:
                return override
        return rpc_url_override(network_key) or NETWORKS[network_key].rpc_url

    def client_for(self, network_key: str) -> EvmRpcClient:
        client = self._clients.get(network_key)
        if client is None:
            endpoint = self.endpoint_for(network_key)
            cb = register(
                CircuitBreaker(
                    f"rpc:{network_key}",
                    failure_threshold=CB_FAILURE_THRESHOLD,
                    recovery_timeout=CB_RECOVERY_TIMEOUT,
                )
            )
            client = EvmRpcClient(
                endpoint,
                network=network_key,
                timeout=REQUEST_TIMEOUT,
                max_retries=RPC_MAX_RETRIES,
                backoff_base=RPC_BACKOFF_BASE,
                circuit_breaker=cb,
            )
            logger.debug("Created RPC client for %s at %s", network_key, endpoint)
            self._clients[network_key] = client
        return client

    async def call(
        self,
        network_key: str,
        address: str,
        interface: ContractInterface,
        method: str,
        args: Sequence[Any] = (),
    ) -> tuple[Any, ...]:
        return await self.client_for(network_key).call(address, interface, method, args)

    async def close(self) -> None:
        """Close every HTTP client gracefully."""
        for client in self._clients.values():
            await client.close()
        self._clients.clear()
