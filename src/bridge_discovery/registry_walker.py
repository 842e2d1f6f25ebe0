"""
Registry walker: discover every bridge and assistant a network's
BridgesRegistry knows about.

Each address is an independent work unit run under a shared semaphore
(``MAX_CONCURRENT_DISCOVERY``).  A failed unit lands in the matching error
list and never removes its siblings from the result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

from config import MAX_CONCURRENT_DISCOVERY

from . import abi
from .assistant_detector import AssistantAggregator, assistant_key, bridge_key
from .bridge_aggregator import BridgeAggregator
from .data_sources._clients import ChainAccess
from .errors import ConfigurationError
from .logging_config import bind_discovery_id, discovery_id_ctx
from .models import (
    AssistantAggregationResult,
    BridgeAggregationResult,
    BridgeDescriptor,
    BridgeType,
    DiscoveryCounts,
    DiscoveryFailure,
    DiscoverySummary,
    OracleSuggestion,
    RegistryWalkResult,
)
from .networks import get_network
from .oracle_validator import OracleValidator
from .settings_store import SettingsStore
from .token_resolver import TokenResolver
from .utils import unique_key

logger = logging.getLogger(__name__)


def _local_token_addresses(bridge: BridgeDescriptor) -> list[str]:
    """Token addresses of *bridge* that live on the bridge's own network."""
    if bridge.type == BridgeType.EXPORT:
        candidates = [bridge.home_token_address, bridge.stake_token_address]
    else:
        candidates = [bridge.foreign_token_address, bridge.stake_token_address]
    return [a for a in candidates if a]


class RegistryWalker:
    def __init__(
        self,
        chain: ChainAccess,
        settings: SettingsStore,
        *,
        max_concurrency: int = MAX_CONCURRENT_DISCOVERY,
    ) -> None:
        self._chain = chain
        self._resolver = TokenResolver(chain, settings)
        self._bridges = BridgeAggregator(chain, settings, resolver=self._resolver)
        self._assistants = AssistantAggregator(chain, settings, resolver=self._resolver)
        self._oracles = OracleValidator(chain, settings)
        self._max_concurrency = max_concurrency

    async def walk(self, network_key: str) -> RegistryWalkResult:
        """Enumerate and aggregate everything in *network_key*'s registry.

        Raises ``ConfigurationError`` when the network has no registry and
        ``ChainTransportError`` when the registry itself cannot be read.
        """
        network = get_network(network_key)
        if not network.registry_address:
            raise ConfigurationError(f"BridgesRegistry not deployed on network {network.key}")

        token = None
        if discovery_id_ctx.get() == "-":
            token = bind_discovery_id()
        try:
            return await self._walk(network.key, network.registry_address)
        finally:
            if token is not None:
                discovery_id_ctx.reset(token)

    async def _walk(self, network_key: str, registry: str) -> RegistryWalkResult:
        (bridge_addresses,), (assistant_addresses,) = await asyncio.gather(
            self._chain.call(network_key, registry, abi.BRIDGES_REGISTRY, "getAllBridges"),
            self._chain.call(network_key, registry, abi.BRIDGES_REGISTRY, "getAllAssistants"),
        )
        logger.info(
            "Found %d bridges and %d assistants on %s",
            len(bridge_addresses), len(assistant_addresses), network_key,
        )
        result = RegistryWalkResult(network_key=network_key)
        sem = asyncio.Semaphore(self._max_concurrency)

        async def _throttled_bridge(address: str) -> BridgeAggregationResult:
            async with sem:
                return await self._bridges.aggregate(network_key, address)

        async def _throttled_assistant(address: str) -> AssistantAggregationResult:
            async with sem:
                return await self._assistants.aggregate(network_key, address)

        bridge_results = await asyncio.gather(
            *[_throttled_bridge(a) for a in bridge_addresses],
            return_exceptions=True,
        )
        suggested: set[str] = set()
        for address, r in zip(bridge_addresses, bridge_results):
            if isinstance(r, Exception):
                logger.error("Bridge %s: %s", address, r)
                result.bridge_errors.append(DiscoveryFailure(address=address, message=str(r)))
                continue
            if not r.success or r.descriptor is None:
                result.bridge_errors.append(DiscoveryFailure(address=address, message=r.message))
                continue
            key = unique_key(bridge_key(r.descriptor.type, r.descriptor.home_token_symbol), result.bridges)
            result.bridges[key] = r.descriptor
            suggestion: Optional[OracleSuggestion] = r.oracle_needs_addition
            if suggestion is not None and suggestion.address.lower() not in suggested:
                suggested.add(suggestion.address.lower())
                # keys were generated per bridge against the same settings
                suggestion = self._oracles.rekey(
                    network_key, suggestion, (s.key for s in result.oracle_suggestions)
                )
                result.oracle_suggestions.append(suggestion)

        assistant_results = await asyncio.gather(
            *[_throttled_assistant(a) for a in assistant_addresses],
            return_exceptions=True,
        )
        for address, r in zip(assistant_addresses, assistant_results):
            if isinstance(r, Exception):
                logger.error("Assistant %s: %s", address, r)
                result.assistant_errors.append(DiscoveryFailure(address=address, message=str(r)))
                continue
            if not r.success or r.descriptor is None:
                result.assistant_errors.append(DiscoveryFailure(address=address, message=r.message))
                continue
            key = assistant_key(r.descriptor.type, r.descriptor.share_symbol, result.assistants)
            result.assistants[key] = r.descriptor

        token_addresses = await self._discover_tokens(network_key, result, sem)

        result.summary = DiscoverySummary(
            bridges=DiscoveryCounts(
                total=len(bridge_addresses),
                successful=len(result.bridges),
                failed=len(result.bridge_errors),
            ),
            assistants=DiscoveryCounts(
                total=len(assistant_addresses),
                successful=len(result.assistants),
                failed=len(result.assistant_errors),
            ),
            tokens=DiscoveryCounts(
                total=len(token_addresses),
                successful=len(token_addresses) - len(result.token_errors),
                failed=len(result.token_errors),
            ),
        )
        logger.info(
            "Discovery on %s complete: %d/%d bridges, %d/%d assistants, %d tokens",
            network_key,
            result.summary.bridges.successful, result.summary.bridges.total,
            result.summary.assistants.successful, result.summary.assistants.total,
            result.summary.tokens.successful,
        )
        return result

    async def _discover_tokens(
        self, network_key: str, result: RegistryWalkResult, sem: asyncio.Semaphore
    ) -> list[str]:
        seen: dict[str, str] = {}
        for bridge in result.bridges.values():
            for address in _local_token_addresses(bridge):
                seen.setdefault(address.lower(), address)
        # an assistant is itself its share token
        for assistant in result.assistants.values():
            seen.setdefault(assistant.address.lower(), assistant.address)
        addresses = list(seen.values())

        async def _throttled_resolve(address: str):
            async with sem:
                return await self._resolver.resolve(network_key, address)

        records = await asyncio.gather(
            *[_throttled_resolve(a) for a in addresses],
            return_exceptions=True,
        )
        for address, record in zip(addresses, records):
            if isinstance(record, Exception):
                result.token_errors.append(DiscoveryFailure(address=address, message=str(record)))
            elif record is None:
                result.token_errors.append(DiscoveryFailure(address=address, message="Token not found"))
            else:
                result.tokens[unique_key(record.symbol, result.tokens)] = record
        return addresses


async def walk_registry(chain: ChainAccess, settings: SettingsStore, network_key: str) -> RegistryWalkResult:
    return await RegistryWalker(chain, settings).walk(network_key)


def generate_config_update(result: RegistryWalkResult) -> dict[str, Any]:
    """Turn a walk into a JSON-ready configuration patch for its network."""
    return {
        "network": result.network_key,
        "bridges": {k: v.model_dump(mode="json") for k, v in result.bridges.items()},
        "assistants": {k: v.model_dump(mode="json") for k, v in result.assistants.items()},
        "tokens": {k: v.model_dump(mode="json") for k, v in result.tokens.items()},
        "oracles": [s.model_dump(mode="json") for s in result.oracle_suggestions],
        "timestamp": int(time.time() * 1000),
        "summary": result.summary.model_dump(mode="json"),
    }
