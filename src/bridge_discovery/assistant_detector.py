"""
Assistant (pooled-stake helper) detection and aggregation.

An assistant is classified from the type of the bridge it serves plus two
capability probes on the assistant itself:

- export bridge: ``approvePrecompile()`` callable (or reverting with a
  reason) → ``export``; otherwise ``export_wrapper``
- import-wrapper bridge → ``import_wrapper``
- import bridge: ``precompileAddress()`` answering a non-zero address →
  ``import_wrapper``; otherwise ``import``
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from . import abi
from .bridge_detector import detect_bridge_type, probe
from .constants import EXPORT_WRAPPER_SHARE_REMAP
from .data_sources._clients import ChainAccess
from .errors import ChainTransportError, ContractCallError, DetectionError
from .models import (
    AssistantAggregationResult,
    AssistantDescriptor,
    AssistantType,
    BridgeType,
    NetworkDescriptor,
)
from .networks import get_network, normalize_network_name
from .settings_store import SettingsStore
from .token_resolver import TokenResolver
from .utils import is_zero_address, unique_key

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Key / description helpers
# ---------------------------------------------------------------------------

def bridge_key(bridge_type: BridgeType, home_token_symbol: str) -> str:
    """Configuration key for a discovered bridge, e.g. ``USDT_IMPORT``."""
    if bridge_type == BridgeType.IMPORT_WRAPPER:
        return f"{home_token_symbol}_IMPORT"
    return f"{home_token_symbol}_{bridge_type.value.upper()}"


def assistant_key(assistant_type: AssistantType, share_symbol: str, existing: Iterable[str] = ()) -> str:
    """Configuration key for a discovered assistant.

    Share symbols carry an ``IA`` / ``EA`` suffix that is stripped back to
    the token symbol; three export share symbols are remapped explicitly.
    A numeric suffix keeps the key unique against *existing*.
    """
    if not share_symbol:
        return ""
    if assistant_type == AssistantType.IMPORT_WRAPPER:
        base = f"{share_symbol.replace('IA', '', 1)}_IMPORT_ASSISTANT"
    elif assistant_type == AssistantType.EXPORT_WRAPPER:
        token = EXPORT_WRAPPER_SHARE_REMAP.get(share_symbol) or share_symbol.replace("EA", "", 1)
        base = f"{token}_EXPORT_ASSISTANT"
    else:
        base = f"{share_symbol}_{assistant_type.value.upper()}_ASSISTANT"
    return unique_key(base, existing)


def assistant_description(
    assistant_type: AssistantType,
    home_network: str,
    foreign_network: str,
    share_symbol: Optional[str],
) -> str:
    symbol_part = f" {share_symbol}" if share_symbol else ""
    label = assistant_type.value.capitalize()
    return f"{home_network} → {foreign_network}{symbol_part} {label} Assistant"


# ---------------------------------------------------------------------------
# Type detection
# ---------------------------------------------------------------------------

async def _approve_precompile_present(chain: ChainAccess, network_key: str, address: str) -> bool:
    result = await probe(chain, network_key, address, abi.ASSISTANT, "approvePrecompile")
    if result.ok:
        return True
    # a reasoned revert (e.g. manager-only) means the method exists
    return result.error is not None and result.error.has_revert_data


async def _precompile_address_present(chain: ChainAccess, network_key: str, address: str) -> bool:
    result = await probe(chain, network_key, address, abi.ASSISTANT, "precompileAddress")
    return result.ok and bool(result.value) and not is_zero_address(result.value)


async def detect_assistant_type(
    chain: ChainAccess,
    network_key: str,
    assistant_address: str,
    bridge_address: str,
    *,
    bridge_type: Optional[BridgeType] = None,
) -> AssistantType:
    """Classify the assistant at *assistant_address* serving *bridge_address*."""
    if bridge_type is None:
        bridge_type = await detect_bridge_type(chain, network_key, bridge_address)

    if bridge_type == BridgeType.EXPORT:
        if await _approve_precompile_present(chain, network_key, assistant_address):
            return AssistantType.EXPORT
        return AssistantType.EXPORT_WRAPPER

    if bridge_type == BridgeType.IMPORT_WRAPPER:
        return AssistantType.IMPORT_WRAPPER

    if await _precompile_address_present(chain, network_key, assistant_address):
        return AssistantType.IMPORT_WRAPPER
    return AssistantType.IMPORT


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

class AssistantAggregator:
    def __init__(
        self,
        chain: ChainAccess,
        settings: SettingsStore,
        *,
        resolver: Optional[TokenResolver] = None,
    ) -> None:
        self._chain = chain
        self._resolver = resolver or TokenResolver(chain, settings)

    async def aggregate(
        self,
        network_key: str,
        assistant_address: str,
        *,
        bridge_address: Optional[str] = None,
    ) -> AssistantAggregationResult:
        """Detect and describe the assistant at *assistant_address*.

        The served bridge is read from ``bridgeAddress()`` unless given.
        """
        if not assistant_address:
            raise ValueError("assistant address is required")
        network = get_network(network_key)

        try:
            if bridge_address is None:
                bridge_address = (
                    await self._chain.call(network.key, assistant_address, abi.ASSISTANT, "bridgeAddress")
                )[0]
            bridge_type = await detect_bridge_type(self._chain, network.key, bridge_address)
            assistant_type = await detect_assistant_type(
                self._chain, network.key, assistant_address, bridge_address, bridge_type=bridge_type
            )
            home, foreign = await self._route(network, bridge_address, bridge_type)
            share = await self._resolver.resolve(network.key, assistant_address)
            manager = await self._manager(network.key, assistant_address)
            created_at = await self._created_at(network, assistant_address)
        except ContractCallError as exc:
            logger.warning("Assistant %s on %s: %s", assistant_address, network.key, exc)
            return AssistantAggregationResult(
                success=False, message=f"Failed to detect assistant type: {exc}"
            )
        except (ChainTransportError, DetectionError) as exc:
            logger.warning("Assistant %s on %s: %s", assistant_address, network.key, exc)
            return AssistantAggregationResult(success=False, message=str(exc))

        share_symbol = share.symbol if share is not None else None
        descriptor = AssistantDescriptor(
            address=assistant_address,
            type=assistant_type,
            bridge_address=bridge_address,
            manager_address=manager or "",
            share_symbol=share_symbol or f"{assistant_type.value.upper()}A",
            share_name=share.name if share is not None else f"{assistant_type.value} assistant share",
            description=assistant_description(assistant_type, home, foreign, share_symbol),
            created_at=created_at,
        )
        logger.info("Detected %s assistant %s for bridge %s", assistant_type.value, assistant_address, bridge_address)
        return AssistantAggregationResult(
            success=True,
            descriptor=descriptor,
            share_token=share,
            message=f"Successfully detected {assistant_type.value} assistant",
        )

    async def _route(
        self, network: NetworkDescriptor, bridge_address: str, bridge_type: BridgeType
    ) -> tuple[str, str]:
        if bridge_type == BridgeType.EXPORT:
            foreign = (await self._chain.call(network.key, bridge_address, abi.EXPORT_BRIDGE, "foreign_network"))[0]
            return network.name, normalize_network_name(foreign)
        home = (await self._chain.call(network.key, bridge_address, abi.IMPORT_BRIDGE, "home_network"))[0]
        return normalize_network_name(home), network.name

    async def _manager(self, network_key: str, address: str) -> Optional[str]:
        result = await probe(self._chain, network_key, address, abi.ASSISTANT, "managerAddress")
        return result.value if result.ok else None

    async def _created_at(self, network: NetworkDescriptor, address: str) -> Optional[int]:
        if not network.registry_address:
            return None
        try:
            entry = await self._chain.call(
                network.key, network.registry_address, abi.BRIDGES_REGISTRY, "getAssistant", (address,)
            )
            return int(entry[0][2])
        except (ContractCallError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Could not read creation time of %s from registry: %s", address, exc)
            return None


async def aggregate_assistant(
    chain: ChainAccess,
    settings: SettingsStore,
    network_key: str,
    assistant_address: str,
    *,
    bridge_address: Optional[str] = None,
) -> AssistantAggregationResult:
    return await AssistantAggregator(chain, settings).aggregate(
        network_key, assistant_address, bridge_address=bridge_address
    )
