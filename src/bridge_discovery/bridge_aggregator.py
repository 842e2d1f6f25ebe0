"""
Bridge data aggregation: detected variant → complete ``BridgeDescriptor``.

Once ``detect_bridge_type`` has settled the variant, the aggregator reads
the variant's view fields, resolves every asset address to a symbol,
validates the oracle and assembles the descriptor.

Failure policy
--------------
- optional fields that are rejected on-chain degrade to fallbacks and are
  logged at WARNING
- an oracle that is present but fails validation, or an import-family
  bridge with no oracle at all, fails the whole aggregation with
  ``invalid_oracle=True``
- a validated oracle unknown to configuration yields an advisory
  ``oracle_needs_addition`` suggestion
- transport failures become a failed result with ``transport_error=True``
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from . import abi
from .constants import UNKNOWN_SYMBOL
from .bridge_detector import detect_bridge_type
from .data_sources._clients import ChainAccess
from .errors import ChainAccessError, ChainTransportError, ContractCallError, DetectionError
from .models import BridgeAggregationResult, BridgeDescriptor, BridgeType, NetworkDescriptor
from .networks import find_network_key, get_network, normalize_network_name
from .oracle_validator import OracleValidator
from .settings_store import SettingsStore
from .token_resolver import TokenResolver
from .utils import is_zero_address

logger = logging.getLogger(__name__)


@dataclass
class RawBridgeFields:
    """View fields read from a bridge, before symbol resolution."""

    home_network: str
    foreign_network: str
    home_token_address: Optional[str]
    foreign_token_address: Optional[str]
    stake_token_address: Optional[str]
    oracle_address: Optional[str] = None


def bridge_description(
    bridge_type: BridgeType,
    home_network: str,
    home_symbol: str,
    foreign_network: str,
    foreign_symbol: str,
) -> str:
    arrow = "←" if bridge_type.is_import_family else "→"
    return f"{home_network} {home_symbol} {arrow} {foreign_network} {foreign_symbol} Bridge"


def derive_bridge_id(home_symbol: str, home_network: str, foreign_network: str) -> Optional[str]:
    """Pairing id shared by the export and import halves of one route."""
    if home_symbol == UNKNOWN_SYMBOL or home_network == UNKNOWN_SYMBOL:
        return None
    return f"{home_symbol}:{home_network}-{foreign_network}"


class BridgeAggregator:
    """Reads, resolves and validates one bridge at a time."""

    def __init__(
        self,
        chain: ChainAccess,
        settings: SettingsStore,
        *,
        resolver: Optional[TokenResolver] = None,
        validator: Optional[OracleValidator] = None,
    ) -> None:
        self._chain = chain
        self._settings = settings
        self._resolver = resolver or TokenResolver(chain, settings)
        self._validator = validator or OracleValidator(chain, settings)

    @property
    def resolver(self) -> TokenResolver:
        return self._resolver

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def aggregate(
        self,
        network_key: str,
        address: str,
        *,
        stake_token_hint: Optional[str] = None,
    ) -> BridgeAggregationResult:
        """Detect and describe the bridge at *address* on *network_key*.

        *stake_token_hint* is used as the stake token when the bridge's
        ``settings()`` call is rejected.
        """
        if not address:
            raise ValueError("bridge address is required")
        network = get_network(network_key)

        try:
            bridge_type = await detect_bridge_type(self._chain, network.key, address)
            raw = await self._read_fields(network, address, bridge_type, stake_token_hint)
            return await self._assemble(network, address, bridge_type, raw)
        except ChainTransportError as exc:
            logger.error("Bridge %s on %s unreachable: %s", address, network.key, exc)
            return BridgeAggregationResult(
                success=False,
                message=f"Chain unreachable: {exc}",
                transport_error=True,
            )
        except DetectionError as exc:
            logger.warning("Bridge %s on %s: %s", address, network.key, exc)
            return BridgeAggregationResult(success=False, message=str(exc))

    # ------------------------------------------------------------------
    # Field extraction per variant
    # ------------------------------------------------------------------

    async def _read_fields(
        self,
        network: NetworkDescriptor,
        address: str,
        bridge_type: BridgeType,
        stake_token_hint: Optional[str],
    ) -> RawBridgeFields:
        if bridge_type == BridgeType.EXPORT:
            return await self._read_export(network, address, stake_token_hint)
        if bridge_type == BridgeType.IMPORT:
            return await self._read_import(network, address, stake_token_hint)
        return await self._read_import_wrapper(network, address, stake_token_hint)

    async def _read_export(self, network: NetworkDescriptor, address: str, hint: Optional[str]) -> RawBridgeFields:
        iface = abi.EXPORT_BRIDGE
        foreign_network, foreign_asset, stake = await asyncio.gather(
            self._required(network.key, address, iface, "foreign_network"),
            self._required(network.key, address, iface, "foreign_asset"),
            self._stake_token(network, address, iface, hint),
        )
        return RawBridgeFields(
            home_network=network.name,
            foreign_network=normalize_network_name(foreign_network),
            home_token_address=stake,
            foreign_token_address=foreign_asset or None,
            stake_token_address=stake,
        )

    async def _read_import(self, network: NetworkDescriptor, address: str, hint: Optional[str]) -> RawBridgeFields:
        iface = abi.IMPORT_BRIDGE
        home_network, home_asset, oracle, stake = await asyncio.gather(
            self._required(network.key, address, iface, "home_network"),
            self._required(network.key, address, iface, "home_asset"),
            self._required(network.key, address, iface, "oracleAddress"),
            self._stake_token(network, address, iface, hint),
        )
        # the import contract is itself the foreign-side token
        return RawBridgeFields(
            home_network=normalize_network_name(home_network),
            foreign_network=network.name,
            home_token_address=home_asset or None,
            foreign_token_address=address,
            stake_token_address=stake,
            oracle_address=oracle,
        )

    async def _read_import_wrapper(
        self, network: NetworkDescriptor, address: str, hint: Optional[str]
    ) -> RawBridgeFields:
        iface = abi.IMPORT_WRAPPER_BRIDGE
        # every field is read on its own so one rejection cannot sink the rest
        home_network = await self._optional(network.key, address, iface, "home_network", UNKNOWN_SYMBOL)
        home_asset = await self._optional(network.key, address, iface, "home_asset", None)
        precompile = await self._optional(network.key, address, iface, "precompileAddress", None)
        oracle = await self._optional(network.key, address, iface, "oracleAddress", None)

        p3d = network.tokens.get("P3D")
        fallback = hint or (p3d.address if p3d is not None else None)
        stake = await self._stake_token(network, address, iface, fallback)

        return RawBridgeFields(
            home_network=normalize_network_name(home_network),
            foreign_network=network.name,
            home_token_address=home_asset or None,
            foreign_token_address=None if not precompile or is_zero_address(precompile) else precompile,
            stake_token_address=stake,
            oracle_address=oracle,
        )

    async def _required(self, network_key: str, address: str, iface: abi.ContractInterface, method: str) -> Any:
        try:
            result = await self._chain.call(network_key, address, iface, method)
        except ContractCallError as exc:
            raise DetectionError(
                f"Failed to get {iface.name} bridge data: {method}() rejected ({exc})"
            ) from exc
        return result[0]

    async def _optional(
        self, network_key: str, address: str, iface: abi.ContractInterface, method: str, default: Any
    ) -> Any:
        try:
            result = await self._chain.call(network_key, address, iface, method)
        except ContractCallError as exc:
            logger.warning("Failed to get %s on %s: %s", method, address, exc)
            return default
        return result[0]

    async def _stake_token(
        self,
        network: NetworkDescriptor,
        address: str,
        iface: abi.ContractInterface,
        fallback: Optional[str],
    ) -> Optional[str]:
        try:
            settings = await self._chain.call(network.key, address, iface, "settings")
        except ContractCallError as exc:
            logger.warning("Failed to get settings on %s: %s", address, exc)
        else:
            return settings[abi.SETTINGS_TOKEN_ADDRESS]
        if fallback is None:
            raise DetectionError(f"Failed to get {iface.name} bridge data: settings() rejected")
        logger.warning("Using %s as stake token for %s", fallback, address)
        return fallback

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    async def _symbol_on(self, network_name: str, address: Optional[str]) -> str:
        key = find_network_key(network_name)
        if key is None or not address:
            return UNKNOWN_SYMBOL
        try:
            return await self._resolver.resolve_symbol(key, address)
        except ChainAccessError as exc:
            logger.warning("Symbol lookup for %s on %s failed: %s", address, network_name, exc)
            return UNKNOWN_SYMBOL

    async def _assemble(
        self,
        network: NetworkDescriptor,
        address: str,
        bridge_type: BridgeType,
        raw: RawBridgeFields,
    ) -> BridgeAggregationResult:
        stake_symbol = await self._symbol_on(network.name, raw.stake_token_address)
        if stake_symbol == UNKNOWN_SYMBOL and bridge_type == BridgeType.IMPORT_WRAPPER:
            p3d = network.tokens.get("P3D")
            if p3d is not None:
                stake_symbol = p3d.symbol

        if bridge_type == BridgeType.EXPORT:
            home_symbol = stake_symbol
            foreign_symbol = await self._symbol_on(raw.foreign_network, raw.foreign_token_address)
        else:
            home_symbol = await self._symbol_on(raw.home_network, raw.home_token_address)
            foreign_symbol = await self._symbol_on(network.name, raw.foreign_token_address)

        oracle = raw.oracle_address
        suggestion = None
        if oracle and not is_zero_address(oracle):
            if not await self._validator.validate(network.key, oracle):
                logger.warning("Bridge %s: oracle %s failed validation", address, oracle)
                return BridgeAggregationResult(
                    success=False,
                    bridge_type=bridge_type,
                    message=f"Bridge oracle validation failed: oracle {oracle} is not responding",
                    invalid_oracle=True,
                )
            suggestion = self._validator.suggestion_for(network.key, oracle, address)
            if suggestion is not None:
                logger.info("Bridge %s uses unknown oracle %s (suggested key %s)", address, oracle, suggestion.key)
        elif bridge_type.is_import_family:
            return BridgeAggregationResult(
                success=False,
                bridge_type=bridge_type,
                message="Import bridge must have an oracle address",
                invalid_oracle=True,
            )
        else:
            oracle = None

        descriptor = BridgeDescriptor(
            address=address,
            type=bridge_type,
            home_network=raw.home_network,
            home_token_symbol=home_symbol,
            home_token_address=raw.home_token_address or "",
            foreign_network=raw.foreign_network,
            foreign_token_symbol=foreign_symbol,
            foreign_token_address=raw.foreign_token_address,
            stake_token_symbol=stake_symbol,
            stake_token_address=raw.stake_token_address or "",
            oracle_address=oracle,
            bridge_id=derive_bridge_id(home_symbol, raw.home_network, raw.foreign_network),
            created_at=await self._created_at(network, address),
            description=bridge_description(
                bridge_type, raw.home_network, home_symbol, raw.foreign_network, foreign_symbol
            ),
            is_issuer_burner=bridge_type.is_import_family,
        )
        logger.info("Detected %s bridge %s: %s", bridge_type.value, address, descriptor.description)
        return BridgeAggregationResult(
            success=True,
            descriptor=descriptor,
            bridge_type=bridge_type,
            message=f"Successfully detected {bridge_type.value} bridge",
            oracle_needs_addition=suggestion,
        )

    async def _created_at(self, network: NetworkDescriptor, address: str) -> Optional[int]:
        if not network.registry_address:
            return None
        try:
            entry = await self._chain.call(
                network.key, network.registry_address, abi.BRIDGES_REGISTRY, "getBridge", (address,)
            )
            return int(entry[0][2])
        except (ChainAccessError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Could not read creation time of %s from registry: %s", address, exc)
            return None


async def aggregate_bridge(
    chain: ChainAccess,
    settings: SettingsStore,
    network_key: str,
    address: str,
    *,
    stake_token_hint: Optional[str] = None,
) -> BridgeAggregationResult:
    """Convenience wrapper around ``BridgeAggregator.aggregate``."""
    return await BridgeAggregator(chain, settings).aggregate(
        network_key, address, stake_token_hint=stake_token_hint
    )
