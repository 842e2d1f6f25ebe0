"""
Token resolution: (network, address) → ``TokenRecord``.

Lookup order, first hit wins:

1. zero address → the network's native currency (no chain call)
2. session settings token table (lowercase address key)
3. static network configuration
4. live chain query through the interface picked by
   ``classify_token_address`` (native precompile, asset precompile or
   standard ERC20)
5. unknown → ``None``

A tier-4 hit is written back into the settings store so the next lookup
is a tier-2 hit.  Resolution failures are never fatal to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from . import abi
from .constants import ADDRESS_ZERO, UNKNOWN_SYMBOL
from .data_sources._clients import ChainAccess
from .errors import ChainAccessError, ChainTransportError, ContractCallError
from .models import NetworkDescriptor, TokenKind, TokenRecord
from .networks import get_network
from .settings_store import SettingsStore
from .utils import asset_id_from_address, classify_token_address, is_valid_address, is_zero_address

logger = logging.getLogger(__name__)

_INTERFACE_BY_KIND = {
    TokenKind.PRECOMPILE_NATIVE: abi.P3D_NATIVE,
    TokenKind.PRECOMPILE_ASSET: abi.ASSET_PRECOMPILE,
    TokenKind.STANDARD: abi.ERC20,
}


def native_token(network: NetworkDescriptor) -> TokenRecord:
    """The zero-address record for *network* (configured, or synthesised)."""
    configured = network.find_token(ADDRESS_ZERO)
    if configured is not None:
        return configured
    return TokenRecord(
        address=ADDRESS_ZERO,
        symbol=network.native_symbol,
        name=network.native_symbol,
        decimals=network.native_decimals,
        kind=TokenKind.NATIVE,
    )


class TokenResolver:
    """Tiered token lookup bound to one chain access port and settings store."""

    def __init__(self, chain: ChainAccess, settings: SettingsStore) -> None:
        self._chain = chain
        self._settings = settings

    async def resolve(self, network_key: str, address: str) -> Optional[TokenRecord]:
        """Return the token record for *address*, or ``None`` when unknown."""
        if not address:
            raise ValueError("address is required")
        network = get_network(network_key)

        if is_zero_address(address):
            return native_token(network)

        cached = self._settings.find_token(network.key, address)
        if cached is not None:
            return cached

        configured = network.find_token(address)
        if configured is not None:
            return configured

        if not is_valid_address(address):
            logger.warning("Not resolving malformed address %r on %s", address, network.key)
            return None

        record = await self._query_chain(network, address)
        if record is not None:
            self._settings.merge(network.key, tokens=[record])
            logger.info("Discovered token %s (%s) on %s", record.symbol, address, network.key)
        return record

    async def resolve_symbol(self, network_key: str, address: Optional[str]) -> str:
        """Symbol for *address*, ``"Unknown"`` when it cannot be resolved."""
        if not address:
            return UNKNOWN_SYMBOL
        record = await self.resolve(network_key, address)
        return record.symbol if record is not None else UNKNOWN_SYMBOL

    # ------------------------------------------------------------------
    # Chain tier
    # ------------------------------------------------------------------

    async def _query_chain(self, network: NetworkDescriptor, address: str) -> Optional[TokenRecord]:
        kind = classify_token_address(address, network)
        interface = _INTERFACE_BY_KIND[kind]

        results = await asyncio.gather(
            self._chain.call(network.key, address, interface, "name"),
            self._chain.call(network.key, address, interface, "symbol"),
            self._chain.call(network.key, address, interface, "decimals"),
            return_exceptions=True,
        )
        for r in results:
            if isinstance(r, ChainTransportError):
                logger.warning("Token lookup for %s on %s failed: %s", address, network.key, r)
                return None
            if isinstance(r, BaseException) and not isinstance(r, ChainAccessError):
                raise r
        name_r, symbol_r, decimals_r = results

        if isinstance(decimals_r, ContractCallError):
            logger.debug("%s on %s does not answer decimals(): %s", address, network.key, decimals_r)
            return None

        decimals = int(decimals_r[0])
        if isinstance(name_r, ContractCallError) or isinstance(symbol_r, ContractCallError):
            # decimals-only token: synthesise a readable name
            name = f"Token {address[:8]}..."
            symbol = f"TKN{address[2:6]}"
        else:
            name, symbol = str(name_r[0]), str(symbol_r[0])

        asset_id = asset_id_from_address(address) if kind == TokenKind.PRECOMPILE_ASSET else None
        return TokenRecord(
            address=address,
            symbol=symbol,
            name=name,
            decimals=decimals,
            kind=kind,
            asset_id=asset_id,
        )
