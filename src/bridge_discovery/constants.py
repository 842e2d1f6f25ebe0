"""
Centralized constants for bridge discovery.

This file contains:
- Well-known addresses (zero address, 3DPass precompiles)
- The safe-integer bound shared by every reward conversion
- The fixed network-name normalization table
- Storage keys used by the event cache

Import from this module rather than duplicating values across modules.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

ADDRESS_ZERO = "0x0000000000000000000000000000000000000000"

# Native P3D token exposed through an ERC20 precompile on 3DPass
P3D_PRECOMPILE_ADDRESS = "0x0000000000000000000000000000000000000802"

# Every 3DPass asset precompile lives under this prefix; the tail is the asset id
ASSET_PRECOMPILE_PREFIX = "0xfbfbfbfa"

# ---------------------------------------------------------------------------
# Numeric bounds
# ---------------------------------------------------------------------------

# Largest integer a JSON/IEEE-754 consumer can represent exactly
MAX_SAFE_INTEGER = 2**53 - 1

DISPLAY_DECIMALS = 6

# ---------------------------------------------------------------------------
# Oracle probing
# ---------------------------------------------------------------------------

ORACLE_PROBE_PAIR: tuple[str, str] = ("ETH", "USD")

# ---------------------------------------------------------------------------
# Network names
# ---------------------------------------------------------------------------

# Alternate spellings reported by bridge contracts → canonical display names
NETWORK_NAME_ALIASES: dict[str, str] = {
    "BSC": "Binance Smart Chain",
    "3dpass": "3DPass",
}

# ---------------------------------------------------------------------------
# Assistant share-token remaps (export_wrapper assistants)
# ---------------------------------------------------------------------------

EXPORT_WRAPPER_SHARE_REMAP: dict[str, str] = {
    "P3DEA": "P3D",
    "FIREA": "FIRE",
    "WATEA": "WATER",
}

# ---------------------------------------------------------------------------
# Event cache storage keys
# ---------------------------------------------------------------------------

TRANSFERS_CACHE_KEY = "bridge_transfers_cache"
CLAIMS_CACHE_KEY = "bridge_claims_cache"
CACHE_TIMESTAMP_KEY = "bridge_cache_timestamp"

UNKNOWN_SYMBOL = "Unknown"
