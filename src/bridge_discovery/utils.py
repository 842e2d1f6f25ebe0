"""
Shared utilities for bridge discovery.

- address helpers (zero check, case-insensitive equality, shape check)
- ``classify_token_address``: pure token-kind classification
- ``asset_id_from_address``: 3DPass asset id from a precompile address
- ``normalize_amount``: amounts of any shape to a decimal/hex string
- ``unique_key``: collision-free configuration keys
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from .constants import ADDRESS_ZERO, ASSET_PRECOMPILE_PREFIX, P3D_PRECOMPILE_ADDRESS
from .models import NetworkDescriptor, TokenKind

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

def is_valid_address(value: object) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def is_zero_address(address: Optional[str]) -> bool:
    return bool(address) and address.lower() == ADDRESS_ZERO


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address equality; ``None``/empty never matches."""
    if not a or not b:
        return False
    return a.lower() == b.lower()


def is_p3d_precompile(address: str) -> bool:
    return address.lower() == P3D_PRECOMPILE_ADDRESS


def is_asset_precompile(address: str) -> bool:
    return address.lower().startswith(ASSET_PRECOMPILE_PREFIX)


def classify_token_address(address: str, network: NetworkDescriptor) -> TokenKind:
    """Pick the ledger interface for *address* from its shape alone.

    Precompile kinds only exist on networks that expose an ERC20
    precompile layer (3DPass); elsewhere every non-zero address is a
    standard token.
    """
    if is_zero_address(address):
        return TokenKind.NATIVE
    if network.erc20_precompile:
        if is_p3d_precompile(address):
            return TokenKind.PRECOMPILE_NATIVE
        if is_asset_precompile(address):
            return TokenKind.PRECOMPILE_ASSET
    return TokenKind.STANDARD


def asset_id_from_address(address: str) -> Optional[int]:
    """Decode the asset id carried in the tail of a 3DPass asset precompile."""
    if not is_asset_precompile(address):
        return None
    tail = address[len(ASSET_PRECOMPILE_PREFIX):]
    try:
        return int(tail, 16)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

def normalize_amount(amount: Any) -> str:
    """Render an on-chain amount as a string.

    - ``None`` / empty → ``"0"``
    - ``int`` / ``str`` → ``str(amount)``
    - dicts produced by JS-style serialisers (``{"_hex": ...}`` /
      ``{"hex": ...}``) → the hex string
    - anything else → ``"0"``
    """
    if amount is None or amount == "":
        return "0"
    if isinstance(amount, bool):
        return "0"
    if isinstance(amount, (int, str)):
        return str(amount)
    if isinstance(amount, float):
        return str(int(amount)) if amount.is_integer() else str(amount)
    if isinstance(amount, dict):
        for key in ("_hex", "hex"):
            if isinstance(amount.get(key), str):
                return amount[key]
    return "0"


# ---------------------------------------------------------------------------
# Configuration keys
# ---------------------------------------------------------------------------

def unique_key(base: str, taken: Iterable[str]) -> str:
    """*base*, or ``base_N`` with the first free N when *base* is taken."""
    taken = set(taken)
    if base not in taken:
        return base
    n = 1
    while f"{base}_{n}" in taken:
        n += 1
    return f"{base}_{n}"
