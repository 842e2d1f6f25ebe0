"""
Bridge type detection by ordered capability probes.

Nothing on-chain states which Counterstake variant a contract is, so the
detector asks a fixed sequence of read-only questions and stops at the
first answer that settles it:

1. ``foreign_network()`` answers        → EXPORT
2. ``home_network()`` rejected          → detection fails
3. ``precompileAddress()`` answers      → IMPORT_WRAPPER
4. ``P3D_PRECOMPILE()`` answers         → IMPORT_WRAPPER
5. ``name()`` answers                   → IMPORT (holds its own ledger)
   ``name()`` rejected                  → IMPORT_WRAPPER

Steps run strictly in sequence.  A rejected call (``ContractCallError``)
only rules out one branch; a transport failure propagates unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, NamedTuple, Optional

from . import abi
from .data_sources._clients import ChainAccess
from .errors import ContractCallError, DetectionError
from .models import BridgeType

logger = logging.getLogger(__name__)


class ProbeResult(NamedTuple):
    ok: bool
    value: Any = None
    error: Optional[ContractCallError] = None


async def probe(
    chain: ChainAccess,
    network_key: str,
    address: str,
    interface: abi.ContractInterface,
    method: str,
) -> ProbeResult:
    """One capability check.  Rejections become ``ok=False``; transport errors raise."""
    try:
        result = await chain.call(network_key, address, interface, method)
    except ContractCallError as exc:
        logger.debug("probe %s.%s at %s: rejected (%s)", interface.name, method, address, exc)
        return ProbeResult(False, error=exc)
    logger.debug("probe %s.%s at %s: ok", interface.name, method, address)
    return ProbeResult(True, result[0] if result else None)


async def probe_export(chain: ChainAccess, network_key: str, address: str) -> ProbeResult:
    return await probe(chain, network_key, address, abi.EXPORT_BRIDGE, "foreign_network")


async def probe_import_family(chain: ChainAccess, network_key: str, address: str) -> ProbeResult:
    return await probe(chain, network_key, address, abi.IMPORT_BRIDGE, "home_network")


async def probe_precompile_address(chain: ChainAccess, network_key: str, address: str) -> ProbeResult:
    return await probe(chain, network_key, address, abi.IMPORT_WRAPPER_BRIDGE, "precompileAddress")


async def probe_p3d_precompile(chain: ChainAccess, network_key: str, address: str) -> ProbeResult:
    return await probe(chain, network_key, address, abi.IMPORT_WRAPPER_BRIDGE, "P3D_PRECOMPILE")


async def probe_token_ledger(chain: ChainAccess, network_key: str, address: str) -> ProbeResult:
    return await probe(chain, network_key, address, abi.IMPORT_BRIDGE, "name")


async def detect_bridge_type(chain: ChainAccess, network_key: str, address: str) -> BridgeType:
    """Classify the bridge at *address*.

    Raises ``DetectionError`` when the contract answers neither the export
    nor the import-family probe, and ``ChainTransportError`` when the
    network cannot be reached.
    """
    if not address:
        raise ValueError("bridge address is required")

    if (await probe_export(chain, network_key, address)).ok:
        logger.info("Bridge %s on %s detected as export", address, network_key)
        return BridgeType.EXPORT

    if not (await probe_import_family(chain, network_key, address)).ok:
        raise DetectionError(f"Unable to detect bridge type for {address}")

    if (await probe_precompile_address(chain, network_key, address)).ok:
        detected = BridgeType.IMPORT_WRAPPER
    elif (await probe_p3d_precompile(chain, network_key, address)).ok:
        detected = BridgeType.IMPORT_WRAPPER
    elif (await probe_token_ledger(chain, network_key, address)).ok:
        detected = BridgeType.IMPORT
    else:
        # no ledger of its own: balances live in an external precompile
        detected = BridgeType.IMPORT_WRAPPER

    logger.info("Bridge %s on %s detected as %s", address, network_key, detected.value)
    return detected
