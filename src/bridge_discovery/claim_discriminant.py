"""
Claim bridge discriminant.

A transfer filed on one half of a route is claimed on the other half.  The
two halves share the wrapped token (``foreign_token_address``) and a
pairing id (``bridge_id``), and run in opposite directions.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Union

from .models import BridgeDescriptor, BridgeType, ClaimBridgeResult
from .utils import same_address

logger = logging.getLogger(__name__)

BridgeSet = Union[Mapping[str, BridgeDescriptor], Iterable[BridgeDescriptor]]


def _directions_pair(source: BridgeType, target: BridgeType) -> bool:
    if source.is_import_family:
        return target == BridgeType.EXPORT
    return target.is_import_family


def determine_claim_bridge(bridge_address: str, bridges: BridgeSet) -> ClaimBridgeResult:
    """Find the bridge on which a transfer filed at *bridge_address* is claimed.

    *bridges* is a key → descriptor mapping or any iterable of descriptors.
    Expected negative outcomes are returned as ``no_match`` /
    ``validation_failed``; only a missing bridge set raises.
    """
    if bridges is None:
        raise TypeError("bridges must be a mapping or iterable of BridgeDescriptor, not None")
    candidates = list(bridges.values()) if isinstance(bridges, Mapping) else list(bridges)

    if not bridge_address:
        return ClaimBridgeResult(status="no_match", reason="No bridge address on the transfer")

    source = next((b for b in candidates if same_address(b.address, bridge_address)), None)
    if source is None:
        logger.warning("Could not find source bridge with address %s", bridge_address)
        return ClaimBridgeResult(status="no_match", reason=f"Unknown bridge {bridge_address}")
    if not source.foreign_token_address:
        return ClaimBridgeResult(status="no_match", reason=f"Bridge {source.address} has no foreign token address")

    mapped = next(
        (
            b for b in candidates
            if same_address(b.foreign_token_address, source.foreign_token_address)
            and not same_address(b.address, source.address)
        ),
        None,
    )
    if mapped is None:
        logger.warning("No bridge pairs with foreign token %s", source.foreign_token_address)
        return ClaimBridgeResult(
            status="no_match",
            reason=f"No bridge shares foreign token {source.foreign_token_address}",
        )

    if source.bridge_id != mapped.bridge_id:
        logger.warning(
            "Bridge id mismatch: %s has %r, %s has %r",
            source.address, source.bridge_id, mapped.address, mapped.bridge_id,
        )
        return ClaimBridgeResult(
            status="validation_failed",
            reason=f"Bridge id mismatch: {source.bridge_id!r} != {mapped.bridge_id!r}",
        )

    if not _directions_pair(source.type, mapped.type):
        logger.warning("Direction mismatch: %s → %s", source.type.value, mapped.type.value)
        return ClaimBridgeResult(
            status="validation_failed",
            reason=f"Direction mismatch: {source.type.value} cannot pair with {mapped.type.value}",
        )

    logger.debug("Claim for %s goes to %s (%s)", source.address, mapped.address, mapped.bridge_id)
    return ClaimBridgeResult(status="matched", bridge=mapped)
