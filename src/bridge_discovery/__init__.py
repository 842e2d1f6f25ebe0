"""
Bridge discovery package initializer.

This package exposes the primary entry points ``detect_bridge_type``,
``aggregate_bridge``, ``walk_registry``, ``determine_claim_bridge`` and
``encode_reward`` for external usage.  Other internal modules (e.g. the
event cache) should be imported explicitly from their respective files.
"""

from .bridge_aggregator import aggregate_bridge  # noqa: F401
from .bridge_detector import detect_bridge_type  # noqa: F401
from .claim_discriminant import determine_claim_bridge  # noqa: F401
from .registry_walker import walk_registry  # noqa: F401
from .reward_codec import encode_reward  # noqa: F401

__all__ = [
    "aggregate_bridge",
    "detect_bridge_type",
    "determine_claim_bridge",
    "encode_reward",
    "walk_registry",
]
