"""
Command line interface for Counterstake bridge discovery.

Usage::

    python src/main.py detect --network ETHEREUM --address <BRIDGE>
    python src/main.py assistant --network THREEDPASS --address <ASSISTANT>
    python src/main.py walk --network THREEDPASS [--json]
    python src/main.py reward --amount 0.5 --decimals 18 [--signed]
    python src/main.py claim-bridge --address <BRIDGE>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import os

# Ensure ``src/`` is on the import path
sys.path.insert(0, os.path.dirname(__file__))

from bridge_discovery.assistant_detector import aggregate_assistant
from bridge_discovery.bridge_aggregator import aggregate_bridge
from bridge_discovery.circuit_breaker import get_all_statuses
from bridge_discovery.claim_discriminant import determine_claim_bridge
from bridge_discovery.data_sources._clients import EvmChainAccess
from bridge_discovery.errors import BridgeDiscoveryError
from bridge_discovery.logging_config import bind_discovery_id, setup_logging
from bridge_discovery.networks import all_bridges
from bridge_discovery.registry_walker import generate_config_update, walk_registry
from bridge_discovery.reward_codec import encode_reward
from bridge_discovery.settings_store import SettingsStore

logger = logging.getLogger(__name__)


def _load_settings(path: str | None) -> SettingsStore:
    if not path or not os.path.exists(path):
        return SettingsStore()
    with open(path, encoding="utf-8") as fh:
        return SettingsStore.load(fh.read())


def _save_settings(path: str | None, settings: SettingsStore) -> None:
    if not path:
        return
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(settings.dump())


async def _shutdown(chain: EvmChainAccess) -> None:
    logger.debug("Circuit breakers: %s", get_all_statuses())
    await chain.close()


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

async def _detect(args: argparse.Namespace) -> int:
    settings = _load_settings(args.settings)
    chain = EvmChainAccess(settings)
    try:
        result = await aggregate_bridge(chain, settings, args.network, args.address)
    finally:
        await _shutdown(chain)
    _save_settings(args.settings, settings)

    if args.as_json:
        print(result.model_dump_json(indent=2))
        return 0 if result.success else 1

    print("=" * 60)
    print("  Bridge Discovery – Detection")
    print("=" * 60)
    print(f"  Address      : {args.address}")
    print(f"  Result       : {result.message}")
    d = result.descriptor
    if d is not None:
        print(f"  Type         : {d.type.value}")
        print(f"  Description  : {d.description}")
        print(f"  Home         : {d.home_network} {d.home_token_symbol} ({d.home_token_address})")
        print(f"  Foreign      : {d.foreign_network} {d.foreign_token_symbol} ({d.foreign_token_address or 'n/a'})")
        print(f"  Stake        : {d.stake_token_symbol} ({d.stake_token_address})")
        print(f"  Oracle       : {d.oracle_address or 'n/a'}")
    if result.oracle_needs_addition is not None:
        s = result.oracle_needs_addition
        print("-" * 60)
        print(f"  Oracle {s.address} is not configured; suggested key {s.key}")
    print("=" * 60)
    return 0 if result.success else 1


async def _assistant(args: argparse.Namespace) -> int:
    settings = _load_settings(args.settings)
    chain = EvmChainAccess(settings)
    try:
        result = await aggregate_assistant(chain, settings, args.network, args.address)
    finally:
        await _shutdown(chain)
    _save_settings(args.settings, settings)

    if args.as_json:
        print(result.model_dump_json(indent=2))
    else:
        print(f"{result.message}")
        if result.descriptor is not None:
            print(f"  {result.descriptor.type.value}: {result.descriptor.description}")
    return 0 if result.success else 1


async def _walk(args: argparse.Namespace) -> int:
    settings = _load_settings(args.settings)
    chain = EvmChainAccess(settings)
    try:
        result = await walk_registry(chain, settings, args.network)
    finally:
        await _shutdown(chain)
    _save_settings(args.settings, settings)

    if args.as_json:
        print(json.dumps(generate_config_update(result), indent=2))
        return 0

    s = result.summary
    print("=" * 60)
    print(f"  Registry walk – {result.network_key}")
    print("=" * 60)
    print(f"  Bridges      : {s.bridges.successful}/{s.bridges.total} ({s.bridges.failed} failed)")
    print(f"  Assistants   : {s.assistants.successful}/{s.assistants.total} ({s.assistants.failed} failed)")
    print(f"  Tokens       : {s.tokens.successful}/{s.tokens.total} ({s.tokens.failed} failed)")
    print("-" * 60)
    for key, bridge in result.bridges.items():
        print(f"    {key:24s} {bridge.description}")
    for key, assistant in result.assistants.items():
        print(f"    {key:24s} {assistant.description}")
    for failure in result.bridge_errors + result.assistant_errors:
        print(f"    ✗ {failure.address}: {failure.message}")
    print("=" * 60)
    return 0


def _reward(args: argparse.Namespace) -> int:
    result = encode_reward(args.amount, args.decimals, signed=args.signed)
    if args.as_json:
        print(result.model_dump_json(indent=2))
        return 0
    print(f"  Magnitude    : {result.magnitude}")
    print(f"  Display      : {result.display_value}")
    if result.was_capped:
        print(f"  Capped from {result.original_value} to the safe maximum {result.max_safe_value}")
    return 0


def _claim_bridge(args: argparse.Namespace) -> int:
    result = determine_claim_bridge(args.address, all_bridges())
    if args.as_json:
        print(result.model_dump_json(indent=2))
    elif result.bridge is not None:
        print(f"Claim on {result.bridge.address} ({result.bridge.description})")
    else:
        print(f"{result.status}: {result.reason}")
    return 0 if result.matched else 1


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Discover Counterstake bridges, assistants and tokens"
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument(
        "--settings",
        default=None,
        help="JSON file holding discovered settings (read before, written after)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    detect = sub.add_parser("detect", help="Detect and describe one bridge")
    detect.add_argument("--network", required=True, help="Network key, e.g. ETHEREUM")
    detect.add_argument("--address", required=True, help="Bridge contract address")
    detect.add_argument("--json", action="store_true", dest="as_json", help="Output raw JSON")

    assistant = sub.add_parser("assistant", help="Detect and describe one assistant")
    assistant.add_argument("--network", required=True, help="Network key, e.g. THREEDPASS")
    assistant.add_argument("--address", required=True, help="Assistant contract address")
    assistant.add_argument("--json", action="store_true", dest="as_json", help="Output raw JSON")

    walk = sub.add_parser("walk", help="Walk a network's bridges registry")
    walk.add_argument("--network", required=True, help="Network key with a registry")
    walk.add_argument("--json", action="store_true", dest="as_json", help="Output a config update as JSON")

    reward = sub.add_parser("reward", help="Encode a reward amount safely")
    reward.add_argument("--amount", required=True, help="Decimal reward, e.g. 0.5")
    reward.add_argument("--decimals", type=int, default=18)
    reward.add_argument("--signed", action="store_true", help="Expatriation (signed) variant")
    reward.add_argument("--json", action="store_true", dest="as_json", help="Output raw JSON")

    claim = sub.add_parser("claim-bridge", help="Find the bridge a transfer is claimed on")
    claim.add_argument("--address", required=True, help="Bridge the transfer was filed on")
    claim.add_argument("--json", action="store_true", dest="as_json", help="Output raw JSON")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level)
    bind_discovery_id()

    try:
        if args.command == "detect":
            return asyncio.run(_detect(args))
        if args.command == "assistant":
            return asyncio.run(_assistant(args))
        if args.command == "walk":
            return asyncio.run(_walk(args))
        if args.command == "reward":
            return _reward(args)
        return _claim_bridge(args)
    except (BridgeDiscoveryError, ValueError) as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
