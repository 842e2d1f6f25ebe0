"""Tests for the network-wide registry walk (registry_walker.py)."""

from __future__ import annotations

import pytest

from bridge_discovery.constants import ADDRESS_ZERO
from bridge_discovery.errors import ChainTransportError, ConfigurationError
from bridge_discovery.logging_config import discovery_id_ctx
from bridge_discovery.models import AssistantType, BridgeType
from bridge_discovery.networks import get_network
from bridge_discovery.registry_walker import (
    RegistryWalker,
    generate_config_update,
    walk_registry,
)

from conftest import (
    ASSISTANT,
    BRIDGE,
    FOREIGN_ASSET,
    ORACLE,
    OTHER_BRIDGE,
    SETTINGS_TUPLE,
    STAKE_TOKEN,
)

REGISTRY = get_network("THREEDPASS").registry_address
OTHER_ORACLE = "0x8888888888888888888888888888888888888888"


def _registry(chain, bridges, assistants=()):
    chain.answer(REGISTRY, "getAllBridges", (list(bridges),))
    chain.answer(REGISTRY, "getAllAssistants", (list(assistants),))


def _export_bridge(chain, token_answers, address=BRIDGE):
    chain.answer(address, "foreign_network", ("Ethereum",))
    chain.answer(address, "foreign_asset", (FOREIGN_ASSET,))
    chain.answer(address, "settings", SETTINGS_TUPLE)
    token_answers(chain, STAKE_TOKEN, "TKN")
    token_answers(chain, FOREIGN_ASSET, "wTKN")


def _import_bridge(chain, token_answers, address, symbol, oracle=ORACLE):
    chain.answer(address, "home_network", ("Ethereum",))
    chain.answer(address, "home_asset", (ADDRESS_ZERO,))
    chain.answer(address, "oracleAddress", (oracle,))
    chain.answer(address, "settings", (ADDRESS_ZERO, 100, 150, 3600, 1, 1))
    token_answers(chain, address, symbol)


class TestWalk:

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_siblings(self, chain, settings, token_answers):
        _registry(chain, [BRIDGE, OTHER_BRIDGE], [ASSISTANT])
        _export_bridge(chain, token_answers)
        chain.answer(ASSISTANT, "bridgeAddress", (BRIDGE,))
        token_answers(chain, ASSISTANT, "TKNEA")

        result = await walk_registry(chain, settings, "THREEDPASS")

        assert list(result.bridges) == ["TKN_EXPORT"]
        assert result.bridges["TKN_EXPORT"].type == BridgeType.EXPORT
        assert [f.address for f in result.bridge_errors] == [OTHER_BRIDGE]
        assert "Unable to detect bridge type" in result.bridge_errors[0].message

        assert list(result.assistants) == ["TKN_EXPORT_ASSISTANT"]
        assert result.assistants["TKN_EXPORT_ASSISTANT"].type == AssistantType.EXPORT_WRAPPER

        assert set(result.tokens) == {"TKN", "TKNEA"}

        s = result.summary
        assert (s.bridges.total, s.bridges.successful, s.bridges.failed) == (2, 1, 1)
        assert (s.assistants.total, s.assistants.successful, s.assistants.failed) == (1, 1, 0)
        assert (s.tokens.total, s.tokens.successful, s.tokens.failed) == (2, 2, 0)

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_recorded(self, chain, settings, token_answers):
        _registry(chain, [BRIDGE, OTHER_BRIDGE])
        _export_bridge(chain, token_answers)

        def _boom(*_args):
            raise RuntimeError("decoder exploded")

        chain.answer(OTHER_BRIDGE, "foreign_network", _boom)

        result = await walk_registry(chain, settings, "THREEDPASS")

        assert "TKN_EXPORT" in result.bridges
        assert result.bridge_errors[0].address == OTHER_BRIDGE
        assert result.bridge_errors[0].message == "decoder exploded"

    @pytest.mark.asyncio
    async def test_duplicate_keys_and_shared_oracle(self, chain, settings, token_answers):
        _registry(chain, [BRIDGE, OTHER_BRIDGE])
        _import_bridge(chain, token_answers, BRIDGE, "wETH")
        _import_bridge(chain, token_answers, OTHER_BRIDGE, "wETH2")
        chain.answer(ORACLE, "getPrice", (1, 1))

        result = await walk_registry(chain, settings, "THREEDPASS")

        assert sorted(result.bridges) == ["ETH_IMPORT", "ETH_IMPORT_1"]
        assert len(result.oracle_suggestions) == 1
        assert result.oracle_suggestions[0].address == ORACLE

    @pytest.mark.asyncio
    async def test_distinct_unknown_oracles_get_distinct_keys(self, chain, settings, token_answers):
        _registry(chain, [BRIDGE, OTHER_BRIDGE])
        _import_bridge(chain, token_answers, BRIDGE, "wETH")
        _import_bridge(chain, token_answers, OTHER_BRIDGE, "wUSDT", oracle=OTHER_ORACLE)
        chain.answer(ORACLE, "getPrice", (1, 1))
        chain.answer(OTHER_ORACLE, "getPrice", (1, 1))

        result = await walk_registry(chain, settings, "THREEDPASS")

        suggestions = {s.address: s for s in result.oracle_suggestions}
        assert set(suggestions) == {ORACLE, OTHER_ORACLE}
        assert sorted(s.key for s in suggestions.values()) == ["oracle_1", "oracle_2"]
        for s in suggestions.values():
            assert s.name == f"Oracle {s.key}"

        update = generate_config_update(result)
        assert len({o["key"] for o in update["oracles"]}) == 2

    @pytest.mark.asyncio
    async def test_unresolvable_token_is_counted(self, chain, settings, token_answers):
        _registry(chain, [BRIDGE], [ASSISTANT])
        _export_bridge(chain, token_answers)
        chain.answer(ASSISTANT, "bridgeAddress", (BRIDGE,))

        result = await walk_registry(chain, settings, "THREEDPASS")

        assert [f.address for f in result.token_errors] == [ASSISTANT]
        assert result.summary.tokens.failed == 1
        assert result.summary.tokens.successful == 1

    @pytest.mark.asyncio
    async def test_empty_registry(self, chain, settings):
        _registry(chain, [])
        result = await walk_registry(chain, settings, "THREEDPASS")
        assert result.bridges == {}
        assert result.summary.bridges.total == 0

    @pytest.mark.asyncio
    async def test_network_without_registry(self, chain, settings):
        with pytest.raises(ConfigurationError):
            await walk_registry(chain, settings, "ETHEREUM")

    @pytest.mark.asyncio
    async def test_unreadable_registry_propagates(self, chain, settings):
        chain.answer(REGISTRY, "getAllBridges", ChainTransportError("down"))
        chain.answer(REGISTRY, "getAllAssistants", ([],))
        with pytest.raises(ChainTransportError):
            await RegistryWalker(chain, settings, max_concurrency=1).walk("THREEDPASS")

    @pytest.mark.asyncio
    async def test_discovery_id_bound_only_during_walk(self, chain, settings):
        seen = []

        def _capture(*_args):
            seen.append(discovery_id_ctx.get())
            return ([],)

        chain.answer(REGISTRY, "getAllBridges", _capture)
        chain.answer(REGISTRY, "getAllAssistants", ([],))

        await walk_registry(chain, settings, "THREEDPASS")

        assert seen and seen[0] != "-"
        assert discovery_id_ctx.get() == "-"


class TestConfigUpdate:

    @pytest.mark.asyncio
    async def test_generate_config_update(self, chain, settings, token_answers):
        _registry(chain, [BRIDGE])
        _export_bridge(chain, token_answers)

        update = generate_config_update(await walk_registry(chain, settings, "THREEDPASS"))

        assert update["network"] == "THREEDPASS"
        assert update["bridges"]["TKN_EXPORT"]["type"] == "export"
        assert update["bridges"]["TKN_EXPORT"]["bridge_id"] == "TKN:3DPass-Ethereum"
        assert update["tokens"]["TKN"]["address"] == STAKE_TOKEN
        assert update["oracles"] == []
        assert update["summary"]["bridges"] == {"total": 1, "successful": 1, "failed": 0}
        assert isinstance(update["timestamp"], int)
