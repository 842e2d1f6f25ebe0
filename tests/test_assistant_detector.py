"""Tests for assistant detection and aggregation (assistant_detector.py)."""

from __future__ import annotations

import pytest

from bridge_discovery.assistant_detector import (
    AssistantAggregator,
    aggregate_assistant,
    assistant_description,
    assistant_key,
    bridge_key,
    detect_assistant_type,
)
from bridge_discovery.errors import ChainTransportError
from bridge_discovery.models import AssistantType, BridgeType
from bridge_discovery.networks import get_network

from conftest import ASSISTANT, BRIDGE, PRECOMPILE

REGISTRY = get_network("THREEDPASS").registry_address
MANAGER = "0x8888888888888888888888888888888888888888"


class TestKeys:

    @pytest.mark.parametrize("bridge_type, symbol, expected", [
        (BridgeType.EXPORT, "USDT", "USDT_EXPORT"),
        (BridgeType.IMPORT, "P3D", "P3D_IMPORT"),
        (BridgeType.IMPORT_WRAPPER, "USDC", "USDC_IMPORT"),
    ])
    def test_bridge_key(self, bridge_type, symbol, expected):
        assert bridge_key(bridge_type, symbol) == expected

    @pytest.mark.parametrize("assistant_type, share, expected", [
        (AssistantType.IMPORT_WRAPPER, "USDTIA", "USDT_IMPORT_ASSISTANT"),
        (AssistantType.EXPORT_WRAPPER, "P3DEA", "P3D_EXPORT_ASSISTANT"),
        (AssistantType.EXPORT_WRAPPER, "WATEA", "WATER_EXPORT_ASSISTANT"),
        (AssistantType.EXPORT_WRAPPER, "GOLDEA", "GOLD_EXPORT_ASSISTANT"),
        (AssistantType.EXPORT, "USDTEA", "USDTEA_EXPORT_ASSISTANT"),
        (AssistantType.IMPORT, "WBTCIA", "WBTCIA_IMPORT_ASSISTANT"),
    ])
    def test_assistant_key(self, assistant_type, share, expected):
        assert assistant_key(assistant_type, share) == expected

    def test_assistant_key_collision_gets_suffix(self):
        taken = {"USDT_IMPORT_ASSISTANT", "USDT_IMPORT_ASSISTANT_1"}
        assert assistant_key(AssistantType.IMPORT_WRAPPER, "USDTIA", taken) == "USDT_IMPORT_ASSISTANT_2"

    def test_empty_share_symbol(self):
        assert assistant_key(AssistantType.IMPORT, "") == ""

    def test_description(self):
        assert assistant_description(AssistantType.IMPORT_WRAPPER, "Ethereum", "3DPass", "USDTIA") == (
            "Ethereum → 3DPass USDTIA Import_wrapper Assistant"
        )
        assert assistant_description(AssistantType.EXPORT, "3DPass", "Ethereum", None) == (
            "3DPass → Ethereum Export Assistant"
        )


class TestDetectAssistantType:

    @pytest.mark.asyncio
    async def test_export_with_approve_precompile(self, chain):
        chain.answer(ASSISTANT, "approvePrecompile", ())
        result = await detect_assistant_type(
            chain, "THREEDPASS", ASSISTANT, BRIDGE, bridge_type=BridgeType.EXPORT
        )
        assert result == AssistantType.EXPORT

    @pytest.mark.asyncio
    async def test_export_reasoned_revert_counts_as_present(self, chain):
        chain.reject(ASSISTANT, "approvePrecompile", revert_data="0x08c379a0deadbeef")
        result = await detect_assistant_type(
            chain, "THREEDPASS", ASSISTANT, BRIDGE, bridge_type=BridgeType.EXPORT
        )
        assert result == AssistantType.EXPORT

    @pytest.mark.asyncio
    async def test_export_without_approve_precompile_is_wrapper(self, chain):
        chain.reject(ASSISTANT, "approvePrecompile", revert_data="0x")
        result = await detect_assistant_type(
            chain, "THREEDPASS", ASSISTANT, BRIDGE, bridge_type=BridgeType.EXPORT
        )
        assert result == AssistantType.EXPORT_WRAPPER

    @pytest.mark.asyncio
    async def test_import_wrapper_bridge_needs_no_probe(self, chain):
        result = await detect_assistant_type(
            chain, "THREEDPASS", ASSISTANT, BRIDGE, bridge_type=BridgeType.IMPORT_WRAPPER
        )
        assert result == AssistantType.IMPORT_WRAPPER
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_import_with_precompile_address(self, chain):
        chain.answer(ASSISTANT, "precompileAddress", (PRECOMPILE,))
        result = await detect_assistant_type(
            chain, "THREEDPASS", ASSISTANT, BRIDGE, bridge_type=BridgeType.IMPORT
        )
        assert result == AssistantType.IMPORT_WRAPPER

    @pytest.mark.asyncio
    async def test_import_with_zero_precompile_address(self, chain):
        chain.answer(ASSISTANT, "precompileAddress", ("0x0000000000000000000000000000000000000000",))
        result = await detect_assistant_type(
            chain, "ETHEREUM", ASSISTANT, BRIDGE, bridge_type=BridgeType.IMPORT
        )
        assert result == AssistantType.IMPORT

    @pytest.mark.asyncio
    async def test_bridge_type_detected_when_not_given(self, chain):
        chain.answer(BRIDGE, "foreign_network", ("Ethereum",))
        result = await detect_assistant_type(chain, "THREEDPASS", ASSISTANT, BRIDGE)
        assert result == AssistantType.EXPORT_WRAPPER
        assert chain.methods_called(BRIDGE) == ["foreign_network"]

    @pytest.mark.asyncio
    async def test_transport_failure_propagates(self, chain):
        chain.answer(ASSISTANT, "approvePrecompile", ChainTransportError("down"))
        with pytest.raises(ChainTransportError):
            await detect_assistant_type(
                chain, "THREEDPASS", ASSISTANT, BRIDGE, bridge_type=BridgeType.EXPORT
            )


class TestAggregation:

    def _export_wrapper_assistant(self, chain, token_answers):
        chain.answer(ASSISTANT, "bridgeAddress", (BRIDGE,))
        chain.answer(ASSISTANT, "managerAddress", (MANAGER,))
        chain.answer(BRIDGE, "foreign_network", ("Ethereum",))
        chain.answer(REGISTRY, "getAssistant", ((ASSISTANT, 1, 1_650_000_000, True),))
        token_answers(chain, ASSISTANT, "GOLDEA", name="GOLD export assistant share")

    @pytest.mark.asyncio
    async def test_export_wrapper_descriptor(self, chain, settings, token_answers):
        self._export_wrapper_assistant(chain, token_answers)

        result = await aggregate_assistant(chain, settings, "THREEDPASS", ASSISTANT)

        assert result.success is True
        assert result.message == "Successfully detected export_wrapper assistant"
        d = result.descriptor
        assert d.type == AssistantType.EXPORT_WRAPPER
        assert d.bridge_address == BRIDGE
        assert d.manager_address == MANAGER
        assert d.share_symbol == "GOLDEA"
        assert d.share_name == "GOLD export assistant share"
        assert d.created_at == 1_650_000_000
        assert d.description == "3DPass → Ethereum GOLDEA Export_wrapper Assistant"
        assert result.share_token.symbol == "GOLDEA"
        assert settings.find_token("THREEDPASS", ASSISTANT) is not None

    @pytest.mark.asyncio
    async def test_import_route_reads_home_network(self, chain, settings, token_answers):
        chain.answer(BRIDGE, "home_network", ("3dpass",))
        chain.answer(BRIDGE, "name", ("Imported P3D",))
        chain.answer(ASSISTANT, "managerAddress", (MANAGER,))
        token_answers(chain, ASSISTANT, "P3DIA")

        result = await AssistantAggregator(chain, settings).aggregate(
            "ETHEREUM", ASSISTANT, bridge_address=BRIDGE
        )

        assert result.success is True
        assert result.descriptor.type == AssistantType.IMPORT
        assert result.descriptor.description == "3DPass → Ethereum P3DIA Import Assistant"
        assert result.descriptor.created_at is None
        assert "bridgeAddress" not in chain.methods_called(ASSISTANT)

    @pytest.mark.asyncio
    async def test_unresolvable_share_token_uses_fallbacks(self, chain, settings):
        chain.answer(ASSISTANT, "bridgeAddress", (BRIDGE,))
        chain.answer(BRIDGE, "foreign_network", ("Ethereum",))
        chain.answer(ASSISTANT, "approvePrecompile", ())

        result = await aggregate_assistant(chain, settings, "THREEDPASS", ASSISTANT)

        assert result.success is True
        d = result.descriptor
        assert d.share_symbol == "EXPORTA"
        assert d.share_name == "export assistant share"
        assert d.manager_address == ""
        assert result.share_token is None

    @pytest.mark.asyncio
    async def test_rejected_bridge_address(self, chain, settings):
        result = await aggregate_assistant(chain, settings, "THREEDPASS", ASSISTANT)
        assert result.success is False
        assert result.message.startswith("Failed to detect assistant type")

    @pytest.mark.asyncio
    async def test_undetectable_bridge(self, chain, settings):
        chain.answer(ASSISTANT, "bridgeAddress", (BRIDGE,))
        result = await aggregate_assistant(chain, settings, "THREEDPASS", ASSISTANT)
        assert result.success is False
        assert "Unable to detect bridge type" in result.message

    @pytest.mark.asyncio
    async def test_transport_failure_is_a_failed_result(self, chain, settings):
        chain.answer(ASSISTANT, "bridgeAddress", ChainTransportError("unreachable"))
        result = await aggregate_assistant(chain, settings, "THREEDPASS", ASSISTANT)
        assert result.success is False
        assert "unreachable" in result.message

    @pytest.mark.asyncio
    async def test_empty_address(self, chain, settings):
        with pytest.raises(ValueError):
            await aggregate_assistant(chain, settings, "THREEDPASS", "")
