"""Tests for ordered-probe bridge type detection (bridge_detector.py)."""

from __future__ import annotations

import pytest

from bridge_discovery.bridge_detector import detect_bridge_type, probe
from bridge_discovery import abi
from bridge_discovery.errors import ChainTransportError, DetectionError
from bridge_discovery.models import BridgeType

from conftest import BRIDGE, PRECOMPILE


class TestProbe:

    @pytest.mark.asyncio
    async def test_ok_carries_first_value(self, chain):
        chain.answer(BRIDGE, "foreign_network", ("3DPass",))
        result = await probe(chain, "ETHEREUM", BRIDGE, abi.EXPORT_BRIDGE, "foreign_network")
        assert result.ok is True
        assert result.value == "3DPass"

    @pytest.mark.asyncio
    async def test_rejection_is_not_raised(self, chain):
        result = await probe(chain, "ETHEREUM", BRIDGE, abi.EXPORT_BRIDGE, "foreign_network")
        assert result.ok is False
        assert result.error is not None

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, chain):
        chain.answer(BRIDGE, "foreign_network", ChainTransportError("down"))
        with pytest.raises(ChainTransportError):
            await probe(chain, "ETHEREUM", BRIDGE, abi.EXPORT_BRIDGE, "foreign_network")


class TestDetectBridgeType:

    @pytest.mark.asyncio
    async def test_export_stops_after_first_probe(self, chain):
        chain.answer(BRIDGE, "foreign_network", ("3DPass",))
        chain.answer(BRIDGE, "home_network", ("Ethereum",))

        assert await detect_bridge_type(chain, "ETHEREUM", BRIDGE) == BridgeType.EXPORT
        assert chain.methods_called() == ["foreign_network"]

    @pytest.mark.asyncio
    async def test_no_home_network_fails_without_wrapper_probes(self, chain):
        with pytest.raises(DetectionError, match="Unable to detect bridge type"):
            await detect_bridge_type(chain, "ETHEREUM", BRIDGE)
        assert chain.methods_called() == ["foreign_network", "home_network"]

    @pytest.mark.asyncio
    async def test_precompile_address_means_wrapper(self, chain):
        chain.answer(BRIDGE, "home_network", ("Ethereum",))
        chain.answer(BRIDGE, "precompileAddress", (PRECOMPILE,))

        assert await detect_bridge_type(chain, "THREEDPASS", BRIDGE) == BridgeType.IMPORT_WRAPPER
        assert "P3D_PRECOMPILE" not in chain.methods_called()

    @pytest.mark.asyncio
    async def test_p3d_constant_means_wrapper(self, chain):
        chain.answer(BRIDGE, "home_network", ("Ethereum",))
        chain.answer(BRIDGE, "P3D_PRECOMPILE", ("0x0000000000000000000000000000000000000802",))

        assert await detect_bridge_type(chain, "THREEDPASS", BRIDGE) == BridgeType.IMPORT_WRAPPER
        assert "name" not in chain.methods_called()

    @pytest.mark.asyncio
    async def test_own_ledger_means_import(self, chain):
        chain.answer(BRIDGE, "home_network", ("3DPass",))
        chain.answer(BRIDGE, "name", ("Imported P3D",))

        assert await detect_bridge_type(chain, "ETHEREUM", BRIDGE) == BridgeType.IMPORT
        assert chain.methods_called() == [
            "foreign_network", "home_network", "precompileAddress", "P3D_PRECOMPILE", "name",
        ]

    @pytest.mark.asyncio
    async def test_no_ledger_falls_back_to_wrapper(self, chain):
        chain.answer(BRIDGE, "home_network", ("Ethereum",))
        assert await detect_bridge_type(chain, "THREEDPASS", BRIDGE) == BridgeType.IMPORT_WRAPPER

    @pytest.mark.asyncio
    async def test_transport_failure_is_not_a_type(self, chain):
        chain.answer(BRIDGE, "home_network", ("Ethereum",))
        chain.answer(BRIDGE, "precompileAddress", ChainTransportError("timeout"))

        with pytest.raises(ChainTransportError):
            await detect_bridge_type(chain, "THREEDPASS", BRIDGE)

    @pytest.mark.asyncio
    async def test_empty_address_rejected(self, chain):
        with pytest.raises(ValueError):
            await detect_bridge_type(chain, "ETHEREUM", "")
