"""Tests for tiered token resolution (token_resolver.py)."""

from __future__ import annotations

import pytest

from bridge_discovery.constants import ADDRESS_ZERO, P3D_PRECOMPILE_ADDRESS
from bridge_discovery.errors import ChainTransportError
from bridge_discovery.models import TokenKind, TokenRecord
from bridge_discovery.networks import get_network
from bridge_discovery.token_resolver import TokenResolver

from conftest import PRECOMPILE, STAKE_TOKEN


class TestTiers:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("network_key, symbol", [
        ("ETHEREUM", "ETH"),
        ("BSC", "BNB"),
        ("THREEDPASS", "P3D"),
    ])
    async def test_zero_address_is_native_without_chain_call(self, chain, settings, network_key, symbol):
        record = await TokenResolver(chain, settings).resolve(network_key, ADDRESS_ZERO)
        assert record.symbol == symbol
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_settings_tier_wins_over_config(self, chain, settings):
        usdt = get_network("ETHEREUM").tokens["USDT"]
        settings.merge("ETHEREUM", tokens=[usdt.model_copy(update={"symbol": "USDT-custom"})])

        record = await TokenResolver(chain, settings).resolve("ETHEREUM", usdt.address.lower())
        assert record.symbol == "USDT-custom"
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_static_config_tier(self, chain, settings):
        record = await TokenResolver(chain, settings).resolve("THREEDPASS", P3D_PRECOMPILE_ADDRESS)
        assert record.symbol == "P3D"
        assert record.kind == TokenKind.PRECOMPILE_NATIVE
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_chain_tier_writes_back(self, chain, settings, token_answers):
        token_answers(chain, STAKE_TOKEN, "TKN", decimals=8, name="Token")
        resolver = TokenResolver(chain, settings)

        first = await resolver.resolve("ETHEREUM", STAKE_TOKEN)
        assert first == TokenRecord(address=STAKE_TOKEN, symbol="TKN", name="Token", decimals=8)
        assert settings.find_token("ETHEREUM", STAKE_TOKEN) == first

        calls_before = len(chain.calls)
        second = await resolver.resolve("ETHEREUM", STAKE_TOKEN.upper().replace("0X", "0x"))
        assert second == first
        assert len(chain.calls) == calls_before

    @pytest.mark.asyncio
    async def test_asset_precompile_carries_asset_id(self, chain, settings, token_answers):
        token_answers(chain, PRECOMPILE, "wABC", decimals=6)

        record = await TokenResolver(chain, settings).resolve("THREEDPASS", PRECOMPILE)
        assert record.kind == TokenKind.PRECOMPILE_ASSET
        assert record.asset_id == 0xABC

    @pytest.mark.asyncio
    async def test_precompile_prefix_is_standard_off_3dpass(self, chain, settings, token_answers):
        token_answers(chain, PRECOMPILE, "X")
        record = await TokenResolver(chain, settings).resolve("ETHEREUM", PRECOMPILE)
        assert record.kind == TokenKind.STANDARD
        assert record.asset_id is None


class TestSoftFailures:

    @pytest.mark.asyncio
    async def test_decimals_only_token_gets_fallback_names(self, chain, settings):
        chain.answer(STAKE_TOKEN, "decimals", (18,))

        record = await TokenResolver(chain, settings).resolve("ETHEREUM", STAKE_TOKEN)
        assert record.name == f"Token {STAKE_TOKEN[:8]}..."
        assert record.symbol == f"TKN{STAKE_TOKEN[2:6]}"

    @pytest.mark.asyncio
    async def test_no_decimals_is_unknown(self, chain, settings):
        chain.answer(STAKE_TOKEN, "name", ("Thing",))
        chain.answer(STAKE_TOKEN, "symbol", ("THG",))

        resolver = TokenResolver(chain, settings)
        assert await resolver.resolve("ETHEREUM", STAKE_TOKEN) is None
        assert await resolver.resolve_symbol("ETHEREUM", STAKE_TOKEN) == "Unknown"
        assert settings.find_token("ETHEREUM", STAKE_TOKEN) is None

    @pytest.mark.asyncio
    async def test_transport_failure_is_unknown(self, chain, settings, token_answers):
        token_answers(chain, STAKE_TOKEN, "TKN")
        chain.answer(STAKE_TOKEN, "symbol", ChainTransportError("down"))

        assert await TokenResolver(chain, settings).resolve("ETHEREUM", STAKE_TOKEN) is None

    @pytest.mark.asyncio
    async def test_malformed_address_skips_chain(self, chain, settings):
        assert await TokenResolver(chain, settings).resolve("ETHEREUM", "0xnot-an-address") is None
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_empty_address_is_programmer_error(self, chain, settings):
        with pytest.raises(ValueError):
            await TokenResolver(chain, settings).resolve("ETHEREUM", "")

    @pytest.mark.asyncio
    async def test_resolve_symbol_none_address(self, chain, settings):
        assert await TokenResolver(chain, settings).resolve_symbol("ETHEREUM", None) == "Unknown"
