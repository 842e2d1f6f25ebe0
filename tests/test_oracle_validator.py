"""Tests for oracle validation and config reconciliation (oracle_validator.py)."""

from __future__ import annotations

import pytest

from bridge_discovery.constants import ADDRESS_ZERO
from bridge_discovery.errors import ChainTransportError, EmptyReturnDataError
from bridge_discovery.models import OracleRecord
from bridge_discovery.networks import get_network
from bridge_discovery.oracle_validator import OracleLocation, OracleValidator

from conftest import BRIDGE, ORACLE

ETH_ORACLE = get_network("ETHEREUM").oracles["default"].address


class TestValidate:

    @pytest.mark.asyncio
    async def test_answering_oracle(self, chain, settings):
        chain.answer(ORACLE, "getPrice", (3000, 1))
        assert await OracleValidator(chain, settings).validate("ETHEREUM", ORACLE) is True
        assert chain.calls == [("ETHEREUM", ORACLE, "getPrice", ("ETH", "USD"))]

    @pytest.mark.asyncio
    async def test_reverting_oracle_is_live(self, chain, settings):
        chain.reject(ORACLE, "getPrice")
        assert await OracleValidator(chain, settings).validate("ETHEREUM", ORACLE) is True

    @pytest.mark.asyncio
    async def test_address_without_code_is_invalid(self, chain, settings):
        chain.answer(ORACLE, "getPrice", EmptyReturnDataError("no data", method="getPrice"))
        assert await OracleValidator(chain, settings).validate("ETHEREUM", ORACLE) is False

    @pytest.mark.asyncio
    async def test_unreachable_oracle(self, chain, settings):
        chain.answer(ORACLE, "getPrice", ChainTransportError("timeout"))
        assert await OracleValidator(chain, settings).validate("ETHEREUM", ORACLE) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address", [None, "", ADDRESS_ZERO, "0x1234", "not-an-address"])
    async def test_bad_addresses_skip_probe(self, chain, settings, address):
        assert await OracleValidator(chain, settings).validate("ETHEREUM", address) is False
        assert chain.calls == []


class TestConfigReconciliation:

    def test_found_in_config(self, chain, settings):
        location = OracleValidator(chain, settings).check_oracle_in_config("ETHEREUM", ETH_ORACLE.lower())
        assert location == OracleLocation("config", "default")

    def test_settings_checked_first(self, chain, settings):
        settings.merge("ETHEREUM", oracles={"mine": OracleRecord(address=ETH_ORACLE)})
        location = OracleValidator(chain, settings).check_oracle_in_config("ETHEREUM", ETH_ORACLE)
        assert location == OracleLocation("settings", "mine")

    def test_unknown(self, chain, settings):
        assert OracleValidator(chain, settings).check_oracle_in_config("ETHEREUM", ORACLE) is None

    def test_key_skips_taken(self, chain, settings):
        settings.merge(
            "ETHEREUM",
            oracles={
                "oracle_1": OracleRecord(address=BRIDGE),
                "oracle_2": OracleRecord(address=BRIDGE),
            },
        )
        assert OracleValidator(chain, settings).generate_oracle_key("ETHEREUM") == "oracle_3"

    def test_no_suggestion_for_known_oracle(self, chain, settings):
        assert OracleValidator(chain, settings).suggestion_for("ETHEREUM", ETH_ORACLE, BRIDGE) is None

    def test_accept_records_suggestion(self, chain, settings):
        validator = OracleValidator(chain, settings)
        suggestion = validator.suggestion_for("BSC", ORACLE, BRIDGE)
        assert suggestion.key == "oracle_1"
        assert suggestion.name == "Oracle oracle_1"

        validator.accept("BSC", suggestion)

        assert validator.check_oracle_in_config("BSC", ORACLE) == OracleLocation("settings", "oracle_1")
        assert validator.suggestion_for("BSC", ORACLE, BRIDGE) is None
        assert validator.generate_oracle_key("BSC") == "oracle_2"

    def test_rekey_skips_reserved(self, chain, settings):
        validator = OracleValidator(chain, settings)
        suggestion = validator.suggestion_for("BSC", ORACLE, BRIDGE)
        assert validator.rekey("BSC", suggestion, []) is suggestion

        moved = validator.rekey("BSC", suggestion, ["oracle_1", "oracle_2"])
        assert moved.key == "oracle_3"
        assert moved.name == "Oracle oracle_3"
        assert moved.address == ORACLE
