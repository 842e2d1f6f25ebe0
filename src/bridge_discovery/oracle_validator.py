"""
Oracle validation and configuration reconciliation.

An oracle is "valid" when something at its address answers the price
query: any response, including a revert, proves a responsive contract.
An empty ``0x`` answer (no code at the address), a malformed / zero
address or a transport failure makes it invalid.
"""

from __future__ import annotations

import logging
from typing import Iterable, Literal, NamedTuple, Optional

from . import abi
from .constants import ORACLE_PROBE_PAIR
from .data_sources._clients import ChainAccess
from .errors import ChainTransportError, ContractCallError, EmptyReturnDataError
from .models import OracleRecord, OracleSuggestion
from .networks import get_network
from .settings_store import SettingsStore
from .utils import is_valid_address, is_zero_address, same_address

logger = logging.getLogger(__name__)


class OracleLocation(NamedTuple):
    source: Literal["settings", "config"]
    key: str


class OracleValidator:
    def __init__(self, chain: ChainAccess, settings: SettingsStore) -> None:
        self._chain = chain
        self._settings = settings

    async def validate(self, network_key: str, address: Optional[str]) -> bool:
        """Probe ``getPrice("ETH", "USD")`` at *address*."""
        if not address or not is_valid_address(address) or is_zero_address(address):
            logger.debug("Oracle address %r rejected without probing", address)
            return False
        try:
            await self._chain.call(network_key, address, abi.ORACLE, "getPrice", ORACLE_PROBE_PAIR)
        except EmptyReturnDataError:
            logger.warning("Oracle %s on %s returned no data; no contract at address", address, network_key)
            return False
        except ContractCallError as exc:
            # a revert (e.g. no price for the pair) still proves a live contract
            logger.debug("Oracle %s reverted on probe: %s", address, exc)
            return True
        except ChainTransportError as exc:
            logger.warning("Oracle %s on %s unreachable: %s", address, network_key, exc)
            return False
        return True

    def check_oracle_in_config(self, network_key: str, address: str) -> Optional[OracleLocation]:
        """Find *address* among known oracles: settings first, then config."""
        network = get_network(network_key)
        for key, oracle in self._settings.get(network.key).oracles.items():
            if same_address(oracle.address, address):
                return OracleLocation("settings", key)
        for key, oracle in network.oracles.items():
            if same_address(oracle.address, address):
                return OracleLocation("config", key)
        return None

    def generate_oracle_key(self, network_key: str, reserved: Iterable[str] = ()) -> str:
        """First free ``oracle_N`` key across settings, static config and *reserved*."""
        network = get_network(network_key)
        taken = set(network.oracles) | set(self._settings.get(network.key).oracles) | set(reserved)
        n = 1
        while f"oracle_{n}" in taken:
            n += 1
        return f"oracle_{n}"

    def suggestion_for(self, network_key: str, address: str, bridge_address: str) -> Optional[OracleSuggestion]:
        """Suggest adding *address* when configuration does not know it yet."""
        if self.check_oracle_in_config(network_key, address) is not None:
            return None
        key = self.generate_oracle_key(network_key)
        return OracleSuggestion(
            key=key,
            address=address,
            name=f"Oracle {key}",
            description=f"Auto-detected oracle from bridge {bridge_address}",
        )

    def rekey(self, network_key: str, suggestion: OracleSuggestion, reserved: Iterable[str]) -> OracleSuggestion:
        """Move *suggestion* to a key outside *reserved* when it collides."""
        reserved = set(reserved)
        if suggestion.key not in reserved:
            return suggestion
        key = self.generate_oracle_key(network_key, reserved)
        return suggestion.model_copy(update={"key": key, "name": f"Oracle {key}"})

    def accept(self, network_key: str, suggestion: OracleSuggestion) -> None:
        """Record an accepted suggestion in the settings store."""
        network = get_network(network_key)
        self._settings.merge(
            network.key,
            oracles={
                suggestion.key: OracleRecord(
                    address=suggestion.address,
                    name=suggestion.name,
                    description=suggestion.description,
                )
            },
        )
