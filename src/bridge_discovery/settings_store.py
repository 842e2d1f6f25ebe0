"""
Session settings store.

Holds per-network overrides and discoveries (tokens, oracles, RPC URL) that
take priority over the static tables in ``networks.py``.  Writes are
per-key upserts; nothing is ever removed by a merge.

The store is passed explicitly into every discovery call rather than
living in a module global.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional

from .models import NetworkDescriptor, NetworkSettings, OracleRecord, TokenRecord
from .networks import NETWORKS, get_network

logger = logging.getLogger(__name__)


class SettingsStore:
    """In-process, last-write-wins settings tier keyed by network key."""

    def __init__(self, initial: Optional[dict[str, NetworkSettings]] = None) -> None:
        self._networks: dict[str, NetworkSettings] = dict(initial or {})

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, network_key: str) -> NetworkSettings:
        """Return the settings for *network_key* (empty when never written)."""
        return self._networks.get(network_key) or NetworkSettings()

    def find_token(self, network_key: str, address: str) -> Optional[TokenRecord]:
        return self.get(network_key).tokens.get(address.lower())

    def network_keys(self) -> list[str]:
        return list(self._networks)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def merge(
        self,
        network_key: str,
        *,
        tokens: Optional[Iterable[TokenRecord]] = None,
        oracles: Optional[dict[str, OracleRecord]] = None,
        rpc_url: Optional[str] = None,
    ) -> NetworkSettings:
        """Upsert tokens (by lowercase address), oracles (by key) and RPC URL."""
        current = self.get(network_key)
        new_tokens = dict(current.tokens)
        for token in tokens or ():
            key = token.address.lower()
            existing = new_tokens.get(key)
            if existing is not None and existing.symbol != token.symbol:
                logger.warning(
                    "Token %s on %s re-resolved as %s (was %s)",
                    key, network_key, token.symbol, existing.symbol,
                )
            new_tokens[key] = token
        new_oracles = dict(current.oracles)
        new_oracles.update(oracles or {})
        merged = NetworkSettings(
            tokens=new_tokens,
            oracles=new_oracles,
            rpc_url=rpc_url if rpc_url is not None else current.rpc_url,
        )
        self._networks[network_key] = merged
        return merged

    # ------------------------------------------------------------------
    # Overlay / persistence
    # ------------------------------------------------------------------

    def network_with_settings(self, network_key: str) -> NetworkDescriptor:
        """Static network descriptor overlaid with this store's entries."""
        base = get_network(network_key)
        overrides = self.get(base.key)
        tokens = dict(base.tokens)
        for token in overrides.tokens.values():
            existing_key = next(
                (k for k, t in tokens.items() if t.address.lower() == token.address.lower()),
                None,
            )
            tokens[existing_key or token.symbol] = token
        oracles = {**base.oracles, **overrides.oracles}
        update: dict[str, Any] = {"tokens": tokens, "oracles": oracles}
        if overrides.rpc_url:
            update["rpc_url"] = overrides.rpc_url
        return base.model_copy(update=update)

    def dump(self) -> str:
        """Serialise to JSON for host-side persistence."""
        return json.dumps(
            {k: v.model_dump(mode="json") for k, v in self._networks.items()},
            indent=2,
        )

    @classmethod
    def load(cls, raw: str) -> "SettingsStore":
        data = json.loads(raw) if raw else {}
        initial = {
            key: NetworkSettings.model_validate(value)
            for key, value in data.items()
            if key in NETWORKS
        }
        return cls(initial)
