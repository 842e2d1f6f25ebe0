"""
Exception hierarchy for bridge discovery.

Two chain-level failure families are kept apart on purpose:

- ``ContractCallError`` – the node answered but the call was rejected
  (revert, missing method, undecodable return data).  Callers use it as a
  "capability not present" signal.
- ``ChainTransportError`` – the node could not be reached at all.  It is
  never reinterpreted as a classification signal.
"""

from __future__ import annotations

from typing import Optional


class BridgeDiscoveryError(Exception):
    """Base class for every error raised by this package."""


class ChainAccessError(BridgeDiscoveryError):
    """A read-only contract call did not produce a value."""

    def __init__(self, message: str, *, network: str = "", address: str = "", method: str = "") -> None:
        super().__init__(message)
        self.network = network
        self.address = address
        self.method = method


class ContractCallError(ChainAccessError):
    """The node rejected the call (revert / unknown method / bad return data)."""

    def __init__(
        self,
        message: str,
        *,
        network: str = "",
        address: str = "",
        method: str = "",
        revert_data: Optional[str] = None,
    ) -> None:
        super().__init__(message, network=network, address=address, method=method)
        self.revert_data = revert_data

    @property
    def has_revert_data(self) -> bool:
        return bool(self.revert_data and self.revert_data not in ("0x", "0x0"))


class EmptyReturnDataError(ContractCallError):
    """``eth_call`` returned ``0x``: typically no code at the address."""


class ChainTransportError(ChainAccessError):
    """The chain endpoint was unreachable after retries."""


class CircuitOpenError(ChainTransportError):
    """Raised when a call is attempted against an open circuit."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Circuit '{name}' is OPEN – request blocked", network=name)
        self.circuit_name = name


class DetectionError(BridgeDiscoveryError):
    """The bridge address does not implement any known bridge interface."""


class ConfigurationError(BridgeDiscoveryError):
    """Static or session configuration is missing or inconsistent."""
