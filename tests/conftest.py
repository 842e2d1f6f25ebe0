"""Shared test fixtures for the bridge discovery test suite."""

from __future__ import annotations

import sys
import os

# Ensure src/ is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from typing import Any, Callable, Union

import pytest

from bridge_discovery.errors import ContractCallError
from bridge_discovery.settings_store import SettingsStore


Answer = Union[tuple, BaseException, Callable[..., Any]]


class FakeChain:
    """In-memory ``ChainAccess``.

    Answers are registered per ``(address, method)`` (address compared
    case-insensitively) as a result tuple, an exception to raise, or a
    callable taking the call args.  Unregistered calls are rejected like a
    missing method.  Every call is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self._answers: dict[tuple[str, str], Answer] = {}
        self.calls: list[tuple[str, str, str, tuple]] = []

    def answer(self, address: str, method: str, value: Answer) -> "FakeChain":
        self._answers[(address.lower(), method)] = value
        return self

    def reject(self, address: str, method: str, revert_data: str | None = None) -> "FakeChain":
        return self.answer(
            address, method, ContractCallError(f"{method} reverted", method=method, revert_data=revert_data)
        )

    def methods_called(self, address: str | None = None) -> list[str]:
        return [m for _, a, m, _ in self.calls if address is None or a.lower() == address.lower()]

    async def call(self, network_key, address, interface, method, args=()):
        self.calls.append((network_key, address, method, tuple(args)))
        answer = self._answers.get((address.lower(), method))
        if answer is None:
            raise ContractCallError(
                f"execution reverted: {interface.name}.{method}",
                network=network_key,
                address=address,
                method=method,
            )
        if isinstance(answer, BaseException):
            raise answer
        if callable(answer):
            return answer(*args)
        return answer


# ---------------------------------------------------------------------------
# Addresses used across tests
# ---------------------------------------------------------------------------

BRIDGE = "0x1111111111111111111111111111111111111111"
OTHER_BRIDGE = "0x2222222222222222222222222222222222222222"
ORACLE = "0x3333333333333333333333333333333333333333"
STAKE_TOKEN = "0x4444444444444444444444444444444444444444"
HOME_ASSET = "0x5555555555555555555555555555555555555555"
FOREIGN_ASSET = "0x6666666666666666666666666666666666666666"
ASSISTANT = "0x7777777777777777777777777777777777777777"
PRECOMPILE = "0xfbfbfbfa00000000000000000000000000000abc"
SETTINGS_TUPLE = (STAKE_TOKEN, 100, 150, 3600, 10**18, 10**20)


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def settings() -> SettingsStore:
    return SettingsStore()


@pytest.fixture
def token_answers():
    """Register an ERC20 surface (name/symbol/decimals) on a FakeChain."""

    def _register(fake: FakeChain, address: str, symbol: str, decimals: int = 18, name: str | None = None):
        fake.answer(address, "name", (name or f"{symbol} Token",))
        fake.answer(address, "symbol", (symbol,))
        fake.answer(address, "decimals", (decimals,))
        return fake

    return _register
