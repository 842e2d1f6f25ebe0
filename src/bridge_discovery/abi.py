"""
Minimal contract interface descriptions and ABI codec.

Only the read-only methods discovery actually calls are described.  Each
``ContractInterface`` maps a method name to its input and output types;
calldata is built with ``eth_abi`` and the 4-byte selector from
``keccak(text=signature)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import keccak


@dataclass(frozen=True)
class Method:
    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return keccak(text=self.signature)[:4]


@dataclass(frozen=True)
class ContractInterface:
    """A named set of callable methods."""

    name: str
    methods: dict[str, Method] = field(default_factory=dict)

    def method(self, name: str) -> Method:
        try:
            return self.methods[name]
        except KeyError:
            raise KeyError(f"{self.name} interface has no method {name!r}") from None

    def encode_call(self, name: str, args: Sequence[Any] = ()) -> str:
        """Return ``0x``-prefixed calldata for ``name(*args)``."""
        m = self.method(name)
        body = abi_encode(list(m.inputs), list(args)) if m.inputs else b""
        return "0x" + (m.selector + body).hex()

    def decode_result(self, name: str, data: bytes) -> tuple[Any, ...]:
        m = self.method(name)
        if not m.outputs:
            return ()
        return tuple(abi_decode(list(m.outputs), data))


def _iface(name: str, *methods: Method) -> ContractInterface:
    return ContractInterface(name=name, methods={m.name: m for m in methods})


# ---------------------------------------------------------------------------
# Shared method shapes
# ---------------------------------------------------------------------------
_SETTINGS = Method(
    "settings",
    outputs=("address", "uint16", "uint16", "uint32", "uint256", "uint256"),
)
_NAME = Method("name", outputs=("string",))
_SYMBOL = Method("symbol", outputs=("string",))
_DECIMALS = Method("decimals", outputs=("uint8",))
_HOME_NETWORK = Method("home_network", outputs=("string",))
_HOME_ASSET = Method("home_asset", outputs=("string",))
_ORACLE_ADDRESS = Method("oracleAddress", outputs=("address",))
_PRECOMPILE_ADDRESS = Method("precompileAddress", outputs=("address",))
_P3D_PRECOMPILE = Method("P3D_PRECOMPILE", outputs=("address",))

# settings() tuple positions
SETTINGS_TOKEN_ADDRESS = 0

# ---------------------------------------------------------------------------
# Bridges
# ---------------------------------------------------------------------------
EXPORT_BRIDGE = _iface(
    "Export",
    Method("foreign_network", outputs=("string",)),
    Method("foreign_asset", outputs=("string",)),
    _SETTINGS,
    _P3D_PRECOMPILE,
)

IMPORT_BRIDGE = _iface(
    "Import",
    _HOME_NETWORK,
    _HOME_ASSET,
    _ORACLE_ADDRESS,
    _SETTINGS,
    _NAME,
    _SYMBOL,
    _DECIMALS,
    _P3D_PRECOMPILE,
)

IMPORT_WRAPPER_BRIDGE = _iface(
    "ImportWrapper",
    _HOME_NETWORK,
    _HOME_ASSET,
    _ORACLE_ADDRESS,
    _PRECOMPILE_ADDRESS,
    _SETTINGS,
    _P3D_PRECOMPILE,
)

# ---------------------------------------------------------------------------
# Oracle
# ---------------------------------------------------------------------------
ORACLE = _iface(
    "Oracle",
    Method("getPrice", inputs=("string", "string"), outputs=("uint256", "uint256")),
)

# ---------------------------------------------------------------------------
# Tokens: the three ledger shapes share a read surface but are kept apart
# so callers state which ledger they believe they are talking to.
# ---------------------------------------------------------------------------
ERC20 = _iface("ERC20", _NAME, _SYMBOL, _DECIMALS)
P3D_NATIVE = _iface("IP3D", _NAME, _SYMBOL, _DECIMALS)
ASSET_PRECOMPILE = _iface("IPrecompileERC20", _NAME, _SYMBOL, _DECIMALS)

# ---------------------------------------------------------------------------
# Registry / assistants
# ---------------------------------------------------------------------------
_REGISTRY_ENTRY = ("(address,uint8,uint256,bool)",)

BRIDGES_REGISTRY = _iface(
    "BridgesRegistry",
    Method("getAllBridges", outputs=("address[]",)),
    Method("getAllAssistants", outputs=("address[]",)),
    Method("getBridge", inputs=("address",), outputs=_REGISTRY_ENTRY),
    Method("getAssistant", inputs=("address",), outputs=_REGISTRY_ENTRY),
)

ASSISTANT = _iface(
    "Assistant",
    Method("bridgeAddress", outputs=("address",)),
    Method("managerAddress", outputs=("address",)),
    _PRECOMPILE_ADDRESS,
    Method("approvePrecompile"),
    _NAME,
    _SYMBOL,
    _DECIMALS,
)
