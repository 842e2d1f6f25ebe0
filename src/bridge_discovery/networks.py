"""
Static network configuration for the Counterstake bridge deployment.

Three networks are supported: Ethereum, Binance Smart Chain and 3DPass.
Each descriptor carries the native currency, known tokens, default oracle,
known bridge and assistant instances and (on 3DPass) the bridges registry.

The tables are read-only; discoveries are recorded in the settings store
(``settings_store.py``) instead.
"""

from __future__ import annotations

from typing import Optional

from .constants import ADDRESS_ZERO, NETWORK_NAME_ALIASES, P3D_PRECOMPILE_ADDRESS
from .errors import ConfigurationError
from .models import (
    AssistantDescriptor,
    AssistantType,
    BridgeDescriptor,
    BridgeType,
    NetworkDescriptor,
    OracleRecord,
    TokenKind,
    TokenRecord,
)

_MANAGER = "0x41d06a54D85EE34c0Ca7c21979eE87b9817cde5b"


def _tok(address: str, symbol: str, name: str, decimals: int = 18, **extra) -> TokenRecord:
    return TokenRecord(address=address, symbol=symbol, name=name, decimals=decimals, **extra)


def _erc20(address: str, symbol: str, name: str, decimals: int = 18) -> TokenRecord:
    return _tok(address, symbol, name, decimals, kind=TokenKind.STANDARD)


def _asset(address: str, symbol: str, name: str, decimals: int, asset_id: int) -> TokenRecord:
    return _tok(address, symbol, name, decimals, kind=TokenKind.PRECOMPILE_ASSET, asset_id=asset_id)


# ---------------------------------------------------------------------------
# Ethereum
# ---------------------------------------------------------------------------
_ETHEREUM = NetworkDescriptor(
    key="ETHEREUM",
    chain_id=1,
    name="Ethereum",
    native_symbol="ETH",
    rpc_url="https://ethereum-rpc.publicnode.com",
    explorer="https://etherscan.io",
    oracles={
        "default": OracleRecord(
            address="0xAC4AA997A171A6CbbF5540D08537D5Cb1605E191",
            name="Ethereum Oracle",
            description="Main oracle for Ethereum price feeds",
        ),
    },
    tokens={
        "ETH": _tok(ADDRESS_ZERO, "ETH", "Ether", kind=TokenKind.NATIVE),
        "USDT": _erc20("0xdAC17F958D2ee523a2206206994597C13D831ec7", "USDT", "Tether USD", 6),
        "USDC": _erc20("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "USDC", "USD Coin", 6),
        "wP3D": _erc20("0x1234567890123456789012345678901234567890", "wP3D", "Wrapped P3D (Test)"),
        "wFIRE": _erc20("0x2345678901234567890123456789012345678901", "wFIRE", "Wrapped FIRE (Test)"),
        "wWATER": _erc20("0x3456789012345678901234567890123456789012", "wWATER", "Wrapped WATER (Test)"),
        "USDTIA": _erc20("0xeA2F6788D252772a4DDaa376F4da5a3c54bc01f0", "USDTIA", "USDT import assistant share"),
        "USDCIA": _erc20("0x7bEB3f6940689A9A9C66C7A2C2D9A704b8c95B0E", "USDCIA", "USDC import assistant share"),
    },
    bridges={
        "USDT_EXPORT": BridgeDescriptor(
            address="0x6359F737F32BFd1862FfAfd9C2F888DfAdC8B9E0",
            type=BridgeType.EXPORT,
            home_network="Ethereum",
            home_token_symbol="USDT",
            home_token_address="0xdAC17F958D2ee523a2206206994597C13D831ec7",
            foreign_network="3DPass",
            foreign_token_symbol="wUSDT",
            foreign_token_address="0xfBFBfbFA000000000000000000000000000000de",
            stake_token_symbol="USDT",
            stake_token_address="0xdAC17F958D2ee523a2206206994597C13D831ec7",
            bridge_id="USDT:Ethereum-3DPass",
            description="USDT Export Bridge (Ethereum → 3DPass)",
        ),
        "USDC_EXPORT": BridgeDescriptor(
            address="0x14982dc69e62508b3e4848129a55d6B1960b4Db0",
            type=BridgeType.EXPORT,
            home_network="Ethereum",
            home_token_symbol="USDC",
            home_token_address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            foreign_network="3DPass",
            foreign_token_symbol="wUSDC",
            foreign_token_address="0xFbfbFBfA0000000000000000000000000000006f",
            stake_token_symbol="USDC",
            stake_token_address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            bridge_id="USDC:Ethereum-3DPass",
            description="USDC Export Bridge (Ethereum → 3DPass)",
        ),
        "WP3D_IMPORT": BridgeDescriptor(
            address="0x9876543210987654321098765432109876543210",
            type=BridgeType.IMPORT,
            home_network="3DPass",
            home_token_symbol="P3D",
            home_token_address=P3D_PRECOMPILE_ADDRESS,
            foreign_network="Ethereum",
            foreign_token_symbol="wP3D",
            foreign_token_address="0x1234567890123456789012345678901234567890",
            stake_token_symbol="ETH",
            stake_token_address=ADDRESS_ZERO,
            oracle_address="0xAC4AA997A171A6CbbF5540D08537D5Cb1605E191",
            bridge_id="P3D:3DPass-Ethereum",
            description="wP3D Import Bridge (Ethereum → 3DPass)",
            is_issuer_burner=True,
        ),
        "WFIRE_IMPORT": BridgeDescriptor(
            address="0x8765432109876543210987654321098765432109",
            type=BridgeType.IMPORT,
            home_network="3DPass",
            home_token_symbol="FIRE",
            home_token_address="0xFbfBFBfA000000000000000000000000000001bC",
            foreign_network="Ethereum",
            foreign_token_symbol="wFIRE",
            foreign_token_address="0x2345678901234567890123456789012345678901",
            stake_token_symbol="ETH",
            stake_token_address=ADDRESS_ZERO,
            oracle_address="0xAC4AA997A171A6CbbF5540D08537D5Cb1605E191",
            bridge_id="FIRE:3DPass-Ethereum",
            description="wFIRE Import Bridge (Ethereum → 3DPass)",
            is_issuer_burner=True,
        ),
        "WWATER_IMPORT": BridgeDescriptor(
            address="0x7654321098765432109876543210987654321098",
            type=BridgeType.IMPORT,
            home_network="3DPass",
            home_token_symbol="WATER",
            home_token_address="0xfBFBFBfa0000000000000000000000000000022b",
            foreign_network="Ethereum",
            foreign_token_symbol="wWATER",
            foreign_token_address="0x3456789012345678901234567890123456789012",
            stake_token_symbol="ETH",
            stake_token_address=ADDRESS_ZERO,
            oracle_address="0xAC4AA997A171A6CbbF5540D08537D5Cb1605E191",
            bridge_id="WATER:3DPass-Ethereum",
            description="wWATER Import Bridge (Ethereum → 3DPass)",
            is_issuer_burner=True,
        ),
    },
    assistants={
        "USDT_EXPORT_ASSISTANT": AssistantDescriptor(
            address="0x0FAF9b7Cf0e62c6889486cE906d05A7a813a7cc5",
            type=AssistantType.EXPORT,
            bridge_address="0x6359F737F32BFd1862FfAfd9C2F888DfAdC8B9E0",
            manager_address=_MANAGER,
            share_symbol="USDTIA",
            share_name="USDT import assistant",
            description="USDT Export Assistant",
        ),
        "USDC_EXPORT_ASSISTANT": AssistantDescriptor(
            address="0xdf8D6962ADC7f29b6F9272376fE51D55B76B0fc5",
            type=AssistantType.EXPORT,
            bridge_address="0x14982dc69e62508b3e4848129a55d6B1960b4Db0",
            manager_address=_MANAGER,
            share_symbol="USDCIA",
            share_name="USDC import assistant",
            description="USDC Export Assistant",
        ),
    },
)

# ---------------------------------------------------------------------------
# Binance Smart Chain
# ---------------------------------------------------------------------------
_BSC = NetworkDescriptor(
    key="BSC",
    chain_id=56,
    name="Binance Smart Chain",
    native_symbol="BNB",
    rpc_url="https://bsc-dataseed1.binance.org",
    explorer="https://bscscan.com",
    oracles={
        "default": OracleRecord(
            address="0xdD52899A001a4260CDc43307413A5014642f37A2",
            name="BSC Oracle",
            description="Main oracle for BSC price feeds",
        ),
    },
    tokens={
        "BNB": _tok(ADDRESS_ZERO, "BNB", "BNB token", kind=TokenKind.NATIVE),
        "BUSD": _erc20("0xe9e7CEA3DedcA5984780Bafc599bD69ADd087D56", "BUSD", "BUSD Token"),
        "USDT": _erc20("0x55d398326f99059fF775485246999027B3197955", "USDT", "Tether USD"),
        "BUSDIA": _erc20("0xA32ea7688b2937eeaf3f74804fbAFB70D0fc4FE3", "BUSDIA", "BUSD import assistant share"),
    },
    bridges={
        "BUSD_EXPORT": BridgeDescriptor(
            address="0xAd913348E7B63f44185D5f6BACBD18d7189B2F1B",
            type=BridgeType.EXPORT,
            home_network="Binance Smart Chain",
            home_token_symbol="BUSD",
            home_token_address="0xe9e7CEA3DedcA5984780Bafc599bD69ADd087D56",
            foreign_network="3DPass",
            foreign_token_symbol="wBUSD",
            foreign_token_address="0xFbFBFBfA0000000000000000000000000000014D",
            stake_token_symbol="BUSD",
            stake_token_address="0xe9e7CEA3DedcA5984780Bafc599bD69ADd087D56",
            bridge_id="BUSD:Binance Smart Chain-3DPass",
            description="BUSD Export Bridge (BSC → 3DPass)",
        ),
    },
    assistants={
        "BUSD_EXPORT_ASSISTANT": AssistantDescriptor(
            address="0xA32ea7688b2937eeaf3f74804fbAFB70D0fc4FE3",
            type=AssistantType.EXPORT,
            bridge_address="0xAd913348E7B63f44185D5f6BACBD18d7189B2F1B",
            manager_address=_MANAGER,
            share_symbol="BUSDIA",
            share_name="BUSD import assistant",
            description="BUSD Export Assistant",
        ),
    },
)

# ---------------------------------------------------------------------------
# 3DPass
# ---------------------------------------------------------------------------
_THREEDPASS_ORACLE = "0xAc647d0caB27e912C844F27716154f54EDD519cE"

_THREEDPASS = NetworkDescriptor(
    key="THREEDPASS",
    chain_id=1334,
    name="3DPass",
    native_symbol="P3D",
    rpc_url="https://rpc-http.3dpass.org",
    explorer="https://3dpscan.xyz",
    erc20_precompile=True,
    registry_address="0xBDe856499b710dc8E428a6B616A4260AAFa60dd0",
    oracles={
        "default": OracleRecord(
            address=_THREEDPASS_ORACLE,
            name="Default Oracle",
            description="Main oracle for price feeds",
        ),
    },
    tokens={
        "P3D": _tok(P3D_PRECOMPILE_ADDRESS, "P3D", "P3D Token", kind=TokenKind.PRECOMPILE_NATIVE),
        "wUSDT": _asset("0xfBFBfbFA000000000000000000000000000000de", "wUSDT", "Wrapped USDT", 6, 222),
        "wUSDC": _asset("0xFbfbFBfA0000000000000000000000000000006f", "wUSDC", "Wrapped USDC", 6, 223),
        "wBUSD": _asset("0xFbFBFBfA0000000000000000000000000000014D", "wBUSD", "Wrapped BUSD", 18, 224),
        "FIRE": _asset("0xFbfBFBfA000000000000000000000000000001bC", "FIRE", "FIRE Token", 18, 444),
        "WATER": _asset("0xfBFBFBfa0000000000000000000000000000022b", "WATER", "WATER Token", 18, 555),
        "USDTIA": _erc20("0xeA2F6788D252772a4DDaa376F4da5a3c54bc01f0", "USDTIA", "USDT import assistant share"),
        "USDCIA": _erc20("0x7bEB3f6940689A9A9C66C7A2C2D9A704b8c95B0E", "USDCIA", "USDC import assistant share"),
        "BUSDIA": _erc20("0x49B602cE8794003e8CC62bf61CA5dA7f9F543233", "BUSDIA", "BUSD import assistant share"),
        "P3DEA": _erc20("0x373EB437066D13761926B4F20a4A93aBdECbCDbf", "P3DEA", "P3D export assistant share"),
        "FIREA": _erc20("0x4d6BE61c3040245A88B6e4Fb92DCFb5ae9077127", "FIREA", "FIRE export assistant share"),
        "WATEA": _erc20("0x826bB653e078D65FaFea3978d3481eea0727B0F5", "WATEA", "WATER export assistant share"),
    },
    bridges={
        "P3D_EXPORT": BridgeDescriptor(
            address="0x696CD5949EA4baBB3eB76D5231595C7e8eFa9206",
            type=BridgeType.EXPORT,
            home_network="3DPass",
            home_token_symbol="P3D",
            home_token_address=P3D_PRECOMPILE_ADDRESS,
            foreign_network="Ethereum",
            foreign_token_symbol="wP3D",
            foreign_token_address="0x1234567890123456789012345678901234567890",
            stake_token_symbol="P3D",
            stake_token_address=P3D_PRECOMPILE_ADDRESS,
            bridge_id="P3D:3DPass-Ethereum",
            description="P3D Export Bridge (3DPass → Ethereum)",
        ),
        "FIRE_EXPORT": BridgeDescriptor(
            address="0x418Fbe90f5fD7095Fd4cde851c8375Df085ed61A",
            type=BridgeType.EXPORT,
            home_network="3DPass",
            home_token_symbol="FIRE",
            home_token_address="0xFbfBFBfA000000000000000000000000000001bC",
            foreign_network="Ethereum",
            foreign_token_symbol="wFIRE",
            foreign_token_address="0x2345678901234567890123456789012345678901",
            stake_token_symbol="FIRE",
            stake_token_address="0xFbfBFBfA000000000000000000000000000001bC",
            bridge_id="FIRE:3DPass-Ethereum",
            description="FIRE Export Bridge (3DPass → Ethereum)",
        ),
        "WATER_EXPORT": BridgeDescriptor(
            address="0xF79be90A608c26CA1f995a40BE57DB28de8e5DB4",
            type=BridgeType.EXPORT,
            home_network="3DPass",
            home_token_symbol="WATER",
            home_token_address="0xfBFBFBfa0000000000000000000000000000022b",
            foreign_network="Ethereum",
            foreign_token_symbol="wWATER",
            foreign_token_address="0x3456789012345678901234567890123456789012",
            stake_token_symbol="WATER",
            stake_token_address="0xfBFBFBfa0000000000000000000000000000022b",
            bridge_id="WATER:3DPass-Ethereum",
            description="WATER Export Bridge (3DPass → Ethereum)",
        ),
        "USDT_IMPORT": BridgeDescriptor(
            address="0x8Ec164093319EAD78f6E289bb688Bef3c8ce9B0F",
            type=BridgeType.IMPORT_WRAPPER,
            home_network="Ethereum",
            home_token_symbol="USDT",
            home_token_address="0xdAC17F958D2ee523a2206206994597C13D831ec7",
            foreign_network="3DPass",
            foreign_token_symbol="wUSDT",
            foreign_token_address="0xfBFBfbFA000000000000000000000000000000de",
            stake_token_symbol="P3D",
            stake_token_address=P3D_PRECOMPILE_ADDRESS,
            oracle_address=_THREEDPASS_ORACLE,
            bridge_id="USDT:Ethereum-3DPass",
            description="USDT Import Wrapper Bridge (Ethereum → 3DPass)",
            is_issuer_burner=True,
        ),
        "USDC_IMPORT": BridgeDescriptor(
            address="0x1A85BD09E186b6EDc30D08Abb43c673A9636Cc4E",
            type=BridgeType.IMPORT_WRAPPER,
            home_network="Ethereum",
            home_token_symbol="USDC",
            home_token_address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            foreign_network="3DPass",
            foreign_token_symbol="wUSDC",
            foreign_token_address="0xFbfbFBfA0000000000000000000000000000006f",
            stake_token_symbol="P3D",
            stake_token_address=P3D_PRECOMPILE_ADDRESS,
            oracle_address=_THREEDPASS_ORACLE,
            bridge_id="USDC:Ethereum-3DPass",
            description="USDC Import Wrapper Bridge (Ethereum → 3DPass)",
            is_issuer_burner=True,
        ),
        "BUSD_IMPORT": BridgeDescriptor(
            address="0xccDdB081d48D7F312846ea4ECF18A963455c3C71",
            type=BridgeType.IMPORT_WRAPPER,
            home_network="Binance Smart Chain",
            home_token_symbol="BUSD",
            home_token_address="0xe9e7CEA3DedcA5984780Bafc599bD69ADd087D56",
            foreign_network="3DPass",
            foreign_token_symbol="wBUSD",
            foreign_token_address="0xFbFBFBfA0000000000000000000000000000014D",
            stake_token_symbol="P3D",
            stake_token_address=P3D_PRECOMPILE_ADDRESS,
            oracle_address=_THREEDPASS_ORACLE,
            bridge_id="BUSD:Binance Smart Chain-3DPass",
            description="BUSD Import Wrapper Bridge (Binance Smart Chain → 3DPass)",
            is_issuer_burner=True,
        ),
    },
    assistants={
        "USDT_IMPORT_ASSISTANT": AssistantDescriptor(
            address="0xeA2F6788D252772a4DDaa376F4da5a3c54bc01f0",
            type=AssistantType.IMPORT_WRAPPER,
            bridge_address="0x8Ec164093319EAD78f6E289bb688Bef3c8ce9B0F",
            manager_address=_MANAGER,
            share_symbol="USDTIA",
            share_name="USDT import assistant share",
            description="USDT Import Wrapper Assistant",
        ),
        "USDC_IMPORT_ASSISTANT": AssistantDescriptor(
            address="0x7bEB3f6940689A9A9C66C7A2C2D9A704b8c95B0E",
            type=AssistantType.IMPORT_WRAPPER,
            bridge_address="0x1A85BD09E186b6EDc30D08Abb43c673A9636Cc4E",
            manager_address=_MANAGER,
            share_symbol="USDCIA",
            share_name="USDC import assistant share",
            description="USDC Import Wrapper Assistant",
        ),
        "BUSD_IMPORT_ASSISTANT": AssistantDescriptor(
            address="0x49B602cE8794003e8CC62bf61CA5dA7f9F543233",
            type=AssistantType.IMPORT_WRAPPER,
            bridge_address="0xccDdB081d48D7F312846ea4ECF18A963455c3C71",
            manager_address=_MANAGER,
            share_symbol="BUSDIA",
            share_name="BUSD import assistant share",
            description="BUSD Import Wrapper Assistant",
        ),
        "P3D_EXPORT_ASSISTANT": AssistantDescriptor(
            address="0x373EB437066D13761926B4F20a4A93aBdECbCDbf",
            type=AssistantType.EXPORT_WRAPPER,
            bridge_address="0x696CD5949EA4baBB3eB76D5231595C7e8eFa9206",
            manager_address=_MANAGER,
            share_symbol="P3DEA",
            share_name="P3D export assistant share",
            description="P3D Export Assistant",
        ),
        "FIRE_EXPORT_ASSISTANT": AssistantDescriptor(
            address="0x4d6BE61c3040245A88B6e4Fb92DCFb5ae9077127",
            type=AssistantType.EXPORT_WRAPPER,
            bridge_address="0x418Fbe90f5fD7095Fd4cde851c8375Df085ed61A",
            manager_address=_MANAGER,
            share_symbol="FIREA",
            share_name="FIRE export assistant",
            description="FIRE Export Assistant",
        ),
        "WATER_EXPORT_ASSISTANT": AssistantDescriptor(
            address="0x826bB653e078D65FaFea3978d3481eea0727B0F5",
            type=AssistantType.EXPORT_WRAPPER,
            bridge_address="0xF79be90A608c26CA1f995a40BE57DB28de8e5DB4",
            manager_address=_MANAGER,
            share_symbol="WATEA",
            share_name="WATER export assistant share",
            description="WATER Export Assistant",
        ),
    },
)

NETWORKS: dict[str, NetworkDescriptor] = {
    n.key: n for n in (_ETHEREUM, _BSC, _THREEDPASS)
}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def find_network_key(name_or_key: str) -> Optional[str]:
    """Resolve a network key from either its key or (aliased) display name."""
    if not name_or_key:
        return None
    if name_or_key in NETWORKS:
        return name_or_key
    canonical = normalize_network_name(name_or_key)
    for key, network in NETWORKS.items():
        if network.name == canonical or network.name.lower() == canonical.lower():
            return key
    upper = name_or_key.upper()
    return upper if upper in NETWORKS else None


def get_network(name_or_key: str) -> NetworkDescriptor:
    key = find_network_key(name_or_key)
    if key is None:
        raise ConfigurationError(f"Unknown network: {name_or_key!r}")
    return NETWORKS[key]


def normalize_network_name(name: str) -> str:
    """Map contract-reported network spellings to canonical display names.

    The table is fixed; names not in it are returned unchanged.
    """
    return NETWORK_NAME_ALIASES.get(name, name)


def all_bridges() -> dict[str, BridgeDescriptor]:
    """Every statically configured bridge across all networks."""
    merged: dict[str, BridgeDescriptor] = {}
    for network in NETWORKS.values():
        merged.update(network.bridges)
    return merged


def all_assistants() -> dict[str, AssistantDescriptor]:
    merged: dict[str, AssistantDescriptor] = {}
    for network in NETWORKS.values():
        merged.update(network.assistants)
    return merged
