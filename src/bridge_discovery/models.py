"""
Pydantic models used throughout bridge discovery.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------
class BridgeType(str, Enum):
    """Counterstake bridge protocol variants."""

    EXPORT = "export"
    IMPORT = "import"
    IMPORT_WRAPPER = "import_wrapper"

    @property
    def is_import_family(self) -> bool:
        return self in (BridgeType.IMPORT, BridgeType.IMPORT_WRAPPER)


class AssistantType(str, Enum):
    EXPORT = "export"
    EXPORT_WRAPPER = "export_wrapper"
    IMPORT = "import"
    IMPORT_WRAPPER = "import_wrapper"


class TokenKind(str, Enum):
    """Which ledger interface a token address speaks."""

    NATIVE = "native"
    PRECOMPILE_NATIVE = "precompile_native"
    PRECOMPILE_ASSET = "precompile_asset"
    STANDARD = "standard"


# ---------------------------------------------------------------------------
# Configuration records
# ---------------------------------------------------------------------------
class TokenRecord(BaseModel):
    """Symbol / name / decimals for one token address on one network."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(..., description="Token contract (or precompile) address")
    symbol: str = Field(..., description="Ticker / symbol")
    name: str = Field("", description="Human-readable token name")
    decimals: int = Field(18, ge=0, description="Fixed-point decimals")
    kind: TokenKind = Field(TokenKind.STANDARD, description="Ledger interface shape")
    asset_id: Optional[int] = Field(None, description="3DPass asset id for asset precompiles")


class OracleRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    name: str = ""
    description: str = ""


class BridgeDescriptor(BaseModel):
    """Normalized facts about one deployed bridge contract.

    Import-family descriptors always carry an oracle address; export
    descriptors may omit it.
    """

    model_config = ConfigDict(frozen=True)

    address: str
    type: BridgeType
    home_network: str
    home_token_symbol: str
    home_token_address: str
    foreign_network: str
    foreign_token_symbol: str
    foreign_token_address: Optional[str] = None
    stake_token_symbol: str
    stake_token_address: str
    oracle_address: Optional[str] = None
    bridge_id: Optional[str] = Field(
        None, description="Identifier shared by the two halves of one cross-chain route"
    )
    created_at: Optional[int] = Field(None, description="Registry creation time (unix seconds)")
    description: str = ""
    is_issuer_burner: bool = False

    @model_validator(mode="after")
    def _import_needs_oracle(self) -> "BridgeDescriptor":
        if self.type.is_import_family and not self.oracle_address:
            raise ValueError(f"{self.type.value} bridge {self.address} must carry an oracle address")
        return self


class AssistantDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    type: AssistantType
    bridge_address: str
    manager_address: str = ""
    share_symbol: str = ""
    share_name: str = ""
    description: str = ""
    created_at: Optional[int] = None


class NetworkDescriptor(BaseModel):
    """Static configuration for one supported network."""

    key: str = Field(..., description="Configuration key, e.g. ETHEREUM")
    chain_id: int
    name: str = Field(..., description="Display name, e.g. Ethereum")
    native_symbol: str
    native_decimals: int = 18
    rpc_url: str = ""
    explorer: str = ""
    erc20_precompile: bool = False
    registry_address: Optional[str] = None
    tokens: dict[str, TokenRecord] = Field(default_factory=dict)
    oracles: dict[str, OracleRecord] = Field(default_factory=dict)
    bridges: dict[str, BridgeDescriptor] = Field(default_factory=dict)
    assistants: dict[str, AssistantDescriptor] = Field(default_factory=dict)

    def find_token(self, address: str) -> Optional[TokenRecord]:
        """Exact (case-insensitive) address lookup in the token table."""
        wanted = address.lower()
        for token in self.tokens.values():
            if token.address.lower() == wanted:
                return token
        return None


class NetworkSettings(BaseModel):
    """Session overrides for one network; tokens keyed by lowercase address."""

    tokens: dict[str, TokenRecord] = Field(default_factory=dict)
    oracles: dict[str, OracleRecord] = Field(default_factory=dict)
    rpc_url: Optional[str] = None


# ---------------------------------------------------------------------------
# Aggregation results
# ---------------------------------------------------------------------------
class OracleSuggestion(BaseModel):
    """Advisory: a validated oracle that configuration does not know yet."""

    key: str
    address: str
    name: str
    description: str


class BridgeAggregationResult(BaseModel):
    success: bool
    descriptor: Optional[BridgeDescriptor] = None
    bridge_type: Optional[BridgeType] = None
    message: str = ""
    invalid_oracle: bool = False
    transport_error: bool = False
    oracle_needs_addition: Optional[OracleSuggestion] = None


class AssistantAggregationResult(BaseModel):
    success: bool
    descriptor: Optional[AssistantDescriptor] = None
    share_token: Optional[TokenRecord] = None
    message: str = ""


class DiscoveryCounts(BaseModel):
    total: int = 0
    successful: int = 0
    failed: int = 0


class DiscoverySummary(BaseModel):
    bridges: DiscoveryCounts = Field(default_factory=DiscoveryCounts)
    assistants: DiscoveryCounts = Field(default_factory=DiscoveryCounts)
    tokens: DiscoveryCounts = Field(default_factory=DiscoveryCounts)


class DiscoveryFailure(BaseModel):
    address: str
    message: str


class RegistryWalkResult(BaseModel):
    """Output of a network-wide registry walk."""

    network_key: str
    bridges: dict[str, BridgeDescriptor] = Field(default_factory=dict)
    assistants: dict[str, AssistantDescriptor] = Field(default_factory=dict)
    tokens: dict[str, TokenRecord] = Field(default_factory=dict)
    oracle_suggestions: list[OracleSuggestion] = Field(default_factory=list)
    bridge_errors: list[DiscoveryFailure] = Field(default_factory=list)
    assistant_errors: list[DiscoveryFailure] = Field(default_factory=list)
    token_errors: list[DiscoveryFailure] = Field(default_factory=list)
    summary: DiscoverySummary = Field(default_factory=DiscoverySummary)


# ---------------------------------------------------------------------------
# Reward codec
# ---------------------------------------------------------------------------
class RewardAmount(BaseModel):
    magnitude: int = Field(..., description="Fixed-point integer, never above MAX_SAFE_INTEGER")
    was_capped: bool = False
    original_value: str = Field(..., description="Decimal value before capping")
    max_safe_value: str = Field(..., description="Largest safe value at these decimals")
    display_value: str = Field(..., description="Capped value, 6 decimals, trailing zeros trimmed")
    signed: bool = False


# ---------------------------------------------------------------------------
# Claim discriminant
# ---------------------------------------------------------------------------
class ClaimBridgeResult(BaseModel):
    status: Literal["matched", "no_match", "validation_failed"]
    bridge: Optional[BridgeDescriptor] = None
    reason: str = ""

    @property
    def matched(self) -> bool:
        return self.status == "matched"


# ---------------------------------------------------------------------------
# Event cache
# ---------------------------------------------------------------------------
class EventKind(str, Enum):
    NEW_EXPATRIATION = "NewExpatriation"
    NEW_REPATRIATION = "NewRepatriation"
    NEW_CLAIM = "NewClaim"


class EventRecord(BaseModel):
    """One transfer or claim event, identified by its transaction hash.

    Unknown fields are kept so partial writes from different sources merge
    without losing data.
    """

    model_config = ConfigDict(extra="allow")

    transaction_hash: str
    event_type: Optional[EventKind] = None
    amount: Optional[str] = None
    reward: Optional[str] = None
    sender_address: Optional[str] = None
    recipient_address: Optional[str] = None
    bridge_address: Optional[str] = None
    block_number: Optional[int] = None
    log_index: Optional[int] = None
    timestamp: Optional[int] = None
    status: Optional[str] = None

    # route
    bridge_type: Optional[BridgeType] = None
    home_network: Optional[str] = None
    foreign_network: Optional[str] = None
    home_token_symbol: Optional[str] = None
    foreign_token_symbol: Optional[str] = None
    network_key: Optional[str] = None
    network_name: Optional[str] = None
    from_network: Optional[str] = None
    to_network: Optional[str] = None
    from_token_symbol: Optional[str] = None
    to_token_symbol: Optional[str] = None

    # transfer id (claims reference the transfer's transaction hash)
    txid: Optional[str] = None
    claim_num: Optional[int] = None
    txts: Optional[int] = None
    expiry_ts: Optional[int] = None


class TransferMatch(BaseModel):
    transfer: EventRecord
    claim: Optional[EventRecord] = None
    transfer_type: Optional[EventKind] = None

    @property
    def is_complete(self) -> bool:
        return self.claim is not None


class EventCacheSnapshot(BaseModel):
    transfers: list[EventRecord] = Field(default_factory=list)
    claims: list[EventRecord] = Field(default_factory=list)
    timestamp: Optional[int] = None
