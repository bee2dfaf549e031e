"""
MEV-Share wire schemas.

Pydantic models for every payload exchanged with the relay: private
transaction parameters, simulation options and results, SSE events and the
event-history REST API. Field names are snake_case in Python and camelCase on
the wire; block numbers and fees are accepted as hex strings or integers and
sent back as hex quantities where the relay expects them.

Bundle models live in `mevshare.bundle`.

File: mevshare/schemas.py
"""

from typing import Annotated, Any, Dict, FrozenSet, List, Optional, Tuple

from eth_utils import to_checksum_address
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    TypeAdapter,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .constants import HintPreference, KnownBuilder
from .utils import normalize_hash, normalize_hex_data, parse_quantity, to_quantity

# =============================================================================
# FIELD TYPES
# =============================================================================

# Integer parsed from a hex or decimal quantity, serialized as a plain int
Quantity = Annotated[int, BeforeValidator(parse_quantity)]

# Integer parsed from a hex or decimal quantity, serialized as a hex quantity
HexQuantity = Annotated[
    int, BeforeValidator(parse_quantity), PlainSerializer(to_quantity, return_type=str)
]

TxHash = Annotated[str, BeforeValidator(normalize_hash)]
HexData = Annotated[str, BeforeValidator(normalize_hex_data)]
Address = Annotated[str, BeforeValidator(to_checksum_address)]


class MevShareModel(BaseModel):
    """Base model: camelCase aliases, immutable instances."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
    )

    def to_rpc(self) -> Dict[str, Any]:
        """Serialize for a JSON-RPC `params` entry, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# PRIVACY & PRIVATE TRANSACTIONS
# =============================================================================

class Privacy(MevShareModel):
    """What to share about a submission, and with which builders."""

    hints: Optional[FrozenSet[HintPreference]] = None
    builders: Optional[Tuple[str, ...]] = None

    @field_validator("builders", mode="before")
    @classmethod
    def _builder_names(cls, value: Any) -> Any:
        if value is None:
            return None
        return tuple(
            builder.value if isinstance(builder, KnownBuilder) else builder
            for builder in value
        )

    @field_serializer("hints")
    def _sorted_hints(self, hints: Optional[FrozenSet[str]]) -> Optional[List[str]]:
        if hints is None:
            return None
        return sorted(hints)


class TransactionPreferences(MevShareModel):
    """`preferences` member of `eth_sendPrivateTransaction`."""

    fast: bool = True
    privacy: Privacy = Field(default_factory=Privacy)


class SendTransactionParams(MevShareModel):
    """Parameters for `eth_sendPrivateTransaction`."""

    tx: HexData
    max_block_number: Optional[HexQuantity] = None
    preferences: Optional[TransactionPreferences] = None

    @classmethod
    def build(
        cls,
        tx: Any,
        max_block_number: Optional[int] = None,
        hints: Optional[Any] = None,
        builders: Optional[Any] = None,
    ) -> "SendTransactionParams":
        """
        Validating constructor.

        Args:
            tx: Signed raw transaction (bytes or hex string)
            max_block_number: Last block in which the relay should try to
                include the transaction; the relay default applies when None
            hints: HintPreference values to share with searchers
            builders: Builder names (KnownBuilder or str) allowed to receive it

        Returns:
            SendTransactionParams; `preferences` is only set when hints or
            builders are given
        """
        preferences = None
        if hints is not None or builders is not None:
            preferences = TransactionPreferences(
                privacy=Privacy(
                    hints=frozenset(hints) if hints is not None else None,
                    builders=builders,
                )
            )
        return cls(tx=tx, max_block_number=max_block_number, preferences=preferences)


# =============================================================================
# SIMULATION
# =============================================================================

class SimulateBundleParams(MevShareModel):
    """
    Optional overrides for `mev_simBundle`.

    Block header fields default to values derived from `parent_block`
    (latest block when unset) on the relay side.
    """

    parent_block: Optional[HexQuantity] = None
    block_number: Optional[HexQuantity] = None      # default parent_block + 1
    coinbase: Optional[Address] = None              # default parent coinbase
    timestamp: Optional[HexQuantity] = None         # default parent timestamp + 12
    gas_limit: Optional[HexQuantity] = None
    base_fee: Optional[HexQuantity] = None
    timeout: Optional[int] = None                   # seconds, relay default 5


class BundleLogs(MevShareModel):
    """Logs returned by `mev_simBundle`, nested like the bundle body."""

    tx_logs: Optional[List[Dict[str, Any]]] = None
    bundle_logs: Optional[List["BundleLogs"]] = None


class SimulateBundleResponse(MevShareModel):
    """Result of `mev_simBundle`."""

    success: bool
    error: Optional[str] = None
    state_block: Quantity = 0
    mev_gas_price: Quantity = 0
    profit: Quantity = 0
    refundable_value: Quantity = 0
    gas_used: Quantity = 0
    logs: Optional[List[BundleLogs]] = None


class SendBundleResponse(MevShareModel):
    """Result of `mev_sendBundle`."""

    bundle_hash: TxHash


# =============================================================================
# EVENT STREAM
# =============================================================================

class EventTransaction(MevShareModel):
    """Transaction data disclosed in a MEV-Share event (per its hints)."""

    to: Optional[Address] = None
    function_selector: Optional[HexData] = None
    call_data: Optional[HexData] = None

    @field_validator("function_selector")
    @classmethod
    def _four_bytes(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) != 10:
            raise ValueError(f"Function selector must be 4 bytes: {value}")
        return value


class MevShareEvent(MevShareModel):
    """A transaction or bundle announced on the MEV-Share SSE stream."""

    hash: TxHash
    logs: Optional[List[Dict[str, Any]]] = None
    txs: Optional[List[EventTransaction]] = None
    # change in coinbase value after the tx/bundle, divided by gas used
    mev_gas_price: Optional[Quantity] = None
    # rounded up to 2 significant digits
    gas_used: Optional[Quantity] = None

    def as_transaction(
        self,
    ) -> Optional[Tuple[str, Optional[EventTransaction], Optional[Dict[str, Any]]]]:
        """
        Classify this event as a single transaction.

        A transaction shows up as a bundle of at most one transaction. Events
        listing more than one transaction are ambiguous and return None;
        do not assume they are always bundles.

        Returns:
            (hash, first tx or None, first log or None), or None
        """
        first_log = self.logs[0] if self.logs else None

        if self.txs is None:
            return self.hash, None, first_log
        if len(self.txs) == 1:
            return self.hash, self.txs[0], first_log
        return None

    @property
    def is_transaction(self) -> bool:
        return self.as_transaction() is not None


# =============================================================================
# EVENT HISTORY (REST)
# =============================================================================

class EventHistoryInfo(MevShareModel):
    """Metadata about the event-history endpoint."""

    min_block: Quantity
    max_block: Quantity
    min_timestamp: Quantity
    max_timestamp: Quantity
    count: int
    max_limit: int


class GetEventHistoryParams(MevShareModel):
    """Query for `GET /history`. Only set fields are sent."""

    block_start: Optional[int] = None
    block_end: Optional[int] = None
    timestamp_start: Optional[int] = None
    timestamp_end: Optional[int] = None
    limit: Optional[int] = Field(default=None, ge=0)
    offset: Optional[int] = Field(default=None, ge=0)

    def to_query(self) -> Dict[str, str]:
        """Query-string mapping with camelCase keys."""
        return {
            key: str(value)
            for key, value in self.model_dump(by_alias=True, exclude_none=True).items()
        }


class EventHistoryHint(MevShareModel):
    """Hint data recorded for a historical event."""

    hash: TxHash
    txs: Optional[List[EventTransaction]] = None
    logs: Optional[List[Dict[str, Any]]] = None
    gas_used: Optional[Quantity] = None
    mev_gas_price: Optional[Quantity] = None


class EventHistory(MevShareModel):
    """A past event broadcast on the SSE stream."""

    block: Quantity
    timestamp: Quantity
    hint: EventHistoryHint


EventHistoryList = TypeAdapter(List[EventHistory])


__all__ = [
    "Quantity",
    "HexQuantity",
    "TxHash",
    "HexData",
    "Address",
    "MevShareModel",
    "Privacy",
    "TransactionPreferences",
    "SendTransactionParams",
    "SimulateBundleParams",
    "BundleLogs",
    "SimulateBundleResponse",
    "SendBundleResponse",
    "EventTransaction",
    "MevShareEvent",
    "EventHistoryInfo",
    "GetEventHistoryParams",
    "EventHistoryHint",
    "EventHistory",
    "EventHistoryList",
]
