"""
Bundle Data Model - MEV-Share Bundle Composition

A bundle is an ordered body of elements, each either a reference to a
transaction the relay already knows (by hash), a fully signed transaction, or
a nested sub-bundle of the same shape. This module defines those models, the
inclusion window, the refund/privacy/metadata settings, and the iterator that
flattens a (possibly deeply nested) body into the transaction hashes the
bundle depends on.

Key rules:
- A bundle containing any hash reference cannot carry privacy settings
- Bundles are immutable; build a new value to resubmit
- Flattening is depth-first, left-to-right, pre-order, without recursion

File: mevshare/bundle.py
"""

from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from eth_utils import keccak, to_hex
from hexbytes import HexBytes
from pydantic import Field, model_validator

from .constants import BUNDLE_VERSION
from .schemas import Address, HexData, HexQuantity, MevShareModel, Privacy, TxHash


# =============================================================================
# BODY ELEMENTS
# =============================================================================

class TxRef(MevShareModel):
    """A transaction the relay already knows, referenced by hash (e.g. from the event stream)."""

    hash: TxHash

    def tx_hash(self) -> str:
        return self.hash


class SignedTx(MevShareModel):
    """A signed, ready-to-broadcast transaction."""

    tx: HexData
    can_revert: bool = False

    @property
    def raw(self) -> HexBytes:
        return HexBytes(self.tx)

    def tx_hash(self) -> str:
        """keccak256 of the raw signed bytes. Recomputed on every call."""
        return to_hex(keccak(hexstr=self.tx))


class NestedBundle(MevShareModel):
    """A sub-bundle, with the same recursive shape as its parent."""

    bundle: "SendBundleParams"


Body = Union[TxRef, SignedTx, NestedBundle]
Leaf = Union[TxRef, SignedTx]


# =============================================================================
# CONSTRAINTS & SETTINGS
# =============================================================================

class Inclusion(MevShareModel):
    """Block window in which the relay should try to include the bundle."""

    block: HexQuantity
    max_block: Optional[HexQuantity] = None

    @model_validator(mode="after")
    def _check_window(self) -> "Inclusion":
        if self.max_block is not None and self.max_block < self.block:
            raise ValueError(
                f"max_block {self.max_block} is lower than target block {self.block}"
            )
        return self

    @property
    def effective_max_block(self) -> int:
        """Last block of the window; the target block when max_block is unset."""
        return self.max_block if self.max_block is not None else self.block


class Refund(MevShareModel):
    """Minimum refund percentage required for body entry `body_idx` to be used by another searcher."""

    body_idx: int = Field(ge=0)
    percent: int = Field(ge=0, le=100)


class RefundConfig(MevShareModel):
    """Share of the refund paid to `address`. Use 100 unless splitting between recipients."""

    address: Address
    percent: int = Field(ge=0, le=100)


class Validity(MevShareModel):
    """Conditions evaluated after the bundle is placed in a block."""

    refund: Tuple[Refund, ...] = ()
    refund_config: Tuple[RefundConfig, ...] = ()


class Metadata(MevShareModel):
    origin_id: Optional[str] = None


# =============================================================================
# BUNDLE
# =============================================================================

class SendBundleParams(MevShareModel):
    """
    Parameters for `mev_sendBundle`: a bundle body plus its constraints.

    Raises a validation error on construction when privacy settings are
    combined with any hash reference in the body, at any nesting depth.
    """

    version: str = BUNDLE_VERSION
    inclusion: Inclusion
    body: Tuple[Body, ...]
    validity: Optional[Validity] = None
    privacy: Optional[Privacy] = None
    metadata: Optional[Metadata] = None

    @model_validator(mode="after")
    def _check_privacy(self) -> "SendBundleParams":
        if self.privacy is not None and self.has_tx_refs():
            raise ValueError(
                "Bundles containing transaction hash references cannot set privacy"
            )
        return self

    def hashes(self) -> "BodyHashIterator":
        """Fresh iterator over the transaction hashes this bundle depends on."""
        return BodyHashIterator(self.body)

    def has_tx_refs(self) -> bool:
        return any(isinstance(leaf, TxRef) for leaf in iter_body_leaves(self.body))

    def with_body(self, body: Iterable[Body]) -> "SendBundleParams":
        """Copy of this bundle with a replaced body, revalidated."""
        return self.model_validate({**dict(self), "body": tuple(body)})

    @classmethod
    def build(
        cls,
        body: Iterable[Body],
        block: int,
        max_block: Optional[int] = None,
        *,
        hints: Optional[Any] = None,
        builders: Optional[Any] = None,
        refund: Optional[Sequence[Refund]] = None,
        refund_config: Optional[Sequence[RefundConfig]] = None,
        origin_id: Optional[str] = None,
        version: str = BUNDLE_VERSION,
    ) -> "SendBundleParams":
        """
        Validating constructor.

        Args:
            body: Body elements (TxRef, SignedTx, NestedBundle)
            block: Target block
            max_block: Last block to try; defaults to `block` on the relay
            hints: HintPreference values to share. Sets `privacy`
            builders: Builder names allowed to receive the bundle. Sets `privacy`
            refund: Refund percentages per body index. Sets `validity`
            refund_config: Refund recipients. Sets `validity`
            origin_id: Origin tag. Sets `metadata`
            version: Bundle format version

        Returns:
            SendBundleParams

        Raises:
            pydantic.ValidationError: On invalid values, or privacy settings
                combined with hash references
        """
        privacy = None
        if hints is not None or builders is not None:
            privacy = Privacy(
                hints=frozenset(hints) if hints is not None else None,
                builders=builders,
            )

        validity = None
        if refund or refund_config:
            validity = Validity(refund=tuple(refund or ()), refund_config=tuple(refund_config or ()))

        metadata = Metadata(origin_id=origin_id) if origin_id is not None else None

        return cls(
            version=version,
            inclusion=Inclusion(block=block, max_block=max_block),
            body=tuple(body),
            validity=validity,
            privacy=privacy,
            metadata=metadata,
        )


NestedBundle.model_rebuild()
SendBundleParams.model_rebuild()


# =============================================================================
# FLATTENING
# =============================================================================

def iter_body_leaves(body: Sequence[Body]) -> Iterator[Leaf]:
    """
    Yield the leaf elements (TxRef, SignedTx) of a body in pre-order.

    Nested bundles are expanded in place using an explicit stack of sibling
    iterators, so arbitrarily deep nesting does not grow the call stack.
    """
    stack: List[Iterator[Body]] = [iter(body)]
    while stack:
        element = next(stack[-1], None)
        if element is None:
            stack.pop()
        elif isinstance(element, NestedBundle):
            stack.append(iter(element.bundle.body))
        else:
            yield element


class BodyHashIterator:
    """
    Lazy, finite, single-pass iterator over the transaction hashes of a body.

    Order is depth-first, left-to-right, pre-order:
    - TxRef yields its stored hash
    - SignedTx yields keccak256 of its raw bytes
    - NestedBundle is expanded before its following siblings

    Duplicates are yielded as often as they appear.
    """

    def __init__(self, body: Sequence[Body]):
        self._leaves = iter_body_leaves(body)

    def __iter__(self) -> "BodyHashIterator":
        return self

    def __next__(self) -> str:
        return next(self._leaves).tx_hash()


__all__ = [
    "TxRef",
    "SignedTx",
    "NestedBundle",
    "Body",
    "Inclusion",
    "Refund",
    "RefundConfig",
    "Validity",
    "Metadata",
    "SendBundleParams",
    "BodyHashIterator",
    "iter_body_leaves",
]
