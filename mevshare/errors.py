"""
MEV-Share Client Exceptions

Typed failures surfaced by the relay client, the event stream and the
inclusion waiter. Transport, deserialization and JSON-RPC protocol errors are
kept as separate types so callers can tell a dead network from a relay that
rejected their request. Inclusion outcomes (timeout, revert, discard) share
the InclusionError base: they are classifications of on-chain state, not
transport failures.

File: mevshare/errors.py
"""

from typing import Any, Dict, List, Optional, Sequence

from web3.types import TxReceipt

from .utils import parse_quantity


class MevShareError(Exception):
    """Base class for every error raised by the mevshare package."""


# =============================================================================
# CONFIGURATION & TRANSPORT
# =============================================================================

class UnsupportedNetwork(MevShareError):
    """The chain id has no known MEV-Share endpoints."""

    def __init__(self, chain_id: Any):
        self.chain_id = chain_id
        super().__init__(f"Unsupported MEV-Share network: chain_id={chain_id}")


class TransportError(MevShareError):
    """HTTP, SSE or network layer failure."""


class ResponseDeserializationError(MevShareError):
    """The relay answered, but the body is not the JSON we expected."""

    def __init__(self, text: str, reason: Optional[str] = None):
        self.text = text
        self.reason = reason
        message = f"Failed to deserialize relay response: {text[:200]!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class RpcError(MevShareError):
    """Well-formed JSON-RPC error response returned by the relay."""

    def __init__(self, message: str, code: Optional[int] = None, method: Optional[str] = None):
        self.code = code
        self.message = message
        self.method = method
        prefix = f"{method}: " if method else ""
        suffix = f" (code {code})" if code is not None else ""
        super().__init__(f"{prefix}{message}{suffix}")

    @classmethod
    def from_payload(cls, error: Any, method: Optional[str] = None) -> "RpcError":
        """
        Build an RpcError from the `error` member of a JSON-RPC response.

        The relay sometimes answers with a bare string instead of the
        `{code, message}` object.
        """
        if isinstance(error, dict):
            return cls(
                message=str(error.get("message", "Unknown relay error")),
                code=error.get("code"),
                method=method,
            )
        return cls(message=str(error), method=method)


class SigningError(MevShareError):
    """The auth signer could not sign the request body."""


class ProviderError(MevShareError):
    """The chain-RPC provider failed (lookup, subscription or connection)."""


# =============================================================================
# INCLUSION OUTCOMES
# =============================================================================

class InclusionError(MevShareError):
    """Base class for terminal outcomes of an inclusion wait."""


class TransactionTimeout(InclusionError):
    """The transaction did not land before the maximum block."""

    def __init__(self, tx_hash: str, block_number: int):
        self.tx_hash = tx_hash
        self.block_number = block_number
        super().__init__(
            f"Transaction {tx_hash} not included by block {block_number}"
        )


class TransactionRevert(InclusionError):
    """The transaction landed with a failing status."""

    def __init__(self, receipt: TxReceipt):
        self.receipt = receipt
        super().__init__(
            f"Transaction {_receipt_hash(receipt)} reverted "
            f"in block {receipt.get('blockNumber')}"
        )


class BundleTimeout(InclusionError):
    """
    The bundle was not fully included before the maximum block.

    `receipts` holds whatever landed by the time the deadline was observed
    (usually nothing).
    """

    def __init__(
        self,
        tx_hashes: Sequence[str],
        block_number: int,
        receipts: Optional[List[TxReceipt]] = None,
    ):
        self.tx_hashes = list(tx_hashes)
        self.block_number = block_number
        self.receipts = list(receipts or [])
        super().__init__(
            f"Bundle of {len(self.tx_hashes)} transactions not included by block "
            f"{block_number} ({len(self.receipts)} landed)"
        )


class BundleRevert(InclusionError):
    """Every transaction landed, but at least one reverted."""

    def __init__(self, receipts: List[TxReceipt]):
        self.receipts = list(receipts)
        reverted = [_receipt_hash(r) for r in self.receipts if parse_quantity(r.get("status")) != 1]
        super().__init__(f"Bundle reverted: {', '.join(reverted)}")

    @property
    def reverted(self) -> List[TxReceipt]:
        return [r for r in self.receipts if parse_quantity(r.get("status")) != 1]


class BundleDiscard(InclusionError):
    """Only part of the bundle landed: it was broken apart."""

    def __init__(self, receipts: List[TxReceipt]):
        self.receipts = list(receipts)
        super().__init__(
            f"Bundle discarded: only {len(self.receipts)} transactions landed"
        )


def _receipt_hash(receipt: Dict[str, Any]) -> str:
    tx_hash = receipt.get("transactionHash")
    if isinstance(tx_hash, (bytes, bytearray)):
        return "0x" + bytes(tx_hash).hex()
    return str(tx_hash)


__all__ = [
    "MevShareError",
    "UnsupportedNetwork",
    "TransportError",
    "ResponseDeserializationError",
    "RpcError",
    "SigningError",
    "ProviderError",
    "InclusionError",
    "TransactionTimeout",
    "TransactionRevert",
    "BundleTimeout",
    "BundleRevert",
    "BundleDiscard",
]
