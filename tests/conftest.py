"""
Shared fixtures for the MEV-Share client test suite.

FakeChainProvider stands in for a node: tests script which block numbers the
new-heads subscription emits and which receipts or transactions become
visible at each block.
"""

from typing import Any, Callable, Dict, List, Optional

import pytest
from eth_account import Account
from hexbytes import HexBytes

AUTH_KEY = "0x" + "11" * 32


def tx_hash(n: int) -> str:
    return "0x" + f"{n:064x}"


def make_receipt(hash_: str, block_number: int, status: int = 1) -> Dict[str, Any]:
    return {
        "transactionHash": hash_,
        "blockNumber": block_number,
        "status": status,
        "gasUsed": 21000,
    }


class FakeChainProvider:
    """Scriptable ChainProvider."""

    def __init__(self, chain_id: int = 1, block_number: int = 100):
        self.chain_id = chain_id
        self.block_number = block_number
        self.heads: List[int] = []
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.raw_transactions: Dict[str, HexBytes] = {}
        self.scheduled: Dict[int, List[Callable[[], None]]] = {}
        self.subscriptions = 0
        self.closed_subscriptions = 0
        self.receipt_calls = 0

    def emit_blocks(self, first: int, last: int) -> None:
        self.heads.extend(range(first, last + 1))

    def at_block(self, number: int, action: Callable[[], None]) -> None:
        """Run `action` just before block `number` is announced."""
        self.scheduled.setdefault(number, []).append(action)

    def land_receipt(self, number: int, receipt: Dict[str, Any]) -> None:
        key = receipt["transactionHash"]
        self.at_block(number, lambda: self.receipts.__setitem__(key, receipt))

    async def get_chain_id(self) -> int:
        return self.chain_id

    async def get_block_number(self) -> int:
        return self.block_number

    async def get_transaction(self, hash_: str) -> Optional[Dict[str, Any]]:
        return self.transactions.get(hash_)

    async def get_raw_transaction(self, hash_: str) -> Optional[HexBytes]:
        return self.raw_transactions.get(hash_)

    async def get_transaction_receipt(self, hash_: str) -> Optional[Dict[str, Any]]:
        self.receipt_calls += 1
        return self.receipts.get(hash_)

    async def estimate_fees(self):
        return 2 * 10**9, 10**9

    async def subscribe_new_heads(self):
        self.subscriptions += 1
        try:
            for number in self.heads:
                self.block_number = number
                for action in self.scheduled.get(number, []):
                    action()
                yield {"number": number, "hash": tx_hash(number)}
        finally:
            self.closed_subscriptions += 1


@pytest.fixture
def provider():
    return FakeChainProvider()


@pytest.fixture
def auth_signer():
    return Account.from_key(AUTH_KEY)
