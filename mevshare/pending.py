"""
Pending submissions returned by the MEV-Share client.

A PendingTransaction or PendingBundle is created right after the relay
accepts a submission. Each has a single operation, `inclusion()`, which
waits on chain for the outcome. Calling it twice runs the wait twice.

File: mevshare/pending.py
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .bundle import SendBundleParams
from .constants import TX_WAIT_MAX_BLOCKS
from .errors import TransactionRevert
from .utils import parse_quantity
from .waiter import InclusionWaiter


@dataclass
class PendingTransaction:
    """A private transaction accepted by the relay."""

    hash: str
    waiter: InclusionWaiter
    max_block: Optional[int] = None

    async def inclusion(self) -> Tuple[Dict[str, Any], int]:
        """
        Wait until the transaction is mined.

        Without `max_block`, waits until the current block plus
        TX_WAIT_MAX_BLOCKS.

        Returns:
            (receipt, block_number)

        Raises:
            TransactionTimeout: Not mined in time
            TransactionRevert: Mined with a failing status
        """
        max_block = self.max_block
        if max_block is None:
            max_block = await self.waiter.provider.get_block_number() + TX_WAIT_MAX_BLOCKS

        receipt, block_number = await self.waiter.wait_for_tx_receipt(self.hash, max_block)
        if parse_quantity(receipt.get("status")) != 1:
            raise TransactionRevert(receipt)
        return receipt, block_number


@dataclass
class PendingBundle:
    """A bundle accepted by the relay."""

    hash: str
    request: SendBundleParams
    waiter: InclusionWaiter

    @property
    def max_block(self) -> int:
        return self.request.inclusion.effective_max_block

    def tx_hashes(self) -> List[str]:
        return list(self.request.hashes())

    async def inclusion(self) -> Tuple[List[Dict[str, Any]], int]:
        """
        Wait until every transaction of the bundle is mined.

        Returns:
            (receipts, block number of the first receipt)

        Raises:
            BundleTimeout, BundleRevert, BundleDiscard
            ValueError: The bundle body has no transactions
        """
        return await self.waiter.wait_for_bundle(self.hash, self.tx_hashes(), self.max_block)


__all__ = ["PendingTransaction", "PendingBundle"]
