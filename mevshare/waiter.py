"""
Inclusion Waiter - watch the chain for submitted transactions and bundles

Polls the chain provider once immediately and then once per new block until
the transaction (or every transaction of a bundle) is visible, or the
maximum block is reached.

Bundle outcome precedence at each poll:
1. every receipt present: success, or BundleRevert if any failed
2. poll for a block at or past max_block: BundleTimeout
3. some receipts present: BundleDiscard
4. otherwise keep waiting

File: mevshare/waiter.py
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from .errors import (
    BundleDiscard,
    BundleRevert,
    BundleTimeout,
    ProviderError,
    TransactionTimeout,
)
from .provider import ChainProvider
from .utils import format_hash, parse_quantity

Fetcher = Callable[[str], Awaitable[Optional[Dict[str, Any]]]]


def included_block(value: Optional[Dict[str, Any]]) -> Optional[int]:
    """Block number of a mined transaction or receipt; None while pending or unknown."""
    if value is None:
        return None
    return parse_quantity(value.get("blockNumber"))


class InclusionWaiter:
    """Resolve pending transactions and bundles against a ChainProvider."""

    def __init__(self, provider: ChainProvider):
        self.provider = provider
        self.logger = logging.getLogger(f"{__name__}.InclusionWaiter")

    # =========================================================================
    # SINGLE TRANSACTION
    # =========================================================================

    async def wait_for_tx(self, tx_hash: str, max_block: int) -> Tuple[Dict[str, Any], int]:
        """Wait for a transaction to be mined. Returns (transaction, block_number)."""
        return await self._wait_for_single(tx_hash, max_block, self.provider.get_transaction)

    async def wait_for_tx_receipt(self, tx_hash: str, max_block: int) -> Tuple[Dict[str, Any], int]:
        """
        Wait for a transaction receipt.

        The first lookup happens immediately, without subscribing to new
        blocks; a receipt found there is returned even if it is past
        `max_block`.

        Args:
            tx_hash: Transaction hash
            max_block: Last block to wait for (inclusive)

        Returns:
            (receipt, block_number)

        Raises:
            TransactionTimeout: No receipt by the first block >= max_block
            ProviderError: Lookup failure, or the block subscription ended
        """
        return await self._wait_for_single(
            tx_hash, max_block, self.provider.get_transaction_receipt
        )

    async def _wait_for_single(
        self, tx_hash: str, max_block: int, fetch: Fetcher
    ) -> Tuple[Dict[str, Any], int]:
        value = await fetch(tx_hash)
        block_number = included_block(value)
        if block_number is not None:
            self.logger.debug(f"{format_hash(tx_hash)} already included in block {block_number}")
            return value, block_number

        self.logger.debug(f"Waiting for {format_hash(tx_hash)} until block {max_block}")

        heads = self.provider.subscribe_new_heads()
        try:
            async for header in heads:
                current_block = header["number"]

                value = await fetch(tx_hash)
                block_number = included_block(value)
                if block_number is not None:
                    self.logger.info(f"{format_hash(tx_hash)} included in block {block_number}")
                    return value, block_number

                if current_block >= max_block:
                    self.logger.info(
                        f"{format_hash(tx_hash)} not included by block {current_block}"
                    )
                    raise TransactionTimeout(tx_hash, current_block)
        finally:
            await _close(heads)

        raise ProviderError("New block subscription ended before the wait completed")

    # =========================================================================
    # BUNDLE
    # =========================================================================

    async def fetch_receipts(self, tx_hashes: Iterable[str]) -> List[Dict[str, Any]]:
        """
        Fetch receipts concurrently; returns the ones that exist, in hash order.

        The first failed lookup cancels the others and is re-raised.
        """
        tasks = [
            asyncio.ensure_future(self.provider.get_transaction_receipt(tx_hash))
            for tx_hash in tx_hashes
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return [receipt for receipt in results if included_block(receipt) is not None]

    async def wait_for_bundle(
        self,
        bundle_hash: str,
        tx_hashes: Iterable[str],
        max_block: int,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Wait for every transaction of a bundle to be included.

        Args:
            bundle_hash: Relay bundle hash, for logging
            tx_hashes: Flattened transaction hashes of the bundle body
            max_block: Last block of the inclusion window (inclusive)

        Returns:
            (receipts, block number of the first receipt)

        Raises:
            BundleRevert: All transactions landed, at least one failed
            BundleTimeout: Not fully included by the first block >= max_block
            BundleDiscard: Only part of the bundle landed before max_block
            ProviderError: Lookup failure, or the block subscription ended
            ValueError: Empty hash list
        """
        tx_hashes = list(tx_hashes)
        if not tx_hashes:
            raise ValueError("Bundle has no transactions to wait for")

        outcome = await self._check_bundle(tx_hashes, max_block, None)
        if outcome is not None:
            return outcome

        self.logger.debug(
            f"Waiting for bundle {format_hash(bundle_hash)} "
            f"({len(tx_hashes)} txs) until block {max_block}"
        )

        heads = self.provider.subscribe_new_heads()
        try:
            async for header in heads:
                outcome = await self._check_bundle(tx_hashes, max_block, header["number"])
                if outcome is not None:
                    self.logger.info(
                        f"Bundle {format_hash(bundle_hash)} included in block {outcome[1]}"
                    )
                    return outcome
        finally:
            await _close(heads)

        raise ProviderError("New block subscription ended before the wait completed")

    async def _check_bundle(
        self,
        tx_hashes: List[str],
        max_block: int,
        block_number: Optional[int],
    ) -> Optional[Tuple[List[Dict[str, Any]], int]]:
        receipts = await self.fetch_receipts(tx_hashes)

        if receipts and len(receipts) == len(tx_hashes):
            if any(parse_quantity(receipt.get("status")) != 1 for receipt in receipts):
                raise BundleRevert(receipts)
            return receipts, included_block(receipts[0])

        if block_number is not None and block_number >= max_block:
            raise BundleTimeout(tx_hashes, block_number, receipts)

        if receipts:
            raise BundleDiscard(receipts)

        return None


async def _close(iterator: Any) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()


__all__ = [
    "InclusionWaiter",
    "included_block",
]
