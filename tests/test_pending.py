"""
Pending Transaction / Pending Bundle - Test Suite

File: tests/test_pending.py
"""

import pytest

from conftest import make_receipt, tx_hash
from mevshare.bundle import NestedBundle, SendBundleParams, SignedTx, TxRef
from mevshare.constants import TX_WAIT_MAX_BLOCKS
from mevshare.errors import BundleTimeout, TransactionRevert, TransactionTimeout
from mevshare.pending import PendingBundle, PendingTransaction
from mevshare.waiter import InclusionWaiter


class TestPendingTransaction:

    @pytest.mark.asyncio
    async def test_inclusion_returns_receipt(self, provider):
        provider.receipts[tx_hash(1)] = make_receipt(tx_hash(1), 101)
        pending = PendingTransaction(hash=tx_hash(1), waiter=InclusionWaiter(provider), max_block=110)

        receipt, block = await pending.inclusion()

        assert block == 101
        assert receipt["status"] == 1

    @pytest.mark.asyncio
    async def test_default_window_is_current_block_plus_limit(self, provider):
        provider.block_number = 100
        provider.emit_blocks(101, 200)
        pending = PendingTransaction(hash=tx_hash(1), waiter=InclusionWaiter(provider))

        with pytest.raises(TransactionTimeout) as exc_info:
            await pending.inclusion()

        assert exc_info.value.block_number == 100 + TX_WAIT_MAX_BLOCKS

    @pytest.mark.asyncio
    async def test_failed_status_raises_revert(self, provider):
        provider.receipts[tx_hash(1)] = make_receipt(tx_hash(1), 101, status=0)
        pending = PendingTransaction(hash=tx_hash(1), waiter=InclusionWaiter(provider), max_block=110)

        with pytest.raises(TransactionRevert) as exc_info:
            await pending.inclusion()

        assert exc_info.value.receipt["status"] == 0

    @pytest.mark.asyncio
    async def test_inclusion_can_be_called_again(self, provider):
        provider.receipts[tx_hash(1)] = make_receipt(tx_hash(1), 101)
        pending = PendingTransaction(hash=tx_hash(1), waiter=InclusionWaiter(provider), max_block=110)

        first = await pending.inclusion()
        second = await pending.inclusion()

        assert first == second
        assert provider.receipt_calls == 2


class TestPendingBundle:

    @staticmethod
    def _bundle(max_block=None):
        inner = SendBundleParams.build([SignedTx(tx="0x02f801"), TxRef(hash=tx_hash(9))], block=100)
        return SendBundleParams.build(
            [TxRef(hash=tx_hash(1)), NestedBundle(bundle=inner)],
            block=100,
            max_block=max_block,
        )

    def test_hashes_and_window_come_from_request(self, provider):
        request = self._bundle(max_block=103)
        pending = PendingBundle(hash="0x" + "cd" * 32, request=request, waiter=InclusionWaiter(provider))

        assert pending.tx_hashes() == list(request.hashes())
        assert len(pending.tx_hashes()) == 3
        assert pending.max_block == 103

    def test_window_defaults_to_target_block(self, provider):
        pending = PendingBundle(hash="0x" + "cd" * 32, request=self._bundle(), waiter=InclusionWaiter(provider))

        assert pending.max_block == 100

    @pytest.mark.asyncio
    async def test_inclusion_waits_on_every_flattened_hash(self, provider):
        request = self._bundle(max_block=103)
        hashes = list(request.hashes())
        provider.emit_blocks(101, 105)
        for h in hashes:
            provider.land_receipt(102, make_receipt(h, 102))

        pending = PendingBundle(hash="0x" + "cd" * 32, request=request, waiter=InclusionWaiter(provider))
        receipts, block = await pending.inclusion()

        assert block == 102
        assert [r["transactionHash"] for r in receipts] == hashes

    @pytest.mark.asyncio
    async def test_inclusion_times_out_at_effective_max_block(self, provider):
        provider.emit_blocks(101, 105)
        pending = PendingBundle(hash="0x" + "cd" * 32, request=self._bundle(), waiter=InclusionWaiter(provider))

        with pytest.raises(BundleTimeout) as exc_info:
            await pending.inclusion()

        # first block >= target block 100
        assert exc_info.value.block_number == 101
