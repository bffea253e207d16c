"""Unit tests for the transaction client and receipt handling."""

import pytest

from swap_engine.config import SwapConfig
from swap_engine.errors import ErrorKind, SwapError
from swap_engine.execution.transactions import TransactionClient, to_rpc_transaction
from tests.helpers import FakeClock, FakeChain


def _send(chain: FakeChain) -> str:
    return chain.send_transaction({"to": "0x" + "00" * 20, "data": "0x", "gas": 21_000})


class TestToRpcTransaction:
    def test_ints_become_hex(self):
        rpc = to_rpc_transaction({"to": "0xabc", "gas": 21_000, "gasPrice": 10, "type": 0})

        assert rpc == {"to": "0xabc", "gas": "0x5208", "gasPrice": "0xa", "type": "0x0"}


class TestTransactionClient:
    def test_reads(self, chain, transactions):
        chain.gas_price = 7
        assert transactions.gas_price() == 7

        tx = {"to": "0x" + "00" * 20, "data": "0x"}

        assert transactions.estimate_gas(tx) == chain.estimated_gas
        assert transactions.address == chain.owner

    def test_pending_receipt_is_none(self, chain, transactions):
        tx_hash = _send(chain)
        chain.pending.add(tx_hash)

        assert transactions.get_receipt(tx_hash) is None

    def test_wait_for_confirmations(self, chain, transactions):
        tx_hash = _send(chain)

        receipt = transactions.wait_for_receipt(tx_hash, confirmations=2)

        assert receipt.tx_hash == tx_hash
        assert receipt.succeeded

    def test_wait_times_out(self, chain):
        clock = FakeClock()
        client = TransactionClient(
            chain, SwapConfig(receipt_timeout=10, poll_interval=2), sleep=clock.sleep, clock=clock
        )
        tx_hash = _send(chain)
        chain.pending.add(tx_hash)

        with pytest.raises(TimeoutError):
            client.wait_for_receipt(tx_hash)
        assert sum(clock.sleeps) >= 10

    def test_confirm_rescues_receipt_after_wait_error(self, chain, transactions):
        """A failed wait is followed by a direct lookup before giving up."""
        tx_hash = _send(chain)
        chain.receipt_errors = 1

        receipt = transactions.confirm(tx_hash, confirmations=1)

        assert receipt.succeeded
        assert receipt.tx_hash == tx_hash

    def test_confirm_raises_classified_error_without_receipt(self, chain, transactions):
        tx_hash = _send(chain)
        chain.pending.add(tx_hash)

        with pytest.raises(SwapError) as exc_info:
            transactions.confirm(tx_hash, confirmations=1)
        assert exc_info.value.kind is ErrorKind.NETWORK_TIMEOUT

    def test_confirm_returns_reverted_receipt(self, chain, transactions):
        tx_hash = chain.send_transaction({"to": "0x" + "00" * 20, "data": "0xrevert"})
        chain.receipts[tx_hash]["status"] = "0x0"

        receipt = transactions.confirm(tx_hash, confirmations=1)

        assert not receipt.succeeded
