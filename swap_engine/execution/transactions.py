"""Chain client for sending transactions and tracking their receipts.

All node access goes through the Signer's send_transaction and raw JSON-RPC
request, so the same client works with any wallet the caller supplies.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import structlog

from swap_engine.config import DEFAULT_SWAP_CONFIG, SwapConfig
from swap_engine.errors import to_swap_error
from swap_engine.models.chain import Receipt, to_int
from swap_engine.models.types import normalize_tx_hash
from swap_engine.wallet import Signer

logger = structlog.get_logger()


def _rpc_quantity(value: int) -> str:
    return hex(value)


def to_rpc_transaction(tx: dict[str, Any]) -> dict[str, Any]:
    """Render integer fields as JSON-RPC hex quantities."""
    out: dict[str, Any] = {}
    for key, value in tx.items():
        if isinstance(value, bool):
            out[key] = value
        elif isinstance(value, int):
            out[key] = _rpc_quantity(value)
        else:
            out[key] = value
    return out


class TransactionClient:
    """Sends transactions and waits for confirmed receipts.

    Args:
        signer: The wallet collaborator
        config: Timeouts and poll interval
        sleep: Sleep function (injected in tests)
        clock: Monotonic clock (injected in tests)
    """

    def __init__(
        self,
        signer: Signer,
        config: SwapConfig = DEFAULT_SWAP_CONFIG,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.signer = signer
        self.config = config
        self._sleep = sleep
        self._clock = clock

    @property
    def address(self) -> str:
        return self.signer.get_address()

    def gas_price(self) -> int:
        return to_int(self.signer.request("eth_gasPrice", []))

    def block_number(self) -> int:
        return to_int(self.signer.request("eth_blockNumber", []))

    def estimate_gas(self, tx: dict[str, Any]) -> int:
        rpc_tx = to_rpc_transaction({"from": self.address, **tx})
        return to_int(self.signer.request("eth_estimateGas", [rpc_tx]))

    def send(self, tx: dict[str, Any]) -> str:
        """Broadcast a transaction through the signer and return its hash."""
        return normalize_tx_hash(self.signer.send_transaction(tx))

    def get_receipt(self, tx_hash: str) -> Receipt | None:
        """Fetch a receipt directly; None while the transaction is pending."""
        raw = self.signer.request("eth_getTransactionReceipt", [tx_hash])
        if not raw:
            return None
        return Receipt.from_rpc(raw)

    def wait_for_receipt(
        self,
        tx_hash: str,
        confirmations: int = 1,
        timeout: float | None = None,
    ) -> Receipt:
        """Poll until the transaction is mined with enough confirmations.

        Args:
            tx_hash: Transaction hash
            confirmations: Blocks (including the inclusion block) to wait for
            timeout: Seconds before giving up (default: config.receipt_timeout)

        Raises:
            TimeoutError: If the transaction is not confirmed in time
        """
        timeout = self.config.receipt_timeout if timeout is None else timeout
        deadline = self._clock() + timeout
        while True:
            receipt = self.get_receipt(tx_hash)
            if receipt is not None:
                depth = self.block_number() - receipt.block_number + 1
                if depth >= confirmations:
                    return receipt
            if self._clock() >= deadline:
                raise TimeoutError(
                    f"Transaction {tx_hash} not confirmed after {timeout:.0f}s "
                    f"({confirmations} confirmations)"
                )
            self._sleep(self.config.poll_interval)

    def confirm(self, tx_hash: str, confirmations: int) -> Receipt:
        """Wait for a transaction, double-checking the receipt if waiting fails.

        A transaction can be mined even though the client-side wait raised
        (RPC flakiness, polling timeouts), so a failed wait is followed by one
        direct receipt lookup before the failure is reported.

        Returns:
            The receipt (check `succeeded` for the execution status)

        Raises:
            SwapError: Classified wait error when no receipt can be found
        """
        try:
            return self.wait_for_receipt(tx_hash, confirmations)
        except Exception as wait_error:
            logger.warning(
                "receipt_wait_failed",
                tx_hash=tx_hash,
                confirmations=confirmations,
                error=str(wait_error),
            )
            try:
                receipt = self.get_receipt(tx_hash)
            except Exception as lookup_error:
                logger.warning("receipt_lookup_failed", tx_hash=tx_hash, error=str(lookup_error))
                receipt = None
            if receipt is None:
                raise to_swap_error(wait_error) from wait_error
            logger.info(
                "receipt_recovered_after_wait_error",
                tx_hash=tx_hash,
                status=receipt.status,
                block_number=receipt.block_number,
            )
            return receipt


__all__ = ["TransactionClient", "to_rpc_transaction"]
