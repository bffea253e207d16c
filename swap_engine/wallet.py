"""Wallet boundary: the signer/provider interface the engine consumes.

The engine never detects wallets itself. It is handed a Signer; Web3Signer
adapts a web3 connection (with an optional local key) to that interface.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog
from web3 import Web3

from swap_engine.models.types import normalize_address, normalize_tx_hash

if TYPE_CHECKING:
    from eth_account.signers.local import LocalAccount

logger = structlog.get_logger()


class Signer(Protocol):
    """Protocol for the wallet collaborator.

    This allows swapping between a real web3-backed signer and in-memory
    fakes for testing.
    """

    def get_address(self) -> str:
        """Return the connected account address."""
        ...

    def send_transaction(self, tx: dict[str, Any]) -> str:
        """Sign and broadcast a transaction.

        Args:
            tx: Transaction fields (to, data, gas, and either gasPrice/type=0
                for legacy or no fee fields for dynamic fees)

        Returns:
            The transaction hash as 0x-prefixed hex
        """
        ...

    def call(self, tx: dict[str, Any]) -> bytes:
        """Execute a read-only eth_call and return the raw result."""
        ...

    def request(self, method: str, params: list[Any]) -> Any:
        """Issue a raw JSON-RPC request and return its result."""
        ...


class JsonRpcError(Exception):
    """A JSON-RPC error response."""

    def __init__(self, method: str, error: dict[str, Any]) -> None:
        super().__init__(f"{method} failed: {error.get('message', error)}")
        self.code = error.get("code")
        self.data = error.get("data")


class Web3Signer:
    """Signer backed by a web3 HTTP connection.

    With a local account, transactions are signed client-side; without one,
    the node's unlocked account signs (eth_sendTransaction).
    """

    def __init__(
        self,
        rpc_url: str,
        account: LocalAccount | None = None,
        address: str | None = None,
    ) -> None:
        """Initialize the signer.

        Args:
            rpc_url: HTTP RPC URL (e.g., "https://forno.celo.org")
            account: Local account used to sign transactions
            address: Node-managed account to use when no local account is given.
                With neither, the signer can only read (call, request).
        """
        self.w3 = Web3(Web3.HTTPProvider(rpc_url))
        self.account = account
        self._address: str | None = None
        if account is not None:
            self._address = normalize_address(account.address)
        elif address is not None:
            self._address = normalize_address(address, validate=True)

    @classmethod
    def from_private_key(cls, rpc_url: str, private_key: str) -> Web3Signer:
        from eth_account import Account

        return cls(rpc_url, account=Account.from_key(private_key))

    def get_address(self) -> str:
        if self._address is None:
            raise ValueError("No account configured; this signer is read-only")
        return self._address

    def call(self, tx: dict[str, Any]) -> bytes:
        return bytes(self.w3.eth.call(self._checksummed(tx)))

    def request(self, method: str, params: list[Any]) -> Any:
        response = self.w3.provider.make_request(method, params)  # type: ignore[arg-type]
        if response.get("error"):
            raise JsonRpcError(method, dict(response["error"]))
        return response.get("result")

    def send_transaction(self, tx: dict[str, Any]) -> str:
        tx = self._checksummed({**tx, "from": self.get_address()})
        if self.account is None:
            return normalize_tx_hash(self.w3.eth.send_transaction(tx))  # type: ignore[arg-type]

        tx.setdefault("chainId", self.w3.eth.chain_id)
        tx.setdefault(
            "nonce", self.w3.eth.get_transaction_count(tx["from"], "pending")
        )
        if "gas" not in tx:
            tx["gas"] = self.w3.eth.estimate_gas(tx)  # type: ignore[arg-type]
        if "gasPrice" not in tx and "maxFeePerGas" not in tx:
            priority = self.w3.eth.max_priority_fee
            base_fee = self.w3.eth.get_block("latest").get("baseFeePerGas", 0)
            tx["maxPriorityFeePerGas"] = priority
            tx["maxFeePerGas"] = base_fee * 2 + priority

        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.debug("transaction_broadcast", tx_hash=normalize_tx_hash(tx_hash))
        return normalize_tx_hash(tx_hash)

    @staticmethod
    def _checksummed(tx: dict[str, Any]) -> dict[str, Any]:
        out = dict(tx)
        for key in ("to", "from"):
            if key in out and out[key] is not None:
                out[key] = Web3.to_checksum_address(out[key])
        return out


__all__ = ["JsonRpcError", "Signer", "Web3Signer"]
