"""Broker and ERC20 contract gateways.

Reads go through the signer's eth_call; writes are returned as unsigned
transaction dicts for the executor to send with its transaction profile.
Calldata is built from 4-byte selectors and eth_abi encoding.
"""

from __future__ import annotations

from typing import Any, Protocol

import structlog
from eth_abi import decode, encode  # type: ignore[attr-defined]
from web3 import Web3

from swap_engine.models.chain import Receipt
from swap_engine.models.routing import Exchange
from swap_engine.models.types import normalize_address
from swap_engine.wallet import Signer

logger = structlog.get_logger()


def selector(signature: str) -> bytes:
    """Return the 4-byte function selector for a canonical signature."""
    return bytes(Web3.keccak(text=signature)[:4])


# Broker
GET_EXCHANGE_PROVIDERS_SELECTOR = selector("getExchangeProviders()")
GET_AMOUNT_OUT_SELECTOR = selector("getAmountOut(address,bytes32,address,address,uint256)")
SWAP_IN_SELECTOR = selector("swapIn(address,bytes32,address,address,uint256,uint256)")

# Exchange provider
GET_EXCHANGES_SELECTOR = selector("getExchanges()")

# ERC20
BALANCE_OF_SELECTOR = selector("balanceOf(address)")
ALLOWANCE_SELECTOR = selector("allowance(address,address)")
APPROVE_SELECTOR = selector("approve(address,uint256)")
DECIMALS_SELECTOR = selector("decimals()")

# Transfer(address indexed from, address indexed to, uint256 value)
TRANSFER_TOPIC = "0x" + Web3.keccak(text="Transfer(address,address,uint256)").hex().removeprefix(
    "0x"
)


def _exchange_id_bytes(exchange_id: str) -> bytes:
    return bytes.fromhex(exchange_id.removeprefix("0x").rjust(64, "0"))


def _calldata(fn_selector: bytes, types: list[str], args: list[Any]) -> str:
    return "0x" + (fn_selector + encode(types, args)).hex()


def _topic_address(topic: str) -> str:
    # Indexed addresses are left-padded to 32 bytes
    return normalize_address("0x" + topic[-40:])


class BrokerGateway(Protocol):
    """Read/write surface of the broker and its exchange providers."""

    @property
    def address(self) -> str: ...

    def get_exchange_providers(self) -> list[str]: ...

    def get_exchanges(self, provider: str) -> list[Exchange]: ...

    def get_amount_out(
        self,
        provider: str,
        exchange_id: str,
        asset_in: str,
        asset_out: str,
        amount_in: int,
    ) -> int: ...

    def build_swap_in(
        self,
        provider: str,
        exchange_id: str,
        asset_in: str,
        asset_out: str,
        amount_in: int,
        min_amount_out: int,
    ) -> dict[str, Any]: ...


class TokenGateway(Protocol):
    """ERC20 reads and approve transaction building."""

    def allowance(self, token: str, owner: str, spender: str) -> int: ...

    def balance_of(self, token: str, owner: str) -> int: ...

    def decimals(self, token: str) -> int: ...

    def build_approve(self, token: str, spender: str, amount: int) -> dict[str, Any]: ...


class BrokerContract:
    """Broker gateway backed by eth_call through a Signer."""

    def __init__(self, signer: Signer, broker_address: str) -> None:
        self._signer = signer
        self._address = normalize_address(broker_address, validate=True)

    @property
    def address(self) -> str:
        return self._address

    def _call(self, to: str, data: str) -> bytes:
        return bytes(self._signer.call({"to": to, "data": data}))

    def get_exchange_providers(self) -> list[str]:
        raw = self._call(self._address, "0x" + GET_EXCHANGE_PROVIDERS_SELECTOR.hex())
        (providers,) = decode(["address[]"], raw)
        return [normalize_address(p) for p in providers]

    def get_exchanges(self, provider: str) -> list[Exchange]:
        raw = self._call(normalize_address(provider), "0x" + GET_EXCHANGES_SELECTOR.hex())
        (entries,) = decode(["(bytes32,address[])[]"], raw)
        logger.debug("provider_exchanges_read", provider=provider, count=len(entries))
        return [
            Exchange.create(provider, exchange_id, list(assets)) for exchange_id, assets in entries
        ]

    def get_amount_out(
        self,
        provider: str,
        exchange_id: str,
        asset_in: str,
        asset_out: str,
        amount_in: int,
    ) -> int:
        data = _calldata(
            GET_AMOUNT_OUT_SELECTOR,
            ["address", "bytes32", "address", "address", "uint256"],
            [
                normalize_address(provider),
                _exchange_id_bytes(exchange_id),
                normalize_address(asset_in),
                normalize_address(asset_out),
                amount_in,
            ],
        )
        (amount_out,) = decode(["uint256"], self._call(self._address, data))
        return int(amount_out)

    def build_swap_in(
        self,
        provider: str,
        exchange_id: str,
        asset_in: str,
        asset_out: str,
        amount_in: int,
        min_amount_out: int,
    ) -> dict[str, Any]:
        data = _calldata(
            SWAP_IN_SELECTOR,
            ["address", "bytes32", "address", "address", "uint256", "uint256"],
            [
                normalize_address(provider),
                _exchange_id_bytes(exchange_id),
                normalize_address(asset_in),
                normalize_address(asset_out),
                amount_in,
                min_amount_out,
            ],
        )
        return {"to": self._address, "data": data}


class Erc20Contracts:
    """Token gateway for any ERC20, backed by eth_call through a Signer."""

    def __init__(self, signer: Signer) -> None:
        self._signer = signer

    def _call_uint(self, token: str, data: str) -> int:
        raw = bytes(self._signer.call({"to": normalize_address(token), "data": data}))
        (value,) = decode(["uint256"], raw)
        return int(value)

    def allowance(self, token: str, owner: str, spender: str) -> int:
        data = _calldata(
            ALLOWANCE_SELECTOR,
            ["address", "address"],
            [normalize_address(owner), normalize_address(spender)],
        )
        return self._call_uint(token, data)

    def balance_of(self, token: str, owner: str) -> int:
        data = _calldata(BALANCE_OF_SELECTOR, ["address"], [normalize_address(owner)])
        return self._call_uint(token, data)

    def decimals(self, token: str) -> int:
        return self._call_uint(token, "0x" + DECIMALS_SELECTOR.hex())

    def build_approve(self, token: str, spender: str, amount: int) -> dict[str, Any]:
        data = _calldata(
            APPROVE_SELECTOR, ["address", "uint256"], [normalize_address(spender), amount]
        )
        return {"to": normalize_address(token), "data": data}


def transferred_to(receipt: Receipt, token: str, recipient: str) -> int | None:
    """Sum the ERC20 Transfer amounts of `token` paid to `recipient` in a receipt.

    Returns:
        Total amount received, or None if the receipt holds no matching transfer
    """
    token = normalize_address(token)
    recipient = normalize_address(recipient)
    total = 0
    found = False
    for log in receipt.logs:
        if log.address != token or len(log.topics) != 3:
            continue
        if log.topics[0] != TRANSFER_TOPIC:
            continue
        if _topic_address(log.topics[2]) != recipient:
            continue
        (value,) = decode(["uint256"], bytes.fromhex(log.data.removeprefix("0x")))
        total += int(value)
        found = True
    return total if found else None


__all__ = [
    "BrokerContract",
    "BrokerGateway",
    "Erc20Contracts",
    "TRANSFER_TOPIC",
    "TokenGateway",
    "selector",
    "transferred_to",
]
