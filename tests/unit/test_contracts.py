"""Unit tests for broker/ERC20 calldata encoding and result decoding."""

from typing import Any

import pytest
from eth_abi import decode, encode

from swap_engine.contracts import (
    ALLOWANCE_SELECTOR,
    APPROVE_SELECTOR,
    GET_AMOUNT_OUT_SELECTOR,
    GET_EXCHANGES_SELECTOR,
    SWAP_IN_SELECTOR,
    BrokerContract,
    Erc20Contracts,
    selector,
    transferred_to,
)
from swap_engine.models.chain import Receipt
from tests.helpers import BROKER, CEUR, CUSD, OWNER, PROVIDER_A, PROVIDER_B, transfer_log


class ScriptedSigner:
    """Signer whose eth_call results are scripted per calldata selector."""

    def __init__(self, results: dict[bytes, bytes]) -> None:
        self.results = results
        self.calls: list[dict[str, Any]] = []

    def get_address(self) -> str:
        return OWNER

    def send_transaction(self, tx: dict[str, Any]) -> str:
        raise NotImplementedError

    def request(self, method: str, params: list[Any]) -> Any:
        raise NotImplementedError

    def call(self, tx: dict[str, Any]) -> bytes:
        self.calls.append(tx)
        data = bytes.fromhex(tx["data"][2:])
        return self.results[data[:4]]


def _args(data: str, types: list[str]) -> tuple:
    return decode(types, bytes.fromhex(data[2:])[4:])


class TestSelectors:
    """Selectors are the well-known 4-byte keccak prefixes."""

    def test_known_selectors(self):
        assert selector("approve(address,uint256)").hex() == "095ea7b3"
        assert selector("balanceOf(address)").hex() == "70a08231"
        assert APPROVE_SELECTOR.hex() == "095ea7b3"
        assert ALLOWANCE_SELECTOR.hex() == "dd62ed3e"


class TestBrokerContract:
    """Tests for broker reads and swapIn calldata."""

    def test_exchange_providers(self):
        signer = ScriptedSigner(
            {selector("getExchangeProviders()"): encode(["address[]"], [[PROVIDER_A, PROVIDER_B]])}
        )
        broker = BrokerContract(signer, BROKER)

        assert broker.get_exchange_providers() == [PROVIDER_A, PROVIDER_B]
        assert signer.calls[0]["to"] == BROKER

    def test_get_exchanges_decodes_pairs(self):
        exchange_id = bytes.fromhex("ab" * 32)
        signer = ScriptedSigner(
            {
                GET_EXCHANGES_SELECTOR: encode(
                    ["(bytes32,address[])[]"], [[(exchange_id, [CUSD, CEUR])]]
                )
            }
        )
        broker = BrokerContract(signer, BROKER)

        (exchange,) = broker.get_exchanges(PROVIDER_A)

        assert exchange.provider == PROVIDER_A
        assert exchange.exchange_id == "0x" + "ab" * 32
        assert exchange.assets == frozenset({CUSD, CEUR})
        assert signer.calls[0]["to"] == PROVIDER_A

    def test_get_amount_out_encodes_arguments(self):
        signer = ScriptedSigner({GET_AMOUNT_OUT_SELECTOR: encode(["uint256"], [920])})
        broker = BrokerContract(signer, BROKER)

        amount = broker.get_amount_out(PROVIDER_A, "0x" + "01" * 32, CUSD, CEUR, 1000)

        assert amount == 920
        provider, exchange_id, asset_in, asset_out, amount_in = _args(
            signer.calls[0]["data"], ["address", "bytes32", "address", "address", "uint256"]
        )
        assert provider.lower() == PROVIDER_A
        assert exchange_id == bytes.fromhex("01" * 32)
        assert (asset_in.lower(), asset_out.lower(), amount_in) == (CUSD, CEUR, 1000)

    def test_build_swap_in(self):
        broker = BrokerContract(ScriptedSigner({}), BROKER)

        tx = broker.build_swap_in(PROVIDER_A, "0x" + "01" * 32, CUSD, CEUR, 1000, 990)

        assert tx["to"] == BROKER
        assert tx["data"].startswith("0x" + SWAP_IN_SELECTOR.hex())
        args = _args(tx["data"], ["address", "bytes32", "address", "address", "uint256", "uint256"])
        assert args[4:] == (1000, 990)

    def test_rejects_invalid_broker_address(self):
        with pytest.raises(ValueError):
            BrokerContract(ScriptedSigner({}), "0x1234")


class TestErc20Contracts:
    """Tests for ERC20 reads and approve calldata."""

    def test_allowance(self):
        signer = ScriptedSigner({ALLOWANCE_SELECTOR: encode(["uint256"], [77])})
        tokens = Erc20Contracts(signer)

        assert tokens.allowance(CUSD, OWNER, BROKER) == 77
        owner, spender = _args(signer.calls[0]["data"], ["address", "address"])
        assert (owner.lower(), spender.lower()) == (OWNER, BROKER)
        assert signer.calls[0]["to"] == CUSD

    def test_build_approve_is_exact_amount(self):
        tokens = Erc20Contracts(ScriptedSigner({}))

        tx = tokens.build_approve(CUSD, BROKER, 12345)

        assert tx["to"] == CUSD
        spender, amount = _args(tx["data"], ["address", "uint256"])
        assert spender.lower() == BROKER
        assert amount == 12345


class TestTransferredTo:
    """Tests for reading actual output from Transfer logs."""

    def _receipt(self, logs):
        return Receipt.from_rpc(
            {
                "transactionHash": "0x" + "11" * 32,
                "status": "0x1",
                "blockNumber": "0x10",
                "logs": logs,
            }
        )

    def test_sums_matching_transfers(self):
        receipt = self._receipt(
            [
                transfer_log(CUSD, OWNER, BROKER, 1000),
                transfer_log(CEUR, BROKER, OWNER, 600),
                transfer_log(CEUR, BROKER, OWNER, 320),
            ]
        )

        assert transferred_to(receipt, CEUR, OWNER) == 920

    def test_ignores_other_tokens_and_recipients(self):
        receipt = self._receipt(
            [
                transfer_log(CUSD, OWNER, BROKER, 1000),
                transfer_log(CEUR, BROKER, PROVIDER_A, 5),
            ]
        )

        assert transferred_to(receipt, CEUR, OWNER) is None
