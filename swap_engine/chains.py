"""Chain configuration and the runtime Environment supplier.

The Environment decides which transaction profile the executor uses and how
many confirmations it waits for. Chain-specific decisions are data here, not
control flow in the executor.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from swap_engine.constants import (
    ALFAJORES_CHAIN_ID,
    CELO_MAINNET_CHAIN_ID,
    MAINNET_CONFIRMATIONS,
    MENTO_BROKER_ALFAJORES,
    MENTO_BROKER_MAINNET,
    TESTNET_CONFIRMATIONS,
)
from swap_engine.errors import ErrorKind, SwapError


class FeeModel(str, Enum):
    """How transaction fees are specified."""

    LEGACY = "legacy"  # type 0, explicit gasPrice
    DYNAMIC = "dynamic"  # EIP-1559, fees filled by the wallet


@dataclass(frozen=True)
class ChainConfig:
    """Static per-chain settings.

    Attributes:
        chain_id: EVM chain id
        name: Short network name used in URLs and the CLI (e.g. "celo")
        is_testnet: Whether this is a test network
        broker_address: Broker contract address (lowercase)
        hub_symbol: Reserve asset used as the intermediate hop
        default_rpc_url: Public RPC endpoint
        confirmations: Confirmations to wait for per transaction
    """

    chain_id: int
    name: str
    is_testnet: bool
    broker_address: str
    hub_symbol: str
    default_rpc_url: str
    confirmations: int

    @property
    def rpc_env_var(self) -> str:
        return f"SWAP_RPC_{self.name.upper()}"

    def rpc_url(self, environ: Mapping[str, str] | None = None) -> str:
        """RPC URL, overridable with SWAP_RPC_<NAME>."""
        environ = os.environ if environ is None else environ
        return environ.get(self.rpc_env_var, self.default_rpc_url)


CHAINS: dict[int, ChainConfig] = {
    CELO_MAINNET_CHAIN_ID: ChainConfig(
        chain_id=CELO_MAINNET_CHAIN_ID,
        name="celo",
        is_testnet=False,
        broker_address=MENTO_BROKER_MAINNET,
        hub_symbol="CUSD",
        default_rpc_url="https://forno.celo.org",
        confirmations=MAINNET_CONFIRMATIONS,
    ),
    ALFAJORES_CHAIN_ID: ChainConfig(
        chain_id=ALFAJORES_CHAIN_ID,
        name="alfajores",
        is_testnet=True,
        broker_address=MENTO_BROKER_ALFAJORES,
        hub_symbol="CUSD",
        default_rpc_url="https://alfajores-forno.celo-testnet.org",
        confirmations=TESTNET_CONFIRMATIONS,
    ),
}


def get_chain(chain_id: int) -> ChainConfig:
    """Look up a chain config.

    Raises:
        SwapError: VALIDATION for unsupported chains
    """
    chain = CHAINS.get(chain_id)
    if chain is None:
        raise SwapError(ErrorKind.VALIDATION, detail=f"Unsupported chain id {chain_id}")
    return chain


def get_chain_by_name(name: str) -> ChainConfig:
    """Look up a chain config by its short name (case-insensitive).

    Raises:
        SwapError: VALIDATION for unknown names
    """
    for chain in CHAINS.values():
        if chain.name == name.lower():
            return chain
    raise SwapError(ErrorKind.VALIDATION, detail=f"Unsupported network {name!r}")


@dataclass(frozen=True)
class Environment:
    """Runtime facts about the active network and wallet.

    Attributes:
        chain_id: Active chain id
        is_testnet: Whether the active chain is a test network
        fee_model: Legacy (explicit gas price) or dynamic fees
        confirmations_required: Confirmations to wait for per transaction
        embedded_wallet: True inside constrained wallets (e.g. MiniPay) that
            only accept legacy transactions
    """

    chain_id: int
    is_testnet: bool
    fee_model: FeeModel
    confirmations_required: int
    embedded_wallet: bool = False

    @property
    def uses_legacy_transactions(self) -> bool:
        return self.fee_model is FeeModel.LEGACY or self.embedded_wallet or self.is_testnet


def environment_for(chain_id: int, *, embedded_wallet: bool = False) -> Environment:
    """Build the Environment for a chain and wallet kind.

    Embedded wallets and test networks get legacy transactions; everything
    else uses dynamic fees.

    Raises:
        SwapError: VALIDATION for unsupported chains
    """
    chain = get_chain(chain_id)
    legacy = embedded_wallet or chain.is_testnet
    return Environment(
        chain_id=chain.chain_id,
        is_testnet=chain.is_testnet,
        fee_model=FeeModel.LEGACY if legacy else FeeModel.DYNAMIC,
        confirmations_required=chain.confirmations,
        embedded_wallet=embedded_wallet,
    )
