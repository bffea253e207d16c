"""Transaction profile: fee and gas parameters selected once per swap.

The profile is computed from the Environment and threaded unchanged into
every send (approvals and swaps), so fee-model decisions live in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

import structlog

from swap_engine.chains import Environment, FeeModel
from swap_engine.config import SwapConfig
from swap_engine.execution.transactions import TransactionClient

logger = structlog.get_logger()


@dataclass(frozen=True)
class TransactionProfile:
    """Fee/gas parameters for every transaction of one swap call.

    Attributes:
        fee_model: LEGACY (type 0 with explicit gas price) or DYNAMIC
        gas_limit: Fixed swap gas limit, or None to estimate per transaction
        gas_price: Explicit gas price for legacy transactions
        fallback_gas_limit: Manual limit used once when estimation fails
    """

    fee_model: FeeModel
    gas_limit: int | None
    gas_price: int | None
    fallback_gas_limit: int

    @property
    def is_legacy(self) -> bool:
        return self.fee_model is FeeModel.LEGACY

    @property
    def estimates_gas(self) -> bool:
        return self.gas_limit is None

    def apply(self, tx: dict[str, Any], gas_limit: int) -> dict[str, Any]:
        """Return a copy of tx with gas and fee fields for this profile."""
        out = {**tx, "gas": gas_limit}
        if self.is_legacy:
            out["type"] = 0
            if self.gas_price is not None:
                out["gasPrice"] = self.gas_price
        return out

    def bumped(self, percent: int) -> TransactionProfile:
        """Profile with the gas price raised by `percent` (legacy only)."""
        if self.gas_price is None:
            return self
        return replace(self, gas_price=self.gas_price * (100 + percent) // 100)


def select_profile(
    env: Environment, transactions: TransactionClient, config: SwapConfig
) -> TransactionProfile:
    """Choose the transaction profile for an environment.

    Embedded wallets and test networks get legacy transactions with a generous
    fixed gas limit and the node's current gas price. Everything else uses
    dynamic fees with estimated gas (falling back to a manual limit).
    """
    if env.uses_legacy_transactions:
        profile = TransactionProfile(
            fee_model=FeeModel.LEGACY,
            gas_limit=config.swap_gas_limit,
            gas_price=transactions.gas_price(),
            fallback_gas_limit=config.fallback_gas_limit,
        )
    else:
        profile = TransactionProfile(
            fee_model=FeeModel.DYNAMIC,
            gas_limit=None,
            gas_price=None,
            fallback_gas_limit=config.fallback_gas_limit,
        )
    logger.debug(
        "transaction_profile_selected",
        chain_id=env.chain_id,
        fee_model=profile.fee_model.value,
        gas_limit=profile.gas_limit,
        gas_price=profile.gas_price,
    )
    return profile


__all__ = ["TransactionProfile", "select_profile"]
