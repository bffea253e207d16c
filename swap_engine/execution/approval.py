"""Approval manager: makes sure the broker may spend a hop's input asset."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from swap_engine.chains import Environment
from swap_engine.config import DEFAULT_SWAP_CONFIG, SwapConfig
from swap_engine.contracts import TokenGateway
from swap_engine.errors import ErrorKind, SwapError, to_swap_error
from swap_engine.execution.profile import TransactionProfile
from swap_engine.execution.transactions import TransactionClient
from swap_engine.models.types import normalize_address

logger = structlog.get_logger()


@dataclass(frozen=True)
class ApprovalResult:
    """Outcome of ensure_approval.

    tx_hash is None when the existing allowance already covered the amount.
    """

    tx_hash: str | None
    allowance_before: int
    allowance_after: int

    @property
    def submitted(self) -> bool:
        return self.tx_hash is not None


class ApprovalManager:
    """Grants exact-amount allowances to the broker.

    Args:
        tokens: ERC20 gateway
        transactions: Chain client used to send and confirm approvals
        config: Gas limits and retry parameters
        spender: Address being approved (the broker)
    """

    def __init__(
        self,
        tokens: TokenGateway,
        transactions: TransactionClient,
        config: SwapConfig = DEFAULT_SWAP_CONFIG,
        *,
        spender: str,
    ) -> None:
        self.tokens = tokens
        self.transactions = transactions
        self.config = config
        self.spender = normalize_address(spender)

    def _allowance(self, owner: str, asset: str) -> int:
        try:
            return self.tokens.allowance(asset, owner, self.spender)
        except Exception as e:
            raise to_swap_error(e, reverted=ErrorKind.NETWORK_ERROR) from e

    def _submit(self, asset: str, amount: int, profile: TransactionProfile) -> str:
        """Send the approve transaction, retrying once with bumped parameters."""
        tx = self.tokens.build_approve(asset, self.spender, amount)
        try:
            return self.transactions.send(profile.apply(tx, self.config.approval_gas_limit))
        except Exception as first_error:
            error = to_swap_error(
                first_error, default=ErrorKind.APPROVAL_FAILED, reverted=ErrorKind.APPROVAL_FAILED
            )
            if error.kind is ErrorKind.USER_REJECTED:
                raise error from first_error
            logger.warning(
                "approval_submit_failed_retrying",
                asset=asset,
                error_kind=error.kind.value,
                error=str(first_error),
            )

        retry_profile = profile.bumped(self.config.gas_price_bump_percent)
        try:
            return self.transactions.send(
                retry_profile.apply(tx, self.config.approval_retry_gas_limit)
            )
        except Exception as second_error:
            error = to_swap_error(second_error)
            if error.kind is ErrorKind.USER_REJECTED:
                raise error from second_error
            logger.warning("approval_retry_failed", asset=asset, error=str(second_error))
            raise SwapError(ErrorKind.APPROVAL_FAILED, detail=str(second_error)) from second_error

    def ensure_approval(
        self,
        owner: str,
        asset: str,
        amount_in: int,
        env: Environment,
        profile: TransactionProfile,
        on_submitted: Callable[[str], None] | None = None,
        on_confirmed: Callable[[], None] | None = None,
    ) -> ApprovalResult:
        """Ensure the broker's allowance for `asset` covers `amount_in`.

        The allowance is always read fresh. When it falls short, exactly
        `amount_in` is approved (never an unlimited allowance), the approval
        is confirmed, and the allowance is read again to verify it.

        Raises:
            SwapError: APPROVAL_FAILED, APPROVAL_VERIFICATION_FAILED,
                USER_REJECTED or a classified network error
        """
        owner = normalize_address(owner)
        asset = normalize_address(asset)

        before = self._allowance(owner, asset)
        if before >= amount_in:
            logger.debug("approval_not_needed", asset=asset, allowance=before, amount=amount_in)
            return ApprovalResult(tx_hash=None, allowance_before=before, allowance_after=before)

        tx_hash = self._submit(asset, amount_in, profile)
        logger.info("approval_submitted", asset=asset, amount=amount_in, tx_hash=tx_hash)
        if on_submitted is not None:
            on_submitted(tx_hash)

        receipt = self.transactions.confirm(tx_hash, env.confirmations_required)
        if not receipt.succeeded:
            logger.warning("approval_reverted", asset=asset, tx_hash=tx_hash)
            raise SwapError(
                ErrorKind.APPROVAL_FAILED, detail=f"Approval {tx_hash} reverted"
            )
        if on_confirmed is not None:
            on_confirmed()

        after = self._allowance(owner, asset)
        if after < amount_in:
            logger.warning(
                "approval_verification_failed",
                asset=asset,
                tx_hash=tx_hash,
                allowance=after,
                amount=amount_in,
            )
            raise SwapError(
                ErrorKind.APPROVAL_VERIFICATION_FAILED,
                detail=f"Allowance {after} < {amount_in} after approval {tx_hash}",
            )

        logger.info("approval_confirmed", asset=asset, tx_hash=tx_hash, allowance=after)
        return ApprovalResult(tx_hash=tx_hash, allowance_before=before, allowance_after=after)


__all__ = ["ApprovalManager", "ApprovalResult"]
