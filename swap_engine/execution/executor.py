"""Swap executor: runs a trade path hop by hop on chain.

One loop handles direct and hub-routed paths alike. Each hop is quoted with
the amount actually received from the previous hop, approved if needed,
submitted and confirmed before the next hop starts.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from swap_engine.chains import Environment
from swap_engine.config import DEFAULT_SWAP_CONFIG, SwapConfig
from swap_engine.contracts import BrokerGateway, TokenGateway, transferred_to
from swap_engine.errors import ErrorKind, SwapError, to_swap_error
from swap_engine.execution.approval import ApprovalManager
from swap_engine.execution.profile import TransactionProfile, select_profile
from swap_engine.execution.transactions import TransactionClient
from swap_engine.models.routing import Hop, TradePath
from swap_engine.models.types import normalize_address
from swap_engine.routing.quotes import QuoteEngine, validate_slippage_bps

logger = structlog.get_logger()


class SwapStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class HopExecution:
    """A confirmed hop.

    Attributes:
        hop: The hop that was executed
        amount_in: Input amount in base units
        min_out: Minimum output passed to swapIn
        actual_out: Output received by the owner
        tx_hash: Swap transaction hash
        expected_out: Quoted output at submission time
        approval_tx_hash: Approval sent for this hop, if one was needed
    """

    hop: Hop
    amount_in: int
    min_out: int
    actual_out: int
    tx_hash: str
    expected_out: int | None = None
    approval_tx_hash: str | None = None


@dataclass
class SwapCallbacks:
    """Optional lifecycle hooks fired while a path executes."""

    on_approval_submitted: Callable[[str], None] | None = None
    on_approval_confirmed: Callable[[], None] | None = None
    on_swap_submitted: Callable[[str], None] | None = None


@dataclass(frozen=True)
class SwapAttempt:
    """Outcome of executing a trade path.

    The status is all-or-nothing, but hops confirmed before a failure stay in
    `hops` so callers can report them. Approvals are recorded as soon as they
    confirm, including those for a hop whose swap then failed.
    """

    path: TradePath
    amount_in: int
    hops: tuple[HopExecution, ...] = field(default_factory=tuple)
    approval_tx_hashes: tuple[str, ...] = field(default_factory=tuple)
    status: SwapStatus = SwapStatus.SUCCESS
    error: SwapError | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is SwapStatus.SUCCESS

    @property
    def tx_hashes(self) -> list[str]:
        return [h.tx_hash for h in self.hops]

    @property
    def amount_out(self) -> int | None:
        """Amount received from the final hop, None unless the path completed."""
        if not self.succeeded or len(self.hops) != len(self.path):
            return None
        return self.hops[-1].actual_out


class SwapExecutor:
    """Executes trade paths through the broker.

    Args:
        broker: Broker gateway
        tokens: ERC20 gateway
        transactions: Chain client
        quotes: Quote engine
        approvals: Approval manager for the broker
        config: Gas limits
    """

    def __init__(
        self,
        broker: BrokerGateway,
        tokens: TokenGateway,
        transactions: TransactionClient,
        quotes: QuoteEngine,
        approvals: ApprovalManager,
        config: SwapConfig = DEFAULT_SWAP_CONFIG,
    ) -> None:
        self.broker = broker
        self.tokens = tokens
        self.transactions = transactions
        self.quotes = quotes
        self.approvals = approvals
        self.config = config

    def _gas_limit(self, tx: dict[str, Any], profile: TransactionProfile) -> int:
        if profile.gas_limit is not None:
            return profile.gas_limit
        try:
            return self.transactions.estimate_gas(tx)
        except Exception as e:
            logger.warning(
                "gas_estimation_failed_using_fallback",
                fallback_gas_limit=profile.fallback_gas_limit,
                error_kind=to_swap_error(e).kind.value,
                error=str(e),
            )
            return profile.fallback_gas_limit

    def _balance(self, token: str, owner: str) -> int:
        try:
            return self.tokens.balance_of(token, owner)
        except Exception as e:
            raise to_swap_error(e, reverted=ErrorKind.NETWORK_ERROR) from e

    def execute_hop(
        self,
        hop: Hop,
        amount_in: int,
        min_out: int,
        env: Environment,
        profile: TransactionProfile,
        owner: str,
        *,
        on_submitted: Callable[[str], None] | None = None,
        expected_out: int | None = None,
        approval_tx_hash: str | None = None,
    ) -> HopExecution:
        """Submit swapIn for one hop and wait for it to confirm.

        Raises:
            SwapError: SLIPPAGE_EXCEEDED when the swap reverts, otherwise the
                classified submission or confirmation error
        """
        owner = normalize_address(owner)
        tx = self.broker.build_swap_in(
            hop.provider, hop.exchange_id, hop.from_asset, hop.to_asset, amount_in, min_out
        )
        gas_limit = self._gas_limit(tx, profile)
        balance_before = self._balance(hop.to_asset, owner)

        try:
            tx_hash = self.transactions.send(profile.apply(tx, gas_limit))
        except Exception as e:
            raise to_swap_error(e) from e
        logger.info(
            "swap_submitted",
            tx_hash=tx_hash,
            from_asset=hop.from_asset,
            to_asset=hop.to_asset,
            amount_in=amount_in,
            min_out=min_out,
            gas_limit=gas_limit,
        )
        if on_submitted is not None:
            on_submitted(tx_hash)

        receipt = self.transactions.confirm(tx_hash, env.confirmations_required)
        if not receipt.succeeded:
            logger.warning("swap_reverted", tx_hash=tx_hash, min_out=min_out)
            raise SwapError(
                ErrorKind.SLIPPAGE_EXCEEDED,
                detail=f"Swap {tx_hash} reverted (min_out={min_out})",
            )

        actual_out = transferred_to(receipt, hop.to_asset, owner)
        if actual_out is None:
            actual_out = self._balance(hop.to_asset, owner) - balance_before
            logger.debug("swap_output_from_balance_delta", tx_hash=tx_hash, actual_out=actual_out)

        logger.info("swap_confirmed", tx_hash=tx_hash, actual_out=actual_out)
        return HopExecution(
            hop=hop,
            amount_in=amount_in,
            min_out=min_out,
            actual_out=actual_out,
            tx_hash=tx_hash,
            expected_out=expected_out,
            approval_tx_hash=approval_tx_hash,
        )

    def execute_path(
        self,
        path: TradePath,
        amount_in: int,
        slippage_bps: int,
        env: Environment,
        owner: str,
        callbacks: SwapCallbacks | None = None,
    ) -> SwapAttempt:
        """Execute every hop of a path in order.

        Hop i > 0 is quoted with the output hop i-1 actually delivered, so the
        minimum output of later hops tracks what the owner really holds.

        Returns:
            A SwapAttempt; failures are captured in it rather than raised
        """
        callbacks = callbacks or SwapCallbacks()
        completed: list[HopExecution] = []
        approvals: list[str] = []
        try:
            validate_slippage_bps(slippage_bps)
            profile = select_profile(env, self.transactions, self.config)
            amount = amount_in
            for index, hop in enumerate(path.hops):
                quote = self.quotes.quote_hop(hop, amount, slippage_bps)
                approval = self.approvals.ensure_approval(
                    owner,
                    hop.from_asset,
                    amount,
                    env,
                    profile,
                    on_submitted=callbacks.on_approval_submitted,
                    on_confirmed=callbacks.on_approval_confirmed,
                )
                if approval.tx_hash is not None:
                    approvals.append(approval.tx_hash)
                logger.debug("hop_starting", hop_index=index, amount_in=amount)
                execution = self.execute_hop(
                    hop,
                    amount,
                    quote.min_out,
                    env,
                    profile,
                    owner,
                    on_submitted=callbacks.on_swap_submitted,
                    expected_out=quote.expected_out,
                    approval_tx_hash=approval.tx_hash,
                )
                completed.append(execution)
                amount = execution.actual_out
        except Exception as e:
            error = to_swap_error(e)
            error.tx_hashes = [h.tx_hash for h in completed]
            logger.warning(
                "swap_path_failed",
                hops_completed=len(completed),
                approvals_confirmed=len(approvals),
                hop_count=len(path),
                error_kind=error.kind.value,
                error=str(e),
            )
            return SwapAttempt(
                path=path,
                amount_in=amount_in,
                hops=tuple(completed),
                approval_tx_hashes=tuple(approvals),
                status=SwapStatus.FAILURE,
                error=error,
            )

        return SwapAttempt(
            path=path,
            amount_in=amount_in,
            hops=tuple(completed),
            approval_tx_hashes=tuple(approvals),
        )


__all__ = [
    "HopExecution",
    "SwapAttempt",
    "SwapCallbacks",
    "SwapExecutor",
    "SwapStatus",
]
