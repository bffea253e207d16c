"""Swap service: the entry point that ties routing and execution together.

A SwapService is bound to one chain and one wallet. `swap()` walks a request
through discovery, quoting, approval and execution (or the testnet fallback)
and always returns a SwapResult; `estimate()` runs the read-only part.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

import structlog

from swap_engine.assets import Asset, AssetRegistry
from swap_engine.chains import ChainConfig, Environment, environment_for, get_chain_by_name
from swap_engine.config import DEFAULT_SWAP_CONFIG, SwapConfig
from swap_engine.contracts import BrokerContract, BrokerGateway, Erc20Contracts, TokenGateway
from swap_engine.errors import ErrorKind, SwapError, to_swap_error
from swap_engine.execution.approval import ApprovalManager
from swap_engine.execution.executor import SwapCallbacks, SwapExecutor
from swap_engine.execution.transactions import TransactionClient
from swap_engine.fallback import FallbackSimulator, Ineligible
from swap_engine.models.results import (
    FailedSwapResult,
    RealSwapResult,
    SimulatedSwapResult,
    SwapEstimate,
    SwapResult,
)
from swap_engine.models.routing import PathNotFound, TradePath
from swap_engine.routing.cache import ExchangeCache
from swap_engine.routing.discovery import ExchangeDiscovery
from swap_engine.routing.quotes import QuoteEngine, min_amount_out, validate_slippage_bps
from swap_engine.wallet import Signer, Web3Signer

logger = structlog.get_logger()


class SwapStep(str, Enum):
    """Stages a swap request moves through."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    PATH_FOUND = "path_found"
    NOT_FOUND = "not_found"
    QUOTING = "quoting"
    APPROVING = "approving"
    EXECUTING = "executing"
    SIMULATING = "simulating"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class SwapParams:
    """A swap request in human units.

    Attributes:
        from_token: Source token symbol (case-insensitive)
        to_token: Destination token symbol
        amount: Decimal string amount of from_token
        slippage_bps: Slippage tolerance; None uses the configured default
        callbacks: Approval/swap lifecycle hooks
        on_step: Called with each SwapStep as the request progresses
    """

    from_token: str
    to_token: str
    amount: str
    slippage_bps: int | None = None
    callbacks: SwapCallbacks = field(default_factory=SwapCallbacks)
    on_step: Callable[[SwapStep], None] | None = None


@dataclass(frozen=True)
class _Request:
    from_asset: Asset
    to_asset: Asset
    amount_in: int
    slippage_bps: int


class _StepTracker:
    """Records and logs step transitions for one request."""

    def __init__(self, listener: Callable[[SwapStep], None] | None = None) -> None:
        self.steps: list[SwapStep] = []
        self._listener = listener

    @property
    def current(self) -> SwapStep | None:
        return self.steps[-1] if self.steps else None

    def advance(self, step: SwapStep, **context: Any) -> None:
        if step is self.current:
            return
        previous = self.current.value if self.current else None
        logger.debug("swap_step", step=step.value, previous=previous, **context)
        self.steps.append(step)
        if self._listener is not None:
            self._listener(step)


def _chain_callback(
    first: Callable[..., None], second: Callable[..., None] | None
) -> Callable[..., None]:
    def callback(*args: Any) -> None:
        first(*args)
        if second is not None:
            second(*args)

    return callback


class SwapService:
    """Swaps between registered assets on one chain.

    Args:
        chain: Chain configuration
        signer: Wallet collaborator (reads and sends)
        config: Gas, timeout and cache settings
        cache: Shared exchange cache (one per process is enough)
        broker: Broker gateway (default: BrokerContract over the signer)
        tokens: ERC20 gateway (default: Erc20Contracts over the signer)
        transactions: Chain client (default: TransactionClient over the signer)
        simulator: Testnet fallback simulator
        registry: Asset registry (default: the chain's static registry)
        embedded_wallet: True inside wallets that only accept legacy transactions
    """

    def __init__(
        self,
        chain: ChainConfig,
        signer: Signer,
        config: SwapConfig = DEFAULT_SWAP_CONFIG,
        *,
        cache: ExchangeCache | None = None,
        broker: BrokerGateway | None = None,
        tokens: TokenGateway | None = None,
        transactions: TransactionClient | None = None,
        simulator: FallbackSimulator | None = None,
        registry: AssetRegistry | None = None,
        embedded_wallet: bool = False,
    ) -> None:
        self.chain = chain
        self.config = config
        self.env: Environment = environment_for(chain.chain_id, embedded_wallet=embedded_wallet)
        self.registry = registry or AssetRegistry.for_chain(chain.chain_id)
        self.broker = broker or BrokerContract(signer, chain.broker_address)
        self.tokens = tokens or Erc20Contracts(signer)
        self.transactions = transactions or TransactionClient(signer, config)
        self.simulator = simulator or FallbackSimulator()

        hub = self.registry.find(chain.hub_symbol)
        self.discovery = ExchangeDiscovery(
            self.broker,
            cache=cache,
            hub_asset=hub.address if hub else None,
            max_workers=config.discovery_workers,
        )
        self.quotes = QuoteEngine(self.broker)
        self.approvals = ApprovalManager(
            self.tokens, self.transactions, config, spender=self.broker.address
        )
        self.executor = SwapExecutor(
            self.broker, self.tokens, self.transactions, self.quotes, self.approvals, config
        )

    @classmethod
    def for_network(
        cls,
        network: str,
        signer: Signer | None = None,
        config: SwapConfig | None = None,
        cache: ExchangeCache | None = None,
        environ: Mapping[str, str] | None = None,
        **kwargs: Any,
    ) -> SwapService:
        """Build a service for a named network ("celo", "alfajores").

        Without a signer, a read-only Web3Signer on the network's RPC URL is
        used, which is enough for estimate().

        Raises:
            SwapError: VALIDATION for unknown networks
        """
        chain = get_chain_by_name(network)
        config = config or SwapConfig.from_env(environ)
        signer = signer or Web3Signer(chain.rpc_url(environ))
        return cls(chain, signer, config, cache=cache, **kwargs)

    def _validate(self, params: SwapParams) -> _Request:
        """Validate a request without touching the network.

        Raises:
            SwapError: VALIDATION
        """
        from_asset = self.registry.get(params.from_token)
        to_asset = self.registry.get(params.to_token)
        if from_asset.address == to_asset.address:
            raise SwapError(ErrorKind.VALIDATION, detail="Cannot swap a token for itself")

        try:
            amount = Decimal(str(params.amount).strip())
        except InvalidOperation as e:
            raise SwapError(ErrorKind.VALIDATION, detail=f"Invalid amount {params.amount!r}") from e
        if not amount.is_finite() or amount <= 0:
            raise SwapError(
                ErrorKind.VALIDATION, detail=f"Amount must be positive, got {params.amount!r}"
            )
        amount_in = from_asset.to_base_units(amount)
        if amount_in <= 0:
            raise SwapError(
                ErrorKind.VALIDATION, detail=f"Amount rounds to zero: {params.amount!r}"
            )

        bps = params.slippage_bps
        if bps is None:
            bps = self.config.default_slippage_bps
        validate_slippage_bps(bps)
        return _Request(from_asset, to_asset, amount_in, bps)

    def _check_balance(self, owner: str, request: _Request) -> None:
        try:
            balance = self.tokens.balance_of(request.from_asset.address, owner)
        except Exception as e:
            raise to_swap_error(e, reverted=ErrorKind.NETWORK_ERROR) from e
        if balance < request.amount_in:
            raise SwapError(
                ErrorKind.INSUFFICIENT_BALANCE,
                detail=f"{request.from_asset.symbol} balance {balance} < {request.amount_in}",
            )

    def _route_symbols(self, path: TradePath | None, request: _Request) -> tuple[str, ...]:
        if path is None:
            return (request.from_asset.symbol, request.to_asset.symbol)
        symbols = []
        for address in path.assets:
            asset = self.registry.by_address(address)
            symbols.append(asset.symbol if asset else address)
        return tuple(symbols)

    def swap(self, params: SwapParams) -> SwapResult:
        """Execute a swap request.

        Never raises for swap-domain failures: every error is classified and
        returned as a FailedSwapResult.
        """
        tracker = _StepTracker(params.on_step)
        tracker.advance(SwapStep.IDLE)
        try:
            return self._swap(params, tracker)
        except Exception as e:
            error = to_swap_error(e)
            if not isinstance(e, SwapError):
                logger.exception("swap_unexpected_error", chain_id=self.chain.chain_id)
            tracker.advance(SwapStep.FAILED, error_kind=error.kind.value)
            logger.warning(
                "swap_failed",
                chain_id=self.chain.chain_id,
                from_token=params.from_token,
                to_token=params.to_token,
                error_kind=error.kind.value,
                detail=error.detail,
            )
            return FailedSwapResult.from_error(error)

    def _swap(self, params: SwapParams, tracker: _StepTracker) -> SwapResult:
        request = self._validate(params)
        owner = self.transactions.address
        self._check_balance(owner, request)

        tracker.advance(SwapStep.DISCOVERING)
        path = self.discovery.find_path(
            request.from_asset.address, request.to_asset.address, self.env
        )
        if isinstance(path, PathNotFound):
            tracker.advance(SwapStep.NOT_FOUND, attempted_legs=len(path.attempted_legs))
            return self._simulate_or_fail(request, path, tracker)

        tracker.advance(SwapStep.PATH_FOUND, hops=len(path))
        tracker.advance(SwapStep.QUOTING)
        # Preflight: a hop without a price fails here, before any approval is sent
        quotes = self.quotes.quote_path(path, request.amount_in, request.slippage_bps)
        logger.info(
            "swap_route_quoted",
            chain_id=self.chain.chain_id,
            route=list(self._route_symbols(path, request)),
            expected_out=quotes[-1].expected_out,
            min_out=quotes[-1].min_out,
        )

        user = params.callbacks
        callbacks = SwapCallbacks(
            on_approval_submitted=_chain_callback(
                lambda _hash: tracker.advance(SwapStep.APPROVING), user.on_approval_submitted
            ),
            on_approval_confirmed=user.on_approval_confirmed,
            on_swap_submitted=_chain_callback(
                lambda _hash: tracker.advance(SwapStep.EXECUTING), user.on_swap_submitted
            ),
        )
        attempt = self.executor.execute_path(
            path, request.amount_in, request.slippage_bps, self.env, owner, callbacks
        )
        approval_hashes = attempt.approval_tx_hashes
        if not attempt.succeeded or attempt.amount_out is None:
            error = attempt.error or SwapError(
                ErrorKind.NETWORK_ERROR, detail="Swap did not complete"
            )
            tracker.advance(SwapStep.FAILED, error_kind=error.kind.value)
            logger.warning(
                "swap_failed",
                chain_id=self.chain.chain_id,
                error_kind=error.kind.value,
                confirmed_tx_hashes=attempt.tx_hashes,
                approval_tx_hashes=list(approval_hashes),
            )
            return FailedSwapResult.from_error(error, approval_tx_hashes=approval_hashes)

        tracker.advance(SwapStep.CONFIRMED)
        result = RealSwapResult(
            swap_tx_hash=attempt.tx_hashes[-1],
            tx_hashes=tuple(attempt.tx_hashes),
            amount_in=request.amount_in,
            amount_out=attempt.amount_out,
            approval_tx_hash=approval_hashes[0] if approval_hashes else None,
            approval_tx_hashes=tuple(approval_hashes),
        )
        logger.info(
            "swap_completed",
            chain_id=self.chain.chain_id,
            from_token=request.from_asset.symbol,
            to_token=request.to_asset.symbol,
            amount_in=request.amount_in,
            amount_out=result.amount_out,
            tx_hashes=list(result.tx_hashes),
        )
        return result

    def _simulate_or_fail(
        self, request: _Request, not_found: PathNotFound, tracker: _StepTracker
    ) -> SimulatedSwapResult:
        outcome = self.simulator.simulate(
            request.from_asset, request.to_asset, request.amount_in, self.env, not_found
        )
        if isinstance(outcome, Ineligible):
            raise SwapError(ErrorKind.NO_ROUTE_FOUND, detail=outcome.reason)
        tracker.advance(SwapStep.SIMULATING)
        tracker.advance(SwapStep.CONFIRMED, simulated=True)
        return outcome

    def estimate(self, params: SwapParams) -> SwapEstimate:
        """Quote a swap request without sending anything.

        Raises:
            SwapError: VALIDATION, NO_ROUTE_FOUND or a classified RPC error
        """
        request = self._validate(params)
        path = self.discovery.find_path(
            request.from_asset.address, request.to_asset.address, self.env
        )

        if isinstance(path, PathNotFound):
            ineligible = self.simulator.eligibility(
                request.from_asset, request.to_asset, self.env, path
            )
            if ineligible is not None:
                raise SwapError(ErrorKind.NO_ROUTE_FOUND, detail=ineligible.reason)
            expected_out = self.simulator.amount_out(
                request.from_asset, request.to_asset, request.amount_in
            )
            min_out = min_amount_out(expected_out, request.slippage_bps)
            route = self._route_symbols(None, request)
            simulated = True
        else:
            quotes = self.quotes.quote_path(path, request.amount_in, request.slippage_bps)
            expected_out = quotes[-1].expected_out
            min_out = quotes[-1].min_out
            route = self._route_symbols(path, request)
            simulated = False

        estimate = SwapEstimate(
            from_symbol=request.from_asset.symbol,
            to_symbol=request.to_asset.symbol,
            amount_in=request.amount_in,
            expected_out=expected_out,
            min_out=min_out,
            amount_in_display=request.from_asset.from_base_units(request.amount_in),
            expected_out_display=request.to_asset.from_base_units(expected_out),
            min_out_display=request.to_asset.from_base_units(min_out),
            slippage_bps=request.slippage_bps,
            route=route,
            simulated=simulated,
        )
        logger.info(
            "swap_estimated",
            chain_id=self.chain.chain_id,
            route=list(route),
            amount_in=request.amount_in,
            expected_out=expected_out,
            simulated=simulated,
        )
        return estimate


__all__ = ["SwapParams", "SwapService", "SwapStep"]
