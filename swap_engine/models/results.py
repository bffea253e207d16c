"""Swap outcomes.

Results form a tagged union: a real on-chain swap, a simulated testnet swap
and a failure are distinct types, so a synthetic transaction id can never be
mistaken for a real one without checking the type (or `simulated`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

from swap_engine.errors import ErrorKind, SwapError, user_message


@dataclass(frozen=True)
class RealSwapResult:
    """A swap executed on chain."""

    swap_tx_hash: str
    tx_hashes: tuple[str, ...]
    amount_in: int
    amount_out: int
    approval_tx_hash: str | None = None
    approval_tx_hashes: tuple[str, ...] = field(default_factory=tuple)
    success: Literal[True] = True
    simulated: Literal[False] = False

    def to_response(self) -> dict[str, Any]:
        response: dict[str, Any] = {
            "success": True,
            "simulated": False,
            "swapTxHash": self.swap_tx_hash,
            "txHashes": list(self.tx_hashes),
        }
        if self.approval_tx_hash is not None:
            response["approvalTxHash"] = self.approval_tx_hash
        return response


@dataclass(frozen=True)
class SimulatedSwapResult:
    """A synthetic swap produced by the testnet fallback simulator.

    `swap_tx_hash` has the format of a real hash but identifies nothing on
    chain.
    """

    swap_tx_hash: str
    from_symbol: str
    to_symbol: str
    amount_in: int
    amount_out: int
    success: Literal[True] = True
    simulated: Literal[True] = True

    @property
    def tag(self) -> ErrorKind:
        return ErrorKind.SIMULATED_FALLBACK_USED

    def to_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "simulated": True,
            "swapTxHash": self.swap_tx_hash,
            "notice": self.tag.value,
        }


@dataclass(frozen=True)
class FailedSwapResult:
    """A swap that ended in a classified error.

    tx_hashes lists transactions that were confirmed before the failure (for
    example hop 1 of a hub route whose hop 2 reverted); they stand on chain.
    approval_tx_hashes likewise lists approvals that confirmed, even when the
    swap they were sent for did not.
    """

    error_kind: ErrorKind
    error_message: str
    tx_hashes: tuple[str, ...] = field(default_factory=tuple)
    approval_tx_hash: str | None = None
    approval_tx_hashes: tuple[str, ...] = field(default_factory=tuple)
    success: Literal[False] = False
    simulated: Literal[False] = False

    @classmethod
    def from_error(
        cls, error: SwapError, approval_tx_hashes: tuple[str, ...] = ()
    ) -> FailedSwapResult:
        return cls(
            error_kind=error.kind,
            error_message=user_message(error.kind),
            tx_hashes=tuple(error.tx_hashes),
            approval_tx_hash=approval_tx_hashes[0] if approval_tx_hashes else None,
            approval_tx_hashes=approval_tx_hashes,
        )

    def to_response(self) -> dict[str, Any]:
        response: dict[str, Any] = {
            "success": False,
            "errorKind": self.error_kind.value,
            "errorMessage": self.error_message,
        }
        if self.tx_hashes:
            response["txHashes"] = list(self.tx_hashes)
            response["swapTxHash"] = self.tx_hashes[-1]
        if self.approval_tx_hash is not None:
            response["approvalTxHash"] = self.approval_tx_hash
        return response


SwapResult = RealSwapResult | SimulatedSwapResult | FailedSwapResult


@dataclass(frozen=True)
class SwapEstimate:
    """Read-only quote for a swap request.

    Attributes:
        from_symbol: Source token symbol
        to_symbol: Destination token symbol
        amount_in: Input in base units
        expected_out: Expected output in base units
        min_out: Minimum output after slippage, in base units
        amount_in_display: Input as a human-readable Decimal
        expected_out_display: Expected output as a human-readable Decimal
        min_out_display: Minimum output as a human-readable Decimal
        slippage_bps: Slippage tolerance used
        route: Token symbols along the path, e.g. ["CEUR", "CUSD", "CREAL"]
        simulated: True when the estimate comes from the testnet fallback rates
    """

    from_symbol: str
    to_symbol: str
    amount_in: int
    expected_out: int
    min_out: int
    amount_in_display: Decimal
    expected_out_display: Decimal
    min_out_display: Decimal
    slippage_bps: int
    route: tuple[str, ...]
    simulated: bool = False

    @property
    def exchange_rate(self) -> Decimal:
        """Destination tokens per source token, in human units."""
        if not self.amount_in_display:
            return Decimal(0)
        return self.expected_out_display / self.amount_in_display


__all__ = [
    "FailedSwapResult",
    "RealSwapResult",
    "SimulatedSwapResult",
    "SwapEstimate",
    "SwapResult",
]
