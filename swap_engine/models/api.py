"""Pydantic models for the HTTP quote API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from swap_engine.constants import BPS_DENOMINATOR, DEFAULT_SLIPPAGE_BPS
from swap_engine.errors import SwapError
from swap_engine.models.results import SwapEstimate
from swap_engine.models.types import DecimalAmount


class QuoteRequest(BaseModel):
    """A quote request in human units."""

    from_token: str = Field(alias="fromToken", min_length=1, description="Source token symbol")
    to_token: str = Field(alias="toToken", min_length=1, description="Destination token symbol")
    amount: DecimalAmount
    slippage_bps: int = Field(
        default=DEFAULT_SLIPPAGE_BPS,
        alias="slippageBps",
        ge=0,
        lt=BPS_DENOMINATOR,
        description="Slippage tolerance in basis points",
    )

    model_config = {"populate_by_name": True}


class QuoteResponse(BaseModel):
    """Quote outcome.

    Amounts are decimal strings: base units for `amountIn`, `expectedOut` and
    `minOut`, human units for the `*Display` fields.
    """

    success: bool
    from_token: str | None = Field(default=None, alias="fromToken")
    to_token: str | None = Field(default=None, alias="toToken")
    amount_in: str | None = Field(default=None, alias="amountIn")
    expected_out: str | None = Field(default=None, alias="expectedOut")
    min_out: str | None = Field(default=None, alias="minOut")
    expected_out_display: str | None = Field(default=None, alias="expectedOutDisplay")
    min_out_display: str | None = Field(default=None, alias="minOutDisplay")
    exchange_rate: str | None = Field(default=None, alias="exchangeRate")
    slippage_bps: int | None = Field(default=None, alias="slippageBps")
    route: list[str] | None = None
    simulated: bool | None = None
    error_kind: str | None = Field(default=None, alias="errorKind")
    error_message: str | None = Field(default=None, alias="errorMessage")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_estimate(cls, estimate: SwapEstimate) -> QuoteResponse:
        return cls(
            success=True,
            from_token=estimate.from_symbol,
            to_token=estimate.to_symbol,
            amount_in=str(estimate.amount_in),
            expected_out=str(estimate.expected_out),
            min_out=str(estimate.min_out),
            expected_out_display=format(estimate.expected_out_display, "f"),
            min_out_display=format(estimate.min_out_display, "f"),
            exchange_rate=format(estimate.exchange_rate.normalize(), "f"),
            slippage_bps=estimate.slippage_bps,
            route=list(estimate.route),
            simulated=estimate.simulated,
        )

    @classmethod
    def from_error(cls, error: SwapError) -> QuoteResponse:
        return cls(
            success=False,
            error_kind=error.kind.value,
            error_message=error.user_message,
        )


__all__ = ["QuoteRequest", "QuoteResponse"]
