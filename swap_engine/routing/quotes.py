"""Quote engine: expected output per hop and slippage-bounded minimums."""

from __future__ import annotations

import structlog

from swap_engine.constants import BPS_DENOMINATOR
from swap_engine.contracts import BrokerGateway
from swap_engine.errors import ErrorKind, SwapError, to_swap_error
from swap_engine.models.routing import Hop, Quote, TradePath

logger = structlog.get_logger()


def validate_slippage_bps(slippage_bps: int) -> int:
    """Check a slippage tolerance is within [0, 10000).

    Raises:
        SwapError: VALIDATION when out of range or not an integer
    """
    if isinstance(slippage_bps, bool) or not isinstance(slippage_bps, int):
        raise SwapError(
            ErrorKind.VALIDATION, detail=f"Slippage must be integer bps: {slippage_bps!r}"
        )
    if not 0 <= slippage_bps < BPS_DENOMINATOR:
        raise SwapError(
            ErrorKind.VALIDATION,
            detail=f"Slippage must be in [0, {BPS_DENOMINATOR}) bps, got {slippage_bps}",
        )
    return slippage_bps


def min_amount_out(expected_out: int, slippage_bps: int) -> int:
    """Minimum acceptable output for a slippage tolerance.

    Floor division keeps the bound conservative for the receiver:
    min_out = expected_out * (10000 - bps) // 10000, so min_out <= expected_out
    with equality only at 0 bps (for positive expected_out).
    """
    validate_slippage_bps(slippage_bps)
    return expected_out * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


class QuoteEngine:
    """Queries the broker for expected output and derives minimum output."""

    def __init__(self, broker: BrokerGateway) -> None:
        self.broker = broker

    def quote_hop(self, hop: Hop, amount_in: int, slippage_bps: int) -> Quote:
        """Quote a single hop.

        Raises:
            SwapError: VALIDATION for bad inputs, NO_ROUTE_FOUND for a reverted or
                zero quote, otherwise the classified RPC failure
        """
        validate_slippage_bps(slippage_bps)
        if amount_in <= 0:
            raise SwapError(
                ErrorKind.VALIDATION, detail=f"Amount must be positive, got {amount_in}"
            )

        try:
            expected_out = self.broker.get_amount_out(
                hop.provider, hop.exchange_id, hop.from_asset, hop.to_asset, amount_in
            )
        except Exception as e:
            logger.warning(
                "quote_failed",
                from_asset=hop.from_asset,
                to_asset=hop.to_asset,
                amount_in=amount_in,
                error=str(e),
            )
            raise to_swap_error(e, reverted=ErrorKind.NO_ROUTE_FOUND) from e
        if expected_out <= 0:
            raise SwapError(
                ErrorKind.NO_ROUTE_FOUND,
                detail=f"Exchange {hop.exchange_id} quotes no output for {amount_in}",
            )

        quote = Quote(
            hop=hop,
            amount_in=amount_in,
            expected_out=expected_out,
            min_out=min_amount_out(expected_out, slippage_bps),
            slippage_bps=slippage_bps,
        )
        logger.debug(
            "hop_quoted",
            from_asset=hop.from_asset,
            to_asset=hop.to_asset,
            amount_in=amount_in,
            expected_out=quote.expected_out,
            min_out=quote.min_out,
        )
        return quote

    def quote_path(self, path: TradePath, amount_in: int, slippage_bps: int) -> list[Quote]:
        """Quote every hop of a path, feeding each hop's expected output forward.

        This is an estimate. During execution, later hops are re-quoted from the
        previous hop's confirmed output instead.
        """
        quotes: list[Quote] = []
        amount = amount_in
        for hop in path.hops:
            quote = self.quote_hop(hop, amount, slippage_bps)
            quotes.append(quote)
            amount = quote.expected_out
        return quotes


__all__ = ["QuoteEngine", "min_amount_out", "validate_slippage_bps"]
