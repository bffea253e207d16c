"""Testnet fallback simulator.

When no on-chain route exists on a test network, allow-listed pairs can be
"swapped" at static reference rates so demo flows keep working. The result is
a SimulatedSwapResult, never a RealSwapResult. On non-test networks the
simulator is never eligible.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, localcontext

import structlog

from swap_engine.assets import Asset
from swap_engine.chains import Environment
from swap_engine.models.results import SimulatedSwapResult
from swap_engine.models.routing import PathNotFound

logger = structlog.get_logger()

# Approximate USD value of one unit of each token
DEFAULT_USD_RATES: dict[str, Decimal] = {
    "CUSD": Decimal("1"),
    "USDT": Decimal("1"),
    "CEUR": Decimal("1.08"),
    "CREAL": Decimal("0.2"),
    "CXOF": Decimal("0.0016"),
    "CKES": Decimal("0.0078"),
    "CCOP": Decimal("0.00025"),
    "CGHS": Decimal("0.083"),
    "CGBP": Decimal("1.27"),
    "CZAR": Decimal("0.055"),
    "CCAD": Decimal("0.74"),
    "CAUD": Decimal("0.66"),
    "PUSO": Decimal("0.0179"),
    "CPESO": Decimal("0.0179"),
}

# Unordered pairs the simulator may stand in for
DEFAULT_ALLOW_LIST: frozenset[frozenset[str]] = frozenset(
    frozenset(("CUSD", other))
    for other in ("CEUR", "CREAL", "CXOF", "CGBP", "CZAR", "CCAD", "CAUD")
)


@dataclass(frozen=True)
class Ineligible:
    """The simulator declined to produce a result."""

    reason: str

    def __bool__(self) -> bool:
        return False


def synthetic_tx_hash() -> str:
    """A random identifier formatted like a transaction hash."""
    return "0x" + secrets.token_hex(32)


class FallbackSimulator:
    """Produces clearly flagged synthetic swaps on test networks.

    Args:
        rates: USD reference rate per token symbol
        allow_list: Unordered symbol pairs eligible for simulation
        id_factory: Generator for synthetic transaction ids
    """

    def __init__(
        self,
        rates: Mapping[str, Decimal] | None = None,
        allow_list: Iterable[Iterable[str]] | None = None,
        id_factory: Callable[[], str] = synthetic_tx_hash,
    ) -> None:
        self.rates = {k.upper(): Decimal(v) for k, v in (rates or DEFAULT_USD_RATES).items()}
        pairs = DEFAULT_ALLOW_LIST if allow_list is None else allow_list
        self.allow_list = frozenset(frozenset(s.upper() for s in pair) for pair in pairs)
        self._id_factory = id_factory

    def is_allowed(self, from_symbol: str, to_symbol: str) -> bool:
        return frozenset((from_symbol.upper(), to_symbol.upper())) in self.allow_list

    def eligibility(
        self,
        from_asset: Asset,
        to_asset: Asset,
        env: Environment,
        not_found: PathNotFound | None,
    ) -> Ineligible | None:
        """Return why simulation is not allowed, or None if it is."""
        if not env.is_testnet:
            return Ineligible("simulation is only available on test networks")
        if not_found is None:
            return Ineligible("an on-chain route exists")
        if not self.is_allowed(from_asset.symbol, to_asset.symbol):
            return Ineligible(f"{from_asset.symbol}/{to_asset.symbol} is not allow-listed")
        if from_asset.symbol.upper() not in self.rates or to_asset.symbol.upper() not in self.rates:
            return Ineligible(f"no reference rate for {from_asset.symbol}/{to_asset.symbol}")
        return None

    def amount_out(self, from_asset: Asset, to_asset: Asset, amount_in: int) -> int:
        """Convert base units of from_asset into base units of to_asset."""
        with localcontext() as ctx:
            ctx.prec = 80
            value = (
                Decimal(amount_in)
                * self.rates[from_asset.symbol.upper()]
                / self.rates[to_asset.symbol.upper()]
            )
            scaled = value.scaleb(to_asset.decimals - from_asset.decimals)
            return int(scaled.to_integral_value(rounding=ROUND_DOWN))

    def simulate(
        self,
        from_asset: Asset,
        to_asset: Asset,
        amount_in: int,
        env: Environment,
        not_found: PathNotFound | None,
    ) -> SimulatedSwapResult | Ineligible:
        """Simulate a swap when no route exists on a test network.

        Args:
            from_asset: Source asset
            to_asset: Destination asset
            amount_in: Input in base units
            env: Active environment
            not_found: The discovery outcome that triggered the fallback

        Returns:
            SimulatedSwapResult (simulated=True), or Ineligible with a reason
        """
        ineligible = self.eligibility(from_asset, to_asset, env, not_found)
        if ineligible is not None:
            logger.debug(
                "fallback_ineligible",
                from_symbol=from_asset.symbol,
                to_symbol=to_asset.symbol,
                chain_id=env.chain_id,
                reason=ineligible.reason,
            )
            return ineligible

        result = SimulatedSwapResult(
            swap_tx_hash=self._id_factory(),
            from_symbol=from_asset.symbol,
            to_symbol=to_asset.symbol,
            amount_in=amount_in,
            amount_out=self.amount_out(from_asset, to_asset, amount_in),
        )
        logger.warning(
            "fallback_swap_simulated",
            from_symbol=result.from_symbol,
            to_symbol=result.to_symbol,
            amount_in=amount_in,
            amount_out=result.amount_out,
            chain_id=env.chain_id,
        )
        return result


__all__ = [
    "DEFAULT_ALLOW_LIST",
    "DEFAULT_USD_RATES",
    "FallbackSimulator",
    "Ineligible",
    "synthetic_tx_hash",
]
