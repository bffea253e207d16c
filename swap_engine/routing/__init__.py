"""Exchange discovery, caching and quoting."""

from swap_engine.routing.cache import ExchangeCache, ExchangeListing
from swap_engine.routing.discovery import ExchangeDiscovery
from swap_engine.routing.quotes import QuoteEngine, min_amount_out, validate_slippage_bps

__all__ = [
    "ExchangeCache",
    "ExchangeDiscovery",
    "ExchangeListing",
    "QuoteEngine",
    "min_amount_out",
    "validate_slippage_bps",
]
