"""Data structures shared across routing, execution and the API."""

from swap_engine.models.chain import Log, Receipt
from swap_engine.models.results import (
    FailedSwapResult,
    RealSwapResult,
    SimulatedSwapResult,
    SwapEstimate,
    SwapResult,
)
from swap_engine.models.routing import Exchange, Hop, PathNotFound, Quote, TradePath
from swap_engine.models.types import Address, DecimalAmount, TxHash

__all__ = [
    # Types
    "Address",
    "DecimalAmount",
    "TxHash",
    # Chain data
    "Log",
    "Receipt",
    # Routing
    "Exchange",
    "Hop",
    "PathNotFound",
    "Quote",
    "TradePath",
    # Results
    "FailedSwapResult",
    "RealSwapResult",
    "SimulatedSwapResult",
    "SwapEstimate",
    "SwapResult",
]
