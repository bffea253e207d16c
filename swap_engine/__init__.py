"""Stablecoin swap routing and execution engine for Mento exchanges."""

from swap_engine.service import SwapParams, SwapService, SwapStep

__version__ = "0.1.0"
__all__ = ["SwapParams", "SwapService", "SwapStep", "__version__"]
