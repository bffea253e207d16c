"""Configuration for the swap engine."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields

from swap_engine.constants import (
    APPROVAL_GAS_LIMIT,
    APPROVAL_RETRY_GAS_LIMIT,
    DEFAULT_SLIPPAGE_BPS,
    FALLBACK_SWAP_GAS_LIMIT,
    GAS_PRICE_BUMP_PERCENT,
    SWAP_GAS_LIMIT,
)

ENV_PREFIX = "SWAP_"


@dataclass(frozen=True)
class SwapConfig:
    """Centralized configuration for routing and execution.

    Attributes:
        approval_gas_limit: Gas limit for approve transactions
        approval_retry_gas_limit: Gas limit for the single approval retry
        swap_gas_limit: Fixed gas limit for legacy-profile swaps
        fallback_gas_limit: Manual gas limit used once when estimation fails
        gas_price_bump_percent: Gas price increase applied on approval retry
        default_slippage_bps: Slippage tolerance when the request has none
        receipt_timeout: Seconds to wait for a transaction to be mined
        poll_interval: Seconds between receipt polls
        exchange_cache_ttl: Seconds a chain's exchange list stays fresh
        discovery_workers: Max concurrent getExchanges reads during discovery
    """

    approval_gas_limit: int = APPROVAL_GAS_LIMIT
    approval_retry_gas_limit: int = APPROVAL_RETRY_GAS_LIMIT
    swap_gas_limit: int = SWAP_GAS_LIMIT
    fallback_gas_limit: int = FALLBACK_SWAP_GAS_LIMIT
    gas_price_bump_percent: int = GAS_PRICE_BUMP_PERCENT

    default_slippage_bps: int = DEFAULT_SLIPPAGE_BPS

    receipt_timeout: float = 120.0
    poll_interval: float = 2.0

    exchange_cache_ttl: float = 3600.0
    discovery_workers: int = 4

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SwapConfig:
        """Build a config from SWAP_* environment variables.

        Each field maps to its upper-cased name with the SWAP_ prefix, e.g.
        SWAP_RECEIPT_TIMEOUT=60. Unset variables keep their defaults.

        Raises:
            ValueError: If a variable cannot be parsed as the field's type
        """
        environ = os.environ if environ is None else environ
        overrides: dict[str, int | float] = {}
        for field in fields(cls):
            raw = environ.get(f"{ENV_PREFIX}{field.name.upper()}")
            if raw is None:
                continue
            default = getattr(cls, field.name)
            try:
                overrides[field.name] = type(default)(raw)
            except ValueError as err:
                raise ValueError(
                    f"Invalid value for {ENV_PREFIX}{field.name.upper()}: {raw!r}"
                ) from err
        return cls(**overrides)


# Default configuration instance
DEFAULT_SWAP_CONFIG = SwapConfig()
