"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token addresses, accounts and common amounts
- fakes: In-memory chain, broker and token gateways
- factories: Exchange, environment and engine factory functions
"""

from tests.helpers.constants import (
    ALFAJORES_CEUR,
    ALFAJORES_CKES,
    ALFAJORES_CUSD,
    BROKER,
    CEUR,
    CKES,
    CREAL,
    CUSD,
    ONE,
    OWNER,
    PROVIDER_A,
    PROVIDER_B,
    USDT,
)
from tests.helpers.factories import (
    Engine,
    FakeClock,
    make_engine,
    make_exchange,
    mainnet_env,
    testnet_env,
)
from tests.helpers.fakes import FakeBroker, FakeChain, FakeTokens, transfer_log

__all__ = [
    # Constants
    "CUSD",
    "CEUR",
    "CREAL",
    "CKES",
    "USDT",
    "ALFAJORES_CUSD",
    "ALFAJORES_CEUR",
    "ALFAJORES_CKES",
    "BROKER",
    "OWNER",
    "PROVIDER_A",
    "PROVIDER_B",
    "ONE",
    # Fakes
    "FakeBroker",
    "FakeChain",
    "FakeTokens",
    "transfer_log",
    # Factories
    "Engine",
    "FakeClock",
    "make_engine",
    "make_exchange",
    "mainnet_env",
    "testnet_env",
]
