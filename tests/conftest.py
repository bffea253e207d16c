"""Pytest configuration and fixtures."""

import pytest

from swap_engine.config import DEFAULT_SWAP_CONFIG
from swap_engine.execution.transactions import TransactionClient
from swap_engine.routing.cache import ExchangeCache
from tests.helpers.factories import FakeClock
from tests.helpers.fakes import FakeBroker, FakeChain, FakeTokens

# =============================================================================
# Fakes for dependency injection
# =============================================================================


@pytest.fixture
def chain() -> FakeChain:
    """In-memory chain acting as the signer."""
    return FakeChain()


@pytest.fixture
def tokens(chain: FakeChain) -> FakeTokens:
    return FakeTokens(chain)


@pytest.fixture
def broker(chain: FakeChain) -> FakeBroker:
    """Broker with no exchanges; tests add their own."""
    return FakeBroker(chain)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transactions(chain: FakeChain, clock: FakeClock) -> TransactionClient:
    """Chain client that never really sleeps."""
    return TransactionClient(chain, DEFAULT_SWAP_CONFIG, sleep=clock.sleep, clock=clock)


@pytest.fixture
def cache(clock: FakeClock) -> ExchangeCache:
    return ExchangeCache(ttl=DEFAULT_SWAP_CONFIG.exchange_cache_ttl, clock=clock)
