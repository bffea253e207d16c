"""Unit tests for exchange discovery and path finding."""

import pytest

from swap_engine.constants import ALFAJORES_CHAIN_ID
from swap_engine.errors import ErrorKind, SwapError
from swap_engine.models.routing import PathNotFound, TradePath
from swap_engine.routing.discovery import ExchangeDiscovery
from tests.helpers import (
    CEUR,
    CKES,
    CREAL,
    CUSD,
    PROVIDER_A,
    PROVIDER_B,
    FakeBroker,
    make_exchange,
    mainnet_env,
    testnet_env,
)


@pytest.fixture
def env():
    return mainnet_env()


class TestDirectPaths:
    """Direct exchanges are found regardless of asset order."""

    def test_direct_pair(self, chain, env):
        exchange = make_exchange(CUSD, CEUR)
        broker = FakeBroker(chain, {PROVIDER_A: [exchange]})
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD)

        path = discovery.find_path(CUSD, CEUR, env)

        assert isinstance(path, TradePath)
        assert len(path) == 1
        assert path.hops[0].exchange_id == exchange.exchange_id
        assert (path.from_asset, path.to_asset) == (CUSD, CEUR)

    def test_order_insensitive(self, chain, env):
        broker = FakeBroker(chain, {PROVIDER_A: [make_exchange(CUSD, CEUR)]})
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD)

        path = discovery.find_path(CEUR, CUSD, env)

        assert len(path) == 1
        assert (path.from_asset, path.to_asset) == (CEUR, CUSD)

    def test_mixed_case_addresses(self, chain, env):
        broker = FakeBroker(chain, {PROVIDER_A: [make_exchange(CUSD, CEUR)]})
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD)

        path = discovery.find_path(CUSD.upper().replace("0X", "0x"), CEUR, env)

        assert len(path) == 1

    def test_first_match_wins_in_broker_order(self, chain, env):
        first = make_exchange(CUSD, CEUR, provider=PROVIDER_A)
        second = make_exchange(CUSD, CEUR, provider=PROVIDER_B)
        broker = FakeBroker(chain, {PROVIDER_A: [first], PROVIDER_B: [second]})
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD, max_workers=4)

        path = discovery.find_path(CUSD, CEUR, env)

        assert path.hops[0].exchange_id == first.exchange_id

    def test_direct_preferred_over_hub(self, chain, env):
        broker = FakeBroker(
            chain,
            {
                PROVIDER_A: [make_exchange(CEUR, CUSD), make_exchange(CUSD, CREAL)],
                PROVIDER_B: [make_exchange(CEUR, CREAL)],
            },
        )
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD)

        path = discovery.find_path(CEUR, CREAL, env)

        assert len(path) == 1


class TestHubPaths:
    """Two-hop routing through the hub asset."""

    def test_two_hop_through_hub(self, chain, env):
        broker = FakeBroker(
            chain, {PROVIDER_A: [make_exchange(CEUR, CUSD), make_exchange(CUSD, CREAL)]}
        )
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD)

        path = discovery.find_path(CEUR, CREAL, env)

        assert isinstance(path, TradePath)
        assert path.is_multihop
        assert path.assets == [CEUR, CUSD, CREAL]
        assert path.hops[0].to_asset == path.hops[1].from_asset

    def test_hub_legs_across_providers(self, chain, env):
        broker = FakeBroker(
            chain,
            {
                PROVIDER_A: [make_exchange(CEUR, CUSD)],
                PROVIDER_B: [make_exchange(CREAL, CUSD, provider=PROVIDER_B)],
            },
        )
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD)

        path = discovery.find_path(CEUR, CREAL, env)

        assert [hop.provider for hop in path.hops] == [PROVIDER_A, PROVIDER_B]

    def test_missing_second_leg(self, chain, env):
        broker = FakeBroker(chain, {PROVIDER_A: [make_exchange(CEUR, CUSD)]})
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD)

        result = discovery.find_path(CEUR, CKES, env)

        assert isinstance(result, PathNotFound)
        assert not result
        assert result.hub == CUSD
        assert result.attempted_legs == ((CEUR, CKES), (CEUR, CUSD), (CUSD, CKES))

    def test_missing_first_leg_stops_search(self, chain, env):
        broker = FakeBroker(chain, {PROVIDER_A: [make_exchange(CUSD, CKES)]})
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD)

        result = discovery.find_path(CEUR, CKES, env)

        assert isinstance(result, PathNotFound)
        assert result.attempted_legs == ((CEUR, CKES), (CEUR, CUSD))

    def test_hub_endpoint_skips_hub_search(self, chain, env):
        """When one side is the hub, only the direct pair is tried."""
        broker = FakeBroker(chain, {PROVIDER_A: [make_exchange(CEUR, CREAL)]})
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD)

        result = discovery.find_path(CUSD, CKES, env)

        assert isinstance(result, PathNotFound)
        assert result.attempted_legs == ((CUSD, CKES),)
        assert result.hub is None

    def test_no_exchanges_at_all(self, chain, env):
        discovery = ExchangeDiscovery(FakeBroker(chain), hub_asset=CUSD)

        assert isinstance(discovery.find_path(CEUR, CREAL, env), PathNotFound)


class TestDiscoveryErrors:
    def test_same_asset_is_validation_error(self, chain, env):
        discovery = ExchangeDiscovery(FakeBroker(chain), hub_asset=CUSD)

        with pytest.raises(SwapError) as exc_info:
            discovery.find_path(CUSD, CUSD, env)
        assert exc_info.value.kind is ErrorKind.VALIDATION

    def test_rpc_fault_is_classified(self, chain, env):
        broker = FakeBroker(chain)
        broker.discovery_error = ConnectionError("read timed out")
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD)

        with pytest.raises(SwapError) as exc_info:
            discovery.find_path(CEUR, CREAL, env)
        assert exc_info.value.kind is ErrorKind.NETWORK_TIMEOUT


class TestDiscoveryCache:
    """Listings are cached per chain."""

    def test_listing_fetched_once(self, chain, cache, env):
        broker = FakeBroker(chain, {PROVIDER_A: [make_exchange(CUSD, CEUR)]})
        discovery = ExchangeDiscovery(broker, cache=cache, hub_asset=CUSD)

        discovery.find_path(CUSD, CEUR, env)
        discovery.find_path(CEUR, CUSD, env)

        assert broker.provider_calls == 1

    def test_refetch_after_ttl(self, chain, cache, clock, env):
        broker = FakeBroker(chain, {PROVIDER_A: [make_exchange(CUSD, CEUR)]})
        discovery = ExchangeDiscovery(broker, cache=cache, hub_asset=CUSD)

        discovery.find_path(CUSD, CEUR, env)
        clock.now += cache.ttl
        discovery.find_path(CUSD, CEUR, env)

        assert broker.provider_calls == 2

    def test_chain_switch_refetches(self, chain, cache, env):
        broker = FakeBroker(chain, {PROVIDER_A: [make_exchange(CUSD, CEUR)]})
        discovery = ExchangeDiscovery(broker, cache=cache, hub_asset=CUSD)

        discovery.find_path(CUSD, CEUR, env)
        discovery.listing(testnet_env())
        discovery.find_path(CUSD, CEUR, env)

        assert broker.provider_calls == 3
        assert ALFAJORES_CHAIN_ID not in cache

    def test_no_cache_fetches_every_time(self, chain, env):
        broker = FakeBroker(chain, {PROVIDER_A: [make_exchange(CUSD, CEUR)]})
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD)

        discovery.find_path(CUSD, CEUR, env)
        discovery.find_path(CUSD, CEUR, env)

        assert broker.provider_calls == 2

    def test_every_provider_is_enumerated(self, chain, env):
        broker = FakeBroker(
            chain,
            {PROVIDER_A: [make_exchange(CEUR, CUSD)], PROVIDER_B: [make_exchange(CUSD, CREAL)]},
        )
        discovery = ExchangeDiscovery(broker, hub_asset=CUSD, max_workers=2)

        listing = discovery.listing(env)

        assert listing.providers == (PROVIDER_A, PROVIDER_B)
        assert sorted(broker.exchange_calls) == sorted([PROVIDER_A, PROVIDER_B])
