"""Exchange graph discovery.

Enumerates the broker's exchange providers and their exchanges, then finds a
direct path between two assets or a two-hop path through the chain's hub
asset. Direct paths always win over hub paths, and the first matching
exchange (in broker order) wins among candidates.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import structlog

from swap_engine.chains import Environment
from swap_engine.contracts import BrokerGateway
from swap_engine.errors import ErrorKind, SwapError, to_swap_error
from swap_engine.models.routing import Exchange, Hop, PathNotFound, TradePath
from swap_engine.models.types import normalize_address
from swap_engine.routing.cache import ExchangeCache, ExchangeListing

logger = structlog.get_logger()


class ExchangeDiscovery:
    """Finds trade paths through a broker's exchanges.

    Args:
        broker: Broker gateway for the active chain
        cache: Injected chain-scoped listing cache (None disables caching)
        hub_asset: Address of the chain's hub/reserve asset, if any
        max_workers: Max concurrent getExchanges reads (1 = sequential)
    """

    def __init__(
        self,
        broker: BrokerGateway,
        cache: ExchangeCache | None = None,
        hub_asset: str | None = None,
        max_workers: int = 4,
    ) -> None:
        self.broker = broker
        self.cache = cache
        self.hub_asset = normalize_address(hub_asset) if hub_asset else None
        self.max_workers = max(1, max_workers)

    def listing(self, env: Environment) -> ExchangeListing:
        """Return the broker's exchanges, from cache when fresh.

        Raises:
            SwapError: Classified RPC/network failure
        """
        if self.cache is not None:
            self.cache.observe_chain(env.chain_id)
            cached = self.cache.get(env.chain_id)
            if cached is not None:
                return cached

        try:
            listing = self._fetch_listing()
        except SwapError:
            raise
        except Exception as e:
            logger.warning("exchange_discovery_failed", chain_id=env.chain_id, error=str(e))
            raise to_swap_error(e, reverted=ErrorKind.NETWORK_ERROR) from e

        logger.info(
            "exchanges_discovered",
            chain_id=env.chain_id,
            provider_count=len(listing.providers),
            exchange_count=sum(len(v) for v in listing.exchanges.values()),
        )
        if self.cache is not None:
            self.cache.put(env.chain_id, listing)
        return listing

    def _fetch_listing(self) -> ExchangeListing:
        providers = tuple(self.broker.get_exchange_providers())
        if len(providers) <= 1 or self.max_workers == 1:
            per_provider = [self.broker.get_exchanges(p) for p in providers]
        else:
            # Pure reads; map() keeps provider order so first-match stays deterministic
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(providers))) as pool:
                per_provider = list(pool.map(self.broker.get_exchanges, providers))
        return ExchangeListing(
            providers=providers,
            exchanges={p: tuple(ex) for p, ex in zip(providers, per_provider, strict=True)},
        )

    def find_exchange(
        self, listing: ExchangeListing, asset_a: str, asset_b: str
    ) -> Exchange | None:
        """Return the first exchange trading the pair, in broker order."""
        for exchange in listing.iter_exchanges():
            if exchange.trades(asset_a, asset_b):
                return exchange
        return None

    def find_path(
        self, from_asset: str, to_asset: str, env: Environment
    ) -> TradePath | PathNotFound:
        """Find a direct or hub-routed path between two assets.

        Args:
            from_asset: Source token address
            to_asset: Destination token address
            env: Active environment (selects the cache entry)

        Returns:
            A 1-hop or 2-hop TradePath, or PathNotFound listing the legs tried

        Raises:
            SwapError: VALIDATION when both assets are the same; classified
                error for RPC/network faults
        """
        from_norm = normalize_address(from_asset)
        to_norm = normalize_address(to_asset)
        if from_norm == to_norm:
            raise SwapError(
                ErrorKind.VALIDATION, detail="Source and destination are the same asset"
            )

        listing = self.listing(env)
        attempted: list[tuple[str, str]] = [(from_norm, to_norm)]

        direct = self.find_exchange(listing, from_norm, to_norm)
        if direct is not None:
            logger.debug("direct_exchange_found", exchange_id=direct.exchange_id)
            return TradePath((Hop.through(direct, from_norm, to_norm),))

        hub = self.hub_asset
        if hub is None or hub in (from_norm, to_norm):
            return PathNotFound(from_norm, to_norm, tuple(attempted), hub=None)

        attempted.append((from_norm, hub))
        first = self.find_exchange(listing, from_norm, hub)
        if first is None:
            return PathNotFound(from_norm, to_norm, tuple(attempted), hub=hub)

        attempted.append((hub, to_norm))
        second = self.find_exchange(listing, hub, to_norm)
        if second is None:
            return PathNotFound(from_norm, to_norm, tuple(attempted), hub=hub)

        logger.debug(
            "hub_path_found",
            hub=hub,
            first_exchange=first.exchange_id,
            second_exchange=second.exchange_id,
        )
        return TradePath(
            (
                Hop.through(first, from_norm, hub),
                Hop.through(second, hub, to_norm),
            )
        )


__all__ = ["ExchangeDiscovery"]
