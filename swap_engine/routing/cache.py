"""Chain-scoped cache for the broker's provider/exchange listing.

This is the only cross-call cache in the engine. It holds read-only data
about which staleness is tolerable (exchanges are added rarely), keyed by
chain id, with a TTL and explicit invalidation.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from swap_engine.models.routing import Exchange

logger = structlog.get_logger()


@dataclass(frozen=True)
class ExchangeListing:
    """All exchanges of a broker, grouped by provider in broker order."""

    providers: tuple[str, ...]
    exchanges: dict[str, tuple[Exchange, ...]]

    def iter_exchanges(self) -> list[Exchange]:
        """Exchanges in provider order, then in each provider's own order."""
        return [exchange for p in self.providers for exchange in self.exchanges.get(p, ())]


class ExchangeCache:
    """TTL cache of ExchangeListing per chain id.

    Usage:
        cache = ExchangeCache(ttl=3600)
        cache.observe_chain(env.chain_id)   # drops other chains on switch
        listing = cache.get(env.chain_id)
        if listing is None:
            cache.put(env.chain_id, fetch_listing())
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[int, tuple[float, ExchangeListing]] = {}
        self._active_chain: int | None = None
        self._lock = threading.Lock()

    def get(self, chain_id: int) -> ExchangeListing | None:
        """Return a fresh listing for the chain, or None if missing/expired."""
        with self._lock:
            entry = self._entries.get(chain_id)
            if entry is None:
                return None
            stored_at, listing = entry
            if self._clock() - stored_at >= self.ttl:
                del self._entries[chain_id]
                logger.debug("exchange_cache_expired", chain_id=chain_id)
                return None
            return listing

    def put(self, chain_id: int, listing: ExchangeListing) -> None:
        with self._lock:
            self._entries[chain_id] = (self._clock(), listing)

    def invalidate(self, chain_id: int | None = None) -> None:
        """Drop one chain's listing, or everything when chain_id is None."""
        with self._lock:
            if chain_id is None:
                self._entries.clear()
            else:
                self._entries.pop(chain_id, None)

    def observe_chain(self, chain_id: int) -> None:
        """Record the active chain; a change invalidates every other chain."""
        with self._lock:
            if self._active_chain is not None and self._active_chain != chain_id:
                logger.info(
                    "exchange_cache_chain_changed",
                    previous_chain_id=self._active_chain,
                    chain_id=chain_id,
                )
                self._entries = {k: v for k, v in self._entries.items() if k == chain_id}
            self._active_chain = chain_id

    def __contains__(self, chain_id: object) -> bool:
        return isinstance(chain_id, int) and self.get(chain_id) is not None


__all__ = ["ExchangeCache", "ExchangeListing"]
