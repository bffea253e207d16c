"""Routing data structures: exchanges, hops, trade paths and quotes."""

from __future__ import annotations

from dataclasses import dataclass, field

from swap_engine.models.types import normalize_address


def normalize_exchange_id(exchange_id: str | bytes) -> str:
    """Render a bytes32 exchange id as lowercase 0x-prefixed hex."""
    if isinstance(exchange_id, bytes | bytearray):
        text = bytes(exchange_id).hex()
    else:
        text = exchange_id.lower()
    if text.startswith("0x"):
        text = text[2:]
    if len(text) > 64:
        raise ValueError(f"Exchange id longer than 32 bytes: {exchange_id!r}")
    return "0x" + text.rjust(64, "0")


@dataclass(frozen=True)
class Exchange:
    """A tradable asset pair hosted by an exchange provider."""

    provider: str
    exchange_id: str
    assets: frozenset[str]

    @classmethod
    def create(cls, provider: str, exchange_id: str | bytes, assets: list[str]) -> Exchange:
        """Build an Exchange with normalized provider, id and asset addresses."""
        return cls(
            provider=normalize_address(provider),
            exchange_id=normalize_exchange_id(exchange_id),
            assets=frozenset(normalize_address(a) for a in assets),
        )

    def trades(self, asset_a: str, asset_b: str) -> bool:
        """Check whether this exchange trades the pair (order-insensitive)."""
        a = normalize_address(asset_a)
        b = normalize_address(asset_b)
        return a != b and a in self.assets and b in self.assets


@dataclass(frozen=True)
class Hop:
    """One swap through a single exchange."""

    from_asset: str
    to_asset: str
    provider: str
    exchange_id: str

    @classmethod
    def through(cls, exchange: Exchange, from_asset: str, to_asset: str) -> Hop:
        return cls(
            from_asset=normalize_address(from_asset),
            to_asset=normalize_address(to_asset),
            provider=exchange.provider,
            exchange_id=exchange.exchange_id,
        )


@dataclass(frozen=True)
class TradePath:
    """An ordered, connected list of one or two hops."""

    hops: tuple[Hop, ...]

    def __post_init__(self) -> None:
        if not 1 <= len(self.hops) <= 2:
            raise ValueError(f"Trade path must have 1 or 2 hops, got {len(self.hops)}")
        for prev, nxt in zip(self.hops, self.hops[1:], strict=False):
            if prev.to_asset != nxt.from_asset:
                raise ValueError(
                    f"Disconnected path: hop ends at {prev.to_asset}, "
                    f"next starts at {nxt.from_asset}"
                )

    @property
    def from_asset(self) -> str:
        return self.hops[0].from_asset

    @property
    def to_asset(self) -> str:
        return self.hops[-1].to_asset

    @property
    def is_multihop(self) -> bool:
        return len(self.hops) > 1

    @property
    def assets(self) -> list[str]:
        """Token addresses along the path, e.g. [from, hub, to]."""
        return [self.hops[0].from_asset] + [hop.to_asset for hop in self.hops]

    def __len__(self) -> int:
        return len(self.hops)

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class PathNotFound:
    """Discovery outcome when no direct or hub route exists.

    Attributes:
        from_asset: Source token address
        to_asset: Destination token address
        attempted_legs: Token pairs that were searched, in search order
        hub: Hub token address that was tried, if any
    """

    from_asset: str
    to_asset: str
    attempted_legs: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    hub: str | None = None

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class Quote:
    """Expected and minimum-acceptable output for one hop.

    min_out is derived from expected_out and the slippage tolerance and is
    never cached across attempts.
    """

    hop: Hop
    amount_in: int
    expected_out: int
    min_out: int
    slippage_bps: int


__all__ = [
    "Exchange",
    "Hop",
    "PathNotFound",
    "Quote",
    "TradePath",
    "normalize_exchange_id",
]
