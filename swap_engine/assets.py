"""Per-chain asset registry.

Maps token symbols to their on-chain address and decimals. Registries are
static data: assets are immutable per chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, localcontext

from swap_engine.constants import ALFAJORES_CHAIN_ID, CELO_MAINNET_CHAIN_ID
from swap_engine.errors import ErrorKind, SwapError
from swap_engine.models.types import is_valid_address, normalize_address


@dataclass(frozen=True)
class Asset:
    """A token on a specific chain."""

    symbol: str
    address: str
    decimals: int
    chain_id: int

    def to_base_units(self, amount: str | Decimal) -> int:
        """Convert a human-readable amount to integer base units.

        Raises:
            SwapError: VALIDATION if the amount has more precision than the token
        """
        with localcontext() as ctx:
            # uint256 needs 78 digits
            ctx.prec = 80
            scaled = Decimal(amount).scaleb(self.decimals)
        if scaled != scaled.to_integral_value(rounding=ROUND_DOWN):
            raise SwapError(
                ErrorKind.VALIDATION,
                detail=f"{amount} has more than {self.decimals} decimals for {self.symbol}",
            )
        return int(scaled)

    def from_base_units(self, amount: int) -> Decimal:
        """Convert integer base units to a human-readable Decimal."""
        with localcontext() as ctx:
            ctx.prec = 80
            return Decimal(amount).scaleb(-self.decimals)


# Mento stable assets (18 decimals unless noted)
CELO_MAINNET_TOKENS: dict[str, tuple[str, int]] = {
    "CELO": ("0x471ece3750da237f93b8e339c536989b8978a438", 18),
    "CUSD": ("0x765DE816845861e75A25fCA122bb6898B8B1282a", 18),
    "CEUR": ("0xD8763CBa276a3738E6DE85b4b3bF5FDed6D6cA73", 18),
    "CREAL": ("0xe8537a3d056DA446677B9E9d6c5dB704EaAb4787", 18),
    "CKES": ("0x456a3D042C0DbD3db53D5489e98dFb038553B0d0", 18),
    "CCOP": ("0x8A567e2aE79CA692Bd748aB832081C45de4041eA", 18),
    "PUSO": ("0x105d4A9306D2E55a71d2Eb95B81553AE1dC20d7B", 18),
    "CGHS": ("0xfAeA5F3404bbA20D3cc2f8C4B0A888F55a3c7313", 18),
    "CGBP": ("0xCCF663b1fF11028f0b19058d0f7B674004a40746", 18),
    "CZAR": ("0x4c35853A3B4e647fD266f4de678dCc8fEC410BF6", 18),
    "CCAD": ("0xff4Ab19391af240c311c54200a492233052B6325", 18),
    "CAUD": ("0x7175504C455076F15c04A2F90a8e352281F492F9", 18),
    "CXOF": ("0x73F93dcc49cB8A239e2032663e9475dd5ef29A08", 18),
    "CCHF": ("0xb55a79F398E759E43C95b979163f30eC87Ee131D", 18),
    "CJPY": ("0xc45eCF20f3CD864B32D9794d6f76814aE8892e20", 18),
    "CNGN": ("0xE2702Bd97ee33c88c8f6f92DA3B733608aa76F71", 18),
    "USDT": ("0x48065fbbe25f71c9282ddf5e1cd6d6a887483d5e", 6),
}

ALFAJORES_TOKENS: dict[str, tuple[str, int]] = {
    "CELO": ("0xF194afDf50B03e69Bd7D057c1Aa9e10c9954E4C9", 18),
    "CUSD": ("0x874069fa1eb16d44d622f2e0ca25eea172369bc1", 18),
    "CEUR": ("0x10c892a6ec43a53e45d0b916b4b7d383b1b78c0f", 18),
    "CREAL": ("0xe4d517785d091d3c54818832db6094bcc2744545", 18),
    "CXOF": ("0xB0FA15e002516d0301884059c0aaC0F0C72b019D", 18),
    "CKES": ("0x1E0433C1769271ECcF4CFF9FDdD515eefE6CdF92", 18),
    "CPESO": ("0x5E0E3c9419C42a1B04e2525991FB1A2C467AB8bF", 18),
    "CCOP": ("0xe6A57340f0df6E020c1c0a80bC6E13048601f0d4", 18),
    "CGHS": ("0x295B66bE7714458Af45E6A6Ea142A5358A6cA375", 18),
    "CGBP": ("0x47f2Fb88105155a18c390641C8a73f1402B2BB12", 18),
    "CZAR": ("0x1e5b44015Ff90610b54000DAad31C89b3284df4d", 18),
    "CCAD": ("0x02EC9E0D2Fd73e89168C1709e542a48f58d7B133", 18),
    "CAUD": ("0x84CBD49F5aE07632B6B88094E81Cce8236125Fe0", 18),
    "PUSO": ("0x105d4a9306d2e55a71d2eb95b81553ae1dc20d7b", 18),
    "USDT": ("0xd077A400968890Eacc75cdc901F0356c943e4fDb", 6),
}

_CHAIN_TOKENS: dict[int, dict[str, tuple[str, int]]] = {
    CELO_MAINNET_CHAIN_ID: CELO_MAINNET_TOKENS,
    ALFAJORES_CHAIN_ID: ALFAJORES_TOKENS,
}


class AssetRegistry:
    """Symbol → Asset lookup for a single chain.

    Lookups are case-insensitive on symbols and addresses.

    Usage:
        registry = AssetRegistry.for_chain(42220)
        cusd = registry.get("cUSD")
    """

    def __init__(self, chain_id: int, assets: list[Asset] | None = None) -> None:
        self.chain_id = chain_id
        self._by_symbol: dict[str, Asset] = {}
        self._by_address: dict[str, Asset] = {}
        for asset in assets or []:
            self.add(asset)

    @classmethod
    def for_chain(cls, chain_id: int) -> AssetRegistry:
        """Build the static registry for a supported chain.

        Raises:
            SwapError: VALIDATION if the chain has no registry
        """
        tokens = _CHAIN_TOKENS.get(chain_id)
        if tokens is None:
            raise SwapError(
                ErrorKind.VALIDATION, detail=f"No assets registered for chain {chain_id}"
            )
        return cls(
            chain_id,
            [
                Asset(symbol=symbol, address=address, decimals=decimals, chain_id=chain_id)
                for symbol, (address, decimals) in tokens.items()
            ],
        )

    def add(self, asset: Asset) -> None:
        """Register an asset (address normalized to lowercase).

        Raises:
            ValueError: If the asset belongs to another chain or has a bad address
        """
        if asset.chain_id != self.chain_id:
            raise ValueError(
                f"Asset {asset.symbol} is on chain {asset.chain_id}, registry is {self.chain_id}"
            )
        if not is_valid_address(asset.address):
            raise ValueError(f"Invalid {asset.symbol} address: {asset.address}")
        normalized = Asset(
            symbol=asset.symbol.upper(),
            address=normalize_address(asset.address),
            decimals=asset.decimals,
            chain_id=asset.chain_id,
        )
        self._by_symbol[normalized.symbol] = normalized
        self._by_address[normalized.address] = normalized

    def get(self, symbol: str) -> Asset:
        """Look up an asset by symbol.

        Raises:
            SwapError: VALIDATION for unknown symbols
        """
        asset = self._by_symbol.get(symbol.strip().upper())
        if asset is None:
            raise SwapError(
                ErrorKind.VALIDATION,
                detail=f"Unknown token {symbol!r} on chain {self.chain_id}",
            )
        return asset

    def find(self, symbol: str) -> Asset | None:
        return self._by_symbol.get(symbol.strip().upper())

    def by_address(self, address: str) -> Asset | None:
        return self._by_address.get(normalize_address(address))

    def symbols(self) -> list[str]:
        return sorted(self._by_symbol)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol.strip().upper() in self._by_symbol

    def __len__(self) -> int:
        return len(self._by_symbol)
