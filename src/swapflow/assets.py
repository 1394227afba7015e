"""Simulated asset price/balance feed.

Stands in for the portfolio subsystem. A snapshot is authoritative for one
quote cycle; a real feed replaces this module without touching routing.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from swapflow.errors import ValidationError
from swapflow.routing.base import Asset

logger = logging.getLogger(__name__)

# Simulated market prices in USD
# These are for demonstration purposes only and should not be used for real trading
SIMULATED_PRICES: dict[str, Decimal] = {
    "BTC": Decimal("64230.50"),
    "ETH": Decimal("3450.20"),
    "SOL": Decimal("145.80"),
    "MATIC": Decimal("0.72"),
    "BNB": Decimal("590.40"),
    "OP": Decimal("2.45"),
    "ARB": Decimal("1.10"),
    "USDC": Decimal("1.00"),
    "USDT": Decimal("1.00"),
    "LINK": Decimal("17.85"),
    "UNI": Decimal("9.60"),
    "JUP": Decimal("1.05"),
}

# (chain, symbol, balance)
SIMULATED_HOLDINGS: tuple[tuple[str, str, Decimal], ...] = (
    ("Bitcoin", "BTC", Decimal("0.45")),
    ("Ethereum", "ETH", Decimal("250")),
    ("Ethereum", "USDC", Decimal("12500")),
    ("Ethereum", "USDT", Decimal("3000")),
    ("Ethereum", "LINK", Decimal("120")),
    ("Ethereum", "UNI", Decimal("80")),
    ("Solana", "SOL", Decimal("140")),
    ("Solana", "USDC", Decimal("2200")),
    ("Solana", "JUP", Decimal("900")),
    ("Polygon", "MATIC", Decimal("5000")),
    ("Polygon", "USDC", Decimal("750")),
    ("BSC", "BNB", Decimal("6.5")),
    ("BSC", "USDT", Decimal("1200")),
    ("Optimism", "OP", Decimal("400")),
    ("Optimism", "ETH", Decimal("1.2")),
    ("Arbitrum", "ARB", Decimal("1500")),
    ("Arbitrum", "ETH", Decimal("0.8")),
)


class AssetBook:
    """Snapshot of assets keyed by (chain, symbol)."""

    def __init__(self, assets: Optional[Iterable[Asset]] = None):
        if assets is None:
            assets = (
                Asset(symbol=symbol, chain=chain, price=SIMULATED_PRICES[symbol], balance=balance)
                for chain, symbol, balance in SIMULATED_HOLDINGS
            )
        self._assets: dict[tuple[str, str], Asset] = {
            (a.chain, a.symbol.upper()): a for a in assets
        }

    def assets(self) -> list[Asset]:
        return list(self._assets.values())

    def find(self, chain: str, symbol: str) -> Optional[Asset]:
        return self._assets.get((chain, symbol.upper()))

    def get(self, chain: str, symbol: str) -> Asset:
        """Look up an asset, allowing zero-balance destinations on any chain.

        A symbol the wallet does not hold on ``chain`` resolves with a zero
        balance as long as its price is known.
        """
        asset = self.find(chain, symbol)
        if asset is not None:
            return asset
        price = self.price_of(symbol)
        if price is None:
            raise ValidationError(f"Unknown asset {symbol} on {chain}")
        return Asset(symbol=symbol.upper(), chain=chain, price=price, balance=Decimal("0"))

    def price_of(self, symbol: str) -> Optional[Decimal]:
        symbol = symbol.upper()
        for (_, held), asset in self._assets.items():
            if held == symbol:
                return asset.price
        return None

    def set_price(self, symbol: str, price: Decimal) -> None:
        """Reprice every holding of a symbol (a new snapshot)."""
        symbol = symbol.upper()
        for key, asset in list(self._assets.items()):
            if key[1] == symbol:
                self._assets[key] = Asset(asset.symbol, asset.chain, price, asset.balance)
        logger.debug(f"Price of {symbol} set to {price}")

    def set_balance(self, chain: str, symbol: str, balance: Decimal) -> Asset:
        asset = self.get(chain, symbol)
        updated = Asset(asset.symbol, asset.chain, asset.price, balance)
        self._assets[(chain, asset.symbol)] = updated
        return updated
