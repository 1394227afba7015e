"""Core routing types: assets, quote requests and routes."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

SLIPPAGE_PERCENT_DEFAULT = Decimal("0.5")


class RouteType(str, Enum):
    """How a route moves value."""

    EXCHANGE = "EXCHANGE"  # same-chain swap venue
    BRIDGE = "BRIDGE"  # cross-chain bridging protocol


class RouteTag(str, Enum):
    """Ranking labels attached by the tagging pass."""

    BEST_RETURN = "Best Return"
    FASTEST = "Fastest"
    LOWEST_GAS = "Lowest Gas"


@dataclass(frozen=True)
class Asset:
    """Snapshot of an asset from the price/balance feed."""

    symbol: str
    chain: str
    price: Decimal  # USD per unit
    balance: Decimal = Decimal("0")


@dataclass(frozen=True)
class QuoteRequest:
    """Parameters for one quote cycle.

    Compared by value, so re-submitting identical input is a no-op for the
    refresh controller.
    """

    from_chain: str
    to_chain: str
    from_asset: Asset
    to_asset: Asset
    amount: Decimal
    slippage_tolerance: Decimal = SLIPPAGE_PERCENT_DEFAULT  # percent

    @property
    def is_cross_chain(self) -> bool:
        return self.from_chain != self.to_chain

    @property
    def base_rate(self) -> Decimal:
        """Theoretical rate with no fees or slippage."""
        return self.from_asset.price / self.to_asset.price

    @property
    def notional_usd(self) -> Decimal:
        return self.amount * self.from_asset.price

    def describe(self) -> str:
        return (
            f"{self.amount} {self.from_asset.symbol}@{self.from_chain} -> "
            f"{self.to_asset.symbol}@{self.to_chain}"
        )


@dataclass(frozen=True)
class Route:
    """One candidate path for converting an amount of one asset into another.

    Routes are created fresh on every discovery call and never mutated; the
    tagging pass returns copies.
    """

    id: str
    provider_name: str
    provider_icon: str
    type: RouteType
    from_symbol: str
    to_symbol: str
    from_chain: str
    to_chain: str
    input_amount: Decimal
    output_amount: Decimal
    fee_usd: Decimal
    estimated_time_seconds: int
    steps: tuple[str, ...]
    minimum_received: Decimal
    tags: frozenset[RouteTag] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.steps:
            raise ValueError(f"Route {self.id} must have at least one step")

    def has_tag(self, tag: RouteTag) -> bool:
        return tag in self.tags

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "provider_name": self.provider_name,
            "provider_icon": self.provider_icon,
            "type": self.type.value,
            "from_symbol": self.from_symbol,
            "to_symbol": self.to_symbol,
            "from_chain": self.from_chain,
            "to_chain": self.to_chain,
            "input_amount": str(self.input_amount),
            "output_amount": str(self.output_amount),
            "minimum_received": str(self.minimum_received),
            "fee_usd": str(self.fee_usd),
            "estimated_time_seconds": self.estimated_time_seconds,
            "steps": list(self.steps),
            "tags": sorted(tag.value for tag in self.tags),
        }
