"""Data-driven registry of conversion providers.

Each provider is a ``ProviderProfile`` record: display identity, which chain
relationship it serves, and deterministic fee/slippage/speed models. Adding
a provider means adding a record to ``DEFAULT_PROVIDERS`` (or passing a custom
list to ``ProviderRegistry``); discovery has no per-provider branching.
"""

import logging
import random
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from swapflow.routing.base import QuoteRequest, RouteType

logger = logging.getLogger(__name__)

# Slippage never reaches 100% of output
MAX_SLIPPAGE_FRACTION = Decimal("0.99")


@dataclass(frozen=True)
class ProviderProfile:
    """Static description of a swap venue or bridge."""

    name: str
    icon: str
    kind: RouteType
    step_templates: tuple[str, ...]
    slippage_fraction: Decimal
    gas_usd: Decimal
    estimated_time_seconds: int
    chains: Optional[frozenset[str]] = None  # None = any chain
    excluded_chains: frozenset[str] = field(default_factory=frozenset)
    gas_usd_by_chain: dict[str, Decimal] = field(default_factory=dict)
    fee_fraction: Decimal = Decimal("0")  # protocol fee on notional USD
    impact_per_million_usd: Decimal = Decimal("0")  # extra slippage for size
    time_jitter_seconds: int = 0

    def serves_chain(self, chain: str) -> bool:
        if chain in self.excluded_chains:
            return False
        return self.chains is None or chain in self.chains

    def applies_to(self, from_chain: str, to_chain: str) -> bool:
        """Check whether this provider can serve the chain pair."""
        cross_chain = from_chain != to_chain
        if cross_chain != (self.kind == RouteType.BRIDGE):
            return False
        return self.serves_chain(from_chain) and self.serves_chain(to_chain)

    def slippage_for(self, notional_usd: Decimal) -> Decimal:
        """Fractional output reduction for a trade of the given USD size."""
        impact = self.impact_per_million_usd * notional_usd / Decimal("1000000")
        return min(self.slippage_fraction + impact, MAX_SLIPPAGE_FRACTION)

    def fee_for(self, chain: str, notional_usd: Decimal) -> Decimal:
        """Total fee in USD: chain gas plus protocol fee."""
        gas = self.gas_usd_by_chain.get(chain, self.gas_usd)
        return gas + notional_usd * self.fee_fraction

    def settle_seconds(self, rng: Optional[random.Random] = None) -> int:
        """Estimated time to settle, optionally with bounded jitter."""
        if rng is None or self.time_jitter_seconds <= 0:
            return self.estimated_time_seconds
        return self.estimated_time_seconds + rng.randint(0, self.time_jitter_seconds)

    def render_steps(self, request: QuoteRequest) -> tuple[str, ...]:
        values = {
            "from_symbol": request.from_asset.symbol,
            "to_symbol": request.to_asset.symbol,
            "from_chain": request.from_chain,
            "to_chain": request.to_chain,
            "provider": self.name,
        }
        return tuple(template.format(**values) for template in self.step_templates)


DEFAULT_PROVIDERS: tuple[ProviderProfile, ...] = (
    # ========== Same-chain exchanges ==========
    ProviderProfile(
        name="Uniswap V3",
        icon="🦄",
        kind=RouteType.EXCHANGE,
        step_templates=("Approve {from_symbol}", "Swap on Uniswap"),
        slippage_fraction=Decimal("0.003"),
        gas_usd=Decimal("4.50"),
        estimated_time_seconds=15,
        excluded_chains=frozenset({"Solana"}),
    ),
    ProviderProfile(
        name="Jupiter",
        icon="🪐",
        kind=RouteType.EXCHANGE,
        step_templates=("Approve {from_symbol}", "Swap on Jupiter"),
        slippage_fraction=Decimal("0.003"),
        gas_usd=Decimal("0.0005"),
        estimated_time_seconds=15,
        chains=frozenset({"Solana"}),
    ),
    ProviderProfile(
        name="1inch Fusion",
        icon="🛡️",
        kind=RouteType.EXCHANGE,
        step_templates=("Sign Permit", "Swap on 1inch"),
        slippage_fraction=Decimal("0.008"),
        gas_usd=Decimal("3.20"),
        gas_usd_by_chain={"Solana": Decimal("0.0005")},
        estimated_time_seconds=10,
    ),
    # ========== Cross-chain bridges ==========
    ProviderProfile(
        name="Stargate",
        icon="🌌",
        kind=RouteType.BRIDGE,
        step_templates=(
            "Approve {from_symbol}",
            "Deposit to Stargate",
            "Wait for Finality",
            "Receive on {to_chain}",
        ),
        slippage_fraction=Decimal("0.005"),
        gas_usd=Decimal("12.50"),
        estimated_time_seconds=120,
        time_jitter_seconds=30,
    ),
    ProviderProfile(
        name="Synapse",
        icon="🟣",
        kind=RouteType.BRIDGE,
        step_templates=(
            "Approve {from_symbol}",
            "Bridge via Synapse",
            "Receive on {to_chain}",
        ),
        slippage_fraction=Decimal("0.015"),
        gas_usd=Decimal("15.00"),
        estimated_time_seconds=45,
        time_jitter_seconds=15,
    ),
)


class ProviderRegistry:
    """Read-only lookup over provider profiles."""

    def __init__(self, providers: Optional[Iterable[ProviderProfile]] = None):
        profiles = tuple(DEFAULT_PROVIDERS if providers is None else providers)
        names = [p.name for p in profiles]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate provider names in registry: {names}")
        self._providers = profiles

    @property
    def names(self) -> list[str]:
        return [p.name for p in self._providers]

    def __len__(self) -> int:
        return len(self._providers)

    def get(self, name: str) -> Optional[ProviderProfile]:
        for profile in self._providers:
            if profile.name == name:
                return profile
        return None

    def providers_for(self, from_chain: str, to_chain: str) -> list[ProviderProfile]:
        """Providers serving the chain pair, in registry order."""
        matched = [p for p in self._providers if p.applies_to(from_chain, to_chain)]
        logger.debug(
            f"Providers for {from_chain}->{to_chain}: {[p.name for p in matched] or 'none'}"
        )
        return matched
