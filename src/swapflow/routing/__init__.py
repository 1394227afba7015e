"""Routing module: provider registry, discovery, ranking and selection.

Providers:
- Uniswap V3: EVM same-chain exchange
- Jupiter: Solana same-chain exchange
- 1inch Fusion: same-chain exchange on any chain (lower gas)
- Stargate: cross-chain bridge (best return)
- Synapse: cross-chain bridge (fastest)
"""

from swapflow.routing.base import Asset, QuoteRequest, Route, RouteTag, RouteType
from swapflow.routing.discovery import RouteDiscoveryService
from swapflow.routing.ranking import DEFAULT_STRATEGIES, RankingStrategy, assign_tags
from swapflow.routing.refresh import QuoteRefreshController
from swapflow.routing.registry import DEFAULT_PROVIDERS, ProviderProfile, ProviderRegistry
from swapflow.routing.selector import RouteSelector

__all__ = [
    # Types
    "Asset",
    "QuoteRequest",
    "Route",
    "RouteTag",
    "RouteType",
    # Registry
    "DEFAULT_PROVIDERS",
    "ProviderProfile",
    "ProviderRegistry",
    # Ranking
    "DEFAULT_STRATEGIES",
    "RankingStrategy",
    "assign_tags",
    # Services
    "RouteDiscoveryService",
    "RouteSelector",
    "QuoteRefreshController",
]
