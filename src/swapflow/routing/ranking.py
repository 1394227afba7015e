"""Route tagging pass.

Tags are assigned over the full candidate list by named strategies, so
ranking is independent of how candidates were generated. Ties resolve to
the earliest candidate in generation order.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Callable, Optional, Sequence

from swapflow.routing.base import Route, RouteTag, RouteType


@dataclass(frozen=True)
class RankingStrategy:
    """Award ``tag`` to the route that best satisfies ``key``."""

    name: str
    tag: RouteTag
    key: Callable[[Route], Decimal]
    maximize: bool
    route_type: Optional[RouteType] = None  # None = all routes compete

    def pick(self, routes: Sequence[Route]) -> Optional[int]:
        """Index of the winning route, or None when nothing competes."""
        best_index: Optional[int] = None
        best_value: Optional[Decimal] = None
        for index, route in enumerate(routes):
            if self.route_type is not None and route.type != self.route_type:
                continue
            value = self.key(route)
            if best_value is None:
                better = True
            elif self.maximize:
                better = value > best_value
            else:
                better = value < best_value
            if better:
                best_index, best_value = index, value
        return best_index


MAX_OUTPUT = RankingStrategy(
    name="max_output",
    tag=RouteTag.BEST_RETURN,
    key=lambda r: r.output_amount,
    maximize=True,
)

MIN_TIME = RankingStrategy(
    name="min_time",
    tag=RouteTag.FASTEST,
    key=lambda r: Decimal(r.estimated_time_seconds),
    maximize=False,
    route_type=RouteType.BRIDGE,
)

MIN_FEE = RankingStrategy(
    name="min_fee",
    tag=RouteTag.LOWEST_GAS,
    key=lambda r: r.fee_usd,
    maximize=False,
    route_type=RouteType.EXCHANGE,
)

DEFAULT_STRATEGIES: tuple[RankingStrategy, ...] = (MAX_OUTPUT, MIN_TIME, MIN_FEE)


def assign_tags(
    routes: Sequence[Route],
    strategies: Sequence[RankingStrategy] = DEFAULT_STRATEGIES,
) -> list[Route]:
    """Return copies of ``routes`` (same order) with ranking tags applied."""
    awarded: list[set[RouteTag]] = [set() for _ in routes]
    for strategy in strategies:
        winner = strategy.pick(routes)
        if winner is not None:
            awarded[winner].add(strategy.tag)

    return [
        replace(route, tags=frozenset(tags)) for route, tags in zip(routes, awarded)
    ]
