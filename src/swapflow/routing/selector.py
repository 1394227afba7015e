"""Default and manual route selection over the current candidate set."""

import logging
from typing import Optional, Sequence

from swapflow.errors import ValidationError
from swapflow.routing.base import Route, RouteTag

logger = logging.getLogger(__name__)


class RouteSelector:
    """Tracks the chosen route for the most recent candidate set."""

    def __init__(self):
        self._routes: tuple[Route, ...] = ()
        self._selected: Optional[Route] = None

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    @property
    def selected(self) -> Optional[Route]:
        return self._selected

    def get_selected_route(self) -> Optional[Route]:
        return self._selected

    def load(self, routes: Sequence[Route]) -> Optional[Route]:
        """Replace the candidate set and pick the default route.

        The default is the route tagged Best Return, falling back to the
        first candidate. Returns None for an empty set.
        """
        self._routes = tuple(routes)
        self._selected = next(
            (r for r in self._routes if r.has_tag(RouteTag.BEST_RETURN)),
            self._routes[0] if self._routes else None,
        )
        if self._selected:
            logger.debug(f"Default route: {self._selected.provider_name} ({self._selected.id})")
        return self._selected

    def select(self, route_id: str) -> Route:
        """Override the default with a route from the current set."""
        for route in self._routes:
            if route.id == route_id:
                self._selected = route
                logger.info(f"Route selected: {route.provider_name} ({route.id})")
                return route
        raise ValidationError(f"Route '{route_id}' is not in the current candidate set")

    def contains(self, route: Route) -> bool:
        return any(r.id == route.id for r in self._routes)

    def clear(self) -> None:
        self._routes = ()
        self._selected = None
