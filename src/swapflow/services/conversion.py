"""Conversion service: the operations exposed to the UI and API layers.

Wires the explicitly constructed components together and keeps quote state
(refresh controller + selector) per caller context, so several sessions can
quote and execute independently.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from swapflow.assets import AssetBook
from swapflow.config import Settings, get_settings
from swapflow.errors import SessionBusyError, ValidationError
from swapflow.execution.engine import (
    DEFAULT_CONTEXT,
    ExecutionEngine,
    ExecutionSession,
    ProgressCallback,
    SettlementReceipt,
)
from swapflow.execution.progress import ProgressChannel
from swapflow.orders.ledger import LimitOrder, LimitOrderLedger
from swapflow.routing.base import QuoteRequest, Route
from swapflow.routing.discovery import RouteDiscoveryService
from swapflow.routing.refresh import QuoteRefreshController, RoutesCallback
from swapflow.routing.registry import ProviderRegistry
from swapflow.routing.selector import RouteSelector

logger = logging.getLogger(__name__)


@dataclass
class QuoteSession:
    """Quote state for one caller context."""

    controller: QuoteRefreshController
    selector: RouteSelector


class ConversionService:
    """Facade over discovery, selection, execution and the limit order ledger."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[ProviderRegistry] = None,
        discovery: Optional[RouteDiscoveryService] = None,
        engine: Optional[ExecutionEngine] = None,
        ledger: Optional[LimitOrderLedger] = None,
        assets: Optional[AssetBook] = None,
        on_routes: Optional[RoutesCallback] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or ProviderRegistry()
        self.discovery = discovery or RouteDiscoveryService(self.registry, self.settings)
        self.engine = engine or ExecutionEngine(self.settings)
        self.ledger = ledger or LimitOrderLedger(self.settings)
        self.assets = assets or AssetBook()
        self.on_routes = on_routes
        self._sessions: dict[str, QuoteSession] = {}

    # ======================
    # Quotes
    # ======================

    def quote_session(self, context_id: str = DEFAULT_CONTEXT) -> QuoteSession:
        """Get or create quote state for a context."""
        if context_id not in self._sessions:
            selector = RouteSelector()
            controller = QuoteRefreshController(
                self.discovery,
                selector=selector,
                on_routes=self.on_routes,
                settings=self.settings,
            )
            self._sessions[context_id] = QuoteSession(controller=controller, selector=selector)
        return self._sessions[context_id]

    def build_request(
        self,
        from_chain: str,
        to_chain: str,
        from_symbol: str,
        to_symbol: str,
        amount: Decimal,
        slippage_tolerance: Optional[Decimal] = None,
    ) -> QuoteRequest:
        """Resolve symbols against the current asset snapshot."""
        if slippage_tolerance is None:
            slippage_tolerance = self.settings.default_slippage_percent
        return QuoteRequest(
            from_chain=from_chain,
            to_chain=to_chain,
            from_asset=self.assets.get(from_chain, from_symbol),
            to_asset=self.assets.get(to_chain, to_symbol),
            amount=amount,
            slippage_tolerance=slippage_tolerance,
        )

    def submit_quote(self, request: QuoteRequest, context_id: str = DEFAULT_CONTEXT) -> bool:
        """Feed a (possibly unchanged) request into the debounced refresh."""
        self._ensure_not_running(context_id, "change the quote")
        return self.quote_session(context_id).controller.submit(request)

    async def discover_routes(
        self, request: QuoteRequest, context_id: str = DEFAULT_CONTEXT
    ) -> list[Route]:
        """Discover routes now; superseded calls resolve to the newest set."""
        self._ensure_not_running(context_id, "change the quote")
        return await self.quote_session(context_id).controller.refresh_now(request)

    def get_routes(self, context_id: str = DEFAULT_CONTEXT) -> list[Route]:
        return list(self.quote_session(context_id).selector.routes)

    def select_route(self, route_id: str, context_id: str = DEFAULT_CONTEXT) -> Route:
        self._ensure_not_running(context_id, "change the selected route")
        return self.quote_session(context_id).selector.select(route_id)

    def get_selected_route(self, context_id: str = DEFAULT_CONTEXT) -> Optional[Route]:
        return self.quote_session(context_id).selector.selected

    # ======================
    # Execution
    # ======================

    async def execute_route(
        self,
        route: Optional[Route] = None,
        on_progress: Optional[ProgressCallback] = None,
        context_id: str = DEFAULT_CONTEXT,
        channel: Optional[ProgressChannel] = None,
    ) -> SettlementReceipt:
        """Execute ``route`` (default: the selected route) for a context.

        Raises:
            ValidationError: No route, stale route or insufficient balance
            SessionBusyError: Execution already running for the context
            ExecutionError: A step failed
        """
        session = self.quote_session(context_id)
        if route is None:
            route = session.selector.selected
            if route is None:
                raise ValidationError("No route selected")
        elif not session.selector.contains(route):
            raise ValidationError(f"Route '{route.id}' is not in the current candidate set")

        self._check_balance(route)
        self._ensure_not_running(context_id, "execute")
        # Refreshes scheduled or in flight must not replace the executing selection
        session.controller.supersede()
        return await self.engine.execute(
            route, on_progress, context_id=context_id, channel=channel
        )

    def get_execution(self, context_id: str = DEFAULT_CONTEXT) -> Optional[ExecutionSession]:
        return self.engine.get_session(context_id)

    def close(self) -> None:
        """Stop every scheduled or in-flight quote refresh."""
        for session in self._sessions.values():
            session.controller.close()

    def reset(self, context_id: str = DEFAULT_CONTEXT) -> None:
        """Acknowledge the execution outcome and drop quote state for a context."""
        self.engine.reset(context_id)
        session = self._sessions.pop(context_id, None)
        if session is not None:
            session.controller.close()
            session.selector.clear()

    # ======================
    # Limit orders
    # ======================

    def create_limit_order(
        self,
        from_symbol: str,
        to_symbol: str,
        amount: Decimal,
        target_price: Decimal,
    ) -> LimitOrder:
        return self.ledger.create(from_symbol, to_symbol, amount, target_price)

    def cancel_limit_order(self, order_id: str) -> LimitOrder:
        return self.ledger.cancel(order_id)

    def list_limit_orders(self) -> list[LimitOrder]:
        return self.ledger.list()

    # ======================
    # Internals
    # ======================

    def _ensure_not_running(self, context_id: str, operation: str) -> None:
        if self.engine.is_running(context_id):
            raise SessionBusyError(context_id, operation)

    def _check_balance(self, route: Route) -> None:
        held = self.assets.find(route.from_chain, route.from_symbol)
        if held is None and self.assets.price_of(route.from_symbol) is None:
            # Asset outside the snapshot carries no balance data
            return
        balance = held.balance if held is not None else Decimal("0")
        if route.input_amount > balance:
            raise ValidationError(
                f"Insufficient {route.from_symbol} balance on {route.from_chain}: "
                f"{balance} < {route.input_amount}"
            )
