"""Debounced quote refresh with sequence-token supersession.

Every discovery call the controller issues carries a token from a monotonic
counter. A result is applied only when its token is still the latest issued
one, so a slow, superseded call can never overwrite a newer route set.
"""

import asyncio
import inspect
import itertools
import logging
from typing import Any, Callable, Optional

from swapflow.config import Settings, get_settings
from swapflow.routing.base import QuoteRequest, Route
from swapflow.routing.discovery import RouteDiscoveryService
from swapflow.routing.selector import RouteSelector

logger = logging.getLogger(__name__)

RoutesCallback = Callable[[int, QuoteRequest, list[Route]], Any]


class QuoteRefreshController:
    """Turns a stream of quote request changes into authoritative route sets."""

    def __init__(
        self,
        discovery: RouteDiscoveryService,
        selector: Optional[RouteSelector] = None,
        on_routes: Optional[RoutesCallback] = None,
        debounce_seconds: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.discovery = discovery
        self.selector = selector
        self.on_routes = on_routes
        self.debounce_seconds = (
            settings.debounce_seconds if debounce_seconds is None else debounce_seconds
        )

        self._tokens = itertools.count(1)
        self._latest_token = 0
        self._delivered_token = 0
        self._pending: Optional[asyncio.Task] = None
        self._inflight: dict[int, asyncio.Task] = {}
        self._latest_task: Optional[asyncio.Task] = None
        self._last_request: Optional[QuoteRequest] = None
        self._request: Optional[QuoteRequest] = None
        self._routes: list[Route] = []

    @property
    def latest_token(self) -> int:
        """Token a result must carry to be delivered (0 = none issued)."""
        return self._latest_token

    @property
    def delivered_token(self) -> int:
        """Token whose result is currently applied (0 = none)."""
        return self._delivered_token

    @property
    def pending(self) -> bool:
        """True while a debounced call is waiting for its window to elapse."""
        return self._pending is not None and not self._pending.done()

    @property
    def in_flight(self) -> int:
        return sum(1 for t in self._inflight.values() if not t.done())

    @property
    def routes(self) -> list[Route]:
        return list(self._routes)

    @property
    def request(self) -> Optional[QuoteRequest]:
        """Request that produced the current route set."""
        return self._request

    def submit(self, request: QuoteRequest) -> bool:
        """Record a request change and (re)start the debounce window.

        Returns False when the request equals the previous one.
        Must be called with a running event loop.
        """
        if request == self._last_request:
            return False

        self.cancel_pending()
        self._last_request = request
        self._pending = asyncio.get_running_loop().create_task(self._debounce(request))
        logger.debug(f"Quote refresh scheduled in {self.debounce_seconds}s: {request.describe()}")
        return True

    def cancel_pending(self) -> bool:
        """Cancel a scheduled (not yet fired) call. In-flight calls are untouched.

        The cancelled request is forgotten, so submitting it again re-arms the
        debounce window.
        """
        if self._pending is None:
            return False
        cancelled = False
        if not self._pending.done():
            cancelled = self._pending.cancel()
        if cancelled:
            self._last_request = None
        self._pending = None
        return cancelled

    def supersede(self) -> int:
        """Invalidate scheduled and in-flight calls without cancelling them.

        In-flight calls still complete but their results are discarded as
        stale. Returns the token that now marks the cutoff.
        """
        self.cancel_pending()
        self._last_request = None
        self._latest_token = next(self._tokens)
        self._latest_task = None
        logger.debug(f"Quote refresh superseded at #{self._latest_token}")
        return self._latest_token

    def issue(self, request: QuoteRequest) -> asyncio.Task:
        """Start a discovery call immediately under a fresh token."""
        token = next(self._tokens)
        self._latest_token = token
        task = asyncio.get_running_loop().create_task(self._run(token, request))
        self._inflight[token] = task
        self._latest_task = task
        task.add_done_callback(lambda t, token=token: self._finish(token, t))
        logger.debug(f"Issued discovery call #{token}: {request.describe()}")
        return task

    async def refresh_now(self, request: QuoteRequest) -> list[Route]:
        """Discover immediately and return the route set of the latest issued call.

        If another call is issued while this one is in flight, the newer
        call's routes are returned instead.
        """
        self.cancel_pending()
        self._last_request = request
        task = self.issue(request)
        while True:
            await task
            if self._latest_task is task or self._latest_task is None:
                return list(self._routes)
            task = self._latest_task

    async def wait_idle(self) -> None:
        """Wait until nothing is scheduled or in flight."""
        while True:
            waiters = [
                t
                for t in (self._pending, *self._inflight.values())
                if t is not None and not t.done()
            ]
            if not waiters:
                return
            await asyncio.wait(waiters)

    def close(self) -> None:
        """Cancel everything scheduled or in flight."""
        self.cancel_pending()
        self._last_request = None
        for task in list(self._inflight.values()):
            task.cancel()

    async def _debounce(self, request: QuoteRequest) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self._pending = None
        self.issue(request)

    async def _run(self, token: int, request: QuoteRequest) -> bool:
        routes = await self.discovery.discover(request)

        if token != self._latest_token:
            logger.debug(
                f"Discarding stale routes from call #{token} (latest is #{self._latest_token})"
            )
            return False

        self._routes = routes
        self._request = request
        self._delivered_token = token
        if self.selector is not None:
            self.selector.load(routes)

        logger.info(f"Delivered {len(routes)} route(s) from call #{token}")
        if self.on_routes is not None:
            result = self.on_routes(token, request, routes)
            if inspect.isawaitable(result):
                await result
        return True

    def _finish(self, token: int, task: asyncio.Task) -> None:
        self._inflight.pop(token, None)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Discovery call #{token} failed: {type(error).__name__}: {error}")
