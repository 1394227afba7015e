"""Tests for the conversion service facade."""

import asyncio
from decimal import Decimal

import pytest

from swapflow.errors import ExecutionError, SessionBusyError, ValidationError
from swapflow.execution.engine import ExecutionEngine, SessionStatus
from swapflow.routing.base import RouteTag
from swapflow.services.conversion import ConversionService


class GatedSleep:
    """Step wait that blocks until the test opens the gate."""

    def __init__(self):
        self.gate = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        await self.gate.wait()


@pytest.fixture
def service(fast_settings) -> ConversionService:
    return ConversionService(settings=fast_settings)


@pytest.fixture
def gated_sleep() -> GatedSleep:
    return GatedSleep()


@pytest.fixture
def gated_service(fast_settings, gated_sleep) -> ConversionService:
    engine = ExecutionEngine(fast_settings, sleep=gated_sleep)
    return ConversionService(settings=fast_settings, engine=engine)


def eth_to_usdc(service: ConversionService, amount: str = "1"):
    return service.build_request("Ethereum", "Ethereum", "ETH", "USDC", Decimal(amount))


class TestQuotes:
    """Tests for discovery and selection through the service."""

    @pytest.mark.asyncio
    async def test_discover_selects_best_return(self, service):
        routes = await service.discover_routes(eth_to_usdc(service))

        selected = service.get_selected_route()
        assert len(routes) == 2
        assert selected is not None
        assert selected.has_tag(RouteTag.BEST_RETURN)
        assert service.get_routes() == routes

    def test_build_request_uses_default_slippage(self, service, fast_settings):
        request = eth_to_usdc(service)

        assert request.slippage_tolerance == fast_settings.default_slippage_percent
        assert request.from_asset.price == Decimal("3450.20")

    def test_build_request_unknown_asset(self, service):
        with pytest.raises(ValidationError):
            service.build_request("Ethereum", "Ethereum", "ETH", "DOGE", Decimal("1"))

    @pytest.mark.asyncio
    async def test_select_manual_override(self, service):
        routes = await service.discover_routes(eth_to_usdc(service))
        other = next(r for r in routes if not r.has_tag(RouteTag.BEST_RETURN))

        service.select_route(other.id)

        assert service.get_selected_route() == other

    @pytest.mark.asyncio
    async def test_stale_route_id_rejected(self, service):
        old = await service.discover_routes(eth_to_usdc(service))
        await service.discover_routes(eth_to_usdc(service, "2"))

        with pytest.raises(ValidationError):
            service.select_route(old[0].id)

    @pytest.mark.asyncio
    async def test_contexts_are_independent(self, service):
        await service.discover_routes(eth_to_usdc(service), context_id="alice")

        assert service.get_routes("bob") == []
        assert service.get_selected_route("bob") is None
        assert service.get_selected_route("alice") is not None

    @pytest.mark.asyncio
    async def test_submit_quote_debounced(self, service):
        assert service.submit_quote(eth_to_usdc(service)) is True

        await asyncio.sleep(0.1)
        await service.quote_session().controller.wait_idle()

        assert len(service.get_routes()) == 2


class TestExecution:
    """Tests for executing through the service."""

    @pytest.mark.asyncio
    async def test_execute_selected_route(self, service):
        await service.discover_routes(eth_to_usdc(service))
        selected = service.get_selected_route()
        progress = []

        receipt = await service.execute_route(on_progress=lambda step, i: progress.append(i))

        assert receipt.route_id == selected.id
        assert progress == list(range(len(selected.steps)))
        assert service.get_execution().status == SessionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_execute_without_selection(self, service):
        with pytest.raises(ValidationError):
            await service.execute_route()
        assert service.get_execution() is None

    @pytest.mark.asyncio
    async def test_execute_stale_route_rejected(self, service):
        old = await service.discover_routes(eth_to_usdc(service))
        await service.discover_routes(eth_to_usdc(service, "2"))

        with pytest.raises(ValidationError):
            await service.execute_route(old[0])

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, service):
        """Test the wallet snapshot holds 250 ETH on Ethereum."""
        await service.discover_routes(eth_to_usdc(service, "1000"))

        with pytest.raises(ValidationError, match="Insufficient"):
            await service.execute_route()
        assert service.get_execution() is None

    @pytest.mark.asyncio
    async def test_quote_changes_rejected_while_running(self, gated_service, gated_sleep):
        service = gated_service
        routes = await service.discover_routes(eth_to_usdc(service))
        selected = service.get_selected_route()

        task = asyncio.create_task(service.execute_route())
        await asyncio.sleep(0.01)
        assert service.engine.is_running()

        with pytest.raises(SessionBusyError):
            service.submit_quote(eth_to_usdc(service, "2"))
        with pytest.raises(SessionBusyError):
            await service.discover_routes(eth_to_usdc(service, "2"))
        other = next(r for r in routes if r.id != selected.id)
        with pytest.raises(SessionBusyError):
            service.select_route(other.id)
        with pytest.raises(SessionBusyError):
            await service.execute_route()
        with pytest.raises(ValidationError):
            service.reset()

        gated_sleep.gate.set()
        receipt = await task

        assert receipt.route_id == selected.id
        assert service.get_selected_route() == selected

    @pytest.mark.asyncio
    async def test_scheduled_refresh_does_not_replace_running_selection(
        self, gated_service, gated_sleep, fast_settings
    ):
        """Test a debounced quote submitted just before execution never lands."""
        service = gated_service
        await service.discover_routes(eth_to_usdc(service))
        selected = service.get_selected_route()

        service.submit_quote(eth_to_usdc(service, "2"))
        task = asyncio.create_task(service.execute_route())
        await asyncio.sleep(fast_settings.debounce_seconds * 4)

        assert service.engine.is_running()
        assert service.get_selected_route() == selected
        assert all(r.input_amount == Decimal("1") for r in service.get_routes())

        gated_sleep.gate.set()
        receipt = await task
        assert receipt.route_id == selected.id

    @pytest.mark.asyncio
    async def test_in_flight_refresh_discarded_once_execution_starts(
        self, fast_settings, gated_discovery, gated_sleep
    ):
        engine = ExecutionEngine(fast_settings, sleep=gated_sleep)
        service = ConversionService(
            settings=fast_settings, discovery=gated_discovery, engine=engine
        )
        first = asyncio.create_task(service.discover_routes(eth_to_usdc(service)))
        await asyncio.sleep(0.01)
        gated_discovery.release(0)
        await first
        selected = service.get_selected_route()

        refresh = asyncio.create_task(service.discover_routes(eth_to_usdc(service, "2")))
        await asyncio.sleep(0.01)
        task = asyncio.create_task(service.execute_route())
        await asyncio.sleep(0.01)
        gated_discovery.release(1)
        await refresh

        assert service.get_selected_route() == selected
        assert all(r.input_amount == Decimal("1") for r in service.get_routes())

        gated_sleep.gate.set()
        await task

    @pytest.mark.asyncio
    async def test_failure_then_reset(self, fast_settings):
        def fail(route, index):
            raise ConnectionError("rpc down")

        engine = ExecutionEngine(fast_settings, fault_injector=fail)
        service = ConversionService(settings=fast_settings, engine=engine)
        await service.discover_routes(eth_to_usdc(service))

        with pytest.raises(ExecutionError):
            await service.execute_route()
        assert service.get_execution().status == SessionStatus.FAILED

        service.reset()

        assert service.get_execution() is None
        assert service.get_routes() == []
        assert service.get_selected_route() is None


class TestLimitOrders:
    """Tests for limit orders through the service."""

    def test_create_list_cancel(self, service):
        order = service.create_limit_order("ETH", "USDC", Decimal("1"), Decimal("4000"))

        assert [o.id for o in service.list_limit_orders()] == [order.id]

        service.cancel_limit_order(order.id)

        assert service.list_limit_orders() == []
