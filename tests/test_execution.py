"""Tests for the execution engine and progress channel."""

import asyncio
from decimal import Decimal

import pytest

from conftest import ETH, SOL, RecordingSleep, make_request
from swapflow.config import Settings
from swapflow.errors import ExecutionError, SessionBusyError, ValidationError
from swapflow.execution.engine import ExecutionEngine, SessionStatus
from swapflow.execution.progress import ProgressChannel, StepEvent
from swapflow.routing.base import RouteType


@pytest.fixture
async def exchange_route(discovery):
    routes = await discovery.discover(make_request("100"))
    return routes[0]


@pytest.fixture
async def bridge_route(discovery):
    routes = await discovery.discover(make_request("10", from_asset=SOL, to_asset=ETH))
    return routes[0]


class TestExecutionEngine:
    """Tests for stepwise execution."""

    @pytest.mark.asyncio
    async def test_progress_reported_once_per_step(self, fast_settings, bridge_route):
        """Test N steps produce N progress calls with indices 0..N-1."""
        engine = ExecutionEngine(fast_settings)
        calls = []

        receipt = await engine.execute(bridge_route, lambda step, index: calls.append((step, index)))

        assert [index for _, index in calls] == list(range(len(bridge_route.steps)))
        assert [step for step, _ in calls] == list(bridge_route.steps)
        assert receipt.route_id == bridge_route.id
        assert receipt.receipt_id.startswith("0x")
        assert len(receipt.receipt_id) == 42

    @pytest.mark.asyncio
    async def test_session_completed(self, fast_settings, exchange_route):
        engine = ExecutionEngine(fast_settings)

        receipt = await engine.execute(exchange_route, context_id="alice")

        session = engine.get_session("alice")
        assert session.status == SessionStatus.COMPLETED
        assert session.receipt == receipt
        assert session.current_step_index == len(exchange_route.steps) - 1
        assert not engine.is_running("alice")

    @pytest.mark.asyncio
    async def test_bridge_steps_wait_longer(self, exchange_route, bridge_route):
        """Test each step waits for the type-specific confirmation delay."""
        settings = Settings(exchange_step_seconds=1.5, bridge_step_seconds=3.0)
        sleep = RecordingSleep()
        engine = ExecutionEngine(settings, sleep=sleep)

        await engine.execute(exchange_route, context_id="a")
        await engine.execute(bridge_route, context_id="b")

        exchange_waits = sleep.delays[: len(exchange_route.steps)]
        bridge_waits = sleep.delays[len(exchange_route.steps):]
        assert exchange_waits == [1.5] * len(exchange_route.steps)
        assert bridge_waits == [3.0] * len(bridge_route.steps)
        assert engine.step_delay(RouteType.BRIDGE) > engine.step_delay(RouteType.EXCHANGE)

    @pytest.mark.asyncio
    async def test_concurrent_execute_rejected(self, fast_settings, exchange_route, bridge_route):
        """Test a second execute on a running context fails without side effects."""
        gate = asyncio.Event()

        async def gated_sleep(delay):
            await gate.wait()

        engine = ExecutionEngine(fast_settings, sleep=gated_sleep)
        running = asyncio.create_task(engine.execute(bridge_route, context_id="alice"))
        await asyncio.sleep(0.01)

        before = engine.get_session("alice")
        assert before.status == SessionStatus.RUNNING

        with pytest.raises(SessionBusyError) as exc_info:
            await engine.execute(exchange_route, context_id="alice")

        assert isinstance(exc_info.value, ValidationError)
        session = engine.get_session("alice")
        assert session is before
        assert session.route.id == bridge_route.id
        assert session.status == SessionStatus.RUNNING
        assert session.current_step_index == 0

        gate.set()
        receipt = await running
        assert receipt.route_id == bridge_route.id

    @pytest.mark.asyncio
    async def test_contexts_are_independent(self, fast_settings, exchange_route):
        gate = asyncio.Event()

        async def gated_sleep(delay):
            await gate.wait()

        engine = ExecutionEngine(fast_settings, sleep=gated_sleep)
        alice = asyncio.create_task(engine.execute(exchange_route, context_id="alice"))
        bob = asyncio.create_task(engine.execute(exchange_route, context_id="bob"))
        await asyncio.sleep(0.01)

        assert engine.is_running("alice")
        assert engine.is_running("bob")

        gate.set()
        await asyncio.gather(alice, bob)

    @pytest.mark.asyncio
    async def test_injected_fault_fails_session(self, fast_settings, bridge_route):
        """Test a failed step aborts with no receipt."""

        def fail_on_second_step(route, index):
            if index == 1:
                raise ConnectionError("bridge relayer unreachable")

        engine = ExecutionEngine(fast_settings, fault_injector=fail_on_second_step)
        progress = []

        with pytest.raises(ExecutionError) as exc_info:
            await engine.execute(bridge_route, lambda step, index: progress.append(index))

        assert exc_info.value.step_index == 1
        assert exc_info.value.route_id == bridge_route.id
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert progress == [0, 1]

        session = engine.get_session()
        assert session.status == SessionStatus.FAILED
        assert session.receipt is None
        assert "bridge relayer unreachable" in session.error

    @pytest.mark.asyncio
    async def test_async_fault_injector(self, fast_settings, exchange_route):
        async def fail_first(route, index):
            raise TimeoutError("rpc timeout")

        engine = ExecutionEngine(fast_settings, fault_injector=fail_first)

        with pytest.raises(ExecutionError):
            await engine.execute(exchange_route)
        assert engine.get_session().status == SessionStatus.FAILED

    @pytest.mark.asyncio
    async def test_fault_injector_returning_future(self, fast_settings, exchange_route):
        """Test any awaitable returned by the injector is awaited."""
        seen = []

        def fail_second(route, index):
            seen.append(index)
            future = asyncio.get_running_loop().create_future()
            if index == 1:
                future.set_exception(ConnectionError("peer reset"))
            else:
                future.set_result(None)
            return future

        engine = ExecutionEngine(fast_settings, fault_injector=fail_second)

        with pytest.raises(ExecutionError) as exc_info:
            await engine.execute(exchange_route)

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert seen == [0, 1]
        assert engine.get_session().current_step_index == 1

    @pytest.mark.asyncio
    async def test_retry_restarts_from_first_step(self, fast_settings, exchange_route):
        """Test there is no resume: a new execute replays every step."""
        attempts = {"count": 0}

        def fail_once(route, index):
            if index == 1 and attempts["count"] == 0:
                attempts["count"] += 1
                raise RuntimeError("nonce too low")

        engine = ExecutionEngine(fast_settings, fault_injector=fail_once)

        with pytest.raises(ExecutionError):
            await engine.execute(exchange_route)

        progress = []
        receipt = await engine.execute(exchange_route, lambda step, index: progress.append(index))

        assert progress == list(range(len(exchange_route.steps)))
        assert engine.get_session().status == SessionStatus.COMPLETED
        assert receipt is not None

    @pytest.mark.asyncio
    async def test_progress_callback_error_fails_session(self, fast_settings, exchange_route):
        def broken(step, index):
            raise ValueError("ui went away")

        engine = ExecutionEngine(fast_settings)

        with pytest.raises(ExecutionError):
            await engine.execute(exchange_route, broken)
        assert engine.get_session().status == SessionStatus.FAILED

    @pytest.mark.asyncio
    async def test_task_cancellation_marks_failed(self, fast_settings, bridge_route):
        gate = asyncio.Event()

        async def gated_sleep(delay):
            await gate.wait()

        engine = ExecutionEngine(fast_settings, sleep=gated_sleep)
        task = asyncio.create_task(engine.execute(bridge_route))
        await asyncio.sleep(0.01)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert engine.get_session().status == SessionStatus.FAILED
        assert not engine.is_running()

    @pytest.mark.asyncio
    async def test_reset(self, fast_settings, exchange_route):
        engine = ExecutionEngine(fast_settings)
        await engine.execute(exchange_route)

        removed = engine.reset()

        assert removed.status == SessionStatus.COMPLETED
        assert engine.get_session() is None

        await engine.execute(exchange_route)
        assert engine.get_session().status == SessionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_reset_refused_while_running(self, fast_settings, exchange_route):
        gate = asyncio.Event()

        async def gated_sleep(delay):
            await gate.wait()

        engine = ExecutionEngine(fast_settings, sleep=gated_sleep)
        task = asyncio.create_task(engine.execute(exchange_route))
        await asyncio.sleep(0.01)

        with pytest.raises(ValidationError):
            engine.reset()

        gate.set()
        await task

    @pytest.mark.asyncio
    async def test_session_dict(self, fast_settings, exchange_route):
        engine = ExecutionEngine(fast_settings)
        await engine.execute(exchange_route)

        data = engine.get_session().to_dict()

        assert data["status"] == "completed"
        assert data["total_steps"] == len(exchange_route.steps)
        assert data["receipt"]["output_amount"] == str(exchange_route.output_amount)


class TestProgressChannel:
    """Tests for step event delivery."""

    @pytest.mark.asyncio
    async def test_channel_streams_events(self, fast_settings, bridge_route):
        """Test async consumers see every step event, then the stream ends."""
        engine = ExecutionEngine(fast_settings)
        channel = ProgressChannel()

        async def consume():
            return [event async for event in channel.stream()]

        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0)
        await engine.execute(bridge_route, channel=channel)
        events = await consumer

        assert [e.index for e in events] == list(range(len(bridge_route.steps)))
        assert events[-1].is_last
        assert all(e.total == len(bridge_route.steps) for e in events)
        assert channel.closed

    @pytest.mark.asyncio
    async def test_stream_replays_after_close(self):
        channel = ProgressChannel()
        channel.publish(StepEvent(route_id="r", index=0, step="Approve ETH", total=1))
        channel.close()

        events = [event async for event in channel.stream()]

        assert [e.step for e in events] == ["Approve ETH"]

    def test_observers_and_unsubscribe(self):
        channel = ProgressChannel()
        seen = []
        unsubscribe = channel.subscribe(seen.append)

        channel.publish(StepEvent(route_id="r", index=0, step="a", total=2))
        unsubscribe()
        channel.publish(StepEvent(route_id="r", index=1, step="b", total=2))

        assert [e.step for e in seen] == ["a"]
        assert len(channel.events) == 2

    def test_publish_after_close_rejected(self):
        channel = ProgressChannel()
        channel.close()

        with pytest.raises(RuntimeError):
            channel.publish(StepEvent(route_id="r", index=0, step="a", total=1))
