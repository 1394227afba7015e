"""Stepwise route execution with progress reporting and failure handling.

State machine per caller context:

    IDLE -> RUNNING -> COMPLETED
                    -> FAILED

Steps run strictly in order, each followed by a simulated confirmation wait
(longer for bridges). Any exception raised while a step is in progress moves
the session to FAILED; no receipt is issued and nothing is retried. Running
the route again starts from step 0.
"""

import asyncio
import hashlib
import inspect
import logging
import time
import uuid
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from swapflow.config import Settings, get_settings
from swapflow.errors import ExecutionError, ValidationError
from swapflow.execution.progress import ProgressChannel, StepEvent
from swapflow.routing.base import Route, RouteType
from swapflow.utils.locks import ContextLockRegistry

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = "default"

ProgressCallback = Callable[[str, int], None]
# Called before each step's wait; raising simulates an interrupted step
FaultInjector = Callable[[Route, int], Union[None, Awaitable[None]]]


class SessionStatus(str, Enum):
    """Execution session states."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class SettlementReceipt:
    """Proof that every step of a route completed."""

    receipt_id: str
    route_id: str
    provider: str
    output_amount: Decimal
    completed_at: float

    def to_dict(self) -> dict:
        return {
            "receipt_id": self.receipt_id,
            "route_id": self.route_id,
            "provider": self.provider,
            "output_amount": str(self.output_amount),
            "completed_at": self.completed_at,
        }


@dataclass
class ExecutionSession:
    """Progress of one route execution for a caller context."""

    context_id: str
    route: Route
    status: SessionStatus = SessionStatus.IDLE
    current_step_index: int = -1
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    receipt: Optional[SettlementReceipt] = None
    error: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self.status == SessionStatus.RUNNING

    @property
    def current_step(self) -> Optional[str]:
        if 0 <= self.current_step_index < len(self.route.steps):
            return self.route.steps[self.current_step_index]
        return None

    def to_dict(self) -> dict:
        return {
            "context_id": self.context_id,
            "route_id": self.route.id,
            "provider": self.route.provider_name,
            "status": self.status.value,
            "current_step_index": self.current_step_index,
            "current_step": self.current_step,
            "total_steps": len(self.route.steps),
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "receipt": self.receipt.to_dict() if self.receipt else None,
            "error": self.error,
        }


def make_receipt_id(route: Route) -> str:
    """Opaque settlement identifier in transaction-hash form."""
    data = f"{route.id}{route.from_symbol}{route.to_symbol}{route.input_amount}{uuid.uuid4()}"
    return "0x" + hashlib.sha256(data.encode()).hexdigest()[:40]


class ExecutionEngine:
    """Runs the ordered steps of a selected route.

    At most one session per context may be running; a second ``execute`` on
    a busy context is rejected rather than queued.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        fault_injector: Optional[FaultInjector] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self.fault_injector = fault_injector
        self._sleep = sleep
        self._locks = ContextLockRegistry()
        self._sessions: dict[str, ExecutionSession] = {}

    def step_delay(self, route_type: RouteType) -> float:
        """Confirmation wait per step; bridges wait for finality."""
        if route_type == RouteType.BRIDGE:
            return self.settings.bridge_step_seconds
        return self.settings.exchange_step_seconds

    def get_session(self, context_id: str = DEFAULT_CONTEXT) -> Optional[ExecutionSession]:
        return self._sessions.get(context_id)

    def is_running(self, context_id: str = DEFAULT_CONTEXT) -> bool:
        session = self._sessions.get(context_id)
        return session is not None and session.is_running

    def reset(self, context_id: str = DEFAULT_CONTEXT) -> Optional[ExecutionSession]:
        """Discard a finished session (acknowledging a failure or completion)."""
        if self.is_running(context_id):
            raise ValidationError(f"Cannot reset context '{context_id}' while execution is running")
        self._locks.discard(context_id)
        return self._sessions.pop(context_id, None)

    async def execute(
        self,
        route: Route,
        on_progress: Optional[ProgressCallback] = None,
        *,
        context_id: str = DEFAULT_CONTEXT,
        channel: Optional[ProgressChannel] = None,
    ) -> SettlementReceipt:
        """Run every step of ``route`` and return a settlement receipt.

        Args:
            route: Route to settle
            on_progress: Called with (step, index) as each step starts
            context_id: Caller context; one running session per context
            channel: Optional channel receiving a StepEvent per step

        Raises:
            SessionBusyError: If the context already has a running session
            ExecutionError: If any step fails
        """
        async with self._locks.exclusive(context_id, operation="execute"):
            session = ExecutionSession(
                context_id=context_id,
                route=route,
                status=SessionStatus.RUNNING,
                started_at=time.time(),
            )
            self._sessions[context_id] = session

            channel = channel or ProgressChannel()
            if on_progress is not None:
                channel.subscribe(lambda event: on_progress(event.step, event.index))

            logger.info(
                f"Executing route {route.id} via {route.provider_name} "
                f"({len(route.steps)} steps, context {context_id})"
            )
            try:
                await self._run_steps(session, channel)
            except asyncio.CancelledError:
                self._fail(session, "cancelled")
                raise
            except Exception as e:
                self._fail(session, f"{type(e).__name__}: {e}")
                raise ExecutionError(
                    route.id, session.current_step_index, session.current_step or ""
                ) from e
            finally:
                channel.close()

            receipt = SettlementReceipt(
                receipt_id=make_receipt_id(route),
                route_id=route.id,
                provider=route.provider_name,
                output_amount=route.output_amount,
                completed_at=time.time(),
            )
            session.receipt = receipt
            session.status = SessionStatus.COMPLETED
            session.finished_at = receipt.completed_at
            logger.info(f"Route {route.id} settled: {receipt.receipt_id}")
            return receipt

    async def _run_steps(self, session: ExecutionSession, channel: ProgressChannel) -> None:
        route = session.route
        delay = self.step_delay(route.type)
        total = len(route.steps)

        for index, step in enumerate(route.steps):
            session.current_step_index = index
            logger.debug(f"Route {route.id} step {index + 1}/{total}: {step}")
            channel.publish(StepEvent(route_id=route.id, index=index, step=step, total=total))

            if self.fault_injector is not None:
                result = self.fault_injector(route, index)
                if inspect.isawaitable(result):
                    await result

            await self._sleep(delay)

    def _fail(self, session: ExecutionSession, reason: str) -> None:
        session.status = SessionStatus.FAILED
        session.finished_at = time.time()
        session.error = reason
        logger.error(
            f"Route {session.route.id} failed at step {session.current_step_index}: {reason}"
        )
