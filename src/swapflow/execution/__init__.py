"""Route execution: step state machine and progress events."""

from swapflow.execution.engine import (
    ExecutionEngine,
    ExecutionSession,
    SessionStatus,
    SettlementReceipt,
)
from swapflow.execution.progress import ProgressChannel, StepEvent

__all__ = [
    "ExecutionEngine",
    "ExecutionSession",
    "SessionStatus",
    "SettlementReceipt",
    "ProgressChannel",
    "StepEvent",
]
