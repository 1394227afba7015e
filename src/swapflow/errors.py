"""Error taxonomy for routing, execution and the limit order ledger."""

from typing import Optional


class SwapflowError(Exception):
    """Base class for all swapflow errors."""


class ValidationError(SwapflowError):
    """Malformed or precondition-violating input.

    Surfaced to the caller immediately and never retried.
    """


class SessionBusyError(ValidationError):
    """Raised when a context already has a Running execution session."""

    def __init__(self, context_id: str, operation: str = "execute"):
        self.context_id = context_id
        self.operation = operation
        super().__init__(
            f"Cannot {operation} for context '{context_id}': an execution session is running"
        )


class QuoteError(SwapflowError):
    """A provider or discovery failure.

    Discovery converts this into an empty route set; it never reaches callers.
    """

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class ExecutionError(SwapflowError):
    """A settlement step failed and the session was aborted."""

    def __init__(self, route_id: str, step_index: int, step: str = ""):
        self.route_id = route_id
        self.step_index = step_index
        self.step = step
        super().__init__(f"Execution of route {route_id} failed")
