"""Route discovery, selection and execution contracts."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from swapflow.execution.engine import ExecutionSession, SettlementReceipt
from swapflow.routing.base import Route


class RouteRequest(BaseModel):
    """Request for candidate conversion routes."""

    session_id: str = Field(default="default", description="Caller context id")
    from_chain: str = Field(..., description="Source chain (e.g., Ethereum, Solana)")
    to_chain: str = Field(..., description="Destination chain")
    from_symbol: str = Field(..., description="Source asset symbol")
    to_symbol: str = Field(..., description="Destination asset symbol")
    amount: Decimal = Field(..., description="Amount of the source asset")
    slippage: Optional[Decimal] = Field(
        default=None, ge=0, le=50, description="Slippage tolerance in percent"
    )


class RouteInfo(BaseModel):
    """A single candidate route."""

    id: str
    provider_name: str
    provider_icon: str
    type: str = Field(..., description="EXCHANGE or BRIDGE")
    from_symbol: str
    to_symbol: str
    from_chain: str
    to_chain: str
    input_amount: Decimal
    output_amount: Decimal
    minimum_received: Decimal
    fee_usd: Decimal
    estimated_time_seconds: int
    steps: list[str]
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_route(cls, route: Route) -> "RouteInfo":
        return cls(**route.to_dict())


class RouteListResponse(BaseModel):
    """Candidate routes for a request; an empty list means no routes."""

    success: bool
    session_id: str
    routes: list[RouteInfo] = Field(default_factory=list)
    selected_route_id: Optional[str] = None
    error: Optional[str] = None


class RouteSelectRequest(BaseModel):
    """Manual override of the default route."""

    session_id: str = Field(default="default", description="Caller context id")
    route_id: str = Field(..., description="Route id from the current candidate set")


class SelectedRouteResponse(BaseModel):
    success: bool
    session_id: str
    route: Optional[RouteInfo] = None


class ExecutionRequest(BaseModel):
    """Execute the selected (or given) route for a session."""

    session_id: str = Field(default="default", description="Caller context id")
    route_id: Optional[str] = Field(None, description="Route to execute (default: selected)")


class ReceiptInfo(BaseModel):
    receipt_id: str
    route_id: str
    provider: str
    output_amount: Decimal
    completed_at: float

    @classmethod
    def from_receipt(cls, receipt: SettlementReceipt) -> "ReceiptInfo":
        return cls(**receipt.to_dict())


class StepProgress(BaseModel):
    index: int
    step: str


class ExecutionResponse(BaseModel):
    """Outcome of an execution request."""

    success: bool
    session_id: str
    status: str
    receipt: Optional[ReceiptInfo] = None
    progress: list[StepProgress] = Field(default_factory=list)
    error: Optional[str] = None


class ExecutionStatusResponse(BaseModel):
    session_id: str
    status: str = Field(..., description="idle, running, completed or failed")
    route_id: Optional[str] = None
    current_step_index: Optional[int] = None
    current_step: Optional[str] = None
    total_steps: Optional[int] = None
    receipt: Optional[ReceiptInfo] = None

    @classmethod
    def from_session(
        cls, session_id: str, session: Optional[ExecutionSession]
    ) -> "ExecutionStatusResponse":
        if session is None:
            return cls(session_id=session_id, status="idle")
        return cls(
            session_id=session_id,
            status=session.status.value,
            route_id=session.route.id,
            current_step_index=session.current_step_index,
            current_step=session.current_step,
            total_steps=len(session.route.steps),
            receipt=ReceiptInfo.from_receipt(session.receipt) if session.receipt else None,
        )
