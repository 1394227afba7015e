"""Request and response contracts for the HTTP layer.

These Pydantic models define the API interface for wallet clients.
"""

from swapflow.web.contracts.orders import (
    LimitOrderInfo,
    LimitOrderListResponse,
    LimitOrderRequest,
)
from swapflow.web.contracts.routes import (
    ExecutionRequest,
    ExecutionResponse,
    ExecutionStatusResponse,
    ReceiptInfo,
    RouteInfo,
    RouteListResponse,
    RouteRequest,
    RouteSelectRequest,
    SelectedRouteResponse,
    StepProgress,
)

__all__ = [
    # Route contracts
    "RouteRequest",
    "RouteInfo",
    "RouteListResponse",
    "RouteSelectRequest",
    "SelectedRouteResponse",
    # Execution contracts
    "ExecutionRequest",
    "ExecutionResponse",
    "ExecutionStatusResponse",
    "ReceiptInfo",
    "StepProgress",
    # Limit order contracts
    "LimitOrderRequest",
    "LimitOrderInfo",
    "LimitOrderListResponse",
]
