"""Limit order contracts."""

from decimal import Decimal

from pydantic import BaseModel, Field

from swapflow.orders.ledger import LimitOrder


class LimitOrderRequest(BaseModel):
    """Request to record a limit order."""

    from_symbol: str = Field(..., description="Asset to sell")
    to_symbol: str = Field(..., description="Asset to buy")
    amount: Decimal = Field(..., description="Amount of from_symbol")
    target_price: Decimal = Field(..., description="Target price of from_symbol in to_symbol")


class LimitOrderInfo(BaseModel):
    id: str
    from_symbol: str
    to_symbol: str
    amount: Decimal
    target_price: Decimal
    created_at: float
    expiry: float
    status: str

    @classmethod
    def from_order(cls, order: LimitOrder) -> "LimitOrderInfo":
        return cls(**order.to_dict())


class LimitOrderListResponse(BaseModel):
    success: bool = True
    orders: list[LimitOrderInfo] = Field(default_factory=list)
    total: int = 0
