"""Limit order endpoints."""

from fastapi import APIRouter, Request

from swapflow.web.contracts.orders import (
    LimitOrderInfo,
    LimitOrderListResponse,
    LimitOrderRequest,
)

router = APIRouter(prefix="/limit-orders")


@router.post("", response_model=LimitOrderInfo)
async def create_limit_order(body: LimitOrderRequest, request: Request) -> LimitOrderInfo:
    """Record a limit order. Orders are stored only; nothing fills them."""
    order = request.app.state.conversion_service.create_limit_order(
        body.from_symbol, body.to_symbol, body.amount, body.target_price
    )
    return LimitOrderInfo.from_order(order)


@router.get("", response_model=LimitOrderListResponse)
async def list_limit_orders(request: Request) -> LimitOrderListResponse:
    orders = request.app.state.conversion_service.list_limit_orders()
    return LimitOrderListResponse(
        orders=[LimitOrderInfo.from_order(o) for o in orders],
        total=len(orders),
    )


@router.delete("/{order_id}", response_model=LimitOrderInfo)
async def cancel_limit_order(order_id: str, request: Request) -> LimitOrderInfo:
    order = request.app.state.conversion_service.cancel_limit_order(order_id)
    return LimitOrderInfo.from_order(order)
