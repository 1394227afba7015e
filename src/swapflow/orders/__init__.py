"""Declarative limit order storage."""

from swapflow.orders.ledger import LimitOrder, LimitOrderLedger, OrderStatus

__all__ = ["LimitOrder", "LimitOrderLedger", "OrderStatus"]
