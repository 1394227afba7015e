"""In-memory limit order ledger.

Declarative storage of target-price conversion intents. Nothing here
matches, fills or expires orders; ``expiry`` is recorded for display only.
"""

import logging
import time
import uuid
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from swapflow.config import Settings, get_settings
from swapflow.errors import ValidationError

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    """Limit order status."""

    OPEN = "open"
    CANCELLED = "cancelled"
    FILLED = "filled"  # reserved; no transition sets it


@dataclass(frozen=True)
class LimitOrder:
    """A pending conversion intent at a target price."""

    id: str
    from_symbol: str
    to_symbol: str
    amount: Decimal
    target_price: Decimal
    created_at: float
    expiry: float
    status: OrderStatus = OrderStatus.OPEN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from_symbol": self.from_symbol,
            "to_symbol": self.to_symbol,
            "amount": str(self.amount),
            "target_price": str(self.target_price),
            "created_at": self.created_at,
            "expiry": self.expiry,
            "status": self.status.value,
        }


class LimitOrderLedger:
    """Ordered collection of open limit orders keyed by id."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
    ):
        settings = settings or get_settings()
        self.horizon_seconds = settings.limit_order_horizon_hours * 3600
        self._clock = clock
        self._orders: dict[str, LimitOrder] = {}

    def __len__(self) -> int:
        return len(self._orders)

    def create(
        self,
        from_symbol: str,
        to_symbol: str,
        amount: Decimal,
        target_price: Decimal,
    ) -> LimitOrder:
        """Record a new open order; stamps created_at and expiry."""
        from_symbol = from_symbol.strip().upper()
        to_symbol = to_symbol.strip().upper()

        if not from_symbol or not to_symbol:
            raise ValidationError("Both symbols are required")
        if from_symbol == to_symbol:
            raise ValidationError(f"Cannot place a limit order from {from_symbol} to itself")
        if amount <= 0:
            raise ValidationError(f"Amount must be positive, got {amount}")
        if target_price <= 0:
            raise ValidationError(f"Target price must be positive, got {target_price}")

        created_at = self._clock()
        order = LimitOrder(
            id=f"lo_{uuid.uuid4().hex[:12]}",
            from_symbol=from_symbol,
            to_symbol=to_symbol,
            amount=amount,
            target_price=target_price,
            created_at=created_at,
            expiry=created_at + self.horizon_seconds,
        )
        self._orders[order.id] = order
        logger.info(
            f"Limit order {order.id}: {amount} {from_symbol} -> {to_symbol} @ {target_price}"
        )
        return order

    def cancel(self, order_id: str) -> LimitOrder:
        """Remove an order; returns it marked cancelled."""
        order = self._orders.pop(order_id, None)
        if order is None:
            raise ValidationError(f"Limit order '{order_id}' not found")
        logger.info(f"Limit order {order_id} cancelled")
        return replace(order, status=OrderStatus.CANCELLED)

    def get(self, order_id: str) -> Optional[LimitOrder]:
        return self._orders.get(order_id)

    def list(self) -> list[LimitOrder]:
        """Orders in creation order."""
        return list(self._orders.values())
