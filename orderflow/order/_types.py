"""
Order types — records, state machine, patches and filters.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from orderflow._types import EntityId, Money


class OrderStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(StrEnum):
    """Shared by `Order.payment_status` and individual payment records."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class OrderItemStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


ORDER_TRANSITIONS: Mapping[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Line items can still change while the order is in one of these.
OPEN_ORDER_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})


# ═══════════════════════════════════════════════════════════════════════════════
# Records
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Order:
    id: EntityId
    member_id: EntityId
    channel_id: EntityId
    section_id: EntityId | None
    cart_id: EntityId | None
    code: str
    order_status: OrderStatus
    payment_status: PaymentStatus
    total_price: Money
    version: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class OrderItem:
    id: EntityId
    order_id: EntityId
    snapshot_id: EntityId
    quantity: int
    price: Money
    status: OrderItemStatus
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class StatusChange:
    id: EntityId
    order_id: EntityId
    actor_id: EntityId
    old_status: OrderStatus
    new_status: OrderStatus
    changed_at: datetime


@dataclass(frozen=True, slots=True)
class Reconciliation:
    """Caller-supplied total against the sum of live lines (quantity * price)."""

    order_id: EntityId
    total_price: Money
    line_total: Money

    @property
    def matches(self) -> bool:
        return self.total_price == self.line_total


# ═══════════════════════════════════════════════════════════════════════════════
# Patches & Filters
# ═══════════════════════════════════════════════════════════════════════════════


class OrderItemPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    quantity: int | None = None
    price: int | None = None
    status: OrderItemStatus | None = None


@dataclass(frozen=True, slots=True)
class OrderFilter:
    order_status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    member_id: EntityId | None = None
    code: str | None = None


__all__ = (
    "OrderStatus",
    "PaymentStatus",
    "OrderItemStatus",
    "ORDER_TRANSITIONS",
    "OPEN_ORDER_STATUSES",
    "Order",
    "OrderItem",
    "StatusChange",
    "Reconciliation",
    "OrderItemPatch",
    "OrderFilter",
)
