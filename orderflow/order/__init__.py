"""
Order engine.

    from orderflow import order as O

    order = (await workflow.orders.checkout(member, cart.id, channel.id, code="ORD-1")).value
    await workflow.orders.transition(admin, order.id, O.OrderStatus.PROCESSING)

State machine: pending -> processing -> completed, pending -> cancelled.
Completed and cancelled are terminal; every transition is written to the
order's status history.
"""

from orderflow.order._types import (
    OrderStatus,
    PaymentStatus,
    OrderItemStatus,
    ORDER_TRANSITIONS,
    OPEN_ORDER_STATUSES,
    Order,
    OrderItem,
    StatusChange,
    Reconciliation,
    OrderItemPatch,
    OrderFilter,
)
from orderflow.order._rows import load_order, order_owners, to_order
from orderflow.order._engine import OrderEngine

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
    "OrderEngine",
    "load_order",
    "order_owners",
    "to_order",
)
