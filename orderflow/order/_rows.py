"""
Order storage helpers shared by the engine, checkout and the sub-ledger.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow._types import EntityId, Money
from orderflow.catalog import sellers_of_snapshots
from orderflow.db import OrderItemRow, OrderRow, OrderStatusHistoryRow
from orderflow.errors import Conflict, NotFound
from orderflow.order._types import (
    Order,
    OrderItem,
    OrderItemStatus,
    OrderStatus,
    PaymentStatus,
    StatusChange,
)
from orderflow.policy import ResourceKind, ResourceOwners


def to_order(row: OrderRow) -> Order:
    return Order(
        id=row.id,
        member_id=row.member_id,
        channel_id=row.channel_id,
        section_id=row.section_id,
        cart_id=row.cart_id,
        code=row.code,
        order_status=OrderStatus(row.order_status),
        payment_status=PaymentStatus(row.payment_status),
        total_price=row.total_price,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_order_item(row: OrderItemRow) -> OrderItem:
    return OrderItem(
        id=row.id,
        order_id=row.order_id,
        snapshot_id=row.snapshot_id,
        quantity=row.quantity,
        price=row.price,
        status=OrderItemStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_status_change(row: OrderStatusHistoryRow) -> StatusChange:
    return StatusChange(
        id=row.id,
        order_id=row.order_id,
        actor_id=row.actor_id,
        old_status=OrderStatus(row.old_status),
        new_status=OrderStatus(row.new_status),
        changed_at=row.changed_at,
    )


async def load_order(session: AsyncSession, order_id: EntityId) -> OrderRow:
    row = await session.get(OrderRow, order_id)
    if row is None:
        raise NotFound("Order", order_id)
    return row


async def order_owners(
    session: AsyncSession,
    order: OrderRow,
    kind: ResourceKind = ResourceKind.ORDER,
) -> ResourceOwners:
    """Placing member plus the sellers behind the order's line items."""
    snapshot_ids = await session.execute(
        select(OrderItemRow.snapshot_id).where(OrderItemRow.order_id == order.id)
    )
    return ResourceOwners(
        kind,
        member_id=order.member_id,
        seller_ids=await sellers_of_snapshots(session, snapshot_ids.scalars().all()),
    )


async def insert_order(
    session: AsyncSession,
    *,
    member_id: EntityId,
    channel_id: EntityId,
    section_id: EntityId | None,
    code: str,
    total_price: Money,
    cart_id: EntityId | None = None,
) -> OrderRow:
    taken = await session.execute(select(OrderRow.id).where(OrderRow.code == code))
    if taken.first() is not None:
        raise Conflict(f"Order code {code!r} is already taken")

    row = OrderRow(
        member_id=member_id,
        channel_id=channel_id,
        section_id=section_id,
        cart_id=cart_id,
        code=code,
        order_status=OrderStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        total_price=total_price,
    )
    session.add(row)
    await session.flush()
    return row


async def line_total(session: AsyncSession, order_id: EntityId) -> Money:
    """Sum of quantity * price over lines that are not cancelled."""
    total = await session.execute(
        select(func.coalesce(func.sum(OrderItemRow.quantity * OrderItemRow.price), 0)).where(
            OrderItemRow.order_id == order_id,
            OrderItemRow.status != OrderItemStatus.CANCELLED,
        )
    )
    return int(total.scalar_one())


__all__ = (
    "to_order",
    "to_order_item",
    "to_status_change",
    "load_order",
    "order_owners",
    "insert_order",
    "line_total",
)
