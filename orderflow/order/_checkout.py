"""
Checkout — cart to order as a three-step saga.

    place_order   create the order from the cart      compensate: drop_order
    copy_lines    pending cart items -> order lines    compensate: drop_lines
    close_cart    mark items and cart ordered

Each step commits its own transaction; a failure after the first step runs
the compensators of the steps before it. The cart is only written by the last
step, so that is where `expected_version` is checked.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow._types import Entity, EntityId, Money
from orderflow._unit import check_version
from orderflow.cart import CartItemStatus, CartStatus, cart_owners, live_items, load_cart
from orderflow.catalog import lookup_placement
from orderflow.db import CartItemRow, OrderItemRow, OrderRow
from orderflow.errors import InvalidArgument, InvalidState
from orderflow.identity import Actor, Role, lookup_actor
from orderflow.order._rows import insert_order, load_order
from orderflow.order._types import OrderItemStatus
from orderflow.policy import Action, ResourceKind, ResourceOwners, authorize

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Placed:
    order_id: EntityId
    cart_id: EntityId
    item_ids: tuple[EntityId, ...]


@dataclass(frozen=True, slots=True)
class Lines:
    placed: Placed
    line_ids: tuple[EntityId, ...]


def _pending(items: list[CartItemRow]) -> list[CartItemRow]:
    return [i for i in items if i.status == CartItemStatus.PENDING]


async def place_order(
    session: AsyncSession,
    actor: Actor,
    *,
    cart_id: EntityId,
    channel_id: EntityId,
    section_id: EntityId | None,
    code: str,
    total_price: Money | None,
) -> Placed:
    if total_price is not None and total_price < 0:
        raise InvalidArgument(f"total_price must be >= 0, got {total_price}")

    cart = await load_cart(session, cart_id)
    authorize(actor, Action.READ, await cart_owners(session, cart))
    if cart.member_owner_id is None:
        raise InvalidState(f"Cart {cart.id} belongs to a guest; only member carts check out")
    authorize(actor, Action.CREATE, ResourceOwners(ResourceKind.ORDER, member_id=cart.member_owner_id))

    if cart.status != CartStatus.ACTIVE:
        raise InvalidState(f"Cart {cart.id} is {cart.status}, not active")
    items = _pending(await live_items(session, cart.id))
    if not items:
        raise InvalidState(f"Cart {cart.id} has no pending items")

    await lookup_actor(session, cart.member_owner_id, Role.MEMBER)
    await lookup_placement(session, channel_id, section_id)

    if total_price is None:
        total_price = sum(i.quantity * i.unit_price for i in items)

    order = await insert_order(
        session,
        member_id=cart.member_owner_id,
        channel_id=channel_id,
        section_id=section_id,
        code=code,
        total_price=total_price,
        cart_id=cart.id,
    )
    logger.info("order.created", order_id=order.id, code=code, cart_id=cart.id, actor_id=actor.actor_id)
    return Placed(order_id=order.id, cart_id=cart.id, item_ids=tuple(i.id for i in items))


async def copy_lines(session: AsyncSession, placed: Placed) -> Lines:
    line_ids: list[EntityId] = []
    for item_id in placed.item_ids:
        item = await session.get(CartItemRow, item_id)
        if item is None or item.deleted_at is not None or item.status != CartItemStatus.PENDING:
            raise InvalidState(f"CartItem {item_id} changed during checkout")

        line = OrderItemRow(
            order_id=placed.order_id,
            snapshot_id=item.snapshot_id,
            quantity=item.quantity,
            price=item.unit_price,
            status=OrderItemStatus.PENDING,
        )
        session.add(line)
        await session.flush()
        line_ids.append(line.id)
    return Lines(placed=placed, line_ids=tuple(line_ids))


async def close_cart(
    session: AsyncSession,
    lines: Lines,
    expected_version: int | None,
) -> OrderRow:
    cart = await load_cart(session, lines.placed.cart_id)
    check_version(Entity.CART, cart.version, expected_version)
    if cart.status != CartStatus.ACTIVE:
        raise InvalidState(f"Cart {cart.id} is {cart.status}, not active")

    for item_id in lines.placed.item_ids:
        item = await session.get(CartItemRow, item_id)
        if item is None or item.deleted_at is not None or item.status != CartItemStatus.PENDING:
            raise InvalidState(f"CartItem {item_id} changed during checkout")
        item.status = CartItemStatus.ORDERED

    cart.status = CartStatus.ORDERED
    await session.flush()
    return await load_order(session, lines.placed.order_id)


# ═══════════════════════════════════════════════════════════════════════════════
# Compensation
# ═══════════════════════════════════════════════════════════════════════════════

# These undo rows the saga itself wrote before the order was handed out.


async def drop_order(session: AsyncSession, placed: Placed) -> None:
    await session.execute(delete(OrderItemRow).where(OrderItemRow.order_id == placed.order_id))
    await session.execute(delete(OrderRow).where(OrderRow.id == placed.order_id))
    logger.info("order.checkout_compensated", order_id=placed.order_id, step="place_order")


async def drop_lines(session: AsyncSession, lines: Lines) -> None:
    if lines.line_ids:
        await session.execute(delete(OrderItemRow).where(OrderItemRow.id.in_(lines.line_ids)))
    logger.info("order.checkout_compensated", order_id=lines.placed.order_id, step="copy_lines")


__all__ = (
    "Placed",
    "Lines",
    "place_order",
    "copy_lines",
    "close_cart",
    "drop_order",
    "drop_lines",
)
