"""
Order engine — orders, line items, status transitions and checkout.
"""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow import saga as S
from orderflow._types import Entity, EntityId, Error, LazyCoroResult, Money, Ok, Result
from orderflow._unit import UnitOfWork, check_version
from orderflow.catalog import lookup_placement, lookup_snapshot
from orderflow.db import (
    OrderItemRow,
    OrderRow,
    OrderStatusHistoryRow,
    SaleRow,
    SaleSnapshotRow,
)
from orderflow.errors import Forbidden, InvalidArgument, InvalidState, NotFound, WorkflowError
from orderflow.identity import Actor, Role, lookup_actor
from orderflow.order._checkout import (
    Lines,
    Placed,
    close_cart,
    copy_lines,
    drop_lines,
    drop_order,
    place_order,
)
from orderflow.order._rows import (
    insert_order,
    line_total,
    load_order,
    order_owners,
    to_order,
    to_order_item,
    to_status_change,
)
from orderflow.order._types import (
    OPEN_ORDER_STATUSES,
    ORDER_TRANSITIONS,
    Order,
    OrderFilter,
    OrderItem,
    OrderItemPatch,
    OrderItemStatus,
    OrderStatus,
    PaymentStatus,
    Reconciliation,
    StatusChange,
)
from orderflow.pagination import Page, PageRequest, paginate
from orderflow.policy import Action, ResourceKind, ResourceOwners, authorize

logger = structlog.get_logger(__name__)


def _check_quantity(quantity: int | None) -> None:
    if quantity is None or quantity < 1:
        raise InvalidArgument(f"quantity must be >= 1, got {quantity}")


def _check_price(price: Money | None) -> None:
    if price is None or price < 0:
        raise InvalidArgument(f"price must be >= 0, got {price}")


def _require_open(order: OrderRow) -> None:
    if order.order_status not in OPEN_ORDER_STATUSES:
        raise InvalidState(f"Order {order.id} is {order.order_status}; line items are frozen")


class OrderEngine:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._uow = UnitOfWork(session_factory)

    # ─────────────────────────────────────────────────────────────────────────
    # Orders
    # ─────────────────────────────────────────────────────────────────────────

    async def create_order(
        self,
        actor: Actor,
        member_id: EntityId,
        channel_id: EntityId,
        code: str,
        total_price: Money,
        section_id: EntityId | None = None,
    ) -> Result[Order, WorkflowError]:
        """Direct order request; initial order and payment status are both pending."""

        async def work(session: AsyncSession) -> Order:
            if not code:
                raise InvalidArgument("order code must not be empty")
            _check_price(total_price)

            await lookup_actor(session, member_id, Role.MEMBER)
            authorize(actor, Action.CREATE, ResourceOwners(ResourceKind.ORDER, member_id=member_id))
            await lookup_placement(session, channel_id, section_id)

            row = await insert_order(
                session,
                member_id=member_id,
                channel_id=channel_id,
                section_id=section_id,
                code=code,
                total_price=total_price,
            )
            logger.info("order.created", order_id=row.id, code=code, actor_id=actor.actor_id)
            return to_order(row)

        return await self._uow.run(work)

    async def get_order(self, actor: Actor, order_id: EntityId) -> Result[Order, WorkflowError]:
        async def work(session: AsyncSession) -> Order:
            order = await load_order(session, order_id)
            authorize(actor, Action.READ, await order_owners(session, order))
            return to_order(order)

        return await self._uow.run(work)

    async def list_orders(
        self,
        actor: Actor,
        filter: OrderFilter = OrderFilter(),
        page: PageRequest = PageRequest(),
    ) -> Result[Page[Order], WorkflowError]:
        """
        Admins see every order, members their own, sellers the orders that
        carry a line from one of their sales. Guests have no orders.
        """

        async def work(session: AsyncSession) -> Page[Order]:
            page.validate()
            stmt = select(OrderRow)

            match actor.role:
                case Role.ADMIN:
                    pass
                case Role.MEMBER:
                    stmt = stmt.where(OrderRow.member_id == actor.actor_id)
                case Role.SELLER:
                    linked = (
                        select(OrderItemRow.order_id)
                        .join(SaleSnapshotRow, SaleSnapshotRow.id == OrderItemRow.snapshot_id)
                        .join(SaleRow, SaleRow.id == SaleSnapshotRow.sale_id)
                        .where(SaleRow.seller_id == actor.actor_id)
                    )
                    stmt = stmt.where(OrderRow.id.in_(linked))
                case _:
                    raise Forbidden(f"{actor.role} actors have no orders")

            if filter.order_status is not None:
                stmt = stmt.where(OrderRow.order_status == filter.order_status)
            if filter.payment_status is not None:
                stmt = stmt.where(OrderRow.payment_status == filter.payment_status)
            if filter.member_id is not None:
                stmt = stmt.where(OrderRow.member_id == filter.member_id)
            if filter.code is not None:
                stmt = stmt.where(OrderRow.code == filter.code)
            stmt = stmt.order_by(OrderRow.created_at.desc(), OrderRow.id)

            return await paginate(session, stmt, page, to_order)

        return await self._uow.run(work)

    async def transition(
        self,
        actor: Actor,
        order_id: EntityId,
        new_status: OrderStatus,
        expected_version: int | None = None,
    ) -> Result[Order, WorkflowError]:
        """Apply one state-machine edge and record it in the status history."""

        async def work(session: AsyncSession) -> Order:
            order = await load_order(session, order_id)
            authorize(actor, Action.UPDATE, await order_owners(session, order))
            if actor.role is Role.MEMBER and new_status is not OrderStatus.CANCELLED:
                raise Forbidden("members may only cancel their own orders")
            check_version(Entity.ORDER, order.version, expected_version)

            old_status = OrderStatus(order.order_status)
            if new_status not in ORDER_TRANSITIONS[old_status]:
                raise InvalidState(f"Order {order.id} cannot move from {old_status} to {new_status}")

            order.order_status = new_status
            session.add(OrderStatusHistoryRow(
                order_id=order.id,
                actor_id=actor.actor_id,
                old_status=old_status,
                new_status=new_status,
            ))
            await session.flush()
            logger.info(
                "order.transitioned",
                order_id=order.id,
                old_status=str(old_status),
                new_status=str(new_status),
                actor_id=actor.actor_id,
            )
            return to_order(order)

        return await self._uow.run(work)

    async def set_payment_status(
        self,
        actor: Actor,
        order_id: EntityId,
        status: PaymentStatus,
        expected_version: int | None = None,
    ) -> Result[Order, WorkflowError]:
        """Order-level payment status; authorized like the sub-ledger."""

        async def work(session: AsyncSession) -> Order:
            order = await load_order(session, order_id)
            authorize(actor, Action.UPDATE, await order_owners(session, order, ResourceKind.LEDGER))
            check_version(Entity.ORDER, order.version, expected_version)

            order.payment_status = status
            await session.flush()
            logger.info("order.payment_status_set", order_id=order.id, status=str(status))
            return to_order(order)

        return await self._uow.run(work)

    async def list_status_history(
        self,
        actor: Actor,
        order_id: EntityId,
        page: PageRequest = PageRequest(),
    ) -> Result[Page[StatusChange], WorkflowError]:
        async def work(session: AsyncSession) -> Page[StatusChange]:
            page.validate()
            order = await load_order(session, order_id)
            authorize(actor, Action.READ, await order_owners(session, order))

            stmt = (
                select(OrderStatusHistoryRow)
                .where(OrderStatusHistoryRow.order_id == order.id)
                .order_by(OrderStatusHistoryRow.changed_at, OrderStatusHistoryRow.id)
            )
            return await paginate(session, stmt, page, to_status_change)

        return await self._uow.run(work)

    # ─────────────────────────────────────────────────────────────────────────
    # Line items
    # ─────────────────────────────────────────────────────────────────────────

    async def add_item(
        self,
        actor: Actor,
        order_id: EntityId,
        snapshot_ref: EntityId,
        quantity: int,
        price: Money,
        status: OrderItemStatus = OrderItemStatus.PENDING,
    ) -> Result[OrderItem, WorkflowError]:
        async def work(session: AsyncSession) -> OrderItem:
            _check_quantity(quantity)
            _check_price(price)

            order = await load_order(session, order_id)
            authorize(actor, Action.UPDATE, await order_owners(session, order, ResourceKind.ORDER_ITEM))
            _require_open(order)
            snapshot = await lookup_snapshot(session, snapshot_ref)

            row = OrderItemRow(
                order_id=order.id,
                snapshot_id=snapshot.snapshot_id,
                quantity=quantity,
                price=price,
                status=status,
            )
            session.add(row)
            await session.flush()
            logger.info("order.item_added", order_id=order.id, item_id=row.id, quantity=quantity)
            return to_order_item(row)

        return await self._uow.run(work)

    async def update_item(
        self,
        actor: Actor,
        order_id: EntityId,
        item_id: EntityId,
        patch: OrderItemPatch,
    ) -> Result[OrderItem, WorkflowError]:
        """Only quantity, price and status change; `id` and `order_id` never do."""

        async def work(session: AsyncSession) -> OrderItem:
            changes = patch.model_dump(exclude_unset=True)
            if "quantity" in changes:
                _check_quantity(changes["quantity"])
            if "price" in changes:
                _check_price(changes["price"])
            if "status" in changes and changes["status"] is None:
                raise InvalidArgument("item status may not be cleared")

            order = await load_order(session, order_id)
            authorize(actor, Action.UPDATE, await order_owners(session, order, ResourceKind.ORDER_ITEM))
            _require_open(order)

            item = await session.get(OrderItemRow, item_id)
            if item is None or item.order_id != order.id:
                raise NotFound("OrderItem", item_id)

            for field, value in changes.items():
                setattr(item, field, value)
            await session.flush()
            return to_order_item(item)

        return await self._uow.run(work)

    async def list_items(
        self,
        actor: Actor,
        order_id: EntityId,
        page: PageRequest = PageRequest(),
    ) -> Result[Page[OrderItem], WorkflowError]:
        async def work(session: AsyncSession) -> Page[OrderItem]:
            page.validate()
            order = await load_order(session, order_id)
            authorize(actor, Action.READ, await order_owners(session, order, ResourceKind.ORDER_ITEM))

            stmt = (
                select(OrderItemRow)
                .where(OrderItemRow.order_id == order.id)
                .order_by(OrderItemRow.created_at, OrderItemRow.id)
            )
            return await paginate(session, stmt, page, to_order_item)

        return await self._uow.run(work)

    # ─────────────────────────────────────────────────────────────────────────
    # Checkout & reconciliation
    # ─────────────────────────────────────────────────────────────────────────

    async def checkout(
        self,
        actor: Actor,
        cart_id: EntityId,
        channel_id: EntityId,
        code: str,
        total_price: Money | None = None,
        section_id: EntityId | None = None,
        expected_version: int | None = None,
    ) -> Result[Order, WorkflowError]:
        """
        Convert an active member cart into an order.

        `total_price` defaults to the sum of the pending lines. `expected_version`
        is the cart version the caller last saw.
        """
        uow = self._uow

        async def place() -> Result[Placed, WorkflowError]:
            return await uow.run(lambda s: place_order(
                s,
                actor,
                cart_id=cart_id,
                channel_id=channel_id,
                section_id=section_id,
                code=code,
                total_price=total_price,
            ))

        async def undo_place(placed: Placed) -> None:
            await uow.execute(lambda s: drop_order(s, placed))

        async def undo_copy(lines: Lines) -> None:
            await uow.execute(lambda s: drop_lines(s, lines))

        flow = (
            S.step(LazyCoroResult(place), compensate=undo_place, name="place_order")
            .then(lambda placed: S.step(
                LazyCoroResult(lambda: uow.run(lambda s: copy_lines(s, placed))),
                compensate=undo_copy,
                name="copy_lines",
            ))
            .then(lambda lines: S.step(
                LazyCoroResult(lambda: uow.run(lambda s: close_cart(s, lines, expected_version))),
                name="close_cart",
            ))
        )

        match await S.run(flow):
            case Ok(done):
                order = to_order(done.value)
                logger.info(
                    "order.checked_out",
                    order_id=order.id,
                    cart_id=cart_id,
                    steps=done.steps_executed,
                )
                await self._warn_on_mismatch(order.id)
                return Ok(order)
            case Error(failed):
                if failed.step_failed > 1:
                    logger.warning(
                        "order.checkout_rolled_back",
                        cart_id=cart_id,
                        step_failed=failed.step_failed,
                        compensators_run=failed.compensators_run,
                        rollback_complete=failed.rollback_complete,
                    )
                return Error(failed.error)
        raise AssertionError("unreachable")

    async def reconcile_total(
        self, actor: Actor, order_id: EntityId
    ) -> Result[Reconciliation, WorkflowError]:
        """Compare `total_price` with the live line sum. A mismatch is logged, never rejected."""

        async def work(session: AsyncSession) -> Reconciliation:
            order = await load_order(session, order_id)
            authorize(actor, Action.READ, await order_owners(session, order))
            return await _reconcile(session, order)

        return await self._uow.run(work)

    async def _warn_on_mismatch(self, order_id: EntityId) -> None:
        async def work(session: AsyncSession) -> Reconciliation:
            return await _reconcile(session, await load_order(session, order_id))

        await self._uow.execute(work)


async def _reconcile(session: AsyncSession, order: OrderRow) -> Reconciliation:
    result = Reconciliation(
        order_id=order.id,
        total_price=order.total_price,
        line_total=await line_total(session, order.id),
    )
    if not result.matches:
        logger.warning(
            "order.total_mismatch",
            order_id=order.id,
            total_price=result.total_price,
            line_total=result.line_total,
        )
    return result


__all__ = ("OrderEngine",)
