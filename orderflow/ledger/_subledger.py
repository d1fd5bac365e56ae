"""
Payment & delivery sub-ledger.

Authorization for every call runs against the owning order as a LEDGER
resource: the placing member reads, sellers-of-record and admins write.
"""

from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow._types import Entity, EntityId, Money, Result, utcnow
from orderflow._unit import UnitOfWork, check_version, discard
from orderflow.db import DeliveryRow, OrderRow, PaymentRow
from orderflow.errors import InvalidArgument, InvalidState, NotFound, WorkflowError
from orderflow.identity import Actor
from orderflow.ledger._types import (
    PAYMENT_TRANSITIONS,
    Delivery,
    DeliveryFilter,
    DeliveryPatch,
    DeliverySort,
    DeliverySortField,
    DeliveryStage,
    DeliveryStatus,
    Payment,
    PaymentFilter,
    PaymentPatch,
    SortDirection,
)
from orderflow.order import PaymentStatus, load_order, order_owners
from orderflow.pagination import Page, PageRequest, paginate
from orderflow.policy import Action, ResourceKind, authorize

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Row -> Record
# ═══════════════════════════════════════════════════════════════════════════════


def to_payment(row: PaymentRow) -> Payment:
    return Payment(
        id=row.id,
        order_id=row.order_id,
        payment_method=row.payment_method,
        payment_status=PaymentStatus(row.payment_status),
        payment_amount=row.payment_amount,
        transaction_id=row.transaction_id,
        cancelled_at=row.cancelled_at,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_delivery(row: DeliveryRow) -> Delivery:
    return Delivery(
        id=row.id,
        order_id=row.order_id,
        delivery_status=DeliveryStatus(row.delivery_status),
        delivery_stage=DeliveryStage(row.delivery_stage),
        expected_delivery_date=row.expected_delivery_date,
        start_time=row.start_time,
        end_time=row.end_time,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════


async def _authorized_order(
    session: AsyncSession, actor: Actor, order_id: EntityId, action: Action
) -> OrderRow:
    order = await load_order(session, order_id)
    authorize(actor, action, await order_owners(session, order, ResourceKind.LEDGER))
    return order


async def _load_payment(session: AsyncSession, order_id: EntityId, payment_id: EntityId) -> PaymentRow:
    row = await session.get(PaymentRow, payment_id)
    if row is None or row.order_id != order_id:
        raise NotFound("Payment", payment_id)
    return row


async def _load_delivery(session: AsyncSession, order_id: EntityId, delivery_id: EntityId) -> DeliveryRow:
    row = await session.get(DeliveryRow, delivery_id)
    if row is None or row.order_id != order_id:
        raise NotFound("Delivery", delivery_id)
    return row


def _check_method(method: str | None) -> None:
    if not method:
        raise InvalidArgument("payment_method must not be empty")


def _check_amount(amount: Money | None) -> None:
    if amount is None or amount < 0:
        raise InvalidArgument(f"payment_amount must be >= 0, got {amount}")


def _check_payment_transition(row: PaymentRow, new_status: PaymentStatus) -> None:
    current = PaymentStatus(row.payment_status)
    if new_status not in PAYMENT_TRANSITIONS[current]:
        raise InvalidState(f"Payment {row.id} cannot move from {current} to {new_status}")


_SORT_COLUMNS = {
    DeliverySortField.CREATED_AT: DeliveryRow.created_at,
    DeliverySortField.UPDATED_AT: DeliveryRow.updated_at,
    DeliverySortField.EXPECTED_DELIVERY_DATE: DeliveryRow.expected_delivery_date,
    DeliverySortField.START_TIME: DeliveryRow.start_time,
    DeliverySortField.END_TIME: DeliveryRow.end_time,
    DeliverySortField.DELIVERY_STATUS: DeliveryRow.delivery_status,
    DeliverySortField.DELIVERY_STAGE: DeliveryRow.delivery_stage,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Sub-ledger
# ═══════════════════════════════════════════════════════════════════════════════


class SubLedger:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._uow = UnitOfWork(session_factory)

    # ─────────────────────────────────────────────────────────────────────────
    # Payments
    # ─────────────────────────────────────────────────────────────────────────

    async def create_payment(
        self,
        actor: Actor,
        order_id: EntityId,
        payment_method: str,
        payment_amount: Money,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        transaction_id: str | None = None,
    ) -> Result[Payment, WorkflowError]:
        async def work(session: AsyncSession) -> Payment:
            _check_method(payment_method)
            _check_amount(payment_amount)

            order = await _authorized_order(session, actor, order_id, Action.CREATE)
            row = PaymentRow(
                order_id=order.id,
                payment_method=payment_method,
                payment_status=payment_status,
                payment_amount=payment_amount,
                transaction_id=transaction_id,
                cancelled_at=utcnow() if payment_status is PaymentStatus.CANCELLED else None,
            )
            session.add(row)
            await session.flush()
            logger.info(
                "ledger.payment_created",
                order_id=order.id,
                payment_id=row.id,
                status=str(payment_status),
                amount=payment_amount,
            )
            return to_payment(row)

        return await self._uow.run(work)

    async def get_payment(
        self, actor: Actor, order_id: EntityId, payment_id: EntityId
    ) -> Result[Payment, WorkflowError]:
        async def work(session: AsyncSession) -> Payment:
            await _authorized_order(session, actor, order_id, Action.READ)
            return to_payment(await _load_payment(session, order_id, payment_id))

        return await self._uow.run(work)

    async def update_payment(
        self,
        actor: Actor,
        order_id: EntityId,
        payment_id: EntityId,
        patch: PaymentPatch,
        expected_version: int | None = None,
    ) -> Result[Payment, WorkflowError]:
        """
        Partial update. `transaction_id` and `cancelled_at` can be cleared with
        an explicit None. Moving to cancelled stamps `cancelled_at` unless the
        patch supplies it.
        """

        async def work(session: AsyncSession) -> Payment:
            changes = patch.model_dump(exclude_unset=True)
            if "payment_method" in changes:
                _check_method(changes["payment_method"])
            if "payment_amount" in changes:
                _check_amount(changes["payment_amount"])
            if "payment_status" in changes and changes["payment_status"] is None:
                raise InvalidArgument("payment_status may not be cleared")

            await _authorized_order(session, actor, order_id, Action.UPDATE)
            row = await _load_payment(session, order_id, payment_id)
            check_version(Entity.PAYMENT, row.version, expected_version)

            new_status = changes.get("payment_status")
            if new_status is not None:
                _check_payment_transition(row, new_status)
                if (
                    new_status is PaymentStatus.CANCELLED
                    and row.payment_status != PaymentStatus.CANCELLED
                    and "cancelled_at" not in changes
                ):
                    changes["cancelled_at"] = utcnow()

            for field, value in changes.items():
                setattr(row, field, value)
            await session.flush()
            logger.info("ledger.payment_updated", payment_id=row.id, fields=sorted(changes))
            return to_payment(row)

        return await self._uow.run(work)

    async def delete_payment(
        self, actor: Actor, order_id: EntityId, payment_id: EntityId
    ) -> Result[None, WorkflowError]:
        """Hard delete; a repeat call is `NotFound`."""

        async def work(session: AsyncSession) -> None:
            await _authorized_order(session, actor, order_id, Action.DELETE)
            row = await _load_payment(session, order_id, payment_id)
            await discard(session, Entity.PAYMENT, row)
            await session.flush()
            logger.info("ledger.payment_deleted", order_id=order_id, payment_id=payment_id)

        return await self._uow.run(work)

    async def list_payments(
        self,
        actor: Actor,
        order_id: EntityId,
        filter: PaymentFilter = PaymentFilter(),
        page: PageRequest = PageRequest(),
    ) -> Result[Page[Payment], WorkflowError]:
        async def work(session: AsyncSession) -> Page[Payment]:
            page.validate()
            await _authorized_order(session, actor, order_id, Action.READ)

            stmt = select(PaymentRow).where(PaymentRow.order_id == order_id)
            if filter.payment_status is not None:
                stmt = stmt.where(PaymentRow.payment_status == filter.payment_status)
            if filter.payment_method is not None:
                stmt = stmt.where(PaymentRow.payment_method == filter.payment_method)
            stmt = stmt.order_by(PaymentRow.created_at, PaymentRow.id)

            return await paginate(session, stmt, page, to_payment)

        return await self._uow.run(work)

    # ─────────────────────────────────────────────────────────────────────────
    # Deliveries
    # ─────────────────────────────────────────────────────────────────────────

    async def create_delivery(
        self,
        actor: Actor,
        order_id: EntityId,
        delivery_status: DeliveryStatus,
        delivery_stage: DeliveryStage,
        expected_delivery_date: datetime | None = None,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> Result[Delivery, WorkflowError]:
        async def work(session: AsyncSession) -> Delivery:
            order = await _authorized_order(session, actor, order_id, Action.CREATE)
            row = DeliveryRow(
                order_id=order.id,
                delivery_status=delivery_status,
                delivery_stage=delivery_stage,
                expected_delivery_date=expected_delivery_date,
                start_time=start_time,
                end_time=end_time,
            )
            session.add(row)
            await session.flush()
            logger.info(
                "ledger.delivery_created",
                order_id=order.id,
                delivery_id=row.id,
                status=str(delivery_status),
                stage=str(delivery_stage),
            )
            return to_delivery(row)

        return await self._uow.run(work)

    async def get_delivery(
        self, actor: Actor, order_id: EntityId, delivery_id: EntityId
    ) -> Result[Delivery, WorkflowError]:
        async def work(session: AsyncSession) -> Delivery:
            await _authorized_order(session, actor, order_id, Action.READ)
            return to_delivery(await _load_delivery(session, order_id, delivery_id))

        return await self._uow.run(work)

    async def update_delivery(
        self,
        actor: Actor,
        order_id: EntityId,
        delivery_id: EntityId,
        patch: DeliveryPatch,
        expected_version: int | None = None,
    ) -> Result[Delivery, WorkflowError]:
        async def work(session: AsyncSession) -> Delivery:
            changes = patch.model_dump(exclude_unset=True)
            for tag in ("delivery_status", "delivery_stage"):
                if tag in changes and changes[tag] is None:
                    raise InvalidArgument(f"{tag} may not be cleared")

            await _authorized_order(session, actor, order_id, Action.UPDATE)
            row = await _load_delivery(session, order_id, delivery_id)
            check_version(Entity.DELIVERY, row.version, expected_version)

            for field, value in changes.items():
                setattr(row, field, value)
            await session.flush()
            logger.info("ledger.delivery_updated", delivery_id=row.id, fields=sorted(changes))
            return to_delivery(row)

        return await self._uow.run(work)

    async def delete_delivery(
        self, actor: Actor, order_id: EntityId, delivery_id: EntityId
    ) -> Result[None, WorkflowError]:
        async def work(session: AsyncSession) -> None:
            await _authorized_order(session, actor, order_id, Action.DELETE)
            row = await _load_delivery(session, order_id, delivery_id)
            await discard(session, Entity.DELIVERY, row)
            await session.flush()
            logger.info("ledger.delivery_deleted", order_id=order_id, delivery_id=delivery_id)

        return await self._uow.run(work)

    async def list_deliveries(
        self,
        actor: Actor,
        order_id: EntityId,
        filter: DeliveryFilter = DeliveryFilter(),
        page: PageRequest = PageRequest(),
        sort: DeliverySort = DeliverySort(),
    ) -> Result[Page[Delivery], WorkflowError]:
        """Exact-match filters on status and stage; `id` breaks sort ties."""

        async def work(session: AsyncSession) -> Page[Delivery]:
            page.validate()
            await _authorized_order(session, actor, order_id, Action.READ)

            stmt = select(DeliveryRow).where(DeliveryRow.order_id == order_id)
            if filter.delivery_status is not None:
                stmt = stmt.where(DeliveryRow.delivery_status == filter.delivery_status)
            if filter.delivery_stage is not None:
                stmt = stmt.where(DeliveryRow.delivery_stage == filter.delivery_stage)

            column = _SORT_COLUMNS[sort.field]
            ordered = column.asc() if sort.direction is SortDirection.ASC else column.desc()
            stmt = stmt.order_by(ordered, DeliveryRow.id)

            return await paginate(session, stmt, page, to_delivery)

        return await self._uow.run(work)


__all__ = ("SubLedger", "to_payment", "to_delivery")
