"""Tests for the payment and delivery sub-ledger."""

from datetime import UTC, datetime, timedelta

import pytest

from orderflow import DELETION_POLICY, Deletion, Entity, ErrorKind, PageRequest
from orderflow.ledger import (
    DeliveryFilter,
    DeliveryPatch,
    DeliverySort,
    DeliverySortField,
    DeliveryStage,
    DeliveryStatus,
    PaymentFilter,
    PaymentPatch,
    SortDirection,
)
from orderflow.order import PaymentStatus

from helpers import err, ok

DAY = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
async def payment(wf, seller, order):
    return ok(await wf.ledger.create_payment(seller, order.id, "card", 9900, transaction_id="tx-1"))


class TestPayments:
    async def test_create(self, payment, order):
        assert payment.order_id == order.id
        assert payment.payment_status is PaymentStatus.PENDING
        assert payment.cancelled_at is None
        assert payment.version == 1

    async def test_partial_update_keeps_other_fields(self, wf, seller, order, payment):
        updated = ok(await wf.ledger.update_payment(
            seller, order.id, payment.id, PaymentPatch(payment_status=PaymentStatus.CONFIRMED)
        ))

        assert updated.payment_status is PaymentStatus.CONFIRMED
        assert updated.payment_method == "card"
        assert updated.payment_amount == 9900
        assert updated.transaction_id == "tx-1"
        assert updated.version == payment.version + 1

        again = ok(await wf.ledger.get_payment(seller, order.id, payment.id))
        assert again == updated

    async def test_explicit_none_clears(self, wf, seller, order, payment):
        updated = ok(await wf.ledger.update_payment(
            seller, order.id, payment.id, PaymentPatch(transaction_id=None)
        ))
        assert updated.transaction_id is None

    async def test_cancelling_stamps_cancelled_at(self, wf, seller, order, payment):
        cancelled = ok(await wf.ledger.update_payment(
            seller, order.id, payment.id, PaymentPatch(payment_status=PaymentStatus.CANCELLED)
        ))
        assert cancelled.cancelled_at is not None

        cleared = ok(await wf.ledger.update_payment(
            seller, order.id, payment.id, PaymentPatch(cancelled_at=None)
        ))
        assert cleared.cancelled_at is None
        assert cleared.payment_status is PaymentStatus.CANCELLED

    async def test_supplied_cancelled_at_wins(self, wf, seller, order, payment):
        cancelled = ok(await wf.ledger.update_payment(
            seller,
            order.id,
            payment.id,
            PaymentPatch(payment_status=PaymentStatus.CANCELLED, cancelled_at=DAY),
        ))
        assert cancelled.cancelled_at == DAY

    async def test_same_status_is_allowed(self, wf, seller, order, payment):
        same = ok(await wf.ledger.update_payment(
            seller, order.id, payment.id, PaymentPatch(payment_status=PaymentStatus.PENDING)
        ))
        assert same.payment_status is PaymentStatus.PENDING

    @pytest.mark.parametrize("target", [PaymentStatus.PENDING, PaymentStatus.CONFIRMED])
    async def test_cancelled_is_terminal(self, wf, seller, order, payment, target):
        ok(await wf.ledger.update_payment(
            seller, order.id, payment.id, PaymentPatch(payment_status=PaymentStatus.CANCELLED)
        ))

        e = err(await wf.ledger.update_payment(
            seller, order.id, payment.id, PaymentPatch(payment_status=target)
        ))
        assert e.kind is ErrorKind.INVALID_STATE

    async def test_confirmed_cannot_go_back(self, wf, seller, order, payment):
        ok(await wf.ledger.update_payment(
            seller, order.id, payment.id, PaymentPatch(payment_status=PaymentStatus.CONFIRMED)
        ))

        e = err(await wf.ledger.update_payment(
            seller, order.id, payment.id, PaymentPatch(payment_status=PaymentStatus.PENDING)
        ))
        assert e.kind is ErrorKind.INVALID_STATE

    async def test_status_cannot_be_cleared(self, wf, seller, order, payment):
        e = err(await wf.ledger.update_payment(
            seller, order.id, payment.id, PaymentPatch(payment_status=None)
        ))
        assert e.kind is ErrorKind.INVALID_ARGUMENT

    async def test_negative_amount(self, wf, seller, order):
        e = err(await wf.ledger.create_payment(seller, order.id, "card", -1))
        assert e.kind is ErrorKind.INVALID_ARGUMENT

    async def test_stale_version(self, wf, seller, order, payment):
        e = err(await wf.ledger.update_payment(
            seller,
            order.id,
            payment.id,
            PaymentPatch(payment_amount=100),
            expected_version=payment.version + 1,
        ))
        assert e.kind is ErrorKind.CONFLICT

    async def test_payment_of_another_order(self, wf, admin, member, seller, shop, payment):
        other = ok(await wf.orders.create_order(admin, member.actor_id, shop.channel.id, "ORD-2", 0))

        e = err(await wf.ledger.get_payment(admin, other.id, payment.id))
        assert e.kind is ErrorKind.NOT_FOUND

    async def test_list_filter(self, wf, seller, member, order, payment):
        ok(await wf.ledger.create_payment(seller, order.id, "bank", 500, PaymentStatus.CONFIRMED))

        confirmed = ok(await wf.ledger.list_payments(
            member, order.id, PaymentFilter(payment_status=PaymentStatus.CONFIRMED)
        ))
        by_card = ok(await wf.ledger.list_payments(member, order.id, PaymentFilter(payment_method="card")))

        assert [p.payment_method for p in confirmed.data] == ["bank"]
        assert [p.id for p in by_card.data] == [payment.id]


class TestDeletePayment:
    async def test_hard_delete(self, wf, seller, order, payment):
        assert DELETION_POLICY[Entity.PAYMENT] is Deletion.HARD

        assert ok(await wf.ledger.delete_payment(seller, order.id, payment.id)) is None

        assert err(await wf.ledger.get_payment(seller, order.id, payment.id)).kind is ErrorKind.NOT_FOUND
        assert ok(await wf.ledger.list_payments(seller, order.id)).pagination.records == 0

    async def test_second_delete_is_not_found(self, wf, seller, order, payment):
        ok(await wf.ledger.delete_payment(seller, order.id, payment.id))

        e = err(await wf.ledger.delete_payment(seller, order.id, payment.id))
        assert e.kind is ErrorKind.NOT_FOUND


class TestLedgerAccess:
    async def test_member_reads(self, wf, member, order, payment):
        assert ok(await wf.ledger.get_payment(member, order.id, payment.id)).id == payment.id

    async def test_member_cannot_write(self, wf, member, order, payment):
        assert err(await wf.ledger.create_payment(member, order.id, "card", 1)).kind is ErrorKind.FORBIDDEN
        assert err(await wf.ledger.update_payment(
            member, order.id, payment.id, PaymentPatch(payment_amount=1)
        )).kind is ErrorKind.FORBIDDEN
        assert err(await wf.ledger.delete_payment(member, order.id, payment.id)).kind is ErrorKind.FORBIDDEN

    async def test_unlinked_seller(self, wf, other_seller, order, payment):
        e = err(await wf.ledger.get_payment(other_seller, order.id, payment.id))
        assert e.kind is ErrorKind.FORBIDDEN

    async def test_other_member(self, wf, other_member, order):
        e = err(await wf.ledger.list_payments(other_member, order.id))
        assert e.kind is ErrorKind.FORBIDDEN

    async def test_guest(self, wf, guest, order):
        e = err(await wf.ledger.list_deliveries(guest, order.id))
        assert e.kind is ErrorKind.FORBIDDEN

    async def test_admin_writes(self, wf, admin, order):
        delivery = ok(await wf.ledger.create_delivery(
            admin, order.id, DeliveryStatus.PREPARING, DeliveryStage.PREPARATION
        ))
        assert delivery.order_id == order.id

    async def test_unknown_order(self, wf, admin):
        e = err(await wf.ledger.list_payments(admin, "missing"))
        assert e.kind is ErrorKind.NOT_FOUND


class TestDeliveries:
    async def test_status_and_stage_move_independently(self, wf, seller, order):
        delivery = ok(await wf.ledger.create_delivery(
            seller, order.id, DeliveryStatus.DELIVERED, DeliveryStage.MANUFACTURING
        ))

        updated = ok(await wf.ledger.update_delivery(
            seller, order.id, delivery.id, DeliveryPatch(delivery_status=DeliveryStatus.PREPARING)
        ))

        assert updated.delivery_status is DeliveryStatus.PREPARING
        assert updated.delivery_stage is DeliveryStage.MANUFACTURING

    async def test_window_round_trip(self, wf, seller, order):
        delivery = ok(await wf.ledger.create_delivery(
            seller,
            order.id,
            DeliveryStatus.SHIPPING,
            DeliveryStage.SHIPPING,
            expected_delivery_date=DAY,
            start_time=DAY - timedelta(days=2),
        ))

        updated = ok(await wf.ledger.update_delivery(
            seller, order.id, delivery.id, DeliveryPatch(end_time=DAY, start_time=None)
        ))

        assert updated.expected_delivery_date == DAY
        assert updated.start_time is None
        assert updated.end_time == DAY

    async def test_stage_cannot_be_cleared(self, wf, seller, order):
        delivery = ok(await wf.ledger.create_delivery(
            seller, order.id, DeliveryStatus.PREPARING, DeliveryStage.PREPARATION
        ))

        e = err(await wf.ledger.update_delivery(
            seller, order.id, delivery.id, DeliveryPatch(delivery_stage=None)
        ))
        assert e.kind is ErrorKind.INVALID_ARGUMENT

    async def test_delete_twice(self, wf, seller, order):
        delivery = ok(await wf.ledger.create_delivery(
            seller, order.id, DeliveryStatus.PREPARING, DeliveryStage.PREPARATION
        ))
        ok(await wf.ledger.delete_delivery(seller, order.id, delivery.id))

        e = err(await wf.ledger.delete_delivery(seller, order.id, delivery.id))
        assert e.kind is ErrorKind.NOT_FOUND

    async def test_stale_version(self, wf, seller, order):
        delivery = ok(await wf.ledger.create_delivery(
            seller, order.id, DeliveryStatus.PREPARING, DeliveryStage.PREPARATION
        ))
        ok(await wf.ledger.update_delivery(
            seller, order.id, delivery.id, DeliveryPatch(delivery_stage=DeliveryStage.SHIPPING),
            expected_version=delivery.version,
        ))

        e = err(await wf.ledger.update_delivery(
            seller, order.id, delivery.id, DeliveryPatch(delivery_stage=DeliveryStage.COMPLETED),
            expected_version=delivery.version,
        ))
        assert e.kind is ErrorKind.CONFLICT


class TestListDeliveries:
    @pytest.fixture
    async def deliveries(self, wf, seller, order):
        plan = [
            (DeliveryStatus.PREPARING, DeliveryStage.PREPARATION, 3),
            (DeliveryStatus.SHIPPING, DeliveryStage.SHIPPING, 1),
            (DeliveryStatus.DELIVERED, DeliveryStage.COMPLETED, 2),
        ]
        return [
            ok(await wf.ledger.create_delivery(
                seller, order.id, status, stage, expected_delivery_date=DAY + timedelta(days=offset)
            ))
            for status, stage, offset in plan
        ]

    async def test_filter_by_status(self, wf, member, order, deliveries):
        page = ok(await wf.ledger.list_deliveries(
            member, order.id, DeliveryFilter(delivery_status=DeliveryStatus.SHIPPING)
        ))
        assert [d.id for d in page.data] == [deliveries[1].id]

    async def test_filter_by_stage(self, wf, member, order, deliveries):
        page = ok(await wf.ledger.list_deliveries(
            member, order.id, DeliveryFilter(delivery_stage=DeliveryStage.COMPLETED)
        ))
        assert [d.id for d in page.data] == [deliveries[2].id]

    async def test_sort_by_expected_date(self, wf, member, order, deliveries):
        asc = ok(await wf.ledger.list_deliveries(
            member,
            order.id,
            sort=DeliverySort(DeliverySortField.EXPECTED_DELIVERY_DATE, SortDirection.ASC),
        ))
        desc = ok(await wf.ledger.list_deliveries(
            member,
            order.id,
            sort=DeliverySort(DeliverySortField.EXPECTED_DELIVERY_DATE, SortDirection.DESC),
        ))

        expected = [deliveries[1].id, deliveries[2].id, deliveries[0].id]
        assert [d.id for d in asc.data] == expected
        assert [d.id for d in desc.data] == expected[::-1]

    async def test_limit_caps_matching_rows(self, wf, seller, member, order):
        for offset in range(3):
            ok(await wf.ledger.create_delivery(
                seller,
                order.id,
                DeliveryStatus.SHIPPING,
                DeliveryStage.SHIPPING,
                expected_delivery_date=DAY + timedelta(days=offset),
            ))

        page = ok(await wf.ledger.list_deliveries(
            member,
            order.id,
            DeliveryFilter(delivery_status=DeliveryStatus.SHIPPING),
            PageRequest(page=1, limit=2),
        ))

        assert len(page.data) == 2
        assert page.pagination.records == 3
        assert page.pagination.pages == 2
