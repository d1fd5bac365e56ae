"""
Sub-ledger types — payments and deliveries attached to one order.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from orderflow._types import EntityId, Money
from orderflow.order import PaymentStatus

PAYMENT_TRANSITIONS: Mapping[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PENDING, PaymentStatus.CONFIRMED, PaymentStatus.CANCELLED}),
    PaymentStatus.CONFIRMED: frozenset({PaymentStatus.CONFIRMED, PaymentStatus.CANCELLED}),
    PaymentStatus.CANCELLED: frozenset({PaymentStatus.CANCELLED}),
}


class DeliveryStatus(StrEnum):
    PREPARING = "preparing"
    SHIPPING = "shipping"
    DELIVERED = "delivered"


class DeliveryStage(StrEnum):
    """Independent of `DeliveryStatus`; no pairing is enforced."""

    PREPARATION = "preparation"
    MANUFACTURING = "manufacturing"
    SHIPPING = "shipping"
    COMPLETED = "completed"


class DeliverySortField(StrEnum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    EXPECTED_DELIVERY_DATE = "expected_delivery_date"
    START_TIME = "start_time"
    END_TIME = "end_time"
    DELIVERY_STATUS = "delivery_status"
    DELIVERY_STAGE = "delivery_stage"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


# ═══════════════════════════════════════════════════════════════════════════════
# Records
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Payment:
    id: EntityId
    order_id: EntityId
    payment_method: str
    payment_status: PaymentStatus
    payment_amount: Money
    transaction_id: str | None
    cancelled_at: datetime | None
    version: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class Delivery:
    id: EntityId
    order_id: EntityId
    delivery_status: DeliveryStatus
    delivery_stage: DeliveryStage
    expected_delivery_date: datetime | None
    start_time: datetime | None
    end_time: datetime | None
    version: int
    created_at: datetime
    updated_at: datetime


# ═══════════════════════════════════════════════════════════════════════════════
# Patches: an explicit None clears a nullable field
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    payment_method: str | None = None
    payment_status: PaymentStatus | None = None
    payment_amount: int | None = None
    transaction_id: str | None = None
    cancelled_at: datetime | None = None


class DeliveryPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    delivery_status: DeliveryStatus | None = None
    delivery_stage: DeliveryStage | None = None
    expected_delivery_date: datetime | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Filters & Sorting
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PaymentFilter:
    payment_status: PaymentStatus | None = None
    payment_method: str | None = None


@dataclass(frozen=True, slots=True)
class DeliveryFilter:
    delivery_status: DeliveryStatus | None = None
    delivery_stage: DeliveryStage | None = None


@dataclass(frozen=True, slots=True)
class DeliverySort:
    field: DeliverySortField = DeliverySortField.CREATED_AT
    direction: SortDirection = SortDirection.DESC


__all__ = (
    "PAYMENT_TRANSITIONS",
    "DeliveryStatus",
    "DeliveryStage",
    "DeliverySortField",
    "SortDirection",
    "Payment",
    "Delivery",
    "PaymentPatch",
    "DeliveryPatch",
    "PaymentFilter",
    "DeliveryFilter",
    "DeliverySort",
)
