"""
Payment & delivery sub-ledger.

    from orderflow import ledger as L

    payment = (await workflow.ledger.create_payment(seller, order.id, "card", 10000)).value
    await workflow.ledger.update_payment(seller, order.id, payment.id, L.PaymentPatch(payment_status="confirmed"))

Payments: pending -> confirmed -> cancelled, pending -> cancelled; nothing
leaves cancelled. Deliveries carry status and stage as independent tags.
Both are hard-deleted.
"""

from orderflow.ledger._types import (
    PAYMENT_TRANSITIONS,
    DeliveryStatus,
    DeliveryStage,
    DeliverySortField,
    SortDirection,
    Payment,
    Delivery,
    PaymentPatch,
    DeliveryPatch,
    PaymentFilter,
    DeliveryFilter,
    DeliverySort,
)
from orderflow.ledger._subledger import SubLedger, to_payment, to_delivery

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
    "SubLedger",
    "to_payment",
    "to_delivery",
)
