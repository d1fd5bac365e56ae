"""
Request bodies. Responses are the engines' records, serialized as-is.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from orderflow.cart import CartItemStatus, CartOwner
from orderflow.ledger import DeliveryStage, DeliveryStatus
from orderflow.order import OrderItemStatus, OrderStatus, PaymentStatus


class _Body(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ═══════════════════════════════════════════════════════════════════════════════
# Carts
# ═══════════════════════════════════════════════════════════════════════════════


class CreateCartIn(_Body):
    guest_id: str | None = None
    member_id: str | None = None

    def to_domain(self) -> CartOwner:
        return CartOwner(guest_id=self.guest_id, member_id=self.member_id)


class VersionIn(_Body):
    expected_version: int | None = None


class AddCartItemIn(_Body):
    snapshot_ref: str = Field(description="Snapshot id, or sale id for its latest snapshot")
    quantity: int
    unit_price: int
    status: CartItemStatus = CartItemStatus.PENDING


class AttachOptionIn(_Body):
    option_group_id: str
    option_id: str


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class CreateOrderIn(_Body):
    member_id: str
    channel_id: str
    section_id: str | None = None
    code: str
    total_price: int


class CheckoutIn(_Body):
    cart_id: str
    channel_id: str
    section_id: str | None = None
    code: str
    total_price: int | None = None
    expected_version: int | None = None


class TransitionIn(_Body):
    status: OrderStatus
    expected_version: int | None = None


class PaymentStatusIn(_Body):
    status: PaymentStatus
    expected_version: int | None = None


class AddOrderItemIn(_Body):
    snapshot_ref: str
    quantity: int
    price: int
    status: OrderItemStatus = OrderItemStatus.PENDING


# ═══════════════════════════════════════════════════════════════════════════════
# Sub-ledger
# ═══════════════════════════════════════════════════════════════════════════════


class CreatePaymentIn(_Body):
    payment_method: str
    payment_amount: int
    payment_status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = None


class CreateDeliveryIn(_Body):
    delivery_status: DeliveryStatus
    delivery_stage: DeliveryStage
    expected_delivery_date: datetime | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


__all__ = (
    "CreateCartIn",
    "VersionIn",
    "AddCartItemIn",
    "AttachOptionIn",
    "CreateOrderIn",
    "CheckoutIn",
    "TransitionIn",
    "PaymentStatusIn",
    "AddOrderItemIn",
    "CreatePaymentIn",
    "CreateDeliveryIn",
)
