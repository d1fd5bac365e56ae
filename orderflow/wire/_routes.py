"""
Route binding — one handler per engine operation.

Handlers unwrap the engine's `Result`; errors propagate to the handler
installed by `install_error_handlers`.
"""

from fastapi import FastAPI, Response

from orderflow.cart import (
    Cart,
    CartItem,
    CartItemFilter,
    CartItemOption,
    CartItemOptionFilter,
    CartItemOptionPatch,
    CartItemPatch,
    CartItemStatus,
)
from orderflow.ledger import (
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
from orderflow.order import (
    Order,
    OrderFilter,
    OrderItem,
    OrderItemPatch,
    OrderStatus,
    PaymentStatus,
    Reconciliation,
    StatusChange,
)
from orderflow.pagination import Page
from orderflow.wire._deps import ActorDep, PageDep, WorkflowDep
from orderflow.wire._errors import unwrap
from orderflow.wire._schemas import (
    AddCartItemIn,
    AddOrderItemIn,
    AttachOptionIn,
    CheckoutIn,
    CreateCartIn,
    CreateDeliveryIn,
    CreateOrderIn,
    CreatePaymentIn,
    PaymentStatusIn,
    TransitionIn,
    VersionIn,
)

_RECORD = {"response_model": None}
_CREATED = {"response_model": None, "status_code": 201}


def _no_content() -> Response:
    return Response(status_code=204)


# ═══════════════════════════════════════════════════════════════════════════════
# Carts
# ═══════════════════════════════════════════════════════════════════════════════


def mount_carts(app: FastAPI) -> None:
    @app.post("/carts", **_CREATED)
    async def create_cart(body: CreateCartIn, wf: WorkflowDep, actor: ActorDep) -> Cart:
        return unwrap(await wf.carts.create_cart(actor, body.to_domain()))

    @app.get("/carts/{cart_id}", **_RECORD)
    async def get_cart(cart_id: str, wf: WorkflowDep, actor: ActorDep) -> Cart:
        return unwrap(await wf.carts.get_cart(actor, cart_id))

    @app.post("/carts/{cart_id}/abandon", **_RECORD)
    async def abandon_cart(
        cart_id: str, body: VersionIn, wf: WorkflowDep, actor: ActorDep
    ) -> Cart:
        return unwrap(await wf.carts.abandon_cart(actor, cart_id, body.expected_version))

    @app.post("/carts/{cart_id}/items", **_CREATED)
    async def add_cart_item(
        cart_id: str, body: AddCartItemIn, wf: WorkflowDep, actor: ActorDep
    ) -> CartItem:
        return unwrap(await wf.carts.add_item(
            actor, cart_id, body.snapshot_ref, body.quantity, body.unit_price, body.status
        ))

    @app.get("/carts/{cart_id}/items", **_RECORD)
    async def list_cart_items(
        cart_id: str,
        wf: WorkflowDep,
        actor: ActorDep,
        page: PageDep,
        status: CartItemStatus | None = None,
        include_deleted: bool = False,
    ) -> Page[CartItem]:
        filter = CartItemFilter(status=status, include_deleted=include_deleted)
        return unwrap(await wf.carts.list_items(actor, cart_id, filter, page))

    @app.patch("/carts/{cart_id}/items/{item_id}", **_RECORD)
    async def update_cart_item(
        cart_id: str, item_id: str, patch: CartItemPatch, wf: WorkflowDep, actor: ActorDep
    ) -> CartItem:
        return unwrap(await wf.carts.update_item(actor, cart_id, item_id, patch))

    @app.delete("/carts/{cart_id}/items/{item_id}", **_RECORD)
    async def remove_cart_item(
        cart_id: str, item_id: str, wf: WorkflowDep, actor: ActorDep
    ) -> CartItem:
        return unwrap(await wf.carts.remove_item(actor, cart_id, item_id))

    @app.post("/cart-items/{item_id}/options", **_CREATED)
    async def attach_option(
        item_id: str, body: AttachOptionIn, wf: WorkflowDep, actor: ActorDep
    ) -> CartItemOption:
        return unwrap(await wf.carts.attach_option(
            actor, item_id, body.option_group_id, body.option_id
        ))

    @app.get("/cart-items/{item_id}/options", **_RECORD)
    async def list_item_options(
        item_id: str,
        wf: WorkflowDep,
        actor: ActorDep,
        page: PageDep,
        option_group_id: str | None = None,
        include_deleted: bool = False,
    ) -> Page[CartItemOption]:
        filter = CartItemOptionFilter(option_group_id=option_group_id, include_deleted=include_deleted)
        return unwrap(await wf.carts.list_item_options(actor, item_id, filter, page))

    @app.patch("/cart-item-options/{item_option_id}", **_RECORD)
    async def update_option(
        item_option_id: str, patch: CartItemOptionPatch, wf: WorkflowDep, actor: ActorDep
    ) -> CartItemOption:
        return unwrap(await wf.carts.update_option(actor, item_option_id, patch))

    @app.delete("/cart-item-options/{item_option_id}", **_RECORD)
    async def remove_option(
        item_option_id: str, wf: WorkflowDep, actor: ActorDep
    ) -> CartItemOption:
        return unwrap(await wf.carts.remove_option(actor, item_option_id))


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


def mount_orders(app: FastAPI) -> None:
    @app.post("/orders", **_CREATED)
    async def create_order(body: CreateOrderIn, wf: WorkflowDep, actor: ActorDep) -> Order:
        return unwrap(await wf.orders.create_order(
            actor, body.member_id, body.channel_id, body.code, body.total_price, body.section_id
        ))

    @app.post("/orders/checkout", **_CREATED)
    async def checkout(body: CheckoutIn, wf: WorkflowDep, actor: ActorDep) -> Order:
        return unwrap(await wf.orders.checkout(
            actor,
            body.cart_id,
            body.channel_id,
            body.code,
            total_price=body.total_price,
            section_id=body.section_id,
            expected_version=body.expected_version,
        ))

    @app.get("/orders", **_RECORD)
    async def list_orders(
        wf: WorkflowDep,
        actor: ActorDep,
        page: PageDep,
        order_status: OrderStatus | None = None,
        payment_status: PaymentStatus | None = None,
        code: str | None = None,
    ) -> Page[Order]:
        filter = OrderFilter(order_status=order_status, payment_status=payment_status, code=code)
        return unwrap(await wf.orders.list_orders(actor, filter, page))

    @app.get("/orders/{order_id}", **_RECORD)
    async def get_order(order_id: str, wf: WorkflowDep, actor: ActorDep) -> Order:
        return unwrap(await wf.orders.get_order(actor, order_id))

    @app.post("/orders/{order_id}/transitions", **_RECORD)
    async def transition(
        order_id: str, body: TransitionIn, wf: WorkflowDep, actor: ActorDep
    ) -> Order:
        return unwrap(await wf.orders.transition(actor, order_id, body.status, body.expected_version))

    @app.put("/orders/{order_id}/payment-status", **_RECORD)
    async def set_payment_status(
        order_id: str, body: PaymentStatusIn, wf: WorkflowDep, actor: ActorDep
    ) -> Order:
        return unwrap(await wf.orders.set_payment_status(
            actor, order_id, body.status, body.expected_version
        ))

    @app.get("/orders/{order_id}/history", **_RECORD)
    async def list_status_history(
        order_id: str, wf: WorkflowDep, actor: ActorDep, page: PageDep
    ) -> Page[StatusChange]:
        return unwrap(await wf.orders.list_status_history(actor, order_id, page))

    @app.get("/orders/{order_id}/reconciliation", **_RECORD)
    async def reconcile_total(
        order_id: str, wf: WorkflowDep, actor: ActorDep
    ) -> Reconciliation:
        return unwrap(await wf.orders.reconcile_total(actor, order_id))

    @app.post("/orders/{order_id}/items", **_CREATED)
    async def add_order_item(
        order_id: str, body: AddOrderItemIn, wf: WorkflowDep, actor: ActorDep
    ) -> OrderItem:
        return unwrap(await wf.orders.add_item(
            actor, order_id, body.snapshot_ref, body.quantity, body.price, body.status
        ))

    @app.get("/orders/{order_id}/items", **_RECORD)
    async def list_order_items(
        order_id: str, wf: WorkflowDep, actor: ActorDep, page: PageDep
    ) -> Page[OrderItem]:
        return unwrap(await wf.orders.list_items(actor, order_id, page))

    @app.patch("/orders/{order_id}/items/{item_id}", **_RECORD)
    async def update_order_item(
        order_id: str, item_id: str, patch: OrderItemPatch, wf: WorkflowDep, actor: ActorDep
    ) -> OrderItem:
        return unwrap(await wf.orders.update_item(actor, order_id, item_id, patch))


# ═══════════════════════════════════════════════════════════════════════════════
# Sub-ledger
# ═══════════════════════════════════════════════════════════════════════════════


def mount_ledger(app: FastAPI) -> None:
    @app.post("/orders/{order_id}/payments", **_CREATED)
    async def create_payment(
        order_id: str, body: CreatePaymentIn, wf: WorkflowDep, actor: ActorDep
    ) -> Payment:
        return unwrap(await wf.ledger.create_payment(
            actor,
            order_id,
            body.payment_method,
            body.payment_amount,
            body.payment_status,
            body.transaction_id,
        ))

    @app.get("/orders/{order_id}/payments", **_RECORD)
    async def list_payments(
        order_id: str,
        wf: WorkflowDep,
        actor: ActorDep,
        page: PageDep,
        payment_status: PaymentStatus | None = None,
        payment_method: str | None = None,
    ) -> Page[Payment]:
        filter = PaymentFilter(payment_status=payment_status, payment_method=payment_method)
        return unwrap(await wf.ledger.list_payments(actor, order_id, filter, page))

    @app.get("/orders/{order_id}/payments/{payment_id}", **_RECORD)
    async def get_payment(
        order_id: str, payment_id: str, wf: WorkflowDep, actor: ActorDep
    ) -> Payment:
        return unwrap(await wf.ledger.get_payment(actor, order_id, payment_id))

    @app.patch("/orders/{order_id}/payments/{payment_id}", **_RECORD)
    async def update_payment(
        order_id: str,
        payment_id: str,
        patch: PaymentPatch,
        wf: WorkflowDep,
        actor: ActorDep,
        expected_version: int | None = None,
    ) -> Payment:
        return unwrap(await wf.ledger.update_payment(
            actor, order_id, payment_id, patch, expected_version
        ))

    @app.delete("/orders/{order_id}/payments/{payment_id}", **_RECORD)
    async def delete_payment(
        order_id: str, payment_id: str, wf: WorkflowDep, actor: ActorDep
    ) -> Response:
        unwrap(await wf.ledger.delete_payment(actor, order_id, payment_id))
        return _no_content()

    @app.post("/orders/{order_id}/deliveries", **_CREATED)
    async def create_delivery(
        order_id: str, body: CreateDeliveryIn, wf: WorkflowDep, actor: ActorDep
    ) -> Delivery:
        return unwrap(await wf.ledger.create_delivery(
            actor,
            order_id,
            body.delivery_status,
            body.delivery_stage,
            body.expected_delivery_date,
            body.start_time,
            body.end_time,
        ))

    @app.get("/orders/{order_id}/deliveries", **_RECORD)
    async def list_deliveries(
        order_id: str,
        wf: WorkflowDep,
        actor: ActorDep,
        page: PageDep,
        delivery_status: DeliveryStatus | None = None,
        delivery_stage: DeliveryStage | None = None,
        sort: DeliverySortField = DeliverySortField.CREATED_AT,
        direction: SortDirection = SortDirection.DESC,
    ) -> Page[Delivery]:
        filter = DeliveryFilter(delivery_status=delivery_status, delivery_stage=delivery_stage)
        return unwrap(await wf.ledger.list_deliveries(
            actor, order_id, filter, page, DeliverySort(field=sort, direction=direction)
        ))

    @app.get("/orders/{order_id}/deliveries/{delivery_id}", **_RECORD)
    async def get_delivery(
        order_id: str, delivery_id: str, wf: WorkflowDep, actor: ActorDep
    ) -> Delivery:
        return unwrap(await wf.ledger.get_delivery(actor, order_id, delivery_id))

    @app.patch("/orders/{order_id}/deliveries/{delivery_id}", **_RECORD)
    async def update_delivery(
        order_id: str,
        delivery_id: str,
        patch: DeliveryPatch,
        wf: WorkflowDep,
        actor: ActorDep,
        expected_version: int | None = None,
    ) -> Delivery:
        return unwrap(await wf.ledger.update_delivery(
            actor, order_id, delivery_id, patch, expected_version
        ))

    @app.delete("/orders/{order_id}/deliveries/{delivery_id}", **_RECORD)
    async def delete_delivery(
        order_id: str, delivery_id: str, wf: WorkflowDep, actor: ActorDep
    ) -> Response:
        unwrap(await wf.ledger.delete_delivery(actor, order_id, delivery_id))
        return _no_content()


__all__ = ("mount_carts", "mount_orders", "mount_ledger")
