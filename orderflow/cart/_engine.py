"""
Cart engine — cart, cart item and option lifecycle.

Every mutation runs the same gate, in order:

    arguments   -> InvalidArgument
    load        -> NotFound
    authorize   -> Forbidden
    state       -> InvalidState   (cart active, item pending)
    catalog     -> NotFound       (snapshot / option resolution)
"""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow._types import Entity, EntityId, Money, Result
from orderflow._unit import UnitOfWork, check_version, discard
from orderflow.cart._types import (
    Cart,
    CartItem,
    CartItemFilter,
    CartItemOption,
    CartItemOptionFilter,
    CartItemOptionPatch,
    CartItemPatch,
    CartItemStatus,
    CartOwner,
    CartStatus,
)
from orderflow.catalog import (
    lookup_option,
    lookup_snapshot,
    sale_of_snapshot,
    sellers_of_snapshots,
)
from orderflow.db import CartItemOptionRow, CartItemRow, CartRow
from orderflow.errors import InvalidArgument, InvalidState, NotFound, WorkflowError
from orderflow.identity import Actor, Role, lookup_actor
from orderflow.pagination import Page, PageRequest, paginate
from orderflow.policy import Action, ResourceKind, ResourceOwners, authorize

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Row -> Record
# ═══════════════════════════════════════════════════════════════════════════════


def to_cart(row: CartRow) -> Cart:
    return Cart(
        id=row.id,
        guest_owner_id=row.guest_owner_id,
        member_owner_id=row.member_owner_id,
        status=CartStatus(row.status),
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_cart_item(row: CartItemRow) -> CartItem:
    return CartItem(
        id=row.id,
        cart_id=row.cart_id,
        snapshot_id=row.snapshot_id,
        quantity=row.quantity,
        unit_price=row.unit_price,
        status=CartItemStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        deleted_at=row.deleted_at,
    )


def to_cart_item_option(row: CartItemOptionRow) -> CartItemOption:
    return CartItemOption(
        id=row.id,
        cart_item_id=row.cart_item_id,
        option_group_id=row.option_group_id,
        option_id=row.option_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        deleted_at=row.deleted_at,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Loading & Guards
# ═══════════════════════════════════════════════════════════════════════════════


async def load_cart(session: AsyncSession, cart_id: EntityId) -> CartRow:
    row = await session.get(CartRow, cart_id)
    if row is None:
        raise NotFound("Cart", cart_id)
    return row


async def live_items(session: AsyncSession, cart_id: EntityId) -> list[CartItemRow]:
    rows = await session.execute(
        select(CartItemRow)
        .where(CartItemRow.cart_id == cart_id, CartItemRow.deleted_at.is_(None))
        .order_by(CartItemRow.created_at, CartItemRow.id)
    )
    return list(rows.scalars().all())


async def cart_owners(session: AsyncSession, cart: CartRow) -> ResourceOwners:
    items = await live_items(session, cart.id)
    return ResourceOwners(
        ResourceKind.CART,
        guest_id=cart.guest_owner_id,
        member_id=cart.member_owner_id,
        seller_ids=await sellers_of_snapshots(session, (i.snapshot_id for i in items)),
    )


async def _load_item(session: AsyncSession, item_id: EntityId) -> CartItemRow:
    item = await session.get(CartItemRow, item_id)
    if item is None or item.deleted_at is not None:
        raise NotFound("CartItem", item_id)
    return item


async def _load_option(session: AsyncSession, option_id: EntityId) -> CartItemOptionRow:
    row = await session.get(CartItemOptionRow, option_id)
    if row is None or row.deleted_at is not None:
        raise NotFound("CartItemOption", option_id)
    return row


def _require_active(cart: CartRow) -> None:
    if cart.status != CartStatus.ACTIVE:
        raise InvalidState(f"Cart {cart.id} is {cart.status}, not active")


def _require_pending(item: CartItemRow) -> None:
    if item.status != CartItemStatus.PENDING:
        raise InvalidState(f"CartItem {item.id} is {item.status}, not pending")


def _check_quantity(quantity: int | None) -> None:
    if quantity is None or quantity < 1:
        raise InvalidArgument(f"quantity must be >= 1, got {quantity}")


def _check_unit_price(unit_price: Money | None) -> None:
    if unit_price is None or unit_price < 0:
        raise InvalidArgument(f"unit_price must be >= 0, got {unit_price}")


def _check_item_status(status: CartItemStatus | None) -> None:
    if status is None or status is CartItemStatus.REMOVED:
        raise InvalidArgument("item status may not be set to removed or cleared; use remove_item")


async def _check_option_fits_item(
    session: AsyncSession,
    item: CartItemRow,
    option_group_id: EntityId,
    option_id: EntityId,
) -> None:
    ref = await lookup_option(session, option_group_id, option_id)
    if ref.sale_id != await sale_of_snapshot(session, item.snapshot_id):
        raise InvalidArgument(
            f"OptionGroup {option_group_id} does not belong to the sale of item {item.id}"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Engine
# ═══════════════════════════════════════════════════════════════════════════════


class CartEngine:
    """
    Cart operations. Each call is one unit of work returning a `Result`.

        match await carts.add_item(member, cart.id, snapshot_id, quantity=2, unit_price=9900):
            case Ok(item):
                ...
            case Error(e):
                ...
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._uow = UnitOfWork(session_factory)

    # ─────────────────────────────────────────────────────────────────────────
    # Carts
    # ─────────────────────────────────────────────────────────────────────────

    async def create_cart(self, actor: Actor, owner: CartOwner) -> Result[Cart, WorkflowError]:
        async def work(session: AsyncSession) -> Cart:
            if (owner.guest_id is None) == (owner.member_id is None):
                raise InvalidArgument("exactly one of guest_id / member_id must be supplied")

            if owner.guest_id is not None:
                await lookup_actor(session, owner.guest_id, Role.GUEST)
            else:
                await lookup_actor(session, owner.member_id, Role.MEMBER)  # type: ignore[arg-type]

            authorize(
                actor,
                Action.CREATE,
                ResourceOwners(ResourceKind.CART, guest_id=owner.guest_id, member_id=owner.member_id),
            )

            row = CartRow(
                guest_owner_id=owner.guest_id,
                member_owner_id=owner.member_id,
                status=CartStatus.ACTIVE,
            )
            session.add(row)
            await session.flush()
            logger.info("cart.created", cart_id=row.id, actor_id=actor.actor_id)
            return to_cart(row)

        return await self._uow.run(work)

    async def get_cart(self, actor: Actor, cart_id: EntityId) -> Result[Cart, WorkflowError]:
        async def work(session: AsyncSession) -> Cart:
            cart = await load_cart(session, cart_id)
            authorize(actor, Action.READ, await cart_owners(session, cart))
            return to_cart(cart)

        return await self._uow.run(work)

    async def abandon_cart(
        self,
        actor: Actor,
        cart_id: EntityId,
        expected_version: int | None = None,
    ) -> Result[Cart, WorkflowError]:
        async def work(session: AsyncSession) -> Cart:
            cart = await load_cart(session, cart_id)
            authorize(actor, Action.UPDATE, await cart_owners(session, cart))
            check_version(Entity.CART, cart.version, expected_version)
            _require_active(cart)

            cart.status = CartStatus.ABANDONED
            await session.flush()
            logger.info("cart.abandoned", cart_id=cart.id, actor_id=actor.actor_id)
            return to_cart(cart)

        return await self._uow.run(work)

    # ─────────────────────────────────────────────────────────────────────────
    # Items
    # ─────────────────────────────────────────────────────────────────────────

    async def add_item(
        self,
        actor: Actor,
        cart_id: EntityId,
        snapshot_ref: EntityId,
        quantity: int,
        unit_price: Money,
        status: CartItemStatus = CartItemStatus.PENDING,
    ) -> Result[CartItem, WorkflowError]:
        """`snapshot_ref` is a snapshot id, or a sale id resolved to its latest snapshot."""

        async def work(session: AsyncSession) -> CartItem:
            _check_quantity(quantity)
            _check_unit_price(unit_price)
            _check_item_status(status)

            cart = await load_cart(session, cart_id)
            authorize(actor, Action.UPDATE, await cart_owners(session, cart))
            _require_active(cart)
            snapshot = await lookup_snapshot(session, snapshot_ref)

            row = CartItemRow(
                cart_id=cart.id,
                snapshot_id=snapshot.snapshot_id,
                quantity=quantity,
                unit_price=unit_price,
                status=status,
                deleted_at=None,
            )
            session.add(row)
            await session.flush()
            logger.info(
                "cart.item_added",
                cart_id=cart.id,
                item_id=row.id,
                snapshot_id=snapshot.snapshot_id,
                quantity=quantity,
            )
            return to_cart_item(row)

        return await self._uow.run(work)

    async def update_item(
        self,
        actor: Actor,
        cart_id: EntityId,
        item_id: EntityId,
        patch: CartItemPatch,
    ) -> Result[CartItem, WorkflowError]:
        async def work(session: AsyncSession) -> CartItem:
            changes = patch.model_dump(exclude_unset=True)
            if "quantity" in changes:
                _check_quantity(changes["quantity"])
            if "unit_price" in changes:
                _check_unit_price(changes["unit_price"])
            if "status" in changes:
                _check_item_status(changes["status"])

            cart = await load_cart(session, cart_id)
            authorize(actor, Action.UPDATE, await cart_owners(session, cart))
            _require_active(cart)
            item = await _load_item(session, item_id)
            if item.cart_id != cart.id:
                raise NotFound("CartItem", item_id)
            _require_pending(item)

            for field, value in changes.items():
                setattr(item, field, value)
            await session.flush()
            logger.info("cart.item_updated", cart_id=cart.id, item_id=item.id, fields=sorted(changes))
            return to_cart_item(item)

        return await self._uow.run(work)

    async def remove_item(
        self, actor: Actor, cart_id: EntityId, item_id: EntityId
    ) -> Result[CartItem, WorkflowError]:
        """Soft delete; the item's live options go with it. A second call is `NotFound`."""

        async def work(session: AsyncSession) -> CartItem:
            cart = await load_cart(session, cart_id)
            authorize(actor, Action.DELETE, await cart_owners(session, cart))
            _require_active(cart)
            item = await _load_item(session, item_id)
            if item.cart_id != cart.id:
                raise NotFound("CartItem", item_id)
            _require_pending(item)

            options = await session.execute(
                select(CartItemOptionRow).where(
                    CartItemOptionRow.cart_item_id == item.id,
                    CartItemOptionRow.deleted_at.is_(None),
                )
            )
            for option in options.scalars().all():
                await discard(session, Entity.CART_ITEM_OPTION, option)

            await discard(session, Entity.CART_ITEM, item)
            item.status = CartItemStatus.REMOVED
            await session.flush()
            logger.info("cart.item_removed", cart_id=cart.id, item_id=item.id)
            return to_cart_item(item)

        return await self._uow.run(work)

    async def list_items(
        self,
        actor: Actor,
        cart_id: EntityId,
        filter: CartItemFilter = CartItemFilter(),
        page: PageRequest = PageRequest(),
    ) -> Result[Page[CartItem], WorkflowError]:
        async def work(session: AsyncSession) -> Page[CartItem]:
            page.validate()
            cart = await load_cart(session, cart_id)
            authorize(actor, Action.READ, await cart_owners(session, cart))

            stmt = select(CartItemRow).where(CartItemRow.cart_id == cart.id)
            if not filter.include_deleted:
                stmt = stmt.where(CartItemRow.deleted_at.is_(None))
            if filter.status is not None:
                stmt = stmt.where(CartItemRow.status == filter.status)
            stmt = stmt.order_by(CartItemRow.created_at, CartItemRow.id)

            return await paginate(session, stmt, page, to_cart_item)

        return await self._uow.run(work)

    # ─────────────────────────────────────────────────────────────────────────
    # Item options
    # ─────────────────────────────────────────────────────────────────────────

    async def _item_in_mutable_cart(
        self, session: AsyncSession, actor: Actor, item_id: EntityId, action: Action
    ) -> CartItemRow:
        item = await _load_item(session, item_id)
        cart = await load_cart(session, item.cart_id)
        authorize(actor, action, await cart_owners(session, cart))
        _require_active(cart)
        _require_pending(item)
        return item

    async def attach_option(
        self,
        actor: Actor,
        item_id: EntityId,
        option_group_id: EntityId,
        option_id: EntityId,
    ) -> Result[CartItemOption, WorkflowError]:
        async def work(session: AsyncSession) -> CartItemOption:
            item = await self._item_in_mutable_cart(session, actor, item_id, Action.UPDATE)
            await _check_option_fits_item(session, item, option_group_id, option_id)

            row = CartItemOptionRow(
                cart_item_id=item.id,
                option_group_id=option_group_id,
                option_id=option_id,
                deleted_at=None,
            )
            session.add(row)
            await session.flush()
            logger.info("cart.option_attached", item_id=item.id, option_id=option_id)
            return to_cart_item_option(row)

        return await self._uow.run(work)

    async def update_option(
        self,
        actor: Actor,
        item_option_id: EntityId,
        patch: CartItemOptionPatch,
    ) -> Result[CartItemOption, WorkflowError]:
        async def work(session: AsyncSession) -> CartItemOption:
            changes = patch.model_dump(exclude_unset=True)
            if any(value is None for value in changes.values()):
                raise InvalidArgument("option references may not be cleared")

            row = await _load_option(session, item_option_id)
            item = await self._item_in_mutable_cart(session, actor, row.cart_item_id, Action.UPDATE)

            group_id = changes.get("option_group_id", row.option_group_id)
            option_id = changes.get("option_id", row.option_id)
            await _check_option_fits_item(session, item, group_id, option_id)

            row.option_group_id = group_id
            row.option_id = option_id
            await session.flush()
            return to_cart_item_option(row)

        return await self._uow.run(work)

    async def remove_option(
        self, actor: Actor, item_option_id: EntityId
    ) -> Result[CartItemOption, WorkflowError]:
        async def work(session: AsyncSession) -> CartItemOption:
            row = await _load_option(session, item_option_id)
            await self._item_in_mutable_cart(session, actor, row.cart_item_id, Action.DELETE)

            await discard(session, Entity.CART_ITEM_OPTION, row)
            await session.flush()
            logger.info("cart.option_removed", item_option_id=row.id)
            return to_cart_item_option(row)

        return await self._uow.run(work)

    async def list_item_options(
        self,
        actor: Actor,
        item_id: EntityId,
        filter: CartItemOptionFilter = CartItemOptionFilter(),
        page: PageRequest = PageRequest(),
    ) -> Result[Page[CartItemOption], WorkflowError]:
        async def work(session: AsyncSession) -> Page[CartItemOption]:
            page.validate()
            item = await _load_item(session, item_id)
            cart = await load_cart(session, item.cart_id)
            authorize(actor, Action.READ, await cart_owners(session, cart))

            stmt = select(CartItemOptionRow).where(CartItemOptionRow.cart_item_id == item.id)
            if not filter.include_deleted:
                stmt = stmt.where(CartItemOptionRow.deleted_at.is_(None))
            if filter.option_group_id is not None:
                stmt = stmt.where(CartItemOptionRow.option_group_id == filter.option_group_id)
            stmt = stmt.order_by(CartItemOptionRow.created_at, CartItemOptionRow.id)

            return await paginate(session, stmt, page, to_cart_item_option)

        return await self._uow.run(work)


__all__ = (
    "CartEngine",
    "load_cart",
    "live_items",
    "cart_owners",
    "to_cart",
    "to_cart_item",
    "to_cart_item_option",
)
