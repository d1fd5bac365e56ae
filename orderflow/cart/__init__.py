"""
Cart engine.

    from orderflow import cart as CT

    cart = (await workflow.carts.create_cart(member, CT.CartOwner(member_id=member.actor_id))).value
    item = (await workflow.carts.add_item(member, cart.id, snapshot.id, 2, 9900)).value
    await workflow.carts.update_item(member, cart.id, item.id, CT.CartItemPatch(quantity=5))

State machine: active -> ordered | abandoned. Terminal carts reject item and
option mutations with `InvalidState`.
"""

from orderflow.cart._types import (
    CartStatus,
    CartItemStatus,
    CartOwner,
    Cart,
    CartItem,
    CartItemOption,
    CartItemPatch,
    CartItemOptionPatch,
    CartItemFilter,
    CartItemOptionFilter,
)
from orderflow.cart._engine import (
    CartEngine,
    load_cart,
    live_items,
    cart_owners,
    to_cart,
    to_cart_item,
    to_cart_item_option,
)

__all__ = (
    "CartStatus",
    "CartItemStatus",
    "CartOwner",
    "Cart",
    "CartItem",
    "CartItemOption",
    "CartItemPatch",
    "CartItemOptionPatch",
    "CartItemFilter",
    "CartItemOptionFilter",
    "CartEngine",
    "load_cart",
    "live_items",
    "cart_owners",
    "to_cart",
    "to_cart_item",
    "to_cart_item_option",
)
