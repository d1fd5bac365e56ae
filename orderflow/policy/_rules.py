"""
Authorization rules — role and relationship based.

One check per operation replaces a handler copy per role:

    owners = ResourceOwners(ResourceKind.ORDER, member_id=order.member_id, seller_ids=sellers)
    authorize(actor, Action.READ, owners)   # raises Forbidden
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from orderflow._types import EntityId
from orderflow.errors import Forbidden
from orderflow.identity import Actor, Role


class Action(StrEnum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ResourceKind(StrEnum):
    CART = "cart"
    ORDER = "order"
    ORDER_ITEM = "order_item"
    LEDGER = "ledger"  # payments and deliveries


# The owning shopper writes these; everything else they only read.
_SHOPPER_WRITABLE = frozenset({ResourceKind.CART, ResourceKind.ORDER})


@dataclass(frozen=True, slots=True)
class ResourceOwners:
    """
    Who a resource instance is reachable from.

    guest_id / member_id: owning shopper (cart owner or order placer).
    seller_ids: sellers-of-record linked through referenced sale snapshots.
    """

    kind: ResourceKind
    guest_id: EntityId | None = None
    member_id: EntityId | None = None
    seller_ids: frozenset[EntityId] = field(default_factory=frozenset[EntityId])


def allow(actor: Actor, action: Action, owners: ResourceOwners) -> bool:
    match actor.role:
        case Role.ADMIN:
            return True
        case Role.SELLER:
            if actor.actor_id not in owners.seller_ids:
                return False
            # Carts belong to the shopper; a seller-of-record only looks.
            return owners.kind is not ResourceKind.CART or action is Action.READ
        case Role.MEMBER:
            if owners.member_id != actor.actor_id:
                return False
            return owners.kind in _SHOPPER_WRITABLE or action is Action.READ
        case Role.GUEST:
            return owners.kind is ResourceKind.CART and owners.guest_id == actor.actor_id
    return False


def authorize(actor: Actor, action: Action, owners: ResourceOwners) -> None:
    if not allow(actor, action, owners):
        raise Forbidden(f"{actor.role}:{actor.actor_id} may not {action} this {owners.kind}")


__all__ = ("Action", "ResourceKind", "ResourceOwners", "allow", "authorize")
