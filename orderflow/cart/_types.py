"""
Cart types — records, patches and filters.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from orderflow._types import EntityId, Money


class CartStatus(StrEnum):
    ACTIVE = "active"
    ORDERED = "ordered"
    ABANDONED = "abandoned"


class CartItemStatus(StrEnum):
    PENDING = "pending"
    ORDERED = "ordered"
    REMOVED = "removed"


# ═══════════════════════════════════════════════════════════════════════════════
# Records
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartOwner:
    """Exactly one of the two must be set."""

    guest_id: EntityId | None = None
    member_id: EntityId | None = None


@dataclass(frozen=True, slots=True)
class Cart:
    id: EntityId
    guest_owner_id: EntityId | None
    member_owner_id: EntityId | None
    status: CartStatus
    version: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class CartItem:
    id: EntityId
    cart_id: EntityId
    snapshot_id: EntityId
    quantity: int
    unit_price: Money
    status: CartItemStatus
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None


@dataclass(frozen=True, slots=True)
class CartItemOption:
    id: EntityId
    cart_item_id: EntityId
    option_group_id: EntityId
    option_id: EntityId
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None


# ═══════════════════════════════════════════════════════════════════════════════
# Patches: only fields explicitly set are applied
# ═══════════════════════════════════════════════════════════════════════════════


class CartItemPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    quantity: int | None = None
    unit_price: int | None = None
    status: CartItemStatus | None = None


class CartItemOptionPatch(BaseModel):
    """Both ids are re-resolved together against the catalog."""

    model_config = ConfigDict(extra="forbid")

    option_group_id: str | None = None
    option_id: str | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Filters
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartItemFilter:
    status: CartItemStatus | None = None
    include_deleted: bool = False


@dataclass(frozen=True, slots=True)
class CartItemOptionFilter:
    option_group_id: EntityId | None = None
    include_deleted: bool = False


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
)
