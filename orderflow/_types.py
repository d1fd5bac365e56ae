"""
Core types for orderflow.

Re-exports from kungfu + shared aliases, identifiers and the deletion table.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from enum import StrEnum

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Identifiers
# ═══════════════════════════════════════════════════════════════════════════════

type EntityId = str
"""Lowercase, hyphenated UUID4 string."""

type Money = int
"""Amount in minor currency units."""


def new_id() -> EntityId:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


# ═══════════════════════════════════════════════════════════════════════════════
# Deletion Policy
# ═══════════════════════════════════════════════════════════════════════════════


class Entity(StrEnum):
    CART = "cart"
    CART_ITEM = "cart_item"
    CART_ITEM_OPTION = "cart_item_option"
    ORDER = "order"
    ORDER_ITEM = "order_item"
    ORDER_STATUS_HISTORY = "order_status_history"
    PAYMENT = "payment"
    DELIVERY = "delivery"


class Deletion(StrEnum):
    """
    How an entity leaves the live data set.

    SOFT: row kept, `deleted_at` stamped, hidden from reads.
    HARD: row removed.
    NEVER: business record, only status-transitioned.
    """

    SOFT = "soft"
    HARD = "hard"
    NEVER = "never"


DELETION_POLICY: Mapping[Entity, Deletion] = {
    Entity.CART: Deletion.NEVER,
    Entity.CART_ITEM: Deletion.SOFT,
    Entity.CART_ITEM_OPTION: Deletion.SOFT,
    Entity.ORDER: Deletion.NEVER,
    Entity.ORDER_ITEM: Deletion.NEVER,
    Entity.ORDER_STATUS_HISTORY: Deletion.NEVER,
    Entity.PAYMENT: Deletion.HARD,
    Entity.DELIVERY: Deletion.HARD,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Aliases
    "EntityId",
    "Money",
    "new_id",
    "utcnow",
    # Deletion
    "Entity",
    "Deletion",
    "DELETION_POLICY",
)
