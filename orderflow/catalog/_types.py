"""
Catalog reference types.

Read-only views of the catalog rows the workflow engines depend on.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from orderflow._types import EntityId, Money


class SaleStatus(StrEnum):
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"


class OptionStatus(StrEnum):
    ACTIVE = "active"
    RETIRED = "retired"


# ═══════════════════════════════════════════════════════════════════════════════
# References (resolver output)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SnapshotRef:
    """A frozen sale snapshot plus the sale fields needed for authorization."""

    snapshot_id: EntityId
    sale_id: EntityId
    seller_id: EntityId
    channel_id: EntityId
    title: str
    price: Money


@dataclass(frozen=True, slots=True)
class OptionRef:
    option_group_id: EntityId
    option_id: EntityId
    sale_id: EntityId
    group_name: str
    name: str


@dataclass(frozen=True, slots=True)
class Placement:
    channel_id: EntityId
    section_id: EntityId | None


# ═══════════════════════════════════════════════════════════════════════════════
# Records (registry output)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Channel:
    id: EntityId
    code: str
    name: str


@dataclass(frozen=True, slots=True)
class Section:
    id: EntityId
    channel_id: EntityId
    code: str
    name: str


@dataclass(frozen=True, slots=True)
class Sale:
    id: EntityId
    seller_id: EntityId
    channel_id: EntityId
    section_id: EntityId | None
    title: str
    status: SaleStatus


@dataclass(frozen=True, slots=True)
class SaleSnapshot:
    id: EntityId
    sale_id: EntityId
    title: str
    description: str | None
    price: Money
    created_at: datetime


@dataclass(frozen=True, slots=True)
class OptionGroup:
    id: EntityId
    sale_id: EntityId
    name: str
    status: OptionStatus


@dataclass(frozen=True, slots=True)
class Option:
    id: EntityId
    option_group_id: EntityId
    name: str
    status: OptionStatus


__all__ = (
    "SaleStatus",
    "OptionStatus",
    "SnapshotRef",
    "OptionRef",
    "Placement",
    "Channel",
    "Section",
    "Sale",
    "SaleSnapshot",
    "OptionGroup",
    "Option",
)
