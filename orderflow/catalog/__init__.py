"""
Catalog reference resolver.

Channels, sections, sales, snapshots and option taxonomies are owned by the
catalog; the workflow engines only consume them through these lookups.

    from orderflow import catalog as C

    match await workflow.catalog.resolver.resolve_sale_snapshot(sale_id):
        case Ok(ref):
            print(ref.seller_id, ref.price)
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow.catalog._types import (
    SaleStatus,
    OptionStatus,
    SnapshotRef,
    OptionRef,
    Placement,
    Channel,
    Section,
    Sale,
    SaleSnapshot,
    OptionGroup,
    Option,
)
from orderflow.catalog._resolver import (
    CatalogResolver,
    lookup_snapshot,
    lookup_option,
    lookup_placement,
    sale_of_snapshot,
    sellers_of_snapshots,
)
from orderflow.catalog._registry import CatalogRegistry


@dataclass(frozen=True, slots=True)
class Catalog:
    resolver: CatalogResolver
    registry: CatalogRegistry

    @classmethod
    def open(cls, session_factory: async_sessionmaker[AsyncSession]) -> Catalog:
        return cls(
            resolver=CatalogResolver(session_factory),
            registry=CatalogRegistry(session_factory),
        )


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
    "Catalog",
    "CatalogResolver",
    "CatalogRegistry",
    "lookup_snapshot",
    "lookup_option",
    "lookup_placement",
    "sale_of_snapshot",
    "sellers_of_snapshots",
)
