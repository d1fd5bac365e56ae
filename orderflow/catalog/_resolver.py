"""
Catalog resolver — validates references against storage on every call.

Module functions take an open session so the cart and order engines can
resolve references inside their own unit of work. `CatalogResolver` wraps the
same lookups as standalone operations.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow._types import EntityId, Result
from orderflow._unit import UnitOfWork
from orderflow.catalog._types import (
    OptionRef,
    OptionStatus,
    Placement,
    SaleStatus,
    SnapshotRef,
)
from orderflow.db import (
    ChannelRow,
    OptionGroupRow,
    OptionRow,
    SaleRow,
    SaleSnapshotRow,
    SectionRow,
)
from orderflow.errors import NotFound, WorkflowError


# ═══════════════════════════════════════════════════════════════════════════════
# Session-level lookups
# ═══════════════════════════════════════════════════════════════════════════════


async def lookup_snapshot(session: AsyncSession, sale_or_snapshot_id: EntityId) -> SnapshotRef:
    """
    Resolve a snapshot id, or a sale id to its most recent snapshot.

    The owning sale must be active.
    """
    snapshot = await session.get(SaleSnapshotRow, sale_or_snapshot_id)
    if snapshot is None:
        snapshot = (
            await session.execute(
                select(SaleSnapshotRow)
                .where(SaleSnapshotRow.sale_id == sale_or_snapshot_id)
                .order_by(SaleSnapshotRow.created_at.desc())
                .limit(1)
            )
        ).scalar_one_or_none()
    if snapshot is None:
        raise NotFound("SaleSnapshot", sale_or_snapshot_id)

    sale = await session.get(SaleRow, snapshot.sale_id)
    if sale is None or sale.status != SaleStatus.ACTIVE:
        raise NotFound("Sale", snapshot.sale_id)

    return SnapshotRef(
        snapshot_id=snapshot.id,
        sale_id=sale.id,
        seller_id=sale.seller_id,
        channel_id=sale.channel_id,
        title=snapshot.title,
        price=snapshot.price,
    )


async def lookup_option(
    session: AsyncSession,
    option_group_id: EntityId,
    option_id: EntityId,
) -> OptionRef:
    group = await session.get(OptionGroupRow, option_group_id)
    if group is None or group.status != OptionStatus.ACTIVE:
        raise NotFound("OptionGroup", option_group_id)

    option = await session.get(OptionRow, option_id)
    if (
        option is None
        or option.option_group_id != group.id
        or option.status != OptionStatus.ACTIVE
    ):
        raise NotFound("Option", option_id)

    return OptionRef(
        option_group_id=group.id,
        option_id=option.id,
        sale_id=group.sale_id,
        group_name=group.name,
        name=option.name,
    )


async def lookup_placement(
    session: AsyncSession,
    channel_id: EntityId,
    section_id: EntityId | None = None,
) -> Placement:
    if await session.get(ChannelRow, channel_id) is None:
        raise NotFound("Channel", channel_id)

    if section_id is not None:
        section = await session.get(SectionRow, section_id)
        if section is None or section.channel_id != channel_id:
            raise NotFound("Section", section_id)

    return Placement(channel_id=channel_id, section_id=section_id)


async def sale_of_snapshot(session: AsyncSession, snapshot_id: EntityId) -> EntityId | None:
    """Sale id behind a snapshot, regardless of the sale's status."""
    snapshot = await session.get(SaleSnapshotRow, snapshot_id)
    return snapshot.sale_id if snapshot is not None else None


async def sellers_of_snapshots(
    session: AsyncSession,
    snapshot_ids: Iterable[EntityId],
) -> frozenset[EntityId]:
    """Sellers-of-record for a set of snapshots, regardless of sale status."""
    ids = set(snapshot_ids)
    if not ids:
        return frozenset()

    rows = await session.execute(
        select(SaleRow.seller_id)
        .join(SaleSnapshotRow, SaleSnapshotRow.sale_id == SaleRow.id)
        .where(SaleSnapshotRow.id.in_(ids))
        .distinct()
    )
    return frozenset(rows.scalars().all())


# ═══════════════════════════════════════════════════════════════════════════════
# Resolver
# ═══════════════════════════════════════════════════════════════════════════════


class CatalogResolver:
    """
    Standalone resolution, one read-only unit of work per call.

        match await catalog.resolver.resolve_sale_snapshot(sale_id):
            case Ok(ref):
                ...
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._uow = UnitOfWork(session_factory)

    async def resolve_sale_snapshot(
        self, sale_or_snapshot_id: EntityId
    ) -> Result[SnapshotRef, WorkflowError]:
        return await self._uow.run(lambda s: lookup_snapshot(s, sale_or_snapshot_id))

    async def resolve_option(
        self, option_group_id: EntityId, option_id: EntityId
    ) -> Result[OptionRef, WorkflowError]:
        return await self._uow.run(lambda s: lookup_option(s, option_group_id, option_id))

    async def resolve_placement(
        self, channel_id: EntityId, section_id: EntityId | None = None
    ) -> Result[Placement, WorkflowError]:
        return await self._uow.run(lambda s: lookup_placement(s, channel_id, section_id))


__all__ = (
    "CatalogResolver",
    "lookup_snapshot",
    "lookup_option",
    "lookup_placement",
    "sale_of_snapshot",
    "sellers_of_snapshots",
)
