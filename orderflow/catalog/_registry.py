"""
Catalog registry — write side used to seed channels, sales and options.
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow._types import EntityId, Money, Result
from orderflow._unit import UnitOfWork
from orderflow.catalog._resolver import lookup_placement
from orderflow.catalog._types import (
    Channel,
    Option,
    OptionGroup,
    OptionStatus,
    Sale,
    SaleSnapshot,
    SaleStatus,
    Section,
)
from orderflow.db import (
    ChannelRow,
    OptionGroupRow,
    OptionRow,
    SaleRow,
    SaleSnapshotRow,
    SectionRow,
)
from orderflow.errors import InvalidArgument, NotFound, WorkflowError
from orderflow.identity import Role, lookup_actor

logger = structlog.get_logger(__name__)


def _to_sale(row: SaleRow) -> Sale:
    return Sale(
        id=row.id,
        seller_id=row.seller_id,
        channel_id=row.channel_id,
        section_id=row.section_id,
        title=row.title,
        status=SaleStatus(row.status),
    )


async def _load_sale(session: AsyncSession, sale_id: EntityId) -> SaleRow:
    row = await session.get(SaleRow, sale_id)
    if row is None:
        raise NotFound("Sale", sale_id)
    return row


class CatalogRegistry:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._uow = UnitOfWork(session_factory)

    async def open_channel(self, code: str, name: str) -> Result[Channel, WorkflowError]:
        async def work(session: AsyncSession) -> Channel:
            row = ChannelRow(code=code, name=name)
            session.add(row)
            await session.flush()
            logger.info("catalog.channel_opened", channel_id=row.id, code=code)
            return Channel(id=row.id, code=row.code, name=row.name)

        return await self._uow.run(work)

    async def open_section(
        self, channel_id: EntityId, code: str, name: str
    ) -> Result[Section, WorkflowError]:
        async def work(session: AsyncSession) -> Section:
            await lookup_placement(session, channel_id)
            row = SectionRow(channel_id=channel_id, code=code, name=name)
            session.add(row)
            await session.flush()
            return Section(id=row.id, channel_id=row.channel_id, code=row.code, name=row.name)

        return await self._uow.run(work)

    async def open_sale(
        self,
        seller_id: EntityId,
        channel_id: EntityId,
        title: str,
        section_id: EntityId | None = None,
    ) -> Result[Sale, WorkflowError]:
        async def work(session: AsyncSession) -> Sale:
            await lookup_actor(session, seller_id, Role.SELLER)
            await lookup_placement(session, channel_id, section_id)
            row = SaleRow(
                seller_id=seller_id,
                channel_id=channel_id,
                section_id=section_id,
                title=title,
                status=SaleStatus.ACTIVE,
            )
            session.add(row)
            await session.flush()
            logger.info("catalog.sale_opened", sale_id=row.id, seller_id=seller_id)
            return _to_sale(row)

        return await self._uow.run(work)

    async def freeze_snapshot(
        self,
        sale_id: EntityId,
        price: Money,
        title: str | None = None,
        description: str | None = None,
    ) -> Result[SaleSnapshot, WorkflowError]:
        """Freeze the sale's current title and price; defaults to the sale title."""

        async def work(session: AsyncSession) -> SaleSnapshot:
            if price < 0:
                raise InvalidArgument(f"price must be >= 0, got {price}")
            sale = await _load_sale(session, sale_id)
            row = SaleSnapshotRow(
                sale_id=sale.id,
                title=title if title is not None else sale.title,
                description=description,
                price=price,
            )
            session.add(row)
            await session.flush()
            return SaleSnapshot(
                id=row.id,
                sale_id=row.sale_id,
                title=row.title,
                description=row.description,
                price=row.price,
                created_at=row.created_at,
            )

        return await self._uow.run(work)

    async def set_sale_status(
        self, sale_id: EntityId, status: SaleStatus
    ) -> Result[Sale, WorkflowError]:
        async def work(session: AsyncSession) -> Sale:
            row = await _load_sale(session, sale_id)
            row.status = status
            logger.info("catalog.sale_status_set", sale_id=sale_id, status=str(status))
            return _to_sale(row)

        return await self._uow.run(work)

    async def add_option_group(
        self, sale_id: EntityId, name: str
    ) -> Result[OptionGroup, WorkflowError]:
        async def work(session: AsyncSession) -> OptionGroup:
            await _load_sale(session, sale_id)
            row = OptionGroupRow(sale_id=sale_id, name=name, status=OptionStatus.ACTIVE)
            session.add(row)
            await session.flush()
            return OptionGroup(id=row.id, sale_id=row.sale_id, name=row.name, status=OptionStatus.ACTIVE)

        return await self._uow.run(work)

    async def add_option(
        self, option_group_id: EntityId, name: str
    ) -> Result[Option, WorkflowError]:
        async def work(session: AsyncSession) -> Option:
            if await session.get(OptionGroupRow, option_group_id) is None:
                raise NotFound("OptionGroup", option_group_id)
            row = OptionRow(option_group_id=option_group_id, name=name, status=OptionStatus.ACTIVE)
            session.add(row)
            await session.flush()
            return Option(
                id=row.id,
                option_group_id=row.option_group_id,
                name=row.name,
                status=OptionStatus.ACTIVE,
            )

        return await self._uow.run(work)

    async def retire_option(self, option_id: EntityId) -> Result[Option, WorkflowError]:
        async def work(session: AsyncSession) -> Option:
            row = await session.get(OptionRow, option_id)
            if row is None:
                raise NotFound("Option", option_id)
            row.status = OptionStatus.RETIRED
            return Option(
                id=row.id,
                option_group_id=row.option_group_id,
                name=row.name,
                status=OptionStatus.RETIRED,
            )

        return await self._uow.run(work)


__all__ = ("CatalogRegistry",)
