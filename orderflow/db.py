"""
Database layer — SQLAlchemy models and session factory.

Every table uses string UUID primary keys. Mutable aggregates (carts, orders,
payments, deliveries) carry a `version` column wired as the mapper's
`version_id_col`, so stale concurrent writes fail at flush.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from orderflow._types import new_id, utcnow


# ═══════════════════════════════════════════════════════════════════════════════
# Column Types
# ═══════════════════════════════════════════════════════════════════════════════


class UtcDateTime(TypeDecorator[datetime]):
    """Stores naive UTC, returns aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


def _id_column(**kw: Any) -> Mapped[str]:
    return mapped_column(String(36), primary_key=True, default=new_id, **kw)


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


class Timestamped:
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UtcDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════════


class ActorRow(Base, Timestamped):
    __tablename__ = "actors"

    id: Mapped[str] = _id_column()
    role: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    display_name: Mapped[str | None] = mapped_column(String(120), nullable=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


class ChannelRow(Base, Timestamped):
    __tablename__ = "channels"

    id: Mapped[str] = _id_column()
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)


class SectionRow(Base, Timestamped):
    __tablename__ = "sections"

    id: Mapped[str] = _id_column()
    channel_id: Mapped[str] = mapped_column(ForeignKey("channels.id"), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)


class SaleRow(Base, Timestamped):
    __tablename__ = "sales"

    id: Mapped[str] = _id_column()
    seller_id: Mapped[str] = mapped_column(ForeignKey("actors.id"), nullable=False, index=True)
    channel_id: Mapped[str] = mapped_column(ForeignKey("channels.id"), nullable=False)
    section_id: Mapped[str | None] = mapped_column(ForeignKey("sections.id"), nullable=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")


class SaleSnapshotRow(Base):
    __tablename__ = "sale_snapshots"

    id: Mapped[str] = _id_column()
    sale_id: Mapped[str] = mapped_column(ForeignKey("sales.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False, default=utcnow)


class OptionGroupRow(Base, Timestamped):
    __tablename__ = "sale_option_groups"

    id: Mapped[str] = _id_column()
    sale_id: Mapped[str] = mapped_column(ForeignKey("sales.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")


class OptionRow(Base, Timestamped):
    __tablename__ = "sale_options"

    id: Mapped[str] = _id_column()
    option_group_id: Mapped[str] = mapped_column(
        ForeignKey("sale_option_groups.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")


# ═══════════════════════════════════════════════════════════════════════════════
# Carts
# ═══════════════════════════════════════════════════════════════════════════════


class CartRow(Base, Timestamped):
    __tablename__ = "carts"
    __table_args__ = (
        CheckConstraint(
            "(guest_owner_id IS NULL) <> (member_owner_id IS NULL)",
            name="ck_carts_single_owner",
        ),
    )

    id: Mapped[str] = _id_column()
    guest_owner_id: Mapped[str | None] = mapped_column(ForeignKey("actors.id"), nullable=True, index=True)
    member_owner_id: Mapped[str | None] = mapped_column(ForeignKey("actors.id"), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class CartItemRow(Base, Timestamped):
    __tablename__ = "cart_items"

    id: Mapped[str] = _id_column()
    cart_id: Mapped[str] = mapped_column(ForeignKey("carts.id"), nullable=False, index=True)
    snapshot_id: Mapped[str] = mapped_column(ForeignKey("sale_snapshots.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    deleted_at: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)


class CartItemOptionRow(Base, Timestamped):
    __tablename__ = "cart_item_options"

    id: Mapped[str] = _id_column()
    cart_item_id: Mapped[str] = mapped_column(ForeignKey("cart_items.id"), nullable=False, index=True)
    option_group_id: Mapped[str] = mapped_column(ForeignKey("sale_option_groups.id"), nullable=False)
    option_id: Mapped[str] = mapped_column(ForeignKey("sale_options.id"), nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderRow(Base, Timestamped):
    __tablename__ = "orders"

    id: Mapped[str] = _id_column()
    member_id: Mapped[str] = mapped_column(ForeignKey("actors.id"), nullable=False, index=True)
    channel_id: Mapped[str] = mapped_column(ForeignKey("channels.id"), nullable=False)
    section_id: Mapped[str | None] = mapped_column(ForeignKey("sections.id"), nullable=True)
    cart_id: Mapped[str | None] = mapped_column(ForeignKey("carts.id"), nullable=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    order_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    total_price: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class OrderItemRow(Base, Timestamped):
    __tablename__ = "order_items"

    id: Mapped[str] = _id_column()
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    snapshot_id: Mapped[str] = mapped_column(ForeignKey("sale_snapshots.id"), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")


class OrderStatusHistoryRow(Base):
    __tablename__ = "order_status_histories"

    id: Mapped[str] = _id_column()
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    actor_id: Mapped[str] = mapped_column(ForeignKey("actors.id"), nullable=False)
    old_status: Mapped[str] = mapped_column(String(16), nullable=False)
    new_status: Mapped[str] = mapped_column(String(16), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False, default=utcnow)


# ═══════════════════════════════════════════════════════════════════════════════
# Sub-ledger
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentRow(Base, Timestamped):
    __tablename__ = "payments"

    id: Mapped[str] = _id_column()
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False)
    payment_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class DeliveryRow(Base, Timestamped):
    __tablename__ = "deliveries"

    id: Mapped[str] = _id_column()
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    delivery_status: Mapped[str] = mapped_column(String(16), nullable=False)
    delivery_stage: Mapped[str] = mapped_column(String(16), nullable=False)
    expected_delivery_date: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)
    start_time: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)
    end_time: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


def _is_memory(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"))


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
    *,
    echo: bool = False,
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create database and return (session_factory, engine)."""
    if _is_memory(url):
        # One shared connection, otherwise every checkout sees an empty database.
        engine = create_async_engine(url, echo=echo, poolclass=StaticPool)
    else:
        engine = create_async_engine(url, echo=echo)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


__all__ = (
    "Base",
    "UtcDateTime",
    "ActorRow",
    "ChannelRow",
    "SectionRow",
    "SaleRow",
    "SaleSnapshotRow",
    "OptionGroupRow",
    "OptionRow",
    "CartRow",
    "CartItemRow",
    "CartItemOptionRow",
    "OrderRow",
    "OrderItemRow",
    "OrderStatusHistoryRow",
    "PaymentRow",
    "DeliveryRow",
    "create_database",
)
