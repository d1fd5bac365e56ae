"""
Workflow — every engine wired to one storage engine.

    async with await open_workflow(Settings()) as wf:
        actor = (await wf.identity.register(Role.MEMBER)).value
        cart = (await wf.carts.create_cart(actor, CartOwner(member_id=actor.actor_id))).value
"""

from __future__ import annotations

from types import TracebackType

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from orderflow.cart import CartEngine
from orderflow.catalog import Catalog
from orderflow.config import Settings
from orderflow.db import create_database
from orderflow.identity import IdentityService
from orderflow.ledger import SubLedger
from orderflow.order import OrderEngine

logger = structlog.get_logger(__name__)


class Workflow:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ) -> None:
        self._engine = engine
        self.identity = IdentityService(session_factory)
        self.catalog = Catalog.open(session_factory)
        self.carts = CartEngine(session_factory)
        self.orders = OrderEngine(session_factory)
        self.ledger = SubLedger(session_factory)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    async def __aenter__(self) -> Workflow:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


async def open_workflow(settings: Settings | None = None) -> Workflow:
    """Create the schema if needed and return a ready workflow."""
    settings = settings or Settings()
    session_factory, engine = await create_database(settings.database_url, echo=settings.echo_sql)
    logger.info("workflow.opened", database_url=engine.url.render_as_string(hide_password=True))
    return Workflow(session_factory, engine)


__all__ = ("Workflow", "open_workflow")
