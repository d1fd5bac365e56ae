"""
Unit of work — one operation, one transaction, one Result.

    uow = UnitOfWork(session_factory)
    result = await uow.run(lambda session: create_cart_row(session, owner))

Work functions raise `WorkflowError`; the unit rolls back and returns it as
`Error(...)`. Anything else propagates untouched.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from orderflow._types import DELETION_POLICY, Deletion, Entity, Error, Ok, Result, utcnow
from orderflow.errors import Conflict, WorkflowError

logger = structlog.get_logger(__name__)

type Work[T] = Callable[[AsyncSession], Awaitable[T]]


class UnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    async def run[T](self, work: Work[T]) -> Result[T, WorkflowError]:
        try:
            return Ok(await self.execute(work))
        except WorkflowError as e:
            logger.info("operation.rejected", kind=str(e.kind), reason=e.message)
            return Error(e)

    async def execute[T](self, work: Work[T]) -> T:
        """Same as `run` but raises instead of returning `Error`."""
        try:
            async with self._session_factory() as session, session.begin():
                return await work(session)
        except IntegrityError as e:
            raise Conflict(f"Integrity violation: {e.orig}") from e
        except StaleDataError as e:
            raise Conflict("Record was modified concurrently") from e


# ═══════════════════════════════════════════════════════════════════════════════
# Versioning & Deletion helpers
# ═══════════════════════════════════════════════════════════════════════════════


def check_version(entity: Entity, current: int, expected: int | None) -> None:
    if expected is not None and expected != current:
        raise Conflict(f"{entity} version mismatch: expected {expected}, found {current}")


async def discard(session: AsyncSession, entity: Entity, row: object) -> None:
    """Remove `row` according to `DELETION_POLICY`."""
    match DELETION_POLICY[entity]:
        case Deletion.SOFT:
            row.deleted_at = utcnow()  # type: ignore[attr-defined]
        case Deletion.HARD:
            await session.delete(row)
        case Deletion.NEVER:
            raise TypeError(f"{entity} records are never deleted")


__all__ = ("UnitOfWork", "Work", "check_version", "discard")
