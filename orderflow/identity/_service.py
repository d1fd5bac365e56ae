"""
Identity service — resolves verified claims to an `Actor`.
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow._types import EntityId, Result
from orderflow._unit import UnitOfWork
from orderflow.db import ActorRow
from orderflow.errors import NotFound, Unauthenticated, WorkflowError
from orderflow.identity._types import Actor, ActorStatus, Claims, Role

logger = structlog.get_logger(__name__)


async def lookup_actor(
    session: AsyncSession,
    actor_id: EntityId,
    role: Role | None = None,
) -> ActorRow:
    """Load an active actor, optionally requiring a role."""
    row = await session.get(ActorRow, actor_id)
    if row is None or row.status != ActorStatus.ACTIVE:
        raise NotFound("Actor", actor_id)
    if role is not None and row.role != role:
        raise NotFound(f"Actor[{role}]", actor_id)
    return row


class IdentityService:
    """
    Read side: `current_actor(claims)`.
    Write side: `register` / `deactivate`, standing in for the external
    identity store when seeding.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._uow = UnitOfWork(session_factory)

    async def current_actor(self, claims: Claims | None) -> Result[Actor, WorkflowError]:
        async def work(session: AsyncSession) -> Actor:
            if claims is None:
                raise Unauthenticated("No credentials presented")
            try:
                role = Role(claims.role)
            except ValueError:
                raise Unauthenticated(f"Unknown role: {claims.role}") from None

            row = await session.get(ActorRow, claims.subject)
            if row is None or row.status != ActorStatus.ACTIVE or row.role != role:
                raise Unauthenticated(f"Credentials for {claims.subject} are not valid")
            return Actor(actor_id=row.id, role=role)

        return await self._uow.run(work)

    async def register(
        self, role: Role, display_name: str | None = None
    ) -> Result[Actor, WorkflowError]:
        async def work(session: AsyncSession) -> Actor:
            row = ActorRow(role=role, status=ActorStatus.ACTIVE, display_name=display_name)
            session.add(row)
            await session.flush()
            logger.info("actor.registered", actor_id=row.id, role=str(role))
            return Actor(actor_id=row.id, role=role)

        return await self._uow.run(work)

    async def deactivate(self, actor_id: EntityId) -> Result[None, WorkflowError]:
        async def work(session: AsyncSession) -> None:
            row = await lookup_actor(session, actor_id)
            row.status = ActorStatus.INACTIVE
            logger.info("actor.deactivated", actor_id=actor_id)

        return await self._uow.run(work)


__all__ = ("IdentityService", "lookup_actor")
