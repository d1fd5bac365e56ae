"""
Identity & role context.

    from orderflow import identity as ID

    actor = await workflow.identity.current_actor(ID.Claims(subject=token.sub, role=token.role))
"""

from orderflow.identity._types import Role, ActorStatus, Actor, Claims
from orderflow.identity._service import IdentityService, lookup_actor

__all__ = (
    "Role",
    "ActorStatus",
    "Actor",
    "Claims",
    "IdentityService",
    "lookup_actor",
)
