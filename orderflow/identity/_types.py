"""
Identity types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from orderflow._types import EntityId


class Role(StrEnum):
    GUEST = "guest"
    MEMBER = "member"
    SELLER = "seller"
    ADMIN = "admin"


class ActorStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True, slots=True)
class Actor:
    """The acting identity passed explicitly into every operation."""

    actor_id: EntityId
    role: Role


@dataclass(frozen=True, slots=True)
class Claims:
    """
    Verified credential claims.

    Produced by the external credential collaborator (token issuer, gateway);
    orderflow only checks them against the identity store.
    """

    subject: str
    role: str


__all__ = ("Role", "ActorStatus", "Actor", "Claims")
