"""
Authorization policy — pure decision function consulted by every engine.

    from orderflow import policy as P

    P.allow(actor, P.Action.UPDATE, owners)      # -> bool
    P.authorize(actor, P.Action.UPDATE, owners)  # raises Forbidden
"""

from orderflow.policy._rules import (
    Action,
    ResourceKind,
    ResourceOwners,
    allow,
    authorize,
)

__all__ = (
    "Action",
    "ResourceKind",
    "ResourceOwners",
    "allow",
    "authorize",
)
