"""
Error taxonomy.

Raised inside a unit of work at the point of detection, returned as
`Error(WorkflowError)` from every public operation.

    match await carts.add_item(actor, cart_id, snapshot_id, quantity=0, unit_price=100):
        case Error(e) if e.kind is ErrorKind.INVALID_ARGUMENT:
            ...
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    UNAUTHENTICATED = "unauthenticated"  # no valid actor
    FORBIDDEN = "forbidden"  # valid actor, operation not allowed on this resource
    NOT_FOUND = "not_found"  # missing, soft-deleted, or unresolvable reference
    CONFLICT = "conflict"  # uniqueness or version mismatch
    INVALID_ARGUMENT = "invalid_argument"
    INVALID_STATE = "invalid_state"


class WorkflowError(Exception):
    """Base class for every error surfaced by the workflow engines."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class Unauthenticated(WorkflowError):
    kind = ErrorKind.UNAUTHENTICATED


class Forbidden(WorkflowError):
    kind = ErrorKind.FORBIDDEN


class NotFound(WorkflowError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: str | None) -> None:
        super().__init__(f"{entity}:{entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class Conflict(WorkflowError):
    kind = ErrorKind.CONFLICT


class InvalidArgument(WorkflowError):
    kind = ErrorKind.INVALID_ARGUMENT


class InvalidState(WorkflowError):
    kind = ErrorKind.INVALID_STATE


__all__ = (
    "ErrorKind",
    "WorkflowError",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "Conflict",
    "InvalidArgument",
    "InvalidState",
)
