"""
orderflow — multi-actor order-fulfillment workflow engine.

Guests, members, sellers and admins drive cart -> order -> payment -> delivery.
Every operation takes the acting `Actor` first, runs as one unit of work and
returns `Result[Record, WorkflowError]`.

Components:
    identity  — claims -> Actor
    catalog   — snapshot / option / placement resolution
    cart      — carts, items, options
    order     — orders, lines, transitions, checkout
    ledger    — payments and deliveries
    policy    — allow(actor, action, owners)

    from orderflow import open_workflow, Settings

    wf = await open_workflow(Settings())
"""

from orderflow._types import (
    Result,
    Ok,
    Error,
    EntityId,
    Money,
    Entity,
    Deletion,
    DELETION_POLICY,
)
from orderflow.errors import (
    ErrorKind,
    WorkflowError,
    Unauthenticated,
    Forbidden,
    NotFound,
    Conflict,
    InvalidArgument,
    InvalidState,
)
from orderflow.config import Settings
from orderflow.pagination import Page, PageRequest, Pagination
from orderflow.workflow import Workflow, open_workflow

__version__ = "0.1.0"

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Result
    "Result",
    "Ok",
    "Error",
    # Aliases
    "EntityId",
    "Money",
    # Deletion
    "Entity",
    "Deletion",
    "DELETION_POLICY",
    # Errors
    "ErrorKind",
    "WorkflowError",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "Conflict",
    "InvalidArgument",
    "InvalidState",
    # Config
    "Settings",
    # Pagination
    "Page",
    "PageRequest",
    "Pagination",
    # Workflow
    "Workflow",
    "open_workflow",
)
