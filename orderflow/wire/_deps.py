"""
Request dependencies — workflow handle and acting actor.

The upstream gateway verifies credentials and forwards the claims as
`X-Actor-Id` / `X-Actor-Role` headers.
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from orderflow.identity import Actor, Claims
from orderflow.pagination import PageRequest
from orderflow.wire._errors import unwrap
from orderflow.workflow import Workflow


def get_workflow(request: Request) -> Workflow:
    return request.app.state.workflow


async def get_actor(
    workflow: Annotated[Workflow, Depends(get_workflow)],
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
) -> Actor:
    claims = (
        Claims(subject=x_actor_id, role=x_actor_role)
        if x_actor_id and x_actor_role
        else None
    )
    return unwrap(await workflow.identity.current_actor(claims))


def get_page(request: Request, page: int = 1, limit: int | None = None) -> PageRequest:
    if limit is None:
        limit = request.app.state.settings.default_page_limit
    return PageRequest(page=page, limit=limit)


WorkflowDep = Annotated[Workflow, Depends(get_workflow)]
ActorDep = Annotated[Actor, Depends(get_actor)]
PageDep = Annotated[PageRequest, Depends(get_page)]


__all__ = ("get_workflow", "get_actor", "get_page", "WorkflowDep", "ActorDep", "PageDep")
