"""
FastAPI application factory.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import fastapi

from orderflow import __version__
from orderflow.config import Settings
from orderflow.wire._errors import install_error_handlers
from orderflow.wire._routes import mount_carts, mount_ledger, mount_orders
from orderflow.workflow import Workflow, open_workflow


def create_app(workflow: Workflow | None = None, settings: Settings | None = None) -> fastapi.FastAPI:
    """
    Bind every engine operation to a route.

    With `workflow` given the app uses it as-is and never closes it; otherwise
    the lifespan opens one from `settings` and disposes it on shutdown.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: fastapi.FastAPI) -> AsyncIterator[None]:
        if workflow is not None:
            yield
            return
        async with await open_workflow(settings) as opened:
            app.state.workflow = opened
            yield

    app = fastapi.FastAPI(title="orderflow", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    if workflow is not None:
        app.state.workflow = workflow

    install_error_handlers(app)
    mount_carts(app)
    mount_orders(app)
    mount_ledger(app)
    return app


__all__ = ("create_app",)
