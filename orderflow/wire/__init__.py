"""
Wire — HTTP binding for the workflow engines.

    from orderflow.wire import create_app

    app = create_app(settings=Settings())
    # uvicorn.run(app) or: python -m orderflow.wire

Claims arrive as `X-Actor-Id` / `X-Actor-Role` headers; error kinds map to
401 / 403 / 404 / 409 / 422.
"""

from orderflow.wire._app import create_app
from orderflow.wire._errors import HTTP_STATUS, install_error_handlers, unwrap

__all__ = (
    "create_app",
    "HTTP_STATUS",
    "install_error_handlers",
    "unwrap",
)
