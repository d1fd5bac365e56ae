"""
Error kind -> HTTP status.
"""

from __future__ import annotations

from collections.abc import Mapping

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from orderflow._types import Error, Ok, Result
from orderflow.errors import ErrorKind, WorkflowError

HTTP_STATUS: Mapping[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_ARGUMENT: 422,
    ErrorKind.INVALID_STATE: 409,
}


def unwrap[T](result: Result[T, WorkflowError]) -> T:
    """Value of `Ok`, or raise the `WorkflowError` for the exception handler."""
    match result:
        case Ok(value):
            return value
        case Error(e):
            raise e
    raise AssertionError("unreachable")


async def _on_workflow_error(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, WorkflowError):
        raise exc
    return JSONResponse(
        status_code=HTTP_STATUS[exc.kind],
        content={"error": str(exc.kind), "message": exc.message},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WorkflowError, _on_workflow_error)


__all__ = ("HTTP_STATUS", "unwrap", "install_error_handlers")
