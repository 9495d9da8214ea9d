"""
Exception handlers for the CRUD HTTP app.

Maps runtime errors to JSON responses:
- InvalidInputError: 422
- ConstraintViolationError: 422
- UpdateFailedError: 409
- UnknownEntityError: 404
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from dazzle_crud.runtime.exceptions import (
    ConstraintViolationError,
    InvalidInputError,
    UnknownEntityError,
    UpdateFailedError,
)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the runtime's exception handlers on a FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError) -> Response:
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "type": "invalid_input", "errors": exc.errors},
        )

    @app.exception_handler(ConstraintViolationError)
    async def constraint_violation_handler(
        request: Request, exc: ConstraintViolationError
    ) -> Response:
        detail: dict[str, object] = {
            "detail": str(exc),
            "type": "constraint_violation",
            "constraint_type": exc.constraint_type,
        }
        if exc.field:
            detail["field"] = exc.field
        return JSONResponse(status_code=422, content=detail)

    @app.exception_handler(UpdateFailedError)
    async def update_failed_handler(request: Request, exc: UpdateFailedError) -> Response:
        return JSONResponse(
            status_code=409,
            content={"detail": str(exc), "type": "update_failed", "entity": exc.entity_name},
        )

    @app.exception_handler(UnknownEntityError)
    async def unknown_entity_handler(request: Request, exc: UnknownEntityError) -> Response:
        return JSONResponse(
            status_code=404,
            content={"detail": str(exc), "type": "unknown_entity"},
        )
