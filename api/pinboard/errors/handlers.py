"""Exception handlers for Pinboard API."""

import logging
from typing import Union
from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..pagination.cursor import PaginationStateError
from .problem_details import (
    ProblemDetailException,
    create_problem_response
)

logger = logging.getLogger(__name__)


# Titles for the statuses the framework itself raises
STATUS_TITLES = {
    404: "Not Found",
    405: "Method Not Allowed",
}


def _request_context(request: Request) -> dict:
    return {"path": str(request.url.path), "method": request.method}


def _opaque_server_error(request: Request) -> JSONResponse:
    return create_problem_response(
        status=500,
        title="Internal Server Error",
        detail="An unexpected error occurred",
        request=request
    )


async def problem_detail_exception_handler(
    request: Request,
    exc: ProblemDetailException
) -> JSONResponse:
    logger.info(
        f"Problem detail exception: {exc.status} - {exc.title}",
        extra={**_request_context(request), "status_code": exc.status, "detail": exc.detail}
    )
    return exc.to_response(request)


async def http_exception_handler(
    request: Request,
    exc: Union[HTTPException, StarletteHTTPException]
) -> JSONResponse:
    """Render routing errors (unknown path, wrong method) as problems."""
    logger.info(
        f"HTTP exception: {exc.status_code} - {exc.detail}",
        extra={**_request_context(request), "status_code": exc.status_code}
    )

    response = create_problem_response(
        status=exc.status_code,
        title=STATUS_TITLES.get(exc.status_code, "HTTP Error"),
        detail=str(exc.detail) if exc.detail else None,
        request=request
    )
    for key, value in (getattr(exc, "headers", None) or {}).items():
        response.headers[key] = value
    return response


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors (bad query parameters or bodies)."""
    errors = jsonable_encoder(exc.errors())
    logger.info(
        f"Validation error: {len(errors)} errors",
        extra={**_request_context(request), "errors": errors}
    )

    messages = [
        " -> ".join(str(x) for x in error["loc"]) + f": {error['msg']}"
        for error in errors
    ]
    return create_problem_response(
        status=422,
        title="Validation Error",
        detail="Validation failed: " + "; ".join(messages),
        request=request,
        validation_errors=errors
    )


async def pagination_state_exception_handler(
    request: Request,
    exc: PaginationStateError
) -> JSONResponse:
    """Handle a query that returned more rows than its pagination plan allows."""
    logger.error(
        f"Pagination state error: {exc}",
        extra={
            **_request_context(request),
            "row_count": exc.row_count,
            "specified_limit": exc.specified_limit,
            "queried_limit": exc.queried_limit
        }
    )
    return _opaque_server_error(request)


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    logger.error(
        f"Unhandled exception: {type(exc).__name__} - {exc}",
        extra={**_request_context(request), "exception_type": type(exc).__name__},
        exc_info=True
    )
    return _opaque_server_error(request)


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(ProblemDetailException, problem_detail_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    # Broken pagination contract with the query executor
    app.add_exception_handler(PaginationStateError, pagination_state_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
