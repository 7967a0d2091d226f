"""Problem Details (RFC 9457) responses for Pinboard API."""

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


PROBLEM_CONTENT_TYPE = "application/problem+json"


class ProblemDetail(BaseModel):
    """Problem Details body; extension members are kept as extra fields."""

    type: str = Field(default="about:blank", description="A URI reference that identifies the problem type")
    title: str = Field(description="A short, human-readable summary of the problem type")
    status: int = Field(description="The HTTP status code")
    detail: Optional[str] = Field(default=None, description="A human-readable explanation specific to this occurrence")
    instance: Optional[str] = Field(default=None, description="A URI reference that identifies the specific occurrence")

    model_config = {"extra": "allow"}


def create_problem_response(
    status: int,
    title: str,
    detail: Optional[str] = None,
    type_uri: str = "about:blank",
    instance: Optional[str] = None,
    request: Optional[Request] = None,
    **extensions: Any
) -> JSONResponse:
    """Create a Problem Details response.

    The request path is used as ``instance`` when none is given.
    """
    if instance is None and request:
        instance = str(request.url.path)

    problem = ProblemDetail(
        type=type_uri,
        title=title,
        status=status,
        detail=detail,
        instance=instance,
        **extensions
    )
    return JSONResponse(
        status_code=status,
        content=problem.model_dump(mode="json", exclude_none=True),
        headers={"Content-Type": PROBLEM_CONTENT_TYPE}
    )


class ProblemDetailException(Exception):
    """Exception rendered as a Problem Details response.

    Subclasses fix ``status``, ``title`` and an optional ``default_detail``;
    keyword arguments that are not part of the signature become extension
    members of the response body.
    """

    status: int = 500
    title: str = "Internal Server Error"
    default_detail: Optional[str] = None

    def __init__(
        self,
        detail: Optional[str] = None,
        *,
        status: Optional[int] = None,
        title: Optional[str] = None,
        type_uri: str = "about:blank",
        instance: Optional[str] = None,
        **extensions: Any
    ):
        if status is not None:
            self.status = status
        if title is not None:
            self.title = title
        self.detail = detail if detail is not None else self.default_detail
        self.type_uri = type_uri
        self.instance = instance
        self.extensions = extensions
        super().__init__(self.detail or self.title)

    def to_problem_detail(self, request: Optional[Request] = None) -> ProblemDetail:
        instance = self.instance
        if instance is None and request:
            instance = str(request.url.path)
        return ProblemDetail(
            type=self.type_uri,
            title=self.title,
            status=self.status,
            detail=self.detail,
            instance=instance,
            **self.extensions
        )

    def to_response(self, request: Optional[Request] = None) -> JSONResponse:
        return create_problem_response(
            self.status,
            self.title,
            detail=self.detail,
            type_uri=self.type_uri,
            instance=self.instance,
            request=request,
            **self.extensions
        )


class BadRequestError(ProblemDetailException):
    """400: invalid sort field, cursor, filter or page size."""
    status = 400
    title = "Bad Request"


class NotFoundError(ProblemDetailException):
    """404: no row with the requested id."""
    status = 404
    title = "Not Found"
    default_detail = "Resource not found"


class ConflictError(ProblemDetailException):
    """409: the write collides with an existing row."""
    status = 409
    title = "Conflict"


class InternalServerError(ProblemDetailException):
    """500: the database rejected a query."""
    default_detail = "Internal server error"


class ServiceUnavailableError(ProblemDetailException):
    """503: the database cannot be reached."""
    status = 503
    title = "Service Unavailable"
    default_detail = "Service temporarily unavailable"
