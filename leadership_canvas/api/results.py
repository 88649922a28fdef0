"""
Translation between core results and HTTP responses.

Mutation endpoints answer with the ActionResult shape itself:
    {"success": true, "data": ...}
    {"success": false, "error": "...", "field": "theme_text" | null}

Endpoints that follow the external JSON contract (nudges, scheduler) raise
ApiError instead, which main.py renders as {"error": label, "message": ...}.
"""

from typing import Any, Optional

from fastapi import Response, status
from fastapi.encoders import jsonable_encoder

from ..core.canvas.errors import ActionResult, ErrorKind


STATUS_BY_KIND = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND_OR_NOT_AUTHORIZED: status.HTTP_404_NOT_FOUND,
    ErrorKind.LIMIT_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UPSTREAM_DELIVERY_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

LABEL_BY_KIND = {
    ErrorKind.UNAUTHENTICATED: "Unauthorized",
    ErrorKind.VALIDATION_FAILED: "Validation Error",
    ErrorKind.FORBIDDEN: "Forbidden",
    ErrorKind.NOT_FOUND_OR_NOT_AUTHORIZED: "Not Found",
    ErrorKind.LIMIT_EXCEEDED: "Conflict",
    ErrorKind.BAD_REQUEST: "Bad Request",
    ErrorKind.UPSTREAM_DELIVERY_FAILED: "Bad Gateway",
    ErrorKind.UNEXPECTED: "Internal Server Error",
}


class ApiError(Exception):
    """An HTTP error with a short label and a user-facing message."""

    def __init__(self, status_code: int, error: str, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.message = message

    @classmethod
    def from_result(
        cls,
        result: ActionResult,
        unexpected_label: Optional[str] = None,
    ) -> "ApiError":
        kind = result.kind or ErrorKind.UNEXPECTED
        label = LABEL_BY_KIND[kind]
        if kind is ErrorKind.UNEXPECTED and unexpected_label:
            label = unexpected_label
        return cls(STATUS_BY_KIND[kind], label, result.error or "An unexpected error occurred")


def status_for(result: ActionResult) -> int:
    if result.success:
        return status.HTTP_200_OK
    return STATUS_BY_KIND[result.kind or ErrorKind.UNEXPECTED]


def render_result(
    result: ActionResult,
    response: Response,
    success_status: int = status.HTTP_200_OK,
    data: Any = None,
) -> dict[str, Any]:
    """
    Render an ActionResult as a response body and set the status code.

    Writing the status onto the injected Response (rather than returning a
    JSONResponse) keeps headers that dependencies set, such as a refreshed
    session cookie. data overrides result.data for endpoints that reshape
    the core's return value.
    """
    if result.success:
        response.status_code = success_status
        return {
            "success": True,
            "data": jsonable_encoder(data if data is not None else result.data),
        }

    response.status_code = status_for(result)
    return {"success": False, "error": result.error, "field": result.field}
