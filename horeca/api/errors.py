"""HTTP error envelope and domain error mapping.

Every error response has the shape::

    {"success": false, "error": "...", "error_code": "...",
     "details": {...}, "request_id": "..."}
"""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from horeca.domain.exceptions import (
    AICooldownError,
    ConflictError,
    DependencyError,
    DomainError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)

# Checked in order; the first matching base class wins.
_STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (TransientStoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (AICooldownError, status.HTTP_429_TOO_MANY_REQUESTS),
    (DependencyError, status.HTTP_502_BAD_GATEWAY),
]


def status_for(exc: DomainError) -> int:
    """HTTP status for a domain error; unknown categories are 500."""
    for error_cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(
    request: Request | None,
    status_code: int,
    message: str,
    error_code: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the standard error envelope."""
    request_id = getattr(request.state, "request_id", None) if request is not None else None
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message,
            "error_code": error_code,
            "details": details if details is not None else {},
            "request_id": request_id,
        },
        headers=headers,
    )


def domain_error_response(request: Request, exc: DomainError) -> JSONResponse:
    """Render a domain error.

    Internal errors never leak their message or details.
    """
    code = status_for(exc)
    if code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        return error_response(request, code, "An internal error occurred", "INTERNAL_ERROR")
    headers = None
    if isinstance(exc, AICooldownError):
        headers = {"Retry-After": str(max(1, round(exc.retry_after_seconds)))}
    return error_response(request, code, exc.message, exc.error_code, exc.details, headers)
