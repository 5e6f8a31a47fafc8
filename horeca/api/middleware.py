"""API middleware for the HoReCa catalog.

Provides:
- Request ID correlation
- Admin API key authentication (storefront routes stay public)
- Per-request deadline
- Error handling
"""

import asyncio
import re
import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from horeca.api.errors import error_response
from horeca.infrastructure.config import settings

logger = structlog.get_logger()


# ============================================================================
# Request ID Middleware
# ============================================================================


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID for correlation.

    Generates or extracts a request ID and adds it to:
    - Request state for access in handlers
    - Response headers for client correlation
    - Log context for tracing
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=getattr(response, "status_code", 500),
                duration_ms=round(duration_ms, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.HEADER_NAME] = request_id
        return response


# ============================================================================
# API Key Authentication Middleware
# ============================================================================


# Paths that never require authentication
PUBLIC_PATHS = {
    "/health",
    "/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
}

# Storefront reads: any GET under these prefixes is public.
PUBLIC_READ_PREFIXES = ("/products", "/categories", "/brands", "/business-types")

# Session-scoped storefront resources, public for every method.
PUBLIC_SESSION_PREFIXES = ("/cart", "/wishlist")

# Storefront writes outside the session resources.
PUBLIC_WRITES = {("POST", "/enquiries")}

_PREFIX_BOUNDARY = re.compile(r"^(/[^/]+)")


def is_public(method: str, path: str) -> bool:
    """Decide whether a request may skip admin authentication.

    Args:
        method: HTTP method.
        path: Request path without trailing slash.

    Returns:
        True for health, docs, storefront reads, enquiry submission, cart
        and wishlist.
    """
    if method == "OPTIONS":
        return True
    if path in PUBLIC_PATHS or path.startswith("/docs") or path.startswith("/redoc"):
        return True
    match = _PREFIX_BOUNDARY.match(path)
    root = match.group(1) if match else path
    if method in ("GET", "HEAD") and root in PUBLIC_READ_PREFIXES:
        return True
    if root in PUBLIC_SESSION_PREFIXES:
        return True
    return (method, path) in PUBLIC_WRITES


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Middleware for admin API key authentication.

    Validates "Authorization: Bearer <admin_api_key>" on every request that
    is not public.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path.rstrip("/") or "/"
        if is_public(request.method, path):
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header:
            logger.warning("Missing authorization header", path=path, method=request.method)
            return error_response(
                request,
                status.HTTP_401_UNAUTHORIZED,
                "Missing Authorization header",
                "UNAUTHORIZED",
                headers={"WWW-Authenticate": "Bearer"},
            )

        parts = auth_header.split(" ", 1)
        if len(parts) != 2 or parts[0].lower() != "bearer":
            logger.warning("Invalid authorization format", path=path, method=request.method)
            return error_response(
                request,
                status.HTTP_401_UNAUTHORIZED,
                "Invalid Authorization header format. Use 'Bearer <api_key>'",
                "UNAUTHORIZED",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if parts[1] != settings.admin_api_key:
            logger.warning("Invalid API key", path=path, method=request.method)
            return error_response(
                request,
                status.HTTP_401_UNAUTHORIZED,
                "Invalid API key",
                "INVALID_API_KEY",
                headers={"WWW-Authenticate": "Bearer"},
            )

        request.state.authenticated = True
        return await call_next(request)


# ============================================================================
# Request Deadline Middleware
# ============================================================================


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Aborts requests that exceed the per-request deadline.

    The in-flight handler is cancelled and the client receives a retriable
    503.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        timeout = settings.request_timeout_seconds
        try:
            return await asyncio.wait_for(call_next(request), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Request deadline exceeded",
                path=request.url.path,
                method=request.method,
                timeout_seconds=timeout,
            )
            return error_response(
                request,
                status.HTTP_503_SERVICE_UNAVAILABLE,
                "Request timed out, please retry",
                "TRANSIENT_ERROR",
                {"retriable": True, "timeout_seconds": timeout},
                headers={"Retry-After": "1"},
            )


# ============================================================================
# Error Handling Middleware
# ============================================================================


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for consistent error handling.

    Catches unhandled exceptions and returns standardized error responses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error=str(e),
            )
            return error_response(
                request,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "An internal error occurred",
                "INTERNAL_ERROR",
            )


# ============================================================================
# Middleware Setup
# ============================================================================


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application.

    Middleware is added in reverse order (last added = first executed).

    Args:
        app: FastAPI application instance.
    """
    # Error handling (innermost of the custom stack)
    app.add_middleware(ErrorHandlerMiddleware)

    # Per-request deadline
    app.add_middleware(RequestTimeoutMiddleware)

    # API key authentication
    app.add_middleware(ApiKeyMiddleware)

    # Request ID correlation (outermost, so every response carries the id)
    app.add_middleware(RequestIdMiddleware)
