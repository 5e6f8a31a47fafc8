"""Idempotency middleware for retry-safe storefront writes.

Provides:
- Idempotency-Key header handling on enquiry submission and cart adds
- Replay of the first successful response for a repeated key
- Request body conflict detection
"""

import json
from typing import Callable

import structlog
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from horeca.application.idempotency_service import (
    IdempotencyService,
    get_idempotency_service,
)

logger = structlog.get_logger()

SESSION_HEADER = "X-Session-ID"

# Endpoints that honour idempotency keys
IDEMPOTENT_ENDPOINTS = {
    "/enquiries": ["POST"],
    "/cart/items": ["POST"],
}


def _matches_pattern(path: str, pattern: str) -> bool:
    """Check if path matches a pattern with path parameters.

    Args:
        path: Actual request path (e.g., /enquiries/abc123/messages)
        pattern: Pattern with placeholders (e.g., /enquiries/{enquiry_id}/messages)

    Returns:
        True if path matches pattern.
    """
    path_parts = path.rstrip("/").split("/")
    pattern_parts = pattern.rstrip("/").split("/")
    if len(path_parts) != len(pattern_parts):
        return False
    for path_part, pattern_part in zip(path_parts, pattern_parts):
        if pattern_part.startswith("{") and pattern_part.endswith("}"):
            continue
        if path_part != pattern_part:
            return False
    return True


def _requires_idempotency(path: str, method: str) -> bool:
    for pattern, methods in IDEMPOTENT_ENDPOINTS.items():
        if method in methods and _matches_pattern(path, pattern):
            return True
    return False


class IdempotencyMiddleware(BaseHTTPMiddleware):
    """Middleware for idempotency key handling.

    For idempotent endpoints carrying an Idempotency-Key header:
    - A repeated key with the same body replays the stored response
    - A repeated key with a different body is rejected with 409
    - Successful (2xx) responses are stored for later replay

    Keys are scoped per storefront session.
    """

    HEADER_NAME = "Idempotency-Key"

    def __init__(self, app, service: IdempotencyService | None = None) -> None:
        super().__init__(app)
        self._service = service

    @property
    def service(self) -> IdempotencyService:
        if self._service is None:
            return get_idempotency_service()
        return self._service

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path.rstrip("/")
        method = request.method

        if not _requires_idempotency(path, method):
            return await call_next(request)

        idempotency_key = request.headers.get(self.HEADER_NAME)
        if not idempotency_key:
            logger.debug("Request without idempotency key", path=path, method=method)
            return await call_next(request)

        scope = request.headers.get(SESSION_HEADER) or "anonymous"
        request_body = None
        body = await request.body()
        if body:
            try:
                request_body = json.loads(body.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError):
                logger.debug("Idempotent request body is not JSON", path=path)

        result = await self.service.check(
            idempotency_key=idempotency_key,
            endpoint=path,
            method=method,
            request_body=request_body,
            scope=scope,
        )

        if result.is_conflict:
            request_id = getattr(request.state, "request_id", None)
            return JSONResponse(
                status_code=status.HTTP_409_CONFLICT,
                content={
                    "success": False,
                    "error": result.conflict_message or "Idempotency key already used with different request",
                    "error_code": "IDEMPOTENCY_CONFLICT",
                    "details": {"idempotency_key": idempotency_key},
                    "request_id": request_id,
                },
            )

        if result.is_cached and result.cached_response:
            cached = result.cached_response
            response = JSONResponse(status_code=cached.response_status, content=cached.response_body)
            response.headers["X-Idempotent-Replayed"] = "true"
            return response

        response = await call_next(request)
        if not 200 <= response.status_code < 300:
            return response

        response_body = b""
        async for chunk in response.body_iterator:
            response_body += chunk
        try:
            response_dict = json.loads(response_body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            response_dict = {}

        await self.service.store(
            idempotency_key=idempotency_key,
            endpoint=path,
            method=method,
            response_status=response.status_code,
            response_body=response_dict,
            request_body=request_body,
            scope=scope,
        )

        new_response = JSONResponse(status_code=response.status_code, content=response_dict)
        for key, value in response.headers.items():
            if key.lower() not in ("content-length", "content-type"):
                new_response.headers[key] = value
        return new_response


def setup_idempotency_middleware(app) -> None:
    """Add idempotency middleware to the application."""
    app.add_middleware(IdempotencyMiddleware)
