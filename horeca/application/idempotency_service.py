"""Idempotency service for retry-safe storefront writes.

Enquiry submission and cart adds may be retried by the storefront after a
transient failure. A client-supplied Idempotency-Key lets the retry replay
the first response instead of creating a second enquiry or doubling a cart
line.
"""

import hashlib
import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import structlog

from horeca.domain.base import utcnow
from horeca.infrastructure.cache import TTLCache
from horeca.infrastructure.config import settings

logger = structlog.get_logger()


@dataclass
class CachedResponse:
    """A stored response for an idempotent request.

    Attributes:
        idempotency_key: Client-supplied key.
        scope: Caller scope the key belongs to (session id or "anonymous").
        endpoint: Request path.
        method: HTTP method.
        response_status: HTTP status code.
        response_body: JSON response body.
        request_hash: SHA-256 of the original request body.
    """

    idempotency_key: str
    scope: str
    endpoint: str
    method: str
    response_status: int
    response_body: dict[str, Any]
    request_hash: str | None = None
    created_at: Any = field(default_factory=utcnow)


@dataclass
class IdempotencyResult:
    """Outcome of an idempotency check."""

    is_cached: bool
    cached_response: CachedResponse | None = None
    is_conflict: bool = False
    conflict_message: str | None = None


class InMemoryIdempotencyStore:
    """Idempotency store over a TTL cache.

    In production, this would use the idempotency_responses table.
    """

    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._cache: TTLCache[CachedResponse] = TTLCache(
            ttl_seconds=ttl_seconds if ttl_seconds is not None else settings.idempotency_ttl_seconds,
            clock=clock,
        )

    @staticmethod
    def _make_key(idempotency_key: str, scope: str, endpoint: str, method: str) -> tuple[str, ...]:
        return (scope, idempotency_key, method.upper(), endpoint)

    async def get(self, idempotency_key: str, scope: str, endpoint: str, method: str) -> CachedResponse | None:
        return self._cache.get(self._make_key(idempotency_key, scope, endpoint, method))

    async def store(self, response: CachedResponse) -> CachedResponse:
        key = self._make_key(response.idempotency_key, response.scope, response.endpoint, response.method)
        self._cache.set(key, response)
        logger.debug(
            "Stored idempotent response",
            idempotency_key=response.idempotency_key,
            endpoint=response.endpoint,
            status=response.response_status,
        )
        return response


class IdempotencyService:
    """Checks and records idempotent requests."""

    def __init__(self, storage: InMemoryIdempotencyStore | None = None) -> None:
        self._storage = storage or InMemoryIdempotencyStore()

    @staticmethod
    def compute_request_hash(body: dict[str, Any] | None) -> str | None:
        """SHA-256 of the canonical JSON body, None without a body."""
        if body is None:
            return None
        payload = json.dumps(body, sort_keys=True, default=str)
        return hashlib.sha256(payload.encode()).hexdigest()

    async def check(
        self,
        idempotency_key: str,
        endpoint: str,
        method: str,
        request_body: dict[str, Any] | None = None,
        scope: str = "anonymous",
    ) -> IdempotencyResult:
        """Look up a previous response for this key.

        Args:
            idempotency_key: Key from the Idempotency-Key header.
            endpoint: Request path.
            method: HTTP method.
            request_body: Current body, compared against the original.
            scope: Caller scope.

        Returns:
            Cached response, a conflict, or a miss.
        """
        cached = await self._storage.get(idempotency_key, scope, endpoint, method)
        if cached is None:
            return IdempotencyResult(is_cached=False)

        if cached.request_hash != self.compute_request_hash(request_body):
            logger.warning(
                "Idempotency key reused with different request body",
                idempotency_key=idempotency_key,
                endpoint=endpoint,
            )
            return IdempotencyResult(
                is_cached=False,
                is_conflict=True,
                conflict_message="Idempotency key already used with different request body",
            )

        logger.info(
            "Returning cached idempotent response",
            idempotency_key=idempotency_key,
            endpoint=endpoint,
            original_status=cached.response_status,
        )
        return IdempotencyResult(is_cached=True, cached_response=cached)

    async def store(
        self,
        idempotency_key: str,
        endpoint: str,
        method: str,
        response_status: int,
        response_body: dict[str, Any],
        request_body: dict[str, Any] | None = None,
        scope: str = "anonymous",
    ) -> CachedResponse:
        """Record the response for a key."""
        return await self._storage.store(
            CachedResponse(
                idempotency_key=idempotency_key,
                scope=scope,
                endpoint=endpoint,
                method=method.upper(),
                response_status=response_status,
                response_body=response_body,
                request_hash=self.compute_request_hash(request_body),
            )
        )


_idempotency_service: IdempotencyService | None = None


def get_idempotency_service() -> IdempotencyService:
    """Get or create the idempotency service instance."""
    global _idempotency_service
    if _idempotency_service is None:
        _idempotency_service = IdempotencyService()
    return _idempotency_service


def reset_idempotency_service() -> None:
    """Reset idempotency state (for testing)."""
    global _idempotency_service
    _idempotency_service = None
