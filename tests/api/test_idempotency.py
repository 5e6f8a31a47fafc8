"""Tests for idempotency middleware.

Tests:
- Idempotency key handling
- Response caching
- Request body conflict detection
"""

from typing import Any

import pytest
from fastapi.testclient import TestClient

from horeca.api.idempotency import _matches_pattern, _requires_idempotency
from horeca.application.idempotency_service import (
    CachedResponse,
    IdempotencyService,
    InMemoryIdempotencyStore,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


# ============================================================================
# Pattern Matching Tests
# ============================================================================


class TestPatternMatching:
    """Tests for endpoint pattern matching."""

    def test_matches_exact_path(self):
        """Should match exact paths."""
        assert _matches_pattern("/enquiries", "/enquiries") is True
        assert _matches_pattern("/cart/items", "/cart/items") is True

    def test_matches_path_with_parameters(self):
        """Should match paths with parameters."""
        assert _matches_pattern("/enquiries/abc123/messages", "/enquiries/{enquiry_id}/messages") is True

    def test_no_match_different_length(self):
        """Should not match paths of different length."""
        assert _matches_pattern("/cart", "/cart/items") is False

    def test_no_match_different_segments(self):
        """Should not match paths with different segments."""
        assert _matches_pattern("/cart/quantity", "/cart/items") is False


class TestRequiresIdempotency:
    """Tests for _requires_idempotency function."""

    def test_requires_for_storefront_writes(self):
        """Enquiry submission and cart adds honour keys."""
        assert _requires_idempotency("/enquiries", "POST") is True
        assert _requires_idempotency("/cart/items", "POST") is True

    def test_not_required_for_reads(self):
        """GET requests don't use idempotency."""
        assert _requires_idempotency("/enquiries", "GET") is False

    def test_not_required_for_admin_writes(self):
        """Admin writes are not replayed."""
        assert _requires_idempotency("/products", "POST") is False


# ============================================================================
# Idempotency Store Tests
# ============================================================================


def make_response(key: str = "key-001", scope: str = "sess-1", endpoint: str = "/enquiries") -> CachedResponse:
    return CachedResponse(
        idempotency_key=key,
        scope=scope,
        endpoint=endpoint,
        method="POST",
        response_status=201,
        response_body={"enquiry": {"id": "enq-001"}},
        request_hash="abc123",
    )


class TestInMemoryIdempotencyStore:
    """Tests for InMemoryIdempotencyStore."""

    async def test_store_and_get(self):
        """Should store and retrieve responses."""
        store = InMemoryIdempotencyStore(ttl_seconds=60)
        await store.store(make_response())

        retrieved = await store.get("key-001", "sess-1", "/enquiries", "post")

        assert retrieved is not None
        assert retrieved.response_status == 201
        assert retrieved.request_hash == "abc123"

    async def test_keys_are_scoped_per_session(self):
        """The same key from another session is a miss."""
        store = InMemoryIdempotencyStore(ttl_seconds=60)
        await store.store(make_response())
        assert await store.get("key-001", "sess-2", "/enquiries", "POST") is None

    async def test_expired_entries_not_returned(self):
        """Entries expire after the TTL."""
        clock = FakeClock()
        store = InMemoryIdempotencyStore(ttl_seconds=60, clock=clock)
        await store.store(make_response())

        clock.now = 61
        assert await store.get("key-001", "sess-1", "/enquiries", "POST") is None


# ============================================================================
# Idempotency Service Tests
# ============================================================================


class TestIdempotencyService:
    """Tests for IdempotencyService."""

    @pytest.fixture
    def service(self) -> IdempotencyService:
        """Create service instance."""
        return IdempotencyService(InMemoryIdempotencyStore(ttl_seconds=60))

    async def test_check_returns_not_cached_for_new_key(self, service):
        """Should return not cached for new keys."""
        result = await service.check(idempotency_key="new-key", endpoint="/enquiries", method="POST")

        assert result.is_cached is False
        assert result.cached_response is None
        assert result.is_conflict is False

    async def test_check_returns_cached_response(self, service):
        """Should return cached response for known key."""
        body = {"phone": "9876543210"}
        await service.store("key-001", "/enquiries", "POST", 201, {"id": "enq-001"}, request_body=body)

        result = await service.check("key-001", "/enquiries", "POST", request_body=body)

        assert result.is_cached is True
        assert result.cached_response.response_body == {"id": "enq-001"}

    async def test_detects_request_body_conflict(self, service):
        """Should detect request body conflicts."""
        await service.store("key-001", "/cart/items", "POST", 201, {}, request_body={"product_id": "p1"})

        result = await service.check("key-001", "/cart/items", "POST", request_body={"product_id": "p2"})

        assert result.is_cached is False
        assert result.is_conflict is True
        assert "different request body" in result.conflict_message.lower()


class TestComputeRequestHash:
    """Tests for request hash computation."""

    def test_none_body_returns_none(self):
        """None body should return None hash."""
        assert IdempotencyService.compute_request_hash(None) is None

    def test_key_order_independent(self):
        """Key order should not affect hash."""
        assert IdempotencyService.compute_request_hash({"a": 1, "b": 2}) == IdempotencyService.compute_request_hash(
            {"b": 2, "a": 1}
        )


# ============================================================================
# Middleware Tests
# ============================================================================


class TestIdempotencyMiddleware:
    """End-to-end behaviour through the app."""

    def test_cart_add_replayed_once(self, client: TestClient, catalog: dict[str, Any]) -> None:
        """A retried cart add does not double the quantity."""
        headers = {"X-Session-ID": "sess-1", "Idempotency-Key": "add-1"}
        body = {"product_id": catalog["copper"], "quantity": 2}
        client.post("/cart/items", json=body, headers=headers)
        replay = client.post("/cart/items", json=body, headers=headers)

        assert replay.headers["X-Idempotent-Replayed"] == "true"
        cart = client.get("/cart", headers={"X-Session-ID": "sess-1"}).json()["cart"]
        assert cart["items"][0]["quantity"] == 2

    def test_conflicting_body(self, client: TestClient, catalog: dict[str, Any]) -> None:
        """Reusing a key with a different body is a 409."""
        headers = {"X-Session-ID": "sess-1", "Idempotency-Key": "add-1"}
        client.post("/cart/items", json={"product_id": catalog["copper"]}, headers=headers)
        response = client.post("/cart/items", json={"product_id": catalog["handi"]}, headers=headers)

        assert response.status_code == 409
        assert response.json()["error_code"] == "IDEMPOTENCY_CONFLICT"

    def test_errors_are_not_stored(self, client: TestClient, catalog: dict[str, Any]) -> None:
        """A failed attempt can be retried with the same key."""
        headers = {"X-Session-ID": "sess-1", "Idempotency-Key": "add-2"}
        body = {"product_id": catalog["copper"], "quantity": 0}
        assert client.post("/cart/items", json=body, headers=headers).status_code == 400
        retry = client.post("/cart/items", json=body, headers=headers)
        assert retry.status_code == 400
        assert "X-Idempotent-Replayed" not in retry.headers
