"""Tests for domain error to HTTP mapping."""

import json
from types import SimpleNamespace

import pytest

from horeca.api.errors import domain_error_response, status_for
from horeca.domain.exceptions import (
    AICooldownError,
    AIGenerationError,
    DomainError,
    FatalInvariantError,
    InvalidQuantityError,
    NotFoundError,
    SlugConflictError,
    TaxonomyCycleError,
    TransientStoreError,
    UploadError,
    ValidationError,
)


def fake_request(request_id: str = "req-1") -> SimpleNamespace:
    return SimpleNamespace(state=SimpleNamespace(request_id=request_id))


class TestStatusFor:
    """Tests for the category to status mapping."""

    @pytest.mark.parametrize(
        "exc,expected",
        [
            (ValidationError("bad", field="name"), 400),
            (InvalidQuantityError(0), 400),
            (NotFoundError("Product", "p-1"), 404),
            (SlugConflictError("category", "cookware"), 409),
            (TaxonomyCycleError("category", "n-1", "n-2"), 409),
            (TransientStoreError(), 503),
            (AICooldownError("summary", 1.5), 429),
            (AIGenerationError("timed out"), 502),
            (UploadError("disk full"), 502),
            (FatalInvariantError("broken"), 500),
            (DomainError("unknown"), 500),
        ],
    )
    def test_mapping(self, exc: DomainError, expected: int) -> None:
        """Each category has one status."""
        assert status_for(exc) == expected


class TestDomainErrorResponse:
    """Tests for the error envelope."""

    def test_envelope(self) -> None:
        """Message, code, details and request id are carried."""
        response = domain_error_response(fake_request(), NotFoundError("Product", "p-1"))
        body = json.loads(response.body)
        assert response.status_code == 404
        assert body["success"] is False
        assert body["error_code"] == "NOT_FOUND"
        assert body["details"]["id"] == "p-1"
        assert body["request_id"] == "req-1"

    def test_internal_errors_hide_message(self) -> None:
        """Fatal errors never leak their message or details."""
        exc = FatalInvariantError("cart line points at product p-9", details={"product_id": "p-9"})
        body = json.loads(domain_error_response(fake_request(), exc).body)
        assert body["error"] == "An internal error occurred"
        assert body["error_code"] == "INTERNAL_ERROR"
        assert body["details"] == {}

    def test_cooldown_sets_retry_after(self) -> None:
        """Cooldown responses tell the client when to retry."""
        response = domain_error_response(fake_request(), AICooldownError("summary", 0.2))
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "1"
