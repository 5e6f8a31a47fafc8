"""Tests for admin dashboard endpoints."""

from typing import Any

from fastapi.testclient import TestClient


class TestAdminStats:
    """Tests for GET /admin/stats."""

    def test_requires_api_key(self, client: TestClient) -> None:
        """The dashboard is admin-only."""
        assert client.get("/admin/stats").status_code == 401

    def test_empty_catalog(self, auth_client: TestClient) -> None:
        """An empty catalog has zero totals."""
        stats = auth_client.get("/admin/stats").json()["stats"]
        assert stats["total_products"] == 0
        assert stats["recent_products"] == []
        assert stats["enquiries_by_status"]["new"] == 0

    def test_stats(self, auth_client: TestClient, catalog: dict[str, Any]) -> None:
        """Totals reflect the catalog and enquiries."""
        auth_client.put(f"/products/{catalog['copper']}", json={"status": "pre-order", "featured": True})
        auth_client.post("/enquiries", json={"phone": "9876543210"})

        stats = auth_client.get("/admin/stats").json()["stats"]
        assert stats["total_products"] == 2
        assert stats["total_categories"] == 3
        assert stats["total_brands"] == 1
        assert stats["total_business_types"] == 1
        assert stats["featured_products"] == 1
        assert stats["in_stock"] == 1
        assert stats["pre_order"] == 1
        assert {"status": "pre-order", "count": 1} in stats["status_distribution"]
        assert len(stats["recent_products"]) == 2
        assert stats["enquiries_by_status"]["new"] == 1
