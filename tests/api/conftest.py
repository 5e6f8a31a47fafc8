"""Shared fixtures for API tests."""

from typing import Any

import pytest
from fastapi.testclient import TestClient

from horeca.infrastructure.config import settings
from horeca.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client without authentication."""
    return TestClient(app)


@pytest.fixture
def auth_client() -> TestClient:
    """Create test client with valid API key authentication."""
    return TestClient(
        app,
        headers={"Authorization": f"Bearer {settings.admin_api_key}"},
    )


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Get authentication headers."""
    return {"Authorization": f"Bearer {settings.admin_api_key}"}


@pytest.fixture
def catalog(auth_client: TestClient) -> dict[str, Any]:
    """Create a small catalog through the admin API.

    Returns:
        Mapping of short names to created ids.
    """
    ids: dict[str, Any] = {}

    def create_node(path: str, name: str, level: str, parent_id: str | None = None) -> str:
        response = auth_client.post(path, json={"name": name, "level": level, "parent_id": parent_id})
        assert response.status_code == 201, response.text
        return response.json()["item"]["id"]

    ids["kitchenware"] = create_node("/categories", "Kitchenware", "department")
    ids["cookware"] = create_node("/categories", "Cookware", "category", ids["kitchenware"])
    ids["handis"] = create_node("/categories", "Handis", "subcategory", ids["cookware"])
    ids["brand_dept"] = create_node("/brands", "Royal Metals", "department")

    response = auth_client.post("/business-types", json={"name": "Restaurants"})
    assert response.status_code == 201, response.text
    ids["restaurants"] = response.json()["business_type"]["slug"]

    response = auth_client.post(
        "/products",
        json={
            "title": "Premium Brass Biryani Handi",
            "hero_image": "/uploads/products/handi.jpg",
            "brand": "Royal Metals",
            "price": 1200,
            "category_id": ids["handis"],
            "brand_category_id": ids["brand_dept"],
            "business_type_slugs": [ids["restaurants"]],
            "filters": [{"key": "Material", "values": ["Brass"]}, {"key": "Size", "values": ["30cm"]}],
            "color_variants": [
                {"color_name": "Gold", "color_hex": "#D4AF37"},
                {"color_name": "Silver", "color_hex": "#C0C0C0"},
            ],
        },
    )
    assert response.status_code == 201, response.text
    ids["handi"] = response.json()["product"]["id"]
    ids["handi_slug"] = response.json()["product"]["slug"]

    response = auth_client.post(
        "/products",
        json={
            "title": "Copper Serving Handi",
            "hero_image": "/uploads/products/copper.jpg",
            "brand": "Royal Metals",
            "price": 1000,
            "category_id": ids["handis"],
            "business_type_slugs": [ids["restaurants"]],
            "filters": [{"key": "Material", "values": ["Copper"]}, {"key": "Size", "values": ["30cm"]}],
        },
    )
    assert response.status_code == 201, response.text
    ids["copper"] = response.json()["product"]["id"]
    return ids
