"""Shared fixtures for E2E tests.

These fixtures drive the whole application through its HTTP surface, the
admin building the catalog and the storefront browsing it.
"""

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from horeca.infrastructure.config import settings
from horeca.main import app


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
def client() -> TestClient:
    """Create a storefront client bound to one session."""
    return TestClient(app, headers={"X-Session-ID": "e2e-session"})


@pytest.fixture
def auth_client() -> TestClient:
    """Create test client with valid API key authentication."""
    return TestClient(
        app,
        headers={
            "Authorization": f"Bearer {settings.admin_api_key}",
            "X-Request-ID": "e2e-test-request",
        },
    )


# ============================================================================
# Catalog Builders
# ============================================================================


@pytest.fixture
def create_node(auth_client: TestClient) -> Callable[..., str]:
    """Create a category or brand node and return its id."""

    def _create(path: str, name: str, level: str, parent_id: str | None = None) -> str:
        response = auth_client.post(path, json={"name": name, "level": level, "parent_id": parent_id})
        assert response.status_code == 201, response.text
        return response.json()["item"]["id"]

    return _create


@pytest.fixture
def create_product(auth_client: TestClient) -> Callable[..., dict[str, Any]]:
    """Create a product and return it."""

    def _create(title: str, **fields: Any) -> dict[str, Any]:
        payload = {"title": title, "hero_image": f"/uploads/products/{title.lower().replace(' ', '-')}.jpg"}
        payload.update(fields)
        response = auth_client.post("/products", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["product"]

    return _create


@pytest.fixture
def kitchen_catalog(
    auth_client: TestClient,
    create_node: Callable[..., str],
    create_product: Callable[..., dict[str, Any]],
) -> dict[str, Any]:
    """Kitchenware > Cookware > Handis > Brass Handis with four products.

    Returns:
        Mapping of short names to node ids and products.
    """
    ids: dict[str, Any] = {}
    ids["kitchenware"] = create_node("/categories", "Kitchenware", "department")
    ids["cookware"] = create_node("/categories", "Cookware", "category", ids["kitchenware"])
    ids["handis"] = create_node("/categories", "Handis", "subcategory", ids["cookware"])
    ids["brass_handis"] = create_node("/categories", "Brass Handis", "type", ids["handis"])
    ids["copper_handis"] = create_node("/categories", "Copper Handis", "type", ids["handis"])

    response = auth_client.post("/business-types", json={"name": "Restaurants"})
    assert response.status_code == 201, response.text
    ids["restaurants"] = response.json()["business_type"]["slug"]

    ids["biryani_handi"] = create_product(
        "Brass Biryani Handi",
        brand="Royal Metals",
        price=1200,
        category_id=ids["brass_handis"],
        business_type_slugs=[ids["restaurants"]],
        filters=[{"key": "Material", "values": ["Brass"]}, {"key": "Size", "values": ["30cm"]}],
        specifications=[{"label": "Diameter", "value": "30", "unit": "cm"}],
    )
    ids["serving_handi"] = create_product(
        "Brass Serving Handi",
        brand="Royal Metals",
        price=1100,
        category_id=ids["brass_handis"],
        business_type_slugs=[ids["restaurants"]],
        filters=[{"key": "Material", "values": ["Brass"]}, {"key": "Size", "values": ["20cm"]}],
    )
    ids["mini_handi"] = create_product(
        "Brass Mini Handi",
        price=300,
        category_id=ids["brass_handis"],
        filters=[{"key": "Material", "values": ["Brass"]}],
    )
    ids["copper_handi"] = create_product(
        "Copper Dum Handi",
        price=1300,
        category_id=ids["copper_handis"],
        business_type_slugs=[ids["restaurants"]],
        filters=[{"key": "Material", "values": ["Copper"]}],
    )
    return ids
