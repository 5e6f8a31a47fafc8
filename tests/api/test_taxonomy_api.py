"""Tests for category and brand API endpoints."""

from typing import Any

from fastapi.testclient import TestClient


def create_node(client: TestClient, path: str, name: str, level: str, parent_id: str | None = None):
    return client.post(path, json={"name": name, "level": level, "parent_id": parent_id})


class TestCategoryReads:
    """Tests for public category reads."""

    def test_list_is_public(self, client: TestClient, catalog: dict[str, Any]) -> None:
        """Categories list without an API key, departments first."""
        response = client.get("/categories")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [n["name"] for n in data["items"]] == ["Kitchenware", "Cookware", "Handis"]

    def test_list_by_level(self, client: TestClient, catalog: dict[str, Any]) -> None:
        """Level filters the list."""
        data = client.get("/categories", params={"level": "subcategory"}).json()
        assert [n["id"] for n in data["items"]] == [catalog["handis"]]

    def test_unknown_level(self, client: TestClient) -> None:
        """Unknown levels are a validation error."""
        response = client.get("/categories", params={"level": "aisle"})
        assert response.status_code == 400
        assert "department" in response.json()["details"]["allowed"]

    def test_tree(self, client: TestClient, catalog: dict[str, Any]) -> None:
        """The tree nests the full path."""
        tree = client.get("/categories/tree").json()["tree"]
        assert tree[0]["name"] == "Kitchenware"
        assert tree[0]["children"][0]["children"][0]["id"] == catalog["handis"]

    def test_by_slug(self, client: TestClient, catalog: dict[str, Any]) -> None:
        """Nodes resolve by slug."""
        item = client.get("/categories/slug/cookware").json()["item"]
        assert item["id"] == catalog["cookware"]
        assert item["kind"] == "category"

    def test_unknown_id(self, client: TestClient) -> None:
        """Unknown ids are 404."""
        assert client.get("/categories/missing").status_code == 404

    def test_ancestry(self, client: TestClient, catalog: dict[str, Any]) -> None:
        """Ancestry runs root first and is keyed by level."""
        data = client.get(f"/categories/{catalog['handis']}/ancestry").json()
        assert [n["name"] for n in data["chain"]] == ["Kitchenware", "Cookware", "Handis"]
        assert data["levels"]["department"]["id"] == catalog["kitchenware"]
        assert "type" not in data["levels"]

    def test_descendants(self, client: TestClient, catalog: dict[str, Any]) -> None:
        """Descendants exclude the node itself."""
        data = client.get(f"/categories/{catalog['kitchenware']}/descendants").json()
        assert set(data["descendant_ids"]) == {catalog["cookware"], catalog["handis"]}


class TestCategoryWrites:
    """Tests for admin category writes."""

    def test_create_requires_api_key(self, client: TestClient) -> None:
        """Writes need the admin key."""
        response = create_node(client, "/categories", "Bar Supplies", "department")
        assert response.status_code == 401

    def test_create_department(self, auth_client: TestClient) -> None:
        """Departments are created at the root with a derived slug."""
        response = create_node(auth_client, "/categories", "Bar & Beverage", "department")
        assert response.status_code == 201
        item = response.json()["item"]
        assert item["slug"] == "bar-beverage"
        assert item["parent_id"] is None

    def test_duplicate_slug(self, auth_client: TestClient, catalog: dict[str, Any]) -> None:
        """Duplicate slugs within a kind conflict."""
        response = create_node(auth_client, "/categories", "Kitchenware", "department")
        assert response.status_code == 409
        assert response.json()["error_code"] == "SLUG_CONFLICT"

    def test_same_slug_allowed_across_kinds(self, auth_client: TestClient, catalog: dict[str, Any]) -> None:
        """Categories and brands keep separate slug namespaces."""
        response = create_node(auth_client, "/brands", "Kitchenware", "department")
        assert response.status_code == 201

    def test_wrong_parent_level(self, auth_client: TestClient, catalog: dict[str, Any]) -> None:
        """A type must hang under a subcategory."""
        response = create_node(auth_client, "/categories", "Brass", "type", catalog["cookware"])
        assert response.status_code == 400

    def test_cycle_rejected(self, auth_client: TestClient, catalog: dict[str, Any]) -> None:
        """Moving a node under its own descendant is refused."""
        response = auth_client.put(f"/categories/{catalog['cookware']}", json={"parent_id": catalog["handis"]})
        assert response.status_code == 409
        assert response.json()["error_code"] == "TAXONOMY_CYCLE"

    def test_rename(self, auth_client: TestClient, catalog: dict[str, Any]) -> None:
        """Updates apply only the given fields."""
        response = auth_client.put(f"/categories/{catalog['cookware']}", json={"tagline": "Pots and pans"})
        assert response.status_code == 200
        item = response.json()["item"]
        assert item["tagline"] == "Pots and pans"
        assert item["name"] == "Cookware"

    def test_delete_with_children(self, auth_client: TestClient, catalog: dict[str, Any]) -> None:
        """Nodes with children cannot be deleted."""
        response = auth_client.delete(f"/categories/{catalog['cookware']}")
        assert response.status_code == 409
        assert response.json()["error_code"] == "TAXONOMY_HAS_CHILDREN"

    def test_delete_in_use(self, auth_client: TestClient, catalog: dict[str, Any]) -> None:
        """Nodes referenced by products cannot be deleted."""
        response = auth_client.delete(f"/categories/{catalog['handis']}")
        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "TAXONOMY_IN_USE"
        assert body["details"]["product_count"] == 2

    def test_delete_unused_leaf(self, auth_client: TestClient) -> None:
        """Unused leaves delete cleanly."""
        node_id = create_node(auth_client, "/categories", "Linen", "department").json()["item"]["id"]
        response = auth_client.delete(f"/categories/{node_id}")
        assert response.status_code == 200
        assert response.json()["id"] == node_id
        assert auth_client.get(f"/categories/{node_id}").status_code == 404


class TestBrands:
    """Tests for the brand forest."""

    def test_brand_type_level_rejected(self, auth_client: TestClient, catalog: dict[str, Any]) -> None:
        """Brands have no type level."""
        response = create_node(auth_client, "/brands", "Anything", "type", catalog["brand_dept"])
        assert response.status_code == 400

    def test_brand_in_use(self, auth_client: TestClient, catalog: dict[str, Any]) -> None:
        """Brands referenced by products cannot be deleted."""
        response = auth_client.delete(f"/brands/{catalog['brand_dept']}")
        assert response.status_code == 409
        assert response.json()["details"]["product_count"] == 1

    def test_products_by_brand(self, client: TestClient, catalog: dict[str, Any]) -> None:
        """Brand slugs filter the product list."""
        data = client.get("/products", params={"brand": "royal-metals"}).json()
        assert [p["id"] for p in data["products"]] == [catalog["handi"]]
