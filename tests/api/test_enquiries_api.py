"""Tests for enquiry API endpoints."""

from typing import Any

import pytest
from fastapi.testclient import TestClient

from horeca.infrastructure.config import settings


def submit(client: TestClient, **overrides: Any):
    payload = {"phone": "+91 98765 43210", "name": "Asha Rao", "email": "asha@example.com", "message": "Need a quote"}
    payload.update(overrides)
    return client.post("/enquiries", json=payload)


@pytest.fixture
def enquiry(client: TestClient, catalog: dict[str, Any]) -> dict[str, Any]:
    """A submitted enquiry with one product line."""
    response = submit(client, products=[{"product_id": catalog["handi"], "quantity": 5}])
    assert response.status_code == 201, response.text
    return response.json()["enquiry"]


# ============================================================================
# Submission
# ============================================================================


class TestSubmitEnquiry:
    """Tests for the public POST /enquiries."""

    def test_submission_is_public(self, enquiry: dict[str, Any]) -> None:
        """Anyone can submit; the enquiry starts as new."""
        assert enquiry["status"] == "new"
        assert enquiry["human_enquiry_id"].startswith("ENQ-")
        assert enquiry["human_enquiry_id"].endswith("-0001")
        assert enquiry["type"] == "cart-plus-enquiry"
        assert enquiry["priority"] == "normal"

    def test_line_snapshots_product_name(self, enquiry: dict[str, Any], catalog: dict[str, Any]) -> None:
        """Line names are taken from the product when omitted."""
        item = enquiry["items"][0]
        assert item["product_id"] == catalog["handi"]
        assert item["product_name"] == "Premium Brass Biryani Handi"
        assert item["quantity"] == 5

    def test_phone_required(self, client: TestClient) -> None:
        """A blank phone is rejected."""
        response = submit(client, phone="  ")
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "phone"

    def test_enquiry_without_lines(self, client: TestClient) -> None:
        """Enquiries without products are enquiry-only."""
        data = submit(client).json()["enquiry"]
        assert data["type"] == "enquiry-only"
        assert data["items"] == []

    def test_business_landing_is_high_priority(self, client: TestClient) -> None:
        """Business users from the segment landing pages get high priority."""
        data = submit(client, source="whom-we-serve/hotels", user_type="business").json()["enquiry"]
        assert data["priority"] == "high"

    def test_invalid_user_type(self, client: TestClient) -> None:
        """User type is validated."""
        assert submit(client, user_type="robot").status_code == 400

    def test_anonymous_gets_placeholders(self, client: TestClient) -> None:
        """Without name and email, placeholders come from the phone."""
        data = submit(client, name="", email="").json()["enquiry"]
        assert data["name"] == "Guest 3210"
        assert data["customer_id"] is None

    def test_session_cart_used_and_cleared(self, client: TestClient, catalog: dict[str, Any]) -> None:
        """With use_session_cart the session's cart supplies the lines."""
        session = {"X-Session-ID": "sess-9"}
        client.post("/cart/items", json={"product_id": catalog["copper"], "quantity": 3}, headers=session)

        response = client.post(
            "/enquiries",
            json={"phone": "9876543210", "use_session_cart": True},
            headers=session,
        )
        assert response.status_code == 201
        items = response.json()["enquiry"]["items"]
        assert [(i["product_id"], i["quantity"]) for i in items] == [(catalog["copper"], 3)]
        assert client.get("/cart", headers=session).json()["cart"]["items"] == []

    def test_idempotent_resubmission(self, client: TestClient) -> None:
        """A repeated Idempotency-Key replays the first enquiry."""
        headers = {"Idempotency-Key": "enq-1", "X-Session-ID": "sess-1"}
        payload = {"phone": "9876543210", "message": "Hello"}
        first = client.post("/enquiries", json=payload, headers=headers)
        second = client.post("/enquiries", json=payload, headers=headers)
        assert second.status_code == 201
        assert second.headers["X-Idempotent-Replayed"] == "true"
        assert second.json()["enquiry"]["id"] == first.json()["enquiry"]["id"]


# ============================================================================
# Admin Workflow
# ============================================================================


class TestAdminEnquiries:
    """Tests for the admin enquiry endpoints."""

    def test_list_requires_api_key(self, client: TestClient) -> None:
        """Listing enquiries is admin-only."""
        assert client.get("/enquiries").status_code == 401

    def test_list_with_status_counts(self, auth_client: TestClient, enquiry: dict[str, Any]) -> None:
        """Counts ignore the status filter."""
        auth_client.put(f"/enquiries/{enquiry['id']}", json={"status": "in-progress"})
        submit(auth_client, phone="9000000000")

        data = auth_client.get("/enquiries", params={"status": "new"}).json()
        assert data["pagination"]["total"] == 1
        assert data["status_counts"]["new"] == 1
        assert data["status_counts"]["in-progress"] == 1

    def test_get_by_human_id(self, auth_client: TestClient, enquiry: dict[str, Any]) -> None:
        """Enquiries resolve by their human id."""
        response = auth_client.get(f"/enquiries/{enquiry['human_enquiry_id']}")
        assert response.status_code == 200
        assert response.json()["enquiry"]["id"] == enquiry["id"]

    def test_invalid_transition(self, auth_client: TestClient, enquiry: dict[str, Any]) -> None:
        """New enquiries cannot jump straight to closed."""
        response = auth_client.put(f"/enquiries/{enquiry['id']}", json={"status": "closed"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATE_TRANSITION"

    def test_failed_update_changes_nothing(self, auth_client: TestClient, enquiry: dict[str, Any]) -> None:
        """A refused transition also drops the other changes."""
        auth_client.put(f"/enquiries/{enquiry['id']}", json={"status": "closed", "assigned_to": "ravi"})
        data = auth_client.get(f"/enquiries/{enquiry['id']}").json()["enquiry"]
        assert data["assigned_to"] == ""

    def test_close_and_reopen(self, auth_client: TestClient, enquiry: dict[str, Any]) -> None:
        """Closed enquiries come back to new only through reopen."""
        auth_client.put(f"/enquiries/{enquiry['id']}", json={"status": "in-progress"})
        auth_client.put(f"/enquiries/{enquiry['id']}", json={"status": "closed"})

        assert auth_client.put(f"/enquiries/{enquiry['id']}", json={"status": "in-progress"}).status_code == 409
        response = auth_client.post(f"/enquiries/{enquiry['id']}/reopen")
        assert response.status_code == 200
        assert response.json()["enquiry"]["status"] == "new"

    def test_reopen_open_enquiry(self, auth_client: TestClient, enquiry: dict[str, Any]) -> None:
        """Only closed or spam enquiries can be reopened."""
        assert auth_client.post(f"/enquiries/{enquiry['id']}/reopen").status_code == 409

    def test_messages(self, auth_client: TestClient, enquiry: dict[str, Any]) -> None:
        """Log entries are appended and listed oldest first."""
        response = auth_client.post(
            f"/enquiries/{enquiry['id']}/messages",
            json={"message": "Called the customer", "channel": "phone", "created_by": "ravi"},
        )
        assert response.status_code == 201
        assert response.json()["message"]["channel"] == "phone"

        data = auth_client.get(f"/enquiries/{enquiry['id']}/messages").json()
        assert data["total"] == 1
        assert data["messages"][0]["message"] == "Called the customer"

    def test_invalid_channel(self, auth_client: TestClient, enquiry: dict[str, Any]) -> None:
        """Message channels are validated."""
        response = auth_client.post(
            f"/enquiries/{enquiry['id']}/messages",
            json={"message": "Hi", "channel": "fax"},
        )
        assert response.status_code == 400

    def test_whatsapp_links(
        self, auth_client: TestClient, enquiry: dict[str, Any], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Links target the customer and the business number."""
        monkeypatch.setattr(settings, "whatsapp_business_number", "+91 11111 22222")
        data = auth_client.get(f"/enquiries/{enquiry['id']}/whatsapp-link", params={"message": "Hello"}).json()
        assert data["customer_link"] == "https://wa.me/919876543210?text=Hello"
        assert data["business_link"].startswith("https://wa.me/911111122222?text=Enquiry%20ENQ-")

    def test_unknown_enquiry(self, auth_client: TestClient) -> None:
        """Unknown enquiries are 404."""
        assert auth_client.get("/enquiries/missing").status_code == 404
