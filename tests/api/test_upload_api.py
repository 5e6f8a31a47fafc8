"""Tests for the image upload endpoint."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from horeca.infrastructure.config import settings


@pytest.fixture
def upload_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point uploads at a temporary directory."""
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path))
    monkeypatch.setattr(settings, "upload_base_url", "/uploads")
    return tmp_path


class TestUpload:
    """Tests for POST /upload."""

    def test_requires_api_key(self, client: TestClient, upload_dir: Path) -> None:
        """Uploads are admin-only."""
        response = client.post("/upload", files={"file": ("a.png", b"\x89PNG", "image/png")})
        assert response.status_code == 401

    def test_upload_image(self, auth_client: TestClient, upload_dir: Path) -> None:
        """Images are written under the folder and get a public URL."""
        payload = b"\x89PNGdata"
        response = auth_client.post(
            "/upload",
            files={"file": ("handi.png", payload, "image/png")},
            data={"folder": "products"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["url"].startswith("/uploads/products/")
        assert data["filename"].endswith(".png")
        assert data["size"] == len(payload)
        assert (upload_dir / "products" / data["filename"]).read_bytes() == payload

    def test_rejects_non_image(self, auth_client: TestClient, upload_dir: Path) -> None:
        """Only image types are accepted."""
        response = auth_client.post("/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
        assert response.status_code == 400
        assert response.json()["details"]["content_type"] == "text/plain"

    def test_rejects_oversized(
        self, auth_client: TestClient, upload_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Files above the size limit are rejected."""
        monkeypatch.setattr(settings, "upload_max_bytes", 4)
        response = auth_client.post("/upload", files={"file": ("big.jpg", b"123456", "image/jpeg")})
        assert response.status_code == 400
        assert response.json()["details"]["max_bytes"] == 4
