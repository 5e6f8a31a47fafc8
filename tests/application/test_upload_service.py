"""Tests for the image upload service."""

from pathlib import Path

import pytest

from horeca.application.upload_service import UploadService
from horeca.domain.exceptions import UploadError, ValidationError

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def service(tmp_path: Path) -> UploadService:
    return UploadService(upload_dir=tmp_path, base_url="/uploads/", max_bytes=1024)


class TestUploadService:
    """Tests for UploadService.store."""

    async def test_stores_file_under_folder(self, service: UploadService, tmp_path: Path) -> None:
        """Files land in the slugified folder under a generated name."""
        uploaded = await service.store("handi.png", "image/png", PNG_BYTES, folder="Brand Logos")

        assert uploaded.url.startswith("/uploads/brand-logos/")
        assert uploaded.url.endswith(".png")
        assert uploaded.size == len(PNG_BYTES)
        assert uploaded.filename != "handi.png"
        assert (tmp_path / "brand-logos" / uploaded.filename).read_bytes() == PNG_BYTES

    async def test_default_folder(self, service: UploadService) -> None:
        """Without a folder, files go to products."""
        uploaded = await service.store("a.jpg", "image/jpeg", b"jpeg-data")
        assert uploaded.url.startswith("/uploads/products/")
        assert uploaded.url.endswith(".jpg")

    async def test_empty_file_rejected(self, service: UploadService) -> None:
        """An empty body is not a file."""
        with pytest.raises(ValidationError) as exc_info:
            await service.store("a.png", "image/png", b"")
        assert exc_info.value.message == "No file provided"

    async def test_non_image_rejected(self, service: UploadService) -> None:
        """Only image types are accepted."""
        with pytest.raises(ValidationError) as exc_info:
            await service.store("a.pdf", "application/pdf", b"%PDF")
        assert exc_info.value.details["content_type"] == "application/pdf"

    async def test_oversized_rejected(self, service: UploadService) -> None:
        """Files over the limit are refused."""
        with pytest.raises(ValidationError) as exc_info:
            await service.store("big.png", "image/png", b"x" * 2048)
        assert exc_info.value.details["max_bytes"] == 1024

    async def test_write_failure_is_upload_error(self, tmp_path: Path) -> None:
        """Disk errors surface as UploadError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        service = UploadService(upload_dir=blocker, base_url="/uploads", max_bytes=1024)
        with pytest.raises(UploadError) as exc_info:
            await service.store("a.png", "image/png", PNG_BYTES)
        assert exc_info.value.error_code == "UPLOAD_FAILED"
