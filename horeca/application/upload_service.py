"""Image upload collaborator.

Stores admin-uploaded product and taxonomy images on local disk under a
generated name and returns their public URL. Real asset storage (object
store, CDN, image optimization) sits behind this interface.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import structlog

from horeca.catalog.slugs import slugify
from horeca.domain.base import new_id
from horeca.domain.exceptions import UploadError, ValidationError
from horeca.infrastructure.config import settings

logger = structlog.get_logger()

ALLOWED_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

DEFAULT_FOLDER = "products"


@dataclass
class UploadedFile:
    url: str
    filename: str
    content_type: str
    size: int


class UploadService:
    """Validates and stores uploaded images."""

    def __init__(
        self,
        upload_dir: str | Path | None = None,
        base_url: str | None = None,
        max_bytes: int | None = None,
        request_id: str | None = None,
    ) -> None:
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.base_url = (base_url if base_url is not None else settings.upload_base_url).rstrip("/")
        self.max_bytes = max_bytes if max_bytes is not None else settings.upload_max_bytes
        self.request_id = request_id

    async def store(
        self,
        filename: str | None,
        content_type: str | None,
        data: bytes,
        folder: str | None = None,
    ) -> UploadedFile:
        """Validate and store an image.

        Args:
            filename: Client-side file name.
            content_type: Declared MIME type.
            data: File contents.
            folder: Target folder, e.g. "products" or "categories".

        Returns:
            The stored file's public URL and metadata.

        Raises:
            ValidationError: If the file is missing, not an image, or too large.
            UploadError: If the file cannot be written.
        """
        if not data:
            raise ValidationError("No file provided", field="file")
        extension = ALLOWED_CONTENT_TYPES.get((content_type or "").lower())
        if extension is None:
            raise ValidationError(
                "Invalid file type. Only images are allowed.",
                field="file",
                details={"content_type": content_type, "allowed": sorted(ALLOWED_CONTENT_TYPES)},
            )
        if len(data) > self.max_bytes:
            raise ValidationError(
                f"File size exceeds {self.max_bytes // (1024 * 1024)}MB limit",
                field="file",
                details={"size": len(data), "max_bytes": self.max_bytes},
            )

        folder_name = slugify(folder or DEFAULT_FOLDER) or DEFAULT_FOLDER
        stored_name = f"{new_id()}{extension}"
        target = self.upload_dir / folder_name / stored_name

        try:
            await asyncio.to_thread(_write_file, target, data)
        except OSError as e:
            logger.error(
                "Upload failed",
                filename=filename,
                target=str(target),
                error=str(e),
                request_id=self.request_id,
            )
            raise UploadError(f"Failed to store file: {e}", filename=filename) from e

        url = f"{self.base_url}/{PurePosixPath(folder_name, stored_name)}"
        logger.info(
            "File uploaded",
            filename=filename,
            url=url,
            size=len(data),
            request_id=self.request_id,
        )
        return UploadedFile(url=url, filename=stored_name, content_type=content_type or "", size=len(data))


def _write_file(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)


def get_upload_service(request_id: str | None = None) -> UploadService:
    """Get upload service instance."""
    return UploadService(request_id=request_id)
