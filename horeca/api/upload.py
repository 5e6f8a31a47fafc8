"""Image upload API endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status

from horeca.api.schemas import ErrorResponse, UploadResponse
from horeca.application.upload_service import DEFAULT_FOLDER, UploadService, get_upload_service

router = APIRouter(tags=["Upload"])


def get_service(request: Request) -> UploadService:
    """Get upload service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_upload_service(request_id=request_id)


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Upload an image",
    description="Accepts jpeg, png, gif or webp images and returns the stored file's public URL.",
)
async def upload_image(
    file: Annotated[UploadFile, File(description="Image file")],
    service: Annotated[UploadService, Depends(get_service)],
    folder: Annotated[str, Form()] = DEFAULT_FOLDER,
) -> UploadResponse:
    data = await file.read()
    stored = await service.store(file.filename, file.content_type, data, folder)
    return UploadResponse(
        url=stored.url,
        filename=stored.filename,
        content_type=stored.content_type,
        size=stored.size,
    )
