"""AI text generation API endpoints.

Generates or enhances product summaries and descriptions. Failures never
alter product state; the admin may simply retry.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from horeca.api.schemas import AIGenerateRequest, AIGenerateResponse, ErrorResponse
from horeca.application.ai_service import AIService, ProductContext, get_ai_service

router = APIRouter(prefix="/ai", tags=["AI"])


def get_service(request: Request) -> AIService:
    """Get AI service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_ai_service(request_id=request_id)


def _requester(request: Request) -> str:
    """Cooldown scope: the caller's credentials, else the client address."""
    return request.headers.get("Authorization") or (request.client.host if request.client else "anonymous")


@router.post(
    "/generate-description",
    response_model=AIGenerateResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Generate product copy",
    description="Generate or enhance a product summary or description from the product's details.",
)
async def generate_description(
    body: AIGenerateRequest,
    request: Request,
    service: Annotated[AIService, Depends(get_service)],
) -> AIGenerateResponse:
    """Generate or enhance product text.

    Args:
        body: Mode, field, existing text and product context.
        request: Incoming request, used to scope the cooldown.
        service: AI service.

    Returns:
        The generated text.
    """
    context = ProductContext(
        title=body.title,
        brand=body.brand,
        sku=body.sku,
        category_id=body.category_id,
        brand_category_id=body.brand_category_id,
        business_type_slugs=list(body.business_type_slugs),
        specifications=[s.model_dump() for s in body.specifications],
        filters=[f.model_dump() for f in body.filters],
        tags=list(body.tags),
    )
    result = await service.generate(
        context,
        body.mode,
        body.field,
        existing_text=body.existing_text,
        requester=_requester(request),
    )
    return AIGenerateResponse(text=result.text, field=result.field.value, mode=result.mode.value)
