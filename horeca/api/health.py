"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from horeca.api.schemas import HealthResponse, ReadyResponse
from horeca.catalog.repository import get_product_repository
from horeca.catalog.service import get_category_store
from horeca.infrastructure.config import settings

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with version and server time.
    """
    return HealthResponse(
        status="healthy",
        version=settings.api_version,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check() -> ReadyResponse:
    """Check if service is ready to accept requests.

    Returns:
        Readiness status with the catalog store counts.
    """
    checks = {
        "catalog": {"status": "ok", "products": get_product_repository().count()},
        "taxonomy": {"status": "ok", "categories": get_category_store().count()},
        "ai": {"status": "ok" if settings.gemini_api_key else "not_configured"},
    }
    return ReadyResponse(status="ready", checks=checks)
