"""Admin dashboard API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from horeca.api.products import product_to_summary
from horeca.api.schemas import AdminStatsResponse, AdminStatsSchema, ErrorResponse, StatusCountSchema
from horeca.application.admin_service import AdminService, get_admin_service
from horeca.domain.value_objects import ProductStatus

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_service(request: Request) -> AdminService:
    """Get admin service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_admin_service(request_id=request_id)


@router.get(
    "/stats",
    response_model=AdminStatsResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Dashboard statistics",
    description="Catalog and enquiry totals with the newest products.",
)
async def get_stats(service: Annotated[AdminService, Depends(get_service)]) -> AdminStatsResponse:
    stats = await service.stats()
    return AdminStatsResponse(
        stats=AdminStatsSchema(
            total_products=stats.total_products,
            total_categories=stats.total_categories,
            total_brands=stats.total_brands,
            total_business_types=stats.total_business_types,
            featured_products=stats.featured_products,
            in_stock=stats.status_counts.get(ProductStatus.IN_STOCK.value, 0),
            out_of_stock=stats.status_counts.get(ProductStatus.OUT_OF_STOCK.value, 0),
            pre_order=stats.status_counts.get(ProductStatus.PRE_ORDER.value, 0),
            status_distribution=[StatusCountSchema(**row) for row in stats.status_distribution],
            recent_products=[product_to_summary(p) for p in stats.recent_products],
            enquiries_by_status=stats.enquiries_by_status,
        )
    )
