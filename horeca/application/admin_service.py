"""Admin query layer.

Read-only roll-ups for the back-office dashboard.
"""

from dataclasses import dataclass, field
from typing import Any

import structlog

from horeca.application.enquiry_service import EnquiryService, get_enquiry_service
from horeca.catalog.business_types import BusinessTypeStore
from horeca.catalog.repository import ProductRepository, get_product_repository
from horeca.catalog.service import get_brand_store, get_business_type_store, get_category_store
from horeca.catalog.taxonomy import TaxonomyStore
from horeca.domain.entities import Product
from horeca.domain.value_objects import ProductStatus

logger = structlog.get_logger()

RECENT_PRODUCTS_LIMIT = 5


@dataclass
class AdminStats:
    """Dashboard summary."""

    total_products: int
    total_categories: int
    total_brands: int
    total_business_types: int
    featured_products: int
    status_counts: dict[str, int]
    recent_products: list[Product] = field(default_factory=list)
    enquiries_by_status: dict[str, int] = field(default_factory=dict)

    @property
    def status_distribution(self) -> list[dict[str, Any]]:
        return [{"status": status, "count": count} for status, count in self.status_counts.items()]


class AdminService:
    """Application service for admin dashboard queries."""

    def __init__(
        self,
        product_repo: ProductRepository | None = None,
        categories: TaxonomyStore | None = None,
        brands: TaxonomyStore | None = None,
        business_types: BusinessTypeStore | None = None,
        enquiry_service: EnquiryService | None = None,
        request_id: str | None = None,
    ) -> None:
        self.product_repo = product_repo or get_product_repository()
        self.categories = categories or get_category_store()
        self.brands = brands or get_brand_store()
        self.business_types = business_types or get_business_type_store()
        self.enquiry_service = enquiry_service or get_enquiry_service(request_id)
        self.request_id = request_id

    async def stats(self) -> AdminStats:
        """Compute catalog and enquiry totals.

        Returns:
            AdminStats with counts by product status, the featured count,
            taxonomy totals, the newest products and enquiry status counts.
        """
        products = self.product_repo.list_all()
        status_counts = {status.value: 0 for status in ProductStatus}
        for product in products:
            status_counts[product.status.value] += 1
        recent = sorted(products, key=lambda p: p.created_at, reverse=True)[:RECENT_PRODUCTS_LIMIT]

        stats = AdminStats(
            total_products=len(products),
            total_categories=self.categories.count(),
            total_brands=self.brands.count(),
            total_business_types=len(self.business_types.list_all()),
            featured_products=sum(1 for p in products if p.featured),
            status_counts=status_counts,
            recent_products=recent,
            enquiries_by_status=self.enquiry_service.status_counts(),
        )
        logger.debug("Admin stats computed", total_products=stats.total_products, request_id=self.request_id)
        return stats


def get_admin_service(request_id: str | None = None) -> AdminService:
    """Get admin service instance."""
    return AdminService(request_id=request_id)
