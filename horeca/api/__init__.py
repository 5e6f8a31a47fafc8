"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from horeca.api.admin import router as admin_router
from horeca.api.ai import router as ai_router
from horeca.api.business_types import router as business_types_router
from horeca.api.cart import router as cart_router
from horeca.api.enquiries import router as enquiries_router
from horeca.api.health import router as health_router
from horeca.api.products import router as products_router
from horeca.api.taxonomy import brands_router, categories_router
from horeca.api.upload import router as upload_router

__all__ = [
    "admin_router",
    "ai_router",
    "brands_router",
    "business_types_router",
    "cart_router",
    "categories_router",
    "enquiries_router",
    "health_router",
    "products_router",
    "upload_router",
]
