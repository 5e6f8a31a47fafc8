"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and infrastructure.
"""

from horeca.application.admin_service import (
    AdminService,
    get_admin_service,
)
from horeca.application.ai_service import (
    AIService,
    get_ai_service,
)
from horeca.application.cart_service import (
    CartService,
    get_cart_service,
)
from horeca.application.enquiry_service import (
    EnquiryService,
    get_enquiry_service,
)
from horeca.application.idempotency_service import (
    IdempotencyService,
    get_idempotency_service,
)
from horeca.application.upload_service import (
    UploadService,
    get_upload_service,
)

__all__ = [
    "AdminService",
    "get_admin_service",
    "AIService",
    "get_ai_service",
    "CartService",
    "get_cart_service",
    "EnquiryService",
    "get_enquiry_service",
    "IdempotencyService",
    "get_idempotency_service",
    "UploadService",
    "get_upload_service",
]
