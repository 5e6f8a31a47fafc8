"""Shared fixtures for all tests.

Every in-memory store is a process-wide singleton; each test starts from
empty stores.
"""

from typing import Generator

import pytest

from horeca.application.ai_service import reset_cooldown_tracker
from horeca.application.cart_service import reset_cart_repositories
from horeca.application.enquiry_service import reset_enquiry_repositories
from horeca.application.idempotency_service import reset_idempotency_service
from horeca.catalog.business_types import reset_business_type_repository
from horeca.catalog.repository import reset_product_repository
from horeca.catalog.taxonomy import reset_taxonomy_repositories


@pytest.fixture(autouse=True)
def reset_stores() -> Generator[None, None, None]:
    """Reset all in-memory repositories around each test."""
    reset_product_repository()
    reset_taxonomy_repositories()
    reset_business_type_repository()
    reset_cart_repositories()
    reset_enquiry_repositories()
    reset_idempotency_service()
    reset_cooldown_tracker()
    yield
    reset_product_repository()
    reset_taxonomy_repositories()
    reset_business_type_repository()
    reset_cart_repositories()
    reset_enquiry_repositories()
    reset_idempotency_service()
    reset_cooldown_tracker()
