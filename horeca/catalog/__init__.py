"""Product Catalog.

Taxonomy forests, products, business types, the tag pipeline, the
related-products engine, and product search.
"""

from horeca.catalog.business_types import BusinessTypeInUseError, BusinessTypeStore
from horeca.catalog.related import RelatedCandidate, RelatedProductsEngine
from horeca.catalog.repository import ProductRepository
from horeca.catalog.search import (
    PaginatedResult,
    PaginationParams,
    ProductFilter,
    ProductSearch,
    SortOrder,
)
from horeca.catalog.service import (
    AutoSuggestion,
    BulkOperationResult,
    CatalogService,
    get_brand_store,
    get_business_type_store,
    get_catalog_service,
    get_category_store,
    get_taxonomy_store,
)
from horeca.catalog.tags import TagPipeline
from horeca.catalog.taxonomy import TaxonomyStore, TaxonomyTreeNode, build_tree

__all__ = [
    # Taxonomy
    "TaxonomyStore",
    "TaxonomyTreeNode",
    "build_tree",
    # Business types
    "BusinessTypeInUseError",
    "BusinessTypeStore",
    # Tags and related products
    "TagPipeline",
    "RelatedCandidate",
    "RelatedProductsEngine",
    # Repository and search
    "ProductRepository",
    "ProductSearch",
    "ProductFilter",
    "PaginationParams",
    "PaginatedResult",
    "SortOrder",
    # Service
    "AutoSuggestion",
    "BulkOperationResult",
    "CatalogService",
    "get_brand_store",
    "get_business_type_store",
    "get_catalog_service",
    "get_category_store",
    "get_taxonomy_store",
]
