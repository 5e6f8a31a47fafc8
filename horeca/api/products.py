"""Product API endpoints.

Provides endpoints for browsing, searching and managing catalog products,
previewing generated tags and ranking related products.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status

from horeca.api.schemas import (
    AutoSuggestResponse,
    BulkFeaturedRequest,
    BulkIdsRequest,
    BulkItemSchema,
    BulkOperationResponse,
    BulkStatusRequest,
    ColorVariantSchema,
    DeletedResponse,
    ErrorResponse,
    FacetsResponse,
    FacetsSchema,
    FilterGroupSchema,
    LegacyFiltersRequest,
    LegacyFiltersResponse,
    PaginationSchema,
    ProductCreateRequest,
    ProductDetailSchema,
    ProductDraftRequest,
    ProductListResponse,
    ProductResponse,
    ProductSchema,
    ProductSummarySchema,
    ProductUpdateRequest,
    RelatedCandidatesResponse,
    RelatedCandidateSchema,
    SpecificationSchema,
    TagsResponse,
)
from horeca.catalog.related import RelatedCandidate
from horeca.catalog.search import (
    PaginatedResult,
    PaginationParams,
    ProductFilter,
    SortOrder,
    parse_filter_params,
)
from horeca.catalog.service import BulkOperationResult, CatalogService, get_catalog_service, import_legacy_filters
from horeca.domain.entities import Product
from horeca.domain.value_objects import ProductStatus

router = APIRouter(prefix="/products", tags=["Products"])

LIST_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=120"


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> CatalogService:
    """Get catalog service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_catalog_service(request_id=request_id)


def get_product_filter(
    search: Annotated[str | None, Query(description="Text search over title, brand, tags and copy")] = None,
    category: Annotated[str | None, Query(description="Category slug, includes descendants")] = None,
    brand: Annotated[str | None, Query(description="Brand slug, includes descendants")] = None,
    business_type: Annotated[str | None, Query(description="Business type slug")] = None,
    filter_params: Annotated[list[str] | None, Query(alias="filter", description="Repeatable 'Key:value1,value2'")] = None,
    product_status: Annotated[str | None, Query(alias="status")] = None,
    price_min: Annotated[int | None, Query(ge=0)] = None,
    price_max: Annotated[int | None, Query(ge=0)] = None,
    featured: bool | None = None,
) -> ProductFilter:
    """Build a ProductFilter from query parameters."""
    return ProductFilter(
        text=search,
        category=category,
        brand=brand,
        business_type=business_type,
        filters=parse_filter_params(filter_params),
        status=ProductStatus.parse(product_status) if product_status else None,
        price_min=price_min,
        price_max=price_max,
        featured=featured,
    )


# ============================================================================
# Converters
# ============================================================================


def product_to_schema(product: Product) -> ProductSchema:
    """Convert Product entity to response schema.

    Color variants are served with exactly one default flag set.
    """
    variants = product.normalized_color_variants()
    default = next((v for v in variants if v.is_default), None)
    return ProductSchema(
        id=product.id,
        slug=product.slug,
        title=product.title,
        brand=product.brand,
        sku=product.sku,
        price=product.price,
        price_on_request=product.price_on_request,
        summary=product.summary,
        description=product.description,
        status=product.status.value,
        featured=product.featured,
        premium=product.premium,
        hero_image=product.hero_image,
        gallery_images=list(product.gallery_images),
        category_id=product.category_id,
        additional_category_ids=list(product.additional_category_ids),
        brand_category_id=product.brand_category_id,
        additional_brand_category_ids=list(product.additional_brand_category_ids),
        business_type_slugs=list(product.business_type_slugs),
        specifications=[
            SpecificationSchema(label=s.label, value=s.value, unit=s.unit) for s in product.specifications
        ],
        filters=[FilterGroupSchema(key=g.key, values=list(g.values)) for g in product.filters],
        color_variants=[
            ColorVariantSchema(
                color_name=v.color_name,
                color_hex=v.color_hex,
                images=list(v.images),
                is_default=v.is_default,
            )
            for v in variants
        ],
        default_color=default.color_name if default else None,
        related_product_ids=list(product.related_product_ids),
        tags=list(product.tags),
        manual_tags=list(product.manual_tags),
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def product_to_summary(product: Product) -> ProductSummarySchema:
    return ProductSummarySchema(
        id=product.id,
        slug=product.slug,
        title=product.title,
        brand=product.brand,
        price=product.price,
        price_on_request=product.price_on_request,
        hero_image=product.hero_image,
        status=product.status.value,
        featured=product.featured,
    )


def pagination_to_schema(result: PaginatedResult) -> PaginationSchema:
    return PaginationSchema(
        total=result.total,
        limit=result.limit,
        skip=result.skip,
        page=result.skip // result.limit + 1,
        total_pages=result.total_pages,
        has_more=result.has_next,
    )


def candidates_to_schema(candidates: list[RelatedCandidate]) -> list[RelatedCandidateSchema]:
    return [RelatedCandidateSchema(**candidate.to_dict()) for candidate in candidates]


def bulk_to_response(result: BulkOperationResult) -> BulkOperationResponse:
    return BulkOperationResponse(
        operation=result.operation,
        succeeded=result.succeeded,
        failed=result.failed,
        results=[
            BulkItemSchema(
                product_id=item.product_id,
                success=item.success,
                error=item.error,
                error_code=item.error_code,
            )
            for item in result.results
        ],
    )


async def detail_response(service: CatalogService, product: Product) -> ProductResponse:
    related = await service.related_products(product)
    detail = ProductDetailSchema(
        **product_to_schema(product).model_dump(),
        related_products=[product_to_summary(p) for p in related],
    )
    return ProductResponse(product=detail)


# ============================================================================
# Browse Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ProductListResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="List products",
    description="List products with text search, taxonomy and filter-key filters, sort and pagination.",
)
async def list_products(
    response: Response,
    criteria: Annotated[ProductFilter, Depends(get_product_filter)],
    service: Annotated[CatalogService, Depends(get_service)],
    sort: SortOrder | None = None,
    limit: int = 20,
    skip: int = 0,
) -> ProductListResponse:
    """List products.

    Sorting defaults to relevance when a search text is given and to
    newest first otherwise. Per-status counts ignore the status filter.

    Args:
        response: Outgoing response, used for cache headers.
        criteria: Parsed filter parameters.
        service: Catalog service.
        sort: Ordering.
        limit: Page size (1-100).
        skip: Items to skip.

    Returns:
        Page of products with pagination and status counts.
    """
    if sort is None:
        sort = SortOrder.RELEVANCE if criteria.text else SortOrder.NEWEST
    result = await service.list_products(criteria, PaginationParams(limit=limit, skip=skip), sort)
    response.headers["Cache-Control"] = LIST_CACHE_CONTROL
    return ProductListResponse(
        products=[product_to_schema(p) for p in result.items],
        pagination=pagination_to_schema(result),
        status_counts=result.status_counts,
    )


@router.get(
    "/facets",
    response_model=FacetsResponse,
    summary="Get product facets",
    description="Colors, brands, filter values, specs, statuses and price range for the matching products.",
)
async def get_facets(
    response: Response,
    criteria: Annotated[ProductFilter, Depends(get_product_filter)],
    service: Annotated[CatalogService, Depends(get_service)],
) -> FacetsResponse:
    facets = await service.facets(criteria)
    response.headers["Cache-Control"] = LIST_CACHE_CONTROL
    return FacetsResponse(facets=FacetsSchema(**facets))


@router.get(
    "/id/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get product by ID",
)
async def get_product_by_id(
    product_id: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ProductResponse:
    product = await service.get_product(product_id)
    return await detail_response(service, product)


# ============================================================================
# Tag and Related Previews
# ============================================================================


@router.post(
    "/tags/preview",
    response_model=TagsResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Preview generated tags",
    description="Run the tag pipeline over unsaved product fields.",
)
async def preview_tags(
    body: ProductDraftRequest,
    service: Annotated[CatalogService, Depends(get_service)],
) -> TagsResponse:
    tags = await service.preview_tags(body.model_dump(exclude_none=True))
    return TagsResponse(tags=tags)


@router.post(
    "/related/preview",
    response_model=RelatedCandidatesResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Rank related candidates for a draft",
)
async def preview_related(
    body: ProductDraftRequest,
    service: Annotated[CatalogService, Depends(get_service)],
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> RelatedCandidatesResponse:
    candidates = await service.related_preview(body.model_dump(exclude_none=True), limit)
    return RelatedCandidatesResponse(candidates=candidates_to_schema(candidates), total=len(candidates))


# ============================================================================
# Bulk Operations
# ============================================================================


@router.post(
    "/bulk/featured",
    response_model=BulkOperationResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Set featured flag on many products",
)
async def bulk_featured(
    body: BulkFeaturedRequest,
    service: Annotated[CatalogService, Depends(get_service)],
) -> BulkOperationResponse:
    return bulk_to_response(await service.bulk_set_featured(body.product_ids, body.featured))


@router.post(
    "/bulk/status",
    response_model=BulkOperationResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Set status on many products",
)
async def bulk_status(
    body: BulkStatusRequest,
    service: Annotated[CatalogService, Depends(get_service)],
) -> BulkOperationResponse:
    return bulk_to_response(await service.bulk_set_status(body.product_ids, body.status))


@router.post(
    "/bulk/delete",
    response_model=BulkOperationResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Delete many products",
)
async def bulk_delete(
    body: BulkIdsRequest,
    service: Annotated[CatalogService, Depends(get_service)],
) -> BulkOperationResponse:
    return bulk_to_response(await service.bulk_delete(body.product_ids))


@router.post(
    "/import-filters",
    response_model=LegacyFiltersResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Convert legacy filters",
    description="Convert an object-of-arrays filter map into ordered filter groups.",
)
async def import_filters(body: LegacyFiltersRequest) -> LegacyFiltersResponse:
    groups = import_legacy_filters(body.filters)
    return LegacyFiltersResponse(filters=[FilterGroupSchema(key=g.key, values=list(g.values)) for g in groups])


# ============================================================================
# Product CRUD
# ============================================================================


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Create product",
)
async def create_product(
    body: ProductCreateRequest,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ProductResponse:
    """Create a product.

    The slug is derived from the title when omitted and made unique; tags
    are generated from the product's fields.

    Args:
        body: Product fields.
        service: Catalog service.

    Returns:
        The created product.
    """
    product = await service.create_product(body.model_dump(exclude_none=True))
    return await detail_response(service, product)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Update product",
)
async def update_product(
    product_id: str,
    body: ProductUpdateRequest,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ProductResponse:
    product = await service.update_product(product_id, body.model_dump(exclude_none=True))
    return await detail_response(service, product)


@router.delete(
    "/{product_id}",
    response_model=DeletedResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Delete product",
)
async def delete_product(
    product_id: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> DeletedResponse:
    product = await service.delete_product(product_id)
    return DeletedResponse(id=product.id)


@router.post(
    "/{product_id}/tags/generate",
    response_model=ProductResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Generate tags for a product",
    description="Merge freshly generated tags into the product's existing tags.",
)
async def generate_tags(
    product_id: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ProductResponse:
    product = await service.generate_tags(product_id)
    return await detail_response(service, product)


@router.post(
    "/{product_id}/related",
    response_model=RelatedCandidatesResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Rank related candidates for a product",
)
async def related_for_product(
    product_id: str,
    service: Annotated[CatalogService, Depends(get_service)],
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> RelatedCandidatesResponse:
    candidates = await service.related_for(product_id, limit)
    return RelatedCandidatesResponse(candidates=candidates_to_schema(candidates), total=len(candidates))


@router.post(
    "/{product_id}/related/auto-suggest",
    response_model=AutoSuggestResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Auto-suggest related products",
    description="With apply=true the suggestions are added to the product's related products.",
)
async def auto_suggest_related(
    product_id: str,
    service: Annotated[CatalogService, Depends(get_service)],
    apply: bool = False,
) -> AutoSuggestResponse:
    suggestion = await service.auto_suggest(product_id, apply=apply)
    return AutoSuggestResponse(
        product_ids=[c.product.id for c in suggestion.candidates],
        candidates=candidates_to_schema(suggestion.candidates),
        message=suggestion.message,
        applied=suggestion.applied,
    )


# Declared last so the static paths above take precedence.
@router.get(
    "/{slug}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get product by slug",
)
async def get_product_by_slug(
    slug: str,
    service: Annotated[CatalogService, Depends(get_service)],
) -> ProductResponse:
    product = await service.get_product_by_slug(slug)
    return await detail_response(service, product)
