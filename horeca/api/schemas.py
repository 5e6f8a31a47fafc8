"""API schemas for the HoReCa catalog API.

Pydantic models for request/response validation and serialization.

Every JSON response carries a top-level ``success`` flag. Successful
responses put their payload under a named key (``product``, ``enquiries``,
``cart``, ...); errors use the envelope described by ErrorResponse.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ============================================================================
# Common Schemas
# ============================================================================


class SuccessResponse(BaseModel):
    """Base for successful responses."""

    success: bool = Field(default=True, description="Always true for successful responses")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    success: bool = Field(default=False, description="Always false for errors")
    error: str = Field(..., description="Human-readable error message")
    error_code: str = Field(..., description="Machine-readable error code")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional error details")
    request_id: str | None = Field(default=None, description="Request ID for correlation")


class PaginationSchema(BaseModel):
    """Pagination metadata."""

    total: int = Field(..., description="Total number of matching items")
    limit: int = Field(..., description="Items per page")
    skip: int = Field(..., description="Items skipped")
    page: int = Field(..., description="Current page number (1-based)")
    total_pages: int = Field(..., description="Number of pages")
    has_more: bool = Field(..., description="Whether there are more pages")


class DeletedResponse(SuccessResponse):
    id: str
    deleted: bool = True


# A reference may be sent as a bare id or as a populated object with an "id".
RefInput = str | dict[str, Any]


# ============================================================================
# Taxonomy Schemas
# ============================================================================


class TaxonomyNodeCreateRequest(BaseModel):
    """Request to create a category or brand node."""

    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    level: str = Field(..., description="department, category, subcategory or type")
    parent_id: str | None = Field(default=None, description="Parent node, required below department")
    slug: str | None = Field(default=None, description="Explicit slug, derived from name when omitted")
    tagline: str = Field(default="", max_length=300)
    description: str = Field(default="")
    image: str = Field(default="")


class TaxonomyNodeUpdateRequest(BaseModel):
    """Request to update a node. Only supplied fields change.

    Sending ``parent_id: null`` explicitly moves the node to the top level.
    """

    name: str | None = Field(default=None, max_length=200)
    level: str | None = None
    parent_id: str | None = None
    slug: str | None = None
    tagline: str | None = None
    description: str | None = None
    image: str | None = None


class TaxonomyNodeSchema(BaseModel):
    """A category or brand node."""

    id: str
    kind: str
    slug: str
    name: str
    level: str
    parent_id: str | None = None
    tagline: str = ""
    description: str = ""
    image: str = ""
    created_at: datetime
    updated_at: datetime


class TaxonomyTreeNodeSchema(TaxonomyNodeSchema):
    """A node with its nested children."""

    children: list["TaxonomyTreeNodeSchema"] = Field(default_factory=list)


class TaxonomyNodeResponse(SuccessResponse):
    item: TaxonomyNodeSchema


class TaxonomyListResponse(SuccessResponse):
    items: list[TaxonomyNodeSchema]
    total: int


class TaxonomyTreeResponse(SuccessResponse):
    tree: list[TaxonomyTreeNodeSchema]


class AncestryResponse(SuccessResponse):
    """Path from the root down to a node."""

    node_id: str
    chain: list[TaxonomyNodeSchema] = Field(..., description="Root first, node last")
    levels: dict[str, TaxonomyNodeSchema] = Field(..., description="Level name to node")


class DescendantsResponse(SuccessResponse):
    node_id: str
    descendant_ids: list[str]


# ============================================================================
# Business Type Schemas
# ============================================================================


class BusinessTypeCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: str | None = None
    description: str = ""
    image: str = ""
    display_order: int = 0


class BusinessTypeUpdateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    slug: str | None = None
    description: str | None = None
    image: str | None = None
    display_order: int | None = None


class BusinessTypeSchema(BaseModel):
    id: str
    slug: str
    name: str
    description: str = ""
    image: str = ""
    display_order: int = 0
    created_at: datetime
    updated_at: datetime


class BusinessTypeResponse(SuccessResponse):
    business_type: BusinessTypeSchema


class BusinessTypeListResponse(SuccessResponse):
    business_types: list[BusinessTypeSchema]
    total: int


# ============================================================================
# Product Schemas
# ============================================================================


class SpecificationSchema(BaseModel):
    label: str = Field(..., description="Specification name, e.g. Diameter")
    value: str = Field(..., description="Specification value")
    unit: str | None = Field(default=None, description="Optional unit, e.g. cm")


class FilterGroupSchema(BaseModel):
    key: str = Field(..., description="Filter name, e.g. Material")
    values: list[str] = Field(default_factory=list)


class ColorVariantSchema(BaseModel):
    color_name: str
    color_hex: str = ""
    images: list[str] = Field(default_factory=list)
    is_default: bool = False


class ProductFieldsBase(BaseModel):
    """Optional product fields shared by create, update and drafts."""

    slug: str | None = None
    brand: str | None = None
    sku: str | None = None
    price: int | None = Field(default=None, description="Whole amount; 0 or null means price on request")
    summary: str | None = None
    description: str | None = None
    status: str | None = Field(default=None, description="in-stock, out-of-stock or pre-order")
    featured: bool | None = None
    premium: bool | None = None
    gallery_images: list[str] | None = None
    category_id: RefInput | None = None
    additional_category_ids: list[RefInput] | None = None
    brand_category_id: RefInput | None = None
    additional_brand_category_ids: list[RefInput] | None = None
    business_type_slugs: list[str] | None = None
    specifications: list[SpecificationSchema] | None = None
    filters: list[FilterGroupSchema] | dict[str, list[str]] | None = Field(
        default=None,
        description="List of {key, values}, or a legacy object of arrays",
    )
    color_variants: list[ColorVariantSchema] | None = None
    related_product_ids: list[RefInput] | None = None
    manual_tags: list[str] | None = None


class ProductCreateRequest(ProductFieldsBase):
    """Request to create a product."""

    title: str = Field(..., description="Product title")
    hero_image: str = Field(..., description="Main image URL")


class ProductUpdateRequest(ProductFieldsBase):
    """Request to update a product. Only supplied fields change."""

    title: str | None = None
    hero_image: str | None = None


class ProductDraftRequest(ProductFieldsBase):
    """Unsaved product fields for tag and related-product previews."""

    id: str | None = Field(default=None, description="Stored product the draft stands for")
    title: str | None = None
    hero_image: str | None = None
    tags: list[str] | None = None


class ProductSummarySchema(BaseModel):
    """Compact product view for related lists and dashboards."""

    id: str
    slug: str
    title: str
    brand: str = ""
    price: int | None = None
    price_on_request: bool
    hero_image: str
    status: str
    featured: bool = False


class ProductSchema(BaseModel):
    """Full product representation."""

    id: str
    slug: str
    title: str
    brand: str = ""
    sku: str = ""
    price: int | None = None
    price_on_request: bool
    summary: str = ""
    description: str = ""
    status: str
    featured: bool = False
    premium: bool = False
    hero_image: str
    gallery_images: list[str] = Field(default_factory=list)
    category_id: str | None = None
    additional_category_ids: list[str] = Field(default_factory=list)
    brand_category_id: str | None = None
    additional_brand_category_ids: list[str] = Field(default_factory=list)
    business_type_slugs: list[str] = Field(default_factory=list)
    specifications: list[SpecificationSchema] = Field(default_factory=list)
    filters: list[FilterGroupSchema] = Field(default_factory=list)
    color_variants: list[ColorVariantSchema] = Field(default_factory=list)
    default_color: str | None = None
    related_product_ids: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    manual_tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ProductDetailSchema(ProductSchema):
    """Product with its related products resolved."""

    related_products: list[ProductSummarySchema] = Field(default_factory=list)


class ProductResponse(SuccessResponse):
    product: ProductDetailSchema


class ProductListResponse(SuccessResponse):
    products: list[ProductSchema]
    pagination: PaginationSchema
    status_counts: dict[str, int] = Field(default_factory=dict, description="Counts ignoring the status filter")


class FacetCountSchema(BaseModel):
    value: str
    count: int


class BrandFacetSchema(BaseModel):
    name: str
    count: int


class PriceRangeSchema(BaseModel):
    min: int
    max: int


class FacetsSchema(BaseModel):
    """Filter options available for the current product set."""

    colors: list[str]
    brands: list[BrandFacetSchema]
    filters: dict[str, list[FacetCountSchema]]
    specs: dict[str, list[FacetCountSchema]]
    statuses: dict[str, int]
    price_range: PriceRangeSchema
    total_products: int


class FacetsResponse(SuccessResponse):
    facets: FacetsSchema


class TagsResponse(SuccessResponse):
    tags: list[str]


class RelatedCandidateSchema(BaseModel):
    product_id: str
    slug: str
    title: str
    hero_image: str
    price: int | None = None
    score: int
    reasons: list[str] = Field(default_factory=list)
    high_match: bool
    selected: bool = False


class RelatedCandidatesResponse(SuccessResponse):
    candidates: list[RelatedCandidateSchema]
    total: int


class AutoSuggestResponse(SuccessResponse):
    product_ids: list[str]
    candidates: list[RelatedCandidateSchema]
    message: str | None = None
    applied: bool = False


class BulkIdsRequest(BaseModel):
    product_ids: list[str] = Field(..., min_length=1)


class BulkFeaturedRequest(BulkIdsRequest):
    featured: bool


class BulkStatusRequest(BulkIdsRequest):
    status: str


class BulkItemSchema(BaseModel):
    product_id: str
    success: bool
    error: str | None = None
    error_code: str | None = None


class BulkOperationResponse(SuccessResponse):
    """Per-item outcomes; the request succeeds even if some items fail."""

    operation: str
    succeeded: int
    failed: int
    results: list[BulkItemSchema]


class LegacyFiltersRequest(BaseModel):
    filters: dict[str, list[str]] = Field(default_factory=dict, description="Legacy object-of-arrays filters")


class LegacyFiltersResponse(SuccessResponse):
    filters: list[FilterGroupSchema]


# ============================================================================
# Cart and Wishlist Schemas
# ============================================================================


class CartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, description="Units to add, at least 1")
    color_name: str | None = None


class CartQuantityRequest(BaseModel):
    product_id: str
    quantity: int = Field(..., description="New quantity; 0 removes the line")
    color_name: str | None = None


class CartLineSchema(BaseModel):
    product_id: str
    product_name: str
    slug: str = ""
    image: str = ""
    color_name: str | None = None
    unit_price: int | None = None
    quantity: int
    line_total: int


class ShippingProgressSchema(BaseModel):
    threshold: int
    progress_fraction: float
    remaining_to_threshold: int
    eligible: bool


class CartSchema(BaseModel):
    session_id: str
    items: list[CartLineSchema]
    total_items: int
    total_price: int
    shipping: ShippingProgressSchema
    updated_at: datetime


class CartResponse(SuccessResponse):
    cart: CartSchema


class ShippingResponse(SuccessResponse):
    shipping: ShippingProgressSchema


class WishlistRequest(BaseModel):
    product_id: str


class WishlistSchema(BaseModel):
    session_id: str
    product_ids: list[str]
    total: int


class WishlistResponse(SuccessResponse):
    wishlist: WishlistSchema


# ============================================================================
# Enquiry Schemas
# ============================================================================


class EnquiryLineRequest(BaseModel):
    product_id: str | None = None
    product_name: str = ""
    quantity: int = Field(default=1, ge=1)
    color_name: str | None = None
    notes: str = ""


class EnquiryCreateRequest(BaseModel):
    """Storefront enquiry submission."""

    phone: str = Field(..., description="Contact phone, required")
    name: str = ""
    email: str = ""
    company: str = ""
    state: str = ""
    source: str = "website-form"
    user_type: str = Field(default="unknown", description="unknown, customer or business")
    categories: list[str] = Field(default_factory=list)
    message: str = ""
    products: list[EnquiryLineRequest] = Field(default_factory=list)
    attached_cart_snapshot: list[EnquiryLineRequest] = Field(default_factory=list)
    use_session_cart: bool = Field(
        default=False,
        description="Take lines from the X-Session-ID cart when no lines are given",
    )


class EnquiryUpdateRequest(BaseModel):
    status: str | None = None
    priority: str | None = None
    assigned_to: str | None = None
    notes: str | None = None


class EnquiryMessageRequest(BaseModel):
    message: str = Field(..., description="Log entry text")
    sender: str = Field(default="admin", description="admin, customer or system")
    channel: str = Field(default="internal-note", description="whatsapp, email, phone, internal-note or system")
    created_by: str = ""


class EnquiryItemSchema(BaseModel):
    id: str
    product_id: str | None = None
    product_name: str
    quantity: int
    color_name: str | None = None
    notes: str = ""


class EnquiryMessageSchema(BaseModel):
    id: str
    sender: str
    channel: str
    message: str
    created_by: str = ""
    created_at: datetime


class EnquirySchema(BaseModel):
    id: str
    human_enquiry_id: str
    phone: str
    name: str = ""
    email: str = ""
    company: str = ""
    state: str = ""
    customer_id: str | None = None
    source: str
    user_type: str
    type: str
    categories: list[str] = Field(default_factory=list)
    message: str = ""
    priority: str
    status: str
    assigned_to: str = ""
    notes: str = ""
    items: list[EnquiryItemSchema] = Field(default_factory=list)
    messages: list[EnquiryMessageSchema] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class EnquiryResponse(SuccessResponse):
    enquiry: EnquirySchema


class EnquiryListResponse(SuccessResponse):
    enquiries: list[EnquirySchema]
    pagination: PaginationSchema
    status_counts: dict[str, int] = Field(default_factory=dict)


class EnquiryMessageResponse(SuccessResponse):
    message: EnquiryMessageSchema


class EnquiryMessagesResponse(SuccessResponse):
    messages: list[EnquiryMessageSchema]
    total: int


class WhatsAppLinkResponse(SuccessResponse):
    customer_link: str | None = None
    business_link: str | None = None


# ============================================================================
# Admin, AI and Upload Schemas
# ============================================================================


class StatusCountSchema(BaseModel):
    status: str
    count: int


class AdminStatsSchema(BaseModel):
    total_products: int
    total_categories: int
    total_brands: int
    total_business_types: int
    featured_products: int
    in_stock: int
    out_of_stock: int
    pre_order: int
    status_distribution: list[StatusCountSchema]
    recent_products: list[ProductSummarySchema]
    enquiries_by_status: dict[str, int]


class AdminStatsResponse(SuccessResponse):
    stats: AdminStatsSchema


class AIGenerateRequest(BaseModel):
    """Request to generate or enhance product copy."""

    mode: str = Field(default="generate", description="generate or enhance")
    field: str = Field(default="summary", description="summary or description")
    existing_text: str = ""
    title: str = ""
    brand: str = ""
    sku: str = ""
    category_id: str | None = None
    brand_category_id: str | None = None
    business_type_slugs: list[str] = Field(default_factory=list)
    specifications: list[SpecificationSchema] = Field(default_factory=list)
    filters: list[FilterGroupSchema] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class AIGenerateResponse(SuccessResponse):
    text: str
    field: str
    mode: str


class UploadResponse(SuccessResponse):
    url: str
    filename: str
    content_type: str
    size: int


# ============================================================================
# Health Schemas
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Current server time")


class ReadyResponse(BaseModel):
    """Readiness check response."""

    status: str = Field(..., description="Readiness status")
    checks: dict[str, Any] = Field(default_factory=dict, description="Individual check results")
