"""Catalog service for product operations.

High-level service that combines the product repository, the taxonomy and
business-type stores, the tag pipeline and the related-products engine.
Every create and update normalizes the slug, validates references, runs the
tag pipeline and persists the result as a whole.
"""

import asyncio
import copy
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import structlog

from horeca.catalog.business_types import BusinessTypeStore, get_business_type_repository
from horeca.catalog.related import RelatedCandidate, RelatedProductsEngine
from horeca.catalog.repository import ProductRepository, get_product_repository
from horeca.catalog.search import (
    PaginatedResult,
    PaginationParams,
    ProductFilter,
    ProductSearch,
    SortOrder,
)
from horeca.catalog.slugs import slugify, unique_slug
from horeca.catalog.tags import TagPipeline
from horeca.catalog.taxonomy import TaxonomyStore, get_taxonomy_repository
from horeca.domain.base import new_id
from horeca.domain.entities import Product
from horeca.domain.exceptions import DomainError, NotFoundError, ValidationError
from horeca.domain.value_objects import (
    ColorVariant,
    FilterGroup,
    ProductStatus,
    Specification,
    TaxonomyKind,
    ensure_required_filters,
    filters_from_legacy,
    hydrate_ref,
    hydrate_refs,
)

logger = structlog.get_logger()

# Fields a client may set on a product.
PRODUCT_INPUT_FIELDS = frozenset({
    "title", "hero_image", "slug", "brand", "sku", "price", "summary",
    "description", "status", "featured", "premium", "gallery_images",
    "category_id", "additional_category_ids", "brand_category_id",
    "additional_brand_category_ids", "business_type_slugs", "specifications",
    "filters", "color_variants", "related_product_ids", "manual_tags",
})


# ============================================================================
# Store Factories
# ============================================================================


def _count_taxonomy_usage(kind: TaxonomyKind, node_id: str) -> int:
    return get_product_repository().count_referencing(kind, node_id)


def _count_business_type_usage(slug: str) -> int:
    return get_product_repository().count_with_business_type(slug)


def get_category_store() -> TaxonomyStore:
    """Get the category store wired to product usage counts."""
    return TaxonomyStore(
        TaxonomyKind.CATEGORY,
        repository=get_taxonomy_repository(TaxonomyKind.CATEGORY),
        usage_counter=_count_taxonomy_usage,
    )


def get_brand_store() -> TaxonomyStore:
    """Get the brand store wired to product usage counts."""
    return TaxonomyStore(
        TaxonomyKind.BRAND,
        repository=get_taxonomy_repository(TaxonomyKind.BRAND),
        usage_counter=_count_taxonomy_usage,
    )


def get_taxonomy_store(kind: TaxonomyKind) -> TaxonomyStore:
    return get_category_store() if kind is TaxonomyKind.CATEGORY else get_brand_store()


def get_business_type_store() -> BusinessTypeStore:
    """Get the business type store wired to product usage counts."""
    return BusinessTypeStore(
        repository=get_business_type_repository(),
        usage_counter=_count_business_type_usage,
    )


# ============================================================================
# Input Coercion
# ============================================================================


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return dict(vars(value))


def coerce_specifications(values: Any) -> list[Specification]:
    specs = []
    for value in values or []:
        if isinstance(value, Specification):
            specs.append(value)
            continue
        data = _as_dict(value)
        specs.append(
            Specification(
                label=str(data.get("label", "")),
                value=str(data.get("value", "")),
                unit=data.get("unit") or None,
            )
        )
    return specs


def coerce_filters(values: Any) -> list[FilterGroup]:
    """Accept filters as a list of {key, values} or a legacy object-of-arrays."""
    if isinstance(values, dict):
        return filters_from_legacy(values)
    groups = []
    for value in values or []:
        if isinstance(value, FilterGroup):
            groups.append(value)
            continue
        data = _as_dict(value)
        groups.append(FilterGroup(key=str(data.get("key", "")), values=tuple(data.get("values") or ())))
    return ensure_required_filters(groups)


def coerce_color_variants(values: Any) -> list[ColorVariant]:
    variants = []
    for value in values or []:
        if isinstance(value, ColorVariant):
            variants.append(value)
            continue
        data = _as_dict(value)
        variants.append(
            ColorVariant(
                color_name=str(data.get("color_name", "")),
                color_hex=data.get("color_hex") or "",
                images=tuple(data.get("images") or ()),
                is_default=bool(data.get("is_default", False)),
            )
        )
    return variants


def coerce_product_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Convert raw input into Product attribute values.

    References are hydrated from id strings or populated objects, nested
    structures become value objects, and status strings are parsed.

    Args:
        data: Raw field mapping; None values are dropped.

    Returns:
        Mapping ready for Product.create or Product.apply_changes.

    Raises:
        ValidationError: On an unknown field or malformed value.
    """
    result: dict[str, Any] = {}
    for name, value in data.items():
        if value is None:
            continue
        if name not in PRODUCT_INPUT_FIELDS:
            raise ValidationError(f"Unknown product field '{name}'", field=name)
        if name in ("category_id", "brand_category_id"):
            result[name] = hydrate_ref(value)
        elif name in ("additional_category_ids", "additional_brand_category_ids", "related_product_ids"):
            result[name] = hydrate_refs(value)
        elif name == "specifications":
            result[name] = coerce_specifications(value)
        elif name == "filters":
            result[name] = coerce_filters(value)
        elif name == "color_variants":
            result[name] = coerce_color_variants(value)
        elif name == "status":
            result[name] = value if isinstance(value, ProductStatus) else ProductStatus.parse(str(value))
        elif name in ("gallery_images", "business_type_slugs", "manual_tags"):
            result[name] = [str(v) for v in value if str(v).strip()]
        else:
            result[name] = value
    return result


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class BulkItemResult:
    """Outcome of one item in a bulk operation."""

    product_id: str
    success: bool = True
    error: str | None = None
    error_code: str | None = None


@dataclass
class BulkOperationResult:
    """Aggregate outcome of a bulk operation."""

    operation: str
    results: list[BulkItemResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded


@dataclass
class AutoSuggestion:
    """Auto-suggested related products and, when empty, a hint for the admin."""

    candidates: list[RelatedCandidate] = field(default_factory=list)
    message: str | None = None
    applied: bool = False


# ============================================================================
# Catalog Service
# ============================================================================


class CatalogService:
    """Service for catalog product operations.

    Example usage:
        service = get_catalog_service(request_id)
        product = await service.create_product({"title": "Brass Handi", "hero_image": url})
        page = await service.list_products(ProductFilter(text="handi"), PaginationParams())
        ranked = await service.related_for(product.id)
    """

    def __init__(
        self,
        products: ProductRepository | None = None,
        categories: TaxonomyStore | None = None,
        brands: TaxonomyStore | None = None,
        business_types: BusinessTypeStore | None = None,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            products: Product repository.
            categories: Category store.
            brands: Brand store.
            business_types: Business type store.
            request_id: Request ID for correlation.
        """
        self.products = products or get_product_repository()
        self.categories = categories or get_category_store()
        self.brands = brands or get_brand_store()
        self.business_types = business_types or get_business_type_store()
        self.request_id = request_id
        self.tags = TagPipeline(self.categories, self.brands, self.business_types.name_for)
        self.related = RelatedProductsEngine(self.categories)
        self.search = ProductSearch(self.products, self.categories, self.brands)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_product(self, product_id: str) -> Product:
        """Get a product by id.

        Raises:
            NotFoundError: If it does not exist.
        """
        product = self.products.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return self._without_dangling(product)

    async def get_product_by_slug(self, slug: str) -> Product:
        """Get a product by slug.

        Raises:
            NotFoundError: If it does not exist.
        """
        product = self.products.get_by_slug(slug)
        if product is None:
            raise NotFoundError("Product", slug, by="slug")
        return self._without_dangling(product)

    async def list_products(
        self,
        criteria: ProductFilter,
        pagination: PaginationParams,
        sort: SortOrder = SortOrder.NEWEST,
    ) -> PaginatedResult[Product]:
        """Search products with filters, sort and pagination."""
        result = self.search.search(criteria, pagination, sort)
        result.items = [self._without_dangling(p) for p in result.items]
        return result

    async def facets(self, criteria: ProductFilter) -> dict[str, Any]:
        return self.search.facets(criteria)

    async def related_products(self, product: Product) -> list[Product]:
        """Resolve a product's related ids to products, skipping dangling ones."""
        return self.products.get_many(product.related_product_ids)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def create_product(self, data: dict[str, Any]) -> Product:
        """Create a product.

        Args:
            data: Product fields; title and hero_image are required.

        Returns:
            The stored product with generated slug and tags.

        Raises:
            ValidationError: On missing fields or unknown references.
        """
        fields = coerce_product_fields(data)
        if not str(fields.get("title", "")).strip():
            raise ValidationError("Title is required", field="title")
        fields.setdefault("hero_image", "")
        fields.setdefault("filters", ensure_required_filters([]))
        fields["slug"] = self._resolve_slug(fields.get("slug"), fields.get("title", ""))

        product = Product.create(**fields)
        self._validate_references(product, check_related=True)
        self.tags.apply_on_save(product)
        self.products.save(product)

        logger.info(
            "Product created",
            product_id=product.id,
            slug=product.slug,
            tag_count=len(product.tags),
            request_id=self.request_id,
        )
        return product

    async def update_product(self, product_id: str, changes: dict[str, Any]) -> Product:
        """Update a product; all changes persist together or not at all.

        A title change without an explicit slug regenerates the slug.

        Args:
            product_id: Product to update.
            changes: Fields to change.

        Returns:
            The stored product.

        Raises:
            NotFoundError: If the product does not exist.
            ValidationError: On invalid values or unknown references.
            SelfReferenceError: If the product would list itself as related.
        """
        current = self.products.get(product_id)
        if current is None:
            raise NotFoundError("Product", product_id)

        fields = coerce_product_fields(changes)
        if "slug" in fields:
            fields["slug"] = self._resolve_slug(fields["slug"], fields.get("title", current.title), product_id)
        elif "title" in fields and fields["title"] != current.title:
            fields["slug"] = self._resolve_slug(None, fields["title"], product_id)

        draft = copy.deepcopy(current)
        draft.collect_events()
        changed = draft.apply_changes(fields)
        self._validate_references(draft, check_related="related_product_ids" in fields)
        self.tags.apply_on_save(draft)
        self.products.save(draft)

        logger.info(
            "Product updated",
            product_id=product_id,
            changed_fields=changed,
            request_id=self.request_id,
        )
        return draft

    async def delete_product(self, product_id: str) -> Product:
        """Delete a product and drop it from other products' related lists.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = self.products.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        self.products.delete(product_id)
        for other in self.products.referencing_related(product_id):
            updated = copy.deepcopy(other)
            updated.remove_related(product_id)
            self.products.save(updated)

        logger.info("Product deleted", product_id=product_id, slug=product.slug, request_id=self.request_id)
        return product

    # -------------------------------------------------------------------------
    # Bulk Operations
    # -------------------------------------------------------------------------

    async def bulk_set_featured(self, product_ids: list[str], featured: bool) -> BulkOperationResult:
        return await self._run_bulk(
            "featured",
            product_ids,
            lambda pid: self.update_product(pid, {"featured": featured}),
        )

    async def bulk_set_status(self, product_ids: list[str], status: ProductStatus | str) -> BulkOperationResult:
        parsed = status if isinstance(status, ProductStatus) else ProductStatus.parse(status)
        return await self._run_bulk(
            "status",
            product_ids,
            lambda pid: self.update_product(pid, {"status": parsed}),
        )

    async def bulk_delete(self, product_ids: list[str]) -> BulkOperationResult:
        return await self._run_bulk("delete", product_ids, self.delete_product)

    async def _run_bulk(
        self,
        operation: str,
        product_ids: list[str],
        action: Callable[[str], Awaitable[Product]],
    ) -> BulkOperationResult:
        """Run an action for each id independently and collect per-item outcomes."""
        unique_ids = list(dict.fromkeys(product_ids))
        outcomes = await asyncio.gather(
            *(action(pid) for pid in unique_ids),
            return_exceptions=True,
        )

        result = BulkOperationResult(operation=operation)
        for pid, outcome in zip(unique_ids, outcomes):
            if isinstance(outcome, DomainError):
                logger.warning(
                    "Bulk item failed",
                    operation=operation,
                    product_id=pid,
                    error=outcome.message,
                    request_id=self.request_id,
                )
                result.results.append(
                    BulkItemResult(product_id=pid, success=False, error=outcome.message, error_code=outcome.error_code)
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.results.append(BulkItemResult(product_id=pid))

        logger.info(
            "Bulk operation completed",
            operation=operation,
            succeeded=result.succeeded,
            failed=result.failed,
            request_id=self.request_id,
        )
        return result

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    async def preview_tags(self, draft: dict[str, Any]) -> list[str]:
        """Run the automatic tag pipeline over unsaved product fields."""
        product = self.build_draft(draft)
        return self.tags.apply_on_save(product)

    async def generate_tags(self, product_id: str) -> Product:
        """Manual run: merge freshly generated tags into a product's tags.

        Raises:
            NotFoundError: If the product does not exist.
        """
        current = self.products.get(product_id)
        if current is None:
            raise NotFoundError("Product", product_id)
        product = copy.deepcopy(current)
        self.tags.merge_manual(product)
        self.products.save(product)
        return product

    # -------------------------------------------------------------------------
    # Related Products
    # -------------------------------------------------------------------------

    async def related_for(self, product_id: str, limit: int | None = None) -> list[RelatedCandidate]:
        """Ranked related candidates for a stored product."""
        product = await self.get_product(product_id)
        return self.related.rank(product, self.products.list_all(), limit)

    async def related_preview(self, draft: dict[str, Any], limit: int | None = None) -> list[RelatedCandidate]:
        """Ranked related candidates for unsaved product fields.

        Tags are generated for the draft first when it carries none.
        """
        product = self.build_draft(draft)
        if not product.tags:
            self.tags.apply_on_save(product)
        return self.related.rank(product, self.products.list_all(), limit)

    async def auto_suggest(self, product_id: str, apply: bool = False) -> AutoSuggestion:
        """Suggest related products, optionally adding them to the product.

        With ``apply`` the suggested ids are unioned into the product's
        related_product_ids through a regular update.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await self.get_product(product_id)
        candidates = self.related.auto_suggest(product, self.products.list_all())
        if not candidates:
            return AutoSuggestion(message=self.related.empty_suggestion_message(product))

        if not apply:
            return AutoSuggestion(candidates=candidates)
        related = list(product.related_product_ids)
        related.extend(c.product.id for c in candidates if c.product.id not in related)
        if related != product.related_product_ids:
            await self.update_product(product_id, {"related_product_ids": related})
        return AutoSuggestion(candidates=candidates, applied=True)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def build_draft(self, data: dict[str, Any]) -> Product:
        """Build an unvalidated, unsaved product from raw fields.

        An ``id`` key identifies the stored product the draft stands for,
        so that it is excluded from its own related candidates. A ``tags``
        key seeds the draft's tags.
        """
        data = dict(data)
        draft_id = hydrate_ref(data.pop("id", None)) or new_id()
        tags = [str(t) for t in data.pop("tags", None) or []]
        fields = coerce_product_fields(data)
        fields.setdefault("title", "")
        fields.setdefault("hero_image", "")
        product = Product(id=draft_id, **fields)
        product.tags = tags
        return product

    def _resolve_slug(self, slug: str | None, title: str, exclude_id: str | None = None) -> str:
        base = slugify(slug or title)
        if not base:
            raise ValidationError("Cannot derive a slug from the title", field="slug")
        return unique_slug(base, lambda s: self.products.slug_taken(s, exclude_id))

    def _validate_references(self, product: Product, check_related: bool) -> None:
        for category_id in product.category_ids:
            if self.categories.find(category_id) is None:
                raise ValidationError(f"Unknown category '{category_id}'", field="category_id")
        for brand_id in product.brand_ids:
            if self.brands.find(brand_id) is None:
                raise ValidationError(f"Unknown brand '{brand_id}'", field="brand_category_id")
        known = self.business_types.known_slugs()
        unknown = [s for s in product.business_type_slugs if s not in known]
        if unknown:
            raise ValidationError(
                "Unknown business type(s)",
                field="business_type_slugs",
                details={"unknown": unknown},
            )
        if check_related:
            missing = [r for r in product.related_product_ids if not self.products.exists(r)]
            if missing:
                raise ValidationError(
                    "Unknown related product(s)",
                    field="related_product_ids",
                    details={"unknown": missing},
                )

    def _without_dangling(self, product: Product) -> Product:
        live = [r for r in product.related_product_ids if self.products.exists(r)]
        if len(live) == len(product.related_product_ids):
            return product
        view = copy.deepcopy(product)
        view.related_product_ids = live
        return view


def import_legacy_filters(legacy: dict[str, list[str]]) -> list[FilterGroup]:
    """Convert a legacy object-of-arrays filter map to ordered filter groups."""
    return filters_from_legacy(legacy)


def get_catalog_service(request_id: str | None = None) -> CatalogService:
    """Get catalog service instance.

    Args:
        request_id: Request ID for correlation.

    Returns:
        CatalogService instance.
    """
    return CatalogService(request_id=request_id)
