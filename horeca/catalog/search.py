"""Product search, filtering and facets.

Filters, sorts and pages the product set, and computes the facet counts
used by the storefront filter panel and the admin status badges.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from horeca.catalog.repository import ProductRepository
from horeca.catalog.taxonomy import TaxonomyStore
from horeca.domain.entities import Product
from horeca.domain.exceptions import ValidationError
from horeca.domain.value_objects import ProductStatus

T = TypeVar("T")

MAX_PAGE_LIMIT = 100
DEFAULT_PAGE_LIMIT = 20

PREDEFINED_COLORS = (
    "Blue", "Green", "Red", "Yellow", "Purple", "Orange",
    "Pink", "Brown", "Gray", "Black", "White", "Silver",
)

FILTERABLE_SPECS = ("Diameter", "Volume", "Capacity", "Size", "Weight", "Length", "Width", "Height")


class SortOrder(str, Enum):
    """Product list orderings."""

    RELEVANCE = "relevance"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    NEWEST = "newest"


@dataclass
class ProductFilter:
    """Filter parameters for product search.

    Attributes:
        text: Case-insensitive substring over title, brand, tags, summary
            and description.
        category: Category slug; matches primary or additional categories
            and their descendants.
        brand: Brand node slug, matched the same way.
        business_type: Business-type slug.
        filters: Filter key -> accepted values (AND across keys, OR within).
        status: Product status.
        price_min: Minimum price; excludes price-on-request products.
        price_max: Maximum price; excludes price-on-request products.
        featured: Featured flag.
    """

    text: str | None = None
    category: str | None = None
    brand: str | None = None
    business_type: str | None = None
    filters: dict[str, list[str]] = field(default_factory=dict)
    status: ProductStatus | None = None
    price_min: int | None = None
    price_max: int | None = None
    featured: bool | None = None

    def without_status(self) -> "ProductFilter":
        return ProductFilter(
            text=self.text,
            category=self.category,
            brand=self.brand,
            business_type=self.business_type,
            filters=self.filters,
            status=None,
            price_min=self.price_min,
            price_max=self.price_max,
            featured=self.featured,
        )


@dataclass
class PaginationParams:
    """Offset pagination.

    Attributes:
        limit: Page size, 1..100.
        skip: Number of items to skip.
    """

    limit: int = DEFAULT_PAGE_LIMIT
    skip: int = 0

    def __post_init__(self) -> None:
        if self.limit < 1 or self.limit > MAX_PAGE_LIMIT:
            raise ValidationError(
                f"limit must be between 1 and {MAX_PAGE_LIMIT}",
                field="limit",
                details={"limit": self.limit},
            )
        if self.skip < 0:
            raise ValidationError("skip must not be negative", field="skip")

    @property
    def page(self) -> int:
        """1-based page number implied by skip and limit."""
        return self.skip // self.limit + 1


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated result container.

    Attributes:
        items: Items on this page.
        total: Matching items before paging.
        limit: Page size.
        skip: Offset of the first item.
        status_counts: Per-status counts ignoring the status filter.
    """

    items: list[T]
    total: int
    limit: int
    skip: int
    status_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit

    @property
    def has_next(self) -> bool:
        return self.skip + len(self.items) < self.total

    @property
    def has_prev(self) -> bool:
        return self.skip > 0


def parse_filter_params(raw: list[str] | None) -> dict[str, list[str]]:
    """Parse ``Key:v1,v2`` query values into a filter mapping.

    Repeated keys accumulate values.

    Args:
        raw: Query values such as ["Material:Brass,Copper", "Size:30cm"].

    Returns:
        Mapping of key to values.

    Raises:
        ValidationError: If an entry lacks a key or values.
    """
    result: dict[str, list[str]] = {}
    for entry in raw or []:
        key, sep, values = entry.partition(":")
        parsed = [v.strip() for v in values.split(",") if v.strip()]
        if not sep or not key.strip() or not parsed:
            raise ValidationError(
                f"Invalid filter '{entry}', expected Key:value1,value2",
                field="filter",
            )
        result.setdefault(key.strip(), []).extend(parsed)
    return result


class ProductSearch:
    """Filter, sort and page products.

    Example usage:
        search = ProductSearch(repo, categories, brands)
        result = search.search(
            ProductFilter(text="handi", filters={"Material": ["Brass"]}),
            PaginationParams(limit=20),
            SortOrder.RELEVANCE,
        )
    """

    def __init__(
        self,
        repository: ProductRepository,
        categories: TaxonomyStore,
        brands: TaxonomyStore,
    ) -> None:
        self.repository = repository
        self.categories = categories
        self.brands = brands

    # -------------------------------------------------------------------------
    # Filtering
    # -------------------------------------------------------------------------

    def filter_products(self, criteria: ProductFilter) -> list[Product]:
        """Apply every criterion.

        Args:
            criteria: Filter parameters.

        Returns:
            Matching products in store order.

        Raises:
            NotFoundError: If a category or brand slug is unknown.
        """
        category_ids = (
            self.categories.descendant_ids(self.categories.find_by_slug(criteria.category).id)
            if criteria.category
            else None
        )
        brand_ids = (
            self.brands.descendant_ids(self.brands.find_by_slug(criteria.brand).id)
            if criteria.brand
            else None
        )
        wanted_filters = {
            key.lower(): {v.lower() for v in values}
            for key, values in criteria.filters.items()
            if values
        }
        text = criteria.text.strip().lower() if criteria.text and criteria.text.strip() else None

        result = []
        for product in self.repository.list_all():
            if category_ids is not None and not category_ids.intersection(product.category_ids):
                continue
            if brand_ids is not None and not brand_ids.intersection(product.brand_ids):
                continue
            if criteria.business_type and criteria.business_type not in product.business_type_slugs:
                continue
            if criteria.status is not None and product.status != criteria.status:
                continue
            if criteria.featured is not None and product.featured != criteria.featured:
                continue
            if criteria.price_min is not None and (product.price_on_request or product.price < criteria.price_min):
                continue
            if criteria.price_max is not None and (product.price_on_request or product.price > criteria.price_max):
                continue
            if wanted_filters and not self._matches_filters(product, wanted_filters):
                continue
            if text and self._text_rank(product, text) is None:
                continue
            result.append(product)
        return result

    @staticmethod
    def _matches_filters(product: Product, wanted: dict[str, set[str]]) -> bool:
        groups = {group.key.lower(): group for group in product.filters}
        for key, values in wanted.items():
            group = groups.get(key)
            if group is None or not group.matches_any(values):
                return False
        return True

    @staticmethod
    def _text_rank(product: Product, text: str) -> int | None:
        """Relevance tier for a text match.

        Returns:
            0 for a title match, 1 for an exact tag match, 2 for any other
            field match, None when nothing matches.
        """
        if text in product.title.lower():
            return 0
        tags = [t.lower() for t in product.tags]
        if text in tags:
            return 1
        fields = [product.brand, product.summary, product.description, *tags]
        if any(text in (value or "").lower() for value in fields):
            return 2
        return None

    # -------------------------------------------------------------------------
    # Sorting and Paging
    # -------------------------------------------------------------------------

    def sort_products(
        self,
        products: list[Product],
        sort: SortOrder,
        text: str | None = None,
    ) -> list[Product]:
        """Order products.

        Price-on-request products always sort after priced ones. Relevance
        without text is newest-first.
        """
        newest = sorted(products, key=lambda p: p.created_at, reverse=True)
        if sort == SortOrder.PRICE_ASC:
            return sorted(newest, key=lambda p: (p.price_on_request, p.price or 0))
        if sort == SortOrder.PRICE_DESC:
            return sorted(newest, key=lambda p: (p.price_on_request, -(p.price or 0)))
        if sort == SortOrder.RELEVANCE and text and text.strip():
            needle = text.strip().lower()
            return sorted(newest, key=lambda p: self._text_rank(p, needle) or 0)
        return newest

    def status_counts(self, criteria: ProductFilter) -> dict[str, int]:
        """Per-status counts over the filtered set, ignoring the status filter."""
        counts = {status.value: 0 for status in ProductStatus}
        for product in self.filter_products(criteria.without_status()):
            counts[product.status.value] += 1
        return counts

    def search(
        self,
        criteria: ProductFilter,
        pagination: PaginationParams,
        sort: SortOrder = SortOrder.NEWEST,
    ) -> PaginatedResult[Product]:
        """Filter, sort and page products.

        Args:
            criteria: Filter parameters.
            pagination: Limit and skip.
            sort: Ordering.

        Returns:
            Page of products with total and per-status counts.
        """
        matched = self.filter_products(criteria)
        ordered = self.sort_products(matched, sort, criteria.text)
        page = ordered[pagination.skip : pagination.skip + pagination.limit]
        return PaginatedResult(
            items=page,
            total=len(matched),
            limit=pagination.limit,
            skip=pagination.skip,
            status_counts=self.status_counts(criteria),
        )

    # -------------------------------------------------------------------------
    # Facets
    # -------------------------------------------------------------------------

    def facets(self, criteria: ProductFilter) -> dict[str, Any]:
        """Available filter options for the products matching criteria.

        Statuses are counted ignoring the status filter, like status_counts.

        Returns:
            Mapping with colors, brands, filters, specs, statuses,
            price_range and total_products.
        """
        products = self.filter_products(criteria)
        colors: set[str] = set()
        brands: dict[str, int] = {}
        filters: dict[str, dict[str, int]] = {}
        specs: dict[str, dict[str, int]] = {}
        prices = [p.price for p in products if p.price]

        for product in products:
            for variant in product.color_variants:
                if variant.color_name in PREDEFINED_COLORS:
                    colors.add(variant.color_name)
            if product.brand.strip():
                name = product.brand.strip()
                brands[name] = brands.get(name, 0) + 1
            for group in product.filters:
                bucket = filters.setdefault(group.key, {})
                for value in group.values:
                    bucket[value] = bucket.get(value, 0) + 1
            for spec in product.specifications:
                if spec.label in FILTERABLE_SPECS and spec.value.strip():
                    bucket = specs.setdefault(spec.label, {})
                    display = spec.display()
                    bucket[display] = bucket.get(display, 0) + 1

        return {
            "colors": [c for c in PREDEFINED_COLORS if c in colors],
            "brands": [{"name": name, "count": count} for name, count in sorted(brands.items())],
            "filters": {
                key: [{"value": v, "count": c} for v, c in sorted(values.items())]
                for key, values in filters.items()
                if values
            },
            "specs": {
                label: [{"value": v, "count": c} for v, c in sorted(values.items())]
                for label, values in specs.items()
            },
            "statuses": self.status_counts(criteria),
            "price_range": {
                "min": min(prices) if prices else 0,
                "max": max(prices) if prices else 0,
            },
            "total_products": len(products),
        }
