"""Product repository.

In-memory store of Product aggregates with slug and taxonomy-reference
lookups. In production, this would be replaced with database persistence
over the ``products`` table.
"""

from horeca.domain.entities import Product
from horeca.domain.value_objects import TaxonomyKind


class ProductRepository:
    """Repository for Product aggregates.

    Example usage:
        repo = get_product_repository()
        repo.save(product)
        repo.get_by_slug("premium-brass-biryani-handi")
    """

    def __init__(self) -> None:
        self._products: dict[str, Product] = {}
        self._by_slug: dict[str, str] = {}

    def save(self, product: Product) -> Product:
        """Save a product, re-indexing its slug.

        Args:
            product: Product to save.

        Returns:
            Saved product.
        """
        previous = self._products.get(product.id)
        if previous is not None and previous.slug != product.slug:
            self._by_slug.pop(previous.slug, None)
        self._products[product.id] = product
        self._by_slug[product.slug] = product.id
        return product

    def get(self, product_id: str) -> Product | None:
        return self._products.get(product_id)

    def get_by_slug(self, slug: str) -> Product | None:
        product_id = self._by_slug.get(slug)
        return self._products.get(product_id) if product_id else None

    def get_many(self, product_ids: list[str]) -> list[Product]:
        """Resolve ids in order, silently skipping unknown ones."""
        return [self._products[pid] for pid in product_ids if pid in self._products]

    def exists(self, product_id: str) -> bool:
        return product_id in self._products

    def slug_taken(self, slug: str, exclude_id: str | None = None) -> bool:
        """Check whether a slug belongs to a product other than exclude_id."""
        owner = self._by_slug.get(slug)
        return owner is not None and owner != exclude_id

    def delete(self, product_id: str) -> Product | None:
        product = self._products.pop(product_id, None)
        if product is not None:
            self._by_slug.pop(product.slug, None)
        return product

    def list_all(self) -> list[Product]:
        return list(self._products.values())

    def count(self) -> int:
        return len(self._products)

    def count_referencing(self, kind: TaxonomyKind, node_id: str) -> int:
        """Count products referencing a taxonomy node as primary or additional.

        Args:
            kind: Taxonomy kind of the node.
            node_id: Node id.

        Returns:
            Number of referencing products.
        """
        if kind is TaxonomyKind.CATEGORY:
            return sum(1 for p in self._products.values() if node_id in p.category_ids)
        return sum(1 for p in self._products.values() if node_id in p.brand_ids)

    def count_with_business_type(self, slug: str) -> int:
        return sum(1 for p in self._products.values() if slug in p.business_type_slugs)

    def referencing_related(self, product_id: str) -> list[Product]:
        """Products listing product_id among their related products."""
        return [p for p in self._products.values() if product_id in p.related_product_ids]


_product_repo: ProductRepository | None = None


def get_product_repository() -> ProductRepository:
    """Get product repository singleton."""
    global _product_repo
    if _product_repo is None:
        _product_repo = ProductRepository()
    return _product_repo


def reset_product_repository() -> None:
    """Reset product repository (for testing)."""
    global _product_repo
    _product_repo = ProductRepository()
