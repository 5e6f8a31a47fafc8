"""Business types (buyer segments).

Hotels, restaurants, cafes, caterers and so on. Products reference them by
slug; the tag pipeline resolves the slug to the display name.
"""

import copy
from typing import Any, Callable

import structlog

from horeca.catalog.slugs import slugify
from horeca.domain.base import new_id
from horeca.domain.entities import BusinessType
from horeca.domain.exceptions import (
    ConflictError,
    NotFoundError,
    SlugConflictError,
    ValidationError,
)

logger = structlog.get_logger()


class BusinessTypeInUseError(ConflictError):
    """Raised when deleting a business type still referenced by products."""

    error_code = "BUSINESS_TYPE_IN_USE"

    def __init__(self, slug: str, product_count: int) -> None:
        super().__init__(
            f"Cannot delete business type '{slug}': referenced by {product_count} product(s)",
            details={"slug": slug, "product_count": product_count},
        )


class BusinessTypeRepository:
    """In-memory repository for business types."""

    def __init__(self) -> None:
        self._items: dict[str, BusinessType] = {}

    def save(self, item: BusinessType) -> None:
        self._items[item.id] = item

    def get(self, item_id: str) -> BusinessType | None:
        return self._items.get(item_id)

    def get_by_slug(self, slug: str) -> BusinessType | None:
        return next((bt for bt in self._items.values() if bt.slug == slug), None)

    def delete(self, item_id: str) -> None:
        self._items.pop(item_id, None)

    def list_all(self) -> list[BusinessType]:
        return sorted(self._items.values(), key=lambda bt: (bt.display_order, bt.name.lower()))

    def count(self) -> int:
        return len(self._items)


_business_type_repo: BusinessTypeRepository | None = None


def get_business_type_repository() -> BusinessTypeRepository:
    """Get business type repository singleton."""
    global _business_type_repo
    if _business_type_repo is None:
        _business_type_repo = BusinessTypeRepository()
    return _business_type_repo


def reset_business_type_repository() -> None:
    """Reset business type repository (for testing)."""
    global _business_type_repo
    _business_type_repo = BusinessTypeRepository()


class BusinessTypeStore:
    """CRUD over business types with slug and usage guards."""

    def __init__(
        self,
        repository: BusinessTypeRepository | None = None,
        usage_counter: Callable[[str], int] | None = None,
    ) -> None:
        self.repository = repository or get_business_type_repository()
        self._usage_counter = usage_counter or (lambda _slug: 0)

    def list_all(self, search: str | None = None) -> list[BusinessType]:
        items = self.repository.list_all()
        if search:
            needle = search.lower()
            items = [bt for bt in items if needle in bt.name.lower() or needle in bt.slug]
        return items

    def get(self, item_id: str) -> BusinessType:
        item = self.repository.get(item_id)
        if item is None:
            raise NotFoundError("BusinessType", item_id)
        return item

    def find_by_slug(self, slug: str) -> BusinessType:
        item = self.repository.get_by_slug(slug)
        if item is None:
            raise NotFoundError("BusinessType", slug, by="slug")
        return item

    def name_for(self, slug: str) -> str | None:
        """Display name for a slug, None when unknown."""
        item = self.repository.get_by_slug(slug)
        return item.name if item else None

    def known_slugs(self) -> set[str]:
        return {bt.slug for bt in self.repository.list_all()}

    def create(
        self,
        name: str,
        slug: str | None = None,
        description: str = "",
        image: str = "",
        display_order: int = 0,
    ) -> BusinessType:
        """Create a business type.

        Raises:
            ValidationError: If the name yields no slug.
            SlugConflictError: If the slug is taken.
        """
        final_slug = slugify(slug or name)
        if not final_slug:
            raise ValidationError("Cannot derive a slug from the name", field="slug")
        if self.repository.get_by_slug(final_slug):
            raise SlugConflictError("business-types", final_slug)
        item = BusinessType(
            id=new_id(),
            slug=final_slug,
            name=name.strip(),
            description=description,
            image=image,
            display_order=display_order,
        )
        self.repository.save(item)
        logger.info("Business type created", business_type_id=item.id, slug=item.slug)
        return item

    def update(self, item_id: str, changes: dict[str, Any]) -> BusinessType:
        """Update a business type.

        A slug change is refused while products reference the old slug.
        """
        item = copy.deepcopy(self.get(item_id))
        if changes.get("name") is not None:
            if not str(changes["name"]).strip():
                raise ValidationError("Name is required", field="name")
            item.name = str(changes["name"]).strip()
        for attr in ("description", "image", "display_order"):
            if changes.get(attr) is not None:
                setattr(item, attr, changes[attr])
        if changes.get("slug"):
            new_slug = slugify(changes["slug"])
            if new_slug != item.slug:
                if self.repository.get_by_slug(new_slug):
                    raise SlugConflictError("business-types", new_slug)
                usage = self._usage_counter(item.slug)
                if usage:
                    raise BusinessTypeInUseError(item.slug, usage)
                item.slug = new_slug
        item._touch()
        self.repository.save(item)
        return item

    def delete(self, item_id: str) -> BusinessType:
        """Delete an unreferenced business type.

        Raises:
            NotFoundError: If it does not exist.
            BusinessTypeInUseError: If products reference it.
        """
        item = self.get(item_id)
        usage = self._usage_counter(item.slug)
        if usage:
            raise BusinessTypeInUseError(item.slug, usage)
        self.repository.delete(item_id)
        logger.info("Business type deleted", business_type_id=item_id, slug=item.slug)
        return item
