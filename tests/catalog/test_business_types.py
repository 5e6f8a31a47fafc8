"""Tests for the business type store."""

import pytest

from horeca.catalog.business_types import (
    BusinessTypeInUseError,
    BusinessTypeRepository,
    BusinessTypeStore,
)
from horeca.domain.exceptions import NotFoundError, SlugConflictError, ValidationError


@pytest.fixture
def store() -> BusinessTypeStore:
    return BusinessTypeStore(repository=BusinessTypeRepository())


class TestBusinessTypeStore:
    """Tests for BusinessTypeStore."""

    def test_create_derives_slug(self, store: BusinessTypeStore) -> None:
        """Slugs come from the name."""
        item = store.create("Cloud Kitchens")
        assert item.slug == "cloud-kitchens"
        assert store.name_for("cloud-kitchens") == "Cloud Kitchens"

    def test_duplicate_slug_conflicts(self, store: BusinessTypeStore) -> None:
        """Slugs are unique."""
        store.create("Hotels")
        with pytest.raises(SlugConflictError):
            store.create("hotels")

    def test_unusable_name_rejected(self, store: BusinessTypeStore) -> None:
        """A name without slug characters is refused."""
        with pytest.raises(ValidationError):
            store.create("***")

    def test_list_ordered_by_display_order(self, store: BusinessTypeStore) -> None:
        """display_order wins over name."""
        store.create("Restaurants", display_order=2)
        store.create("Hotels", display_order=1)
        store.create("Cafes", display_order=2)
        assert [bt.name for bt in store.list_all()] == ["Hotels", "Cafes", "Restaurants"]
        assert [bt.name for bt in store.list_all(search="caf")] == ["Cafes"]

    def test_unknown_slug(self, store: BusinessTypeStore) -> None:
        """Unknown slugs resolve to nothing."""
        assert store.name_for("bakeries") is None
        with pytest.raises(NotFoundError):
            store.find_by_slug("bakeries")

    def test_update_fields(self, store: BusinessTypeStore) -> None:
        """Names and descriptions can change."""
        item = store.create("Hotels")
        updated = store.update(item.id, {"name": "Hotels & Resorts", "description": "Rooms"})
        assert updated.name == "Hotels & Resorts"
        assert updated.slug == "hotels"
        assert updated.version == 2

    def test_slug_change_blocked_while_referenced(self) -> None:
        """A referenced slug cannot be renamed."""
        store = BusinessTypeStore(repository=BusinessTypeRepository(), usage_counter=lambda slug: 4)
        item = store.create("Hotels")
        with pytest.raises(BusinessTypeInUseError):
            store.update(item.id, {"slug": "hotel"})
        assert store.get(item.id).slug == "hotels"

    def test_delete_unused(self, store: BusinessTypeStore) -> None:
        """Unreferenced types can be deleted."""
        item = store.create("Hotels")
        store.delete(item.id)
        assert store.known_slugs() == set()

    def test_delete_referenced_refused(self) -> None:
        """Referenced types cannot be deleted."""
        store = BusinessTypeStore(repository=BusinessTypeRepository(), usage_counter=lambda slug: 1)
        item = store.create("Hotels")
        with pytest.raises(BusinessTypeInUseError) as exc_info:
            store.delete(item.id)
        assert exc_info.value.details == {"slug": "hotels", "product_count": 1}
