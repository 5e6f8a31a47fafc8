"""Tests for the cart and wishlist service."""

import pytest

from horeca.application.cart_service import CartRepository, CartService, WishlistRepository
from horeca.catalog.repository import ProductRepository
from horeca.domain.entities import Product
from horeca.domain.exceptions import InvalidQuantityError, NotFoundError, ValidationError
from horeca.domain.value_objects import ColorVariant


@pytest.fixture
def products() -> ProductRepository:
    repo = ProductRepository()
    repo.save(
        Product.create(
            id="handi",
            title="Brass Handi",
            hero_image="/img/handi.jpg",
            slug="brass-handi",
            price=300,
            color_variants=[
                ColorVariant(color_name="Gold", images=("/img/handi-gold.jpg",)),
                ColorVariant(color_name="Silver"),
            ],
        )
    )
    repo.save(Product.create(id="lid", title="Lid", hero_image="/img/lid.jpg", slug="lid"))
    return repo


@pytest.fixture
def service(products: ProductRepository) -> CartService:
    return CartService(
        cart_repo=CartRepository(),
        wishlist_repo=WishlistRepository(),
        product_repo=products,
        free_shipping_threshold=1000,
    )


class TestCart:
    """Tests for cart operations."""

    async def test_empty_cart_for_new_session(self, service: CartService) -> None:
        """A new session starts with an empty cart."""
        cart = await service.get_cart("s1")
        assert cart.lines == []
        assert cart.total_items == 0

    async def test_session_required(self, service: CartService) -> None:
        """A blank session id is refused."""
        with pytest.raises(ValidationError) as exc_info:
            await service.get_cart("  ")
        assert exc_info.value.details["field"] == "session_id"

    async def test_add_captures_price_and_variant_image(self, service: CartService) -> None:
        """Lines snapshot price, slug and the variant's first image."""
        cart = await service.add_item("s1", "handi", quantity=2, color_name="Gold")
        line = cart.lines[0]
        assert line.unit_price == 300
        assert line.slug == "brass-handi"
        assert line.image == "/img/handi-gold.jpg"
        assert cart.total_price == 600

    async def test_variant_without_images_uses_hero(self, service: CartService) -> None:
        """The hero image is the fallback."""
        cart = await service.add_item("s1", "handi", color_name="Silver")
        assert cart.lines[0].image == "/img/handi.jpg"

    async def test_same_key_merges_keeping_price(self, service: CartService, products) -> None:
        """Re-adding merges quantity; later price edits do not apply."""
        await service.add_item("s1", "handi", quantity=1, color_name="Gold")
        products.get("handi").price = 999
        cart = await service.add_item("s1", "handi", quantity=2, color_name="Gold")
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 3
        assert cart.lines[0].unit_price == 300

    async def test_colors_are_separate_lines(self, service: CartService) -> None:
        """Different colors are different lines."""
        await service.add_item("s1", "handi", color_name="Gold")
        cart = await service.add_item("s1", "handi", color_name="Silver")
        assert len(cart.lines) == 2
        assert cart.total_items == 2

    async def test_unknown_color_rejected(self, service: CartService) -> None:
        """Only offered colors can be added."""
        with pytest.raises(ValidationError) as exc_info:
            await service.add_item("s1", "handi", color_name="Blue")
        assert exc_info.value.details["available"] == ["Gold", "Silver"]

    async def test_invalid_quantity_and_product(self, service: CartService) -> None:
        """Quantity must be positive and the product must exist."""
        with pytest.raises(InvalidQuantityError):
            await service.add_item("s1", "handi", quantity=0)
        with pytest.raises(NotFoundError):
            await service.add_item("s1", "ghost")

    async def test_price_on_request_line(self, service: CartService) -> None:
        """Price-on-request products contribute zero."""
        cart = await service.add_item("s1", "lid", quantity=3)
        assert cart.lines[0].unit_price is None
        assert cart.total_price == 0

    async def test_set_quantity_and_remove_by_zero(self, service: CartService) -> None:
        """Setting zero removes the line."""
        await service.add_item("s1", "handi", color_name="Gold")
        cart = await service.set_quantity("s1", "handi", 5, color_name="Gold")
        assert cart.lines[0].quantity == 5
        cart = await service.set_quantity("s1", "handi", 0, color_name="Gold")
        assert cart.lines == []

    async def test_missing_line_raises(self, service: CartService) -> None:
        """Updating or removing an absent line is NotFound."""
        with pytest.raises(NotFoundError):
            await service.set_quantity("s1", "handi", 2)
        with pytest.raises(NotFoundError) as exc_info:
            await service.remove_item("s1", "handi", color_name="Gold")
        assert exc_info.value.details["id"] == "handi:Gold"

    async def test_clear(self, service: CartService) -> None:
        """Clearing empties the cart."""
        await service.add_item("s1", "handi")
        cart = await service.clear("s1")
        assert cart.lines == []

    async def test_sessions_are_isolated(self, service: CartService) -> None:
        """Carts belong to one session."""
        await service.add_item("s1", "handi")
        assert (await service.get_cart("s2")).lines == []

    async def test_shipping_progress(self, service: CartService) -> None:
        """Progress is measured against the threshold."""
        await service.add_item("s1", "handi", quantity=2)
        progress = await service.shipping_progress("s1")
        assert progress.threshold == 1000
        assert progress.progress_fraction == pytest.approx(0.6)
        assert progress.remaining_to_threshold == 400
        assert not progress.eligible

        await service.add_item("s1", "handi", quantity=2)
        progress = await service.shipping_progress("s1")
        assert progress.eligible
        assert progress.progress_fraction == 1.0
        assert progress.remaining_to_threshold == 0


class TestWishlist:
    """Tests for wishlist operations."""

    async def test_add_is_idempotent(self, service: CartService) -> None:
        """Adding twice keeps one entry."""
        await service.add_to_wishlist("s1", "handi")
        wishlist = await service.add_to_wishlist("s1", "handi")
        assert wishlist.product_ids == ["handi"]

    async def test_unknown_product_rejected(self, service: CartService) -> None:
        """Only existing products can be wishlisted."""
        with pytest.raises(NotFoundError):
            await service.add_to_wishlist("s1", "ghost")

    async def test_remove_absent_is_noop(self, service: CartService) -> None:
        """Removing an absent product does nothing."""
        wishlist = await service.remove_from_wishlist("s1", "handi")
        assert wishlist.product_ids == []
