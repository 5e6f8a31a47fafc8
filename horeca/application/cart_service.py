"""Cart and wishlist application service.

Session-scoped shopping state. A cart line captures the product price when
it is first added; later catalog price edits leave existing lines alone.
Each session is single-writer, so mutations are applied in place.
"""

import structlog

from horeca.catalog.repository import ProductRepository, get_product_repository
from horeca.domain.entities import Cart, CartLine, ShippingProgress, Wishlist
from horeca.domain.exceptions import InvalidQuantityError, NotFoundError, ValidationError
from horeca.infrastructure.config import settings

logger = structlog.get_logger()


# ============================================================================
# In-Memory Repositories
# ============================================================================


class CartRepository:
    """In-memory repository for carts keyed by session id."""

    def __init__(self) -> None:
        self._carts: dict[str, Cart] = {}

    def get(self, session_id: str) -> Cart | None:
        return self._carts.get(session_id)

    def save(self, cart: Cart) -> None:
        self._carts[cart.session_id] = cart

    def delete(self, session_id: str) -> None:
        self._carts.pop(session_id, None)


class WishlistRepository:
    """In-memory repository for wishlists keyed by session id."""

    def __init__(self) -> None:
        self._wishlists: dict[str, Wishlist] = {}

    def get(self, session_id: str) -> Wishlist | None:
        return self._wishlists.get(session_id)

    def save(self, wishlist: Wishlist) -> None:
        self._wishlists[wishlist.session_id] = wishlist


_cart_repo: CartRepository | None = None
_wishlist_repo: WishlistRepository | None = None


def get_cart_repository() -> CartRepository:
    """Get cart repository singleton."""
    global _cart_repo
    if _cart_repo is None:
        _cart_repo = CartRepository()
    return _cart_repo


def get_wishlist_repository() -> WishlistRepository:
    """Get wishlist repository singleton."""
    global _wishlist_repo
    if _wishlist_repo is None:
        _wishlist_repo = WishlistRepository()
    return _wishlist_repo


def reset_cart_repositories() -> None:
    """Reset cart and wishlist repositories (for testing)."""
    global _cart_repo, _wishlist_repo
    _cart_repo = CartRepository()
    _wishlist_repo = WishlistRepository()


# ============================================================================
# Cart Service
# ============================================================================


class CartService:
    """Application service for session carts and wishlists.

    Example usage:
        service = get_cart_service(request_id)
        cart = await service.add_item(session_id, product_id, quantity=2, color_name="Gold")
        progress = await service.shipping_progress(session_id)
    """

    def __init__(
        self,
        cart_repo: CartRepository | None = None,
        wishlist_repo: WishlistRepository | None = None,
        product_repo: ProductRepository | None = None,
        free_shipping_threshold: int | None = None,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            cart_repo: Cart repository.
            wishlist_repo: Wishlist repository.
            product_repo: Product repository for price and name lookups.
            free_shipping_threshold: Subtotal for free shipping.
            request_id: Request ID for correlation.
        """
        self.cart_repo = cart_repo or get_cart_repository()
        self.wishlist_repo = wishlist_repo or get_wishlist_repository()
        self.product_repo = product_repo or get_product_repository()
        self.free_shipping_threshold = (
            free_shipping_threshold if free_shipping_threshold is not None else settings.free_shipping_threshold
        )
        self.request_id = request_id

    # -------------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------------

    async def get_cart(self, session_id: str) -> Cart:
        """Get the session's cart, empty if it has none yet."""
        session_id = _require_session(session_id)
        return self.cart_repo.get(session_id) or Cart(session_id=session_id)

    async def add_item(
        self,
        session_id: str,
        product_id: str,
        quantity: int = 1,
        color_name: str | None = None,
    ) -> Cart:
        """Add a product to the cart at its current price.

        Adding the same product and color again merges the quantity; the
        originally captured price is kept.

        Args:
            session_id: Cart owner.
            product_id: Product to add.
            quantity: Units to add, at least 1.
            color_name: Selected color variant.

        Returns:
            The updated cart.

        Raises:
            InvalidQuantityError: If quantity < 1.
            NotFoundError: If the product does not exist.
            ValidationError: If the color is not offered for the product.
        """
        if quantity < 1:
            raise InvalidQuantityError(quantity, "Quantity must be at least 1")
        product = self.product_repo.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        color_name = color_name or None
        if color_name and product.color_variants:
            offered = {v.color_name for v in product.color_variants}
            if color_name not in offered:
                raise ValidationError(
                    f"Color '{color_name}' is not available for this product",
                    field="color_name",
                    details={"available": sorted(offered)},
                )

        cart = await self.get_cart(session_id)
        line = cart.add(
            CartLine(
                product_id=product.id,
                product_name=product.title,
                unit_price=product.price,
                quantity=quantity,
                color_name=color_name,
                slug=product.slug,
                image=_line_image(product, color_name),
            )
        )
        self.cart_repo.save(cart)

        logger.info(
            "Cart item added",
            session_id=cart.session_id,
            product_id=product.id,
            color_name=color_name,
            quantity=line.quantity,
            request_id=self.request_id,
        )
        return cart

    async def set_quantity(
        self,
        session_id: str,
        product_id: str,
        quantity: int,
        color_name: str | None = None,
    ) -> Cart:
        """Set a line's quantity; zero or less removes the line.

        Raises:
            NotFoundError: If the cart has no such line.
        """
        cart = await self.get_cart(session_id)
        if cart.find_line(product_id, color_name) is None:
            raise NotFoundError("CartLine", _line_key(product_id, color_name))
        cart.set_quantity(product_id, color_name, quantity)
        self.cart_repo.save(cart)
        return cart

    async def remove_item(self, session_id: str, product_id: str, color_name: str | None = None) -> Cart:
        """Remove a line.

        Raises:
            NotFoundError: If the cart has no such line.
        """
        cart = await self.get_cart(session_id)
        if not cart.remove(product_id, color_name):
            raise NotFoundError("CartLine", _line_key(product_id, color_name))
        self.cart_repo.save(cart)
        return cart

    async def clear(self, session_id: str) -> Cart:
        cart = await self.get_cart(session_id)
        removed = cart.clear()
        self.cart_repo.save(cart)
        logger.info("Cart cleared", session_id=cart.session_id, removed=removed, request_id=self.request_id)
        return cart

    async def shipping_progress(self, session_id: str) -> ShippingProgress:
        cart = await self.get_cart(session_id)
        return cart.shipping_progress(self.free_shipping_threshold)

    # -------------------------------------------------------------------------
    # Wishlist
    # -------------------------------------------------------------------------

    async def get_wishlist(self, session_id: str) -> Wishlist:
        session_id = _require_session(session_id)
        return self.wishlist_repo.get(session_id) or Wishlist(session_id=session_id)

    async def add_to_wishlist(self, session_id: str, product_id: str) -> Wishlist:
        """Add a product; adding it twice is a no-op.

        Raises:
            NotFoundError: If the product does not exist.
        """
        if not self.product_repo.exists(product_id):
            raise NotFoundError("Product", product_id)
        wishlist = await self.get_wishlist(session_id)
        wishlist.add(product_id)
        self.wishlist_repo.save(wishlist)
        return wishlist

    async def remove_from_wishlist(self, session_id: str, product_id: str) -> Wishlist:
        """Remove a product; removing an absent product is a no-op."""
        wishlist = await self.get_wishlist(session_id)
        wishlist.remove(product_id)
        self.wishlist_repo.save(wishlist)
        return wishlist


def _require_session(session_id: str | None) -> str:
    session_id = (session_id or "").strip()
    if not session_id:
        raise ValidationError("Session id is required", field="session_id")
    return session_id


def _line_key(product_id: str, color_name: str | None) -> str:
    return f"{product_id}:{color_name}" if color_name else product_id


def _line_image(product, color_name: str | None) -> str:
    for variant in product.color_variants:
        if variant.color_name == color_name and variant.images:
            return variant.images[0]
    return product.hero_image


def get_cart_service(request_id: str | None = None) -> CartService:
    """Get cart service instance.

    Args:
        request_id: Request ID for correlation.

    Returns:
        CartService instance.
    """
    return CartService(request_id=request_id)
