"""Cart and wishlist API endpoints.

Session-scoped storefront state. Every request identifies its session with
the X-Session-ID header.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request, status

from horeca.api.schemas import (
    CartItemRequest,
    CartLineSchema,
    CartQuantityRequest,
    CartResponse,
    CartSchema,
    ErrorResponse,
    ShippingProgressSchema,
    ShippingResponse,
    WishlistRequest,
    WishlistResponse,
    WishlistSchema,
)
from horeca.application.cart_service import CartService, get_cart_service
from horeca.domain.entities import Cart, ShippingProgress, Wishlist

router = APIRouter(tags=["Cart"])

SessionId = Annotated[str | None, Header(alias="X-Session-ID")]


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> CartService:
    """Get cart service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_cart_service(request_id=request_id)


# ============================================================================
# Converters
# ============================================================================


def shipping_to_schema(progress: ShippingProgress) -> ShippingProgressSchema:
    return ShippingProgressSchema(
        threshold=progress.threshold,
        progress_fraction=progress.progress_fraction,
        remaining_to_threshold=progress.remaining_to_threshold,
        eligible=progress.eligible,
    )


def cart_to_response(cart: Cart, service: CartService) -> CartResponse:
    """Convert Cart to response schema with its shipping progress."""
    return CartResponse(
        cart=CartSchema(
            session_id=cart.session_id,
            items=[
                CartLineSchema(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    slug=line.slug,
                    image=line.image,
                    color_name=line.color_name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    line_total=line.line_total,
                )
                for line in cart.lines
            ],
            total_items=cart.total_items,
            total_price=cart.total_price,
            shipping=shipping_to_schema(cart.shipping_progress(service.free_shipping_threshold)),
            updated_at=cart.updated_at,
        )
    )


def wishlist_to_response(wishlist: Wishlist) -> WishlistResponse:
    return WishlistResponse(
        wishlist=WishlistSchema(
            session_id=wishlist.session_id,
            product_ids=list(wishlist.product_ids),
            total=len(wishlist.product_ids),
        )
    )


# ============================================================================
# Cart Endpoints
# ============================================================================


@router.get(
    "/cart",
    response_model=CartResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Get the session cart",
)
async def get_cart(
    service: Annotated[CartService, Depends(get_service)],
    session_id: SessionId = None,
) -> CartResponse:
    cart = await service.get_cart(session_id)
    return cart_to_response(cart, service)


@router.delete(
    "/cart",
    response_model=CartResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Clear the session cart",
)
async def clear_cart(
    service: Annotated[CartService, Depends(get_service)],
    session_id: SessionId = None,
) -> CartResponse:
    cart = await service.clear(session_id)
    return cart_to_response(cart, service)


@router.post(
    "/cart/items",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Add an item to the cart",
    description="Adding the same product and color again merges the quantity at the originally captured price.",
)
async def add_cart_item(
    body: CartItemRequest,
    service: Annotated[CartService, Depends(get_service)],
    session_id: SessionId = None,
) -> CartResponse:
    cart = await service.add_item(session_id, body.product_id, body.quantity, body.color_name)
    return cart_to_response(cart, service)


@router.put(
    "/cart/items/quantity",
    response_model=CartResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Set a cart line's quantity",
    description="A quantity of zero or less removes the line.",
)
async def set_cart_quantity(
    body: CartQuantityRequest,
    service: Annotated[CartService, Depends(get_service)],
    session_id: SessionId = None,
) -> CartResponse:
    cart = await service.set_quantity(session_id, body.product_id, body.quantity, body.color_name)
    return cart_to_response(cart, service)


@router.delete(
    "/cart/items",
    response_model=CartResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Remove a cart line",
)
async def remove_cart_item(
    product_id: str,
    service: Annotated[CartService, Depends(get_service)],
    color_name: str | None = None,
    session_id: SessionId = None,
) -> CartResponse:
    cart = await service.remove_item(session_id, product_id, color_name)
    return cart_to_response(cart, service)


@router.get(
    "/cart/shipping",
    response_model=ShippingResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Free-shipping progress",
)
async def get_shipping_progress(
    service: Annotated[CartService, Depends(get_service)],
    session_id: SessionId = None,
) -> ShippingResponse:
    progress = await service.shipping_progress(session_id)
    return ShippingResponse(shipping=shipping_to_schema(progress))


# ============================================================================
# Wishlist Endpoints
# ============================================================================


@router.get(
    "/wishlist",
    response_model=WishlistResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Get the session wishlist",
)
async def get_wishlist(
    service: Annotated[CartService, Depends(get_service)],
    session_id: SessionId = None,
) -> WishlistResponse:
    return wishlist_to_response(await service.get_wishlist(session_id))


@router.post(
    "/wishlist",
    response_model=WishlistResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Add a product to the wishlist",
)
async def add_to_wishlist(
    body: WishlistRequest,
    service: Annotated[CartService, Depends(get_service)],
    session_id: SessionId = None,
) -> WishlistResponse:
    return wishlist_to_response(await service.add_to_wishlist(session_id, body.product_id))


@router.delete(
    "/wishlist/{product_id}",
    response_model=WishlistResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Remove a product from the wishlist",
)
async def remove_from_wishlist(
    product_id: str,
    service: Annotated[CartService, Depends(get_service)],
    session_id: SessionId = None,
) -> WishlistResponse:
    return wishlist_to_response(await service.remove_from_wishlist(session_id, product_id))
