"""Business type API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from horeca.api.schemas import (
    BusinessTypeCreateRequest,
    BusinessTypeListResponse,
    BusinessTypeResponse,
    BusinessTypeSchema,
    BusinessTypeUpdateRequest,
    DeletedResponse,
    ErrorResponse,
)
from horeca.catalog.business_types import BusinessTypeStore
from horeca.catalog.service import get_business_type_store
from horeca.domain.entities import BusinessType

router = APIRouter(prefix="/business-types", tags=["Business Types"])


def business_type_to_schema(item: BusinessType) -> BusinessTypeSchema:
    return BusinessTypeSchema(
        id=item.id,
        slug=item.slug,
        name=item.name,
        description=item.description,
        image=item.image,
        display_order=item.display_order,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


@router.get("", response_model=BusinessTypeListResponse, summary="List business types")
async def list_business_types(
    store: Annotated[BusinessTypeStore, Depends(get_business_type_store)],
    search: str | None = None,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
) -> BusinessTypeListResponse:
    """List business types ordered by display order, then name."""
    items = sorted(store.list_all(search=search), key=lambda bt: (bt.display_order, bt.name.lower()))
    page = items[skip : skip + limit] if limit else items[skip:]
    return BusinessTypeListResponse(
        business_types=[business_type_to_schema(bt) for bt in page],
        total=len(items),
    )


@router.get(
    "/slug/{slug}",
    response_model=BusinessTypeResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a business type by slug",
)
async def get_business_type_by_slug(
    slug: str,
    store: Annotated[BusinessTypeStore, Depends(get_business_type_store)],
) -> BusinessTypeResponse:
    return BusinessTypeResponse(business_type=business_type_to_schema(store.find_by_slug(slug)))


@router.get(
    "/{item_id}",
    response_model=BusinessTypeResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a business type",
)
async def get_business_type(
    item_id: str,
    store: Annotated[BusinessTypeStore, Depends(get_business_type_store)],
) -> BusinessTypeResponse:
    return BusinessTypeResponse(business_type=business_type_to_schema(store.get(item_id)))


@router.post(
    "",
    response_model=BusinessTypeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Create a business type",
)
async def create_business_type(
    body: BusinessTypeCreateRequest,
    store: Annotated[BusinessTypeStore, Depends(get_business_type_store)],
) -> BusinessTypeResponse:
    item = store.create(**body.model_dump())
    return BusinessTypeResponse(business_type=business_type_to_schema(item))


@router.put(
    "/{item_id}",
    response_model=BusinessTypeResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Update a business type",
)
async def update_business_type(
    item_id: str,
    body: BusinessTypeUpdateRequest,
    store: Annotated[BusinessTypeStore, Depends(get_business_type_store)],
) -> BusinessTypeResponse:
    """Update a business type.

    Renaming the slug is refused while products still reference it.
    """
    item = store.update(item_id, body.model_dump(exclude_unset=True))
    return BusinessTypeResponse(business_type=business_type_to_schema(item))


@router.delete(
    "/{item_id}",
    response_model=DeletedResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Delete a business type",
)
async def delete_business_type(
    item_id: str,
    store: Annotated[BusinessTypeStore, Depends(get_business_type_store)],
) -> DeletedResponse:
    item = store.delete(item_id)
    return DeletedResponse(id=item.id)
