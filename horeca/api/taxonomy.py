"""Category and brand API endpoints.

Categories and brands are two forests with the same shape, so one router
factory serves both under /categories and /brands.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from horeca.api.schemas import (
    AncestryResponse,
    DeletedResponse,
    DescendantsResponse,
    ErrorResponse,
    TaxonomyListResponse,
    TaxonomyNodeCreateRequest,
    TaxonomyNodeResponse,
    TaxonomyNodeSchema,
    TaxonomyNodeUpdateRequest,
    TaxonomyTreeNodeSchema,
    TaxonomyTreeResponse,
)
from horeca.catalog.service import get_taxonomy_store
from horeca.catalog.taxonomy import TaxonomyStore, TaxonomyTreeNode
from horeca.domain.entities import TaxonomyNode
from horeca.domain.exceptions import ValidationError
from horeca.domain.value_objects import TaxonomyKind, TaxonomyLevel


# ============================================================================
# Converters
# ============================================================================


def node_to_schema(node: TaxonomyNode) -> TaxonomyNodeSchema:
    """Convert TaxonomyNode entity to response schema."""
    return TaxonomyNodeSchema(
        id=node.id,
        kind=node.kind.value,
        slug=node.slug,
        name=node.name,
        level=node.level.value,
        parent_id=node.parent_id,
        tagline=node.tagline,
        description=node.description,
        image=node.image,
        created_at=node.created_at,
        updated_at=node.updated_at,
    )


def tree_to_schema(tree_node: TaxonomyTreeNode) -> TaxonomyTreeNodeSchema:
    return TaxonomyTreeNodeSchema(
        **node_to_schema(tree_node.node).model_dump(),
        children=[tree_to_schema(child) for child in tree_node.children],
    )


def _parse_level(value: str | None) -> TaxonomyLevel | None:
    if not value:
        return None
    try:
        return TaxonomyLevel(value)
    except ValueError:
        raise ValidationError(
            f"Unknown level '{value}'",
            field="level",
            details={"allowed": [lvl.value for lvl in TaxonomyLevel]},
        ) from None


# ============================================================================
# Router Factory
# ============================================================================


def build_taxonomy_router(kind: TaxonomyKind) -> APIRouter:
    """Create the CRUD and navigation router for one taxonomy kind.

    Args:
        kind: Category or brand.

    Returns:
        Router mounted at /categories or /brands.
    """
    router = APIRouter(prefix=f"/{kind.plural}", tags=[kind.plural.capitalize()])

    def get_store() -> TaxonomyStore:
        return get_taxonomy_store(kind)

    Store = Annotated[TaxonomyStore, Depends(get_store)]

    @router.get(
        "",
        response_model=TaxonomyListResponse,
        responses={400: {"model": ErrorResponse}},
        summary=f"List {kind.plural}",
    )
    async def list_nodes(
        store: Store,
        level: str | None = None,
        parent_id: str | None = None,
        search: str | None = None,
        limit: Annotated[int | None, Query(ge=1, le=500)] = None,
        skip: Annotated[int, Query(ge=0)] = 0,
    ) -> TaxonomyListResponse:
        """List nodes ordered by level then name."""
        nodes = store.list_all(level=_parse_level(level), parent_id=parent_id, search=search)
        page = nodes[skip : skip + limit] if limit else nodes[skip:]
        return TaxonomyListResponse(items=[node_to_schema(n) for n in page], total=len(nodes))

    @router.get("/tree", response_model=TaxonomyTreeResponse, summary=f"Get the {kind.value} tree")
    async def get_tree(store: Store) -> TaxonomyTreeResponse:
        return TaxonomyTreeResponse(tree=[tree_to_schema(root) for root in store.tree()])

    @router.get(
        "/slug/{slug}",
        response_model=TaxonomyNodeResponse,
        responses={404: {"model": ErrorResponse}},
        summary=f"Get a {kind.value} by slug",
    )
    async def get_by_slug(slug: str, store: Store) -> TaxonomyNodeResponse:
        return TaxonomyNodeResponse(item=node_to_schema(store.find_by_slug(slug)))

    @router.get(
        "/{node_id}",
        response_model=TaxonomyNodeResponse,
        responses={404: {"model": ErrorResponse}},
        summary=f"Get a {kind.value}",
    )
    async def get_node(node_id: str, store: Store) -> TaxonomyNodeResponse:
        return TaxonomyNodeResponse(item=node_to_schema(store.get(node_id)))

    @router.get(
        "/{node_id}/ancestry",
        response_model=AncestryResponse,
        responses={404: {"model": ErrorResponse}},
        summary=f"Get a {kind.value}'s ancestry",
    )
    async def get_ancestry(node_id: str, store: Store) -> AncestryResponse:
        """Path from the root to the node, keyed by level."""
        store.get(node_id)
        chain = store.ancestor_chain(node_id)
        return AncestryResponse(
            node_id=node_id,
            chain=[node_to_schema(n) for n in chain],
            levels={n.level.value: node_to_schema(n) for n in chain},
        )

    @router.get(
        "/{node_id}/descendants",
        response_model=DescendantsResponse,
        responses={404: {"model": ErrorResponse}},
        summary=f"Get a {kind.value}'s descendant ids",
    )
    async def get_descendants(node_id: str, store: Store) -> DescendantsResponse:
        store.get(node_id)
        ids = store.descendant_ids(node_id, include_self=False)
        return DescendantsResponse(node_id=node_id, descendant_ids=sorted(ids))

    @router.post(
        "",
        response_model=TaxonomyNodeResponse,
        status_code=status.HTTP_201_CREATED,
        responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        summary=f"Create a {kind.value}",
    )
    async def create_node(body: TaxonomyNodeCreateRequest, store: Store) -> TaxonomyNodeResponse:
        node = store.create(**body.model_dump())
        return TaxonomyNodeResponse(item=node_to_schema(node))

    @router.put(
        "/{node_id}",
        response_model=TaxonomyNodeResponse,
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
        },
        summary=f"Update a {kind.value}",
    )
    async def update_node(node_id: str, body: TaxonomyNodeUpdateRequest, store: Store) -> TaxonomyNodeResponse:
        node = store.update(node_id, body.model_dump(exclude_unset=True))
        return TaxonomyNodeResponse(item=node_to_schema(node))

    @router.delete(
        "/{node_id}",
        response_model=DeletedResponse,
        responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        summary=f"Delete a {kind.value}",
    )
    async def delete_node(node_id: str, store: Store) -> DeletedResponse:
        node = store.delete(node_id)
        return DeletedResponse(id=node.id)

    return router


categories_router = build_taxonomy_router(TaxonomyKind.CATEGORY)
brands_router = build_taxonomy_router(TaxonomyKind.BRAND)

