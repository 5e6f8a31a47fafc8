"""Category and brand taxonomy.

Categories and brands are two independent rooted forests with the same
shape, so a single store parameterized by TaxonomyKind serves both:

    Kitchenware                    (department)
    Kitchenware > Cookware         (category)
    Kitchenware > Cookware > Handis            (subcategory)
    Kitchenware > Cookware > Handis > Brass    (type, categories only)

The store enforces the level order, slug uniqueness per kind, acyclic
parent chains, and the deletion guards (no children, no referencing
products).
"""

import copy
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable

import structlog

from horeca.catalog.slugs import slugify
from horeca.domain.base import new_id
from horeca.domain.entities import TaxonomyNode
from horeca.domain.exceptions import (
    NotFoundError,
    SlugConflictError,
    TaxonomyCycleError,
    TaxonomyHasChildrenError,
    TaxonomyInUseError,
    ValidationError,
)
from horeca.domain.value_objects import TaxonomyKind, TaxonomyLevel

logger = structlog.get_logger()

# Counts products referencing a node (primary or additional).
UsageCounter = Callable[[TaxonomyKind, str], int]


# ============================================================================
# Tree
# ============================================================================


@dataclass
class TaxonomyTreeNode:
    """A node together with its children, as served to navigation UIs."""

    node: TaxonomyNode
    children: list["TaxonomyTreeNode"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = self.node.to_dict()
        data["children"] = [child.to_dict() for child in self.children]
        return data


def build_tree(nodes: list[TaxonomyNode]) -> list[TaxonomyTreeNode]:
    """Group a flat node list into a forest in a single pass.

    Nodes whose parent is missing from the list are returned as roots.
    Sibling order follows the input order.

    Args:
        nodes: Flat list of nodes of one kind.

    Returns:
        Root tree nodes.
    """
    wrapped = {node.id: TaxonomyTreeNode(node=node) for node in nodes}
    roots: list[TaxonomyTreeNode] = []
    for node in nodes:
        tree_node = wrapped[node.id]
        parent = wrapped.get(node.parent_id) if node.parent_id else None
        if parent is None or parent is tree_node:
            if node.parent_id:
                logger.warning(
                    "Taxonomy node parent missing, treating as root",
                    kind=node.kind.value,
                    node_id=node.id,
                    parent_id=node.parent_id,
                )
            roots.append(tree_node)
        else:
            parent.children.append(tree_node)
    return roots


# ============================================================================
# Repository
# ============================================================================


class TaxonomyRepository:
    """In-memory repository for the nodes of one kind.

    In production, this would be replaced with database persistence.
    """

    def __init__(self, kind: TaxonomyKind) -> None:
        self.kind = kind
        self._nodes: dict[str, TaxonomyNode] = {}
        self._by_slug: dict[str, str] = {}

    def save(self, node: TaxonomyNode) -> None:
        """Save a node, re-indexing its slug."""
        previous = self._nodes.get(node.id)
        if previous is not None and previous.slug != node.slug:
            self._by_slug.pop(previous.slug, None)
        self._nodes[node.id] = node
        self._by_slug[node.slug] = node.id

    def get(self, node_id: str) -> TaxonomyNode | None:
        return self._nodes.get(node_id)

    def get_by_slug(self, slug: str) -> TaxonomyNode | None:
        node_id = self._by_slug.get(slug)
        return self._nodes.get(node_id) if node_id else None

    def delete(self, node_id: str) -> bool:
        node = self._nodes.pop(node_id, None)
        if node is None:
            return False
        self._by_slug.pop(node.slug, None)
        return True

    def children_of(self, parent_id: str | None) -> list[TaxonomyNode]:
        return [n for n in self._nodes.values() if n.parent_id == parent_id]

    def list_all(self) -> list[TaxonomyNode]:
        return list(self._nodes.values())

    def count(self) -> int:
        return len(self._nodes)


_repositories: dict[TaxonomyKind, TaxonomyRepository] = {}


def get_taxonomy_repository(kind: TaxonomyKind) -> TaxonomyRepository:
    """Get the repository singleton for a kind."""
    if kind not in _repositories:
        _repositories[kind] = TaxonomyRepository(kind)
    return _repositories[kind]


def reset_taxonomy_repositories() -> None:
    """Reset both taxonomy repositories (for testing)."""
    for kind in TaxonomyKind:
        _repositories[kind] = TaxonomyRepository(kind)


# ============================================================================
# Store
# ============================================================================


class TaxonomyStore:
    """Operations over one taxonomy forest.

    Example usage:
        store = TaxonomyStore(TaxonomyKind.CATEGORY, usage_counter=count_products)
        dept = store.create(name="Kitchenware", level="department")
        cat = store.create(name="Cookware", level="category", parent_id=dept.id)
        store.ancestry(cat.id)  # {DEPARTMENT: dept, CATEGORY: cat}
    """

    def __init__(
        self,
        kind: TaxonomyKind,
        repository: TaxonomyRepository | None = None,
        usage_counter: UsageCounter | None = None,
    ) -> None:
        """Initialize store.

        Args:
            kind: Which forest this store manages.
            repository: Node repository (uses the singleton if not provided).
            usage_counter: Returns how many products reference a node.
        """
        self.kind = kind
        self.repository = repository or get_taxonomy_repository(kind)
        self._usage_counter = usage_counter or (lambda _kind, _node_id: 0)

    @property
    def entity_name(self) -> str:
        return "Category" if self.kind is TaxonomyKind.CATEGORY else "Brand"

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, node_id: str) -> TaxonomyNode:
        """Get a node by id.

        Raises:
            NotFoundError: If no node has this id.
        """
        node = self.repository.get(node_id)
        if node is None:
            raise NotFoundError(self.entity_name, node_id)
        return node

    def find(self, node_id: str | None) -> TaxonomyNode | None:
        return self.repository.get(node_id) if node_id else None

    def find_by_slug(self, slug: str) -> TaxonomyNode:
        """Get a node by slug.

        Raises:
            NotFoundError: If no node has this slug.
        """
        node = self.repository.get_by_slug(slug)
        if node is None:
            raise NotFoundError(self.entity_name, slug, by="slug")
        return node

    def find_by_parent(self, parent_id: str | None) -> list[TaxonomyNode]:
        """Direct children of a node, or the roots when parent_id is None."""
        return sorted(self.repository.children_of(parent_id), key=lambda n: n.name.lower())

    def list_all(
        self,
        level: TaxonomyLevel | None = None,
        parent_id: str | None = None,
        search: str | None = None,
    ) -> list[TaxonomyNode]:
        """List nodes ordered by level then name.

        Args:
            level: Only nodes at this level.
            parent_id: Only direct children of this node.
            search: Case-insensitive substring over name and slug.

        Returns:
            Matching nodes.
        """
        nodes = self.repository.list_all()
        if level is not None:
            nodes = [n for n in nodes if n.level == level]
        if parent_id is not None:
            nodes = [n for n in nodes if n.parent_id == parent_id]
        if search:
            needle = search.lower()
            nodes = [n for n in nodes if needle in n.name.lower() or needle in n.slug]
        return sorted(nodes, key=lambda n: (n.level.depth, n.name.lower()))

    def tree(self) -> list[TaxonomyTreeNode]:
        """Forest of all nodes, siblings ordered by name."""
        nodes = sorted(self.repository.list_all(), key=lambda n: n.name.lower())
        return build_tree(nodes)

    def ancestor_chain(self, node_id: str) -> list[TaxonomyNode]:
        """Nodes from the root down to (and including) node_id.

        A parent chain that revisits a node is a corrupt cycle; it is logged
        and the node is treated as top-level rather than failing the caller.

        Args:
            node_id: Starting node.

        Returns:
            Chain ordered root first; empty when node_id is unknown.
        """
        node = self.repository.get(node_id)
        if node is None:
            return []
        chain = [node]
        visited = {node.id}
        current = node
        while current.parent_id:
            parent = self.repository.get(current.parent_id)
            if parent is None:
                break
            if parent.id in visited:
                logger.warning(
                    "Taxonomy cycle detected, treating node as top-level",
                    kind=self.kind.value,
                    node_id=node_id,
                    revisited_id=parent.id,
                )
                return [node]
            visited.add(parent.id)
            chain.append(parent)
            current = parent
        chain.reverse()
        return chain

    def ancestry(self, node_id: str) -> dict[TaxonomyLevel, TaxonomyNode]:
        """Map each level on the path to the root to its node.

        Args:
            node_id: Starting node.

        Returns:
            Level -> node, including the node itself.
        """
        return {node.level: node for node in self.ancestor_chain(node_id)}

    def descendant_ids(self, node_id: str, include_self: bool = True) -> set[str]:
        """Breadth-first set of ids below a node.

        Depth is bounded by the number of levels of this kind.

        Args:
            node_id: Root of the subtree.
            include_self: Whether node_id itself is in the result.

        Returns:
            Set of node ids.
        """
        result = {node_id} if include_self else set()
        queue: deque[tuple[str, int]] = deque([(node_id, 0)])
        seen = {node_id}
        while queue:
            current_id, depth = queue.popleft()
            if depth >= self.kind.max_depth:
                continue
            for child in self.repository.children_of(current_id):
                if child.id in seen:
                    continue
                seen.add(child.id)
                result.add(child.id)
                queue.append((child.id, depth + 1))
        return result

    def count(self) -> int:
        return self.repository.count()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create(
        self,
        name: str,
        level: TaxonomyLevel | str,
        parent_id: str | None = None,
        slug: str | None = None,
        tagline: str = "",
        description: str = "",
        image: str = "",
    ) -> TaxonomyNode:
        """Create a node.

        Args:
            name: Display name.
            level: Level of the new node.
            parent_id: Parent node, required for non-department levels.
            slug: Explicit slug; derived from name when omitted.
            tagline: Short marketing line.
            description: Longer description.
            image: Optional image URL.

        Returns:
            The created node.

        Raises:
            ValidationError: On a bad level, parent or slug.
            SlugConflictError: If the slug is taken in this kind.
        """
        level = self._parse_level(level)
        parent_id = parent_id or None
        self._validate_placement(level, parent_id)
        final_slug = self._resolve_slug(slug, name)
        self._ensure_slug_free(final_slug)

        node = TaxonomyNode(
            id=new_id(),
            kind=self.kind,
            slug=final_slug,
            name=name.strip(),
            level=level,
            parent_id=parent_id,
            tagline=tagline,
            description=description,
            image=image,
        )
        self.repository.save(node)
        logger.info(
            "Taxonomy node created",
            kind=self.kind.value,
            node_id=node.id,
            slug=node.slug,
            level=level.value,
        )
        return node

    def update(self, node_id: str, changes: dict[str, Any]) -> TaxonomyNode:
        """Update a node; all changes apply together or not at all.

        Args:
            node_id: Node to update.
            changes: Any of name, slug, level, parent_id, tagline,
                description, image.

        Returns:
            The updated node.

        Raises:
            NotFoundError: If the node does not exist.
            ValidationError: On a bad level or parent.
            TaxonomyCycleError: If the new parent is the node or a descendant.
            SlugConflictError: If the new slug is taken.
        """
        current = self.get(node_id)
        node = copy.deepcopy(current)

        if "name" in changes and changes["name"] is not None:
            if not str(changes["name"]).strip():
                raise ValidationError("Name is required", field="name")
            node.name = str(changes["name"]).strip()
        for attr in ("tagline", "description", "image"):
            if attr in changes and changes[attr] is not None:
                setattr(node, attr, changes[attr])
        if "slug" in changes and changes["slug"]:
            new_slug = self._resolve_slug(changes["slug"], node.name)
            if new_slug != current.slug:
                self._ensure_slug_free(new_slug)
            node.slug = new_slug

        level_changed = "level" in changes and changes["level"] is not None
        parent_changed = "parent_id" in changes
        if level_changed:
            node.level = self._parse_level(changes["level"])
        if parent_changed:
            node.parent_id = changes["parent_id"] or None
        if level_changed or parent_changed:
            if node.parent_id and node.parent_id in self.descendant_ids(node_id):
                raise TaxonomyCycleError(self.kind.value, node_id, node.parent_id)
            self._validate_placement(node.level, node.parent_id)
            for child in self.repository.children_of(node_id):
                if child.level.parent_level() != node.level:
                    raise ValidationError(
                        f"Level change would orphan child '{child.name}'",
                        field="level",
                        details={"child_id": child.id, "child_level": child.level.value},
                    )

        node._touch()
        self.repository.save(node)
        logger.info("Taxonomy node updated", kind=self.kind.value, node_id=node_id)
        return node

    def delete(self, node_id: str) -> TaxonomyNode:
        """Delete a leaf node no product references.

        Raises:
            NotFoundError: If the node does not exist.
            TaxonomyHasChildrenError: If the node has children.
            TaxonomyInUseError: If any product references the node.
        """
        node = self.get(node_id)
        children = self.repository.children_of(node_id)
        if children:
            raise TaxonomyHasChildrenError(self.kind.value, node_id, len(children))
        usage = self._usage_counter(self.kind, node_id)
        if usage:
            raise TaxonomyInUseError(self.kind.value, node_id, usage)
        self.repository.delete(node_id)
        logger.info("Taxonomy node deleted", kind=self.kind.value, node_id=node_id)
        return node

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _parse_level(self, level: TaxonomyLevel | str) -> TaxonomyLevel:
        try:
            parsed = TaxonomyLevel(level)
        except ValueError:
            raise ValidationError(
                f"Unknown level '{level}'",
                field="level",
                details={"allowed": [lvl.value for lvl in self.kind.levels]},
            ) from None
        if parsed not in self.kind.levels:
            raise ValidationError(
                f"Level '{parsed.value}' is not valid for {self.kind.plural}",
                field="level",
                details={"allowed": [lvl.value for lvl in self.kind.levels]},
            )
        return parsed

    def _validate_placement(self, level: TaxonomyLevel, parent_id: str | None) -> None:
        expected_parent_level = level.parent_level()
        if expected_parent_level is None:
            if parent_id is not None:
                raise ValidationError("A department cannot have a parent", field="parent_id")
            return
        if parent_id is None:
            raise ValidationError(
                f"A {level.value} requires a {expected_parent_level.value} parent",
                field="parent_id",
            )
        parent = self.repository.get(parent_id)
        if parent is None:
            raise ValidationError(
                f"Parent {self.entity_name.lower()} '{parent_id}' does not exist",
                field="parent_id",
            )
        if parent.level != expected_parent_level:
            raise ValidationError(
                f"Parent of a {level.value} must be a {expected_parent_level.value}, "
                f"got {parent.level.value}",
                field="parent_id",
                details={"parent_level": parent.level.value},
            )

    def _resolve_slug(self, slug: str | None, name: str) -> str:
        final = slugify(slug or name)
        if not final:
            raise ValidationError("Cannot derive a slug from the name", field="slug")
        return final

    def _ensure_slug_free(self, slug: str) -> None:
        if self.repository.get_by_slug(slug) is not None:
            raise SlugConflictError(self.kind.plural, slug)
