"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity: product specifications, filter groups, color
variants, and the enumerations that classify catalog and enquiry data.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

from horeca.domain.base import ValueObject
from horeca.domain.exceptions import ValidationError


# ============================================================================
# References
# ============================================================================


# A reference to another aggregate by identity. Inputs may carry either the
# bare id or a populated object; hydrate_ref collapses both to the id.
Ref: TypeAlias = str


def hydrate_ref(value: Any) -> Ref | None:
    """Normalize a reference that may be an id string or a populated object.

    Args:
        value: Id string, mapping with ``id`` or ``_id``, object with an
            ``id`` attribute, or None.

    Returns:
        The referenced id, or None for empty input.

    Raises:
        ValidationError: If the value cannot be interpreted as a reference.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, dict):
        for key in ("id", "_id"):
            if value.get(key):
                return str(value[key])
        raise ValidationError("Reference object has no id", details={"value": value})
    ref_id = getattr(value, "id", None)
    if ref_id:
        return str(ref_id)
    raise ValidationError(f"Cannot interpret {type(value).__name__} as a reference")


def hydrate_refs(values: Any) -> list[Ref]:
    """Normalize a list of references, dropping empties and duplicates.

    Args:
        values: Iterable of references in any form hydrate_ref accepts.

    Returns:
        Ordered list of unique ids.
    """
    refs: list[Ref] = []
    for value in values or []:
        ref = hydrate_ref(value)
        if ref and ref not in refs:
            refs.append(ref)
    return refs


# ============================================================================
# Taxonomy Enumerations
# ============================================================================


class TaxonomyKind(str, Enum):
    """The two independent taxonomy forests."""

    CATEGORY = "category"
    BRAND = "brand"

    @property
    def levels(self) -> list["TaxonomyLevel"]:
        """Ordered levels available to this kind, top to bottom."""
        if self is TaxonomyKind.CATEGORY:
            return list(TaxonomyLevel)
        return [TaxonomyLevel.DEPARTMENT, TaxonomyLevel.CATEGORY, TaxonomyLevel.SUBCATEGORY]

    @property
    def max_depth(self) -> int:
        return len(self.levels)

    @property
    def plural(self) -> str:
        return "categories" if self is TaxonomyKind.CATEGORY else "brands"


class TaxonomyLevel(str, Enum):
    """Taxonomy levels, top to bottom."""

    DEPARTMENT = "department"
    CATEGORY = "category"
    SUBCATEGORY = "subcategory"
    TYPE = "type"

    @property
    def depth(self) -> int:
        """Zero-based depth of this level."""
        return _LEVEL_ORDER.index(self)

    def parent_level(self) -> "TaxonomyLevel | None":
        """Level a parent of this level must have.

        Returns:
            The immediate predecessor level, or None for department.
        """
        if self.depth == 0:
            return None
        return _LEVEL_ORDER[self.depth - 1]


_LEVEL_ORDER: list[TaxonomyLevel] = [
    TaxonomyLevel.DEPARTMENT,
    TaxonomyLevel.CATEGORY,
    TaxonomyLevel.SUBCATEGORY,
    TaxonomyLevel.TYPE,
]


# ============================================================================
# Product Enumerations and Value Objects
# ============================================================================


class ProductStatus(str, Enum):
    """Product availability."""

    IN_STOCK = "in-stock"
    OUT_OF_STOCK = "out-of-stock"
    PRE_ORDER = "pre-order"

    @classmethod
    def parse(cls, value: str) -> "ProductStatus":
        """Parse a status, accepting legacy display forms like "In Stock".

        Args:
            value: Raw status string.

        Returns:
            Matching ProductStatus.

        Raises:
            ValidationError: If the value is not a known status.
        """
        normalized = value.strip().lower().replace(" ", "-").replace("_", "-")
        try:
            return cls(normalized)
        except ValueError:
            raise ValidationError(
                f"Unknown product status '{value}'",
                field="status",
                details={"allowed": [s.value for s in cls]},
            ) from None


@dataclass(frozen=True)
class Specification(ValueObject):
    """A single (label, value, unit) specification row.

    Attributes:
        label: Specification name, e.g. "Diameter".
        value: Specification value, e.g. "30".
        unit: Optional unit, e.g. "cm".
    """

    label: str
    value: str
    unit: str | None = None

    def __post_init__(self) -> None:
        if not self.label.strip():
            raise ValidationError("Specification label is required", field="specifications")

    def display(self) -> str:
        return f"{self.value} {self.unit}".strip() if self.unit else self.value


# Keys every product carries in its filters, even with no values.
REQUIRED_FILTER_KEYS: tuple[str, ...] = ("Material", "Size")

# Order used when importing legacy object-of-arrays filters.
LEGACY_FILTER_ORDER: tuple[str, ...] = ("Material", "Size", "Color", "Usage")


@dataclass(frozen=True)
class FilterGroup(ValueObject):
    """A filter key with its set of values (order preserved, no duplicates).

    Attributes:
        key: Filter name, e.g. "Material".
        values: Distinct values in insertion order.
    """

    key: str
    values: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.key.strip():
            raise ValidationError("Filter key is required", field="filters")
        seen: list[str] = []
        for value in self.values:
            cleaned = str(value).strip()
            if cleaned and cleaned not in seen:
                seen.append(cleaned)
        object.__setattr__(self, "values", tuple(seen))

    def matches_any(self, wanted: set[str]) -> bool:
        """Check whether any value matches, case-insensitively.

        Args:
            wanted: Lowercased values to look for.

        Returns:
            True if at least one value is in wanted.
        """
        return any(value.lower() in wanted for value in self.values)


def ensure_required_filters(filters: list[FilterGroup]) -> list[FilterGroup]:
    """Guarantee the conventional Material and Size keys are present.

    Args:
        filters: Filter groups as supplied.

    Returns:
        Filter groups with any missing required key appended empty.
    """
    keys = {group.key.lower() for group in filters}
    result = list(filters)
    for key in REQUIRED_FILTER_KEYS:
        if key.lower() not in keys:
            result.append(FilterGroup(key=key))
    return result


def filters_from_legacy(legacy: dict[str, list[str]] | None) -> list[FilterGroup]:
    """Convert a legacy object-of-arrays filter map to filter groups.

    Known keys come first in a fixed order (Material, Size, Color, Usage);
    any other keys follow, capitalized, in their original order.

    Args:
        legacy: Mapping of lowercase keys to value lists.

    Returns:
        Ordered filter groups including the required keys.
    """
    legacy = legacy or {}
    by_lower = {key.lower(): values for key, values in legacy.items()}
    groups: list[FilterGroup] = []
    for key in LEGACY_FILTER_ORDER:
        values = by_lower.pop(key.lower(), None)
        if values is not None or key in REQUIRED_FILTER_KEYS:
            groups.append(FilterGroup(key=key, values=tuple(values or ())))
    for key, values in by_lower.items():
        groups.append(FilterGroup(key=key.capitalize(), values=tuple(values or ())))
    return groups


@dataclass(frozen=True)
class ColorVariant(ValueObject):
    """A color option for a product.

    Attributes:
        color_name: Display name, e.g. "Gold".
        color_hex: Hex swatch, e.g. "#D4AF37".
        images: Image URLs for this color.
        is_default: Whether this variant is shown first.
    """

    color_name: str
    color_hex: str = ""
    images: tuple[str, ...] = field(default_factory=tuple)
    is_default: bool = False

    def __post_init__(self) -> None:
        if not self.color_name.strip():
            raise ValidationError("Color variant name is required", field="color_variants")


# ============================================================================
# Enquiry Enumerations
# ============================================================================


class UserType(str, Enum):
    UNKNOWN = "unknown"
    CUSTOMER = "customer"
    BUSINESS = "business"


class EnquiryType(str, Enum):
    ENQUIRY_ONLY = "enquiry-only"
    CART_PLUS_ENQUIRY = "cart-plus-enquiry"


class Priority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class MessageSender(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"
    SYSTEM = "system"


class MessageChannel(str, Enum):
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    PHONE = "phone"
    INTERNAL_NOTE = "internal-note"
    SYSTEM = "system"


# Source value of the business-segment landing pages.
WHOM_WE_SERVE_SOURCE = "whom-we-serve"
