"""Domain entities and aggregates.

Aggregates of the catalog core:
- TaxonomyNode: a category or brand node in its rooted forest
- Product: catalog item with its variants, specifications, and tags
- BusinessType: buyer segment referenced by products
- Customer: enquiring person, found or created on submission
- Enquiry: storefront enquiry with its line items and communication log
- Cart / Wishlist: per-session shopping state

Entities compare by identity; the dataclasses are declared with eq=False
so the identity-based __eq__ and __hash__ from Entity stay in effect.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from horeca.domain.base import AggregateRoot, new_id, utcnow
from horeca.domain.events import (
    EnquiryCreated,
    EnquiryMessageAdded,
    EnquiryStatusChanged,
    ProductCreated,
    ProductTagsRegenerated,
    ProductUpdated,
)
from horeca.domain.exceptions import (
    InvalidQuantityError,
    SelfReferenceError,
    ValidationError,
)
from horeca.domain.state_machines import (
    EnquiryStatus,
    validate_enquiry_reopen,
    validate_enquiry_transition,
)
from horeca.domain.value_objects import (
    WHOM_WE_SERVE_SOURCE,
    ColorVariant,
    EnquiryType,
    FilterGroup,
    MessageChannel,
    MessageSender,
    Priority,
    ProductStatus,
    Ref,
    Specification,
    TaxonomyKind,
    TaxonomyLevel,
    UserType,
)

logger = structlog.get_logger()

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")


# ============================================================================
# Taxonomy Node
# ============================================================================


@dataclass(kw_only=True, eq=False)
class TaxonomyNode(AggregateRoot[str]):
    """A node in the category or brand forest.

    Attributes:
        kind: Which forest the node belongs to.
        slug: URL slug, unique per kind.
        name: Display name.
        level: Position in the level order.
        parent_id: Parent node of the same kind, None for departments.
        tagline: Short marketing line.
        description: Longer description.
        image: Optional image URL.
    """

    kind: TaxonomyKind
    slug: str
    name: str
    level: TaxonomyLevel
    parent_id: Ref | None = None
    tagline: str = ""
    description: str = ""
    image: str = ""

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValidationError("Name is required", field="name")
        if self.level not in self.kind.levels:
            raise ValidationError(
                f"Level '{self.level.value}' is not valid for {self.kind.plural}",
                field="level",
                details={"allowed": [lvl.value for lvl in self.kind.levels]},
            )
        if not SLUG_PATTERN.match(self.slug):
            raise ValidationError(f"Invalid slug '{self.slug}'", field="slug")

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "slug": self.slug,
            "name": self.name,
            "level": self.level.value,
            "parent_id": self.parent_id,
            "tagline": self.tagline,
            "description": self.description,
            "image": self.image,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# ============================================================================
# Product Aggregate Root
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Product(AggregateRoot[str]):
    """Catalog product aggregate root.

    Price is a non-negative whole amount in the display currency; 0 or None
    both mean "price on request". Tags are derived by the tag pipeline;
    manual_tags holds what the admin typed and takes precedence.
    """

    title: str
    hero_image: str
    slug: str = ""
    brand: str = ""
    sku: str = ""
    price: int | None = None
    summary: str = ""
    description: str = ""
    status: ProductStatus = ProductStatus.IN_STOCK
    featured: bool = False
    premium: bool = False
    gallery_images: list[str] = field(default_factory=list)
    category_id: Ref | None = None
    additional_category_ids: list[Ref] = field(default_factory=list)
    brand_category_id: Ref | None = None
    additional_brand_category_ids: list[Ref] = field(default_factory=list)
    business_type_slugs: list[str] = field(default_factory=list)
    specifications: list[Specification] = field(default_factory=list)
    filters: list[FilterGroup] = field(default_factory=list)
    color_variants: list[ColorVariant] = field(default_factory=list)
    related_product_ids: list[Ref] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    manual_tags: list[str] = field(default_factory=list)

    @classmethod
    def create(cls, **fields: Any) -> "Product":
        """Create and validate a new product.

        Args:
            **fields: Product attributes.

        Returns:
            New Product with a ProductCreated event recorded.
        """
        product = cls(id=fields.pop("id", None) or new_id(), **fields)
        product.validate()
        product._record_event(
            ProductCreated(
                aggregate_id=product.id,
                aggregate_type="Product",
                product_id=product.id,
                slug=product.slug,
                title=product.title,
            )
        )
        return product

    # -------------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """Check product invariants.

        Raises:
            ValidationError: If a required field is missing or malformed.
            SelfReferenceError: If the product lists itself as related.
        """
        if not self.title or not self.title.strip():
            raise ValidationError("Title is required", field="title")
        if not self.hero_image or not self.hero_image.strip():
            raise ValidationError("Hero image is required", field="hero_image")
        if self.price is not None and self.price < 0:
            raise ValidationError("Price cannot be negative", field="price", details={"price": self.price})
        if self.slug and not SLUG_PATTERN.match(self.slug):
            raise ValidationError(f"Invalid slug '{self.slug}'", field="slug")
        if self.id in self.related_product_ids:
            raise SelfReferenceError(self.id)
        defaults = [v for v in self.color_variants if v.is_default]
        if len(defaults) > 1:
            raise ValidationError(
                "At most one color variant can be the default",
                field="color_variants",
                details={"defaults": [v.color_name for v in defaults]},
            )

    # -------------------------------------------------------------------------
    # Derived Views
    # -------------------------------------------------------------------------

    @property
    def price_on_request(self) -> bool:
        return not self.price

    @property
    def category_ids(self) -> list[Ref]:
        """Primary category followed by additional categories."""
        ids = [self.category_id] if self.category_id else []
        return ids + [c for c in self.additional_category_ids if c not in ids]

    @property
    def brand_ids(self) -> list[Ref]:
        """Primary brand node followed by additional brand nodes."""
        ids = [self.brand_category_id] if self.brand_category_id else []
        return ids + [b for b in self.additional_brand_category_ids if b not in ids]

    @property
    def default_variant(self) -> ColorVariant | None:
        """Resolve the default color variant.

        The first variant flagged default wins; with none flagged, the first
        variant is the implicit default. Several flagged defaults violate an
        invariant and are logged, but the read still resolves.

        Returns:
            The default variant, or None when there are no variants.
        """
        if not self.color_variants:
            return None
        defaults = [v for v in self.color_variants if v.is_default]
        if len(defaults) > 1:
            logger.error(
                "Multiple default color variants on product",
                product_id=self.id,
                defaults=[v.color_name for v in defaults],
            )
        return defaults[0] if defaults else self.color_variants[0]

    def normalized_color_variants(self) -> list[ColorVariant]:
        """Color variants with exactly one default flag set.

        Returns:
            Variants where only the resolved default has is_default=True.
        """
        default = self.default_variant
        return [
            ColorVariant(
                color_name=v.color_name,
                color_hex=v.color_hex,
                images=v.images,
                is_default=v is default,
            )
            for v in self.color_variants
        ]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def apply_changes(self, changes: dict[str, Any]) -> list[str]:
        """Apply field changes and advance the timestamp.

        Args:
            changes: Mapping of attribute name to new value.

        Returns:
            Names of fields whose value actually changed.

        Raises:
            ValidationError: If an unknown field is given or the result is invalid.
        """
        changed: list[str] = []
        for name, value in changes.items():
            if name in _IMMUTABLE_PRODUCT_FIELDS or not hasattr(self, name):
                raise ValidationError(f"Field '{name}' cannot be updated", field=name)
            if getattr(self, name) != value:
                setattr(self, name, value)
                changed.append(name)
        self.validate()
        self._touch()
        self._record_event(
            ProductUpdated(
                aggregate_id=self.id,
                aggregate_type="Product",
                product_id=self.id,
                changed_fields=tuple(changed),
            )
        )
        return changed

    def replace_tags(self, tags: list[str], manual: bool = False) -> None:
        """Replace the product's tags.

        A manual run also becomes the admin's own tag list, so later saves
        keep it.

        Args:
            tags: New tag list.
            manual: True when the admin asked for the run.
        """
        self.tags = list(tags)
        if manual:
            self.manual_tags = list(tags)
        self._touch()
        self._record_event(
            ProductTagsRegenerated(
                aggregate_id=self.id,
                aggregate_type="Product",
                product_id=self.id,
                tag_count=len(self.tags),
                manual=manual,
            )
        )

    def remove_related(self, product_id: Ref) -> bool:
        """Drop a related product reference.

        Returns:
            True if the reference was present.
        """
        if product_id not in self.related_product_ids:
            return False
        self.related_product_ids = [r for r in self.related_product_ids if r != product_id]
        self._touch()
        return True


_IMMUTABLE_PRODUCT_FIELDS = {"id", "created_at", "updated_at", "version", "_events"}


# ============================================================================
# Business Type
# ============================================================================


@dataclass(kw_only=True, eq=False)
class BusinessType(AggregateRoot[str]):
    """A buyer segment (hotels, restaurants, cafes, ...)."""

    slug: str
    name: str
    description: str = ""
    image: str = ""
    display_order: int = 0

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValidationError("Name is required", field="name")
        if not SLUG_PATTERN.match(self.slug):
            raise ValidationError(f"Invalid slug '{self.slug}'", field="slug")


# ============================================================================
# Customer
# ============================================================================


@dataclass(kw_only=True, eq=False)
class Customer(AggregateRoot[str]):
    """A person who submitted at least one enquiry."""

    phone: str
    name: str = ""
    email: str = ""
    company_name: str = ""
    tags: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.phone = self.phone.strip()
        self.email = (self.email or "").strip().lower()
        if not self.phone:
            raise ValidationError("Phone is required", field="phone")

    def merge_contact(self, name: str | None, company_name: str | None) -> bool:
        """Refresh name and company from a newer submission.

        Args:
            name: Name from the latest enquiry.
            company_name: Company from the latest enquiry.

        Returns:
            True if anything changed.
        """
        updated = False
        if name and name != self.name:
            self.name = name
            updated = True
        if company_name and company_name != self.company_name:
            self.company_name = company_name
            updated = True
        if updated:
            self._touch()
        return updated


# ============================================================================
# Enquiry Aggregate Root
# ============================================================================


@dataclass(frozen=True)
class EnquiryItem:
    """An immutable enquiry line.

    Attributes:
        id: Line identifier.
        enquiry_id: Owning enquiry.
        product_id: Referenced product, None when the product was unknown.
        product_name: Product title at submission time.
        quantity: Requested quantity, at least 1.
        color_name: Selected color, if any.
        notes: Free-text notes.
    """

    id: str
    enquiry_id: str
    product_id: Ref | None
    product_name: str
    quantity: int
    color_name: str | None = None
    notes: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise InvalidQuantityError(self.quantity, "Quantity must be at least 1")


@dataclass(frozen=True)
class EnquiryMessage:
    """An immutable communication log entry."""

    id: str
    enquiry_id: str
    sender: MessageSender
    channel: MessageChannel
    message: str
    created_by: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not self.message or not self.message.strip():
            raise ValidationError("Message is required", field="message")


def derive_priority(source: str | None, user_type: UserType) -> Priority:
    """Priority for a new enquiry.

    Business users arriving from a business-segment landing page
    ("whom-we-serve", optionally with a segment suffix) are high priority.

    Args:
        source: Submission source.
        user_type: Declared user type.

    Returns:
        HIGH or NORMAL.
    """
    source = (source or "").strip().lower()
    from_landing = source == WHOM_WE_SERVE_SOURCE or source.startswith(WHOM_WE_SERVE_SOURCE + "/")
    if from_landing and user_type == UserType.BUSINESS:
        return Priority.HIGH
    return Priority.NORMAL


@dataclass(kw_only=True, eq=False)
class Enquiry(AggregateRoot[str]):
    """Storefront enquiry aggregate root.

    Contact fields are copied from the submission so later edits to the
    Customer record do not rewrite history. Items and messages are
    append-only.
    """

    human_enquiry_id: str
    phone: str
    name: str = ""
    email: str = ""
    company: str = ""
    state: str = ""
    customer_id: Ref | None = None
    source: str = "website-form"
    user_type: UserType = UserType.UNKNOWN
    type: EnquiryType = EnquiryType.ENQUIRY_ONLY
    categories: list[str] = field(default_factory=list)
    message: str = ""
    priority: Priority = Priority.NORMAL
    status: EnquiryStatus = EnquiryStatus.NEW
    assigned_to: str = ""
    notes: str = ""
    items: list[EnquiryItem] = field(default_factory=list)
    messages: list[EnquiryMessage] = field(default_factory=list)

    @classmethod
    def submit(
        cls,
        human_enquiry_id: str,
        phone: str,
        lines: list[dict[str, Any]],
        **fields: Any,
    ) -> "Enquiry":
        """Create a new enquiry in status NEW with all its lines.

        Type and priority are derived, never taken from input.

        Args:
            human_enquiry_id: Short sortable id.
            phone: Contact phone, required.
            lines: Line specs with product_id, product_name, quantity,
                color_name and notes.
            **fields: Remaining enquiry attributes.

        Returns:
            The new Enquiry with an EnquiryCreated event recorded.

        Raises:
            ValidationError: If phone is empty or a line is invalid.
        """
        phone = (phone or "").strip()
        if not phone:
            raise ValidationError("Phone is required", field="phone")

        enquiry = cls(id=new_id(), human_enquiry_id=human_enquiry_id, phone=phone, **fields)
        enquiry.items = [
            EnquiryItem(
                id=new_id(),
                enquiry_id=enquiry.id,
                product_id=line.get("product_id"),
                product_name=line["product_name"],
                quantity=line.get("quantity", 1),
                color_name=line.get("color_name"),
                notes=line.get("notes", ""),
            )
            for line in lines
        ]
        enquiry.type = EnquiryType.CART_PLUS_ENQUIRY if enquiry.items else EnquiryType.ENQUIRY_ONLY
        enquiry.priority = derive_priority(enquiry.source, enquiry.user_type)
        enquiry.status = EnquiryStatus.NEW
        enquiry._record_event(
            EnquiryCreated(
                aggregate_id=enquiry.id,
                aggregate_type="Enquiry",
                enquiry_id=enquiry.id,
                human_enquiry_id=enquiry.human_enquiry_id,
                enquiry_type=enquiry.type.value,
                priority=enquiry.priority.value,
                item_count=len(enquiry.items),
            )
        )
        return enquiry

    def change_status(self, target: EnquiryStatus) -> bool:
        """Apply a plain status update.

        Args:
            target: Requested status.

        Returns:
            True if the status changed, False for a same-status no-op.

        Raises:
            InvalidStateTransitionError: If the transition is not allowed.
        """
        validate_enquiry_transition(self.id, self.status, target)
        if target == self.status:
            return False
        previous = self.status
        self.status = target
        self._touch()
        self._record_event(
            EnquiryStatusChanged(
                aggregate_id=self.id,
                aggregate_type="Enquiry",
                enquiry_id=self.id,
                from_status=previous.value,
                to_status=target.value,
            )
        )
        return True

    def reopen(self) -> None:
        """Explicitly move a closed or spam enquiry back to NEW.

        Raises:
            InvalidStateTransitionError: If the enquiry is not terminal.
        """
        validate_enquiry_reopen(self.id, self.status)
        previous = self.status
        self.status = EnquiryStatus.NEW
        self._touch()
        self._record_event(
            EnquiryStatusChanged(
                aggregate_id=self.id,
                aggregate_type="Enquiry",
                enquiry_id=self.id,
                from_status=previous.value,
                to_status=EnquiryStatus.NEW.value,
                reopened=True,
            )
        )

    def update_workflow(
        self,
        priority: Priority | None = None,
        assigned_to: str | None = None,
        notes: str | None = None,
    ) -> list[str]:
        """Change priority, assignee or notes without touching status.

        Returns:
            Names of the fields that changed.
        """
        changed: list[str] = []
        if priority is not None and priority != self.priority:
            self.priority = priority
            changed.append("priority")
        if assigned_to is not None and assigned_to.strip() != self.assigned_to:
            self.assigned_to = assigned_to.strip()
            changed.append("assigned_to")
        if notes is not None and notes.strip() != self.notes:
            self.notes = notes.strip()
            changed.append("notes")
        if changed:
            self._touch()
        return changed

    def add_message(
        self,
        message: str,
        sender: MessageSender = MessageSender.ADMIN,
        channel: MessageChannel = MessageChannel.INTERNAL_NOTE,
        created_by: str = "",
    ) -> EnquiryMessage:
        """Append a communication log entry; status is unaffected.

        Returns:
            The new log entry.
        """
        entry = EnquiryMessage(
            id=new_id(),
            enquiry_id=self.id,
            sender=sender,
            channel=channel,
            message=(message or "").strip(),
            created_by=created_by,
        )
        self.messages.append(entry)
        self._touch()
        self._record_event(
            EnquiryMessageAdded(
                aggregate_id=self.id,
                aggregate_type="Enquiry",
                enquiry_id=self.id,
                sender=sender.value,
                channel=channel.value,
            )
        )
        return entry

    def matches_text(self, text: str) -> bool:
        """Case-insensitive substring search over contact fields and message."""
        needle = text.lower()
        haystack = (self.name, self.email, self.phone, self.message, self.company)
        return any(needle in (value or "").lower() for value in haystack)


# ============================================================================
# Cart and Wishlist
# ============================================================================


@dataclass
class CartLine:
    """A cart line keyed by (product_id, color_name).

    unit_price is captured when the line is first added and never refreshed
    from the catalog while the line lives.
    """

    product_id: Ref
    product_name: str
    unit_price: int | None
    quantity: int
    color_name: str | None = None
    slug: str = ""
    image: str = ""
    added_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise InvalidQuantityError(self.quantity)

    @property
    def key(self) -> tuple[str, str | None]:
        return (self.product_id, self.color_name or None)

    @property
    def line_total(self) -> int:
        return (self.unit_price or 0) * self.quantity


@dataclass(frozen=True)
class ShippingProgress:
    """Advisory free-shipping progress.

    Attributes:
        threshold: Subtotal needed for free shipping.
        progress_fraction: Subtotal / threshold, capped at 1.0.
        remaining_to_threshold: Amount still needed, never negative.
        eligible: Whether the threshold is reached.
    """

    threshold: int
    progress_fraction: float
    remaining_to_threshold: int
    eligible: bool


@dataclass
class Cart:
    """Per-session shopping cart."""

    session_id: str
    lines: list[CartLine] = field(default_factory=list)
    updated_at: datetime = field(default_factory=utcnow)

    def find_line(self, product_id: Ref, color_name: str | None = None) -> CartLine | None:
        key = (product_id, color_name or None)
        for line in self.lines:
            if line.key == key:
                return line
        return None

    def add(self, line: CartLine) -> CartLine:
        """Add a line, merging quantity into an identical existing line.

        Args:
            line: New line with its captured price.

        Returns:
            The line now held by the cart.
        """
        existing = self.find_line(line.product_id, line.color_name)
        if existing:
            existing.quantity += line.quantity
            self.updated_at = utcnow()
            return existing
        self.lines.append(line)
        self.updated_at = utcnow()
        return line

    def set_quantity(self, product_id: Ref, color_name: str | None, quantity: int) -> CartLine | None:
        """Set a line's quantity; a quantity of zero or less removes it.

        Returns:
            The updated line, or None if it was removed or absent.
        """
        line = self.find_line(product_id, color_name)
        if line is None:
            return None
        if quantity <= 0:
            self.remove(product_id, color_name)
            return None
        line.quantity = quantity
        self.updated_at = utcnow()
        return line

    def remove(self, product_id: Ref, color_name: str | None = None) -> bool:
        key = (product_id, color_name or None)
        before = len(self.lines)
        self.lines = [line for line in self.lines if line.key != key]
        self.updated_at = utcnow()
        return len(self.lines) < before

    def clear(self) -> int:
        count = len(self.lines)
        self.lines = []
        self.updated_at = utcnow()
        return count

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total_price(self) -> int:
        return sum(line.line_total for line in self.lines)

    def shipping_progress(self, threshold: int) -> ShippingProgress:
        """Compute free-shipping progress against a threshold.

        Args:
            threshold: Free-shipping subtotal; non-positive means always free.

        Returns:
            ShippingProgress snapshot.
        """
        subtotal = self.total_price
        if threshold <= 0:
            return ShippingProgress(threshold, 1.0, 0, True)
        return ShippingProgress(
            threshold=threshold,
            progress_fraction=min(subtotal / threshold, 1.0),
            remaining_to_threshold=max(threshold - subtotal, 0),
            eligible=subtotal >= threshold,
        )


@dataclass
class Wishlist:
    """Per-session set of product ids."""

    session_id: str
    product_ids: list[Ref] = field(default_factory=list)

    def add(self, product_id: Ref) -> bool:
        if product_id in self.product_ids:
            return False
        self.product_ids.append(product_id)
        return True

    def remove(self, product_id: Ref) -> bool:
        if product_id not in self.product_ids:
            return False
        self.product_ids.remove(product_id)
        return True

    def __contains__(self, product_id: object) -> bool:
        return product_id in self.product_ids
