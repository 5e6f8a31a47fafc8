"""Domain layer - Entities, value objects, state machines, domain events.

This module exports the core domain building blocks:

- **Entities**: Objects with identity (TaxonomyNode, Product, Enquiry, Customer)
- **Value Objects**: Immutable objects compared by value (Specification, FilterGroup, ColorVariant)
- **State Machines**: Deterministic enquiry status transitions (EnquiryStatus)
- **Domain Events**: Represent significant domain occurrences
- **Exceptions**: The error taxonomy surfaced by the catalog core

Example usage:
    from horeca.domain import Enquiry, EnquiryStatus

    enquiry = Enquiry.submit("ENQ-250101-0001", phone="9876543210", lines=[])
    enquiry.change_status(EnquiryStatus.IN_PROGRESS)
"""

# Base classes
from horeca.domain.base import AggregateRoot, DomainEvent, Entity, ValueObject

# Entities
from horeca.domain.entities import (
    BusinessType,
    Cart,
    CartLine,
    Customer,
    Enquiry,
    EnquiryItem,
    EnquiryMessage,
    Product,
    ShippingProgress,
    TaxonomyNode,
    Wishlist,
    derive_priority,
)

# Domain Events
from horeca.domain.events import (
    EVENT_REGISTRY,
    EnquiryCreated,
    EnquiryMessageAdded,
    EnquiryStatusChanged,
    ProductCreated,
    ProductTagsRegenerated,
    ProductUpdated,
    get_event_class,
)

# Exceptions
from horeca.domain.exceptions import (
    AICooldownError,
    AIGenerationError,
    ConflictError,
    DependencyError,
    DomainError,
    FatalInvariantError,
    InvalidQuantityError,
    InvalidStateTransitionError,
    NotFoundError,
    SelfReferenceError,
    SlugConflictError,
    TaxonomyCycleError,
    TaxonomyHasChildrenError,
    TaxonomyInUseError,
    TransientStoreError,
    UploadError,
    ValidationError,
)

# State Machines
from horeca.domain.state_machines import (
    EnquiryStatus,
    validate_enquiry_reopen,
    validate_enquiry_transition,
)

# Value Objects
from horeca.domain.value_objects import (
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
    hydrate_ref,
    hydrate_refs,
)

__all__ = [
    # Base classes
    "AggregateRoot",
    "DomainEvent",
    "Entity",
    "ValueObject",
    # Entities
    "BusinessType",
    "Cart",
    "CartLine",
    "Customer",
    "Enquiry",
    "EnquiryItem",
    "EnquiryMessage",
    "Product",
    "ShippingProgress",
    "TaxonomyNode",
    "Wishlist",
    "derive_priority",
    # Value Objects
    "ColorVariant",
    "EnquiryType",
    "FilterGroup",
    "MessageChannel",
    "MessageSender",
    "Priority",
    "ProductStatus",
    "Ref",
    "Specification",
    "TaxonomyKind",
    "TaxonomyLevel",
    "UserType",
    "hydrate_ref",
    "hydrate_refs",
    # State Machines
    "EnquiryStatus",
    "validate_enquiry_reopen",
    "validate_enquiry_transition",
    # Domain Events
    "EnquiryCreated",
    "EnquiryMessageAdded",
    "EnquiryStatusChanged",
    "ProductCreated",
    "ProductTagsRegenerated",
    "ProductUpdated",
    "EVENT_REGISTRY",
    "get_event_class",
    # Exceptions
    "DomainError",
    "ValidationError",
    "SelfReferenceError",
    "InvalidQuantityError",
    "NotFoundError",
    "ConflictError",
    "SlugConflictError",
    "TaxonomyCycleError",
    "TaxonomyHasChildrenError",
    "TaxonomyInUseError",
    "InvalidStateTransitionError",
    "TransientStoreError",
    "DependencyError",
    "AIGenerationError",
    "AICooldownError",
    "UploadError",
    "FatalInvariantError",
]
