"""Domain events for the catalog and enquiry aggregates.

Events are recorded by aggregates and drained by the application services
after a successful write, where they are logged and used to invalidate
derived caches (per-status enquiry counts).
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar

from horeca.domain.base import DomainEvent


# ============================================================================
# Product Events
# ============================================================================


@dataclass(frozen=True)
class ProductCreated(DomainEvent):
    """Event raised when a product is created."""

    event_type: ClassVar[str] = "product.created"

    product_id: str = ""
    slug: str = ""
    title: str = ""

    def _payload(self) -> dict[str, Any]:
        return {"product_id": self.product_id, "slug": self.slug, "title": self.title}


@dataclass(frozen=True)
class ProductUpdated(DomainEvent):
    """Event raised when product fields change."""

    event_type: ClassVar[str] = "product.updated"

    product_id: str = ""
    changed_fields: tuple[str, ...] = field(default_factory=tuple)

    def _payload(self) -> dict[str, Any]:
        return {"product_id": self.product_id, "changed_fields": list(self.changed_fields)}


@dataclass(frozen=True)
class ProductTagsRegenerated(DomainEvent):
    """Event raised when the tag pipeline replaces a product's tags."""

    event_type: ClassVar[str] = "product.tags_regenerated"

    product_id: str = ""
    tag_count: int = 0
    manual: bool = False

    def _payload(self) -> dict[str, Any]:
        return {"product_id": self.product_id, "tag_count": self.tag_count, "manual": self.manual}


# ============================================================================
# Enquiry Events
# ============================================================================


@dataclass(frozen=True)
class EnquiryCreated(DomainEvent):
    """Event raised when a storefront enquiry is submitted."""

    event_type: ClassVar[str] = "enquiry.created"

    enquiry_id: str = ""
    human_enquiry_id: str = ""
    enquiry_type: str = ""
    priority: str = ""
    item_count: int = 0

    def _payload(self) -> dict[str, Any]:
        return {
            "enquiry_id": self.enquiry_id,
            "human_enquiry_id": self.human_enquiry_id,
            "enquiry_type": self.enquiry_type,
            "priority": self.priority,
            "item_count": self.item_count,
        }


@dataclass(frozen=True)
class EnquiryStatusChanged(DomainEvent):
    """Event raised when an enquiry changes status (including reopen)."""

    event_type: ClassVar[str] = "enquiry.status_changed"

    enquiry_id: str = ""
    from_status: str = ""
    to_status: str = ""
    reopened: bool = False

    def _payload(self) -> dict[str, Any]:
        return {
            "enquiry_id": self.enquiry_id,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "reopened": self.reopened,
        }


@dataclass(frozen=True)
class EnquiryMessageAdded(DomainEvent):
    """Event raised when a communication log entry is appended."""

    event_type: ClassVar[str] = "enquiry.message_added"

    enquiry_id: str = ""
    sender: str = ""
    channel: str = ""

    def _payload(self) -> dict[str, Any]:
        return {"enquiry_id": self.enquiry_id, "sender": self.sender, "channel": self.channel}


# ============================================================================
# Event Registry
# ============================================================================


EVENT_REGISTRY: dict[str, type[DomainEvent]] = {
    ProductCreated.event_type: ProductCreated,
    ProductUpdated.event_type: ProductUpdated,
    ProductTagsRegenerated.event_type: ProductTagsRegenerated,
    EnquiryCreated.event_type: EnquiryCreated,
    EnquiryStatusChanged.event_type: EnquiryStatusChanged,
    EnquiryMessageAdded.event_type: EnquiryMessageAdded,
}


def get_event_class(event_type: str) -> type[DomainEvent] | None:
    """Get event class by event type string.

    Args:
        event_type: Event type identifier (e.g., 'enquiry.created').

    Returns:
        Event class if found, None otherwise.
    """
    return EVENT_REGISTRY.get(event_type)
