"""Base classes for the domain layer.

Provides the building blocks shared by catalog and enquiry aggregates:
value objects, entities compared by identity, aggregate roots that track
their own modification timestamps, and domain events.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar, Generic, TypeVar
from uuid import UUID, uuid4


def utcnow() -> datetime:
    """Return the current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a new opaque identifier.

    Returns:
        Hex string of a random UUID.
    """
    return uuid4().hex


# ============================================================================
# Value Object Base
# ============================================================================


@dataclass(frozen=True)
class ValueObject(ABC):
    """Base class for value objects.

    Value objects are immutable and compared by their attributes. A
    Specification row or a ColorVariant is interchangeable with any other
    carrying the same values.
    """

    pass


# ============================================================================
# Entity Base
# ============================================================================


T = TypeVar("T", bound=UUID | str)


@dataclass
class Entity(ABC, Generic[T]):
    """Base class for entities.

    Entities keep their identity across state changes; two entities are
    equal when their ids are equal, whatever their other attributes hold.

    Attributes:
        id: Unique identifier for this entity.
    """

    id: T

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


# ============================================================================
# Aggregate Root Base
# ============================================================================


@dataclass(kw_only=True, eq=False)
class AggregateRoot(Entity[T], Generic[T]):
    """Base class for aggregate roots.

    An aggregate root is the only entry point for mutating its cluster of
    objects (a Product and its variants, an Enquiry and its log). It keeps
    the modification timestamps and collects domain events until the
    service layer drains them after persisting.

    Attributes:
        version: Incremented on every mutation.
        created_at: Timestamp when the aggregate was created.
        updated_at: Timestamp of last modification.
    """

    version: int = field(default=1, compare=False)
    created_at: datetime = field(default_factory=utcnow, compare=False)
    updated_at: datetime = field(default_factory=utcnow, compare=False)
    _events: list["DomainEvent"] = field(
        default_factory=list,
        init=False,
        repr=False,
        compare=False,
    )

    def _record_event(self, event: "DomainEvent") -> None:
        """Record a domain event to be published after persistence.

        Args:
            event: Domain event to record.
        """
        self._events.append(event)

    def collect_events(self) -> list["DomainEvent"]:
        """Collect and clear recorded events.

        Returns:
            List of domain events that were recorded.
        """
        events = self._events.copy()
        self._events.clear()
        return events

    def _touch(self) -> None:
        """Advance updated_at and the version counter.

        updated_at is kept strictly increasing so that a no-op update still
        moves the timestamp forward.
        """
        now = utcnow()
        if now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        self.updated_at = now
        self.version += 1


# ============================================================================
# Domain Event Base
# ============================================================================


@dataclass(frozen=True)
class DomainEvent(ABC):
    """Base class for domain events.

    Attributes:
        event_id: Unique identifier for this event instance.
        event_type: Dotted event name, set by each subclass.
        occurred_at: Timestamp when the event occurred.
        aggregate_id: ID of the aggregate that emitted this event.
        aggregate_type: Type name of the aggregate.
    """

    event_type: ClassVar[str]

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)
    aggregate_id: str = field(default="")
    aggregate_type: str = field(default="")

    def to_dict(self) -> dict[str, Any]:
        """Convert event to a JSON-friendly dictionary.

        Returns:
            Dictionary representation of the event.
        """
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "payload": self._payload(),
        }

    @abstractmethod
    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload data."""
        pass
