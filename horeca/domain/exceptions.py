"""Domain exceptions.

All errors the catalog core surfaces. Each class belongs to one category
(validation, conflict, not-found, transient, dependency, fatal); the API
layer maps the category to an HTTP status and the ``error_code`` attribute
to the machine-readable code in the error envelope.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message.
        details: Machine-readable context for the error envelope.
        error_code: Stable code identifying the error kind.
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(DomainError):
    """Raised for malformed input or a missing required field."""

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Human-readable error message.
            field: Name of the offending field, if any.
            details: Optional additional context.
        """
        merged = dict(details or {})
        if field is not None:
            merged.setdefault("field", field)
        super().__init__(message, details=merged)
        self.field = field


class SelfReferenceError(ValidationError):
    """Raised when a product lists itself among its related products."""

    def __init__(self, product_id: str) -> None:
        super().__init__(
            f"Product {product_id} cannot be related to itself",
            field="related_product_ids",
            details={"product_id": product_id},
        )


class InvalidQuantityError(ValidationError):
    """Raised when a cart or enquiry line carries an invalid quantity."""

    def __init__(self, quantity: int, reason: str = "Quantity must be positive") -> None:
        """Initialize invalid quantity error.

        Args:
            quantity: The invalid quantity value.
            reason: Explanation of why the quantity is invalid.
        """
        super().__init__(
            f"Invalid quantity {quantity}: {reason}",
            field="quantity",
            details={"quantity": quantity, "reason": reason},
        )


# ============================================================================
# Not Found
# ============================================================================


class NotFoundError(DomainError):
    """Raised when an identity or slug does not resolve."""

    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, key: str, by: str = "id") -> None:
        """Initialize not found error.

        Args:
            entity_type: Type of the missing entity (e.g. "Product").
            key: The id or slug that was looked up.
            by: Which attribute was used for the lookup.
        """
        super().__init__(
            f"{entity_type} with {by} '{key}' not found",
            details={"entity_type": entity_type, by: key},
        )
        self.entity_type = entity_type
        self.key = key


# ============================================================================
# Conflict Errors
# ============================================================================


class ConflictError(DomainError):
    """Base class for requests that clash with current state."""

    error_code = "CONFLICT"


class SlugConflictError(ConflictError):
    """Raised when a slug is already taken within its namespace."""

    error_code = "SLUG_CONFLICT"

    def __init__(self, namespace: str, slug: str) -> None:
        """Initialize slug conflict error.

        Args:
            namespace: Slug namespace (products, categories, brands, ...).
            slug: The colliding slug.
        """
        super().__init__(
            f"Slug '{slug}' already exists in {namespace}",
            details={"namespace": namespace, "slug": slug},
        )


class TaxonomyCycleError(ConflictError):
    """Raised when a parent assignment would make a node its own ancestor."""

    error_code = "TAXONOMY_CYCLE"

    def __init__(self, kind: str, node_id: str, parent_id: str) -> None:
        super().__init__(
            f"Setting parent of {kind} {node_id} to {parent_id} would create a cycle",
            details={"kind": kind, "node_id": node_id, "parent_id": parent_id},
        )


class TaxonomyHasChildrenError(ConflictError):
    """Raised when deleting a taxonomy node that still has children."""

    error_code = "TAXONOMY_HAS_CHILDREN"

    def __init__(self, kind: str, node_id: str, child_count: int) -> None:
        super().__init__(
            f"Cannot delete {kind} {node_id}: it has {child_count} child node(s)",
            details={"kind": kind, "node_id": node_id, "child_count": child_count},
        )


class TaxonomyInUseError(ConflictError):
    """Raised when deleting a taxonomy node referenced by products."""

    error_code = "TAXONOMY_IN_USE"

    def __init__(self, kind: str, node_id: str, product_count: int) -> None:
        super().__init__(
            f"Cannot delete {kind} {node_id}: referenced by {product_count} product(s)",
            details={"kind": kind, "node_id": node_id, "product_count": product_count},
        )


class InvalidStateTransitionError(ConflictError):
    """Raised when an invalid state transition is attempted."""

    error_code = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            entity_type: Type of entity (e.g., "Enquiry").
            entity_id: ID of the entity.
            current_state: Current state of the entity.
            target_state: Attempted target state.
            allowed_transitions: List of allowed target states from current state.
        """
        allowed = allowed_transitions or []
        message = (
            f"Cannot transition {entity_type}({entity_id}) "
            f"from '{current_state}' to '{target_state}'. "
            f"Allowed transitions: {allowed}"
        )
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )


# ============================================================================
# Transient / Dependency / Fatal
# ============================================================================


class TransientStoreError(DomainError):
    """Raised when the store is unavailable or an operation timed out.

    The caller may retry the same request.
    """

    error_code = "TRANSIENT_ERROR"

    def __init__(self, message: str = "Store temporarily unavailable", operation: str | None = None) -> None:
        super().__init__(message, details={"operation": operation, "retriable": True})


class DependencyError(DomainError):
    """Raised when an external collaborator (AI, upload) fails."""

    error_code = "DEPENDENCY_ERROR"

    def __init__(self, dependency: str, message: str, details: dict[str, Any] | None = None) -> None:
        merged = {"dependency": dependency, **(details or {})}
        super().__init__(message, details=merged)
        self.dependency = dependency


class AIGenerationError(DependencyError):
    """Raised when the text generation endpoint fails or times out."""

    error_code = "AI_GENERATION_FAILED"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__("ai", message, details={"field": field})


class AICooldownError(DependencyError):
    """Raised when text generation is re-invoked for a field too soon."""

    error_code = "AI_COOLDOWN"

    def __init__(self, field: str, retry_after_seconds: float) -> None:
        super().__init__(
            "ai",
            f"Please wait {retry_after_seconds:.1f}s before generating {field} again",
            details={"field": field, "retry_after_seconds": round(retry_after_seconds, 2)},
        )
        self.retry_after_seconds = retry_after_seconds


class UploadError(DependencyError):
    """Raised when the upload collaborator rejects or fails to store a file."""

    error_code = "UPLOAD_FAILED"

    def __init__(self, message: str, filename: str | None = None) -> None:
        super().__init__("upload", message, details={"filename": filename})


class FatalInvariantError(DomainError):
    """Raised when persisted state violates an invariant."""

    error_code = "INTERNAL_ERROR"
