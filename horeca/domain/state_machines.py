"""State machines for domain entities.

Deterministic state machine over enquiry status. The admin moves an
enquiry through its lifecycle; terminal states can only be left through
an explicit reopen, never through a plain status update.
"""

from enum import Enum

from horeca.domain.exceptions import InvalidStateTransitionError


# ============================================================================
# Enquiry State Machine
# ============================================================================


class EnquiryStatus(str, Enum):
    """Enquiry lifecycle states.

    State diagram:
        NEW ──────► IN_PROGRESS ◄──────► AWAITING_CUSTOMER
         │               │                     │
         │               ▼                     │
         │            CLOSED ◄─────────────────┘
         ▼
        SPAM

        CLOSED / SPAM ──reopen──► NEW
    """

    NEW = "new"
    IN_PROGRESS = "in-progress"
    AWAITING_CUSTOMER = "awaiting-customer"
    CLOSED = "closed"
    SPAM = "spam"

    def can_transition_to(self, target: "EnquiryStatus") -> bool:
        """Check if a plain status update to target is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _ENQUIRY_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["EnquiryStatus"]:
        """Get valid targets for a plain status update, in declaration order.

        Returns:
            List of states that can be transitioned to.
        """
        allowed = _ENQUIRY_TRANSITIONS.get(self, set())
        return [status for status in EnquiryStatus if status in allowed]

    def is_terminal(self) -> bool:
        """Check if this is a terminal state.

        Returns:
            True if only an explicit reopen can leave this state.
        """
        return len(_ENQUIRY_TRANSITIONS.get(self, set())) == 0

    def can_reopen(self) -> bool:
        """Check if the explicit reopen action applies.

        Returns:
            True for closed and spam enquiries.
        """
        return self.is_terminal()


# Enquiry state transitions (defined outside enum to avoid Enum restrictions)
_ENQUIRY_TRANSITIONS: dict[EnquiryStatus, set[EnquiryStatus]] = {
    EnquiryStatus.NEW: {EnquiryStatus.IN_PROGRESS, EnquiryStatus.SPAM},
    EnquiryStatus.IN_PROGRESS: {EnquiryStatus.AWAITING_CUSTOMER, EnquiryStatus.CLOSED},
    EnquiryStatus.AWAITING_CUSTOMER: {EnquiryStatus.IN_PROGRESS, EnquiryStatus.CLOSED},
    EnquiryStatus.CLOSED: set(),  # Terminal, reopen only
    EnquiryStatus.SPAM: set(),  # Terminal, reopen only
}


def validate_enquiry_transition(
    enquiry_id: str,
    current: EnquiryStatus,
    target: EnquiryStatus,
) -> None:
    """Validate a plain status update on an enquiry.

    Setting the current status again is a no-op and always valid.

    Args:
        enquiry_id: ID of the enquiry being updated.
        current: Current status.
        target: Requested status.

    Raises:
        InvalidStateTransitionError: If the update is not allowed.
    """
    if current == target:
        return
    if not current.can_transition_to(target):
        allowed = [s.value for s in current.allowed_transitions()]
        if current.can_reopen() and target == EnquiryStatus.NEW:
            allowed = ["reopen"]
        raise InvalidStateTransitionError(
            entity_type="Enquiry",
            entity_id=enquiry_id,
            current_state=current.value,
            target_state=target.value,
            allowed_transitions=allowed,
        )


def validate_enquiry_reopen(enquiry_id: str, current: EnquiryStatus) -> None:
    """Validate the explicit reopen action.

    Args:
        enquiry_id: ID of the enquiry being reopened.
        current: Current status.

    Raises:
        InvalidStateTransitionError: If the enquiry is not closed or spam.
    """
    if not current.can_reopen():
        raise InvalidStateTransitionError(
            entity_type="Enquiry",
            entity_id=enquiry_id,
            current_state=current.value,
            target_state=EnquiryStatus.NEW.value,
            allowed_transitions=[s.value for s in current.allowed_transitions()],
        )
