"""Tests for domain state machines."""

import pytest

from horeca.domain.exceptions import InvalidStateTransitionError
from horeca.domain.state_machines import (
    EnquiryStatus,
    validate_enquiry_reopen,
    validate_enquiry_transition,
)


class TestEnquiryStatus:
    """Tests for EnquiryStatus state machine."""

    def test_new_can_transition_to_in_progress(self) -> None:
        """NEW can transition to IN_PROGRESS."""
        assert EnquiryStatus.NEW.can_transition_to(EnquiryStatus.IN_PROGRESS)

    def test_new_can_be_marked_spam(self) -> None:
        """NEW can transition to SPAM."""
        assert EnquiryStatus.NEW.can_transition_to(EnquiryStatus.SPAM)

    def test_new_cannot_close_directly(self) -> None:
        """NEW cannot transition directly to CLOSED."""
        assert not EnquiryStatus.NEW.can_transition_to(EnquiryStatus.CLOSED)

    def test_in_progress_can_await_customer_or_close(self) -> None:
        """IN_PROGRESS can transition to AWAITING_CUSTOMER or CLOSED."""
        assert EnquiryStatus.IN_PROGRESS.can_transition_to(EnquiryStatus.AWAITING_CUSTOMER)
        assert EnquiryStatus.IN_PROGRESS.can_transition_to(EnquiryStatus.CLOSED)

    def test_in_progress_cannot_go_back_to_new(self) -> None:
        """IN_PROGRESS cannot return to NEW."""
        assert not EnquiryStatus.IN_PROGRESS.can_transition_to(EnquiryStatus.NEW)

    def test_awaiting_customer_can_resume(self) -> None:
        """AWAITING_CUSTOMER can go back to IN_PROGRESS."""
        assert EnquiryStatus.AWAITING_CUSTOMER.can_transition_to(EnquiryStatus.IN_PROGRESS)
        assert EnquiryStatus.AWAITING_CUSTOMER.can_transition_to(EnquiryStatus.CLOSED)

    def test_closed_is_terminal(self) -> None:
        """CLOSED is a terminal state."""
        assert EnquiryStatus.CLOSED.is_terminal()
        assert EnquiryStatus.CLOSED.allowed_transitions() == []

    def test_spam_is_terminal(self) -> None:
        """SPAM is a terminal state."""
        assert EnquiryStatus.SPAM.is_terminal()

    def test_only_terminal_states_can_reopen(self) -> None:
        """Reopen applies to CLOSED and SPAM only."""
        assert EnquiryStatus.CLOSED.can_reopen()
        assert EnquiryStatus.SPAM.can_reopen()
        assert not EnquiryStatus.NEW.can_reopen()
        assert not EnquiryStatus.IN_PROGRESS.can_reopen()

    def test_allowed_transitions_from_new(self) -> None:
        """NEW has correct allowed transitions in declaration order."""
        assert EnquiryStatus.NEW.allowed_transitions() == [
            EnquiryStatus.IN_PROGRESS,
            EnquiryStatus.SPAM,
        ]

    def test_values_are_hyphenated(self) -> None:
        """Status values use their wire spelling."""
        assert EnquiryStatus.IN_PROGRESS.value == "in-progress"
        assert EnquiryStatus.AWAITING_CUSTOMER.value == "awaiting-customer"


class TestValidateEnquiryTransition:
    """Tests for validate_enquiry_transition."""

    def test_valid_transition(self) -> None:
        """Valid transition should not raise."""
        validate_enquiry_transition("enq-1", EnquiryStatus.NEW, EnquiryStatus.IN_PROGRESS)

    def test_same_status_is_noop(self) -> None:
        """Setting the current status again is allowed, even on terminal states."""
        validate_enquiry_transition("enq-1", EnquiryStatus.CLOSED, EnquiryStatus.CLOSED)

    def test_invalid_transition_raises(self) -> None:
        """Invalid transition should raise with allowed targets."""
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            validate_enquiry_transition("enq-1", EnquiryStatus.NEW, EnquiryStatus.CLOSED)

        error = exc_info.value
        assert error.error_code == "INVALID_STATE_TRANSITION"
        assert error.details["current_state"] == "new"
        assert error.details["target_state"] == "closed"
        assert error.details["allowed_transitions"] == ["in-progress", "spam"]

    def test_terminal_to_new_points_at_reopen(self) -> None:
        """A plain update out of a terminal state suggests reopen."""
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            validate_enquiry_transition("enq-1", EnquiryStatus.SPAM, EnquiryStatus.NEW)

        assert exc_info.value.details["allowed_transitions"] == ["reopen"]

    def test_terminal_to_other_status_raises(self) -> None:
        """A terminal enquiry cannot move to a working status."""
        with pytest.raises(InvalidStateTransitionError):
            validate_enquiry_transition("enq-1", EnquiryStatus.CLOSED, EnquiryStatus.IN_PROGRESS)


class TestValidateEnquiryReopen:
    """Tests for validate_enquiry_reopen."""

    def test_reopen_closed(self) -> None:
        """CLOSED can be reopened."""
        validate_enquiry_reopen("enq-1", EnquiryStatus.CLOSED)

    def test_reopen_spam(self) -> None:
        """SPAM can be reopened."""
        validate_enquiry_reopen("enq-1", EnquiryStatus.SPAM)

    def test_reopen_open_enquiry_raises(self) -> None:
        """Reopening a working enquiry is refused."""
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            validate_enquiry_reopen("enq-1", EnquiryStatus.IN_PROGRESS)

        assert exc_info.value.details["target_state"] == "new"
