"""Tests for WhatsApp link formatting."""

import pytest

from horeca.domain.exceptions import ValidationError
from horeca.infrastructure.messaging import build_whatsapp_link, format_enquiry_message, phone_digits


class TestPhoneDigits:
    """Tests for phone_digits."""

    def test_strips_formatting(self) -> None:
        """Only digits remain."""
        assert phone_digits("+91 (987) 654-3210") == "919876543210"
        assert phone_digits("") == ""


class TestBuildWhatsAppLink:
    """Tests for build_whatsapp_link."""

    def test_without_message(self) -> None:
        """No text parameter without a message."""
        assert build_whatsapp_link("+91 98765 43210") == "https://wa.me/919876543210"

    def test_message_is_url_encoded(self) -> None:
        """The message is fully percent-encoded."""
        link = build_whatsapp_link("919876543210", "Hi & welcome\nENQ-1")
        assert link == "https://wa.me/919876543210?text=Hi%20%26%20welcome%0AENQ-1"

    def test_phone_required(self) -> None:
        """A phone without digits is refused."""
        with pytest.raises(ValidationError):
            build_whatsapp_link("n/a", "Hello")


class TestFormatEnquiryMessage:
    """Tests for format_enquiry_message."""

    def test_full_message(self) -> None:
        """All parts appear in order."""
        text = format_enquiry_message(
            "ENQ-250101-0001",
            "Asha",
            "+91 98765 43210",
            [("Brass Handi", 20), ("Lid", 2)],
            message="Urgent",
            company="Spice Route",
        )
        assert text.splitlines() == [
            "Enquiry ENQ-250101-0001",
            "Name: Asha",
            "Phone: +91 98765 43210",
            "Company: Spice Route",
            "Products:",
            "- Brass Handi x 20",
            "- Lid x 2",
            "Message: Urgent",
        ]

    def test_minimal_message(self) -> None:
        """Optional parts are omitted."""
        text = format_enquiry_message("ENQ-1", "Guest", "123", [])
        assert text == "Enquiry ENQ-1\nName: Guest\nPhone: 123"
