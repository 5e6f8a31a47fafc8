"""WhatsApp deep-link formatting.

The core only formats links; it never opens them or talks to WhatsApp.
"""

import re
from typing import Iterable
from urllib.parse import quote

from horeca.domain.exceptions import ValidationError

WHATSAPP_BASE_URL = "https://wa.me"

_NON_DIGITS = re.compile(r"\D+")


def phone_digits(phone: str) -> str:
    """Reduce a phone number to its digits (E.164 without the plus).

    Args:
        phone: Phone number in any common notation.

    Returns:
        Digits only.
    """
    return _NON_DIGITS.sub("", phone or "")


def build_whatsapp_link(phone: str, message: str = "") -> str:
    """Build a wa.me deep link.

    Args:
        phone: Target phone number.
        message: Prefilled message text.

    Returns:
        Deep-link URL, with ``?text=`` only when a message is given.

    Raises:
        ValidationError: If the phone contains no digits.
    """
    digits = phone_digits(phone)
    if not digits:
        raise ValidationError("Phone number is required for a WhatsApp link", field="phone")
    if not message:
        return f"{WHATSAPP_BASE_URL}/{digits}"
    return f"{WHATSAPP_BASE_URL}/{digits}?text={quote(message, safe='')}"


def format_enquiry_message(
    human_enquiry_id: str,
    name: str,
    phone: str,
    items: Iterable[tuple[str, int]],
    message: str = "",
    company: str = "",
) -> str:
    """Format the text sent with an enquiry over WhatsApp.

    Args:
        human_enquiry_id: Short enquiry reference.
        name: Contact name.
        phone: Contact phone.
        items: (product name, quantity) pairs.
        message: Free-text enquiry message.
        company: Company name.

    Returns:
        Multi-line message text.
    """
    lines = [f"Enquiry {human_enquiry_id}", f"Name: {name}", f"Phone: {phone}"]
    if company:
        lines.append(f"Company: {company}")
    item_lines = [f"- {product} x {quantity}" for product, quantity in items]
    if item_lines:
        lines.append("Products:")
        lines.extend(item_lines)
    if message:
        lines.append(f"Message: {message}")
    return "\n".join(lines)
