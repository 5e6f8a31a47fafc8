"""URL slug helpers."""

import re
import unicodedata
from typing import Callable

_NON_SLUG = re.compile(r"[^a-z0-9]+")
_DASHES = re.compile(r"-{2,}")


def slugify(text: str) -> str:
    """Lowercase-hyphenate text into ``[a-z0-9-]+``.

    Args:
        text: Source text, usually a name or title.

    Returns:
        Slug, empty if the text has no slug-safe characters.

    Example:
        >>> slugify("Premium Brass Biryani Handi")
        'premium-brass-biryani-handi'
    """
    ascii_text = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode()
    slug = _NON_SLUG.sub("-", ascii_text.lower())
    return _DASHES.sub("-", slug).strip("-")


def unique_slug(base: str, is_taken: Callable[[str], bool]) -> str:
    """Append -1, -2, ... to base until it is free.

    Args:
        base: Preferred slug.
        is_taken: Predicate telling whether a slug is already used.

    Returns:
        base itself when free, otherwise the first free numbered variant.
    """
    if not is_taken(base):
        return base
    counter = 1
    while is_taken(f"{base}-{counter}"):
        counter += 1
    return f"{base}-{counter}"
