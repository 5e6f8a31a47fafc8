"""Auto-tag generation pipeline.

Derives a normalized tag set for a product from its own fields and from
the names of its category, brand and business-type ancestry. Tags feed
text search and the related-products scorer.

Normalization applied to every emitted tag:
- lowercase, trimmed, inner whitespace collapsed
- empty and single-character tokens dropped
- stop words dropped

Title words additionally need more than two characters.
"""

import re
from typing import Callable, Iterable

import structlog

from horeca.catalog.taxonomy import TaxonomyStore
from horeca.domain.entities import Product

logger = structlog.get_logger()

STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "from", "as", "is", "was", "are", "were", "been", "be",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "can", "this", "that", "these", "those",
    "i", "you", "he", "she", "it", "we", "they", "what", "which", "who",
    "whom", "whose", "where", "when", "why", "how", "all", "each", "every",
    "both", "few", "more", "most", "other", "some", "such", "no", "nor", "not",
    "only", "own", "same", "so", "than", "too", "very", "s", "t", "just",
    "don", "now",
})

# Manual tag count at which automatic generation stops overwriting.
AUTO_TAG_MANUAL_THRESHOLD = 3

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_NUMBERS = re.compile(r"\d+(?:\.\d+)?")
_WORDS = re.compile(r"[a-z]+")
_NUMBER_UNIT = re.compile(r"(\d+)\s*-?\s*([a-z]+)")


# ============================================================================
# Token Helpers
# ============================================================================


def normalize_tag(token: str | None) -> str | None:
    """Normalize a single tag.

    Args:
        token: Raw tag text.

    Returns:
        The normalized tag, or None when it must be dropped.
    """
    if not token:
        return None
    tag = _WHITESPACE.sub(" ", str(token).lower().strip())
    if len(tag) < 2 or tag in STOP_WORDS:
        return None
    return tag


def normalize_tags(tokens: Iterable[str | None]) -> list[str]:
    """Normalize and de-duplicate tags, keeping first-seen order."""
    result: list[str] = []
    for token in tokens:
        tag = normalize_tag(token)
        if tag and tag not in result:
            result.append(tag)
    return result


def title_keywords(title: str | None) -> list[str]:
    """Split a title into keywords longer than two characters.

    Example:
        >>> title_keywords("Premium Brass Biryani Handi (30cm)")
        ['premium', 'brass', 'biryani', 'handi', '30cm']
    """
    if not title:
        return []
    words = _PUNCTUATION.sub(" ", title.lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS]


def decompose_value(value: str | None) -> list[str]:
    """Split a compound value into searchable parts.

    The whole value, each number, each alphabetic run longer than one
    character, and each number+unit pair with separators removed.

    Example:
        >>> decompose_value("30 cm")
        ['30 cm', '30', 'cm', '30cm']
    """
    if not value:
        return []
    normalized = value.lower().strip()
    if not normalized:
        return []
    parts = [normalized]
    parts.extend(_NUMBERS.findall(normalized))
    parts.extend(word for word in _WORDS.findall(normalized) if len(word) > 1)
    parts.extend(number + unit for number, unit in _NUMBER_UNIT.findall(normalized))
    seen: list[str] = []
    for part in parts:
        if part and part not in seen:
            seen.append(part)
    return seen


def _pair(key: str, value: str) -> str:
    return f"{key.lower().strip()}-{value.lower().strip()}"


# ============================================================================
# Pipeline
# ============================================================================


class TagPipeline:
    """Generates and merges product tags.

    Example usage:
        pipeline = TagPipeline(categories, brands, business_type_name)
        pipeline.apply_on_save(product)   # automatic run on save
        pipeline.merge_manual(product)    # admin "generate tags" button
    """

    def __init__(
        self,
        categories: TaxonomyStore,
        brands: TaxonomyStore,
        business_type_name: Callable[[str], str | None],
    ) -> None:
        """Initialize pipeline.

        Args:
            categories: Category forest for ancestry names.
            brands: Brand forest for ancestry names.
            business_type_name: Resolves a business-type slug to its name.
        """
        self.categories = categories
        self.brands = brands
        self.business_type_name = business_type_name

    def generate(self, product: Product) -> list[str]:
        """Derive tags from a product or draft.

        Args:
            product: Product whose fields are read; it is not modified.

        Returns:
            Sorted, de-duplicated, normalized tags.
        """
        raw: list[str] = []
        raw.extend(title_keywords(product.title))
        raw.append(product.brand)
        raw.append(product.sku)
        raw.extend(self._ancestry_names(self.categories, product.category_ids))
        raw.extend(self._ancestry_names(self.brands, product.brand_ids))

        for group in product.filters:
            for value in group.values:
                raw.append(value)
                raw.append(_pair(group.key, value))
                raw.extend(decompose_value(value))

        for spec in product.specifications:
            if spec.value and spec.value.strip():
                raw.append(spec.value)
                raw.append(_pair(spec.label, spec.value))
                raw.extend(decompose_value(spec.value))
            if spec.unit:
                raw.append(spec.unit)

        raw.extend(variant.color_name for variant in product.color_variants)

        for slug in product.business_type_slugs:
            raw.append(self.business_type_name(slug))

        if product.featured:
            raw.append("featured")

        return sorted(set(normalize_tags(raw)))

    def apply_on_save(self, product: Product) -> list[str]:
        """Automatic run: combine manual tags with generated ones.

        With AUTO_TAG_MANUAL_THRESHOLD or more manual tags, generation is
        suppressed and the manual tags are used as-is.

        Args:
            product: Product to update in place.

        Returns:
            The product's new tags.
        """
        manual = normalize_tags(product.manual_tags)
        product.manual_tags = manual
        if len(manual) >= AUTO_TAG_MANUAL_THRESHOLD:
            product.tags = list(manual)
            return product.tags
        generated = self.generate(product)
        product.tags = manual + [tag for tag in generated if tag not in manual]
        return product.tags

    def merge_manual(self, product: Product) -> list[str]:
        """Manual run: union of the current tags and generated tags.

        The union also replaces the manual tags, so the next automatic run
        keeps it.

        Args:
            product: Product to update in place.

        Returns:
            The product's new tags.
        """
        existing = normalize_tags(product.tags)
        generated = self.generate(product)
        product.replace_tags(existing + [tag for tag in generated if tag not in existing], manual=True)
        logger.info("Tags regenerated", product_id=product.id, tag_count=len(product.tags))
        return product.tags

    @staticmethod
    def _ancestry_names(store: TaxonomyStore, node_ids: list[str]) -> list[str]:
        names: list[str] = []
        for node_id in node_ids:
            names.extend(node.name for node in store.ancestor_chain(node_id))
        return names
