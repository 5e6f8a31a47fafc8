"""Tests for slug helpers."""

from horeca.catalog.slugs import slugify, unique_slug


class TestSlugify:
    """Tests for slugify."""

    def test_lowercase_hyphenated(self) -> None:
        """Words are lowercased and joined by single hyphens."""
        assert slugify("Premium Brass  Biryani Handi") == "premium-brass-biryani-handi"

    def test_punctuation_collapsed(self) -> None:
        """Runs of non-alphanumerics become one hyphen, trimmed at the ends."""
        assert slugify("  Bar & Beverage!! ") == "bar-beverage"

    def test_accents_folded(self) -> None:
        """Accented letters fold to ASCII."""
        assert slugify("Crème Brûlée Dish") == "creme-brulee-dish"

    def test_empty(self) -> None:
        """Text without slug-safe characters yields an empty slug."""
        assert slugify("!!!") == ""
        assert slugify("") == ""


class TestUniqueSlug:
    """Tests for unique_slug."""

    def test_free_base_returned(self) -> None:
        """A free base is used as-is."""
        assert unique_slug("handi", lambda s: False) == "handi"

    def test_numbered_suffix(self) -> None:
        """Taken slugs get the first free numeric suffix."""
        taken = {"handi", "handi-1"}
        assert unique_slug("handi", taken.__contains__) == "handi-2"
