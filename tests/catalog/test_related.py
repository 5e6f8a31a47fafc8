"""Tests for the related-products engine."""

import pytest

from horeca.catalog.related import (
    NO_CATEGORY_OR_TAGS_MESSAGE,
    NO_STRONG_MATCHES_MESSAGE,
    NO_TAGS_MESSAGE,
    RelatedProductsEngine,
)
from horeca.catalog.taxonomy import TaxonomyRepository, TaxonomyStore
from horeca.domain.entities import Product
from horeca.domain.value_objects import TaxonomyKind


def make_product(title: str, **fields) -> Product:
    return Product.create(title=title, hero_image="/img/x.jpg", slug=title.lower().replace(" ", "-"), **fields)


@pytest.fixture
def categories() -> dict:
    store = TaxonomyStore(TaxonomyKind.CATEGORY, repository=TaxonomyRepository(TaxonomyKind.CATEGORY))
    dept = store.create("Kitchenware", "department")
    cookware = store.create("Cookware", "category", parent_id=dept.id)
    handis = store.create("Handis", "subcategory", parent_id=cookware.id)
    pans = store.create("Pans", "subcategory", parent_id=cookware.id)
    brass = store.create("Brass Handis", "type", parent_id=handis.id)
    copper = store.create("Copper Handis", "type", parent_id=handis.id)
    return {
        "store": store,
        "cookware": cookware.id,
        "handis": handis.id,
        "pans": pans.id,
        "brass": brass.id,
        "copper": copper.id,
    }


@pytest.fixture
def engine(categories) -> RelatedProductsEngine:
    return RelatedProductsEngine(categories["store"])


@pytest.fixture
def target(categories) -> Product:
    return make_product(
        "Brass Biryani Handi",
        category_id=categories["brass"],
        tags=["brass", "handi"],
        business_type_slugs=["restaurants"],
        price=1000,
    )


class TestCandidatePool:
    """Tests for the pool layer."""

    def test_same_type_pooled(self, engine, target, categories) -> None:
        """Products under the same type are candidates."""
        same_type = make_product("Brass Serving Handi", category_id=categories["brass"])
        other_type = make_product("Copper Handi", category_id=categories["copper"])
        pool = engine.candidate_pool(target, [target, same_type, other_type])
        assert pool == [same_type]

    def test_subcategory_fallback(self, engine, target, categories) -> None:
        """Without a type on the candidate, the shared subcategory decides."""
        in_sub = make_product("Plain Handi", category_id=categories["handis"])
        other_sub = make_product("Fry Pan", category_id=categories["pans"])
        uncategorized = make_product("Loose Lid")
        pool = engine.candidate_pool(target, [in_sub, other_sub, uncategorized])
        assert pool == [in_sub]

    def test_exact_category_when_no_subcategory(self, engine, categories) -> None:
        """Products filed at category level match only the same category."""
        target = make_product("Cookware Set", category_id=categories["cookware"])
        same = make_product("Cookware Kit", category_id=categories["cookware"])
        deeper = make_product("Plain Handi", category_id=categories["handis"])
        assert engine.candidate_pool(target, [same, deeper]) == [same]

    def test_uncategorized_target_pools_everything(self, engine, categories) -> None:
        """A draft without a category sees every other product."""
        draft = make_product("Draft")
        others = [make_product("A Handi", category_id=categories["handis"]), make_product("Loose Lid")]
        assert engine.candidate_pool(draft, [draft, *others]) == others


class TestScore:
    """Tests for the scoring layer."""

    def test_full_score(self, engine, target, categories) -> None:
        """Tags, business types, category and price all add up."""
        candidate = make_product(
            "Brass Serving Handi",
            category_id=categories["brass"],
            tags=["Brass", "handi", "gold"],
            business_type_slugs=["restaurants", "hotels"],
            price=1100,
        )
        score, reasons = engine.score(target, candidate)
        assert score == 2 * 5 + 2 + 3 + 2
        assert reasons == ["2 Shared Tags", "1 Shared Business Type", "Same Category", "Similar Price"]

    def test_price_outside_band(self, engine, target) -> None:
        """Prices beyond 30% either way do not count."""
        candidate = make_product("Big Handi", price=1400)
        assert engine.score(target, candidate) == (0, [])

    def test_price_on_request_target(self, engine) -> None:
        """A target without a price never scores on price."""
        target = make_product("Quote Handi")
        assert engine.score(target, make_product("Other", price=100)) == (0, [])


class TestRank:
    """Tests for ranking and auto-suggest."""

    def test_selected_first_then_score(self, engine, target, categories) -> None:
        """Admin-selected products lead regardless of score."""
        strong = make_product("Strong", category_id=categories["brass"], tags=["brass"], price=1000)
        weak = make_product("Weak", category_id=categories["brass"])
        target.related_product_ids = [weak.id]

        ranked = engine.rank(target, [strong, weak])
        assert [c.product.title for c in ranked] == ["Weak", "Strong"]
        assert ranked[0].selected
        assert ranked[1].high_match
        assert ranked[1].to_dict()["reasons"][0] == "1 Shared Tag"

    def test_limit(self, engine, target, categories) -> None:
        """rank honours the limit."""
        products = [make_product(f"Handi {i}", category_id=categories["brass"]) for i in range(5)]
        assert len(engine.rank(target, products, limit=2)) == 2

    def test_auto_suggest_takes_top_three_strong(self, engine, target, categories) -> None:
        """High matches are preferred, at most three."""
        products = [
            make_product(f"Brass {i}", category_id=categories["brass"], tags=["brass"]) for i in range(4)
        ]
        products.append(make_product("Weak", category_id=categories["brass"]))
        suggested = engine.auto_suggest(target, products)
        assert len(suggested) == 3
        assert all(c.high_match for c in suggested)

    def test_auto_suggest_falls_back_to_positive(self, engine, categories) -> None:
        """Without high matches, up to four positive scores are used."""
        target = make_product("Quote Pot", category_id=categories["handis"], business_type_slugs=["cafes"])
        products = [
            make_product(f"Pot {i}", category_id=categories["pans"], business_type_slugs=["cafes"])
            for i in range(2)
        ]
        in_pool = make_product("Pot Handi", category_id=categories["brass"], business_type_slugs=["cafes"])
        suggested = engine.auto_suggest(target, [*products, in_pool])
        assert [c.product.title for c in suggested] == ["Pot Handi"]

    def test_auto_suggest_empty(self, engine, target, categories) -> None:
        """Nothing positive means no suggestions."""
        products = [make_product("Unrelated", category_id=categories["pans"])]
        assert engine.auto_suggest(target, products) == []

    def test_auto_suggest_keeps_selected_strong(self, engine, target, categories) -> None:
        """A selected high match stays in the suggestion ahead of stronger ones."""
        stronger = [
            make_product(f"Brass {i}", category_id=categories["brass"], tags=["brass", "handi"], price=1000)
            for i in range(3)
        ]
        chosen = make_product("Chosen", category_id=categories["brass"], tags=["brass"])
        target.related_product_ids = [chosen.id]

        suggested = engine.auto_suggest(target, [*stronger, chosen])
        assert len(suggested) == 3
        assert suggested[0].product is chosen
        assert suggested[0].score < suggested[1].score


class TestEmptySuggestionMessage:
    """Tests for the hint shown when nothing is suggested."""

    def test_no_category_and_no_tags(self, engine) -> None:
        assert engine.empty_suggestion_message(make_product("Bare")) == NO_CATEGORY_OR_TAGS_MESSAGE

    def test_no_tags(self, engine, categories) -> None:
        product = make_product("Filed", category_id=categories["brass"])
        assert engine.empty_suggestion_message(product) == NO_TAGS_MESSAGE

    def test_tags_without_matches(self, engine, target) -> None:
        assert engine.empty_suggestion_message(target) == NO_STRONG_MATCHES_MESSAGE
