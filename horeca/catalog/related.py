"""Related-products ranking engine.

Ranks other products against a target product (stored or draft) in three
layers:

1. Candidate pool (filter): products sharing the target's type ancestor,
   else its subcategory ancestor, else its exact primary category. A target
   without a primary category pools every product.
2. Scoring (relevance): shared tags weigh most, then shared business types,
   then the same primary category, then a similar price.
3. Manual override: products the admin already selected sort first.

Related edges may form cycles between products; the engine only reads
them, and the candidate set is always the finite product list.
"""

from dataclasses import dataclass, field
from typing import Any

from horeca.catalog.taxonomy import TaxonomyStore
from horeca.domain.entities import Product
from horeca.domain.value_objects import TaxonomyLevel

TAG_WEIGHT = 5
BUSINESS_TYPE_WEIGHT = 2
SAME_CATEGORY_BONUS = 3
SIMILAR_PRICE_BONUS = 2
PRICE_BAND = (0.7, 1.3)

HIGH_MATCH_SCORE = 5
AUTO_SUGGEST_STRONG_LIMIT = 3
AUTO_SUGGEST_FALLBACK_LIMIT = 4

NO_CATEGORY_OR_TAGS_MESSAGE = "Add a category and tags first to generate related product suggestions."
NO_TAGS_MESSAGE = (
    "Add some tags to get better related product suggestions. Tags are the primary signal for relationships."
)
NO_STRONG_MATCHES_MESSAGE = "No strong matches found. Try adding more specific tags or selecting products manually."


@dataclass
class RelatedCandidate:
    """A scored candidate.

    Attributes:
        product: Candidate product.
        score: Relevance score.
        reasons: Human-readable reasons, in scoring order.
        selected: Whether the admin already selected this product.
    """

    product: Product
    score: int
    reasons: list[str] = field(default_factory=list)
    selected: bool = False

    @property
    def high_match(self) -> bool:
        return self.score >= HIGH_MATCH_SCORE

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product.id,
            "slug": self.product.slug,
            "title": self.product.title,
            "hero_image": self.product.hero_image,
            "price": self.product.price,
            "score": self.score,
            "reasons": list(self.reasons),
            "high_match": self.high_match,
            "selected": self.selected,
        }


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


class RelatedProductsEngine:
    """Pool-then-score related product ranking.

    Example usage:
        engine = RelatedProductsEngine(category_store)
        ranked = engine.rank(product, all_products)
        suggested = engine.auto_suggest(product, all_products)
    """

    def __init__(self, categories: TaxonomyStore) -> None:
        self.categories = categories

    # -------------------------------------------------------------------------
    # Layer 1: Pool
    # -------------------------------------------------------------------------

    def candidate_pool(self, target: Product, products: list[Product]) -> list[Product]:
        """Filter products down to the target's candidate pool.

        Args:
            target: Product (or draft) to find related products for.
            products: All products.

        Returns:
            Candidates in input order, never including the target.
        """
        others = [p for p in products if p.id != target.id]
        if not target.category_id:
            return others

        target_ancestry = self.categories.ancestry(target.category_id)
        target_type = target_ancestry.get(TaxonomyLevel.TYPE)
        target_sub = target_ancestry.get(TaxonomyLevel.SUBCATEGORY)

        pool: list[Product] = []
        for candidate in others:
            if not candidate.category_id:
                continue
            ancestry = self.categories.ancestry(candidate.category_id)
            if not ancestry:
                continue
            cand_type = ancestry.get(TaxonomyLevel.TYPE)
            cand_sub = ancestry.get(TaxonomyLevel.SUBCATEGORY)
            if target_type and cand_type:
                if target_type.id == cand_type.id:
                    pool.append(candidate)
            elif target_sub and cand_sub:
                if target_sub.id == cand_sub.id:
                    pool.append(candidate)
            elif candidate.category_id == target.category_id:
                pool.append(candidate)
        return pool

    # -------------------------------------------------------------------------
    # Layer 2: Score
    # -------------------------------------------------------------------------

    def score(self, target: Product, candidate: Product) -> tuple[int, list[str]]:
        """Score a candidate against the target.

        Args:
            target: Product being edited or viewed.
            candidate: Product from the pool.

        Returns:
            Tuple of (score, reasons).
        """
        score = 0
        reasons: list[str] = []

        target_tags = {t.lower() for t in target.tags}
        shared_tags = [t for t in candidate.tags if t.lower() in target_tags]
        if shared_tags:
            score += len(shared_tags) * TAG_WEIGHT
            reasons.append(f"{_plural(len(shared_tags), 'Shared Tag')}")

        target_business = set(target.business_type_slugs)
        shared_business = [s for s in candidate.business_type_slugs if s in target_business]
        if shared_business:
            score += len(shared_business) * BUSINESS_TYPE_WEIGHT
            reasons.append(f"{_plural(len(shared_business), 'Shared Business Type')}")

        if target.category_id and candidate.category_id == target.category_id:
            score += SAME_CATEGORY_BONUS
            reasons.append("Same Category")

        target_price = target.price or 0
        if target_price > 0 and candidate.price:
            low, high = PRICE_BAND
            if target_price * low <= candidate.price <= target_price * high:
                score += SIMILAR_PRICE_BONUS
                reasons.append("Similar Price")

        return score, reasons

    # -------------------------------------------------------------------------
    # Layer 3: Rank
    # -------------------------------------------------------------------------

    def rank(
        self,
        target: Product,
        products: list[Product],
        limit: int | None = None,
    ) -> list[RelatedCandidate]:
        """Pool, score and order candidates.

        Selected products come first; within each group candidates are
        ordered by descending score, keeping pool order for ties.

        Args:
            target: Product (or draft) to rank against.
            products: All products.
            limit: Optional maximum number of results.

        Returns:
            Ranked candidates.
        """
        selected_ids = set(target.related_product_ids)
        candidates = []
        for product in self.candidate_pool(target, products):
            score, reasons = self.score(target, product)
            candidates.append(
                RelatedCandidate(
                    product=product,
                    score=score,
                    reasons=reasons,
                    selected=product.id in selected_ids,
                )
            )
        candidates.sort(key=lambda c: (not c.selected, -c.score))
        return candidates[:limit] if limit is not None else candidates

    def auto_suggest(self, target: Product, products: list[Product]) -> list[RelatedCandidate]:
        """Pick related products automatically.

        Top three high-match candidates in ranked order, so selected
        products keep their place; with none, the top four candidates with
        any positive score; otherwise an empty list.

        Args:
            target: Product to suggest for.
            products: All products.

        Returns:
            Suggested candidates, possibly empty.
        """
        ranked = self.rank(target, products)
        strong = [c for c in ranked if c.score >= HIGH_MATCH_SCORE][:AUTO_SUGGEST_STRONG_LIMIT]
        if strong:
            return strong
        return [c for c in ranked if c.score > 0][:AUTO_SUGGEST_FALLBACK_LIMIT]

    @staticmethod
    def empty_suggestion_message(target: Product) -> str:
        """Guidance shown when auto-suggest finds nothing."""
        has_tags = bool(target.tags or target.manual_tags)
        if not target.category_id and not has_tags:
            return NO_CATEGORY_OR_TAGS_MESSAGE
        if not has_tags:
            return NO_TAGS_MESSAGE
        return NO_STRONG_MATCHES_MESSAGE
