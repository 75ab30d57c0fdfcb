# src/matching/similarity_scorer.py

"""Heuristic 0-100 score for "are these two listings the same product?".

Weights (all read from ``Settings``):

- name token overlap, 60%
- +20 when the normalized brands are equal
- +15 when both names carry a quantity within 5% of each other
- +10 when both names fall in the same category dictionary entry
- description overlap blended at 10% when both sides have one,
  scaling the terms above to 90%
- x1.2 when both products are coffee

The result is capped at 100.  The name term counts matches from the
first product's tokens, so ``score(a, b)`` and ``score(b, a)`` can
differ when one name holds a token that is a substring of another.
"""

import logging

from src.config.settings import Settings
from src.filters.text_normalizer import (
    detect_category,
    extract_measurement,
    normalize_text,
    significant_tokens,
)
from src.models.comparison import MatchCandidate
from src.models.product import CanonicalProduct

logger = logging.getLogger("grocery_compare.matching")


class SimilarityScorer:
    """Score product pairs from different stores."""

    def __init__(self, settings: type[Settings] = Settings) -> None:
        self.settings = settings

    def token_overlap(self, left: str, right: str) -> float:
        """Jaccard-like overlap: exact token = 1, substring = partial credit."""
        left_tokens = significant_tokens(left)
        right_tokens = significant_tokens(right)
        right_set = set(right_tokens)
        union = set(left_tokens) | right_set
        if not union:
            return 0.0

        matches = 0.0
        for token in left_tokens:
            if token in right_set:
                matches += 1
            elif any(
                token in other or other in token
                for other in right_tokens
            ):
                matches += self.settings.SIMILARITY_PARTIAL_TOKEN_CREDIT
        return matches / len(union)

    def measurements_close(self, left: str, right: str) -> bool:
        """Both names carry a quantity and they differ by at most 5%."""
        a = extract_measurement(left)
        b = extract_measurement(right)
        if a is None or b is None:
            return False
        grams_a, grams_b = a[0], b[0]
        largest = max(grams_a, grams_b)
        if largest <= 0:
            return False
        tolerance = self.settings.SIMILARITY_MEASUREMENT_TOLERANCE
        return abs(grams_a - grams_b) / largest <= tolerance

    @staticmethod
    def same_category(left: str, right: str) -> bool:
        category = detect_category(left)
        return category is not None and category == detect_category(right)

    @staticmethod
    def is_coffee(product: CanonicalProduct) -> bool:
        return detect_category(product.name) == "coffee"

    def score(
        self, left: CanonicalProduct, right: CanonicalProduct,
    ) -> int:
        """Integer similarity in [0, 100]."""
        s = self.settings
        left_name = normalize_text(left.name)
        if left_name and left_name == normalize_text(right.name):
            return 100
        if left.barcode and left.barcode == right.barcode:
            return 100

        total = (
            self.token_overlap(left.name, right.name)
            * 100
            * s.SIMILARITY_NAME_WEIGHT
        )

        left_brand = normalize_text(left.brand)
        if left_brand and left_brand == normalize_text(right.brand):
            total += s.SIMILARITY_BRAND_BONUS
        if self.measurements_close(left.name, right.name):
            total += s.SIMILARITY_MEASUREMENT_BONUS
        if self.same_category(left.name, right.name):
            total += s.SIMILARITY_CATEGORY_BONUS

        if left.description and right.description:
            description_weight = s.SIMILARITY_DESCRIPTION_WEIGHT
            total = total * (1 - description_weight) + (
                self.token_overlap(left.description, right.description)
                * 100
                * description_weight
            )

        if self.is_coffee(left) and self.is_coffee(right):
            total *= s.SIMILARITY_COFFEE_MULTIPLIER

        return max(0, min(100, round(total)))

    def candidate(
        self, left: CanonicalProduct, right: CanonicalProduct,
    ) -> MatchCandidate:
        """Score a pair and wrap it as a MatchCandidate."""
        candidate = MatchCandidate(
            left=left, right=right, score=self.score(left, right)
        )
        logger.debug(
            "Similarity %s/%s '%s' vs '%s' = %d",
            left.store.value,
            right.store.value,
            left.name,
            right.name,
            candidate.score,
        )
        return candidate
