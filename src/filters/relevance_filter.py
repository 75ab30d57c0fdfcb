# src/filters/relevance_filter.py

"""Post-normalization relevance filtering and ranking."""

import logging

from src.config.settings import Settings
from src.filters.product_validator import ProductValidator
from src.filters.text_normalizer import normalize_text, tokenize
from src.models.product import CanonicalProduct

logger = logging.getLogger("grocery_compare.filters")


class RelevanceFilter:
    """Keep products whose text shares at least one keyword with the query."""

    @staticmethod
    def keywords(query: str) -> list[str]:
        """Normalized query tokens longer than two characters."""
        return tokenize(query, Settings.MIN_KEYWORD_LENGTH)

    @staticmethod
    def _haystack(product: CanonicalProduct) -> str:
        text = f"{product.name} {product.brand} {product.category}"
        return normalize_text(text)

    @classmethod
    def keyword_hits(
        cls, product: CanonicalProduct, keywords: list[str],
    ) -> int:
        """Number of keywords found as substrings of the product text."""
        haystack = cls._haystack(product)
        return sum(1 for kw in keywords if kw in haystack)

    @classmethod
    def filter(
        cls,
        products: list[CanonicalProduct],
        query: str,
    ) -> tuple[list[CanonicalProduct], int]:
        """Drop invalid-price products and products with no keyword overlap.

        A query with no keyword longer than two characters only applies
        the price check. Returns the kept list and the excluded count.
        """
        valid, excluded = ProductValidator.validate(products)
        keywords = cls.keywords(query)
        if not keywords:
            return valid, excluded

        kept: list[CanonicalProduct] = []
        for product in valid:
            if cls.keyword_hits(product, keywords):
                kept.append(product)
            else:
                excluded += 1

        if excluded:
            logger.info(
                "Relevance filter excluded %d of %d products for '%s'",
                excluded,
                len(products),
                query,
            )
        return kept, excluded

    @classmethod
    def rank(
        cls,
        products: list[CanonicalProduct],
        query: str,
    ) -> list[CanonicalProduct]:
        """Order by keyword hits (desc), then price (asc); stable otherwise."""
        keywords = cls.keywords(query)
        return sorted(
            products,
            key=lambda p: (-cls.keyword_hits(p, keywords), p.price),
        )
