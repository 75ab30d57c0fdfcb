# src/filters/query_reformulator.py

"""Alternate query formulations for stores that returned nothing."""

import logging

from src.config.settings import Settings
from src.filters.text_normalizer import (
    extract_measurement,
    is_measurement_token,
    normalize_text,
    tokenize,
)

logger = logging.getLogger("grocery_compare.filters")


class QueryReformulator:
    """Build broader queries from a product name, most specific first.

    1. The first two or three significant words of the cleaned name.
    2. Only the long or numeric "keyword" tokens.
    3. The detected category word plus the detected measurement.
    """

    @staticmethod
    def significant_words(name: str) -> list[str]:
        """Name tokens without stopwords, measurements, or short words."""
        return [
            token
            for token in tokenize(name, Settings.MIN_KEYWORD_LENGTH)
            if token not in Settings.STOPWORDS
            and not is_measurement_token(token)
        ]

    @classmethod
    def leading_words(cls, name: str) -> str | None:
        words = cls.significant_words(name)
        if not words:
            return None
        return " ".join(words[:3])

    @staticmethod
    def keyword_tokens(name: str) -> str | None:
        tokens = [
            token
            for token in tokenize(name)
            if token not in Settings.STOPWORDS
            and (len(token) >= 5 or any(ch.isdigit() for ch in token))
        ]
        return " ".join(tokens) if tokens else None

    @staticmethod
    def category_and_measurement(name: str) -> str | None:
        category_word = ""
        for token in tokenize(name):
            if any(
                token in words
                for words in Settings.CATEGORY_KEYWORDS.values()
            ):
                category_word = token
                break
        measurement = extract_measurement(name)
        parts = [category_word, measurement[1] if measurement else ""]
        joined = " ".join(p for p in parts if p)
        return joined or None

    @classmethod
    def alternates(cls, name: str) -> list[str]:
        """Distinct reformulations, excluding the original query itself."""
        seen = {normalize_text(name)}
        result: list[str] = []
        for candidate in (
            cls.leading_words(name),
            cls.keyword_tokens(name),
            cls.category_and_measurement(name),
        ):
            if not candidate or candidate in seen:
                continue
            seen.add(candidate)
            result.append(candidate)

        logger.debug("Reformulations for '%s': %s", name, result)
        return result[: Settings.MAX_REFORMULATIONS]
