# src/filters/text_normalizer.py

"""Text helpers shared by the relevance filter, scorer and reformulator."""

import re
import unicodedata

from src.config.settings import Settings

_PUNCT_RE = re.compile(r"[^\w\s.,]")
_SEPARATOR_RE = re.compile(r"(?<!\d)[.,]|[.,](?!\d)")

# 275g, 1 kg, 1.5L, 500 ml, 12oz
_MEASUREMENT_RE = re.compile(
    r"(\d+(?:[.,]\d+)?)\s*(kg|kgs|g|gr|grs|gramos|mg|l|lt|lts|litro|"
    r"litros|ml|cc|oz|lb|lbs)\b",
    re.IGNORECASE,
)

_GRAMS_PER_UNIT: dict[str, float] = {
    "kg": 1000.0,
    "kgs": 1000.0,
    "g": 1.0,
    "gr": 1.0,
    "grs": 1.0,
    "gramos": 1.0,
    "mg": 0.001,
    # Liquids: 1 ml treated as 1 g
    "l": 1000.0,
    "lt": 1000.0,
    "lts": 1000.0,
    "litro": 1000.0,
    "litros": 1000.0,
    "ml": 1.0,
    "cc": 1.0,
    "oz": 28.3495,
    "lb": 453.592,
    "lbs": 453.592,
}


def strip_accents(text: str) -> str:
    """Remove diacritics (``"Café"`` -> ``"Cafe"``)."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(
        ch for ch in decomposed if not unicodedata.combining(ch)
    )


def normalize_text(text: str) -> str:
    """Lowercase, strip accents and punctuation, collapse whitespace.

    Decimal separators inside numbers survive so ``"1.5L"`` keeps its
    quantity.
    """
    lowered = strip_accents(text or "").lower()
    no_punct = _PUNCT_RE.sub(" ", lowered)
    no_punct = _SEPARATOR_RE.sub(" ", no_punct)
    return " ".join(no_punct.split())


def tokenize(text: str, min_length: int = 0) -> list[str]:
    """Split normalized *text* on whitespace, keeping long tokens."""
    return [
        token
        for token in normalize_text(text).split()
        if len(token) >= min_length
    ]


def significant_tokens(text: str) -> list[str]:
    """Tokens longer than two characters, in order, without duplicates."""
    seen: set[str] = set()
    result: list[str] = []
    for token in tokenize(text, Settings.MIN_KEYWORD_LENGTH):
        if token not in seen:
            seen.add(token)
            result.append(token)
    return result


def extract_measurement(text: str) -> tuple[float, str] | None:
    """Return the first quantity in *text* as ``(grams, raw_token)``."""
    match = _MEASUREMENT_RE.search(strip_accents(text or ""))
    if not match:
        return None
    amount = float(match.group(1).replace(",", "."))
    unit = match.group(2).lower()
    grams = amount * _GRAMS_PER_UNIT[unit]
    raw = f"{match.group(1)}{unit}"
    return grams, raw


def is_measurement_token(token: str) -> bool:
    """True for tokens like ``275g`` or ``1.5l``."""
    match = _MEASUREMENT_RE.fullmatch(token)
    return match is not None


def detect_category(text: str) -> str | None:
    """Map *text* to an entry of the category keyword dictionary."""
    tokens = set(tokenize(text))
    for category, words in Settings.CATEGORY_KEYWORDS.items():
        if tokens.intersection(words):
            return category
    return None
