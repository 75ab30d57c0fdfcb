# tests/test_text_normalizer.py

"""Tests for the shared text helpers."""

import unittest

from src.filters.text_normalizer import (
    detect_category,
    extract_measurement,
    is_measurement_token,
    normalize_text,
    significant_tokens,
    strip_accents,
)


class TestNormalizeText(unittest.TestCase):
    """Accent, case and punctuation handling."""

    def test_strip_accents(self) -> None:
        self.assertEqual(strip_accents("Café Atún Piña"), "Cafe Atun Pina")

    def test_punctuation_removed(self) -> None:
        self.assertEqual(normalize_text("Arroz, Tío Pelón."), "arroz tio pelon")

    def test_decimal_separator_kept(self) -> None:
        self.assertEqual(normalize_text("Leche 1.5L"), "leche 1.5l")

    def test_none_safe(self) -> None:
        self.assertEqual(normalize_text(""), "")

    def test_significant_tokens_unique_and_ordered(self) -> None:
        self.assertEqual(
            significant_tokens("el Café del café"), ["cafe", "del"]
        )


class TestMeasurements(unittest.TestCase):
    """Quantity extraction and unit conversion."""

    def test_grams(self) -> None:
        self.assertEqual(extract_measurement("Café 500 g"), (500.0, "500g"))

    def test_kilograms(self) -> None:
        self.assertEqual(extract_measurement("Arroz 1 kg"), (1000.0, "1kg"))

    def test_decimal_litres(self) -> None:
        self.assertEqual(
            extract_measurement("Leche 1.5L"), (1500.0, "1.5l")
        )

    def test_gr_suffix(self) -> None:
        self.assertEqual(extract_measurement("Café 250gr"), (250.0, "250gr"))

    def test_no_measurement(self) -> None:
        self.assertIsNone(extract_measurement("Pan cuadrado"))

    def test_is_measurement_token(self) -> None:
        self.assertTrue(is_measurement_token("500g"))
        self.assertTrue(is_measurement_token("1.5l"))
        self.assertFalse(is_measurement_token("500"))
        self.assertFalse(is_measurement_token("cafe"))


class TestDetectCategory(unittest.TestCase):
    """Whole-token category detection."""

    def test_known_categories(self) -> None:
        self.assertEqual(detect_category("Café Molido Britt"), "coffee")
        self.assertEqual(detect_category("Leche Dos Pinos"), "milk")
        self.assertEqual(detect_category("Pan Bimbo"), "bread")

    def test_substring_does_not_count(self) -> None:
        self.assertIsNone(detect_category("Panadol Extra"))


if __name__ == "__main__":
    unittest.main()
