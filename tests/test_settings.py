# tests/test_settings.py

"""Tests for the Settings configuration class."""

import unittest
from pathlib import Path

from src.config.settings import Settings
from src.models.product import Store


class TestSettings(unittest.TestCase):
    """Verify Settings constants and store registry."""

    def test_timeouts_are_ordered(self) -> None:
        """Interactive calls are shorter than lookups and bulk dumps."""
        self.assertLess(Settings.SEARCH_TIMEOUT, Settings.LOOKUP_TIMEOUT)
        self.assertLess(Settings.LOOKUP_TIMEOUT, Settings.BULK_TIMEOUT)
        self.assertGreater(Settings.STORE_BRANCH_TIMEOUT, 0)

    def test_request_delay_is_positive_float(self) -> None:
        self.assertIsInstance(Settings.REQUEST_DELAY, float)
        self.assertGreater(Settings.REQUEST_DELAY, 0)

    def test_max_retries_is_positive(self) -> None:
        self.assertGreaterEqual(Settings.MAX_RETRIES, 1)

    def test_circuit_breaker_settings_positive(self) -> None:
        self.assertGreaterEqual(Settings.CIRCUIT_BREAKER_THRESHOLD, 1)
        self.assertGreater(Settings.CIRCUIT_BREAKER_COOLDOWN, 0)

    def test_page_size_within_vtex_window(self) -> None:
        self.assertLessEqual(
            Settings.DEFAULT_PAGE_SIZE, Settings.MAX_PAGE_SIZE
        )
        self.assertLessEqual(Settings.MAX_PAGE_SIZE, 50)

    def test_similarity_weights(self) -> None:
        """Name weight plus bonuses leave room under the 100 cap."""
        self.assertEqual(Settings.SIMILARITY_NAME_WEIGHT, 0.60)
        self.assertEqual(Settings.MATCH_THRESHOLD, 45)
        self.assertGreater(Settings.SIMILARITY_COFFEE_MULTIPLIER, 1)

    def test_category_keywords_are_lowercase_ascii(self) -> None:
        for category, words in Settings.CATEGORY_KEYWORDS.items():
            with self.subTest(category=category):
                for word in words:
                    self.assertEqual(word, word.lower())
                    self.assertTrue(word.isascii())

    def test_available_sources_match_store_order(self) -> None:
        """Registry order is the fixed store order."""
        self.assertEqual(
            [s["id"] for s in Settings.AVAILABLE_SOURCES],
            [s.value for s in Store],
        )

    def test_each_source_has_required_keys(self) -> None:
        for src in Settings.AVAILABLE_SOURCES:
            with self.subTest(src=src.get("id", "?")):
                self.assertIn("id", src)
                self.assertIn("label", src)
                self.assertIn("scraper", src)

    def test_path_constants_are_paths(self) -> None:
        self.assertIsInstance(Settings.BASE_DIR, Path)
        self.assertIsInstance(Settings.RESULTS_DIR, Path)
        self.assertIsInstance(Settings.LOGS_DIR, Path)

    def test_default_headers_disable_caching(self) -> None:
        self.assertEqual(Settings.DEFAULT_HEADERS["Cache-Control"], "no-cache")
        self.assertEqual(Settings.DEFAULT_HEADERS["Pragma"], "no-cache")

    def test_impersonate_browser_is_string(self) -> None:
        self.assertIsInstance(Settings.IMPERSONATE_BROWSER, str)
        self.assertTrue(len(Settings.IMPERSONATE_BROWSER) > 0)


if __name__ == "__main__":
    unittest.main()
