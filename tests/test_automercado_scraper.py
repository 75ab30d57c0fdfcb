# tests/test_automercado_scraper.py

"""Tests for the Automercado Algolia client using mocked HTTP responses."""

import json
import unittest
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

from src.models.errors import UpstreamError, UpstreamSchemaMismatch
from src.scrapers.automercado_scraper import AutomercadoScraper

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _algolia_resp(data: Any | None = None) -> MagicMock:
    if data is None:
        with open(FIXTURES_DIR / "automercado_algolia.json", encoding="utf-8") as f:
            data = json.load(f)
    resp = MagicMock()
    resp.status_code = 200
    resp.text = json.dumps(data)
    resp.json.return_value = data
    return resp


def _homepage_resp() -> MagicMock:
    resp = MagicMock()
    resp.status_code = 200
    with open(FIXTURES_DIR / "automercado_homepage.html", encoding="utf-8") as f:
        resp.text = f.read()
    return resp


def _scraper(with_credentials: bool = True) -> AutomercadoScraper:
    scraper = AutomercadoScraper()
    if with_credentials:
        scraper._app_id = "TESTAPP123"
        scraper._api_key = "f" * 32
    else:
        scraper._app_id = ""
        scraper._api_key = ""
    return scraper


@patch("src.scrapers.base_scraper.curl_requests.Session")
class TestAutomercadoSearch(unittest.TestCase):
    """Search through the Algolia index."""

    def test_search_parses_hits(self, mock_session_cls: MagicMock) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.post.return_value = _algolia_resp()

        scraper = _scraper()
        outcome = scraper.search_report("cafe", page=2, page_size=20)

        self.assertEqual(outcome.strategy, "algolia")
        # The hit without a name is skipped
        self.assertEqual(len(outcome.value or []), 2)
        args, kwargs = mock_session.post.call_args
        self.assertEqual(
            args[0],
            f"https://testapp123-dsn.algolia.net/1/indexes/{scraper._index}/query",
        )
        self.assertEqual(
            kwargs["json"], {"query": "cafe", "page": 1, "hitsPerPage": 20}
        )
        self.assertEqual(
            kwargs["headers"]["X-Algolia-Application-Id"], "TESTAPP123"
        )

    def test_credentials_scraped_from_homepage(
        self, mock_session_cls: MagicMock,
    ) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.get.return_value = _homepage_resp()
        mock_session.post.return_value = _algolia_resp()

        scraper = _scraper(with_credentials=False)
        records = scraper.search("cafe")

        self.assertEqual(len(records), 2)
        self.assertEqual(scraper._app_id, "ABCD1234EF")
        self.assertEqual(scraper._api_key, "0123456789abcdef0123456789abcdef")

    def test_missing_credentials_is_hard_failure(
        self, mock_session_cls: MagicMock,
    ) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        homepage = MagicMock()
        homepage.status_code = 200
        homepage.text = "<html>no config here</html>"
        mock_session.get.return_value = homepage

        scraper = _scraper(with_credentials=False)
        outcome = scraper.search_report("cafe")
        self.assertTrue(outcome.hard_failed)
        mock_session.post.assert_not_called()

    def test_zero_hits_is_empty_not_failure(
        self, mock_session_cls: MagicMock,
    ) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.post.return_value = _algolia_resp({"hits": []})

        outcome = _scraper().search_report("xyzzy")
        self.assertIsNone(outcome.value)
        self.assertFalse(outcome.hard_failed)

    def test_payload_without_hits_is_schema_mismatch(
        self, mock_session_cls: MagicMock,
    ) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.post.return_value = _algolia_resp({"message": "bad"})

        outcome = _scraper().search_report("cafe")
        self.assertTrue(outcome.hard_failed)
        self.assertIn("hits", outcome.errors[0])


@patch("src.scrapers.base_scraper.curl_requests.Session")
class TestAutomercadoLookup(unittest.TestCase):
    """Barcode lookup via the EAN facet."""

    def test_exact_ean_match(self, mock_session_cls: MagicMock) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.post.return_value = _algolia_resp()

        record = _scraper().lookup_by_code("7441001234567")
        assert record is not None
        self.assertEqual(record.ean, "7441001234567")
        _, kwargs = mock_session.post.call_args
        self.assertEqual(
            kwargs["json"]["facetFilters"], [["ean:7441001234567"]]
        )

    def test_no_exact_match_returns_none(
        self, mock_session_cls: MagicMock,
    ) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.post.return_value = _algolia_resp()

        self.assertIsNone(_scraper().lookup_by_code("7441001"))


@patch("src.scrapers.base_scraper.curl_requests.Session")
class TestAutomercadoDump(unittest.TestCase):
    """Bulk catalog pages."""

    def test_pagination(self, mock_session_cls: MagicMock) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.post.return_value = _algolia_resp()

        scraper = _scraper()
        page = scraper.dump_catalog(page=0, hits_per_page=5000)

        self.assertEqual(len(page["hits"]), 3)
        self.assertEqual(
            page["pagination"],
            {
                "page": 0,
                "hitsPerPage": 1000,
                "totalHits": 2500,
                "totalPages": 3,
                "hasMore": True,
            },
        )
        _, kwargs = mock_session.post.call_args
        self.assertEqual(kwargs["timeout"], scraper.settings.BULK_TIMEOUT)

    def test_last_page_has_no_more(self, mock_session_cls: MagicMock) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.post.return_value = _algolia_resp(
            {"hits": [], "nbHits": 2500, "nbPages": 3}
        )

        page = _scraper().dump_catalog(page=2)
        self.assertFalse(page["pagination"]["hasMore"])

    def test_dump_raises_on_bad_payload(
        self, mock_session_cls: MagicMock,
    ) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.post.return_value = _algolia_resp({"nope": 1})

        with self.assertRaises(UpstreamSchemaMismatch):
            _scraper().dump_catalog()

    def test_dump_raises_on_http_failure(
        self, mock_session_cls: MagicMock,
    ) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        failed = MagicMock()
        failed.status_code = 500
        mock_session.post.return_value = failed

        with self.assertRaises(UpstreamError):
            _scraper().dump_catalog()


if __name__ == "__main__":
    unittest.main()
