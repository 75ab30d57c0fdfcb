# src/scrapers/vtex_scraper.py

"""Shared client for the VTEX storefronts (Walmart, MaxiPali, Mas x Menos)."""

import urllib.parse
from functools import partial
from typing import Any

from src.models.errors import UpstreamEmpty, UpstreamSchemaMismatch
from src.models.raw_records import (
    RawRecord,
    VtexCatalogRecord,
    VtexIntelligentRecord,
    as_dict,
)
from src.scrapers.base_scraper import BaseScraper
from src.scrapers.fallback import Strategy


class VtexScraper(BaseScraper):
    """Three search transports over the public VTEX APIs.

    1. ``path``: query path-encoded into the catalog search URL.
    2. ``keyword``: the same endpoint with an ``ft`` parameter.
    3. ``intelligent``: the intelligent-search endpoint, which pages
       with ``page``/``count`` instead of an ``_from``/``_to`` window.
    """

    CATALOG_PATH = "/api/catalog_system/pub/products/search"
    INTELLIGENT_PATH = (
        "/api/io/_v/api/intelligent-search/product_search/"
    )
    LOOKUP_WINDOW = 5

    @staticmethod
    def _window(page: int, page_size: int) -> dict[str, int]:
        """Inclusive ``_from``/``_to`` item window for a 1-based page."""
        return {
            "_from": (page - 1) * page_size,
            "_to": page * page_size - 1,
        }

    # ── Payload parsing ─────────────────────────────────

    def _parse_catalog(
        self, data: Any, prefer_ean: str | None = None,
    ) -> list[RawRecord]:
        if not isinstance(data, list):
            raise UpstreamSchemaMismatch(
                self.source_name,
                f"catalog search returned {type(data).__name__}, "
                "expected list",
            )
        records: list[RawRecord] = []
        for raw in data:
            try:
                records.append(
                    VtexCatalogRecord.from_payload(
                        raw, self.source_name, prefer_ean
                    )
                )
            except UpstreamSchemaMismatch as exc:
                self.logger.debug("[%s] %s", self.source_name, exc)
        if data and not records:
            raise UpstreamSchemaMismatch(
                self.source_name, "no catalog record could be parsed"
            )
        return records

    def _parse_intelligent(
        self, data: Any, prefer_ean: str | None = None,
    ) -> list[RawRecord]:
        products = as_dict(data).get("products")
        if not isinstance(products, list):
            raise UpstreamSchemaMismatch(
                self.source_name,
                "intelligent search payload has no 'products' list",
            )
        records: list[RawRecord] = []
        for raw in products:
            try:
                records.append(
                    VtexIntelligentRecord.from_payload(
                        raw, self.source_name, prefer_ean
                    )
                )
            except UpstreamSchemaMismatch as exc:
                self.logger.debug("[%s] %s", self.source_name, exc)
        if products and not records:
            raise UpstreamSchemaMismatch(
                self.source_name,
                "no intelligent-search record could be parsed",
            )
        return records

    def _non_empty(
        self, records: list[RawRecord], what: str,
    ) -> list[RawRecord]:
        if not records:
            raise UpstreamEmpty(self.source_name, f"{what}: 0 items")
        return records

    # ── Search transports ───────────────────────────────

    def _search_path(
        self, query: str, page: int, page_size: int,
    ) -> list[RawRecord]:
        encoded = urllib.parse.quote(query, safe="")
        url = f"{self.base_url}{self.CATALOG_PATH}/{encoded}"
        data = self._get_json(url, self._window(page, page_size))
        return self._non_empty(self._parse_catalog(data), "path search")

    def _search_keyword(
        self, query: str, page: int, page_size: int,
    ) -> list[RawRecord]:
        url = f"{self.base_url}{self.CATALOG_PATH}"
        params: dict[str, Any] = {
            "ft": query,
            **self._window(page, page_size),
        }
        data = self._get_json(url, params)
        return self._non_empty(
            self._parse_catalog(data), "keyword search"
        )

    def _search_intelligent(
        self, query: str, page: int, page_size: int,
    ) -> list[RawRecord]:
        url = f"{self.base_url}{self.INTELLIGENT_PATH}"
        params: dict[str, Any] = {
            "query": query,
            "page": page,
            "count": page_size,
            "locale": "es-CR",
            "hideUnavailableItems": "false",
        }
        data = self._get_json(url, params)
        return self._non_empty(
            self._parse_intelligent(data), "intelligent search"
        )

    def _search_strategies(
        self, query: str, page: int, page_size: int,
    ) -> list[Strategy[list[RawRecord]]]:
        return [
            ("path", partial(self._search_path, query, page, page_size)),
            (
                "keyword",
                partial(self._search_keyword, query, page, page_size),
            ),
            (
                "intelligent",
                partial(self._search_intelligent, query, page, page_size),
            ),
        ]

    # ── Barcode transports ──────────────────────────────

    def _lookup_ean_filter(self, code: str) -> RawRecord:
        url = f"{self.base_url}{self.CATALOG_PATH}"
        params: dict[str, Any] = {
            "fq": f"alternateIds_Ean:{code}",
            "_from": 0,
            "_to": self.LOOKUP_WINDOW - 1,
        }
        data = self._get_json(url, params)
        return self._first_verified(self._parse_catalog(data, code), code)

    def _lookup_keyword(self, code: str) -> RawRecord:
        url = f"{self.base_url}{self.CATALOG_PATH}"
        params: dict[str, Any] = {
            "ft": code,
            "_from": 0,
            "_to": self.LOOKUP_WINDOW - 1,
        }
        data = self._get_json(url, params)
        return self._first_verified(self._parse_catalog(data, code), code)

    def _lookup_intelligent(self, code: str) -> RawRecord:
        url = f"{self.base_url}{self.INTELLIGENT_PATH}"
        params: dict[str, Any] = {
            "query": code,
            "page": 1,
            "count": self.LOOKUP_WINDOW,
        }
        data = self._get_json(url, params)
        return self._first_verified(
            self._parse_intelligent(data, code), code
        )

    def _lookup_strategies(
        self, code: str,
    ) -> list[Strategy[RawRecord]]:
        return [
            ("ean_filter", partial(self._lookup_ean_filter, code)),
            ("keyword", partial(self._lookup_keyword, code)),
            ("intelligent", partial(self._lookup_intelligent, code)),
        ]
