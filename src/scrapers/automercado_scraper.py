# src/scrapers/automercado_scraper.py

"""Client for automercado.cr using its Algolia-powered product index."""

import re
from functools import partial
from typing import Any

from src.models.errors import (
    UpstreamEmpty,
    UpstreamError,
    UpstreamSchemaMismatch,
)
from src.models.product import Store
from src.models.raw_records import AlgoliaRecord, RawRecord, as_dict
from src.scrapers.base_scraper import BaseScraper
from src.scrapers.fallback import Strategy


class AutomercadoScraper(BaseScraper):
    """Automercado via its facet-indexed Algolia search service.

    Automercado has no public catalog API, so there is a single
    transport for both search and barcode lookup.  Credentials come
    from the environment; when absent they are scraped from the
    storefront homepage once per client.
    """

    store = Store.AUTOMERCADO

    ALGOLIA_URL = (
        "https://{app_id}-dsn.algolia.net/1/indexes/{index}/query"
    )
    _APP_ID_RE = re.compile(
        r"""(?:applicationId|appId|ALGOLIA_APP_ID)["']?\s*[:=]\s*["']([A-Z0-9]{8,12})["']"""
    )
    _API_KEY_RE = re.compile(
        r"""(?:searchApiKey|apiKey|ALGOLIA_API_KEY)["']?\s*[:=]\s*["']([a-f0-9]{32})["']"""
    )

    def __init__(self) -> None:
        super().__init__()
        self._app_id: str = self.settings.AUTOMERCADO_ALGOLIA_APP_ID
        self._api_key: str = self.settings.AUTOMERCADO_ALGOLIA_API_KEY
        self._index: str = self.settings.AUTOMERCADO_ALGOLIA_INDEX
        self._store_id: str = self.settings.AUTOMERCADO_STORE_ID

    @property
    def base_url(self) -> str:
        return self.settings.AUTOMERCADO_BASE_URL

    def _refresh_credentials(self) -> bool:
        """Scrape the Algolia app id and search key from the homepage."""
        try:
            resp = self.session.get(
                self._get_homepage(),
                headers={
                    **self.settings.DEFAULT_HEADERS,
                    "Accept": "text/html,application/xhtml+xml",
                },
                timeout=self._request_timeout,
            )
            if resp.status_code != 200:
                self.logger.warning(
                    "[automercado] Homepage returned HTTP %d",
                    resp.status_code,
                )
                return False
            app_match = self._APP_ID_RE.search(resp.text)
            key_match = self._API_KEY_RE.search(resp.text)
            if not app_match or not key_match:
                self.logger.error(
                    "[automercado] Could not find Algolia config "
                    "in homepage"
                )
                return False
            self._app_id = app_match.group(1)
            self._api_key = key_match.group(1)
            self.logger.info("[automercado] Refreshed Algolia credentials")
            return True
        except Exception as exc:
            self.logger.error(
                "[automercado] Failed to refresh credentials: %s",
                exc,
                exc_info=True,
            )
            return False

    def _ensure_credentials(self) -> None:
        if self._app_id and self._api_key:
            return
        if not self._refresh_credentials():
            raise UpstreamError(
                self.source_name, "no Algolia credentials available"
            )

    def _query_index(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST one query to the Algolia index."""
        self._ensure_credentials()
        url = self.ALGOLIA_URL.format(
            app_id=self._app_id.lower(), index=self._index
        )
        headers = {
            **self._build_headers(),
            "X-Algolia-Application-Id": self._app_id,
            "X-Algolia-API-Key": self._api_key,
            "Content-Type": "application/json",
        }
        data = self._post_json(url, payload, headers)
        if not isinstance(as_dict(data).get("hits"), list):
            raise UpstreamSchemaMismatch(
                self.source_name, "Algolia response has no 'hits' list"
            )
        return as_dict(data)

    def _parse_hits(self, hits: list[Any]) -> list[RawRecord]:
        records: list[RawRecord] = []
        for hit in hits:
            try:
                records.append(
                    AlgoliaRecord.from_payload(
                        hit, self.source_name, self._store_id
                    )
                )
            except UpstreamSchemaMismatch as exc:
                self.logger.debug("[automercado] %s", exc)
        return records

    # ── Search / lookup transports ──────────────────────

    def _search_index(
        self, query: str, page: int, page_size: int,
    ) -> list[RawRecord]:
        data = self._query_index(
            {"query": query, "page": page - 1, "hitsPerPage": page_size}
        )
        records = self._parse_hits(data["hits"])
        if not records:
            raise UpstreamEmpty(self.source_name, "algolia search: 0 hits")
        return records

    def _lookup_facet(self, code: str) -> RawRecord:
        data = self._query_index(
            {
                "query": "",
                "facetFilters": [[f"ean:{code}"]],
                "hitsPerPage": 5,
            }
        )
        return self._first_verified(self._parse_hits(data["hits"]), code)

    def _search_strategies(
        self, query: str, page: int, page_size: int,
    ) -> list[Strategy[list[RawRecord]]]:
        return [
            ("algolia", partial(self._search_index, query, page, page_size)),
        ]

    def _lookup_strategies(
        self, code: str,
    ) -> list[Strategy[RawRecord]]:
        return [("algolia_facet", partial(self._lookup_facet, code))]

    # ── Bulk catalog dump ───────────────────────────────

    def dump_catalog(
        self, page: int = 0, hits_per_page: int = 1000,
    ) -> dict[str, Any]:
        """Fetch one 0-based page of the whole catalog (scrape-style call).

        Returns ``{"hits": [...], "pagination": {...}}``; raises
        ``UpstreamError`` since a partial dump should stop loudly.
        """
        self._request_timeout = self.settings.BULK_TIMEOUT
        hits_per_page = min(
            hits_per_page, self.settings.AUTOMERCADO_MAX_HITS_PER_PAGE
        )
        data = self._query_index(
            {"query": "", "page": page, "hitsPerPage": hits_per_page}
        )
        total_pages = int(data.get("nbPages", 0) or 0)
        return {
            "hits": data["hits"],
            "pagination": {
                "page": page,
                "hitsPerPage": hits_per_page,
                "totalHits": int(data.get("nbHits", 0) or 0),
                "totalPages": total_pages,
                "hasMore": page + 1 < total_pages,
            },
        }
