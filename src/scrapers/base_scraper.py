# src/scrapers/base_scraper.py

"""Abstract base class for all retailer catalog clients."""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.errors import (
    BarcodeMismatch,
    UpstreamEmpty,
    UpstreamError,
    UpstreamSchemaMismatch,
    UpstreamTimeout,
)
from src.models.product import Store
from src.models.raw_records import RawRecord
from src.scrapers.fallback import FallbackOutcome, Strategy, first_success

_OK_STATUSES = (200, 206)  # VTEX answers catalog searches with 206


def _is_timeout(exc: BaseException) -> bool:
    return (
        isinstance(exc, TimeoutError)
        or "timeout" in type(exc).__name__.lower()
        or "timed out" in str(exc).lower()
    )


class BaseScraper(ABC):
    """Shared HTTP plumbing and the fallback-driven search/lookup contract.

    Subclasses declare their transports as ordered strategy lists;
    ``search_report`` and ``lookup_report`` run them through
    :func:`first_success` and never raise.
    """

    store: Store

    def __init__(self) -> None:
        self.source_name = self.store.value
        self.logger = logging.getLogger(
            f"grocery_compare.{self.source_name}"
        )
        self.settings = Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._current_delay: float = (
            self.settings.REQUEST_DELAY
        )
        self._consecutive_failures: int = 0
        self._circuit_open: bool = False
        self._circuit_opened_at: float = 0.0
        self._request_timeout: int = (
            self.settings.SEARCH_TIMEOUT
        )
        self._last_failure_timed_out: bool = False

    # Cloudflare challenge page markers
    _CF_CHALLENGE_MARKERS: list[str] = [
        "challenges.cloudflare.com",
        "cdn-cgi/challenge-platform",
        "just a moment",
        "cf-turnstile",
        "cf_chl_opt",
    ]

    @property
    @abstractmethod
    def base_url(self) -> str:
        """Storefront origin, e.g. ``https://www.maxipali.co.cr``."""
        ...

    def _get_homepage(self) -> str:
        """Return the homepage URL for the Referer header."""
        return self.base_url.rstrip("/") + "/"

    def _build_headers(self) -> dict[str, str]:
        return {
            **self.settings.DEFAULT_HEADERS,
            "Origin": self.base_url.rstrip("/"),
            "Referer": self._get_homepage(),
        }

    def _validate_response(
        self, resp: curl_requests.Response,
    ) -> bool:
        """Reject Cloudflare challenge pages served instead of JSON."""
        text = resp.text
        if text.lstrip().startswith(("{", "[")):
            return True
        lower = text.lower()
        for marker in self._CF_CHALLENGE_MARKERS:
            if marker in lower:
                self.logger.warning(
                    "[%s] Cloudflare challenge detected "
                    "(marker: '%s')",
                    self.source_name,
                    marker,
                )
                return False
        return True

    # ── Circuit breaker & adaptive delay ────────────────

    def _check_circuit(self) -> bool:
        """Return True if the circuit breaker blocks this request.

        After CIRCUIT_BREAKER_COOLDOWN seconds the breaker enters
        a half-open state, allowing a single probe request through.
        """
        if not self._circuit_open:
            return False
        elapsed = time.time() - self._circuit_opened_at
        if elapsed >= self.settings.CIRCUIT_BREAKER_COOLDOWN:
            self.logger.info(
                "[%s] Circuit breaker half-open after %.0fs",
                self.source_name,
                elapsed,
            )
            self._circuit_open = False
            return False
        return True

    def _record_success(self) -> None:
        """Reset failure counters after a successful fetch."""
        self._consecutive_failures = 0
        self._circuit_open = False
        self._circuit_opened_at = 0.0
        self._current_delay = self.settings.REQUEST_DELAY
        self._last_failure_timed_out = False

    def _record_failure(self) -> None:
        """Track failure and open circuit breaker if needed."""
        self._consecutive_failures += 1
        threshold = (
            self.settings.CIRCUIT_BREAKER_THRESHOLD
        )
        if self._consecutive_failures >= threshold:
            self._circuit_open = True
            self._circuit_opened_at = time.time()
            self.logger.error(
                "[%s] Circuit breaker opened after %d "
                "consecutive failures",
                self.source_name,
                self._consecutive_failures,
            )

    def _escalate_delay(self) -> None:
        """Double the current delay up to the configured max."""
        max_delay = (
            self.settings.REQUEST_DELAY
            * self.settings.MAX_DELAY_MULTIPLIER
        )
        self._current_delay = min(
            self._current_delay * 2, max_delay
        )
        self.logger.warning(
            "[%s] Rate-limited, delay escalated to %.1fs",
            self.source_name,
            self._current_delay,
        )

    # ── Raw fetches ─────────────────────────────────────

    def _fetch(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> curl_requests.Response | None:
        """Request with retries, adaptive delay, and circuit breaker."""
        if self._check_circuit():
            return None
        self._last_failure_timed_out = False
        for attempt in range(self.settings.MAX_RETRIES):
            try:
                if method == "POST":
                    resp = self.session.post(
                        url,
                        headers=headers,
                        json=payload,
                        timeout=self._request_timeout,
                    )
                else:
                    resp = self.session.get(
                        url,
                        headers=headers,
                        params=params,
                        timeout=self._request_timeout,
                    )
                if resp.status_code in _OK_STATUSES:
                    if not self._validate_response(resp):
                        self._escalate_delay()
                        time.sleep(self._current_delay)
                        continue
                    self._record_success()
                    return resp
                self.logger.warning(
                    "[%s] HTTP %d on attempt %d",
                    self.source_name,
                    resp.status_code,
                    attempt + 1,
                )
                if resp.status_code in (429, 403):
                    self._escalate_delay()
                    time.sleep(self._current_delay)
            except Exception as exc:
                self._last_failure_timed_out = _is_timeout(exc)
                self.logger.warning(
                    "[%s] Request error on attempt %d: %s",
                    self.source_name,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
                time.sleep(
                    self._current_delay * (attempt + 1)
                )
        self._record_failure()
        return None

    def _fetch_get(
        self,
        url: str,
        headers: dict[str, str],
        params: dict[str, Any] | None = None,
    ) -> curl_requests.Response | None:
        return self._fetch("GET", url, headers, params=params)

    def _fetch_post(
        self,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any],
    ) -> curl_requests.Response | None:
        return self._fetch("POST", url, headers, payload=payload)

    def _fetch_cloudscraper(
        self,
        url: str,
        headers: dict[str, str],
        params: dict[str, Any] | None,
    ) -> Any:
        """GET through cloudscraper once curl_cffi is exhausted."""
        self.logger.info(
            "[%s] curl_cffi exhausted, falling back to cloudscraper",
            self.source_name,
        )
        try:
            _cs: Any = cloudscraper
            scraper: Any = _cs.create_scraper()
            resp: Any = scraper.get(
                url,
                headers=headers,
                params=params,
                timeout=self._request_timeout,
            )
            if resp.status_code in _OK_STATUSES:
                return resp
            self.logger.warning(
                "[%s] cloudscraper HTTP %d",
                self.source_name,
                resp.status_code,
            )
        except Exception as exc:
            if _is_timeout(exc):
                self._last_failure_timed_out = True
            self.logger.error(
                "[%s] cloudscraper fallback also failed: %s",
                self.source_name,
                exc,
                exc_info=True,
            )
        return None

    def _failure(self, url: str) -> UpstreamError:
        if self._last_failure_timed_out:
            return UpstreamTimeout(
                self.source_name,
                f"timed out after {self._request_timeout}s: {url}",
            )
        if self._circuit_open:
            return UpstreamError(self.source_name, "circuit open")
        return UpstreamError(self.source_name, f"request failed: {url}")

    def _decode(self, resp: Any, url: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamSchemaMismatch(
                self.source_name, f"invalid JSON from {url}: {exc}"
            ) from exc

    def _get_json(
        self, url: str, params: dict[str, Any] | None = None,
    ) -> Any:
        """GET and decode JSON; raises an ``UpstreamError`` on failure."""
        if self._check_circuit():
            raise UpstreamError(self.source_name, "circuit open")
        headers = self._build_headers()
        resp: Any = self._fetch_get(url, headers, params)
        if resp is None and not self._circuit_open:
            resp = self._fetch_cloudscraper(url, headers, params)
        if resp is None:
            raise self._failure(url)
        return self._decode(resp, url)

    def _post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
    ) -> Any:
        """POST JSON and decode the response."""
        if self._check_circuit():
            raise UpstreamError(self.source_name, "circuit open")
        resp = self._fetch_post(url, headers, payload)
        if resp is None:
            raise self._failure(url)
        return self._decode(resp, url)

    # ── Search / lookup contract ────────────────────────

    def _first_verified(
        self, records: Sequence[RawRecord], code: str,
    ) -> RawRecord:
        """First candidate whose barcode equals *code* exactly.

        Upstream search matches codes fuzzily, so a near miss is a
        ``BarcodeMismatch`` rather than an answer.
        """
        if not records:
            raise UpstreamEmpty(
                self.source_name, f"no candidates for {code}"
            )
        for record in records:
            if code and record.ean == code:
                return record
        raise BarcodeMismatch(self.source_name, code, records[0].ean)

    @abstractmethod
    def _search_strategies(
        self, query: str, page: int, page_size: int,
    ) -> list[Strategy[list[RawRecord]]]:
        """Ordered search transports for this store."""
        ...

    @abstractmethod
    def _lookup_strategies(
        self, code: str,
    ) -> list[Strategy[RawRecord]]:
        """Ordered barcode transports for this store."""
        ...

    def search_report(
        self,
        query: str,
        page: int = 1,
        page_size: int = Settings.DEFAULT_PAGE_SIZE,
    ) -> FallbackOutcome[list[RawRecord]]:
        """Run the search transports; never raises."""
        self._request_timeout = self.settings.SEARCH_TIMEOUT
        try:
            return first_success(
                self._search_strategies(query, page, page_size),
                self.logger,
                f"[{self.source_name}] search '{query}'",
            )
        except Exception as exc:
            self.logger.error(
                "[%s] Search failed: %s",
                self.source_name,
                exc,
                exc_info=True,
            )
            return FallbackOutcome(
                attempts=["search"], errors=[str(exc)], hard_errors=1
            )

    def search(
        self,
        query: str,
        page: int = 1,
        page_size: int = Settings.DEFAULT_PAGE_SIZE,
    ) -> list[RawRecord]:
        """Search the catalog; an empty list when every transport fails."""
        return self.search_report(query, page, page_size).value or []

    def lookup_report(self, code: str) -> FallbackOutcome[RawRecord]:
        """Run the barcode transports; never raises."""
        code = (code or "").strip()
        if not code:
            return FallbackOutcome(
                errors=[f"[{self.source_name}] blank barcode"]
            )
        self._request_timeout = self.settings.LOOKUP_TIMEOUT
        try:
            return first_success(
                self._lookup_strategies(code),
                self.logger,
                f"[{self.source_name}] lookup {code}",
            )
        except Exception as exc:
            self.logger.error(
                "[%s] Barcode lookup failed: %s",
                self.source_name,
                exc,
                exc_info=True,
            )
            return FallbackOutcome(
                attempts=["lookup"], errors=[str(exc)], hard_errors=1
            )

    def lookup_by_code(self, code: str) -> RawRecord | None:
        """Verified barcode match, or ``None`` when nothing matches exactly."""
        return self.lookup_report(code).value
