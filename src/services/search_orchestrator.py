# src/services/search_orchestrator.py

"""Orchestrates cross-store searches, barcode lookups and price comparisons."""

import asyncio
import dataclasses
import importlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from src.config.settings import Settings
from src.filters.normalizer import ResponseNormalizer
from src.filters.product_validator import ProductValidator
from src.filters.query_reformulator import QueryReformulator
from src.filters.relevance_filter import RelevanceFilter
from src.matching.similarity_scorer import SimilarityScorer
from src.models.comparison import (
    ComparisonResult,
    MatchCandidate,
    SearchResponse,
)
from src.models.errors import (
    ProductNotFound,
    StoresUnavailable,
    ValidationError,
)
from src.models.product import CanonicalProduct, SearchQuery, Store
from src.models.raw_records import RawRecord
from src.services.best_price import best_price, cheapest_per_store

logger = logging.getLogger("grocery_compare.orchestrator")

StoreScope = Store | str | None


@dataclass(frozen=True)
class StoreOutcome:
    """Immutable result of one store branch."""

    store: Store
    products: tuple[CanonicalProduct, ...] = ()
    raw_count: int = 0
    hard_failed: bool = False
    errors: tuple[str, ...] = ()
    query_used: str | None = None


def _load_scraper_class(dotted_path: str) -> type[Any]:
    """Dynamically import a scraper class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


def _retag(
    products: list[CanonicalProduct], store: Store,
) -> list[CanonicalProduct]:
    """Stamp every product with the store whose client returned it."""
    return [
        p if p.store is store else dataclasses.replace(p, store=store)
        for p in products
    ]


class SearchOrchestrator:
    """Fans each request out to every store client and merges the results.

    Each store runs in its own worker thread with a fresh client, so
    branches share no mutable state; a failing branch turns into an
    empty, error-tagged :class:`StoreOutcome` instead of cancelling its
    siblings.
    """

    def __init__(
        self,
        sources: list[dict[str, str]] | None = None,
        scorer: SimilarityScorer | None = None,
    ) -> None:
        self.settings = Settings()
        self.sources = {
            s["id"]: s
            for s in (sources or self.settings.AVAILABLE_SOURCES)
        }
        self.scorer = scorer or SimilarityScorer()

    # ── Private helpers ──────────────────────────────────

    def _scope(self, store_scope: StoreScope) -> list[Store]:
        if store_scope is None or store_scope == "all":
            stores = list(Store)
        elif isinstance(store_scope, Store):
            stores = [store_scope]
        else:
            stores = [Store.parse(store_scope)]
        return [s for s in stores if s.value in self.sources]

    def _make_client(self, store: Store) -> Any:
        scraper_cls = _load_scraper_class(
            self.sources[store.value]["scraper"]
        )
        return scraper_cls()

    @staticmethod
    def _normalize(
        client: Any, store: Store, records: list[RawRecord],
    ) -> list[CanonicalProduct]:
        products = ResponseNormalizer.normalize_all(
            records, store, getattr(client, "base_url", "")
        )
        return _retag(products, store)

    def _search_store(
        self,
        client: Any,
        store: Store,
        query: str,
        page: int,
        page_size: int,
    ) -> StoreOutcome:
        """One store, one query: fetch, normalize, re-tag, filter."""
        report = client.search_report(query, page, page_size)
        records: list[RawRecord] = report.value or []
        products = self._normalize(client, store, records)
        kept, _ = RelevanceFilter.filter(products, query)
        return StoreOutcome(
            store=store,
            products=tuple(kept),
            raw_count=len(records),
            hard_failed=report.hard_failed,
            errors=tuple(report.errors),
            query_used=query,
        )

    def _lookup_store(
        self, client: Any, store: Store, code: str,
    ) -> StoreOutcome:
        report = client.lookup_report(code)
        records = [report.value] if report.value is not None else []
        products, _ = ProductValidator.validate(
            self._normalize(client, store, records)
        )
        return StoreOutcome(
            store=store,
            products=tuple(products),
            raw_count=len(records),
            hard_failed=report.hard_failed,
            errors=tuple(report.errors),
            query_used=code,
        )

    def _retry_with_reformulations(
        self,
        client: Any,
        store: Store,
        product_name: str,
        first: StoreOutcome,
    ) -> StoreOutcome:
        """Sequentially try broader queries until one yields products."""
        errors = list(first.errors)
        all_hard_failed = first.hard_failed
        for alternate in QueryReformulator.alternates(product_name):
            logger.info(
                "[%s] No results for '%s', retrying with '%s'",
                store.value,
                product_name,
                alternate,
            )
            outcome = self._search_store(
                client, store, alternate, 1, self.settings.DEFAULT_PAGE_SIZE
            )
            errors.extend(outcome.errors)
            if outcome.products:
                return dataclasses.replace(outcome, errors=tuple(errors))
            all_hard_failed = all_hard_failed and outcome.hard_failed
        return dataclasses.replace(
            first, hard_failed=all_hard_failed, errors=tuple(errors)
        )

    def _compare_store(
        self, store: Store, product_name: str, barcode: str | None,
    ) -> StoreOutcome:
        """Barcode first when given, then name search, then reformulations."""
        client = self._make_client(store)
        lookup_errors: tuple[str, ...] = ()
        if barcode:
            by_code = self._lookup_store(client, store, barcode)
            if by_code.products:
                return by_code
            lookup_errors = by_code.errors

        outcome = self._search_store(
            client,
            store,
            product_name,
            1,
            self.settings.DEFAULT_PAGE_SIZE,
        )
        if not outcome.products:
            outcome = self._retry_with_reformulations(
                client, store, product_name, outcome
            )
        if lookup_errors:
            outcome = dataclasses.replace(
                outcome, errors=lookup_errors + outcome.errors
            )
        return outcome

    async def _run_branch(
        self, store: Store, work: Callable[[], StoreOutcome],
    ) -> StoreOutcome:
        """Run one store's blocking work off-loop; never raises."""
        try:
            async with asyncio.timeout(
                self.settings.STORE_BRANCH_TIMEOUT
            ):
                return await asyncio.to_thread(work)
        except TimeoutError:
            logger.error(
                "[%s] Store branch exceeded %.0fs",
                store.value,
                self.settings.STORE_BRANCH_TIMEOUT,
            )
            return StoreOutcome(
                store=store,
                hard_failed=True,
                errors=(f"[{store.value}] branch timed out",),
            )
        except Exception as exc:
            logger.error(
                "[%s] Store branch failed: %s",
                store.value,
                exc,
                exc_info=True,
            )
            return StoreOutcome(
                store=store,
                hard_failed=True,
                errors=(f"[{store.value}] {exc}",),
            )

    async def _fan_out(
        self,
        stores: list[Store],
        work_for: Callable[[Store], StoreOutcome],
    ) -> list[StoreOutcome]:
        """Run every store branch concurrently and wait for all of them."""
        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(
                    self._run_branch(
                        store, lambda store=store: work_for(store)
                    )
                )
                for store in stores
            ]
        return [task.result() for task in tasks]

    def _default_reference(
        self,
        query: SearchQuery,
        barcode: str | None,
        products_by_store: dict[Store, list[CanonicalProduct]],
    ) -> tuple[CanonicalProduct, bool]:
        """The hint store's top listing, else a stand-in built from the query.

        The flag is False for the stand-in: it is not a real listing, so
        it filters other stores without being reported as a match.
        """
        hint = query.original_store
        if hint is not None and products_by_store.get(hint):
            return products_by_store[hint][0], True
        stand_in = CanonicalProduct(
            id=f"query:{query.text}",
            name=query.text,
            brand="",
            price=0.0,
            # Unused for an unanchored reference
            store=hint or Store.WALMART,
            barcode=barcode,
        )
        return stand_in, False

    def _match_reference(
        self,
        reference: CanonicalProduct,
        exempt: set[Store],
        products_by_store: dict[Store, list[CanonicalProduct]],
        anchored: bool = True,
        barcode: str | None = None,
    ) -> tuple[dict[Store, list[CanonicalProduct]], list[MatchCandidate]]:
        """Keep non-exempt stores' products only if they match *reference*.

        A listing carrying the requested *barcode* is kept whatever its
        score. Only an *anchored* reference yields ``MatchCandidate`` pairs.
        """
        threshold = self.settings.MATCH_THRESHOLD
        kept: dict[Store, list[CanonicalProduct]] = {}
        matches: list[MatchCandidate] = []
        for store, products in products_by_store.items():
            if store in exempt:
                kept[store] = list(products)
                continue
            accepted: list[CanonicalProduct] = []
            for product in products:
                if anchored:
                    candidate = self.scorer.candidate(reference, product)
                    score = candidate.score
                    if candidate.matched:
                        matches.append(candidate)
                else:
                    score = self.scorer.score(reference, product)
                verified = bool(barcode) and product.barcode == barcode
                if score >= threshold or verified:
                    accepted.append(product)
            kept[store] = accepted
            if len(accepted) < len(products):
                logger.info(
                    "[%s] %d of %d products did not match '%s'",
                    store.value,
                    len(products) - len(accepted),
                    len(products),
                    reference.name,
                )
        return kept, matches

    # ── Public operations ────────────────────────────────

    async def search(
        self,
        store_scope: StoreScope,
        query: str,
        page: int = 1,
        page_size: int = Settings.DEFAULT_PAGE_SIZE,
    ) -> SearchResponse:
        """Ranked search across one store or all of them."""
        search_query = SearchQuery(query, page, page_size)
        stores = self._scope(store_scope)

        def work(store: Store) -> StoreOutcome:
            return self._search_store(
                self._make_client(store),
                store,
                search_query.text,
                page,
                page_size,
            )

        outcomes = await self._fan_out(stores, work)

        merged = [p for o in outcomes for p in o.products]
        response = SearchResponse(
            products=RelevanceFilter.rank(merged, search_query.text),
            page=page,
            page_size=page_size,
            has_more=any(o.raw_count >= page_size for o in outcomes),
            errors=[e for o in outcomes for e in o.errors],
            failed_stores=[o.store for o in outcomes if o.hard_failed],
            stores_queried=len(outcomes),
        )
        logger.info(
            "Search '%s' returned %d products from %d stores",
            search_query.text,
            response.total,
            len(outcomes),
        )
        return response

    async def lookup_by_code(
        self, store_scope: StoreScope, code: str,
    ) -> CanonicalProduct:
        """First verified barcode match in store order.

        Raises ``ProductNotFound`` when no store matched and
        ``StoresUnavailable`` when every store hard-errored.
        """
        code = (code or "").strip()
        if not code:
            msg = "Barcode is required"
            raise ValidationError(msg)
        stores = self._scope(store_scope)

        outcomes = await self._fan_out(
            stores,
            lambda store: self._lookup_store(
                self._make_client(store), store, code
            ),
        )
        for outcome in outcomes:
            if outcome.products:
                logger.info(
                    "Barcode %s matched at %s", code, outcome.store.value
                )
                return outcome.products[0]
        if outcomes and all(o.hard_failed for o in outcomes):
            logger.error(
                "Barcode %s: all %d stores failed", code, len(outcomes)
            )
            raise StoresUnavailable(code)
        logger.info("Barcode %s not found in %d stores", code, len(stores))
        raise ProductNotFound(code)

    async def compare(
        self,
        product_name: str,
        barcode: str | None = None,
        original_store: Store | None = None,
        reference: CanonicalProduct | None = None,
    ) -> ComparisonResult:
        """Compare one product across all four stores.

        Listings from stores other than the hint store must score as the
        same product as *reference*. Without one, the hint store's top
        listing is the reference, or the query itself when there is no
        hint. Only an empty *product_name* raises; upstream trouble
        yields fewer stores in the result.
        """
        if reference is not None and original_store is None:
            original_store = reference.store
        query = SearchQuery(product_name, original_store=original_store)
        code = barcode.strip() if barcode else None

        outcomes = await self._fan_out(
            self._scope(None),
            lambda store: self._compare_store(store, query.text, code),
        )

        products_by_store: dict[Store, list[CanonicalProduct]] = {
            store: [] for store in Store
        }
        for outcome in outcomes:
            products_by_store[outcome.store] = list(outcome.products)

        anchored = True
        if reference is None:
            reference, anchored = self._default_reference(
                query, code, products_by_store
            )
        exempt: set[Store] = set()
        if query.original_store is not None:
            exempt.add(query.original_store)
        if anchored:
            exempt.add(reference.store)
        products_by_store, matches = self._match_reference(
            reference, exempt, products_by_store, anchored, code
        )

        result = ComparisonResult(
            query=query.text,
            products_by_store=products_by_store,
            best_price=best_price(cheapest_per_store(products_by_store)),
            matches=matches,
            errors=[e for o in outcomes for e in o.errors],
            failed_stores=[o.store for o in outcomes if o.hard_failed],
        )
        if result.best_price is None:
            logger.warning("No store produced a price for '%s'", query.text)
        else:
            logger.info(
                "Best price for '%s': %s at %.2f (saves %.2f, %d%%)",
                query.text,
                result.best_price.store.value,
                result.best_price.price,
                result.best_price.savings,
                result.best_price.savings_percentage,
            )
        return result
