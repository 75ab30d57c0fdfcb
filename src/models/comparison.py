# src/models/comparison.py

"""Result containers returned by the search and compare operations."""

from dataclasses import dataclass, field

from src.config.settings import Settings
from src.models.product import CanonicalProduct, Store


@dataclass(frozen=True)
class MatchCandidate:
    """Two listings from different stores and how alike they are."""

    left: CanonicalProduct
    right: CanonicalProduct
    score: int

    def __post_init__(self) -> None:
        if self.left.store is self.right.store:
            msg = (
                "match candidates must come from two stores, "
                f"both are {self.left.store.value}"
            )
            raise ValueError(msg)
        if not 0 <= self.score <= 100:
            msg = f"score must be within [0, 100], got {self.score}"
            raise ValueError(msg)

    @property
    def matched(self) -> bool:
        """True when the pair is considered the same product."""
        return self.score >= Settings.MATCH_THRESHOLD


@dataclass(frozen=True)
class BestPriceResult:
    """The cheapest store and how much it saves over the runner-up."""

    store: Store
    price: float
    savings: float = 0.0
    savings_percentage: int = 0


@dataclass
class SearchResponse:
    """Ranked search results merged from every store in scope."""

    products: list[CanonicalProduct]
    page: int
    page_size: int
    has_more: bool = False
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )
    failed_stores: list[Store] = field(
        default_factory=lambda: list[Store]()
    )
    stores_queried: int = 0

    @property
    def total(self) -> int:
        return len(self.products)

    @property
    def status(self) -> int:
        """500 only when every queried store hard-errored."""
        if self.stores_queried and (
            len(self.failed_stores) == self.stores_queried
        ):
            return 500
        return 200


def _empty_store_map() -> dict[Store, list[CanonicalProduct]]:
    return {store: [] for store in Store}


@dataclass
class ComparisonResult:
    """Per-store listings plus the best price across all stores."""

    query: str
    products_by_store: dict[Store, list[CanonicalProduct]] = field(
        default_factory=_empty_store_map
    )
    best_price: BestPriceResult | None = None
    matches: list[MatchCandidate] = field(
        default_factory=lambda: list[MatchCandidate]()
    )
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )
    failed_stores: list[Store] = field(
        default_factory=lambda: list[Store]()
    )

    @property
    def status(self) -> int:
        """500 only when all four stores hard-errored."""
        if len(self.failed_stores) == len(Store):
            return 500
        return 200
