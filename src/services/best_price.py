# src/services/best_price.py

"""Pure reducers from per-store listings to the best-price result."""

import math
from collections.abc import Mapping, Sequence

from src.models.comparison import BestPriceResult
from src.models.product import CanonicalProduct, Store


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (5.5 -> 6)."""
    return int(math.floor(value + 0.5))


def cheapest(
    products: Sequence[CanonicalProduct],
) -> CanonicalProduct | None:
    """Lowest positive price; the first one seen wins a tie."""
    best: CanonicalProduct | None = None
    for product in products:
        if product.price <= 0:
            continue
        if best is None or product.price < best.price:
            best = product
    return best


def cheapest_per_store(
    products_by_store: Mapping[Store, Sequence[CanonicalProduct]],
) -> dict[Store, CanonicalProduct]:
    """Each store's cheapest product, in fixed store order."""
    result: dict[Store, CanonicalProduct] = {}
    for store in Store:
        winner = cheapest(products_by_store.get(store, ()))
        if winner is not None:
            result[store] = winner
    return result


def best_price(
    cheapest_by_store: Mapping[Store, CanonicalProduct],
) -> BestPriceResult | None:
    """Global minimum over the per-store winners plus its savings.

    ``savings`` is the gap to the next-cheapest store and the
    percentage is taken against the winning price, so {1000, 900, 950}
    gives 50 and 6%.  With a single priced store both are 0.
    """
    ranked = sorted(
        (p for store in Store if (p := cheapest_by_store.get(store))),
        key=lambda p: p.price,
    )
    if not ranked:
        return None

    winner = ranked[0]
    if len(ranked) == 1:
        return BestPriceResult(store=winner.store, price=winner.price)

    savings = ranked[1].price - winner.price
    return BestPriceResult(
        store=winner.store,
        price=winner.price,
        savings=savings,
        savings_percentage=round_half_up(savings / winner.price * 100),
    )
