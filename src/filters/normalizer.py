# src/filters/normalizer.py

"""Translate retailer-specific raw records into CanonicalProduct."""

import logging
from collections.abc import Iterable

from src.models.errors import UpstreamSchemaMismatch
from src.models.product import CanonicalProduct, Store
from src.models.raw_records import (
    AlgoliaRecord,
    RawRecord,
    VtexCatalogRecord,
    VtexIntelligentRecord,
)

logger = logging.getLogger("grocery_compare.normalizer")

DEFAULT_CATEGORY = "Grocery"


class ResponseNormalizer:
    """Map each raw record variant onto the canonical product model."""

    @staticmethod
    def select_price(sale_price: float, list_price: float) -> float:
        """Active/sale price, then list price, then 0."""
        if sale_price > 0:
            return sale_price
        if list_price > 0:
            return list_price
        return 0.0

    @staticmethod
    def category_from_path(path: str | None) -> str:
        """Last non-empty segment of ``"/Abarrotes/Café/"``."""
        if not path:
            return DEFAULT_CATEGORY
        segments = [s.strip() for s in path.split("/") if s.strip()]
        return segments[-1] if segments else DEFAULT_CATEGORY

    @staticmethod
    def _absolute_url(base_url: str, link: str) -> str:
        if not link or link.startswith("http"):
            return link
        return base_url.rstrip("/") + "/" + link.lstrip("/")

    @classmethod
    def _from_vtex(
        cls,
        record: VtexCatalogRecord | VtexIntelligentRecord,
        store: Store,
        base_url: str,
    ) -> CanonicalProduct:
        sale = record.item.price
        listed = record.item.list_price
        if isinstance(record, VtexIntelligentRecord):
            sale = sale or record.range_selling_price
            listed = listed or record.range_list_price
        price = cls.select_price(sale, listed)
        quantity = record.item.available_quantity
        return CanonicalProduct(
            id=record.product_id,
            name=record.product_name,
            brand=record.brand,
            price=price,
            list_price=listed or None,
            image_url=record.item.image_url,
            store=store,
            category=cls.category_from_path(
                record.categories[0] if record.categories else None
            ),
            barcode=record.item.ean or None,
            sku=record.item.item_id or None,
            description=record.description,
            url=cls._absolute_url(base_url, record.link),
            in_stock=quantity is None or quantity > 0,
        )

    @classmethod
    def _from_algolia(
        cls, record: AlgoliaRecord, store: Store, base_url: str,
    ) -> CanonicalProduct:
        return CanonicalProduct(
            id=record.object_id,
            name=record.name,
            brand=record.brand,
            price=cls.select_price(record.sale_price, record.base_price),
            list_price=record.base_price or None,
            image_url=record.image_url,
            store=store,
            category=cls.category_from_path(record.category_path),
            barcode=record.ean or None,
            sku=record.sku or None,
            description=(
                record.description
                if record.description != record.name
                else ""
            ),
            url=cls._absolute_url(base_url, record.url),
            in_stock=record.in_stock,
        )

    @classmethod
    def normalize(
        cls, record: RawRecord, store: Store, base_url: str = "",
    ) -> CanonicalProduct:
        """Convert one raw record; raises ``UpstreamSchemaMismatch``."""
        if isinstance(record, (VtexCatalogRecord, VtexIntelligentRecord)):
            return cls._from_vtex(record, store, base_url)
        if isinstance(record, AlgoliaRecord):
            return cls._from_algolia(record, store, base_url)
        raise UpstreamSchemaMismatch(
            store.value, f"unsupported record type {type(record).__name__}"
        )

    @classmethod
    def normalize_all(
        cls,
        records: Iterable[RawRecord],
        store: Store,
        base_url: str = "",
    ) -> list[CanonicalProduct]:
        """Normalize every record, skipping ones with an unexpected shape."""
        products: list[CanonicalProduct] = []
        skipped = 0
        for record in records:
            try:
                products.append(cls.normalize(record, store, base_url))
            except (UpstreamSchemaMismatch, ValueError) as exc:
                skipped += 1
                logger.warning(
                    "[%s] Skipped record: %s", store.value, exc
                )
        if skipped:
            logger.info(
                "[%s] Normalized %d records, skipped %d",
                store.value,
                len(products),
                skipped,
            )
        return products
