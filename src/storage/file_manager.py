# src/storage/file_manager.py

"""Handles saving comparison results and catalog dumps to disk."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.comparison import ComparisonResult, SearchResponse
from src.models.product import CanonicalProduct

logger = logging.getLogger("grocery_compare.storage")


def product_to_dict(p: CanonicalProduct) -> dict[str, Any]:
    """Serialise a product to a plain dict for JSON output."""
    return {
        "id": p.id,
        "name": p.name,
        "brand": p.brand,
        "price": p.price,
        "list_price": p.list_price,
        "currency": p.currency,
        "store": p.store.value,
        "category": p.category,
        "barcode": p.barcode,
        "sku": p.sku,
        "image_url": p.image_url,
        "url": p.url,
        "in_stock": p.in_stock,
    }


def search_to_dict(response: SearchResponse) -> dict[str, Any]:
    return {
        "products": [product_to_dict(p) for p in response.products],
        "total": response.total,
        "page": response.page,
        "page_size": response.page_size,
        "has_more": response.has_more,
        "failed_stores": [s.value for s in response.failed_stores],
        "errors": response.errors,
    }


def comparison_to_dict(result: ComparisonResult) -> dict[str, Any]:
    """Serialise a comparison; stores keep their fixed order."""
    best = result.best_price
    return {
        "query": result.query,
        "stores": {
            store.value: [product_to_dict(p) for p in products]
            for store, products in result.products_by_store.items()
        },
        "best_price": (
            {
                "store": best.store.value,
                "price": best.price,
                "savings": best.savings,
                "savings_percentage": best.savings_percentage,
            }
            if best is not None
            else None
        ),
        "matches": [
            {
                "left": m.left.id,
                "right": m.right.id,
                "store": m.right.store.value,
                "score": m.score,
            }
            for m in result.matches
        ],
        "failed_stores": [s.value for s in result.failed_stores],
        "errors": result.errors,
    }


class FileManager:
    """Handles saving comparison results and catalog dumps to disk."""

    def __init__(self) -> None:
        self.results_dir: Path = Settings.RESULTS_DIR
        self.results_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("FileManager initialised, results_dir=%s", self.results_dir)

    def _write_json(self, filepath: Path, data: Any) -> Path:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        return filepath

    def save_comparison(self, result: ComparisonResult) -> Path:
        """Save a comparison to a timestamped JSON file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        slug = "_".join(result.query.split())[:60]
        filepath = self.results_dir / f"compare_{slug}_{timestamp}.json"
        self._write_json(filepath, comparison_to_dict(result))
        logger.info(
            "Saved comparison for '%s' to %s", result.query, filepath
        )
        return filepath

    def save_catalog_dump(
        self,
        products: list[dict[str, Any]],
        metadata: dict[str, Any],
        output: Path | None = None,
        partial: bool = False,
    ) -> Path:
        """Write ``{metadata, products}``; partial dumps get a suffix."""
        if output is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output = self.results_dir / f"automercado_{timestamp}.json"
        if partial:
            output = output.with_name(f"{output.stem}-partial{output.suffix}")
            metadata = {**metadata, "status": "partial"}

        self._write_json(
            output,
            {
                "metadata": {
                    "scrapedAt": datetime.now().isoformat(),
                    "totalProducts": len(products),
                    **metadata,
                },
                "products": products,
            },
        )
        logger.info(
            "Saved %d catalog products to %s", len(products), output
        )
        return output
