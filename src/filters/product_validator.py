# src/filters/product_validator.py

"""Product validation: drop unusable listings before relevance filtering."""

import logging

from src.models.product import CanonicalProduct

logger = logging.getLogger("grocery_compare.filters")


class ProductValidator:
    """Validate products and drop those with missing essential fields."""

    @staticmethod
    def validate(
        products: list[CanonicalProduct],
    ) -> tuple[list[CanonicalProduct], int]:
        """Drop products with blank names or zero/negative prices.

        Returns the valid products and the count of dropped items.
        """
        valid: list[CanonicalProduct] = []
        dropped = 0

        for product in products:
            if not product.name.strip():
                logger.debug(
                    "Dropped product with empty name "
                    "(store=%s, id=%s)",
                    product.store.value,
                    product.id,
                )
                dropped += 1
                continue
            if product.price <= 0:
                logger.debug(
                    "Dropped product with zero/negative "
                    "price (name=%s, store=%s)",
                    product.name,
                    product.store.value,
                )
                dropped += 1
                continue
            valid.append(product)

        if dropped:
            logger.info(
                "Validation dropped %d invalid products",
                dropped,
            )

        return valid, dropped
