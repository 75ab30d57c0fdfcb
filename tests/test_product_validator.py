# tests/test_product_validator.py

"""Tests for ProductValidator."""

import unittest

from src.filters.product_validator import ProductValidator
from src.models.product import CanonicalProduct, Store


def _p(name: str = "Arroz Tío Pelón", price: float = 1500.0) -> CanonicalProduct:
    """Create a minimal CanonicalProduct."""
    return CanonicalProduct(
        id="1", name=name, brand="", price=price, store=Store.WALMART
    )


class TestProductValidator(unittest.TestCase):
    """ProductValidator.validate unit tests."""

    def test_empty_list_returns_empty(self) -> None:
        valid, dropped = ProductValidator.validate([])
        self.assertEqual(valid, [])
        self.assertEqual(dropped, 0)

    def test_valid_products_pass_through(self) -> None:
        products = [_p("Arroz", 1500.0), _p("Frijoles", 1200.0)]
        valid, dropped = ProductValidator.validate(products)
        self.assertEqual(valid, products)
        self.assertEqual(dropped, 0)

    def test_blank_name_dropped(self) -> None:
        valid, dropped = ProductValidator.validate([_p("   "), _p()])
        self.assertEqual(len(valid), 1)
        self.assertEqual(dropped, 1)

    def test_zero_price_dropped(self) -> None:
        valid, dropped = ProductValidator.validate([_p(price=0.0)])
        self.assertEqual(valid, [])
        self.assertEqual(dropped, 1)


if __name__ == "__main__":
    unittest.main()
