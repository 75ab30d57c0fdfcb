# tests/test_similarity_scorer.py

"""Tests for SimilarityScorer."""

import unittest

from src.matching.similarity_scorer import SimilarityScorer
from src.models.product import CanonicalProduct, Store


def _p(
    name: str,
    store: Store = Store.WALMART,
    brand: str = "",
    barcode: str | None = None,
    description: str = "",
) -> CanonicalProduct:
    return CanonicalProduct(
        id=f"{store.value}:{name}",
        name=name,
        brand=brand,
        price=1000.0,
        store=store,
        barcode=barcode,
        description=description,
    )


class TestScore(unittest.TestCase):
    """Integer similarity score properties."""

    def setUp(self) -> None:
        self.scorer = SimilarityScorer()

    def test_self_score_is_100(self) -> None:
        for name in ("Café Britt 500 g", "Atún Sardimar en agua", "Pan"):
            with self.subTest(name=name):
                product = _p(name)
                self.assertEqual(self.scorer.score(product, product), 100)

    def test_score_range(self) -> None:
        pairs = [
            (_p("Café Britt 500 g"), _p("Detergente Xedex 1 kg")),
            (_p("Leche Dos Pinos 1 L"), _p("Leche Dos Pinos 1000 ml")),
            (_p(""), _p("Azúcar Doña María 2 kg")),
        ]
        for left, right in pairs:
            with self.subTest(left=left.name, right=right.name):
                self.assertTrue(0 <= self.scorer.score(left, right) <= 100)

    def test_same_coffee_across_stores_matches(self) -> None:
        left = _p("Café Quetzal Molido 500g", Store.WALMART, "Quetzal")
        right = _p("Café Molido Quetzal 500 g", Store.AUTOMERCADO, "QUETZAL")
        candidate = self.scorer.candidate(left, right)
        self.assertGreaterEqual(candidate.score, 45)
        self.assertTrue(candidate.matched)

    def test_unrelated_products_do_not_match(self) -> None:
        left = _p("Detergente Xedex 1 kg", Store.WALMART, "Xedex")
        right = _p("Café Britt 500 g", Store.MAXIPALI, "Britt")
        self.assertEqual(self.scorer.score(left, right), 0)
        self.assertFalse(self.scorer.candidate(left, right).matched)

    def test_equal_barcodes_short_circuit(self) -> None:
        left = _p("Arroz Tío Pelón", barcode="7441001")
        right = _p("Arroz TP 99% grano", Store.MASXMENOS, barcode="7441001")
        self.assertEqual(self.scorer.score(left, right), 100)

    def test_weights_without_description(self) -> None:
        """Name 60 + brand 20 + category 10; sizes differ."""
        left = _p("Arroz Tío Pelón 1 kg", brand="Tío Pelón")
        right = _p("Arroz Tío Pelón 2 kg", Store.MAXIPALI, brand="Tio Pelon")
        self.assertEqual(self.scorer.score(left, right), 90)

    def test_description_blended_at_ten_percent(self) -> None:
        left = _p(
            "Arroz Tío Pelón 1 kg",
            brand="Tío Pelón",
            description="Arroz grano entero",
        )
        right = _p(
            "Arroz Tío Pelón 2 kg",
            Store.MAXIPALI,
            brand="Tio Pelon",
            description="Arroz grano entero 99%",
        )
        self.assertEqual(self.scorer.score(left, right), 91)

    def test_symmetric_for_reordered_names(self) -> None:
        left = _p("Café Quetzal Molido 500g", Store.WALMART, "Quetzal")
        right = _p("Café Molido Quetzal 500 g", Store.MAXIPALI, "Quetzal")
        self.assertEqual(
            self.scorer.score(left, right), self.scorer.score(right, left)
        )

    def test_partial_token_credit_is_one_sided(self) -> None:
        """The name term counts from the first product's tokens."""
        short = _p("Leche Deslactosada", Store.WALMART)
        longer = _p("Leche Deslactosada Deslac", Store.MAXIPALI)
        self.assertEqual(self.scorer.score(short, longer), 50)
        self.assertEqual(self.scorer.score(longer, short), 60)


class TestComponents(unittest.TestCase):
    """Individual scoring terms."""

    def setUp(self) -> None:
        self.scorer = SimilarityScorer()

    def test_token_overlap_exact(self) -> None:
        self.assertEqual(
            self.scorer.token_overlap("Arroz Tío Pelón", "arroz tio pelon"),
            1.0,
        )

    def test_token_overlap_empty(self) -> None:
        self.assertEqual(self.scorer.token_overlap("", "de la"), 0.0)

    def test_measurements_close(self) -> None:
        self.assertTrue(self.scorer.measurements_close("Leche 1 L", "Leche 1000 ml"))
        self.assertTrue(self.scorer.measurements_close("Café 500 g", "Café 0.49 kg"))
        self.assertFalse(self.scorer.measurements_close("Café 500 g", "Café 450 g"))
        self.assertFalse(self.scorer.measurements_close("Café", "Café 450 g"))

    def test_same_category(self) -> None:
        self.assertTrue(SimilarityScorer.same_category("Leche Dos Pinos", "Leche Sula"))
        self.assertFalse(SimilarityScorer.same_category("Pan Bimbo", "Leche Sula"))
        self.assertFalse(SimilarityScorer.same_category("Xedex", "Irex"))


if __name__ == "__main__":
    unittest.main()
