# src/models/product.py

"""Canonical product and query models shared by every store."""

from dataclasses import dataclass
from enum import Enum

from src.config.settings import Settings
from src.models.errors import ValidationError


class Store(Enum):
    """The four participating retailers, in display order."""

    WALMART = "walmart"
    MAXIPALI = "maxipali"
    MASXMENOS = "masxmenos"
    AUTOMERCADO = "automercado"

    @property
    def label(self) -> str:
        """Human readable store name."""
        return _STORE_LABELS[self]

    @classmethod
    def parse(cls, raw: str) -> "Store":
        """Resolve a loosely written store name (``"Mas x Menos"``, ``"pali"``)."""
        key = raw.strip().lower().replace(" ", "")
        if key == "pali":
            return cls.MAXIPALI
        try:
            return cls(key)
        except ValueError:
            msg = f"Unknown store: {raw!r}"
            raise ValidationError(msg) from None


_STORE_LABELS: dict[Store, str] = {
    Store.WALMART: "Walmart",
    Store.MAXIPALI: "MaxiPali",
    Store.MASXMENOS: "Mas x Menos",
    Store.AUTOMERCADO: "Automercado",
}


@dataclass(frozen=True)
class CanonicalProduct:
    """A product listing after translation from a retailer's schema."""

    id: str
    name: str
    brand: str
    price: float
    store: Store
    list_price: float | None = None
    image_url: str = ""
    category: str = "Grocery"
    barcode: str | None = None
    sku: str | None = None
    currency: str = Settings.CURRENCY
    description: str = ""
    url: str = ""
    in_stock: bool = True

    def __post_init__(self) -> None:
        if self.price < 0:
            msg = f"price must be >= 0, got {self.price}"
            raise ValueError(msg)

    @property
    def is_on_sale(self) -> bool:
        """True when a list price exists and is above the active price."""
        list_price = self.list_price or 0.0
        return (
            list_price > 0
            and self.price > 0
            and list_price > self.price
        )


@dataclass(frozen=True)
class SearchQuery:
    """A caller's search request."""

    text: str
    page: int = 1
    page_size: int = Settings.DEFAULT_PAGE_SIZE
    original_store: Store | None = None

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            msg = "Query parameter is required"
            raise ValidationError(msg)
        if self.page < 1:
            msg = f"page must be >= 1, got {self.page}"
            raise ValidationError(msg)
        if not 1 <= self.page_size <= Settings.MAX_PAGE_SIZE:
            msg = (
                f"page_size must be between 1 and "
                f"{Settings.MAX_PAGE_SIZE}, got {self.page_size}"
            )
            raise ValidationError(msg)
