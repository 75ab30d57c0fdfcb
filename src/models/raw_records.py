# src/models/raw_records.py

"""Typed views over each retailer's raw search payload.

Upstream JSON is deeply optional and shaped differently per endpoint.
Each variant below is built once by ``from_payload``, which walks the
payload with safe accessors and raises ``UpstreamSchemaMismatch`` when
the identifying fields are missing.  Everything downstream reads plain
attributes instead of chained ``.get()`` calls.
"""

import re
from dataclasses import dataclass
from typing import Any, cast

from src.models.errors import UpstreamSchemaMismatch

_PRICE_CLEAN_RE = re.compile(r"[^\d.]")


# ── Safe accessors ───────────────────────────────────────


def as_dict(value: object) -> dict[str, Any]:
    """Return *value* if it is a dict, else an empty dict."""
    if isinstance(value, dict):
        return cast(dict[str, Any], value)
    return {}


def as_list(value: object) -> list[Any]:
    """Return *value* if it is a list, else an empty list."""
    if isinstance(value, list):
        return cast(list[Any], value)
    return []


def first_dict(value: object) -> dict[str, Any]:
    """First element of a list when it is a dict, else ``{}``."""
    items = as_list(value)
    return as_dict(items[0]) if items else {}


def as_str(value: object) -> str:
    """Stringify scalars, mapping ``None`` to an empty string."""
    if value is None:
        return ""
    return str(value).strip()


def as_price(value: object) -> float:
    """Parse a price that may arrive as a number or as ``"₡1,250.00"``."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if value == value else 0.0  # NaN guard
    if isinstance(value, str):
        cleaned = _PRICE_CLEAN_RE.sub("", value.replace(",", ""))
        try:
            return float(cleaned)
        except ValueError:
            return 0.0
    return 0.0


# ── VTEX (Walmart, MaxiPali, Mas x Menos) ────────────────


@dataclass(frozen=True)
class _VtexItem:
    """The single SKU a record is built from."""

    item_id: str
    ean: str
    image_url: str
    price: float
    list_price: float
    available_quantity: int | None


def _pick_item(
    items: list[Any], prefer_ean: str | None,
) -> dict[str, Any]:
    """Choose the SKU carrying *prefer_ean*, else the first SKU."""
    if prefer_ean:
        for raw in items:
            item = as_dict(raw)
            if as_str(item.get("ean")) == prefer_ean:
                return item
    return first_dict(items)


def _parse_vtex_item(
    payload: dict[str, Any], prefer_ean: str | None,
) -> _VtexItem:
    item = _pick_item(as_list(payload.get("items")), prefer_ean)
    seller = first_dict(item.get("sellers"))
    offer = as_dict(seller.get("commertialOffer"))
    image = first_dict(item.get("images"))
    quantity = offer.get("AvailableQuantity")
    return _VtexItem(
        item_id=as_str(item.get("itemId")),
        ean=as_str(item.get("ean")),
        image_url=as_str(image.get("imageUrl")),
        price=as_price(offer.get("Price")),
        list_price=as_price(
            offer.get("ListPrice")
            or offer.get("PriceWithoutDiscount")
        ),
        available_quantity=(
            int(quantity) if isinstance(quantity, (int, float)) else None
        ),
    )


def _require_identity(
    payload: object, source: str, shape: str,
) -> dict[str, Any]:
    data = as_dict(payload)
    if not data.get("productId") or not data.get("productName"):
        raise UpstreamSchemaMismatch(
            source, f"{shape} record missing productId/productName"
        )
    return data


@dataclass(frozen=True)
class VtexCatalogRecord:
    """A product from ``/api/catalog_system/pub/products/search``."""

    source: str
    product_id: str
    product_name: str
    brand: str
    categories: tuple[str, ...]
    description: str
    link: str
    item: _VtexItem

    @property
    def ean(self) -> str:
        return self.item.ean

    @classmethod
    def from_payload(
        cls,
        payload: object,
        source: str,
        prefer_ean: str | None = None,
    ) -> "VtexCatalogRecord":
        data = _require_identity(payload, source, "catalog")
        return cls(
            source=source,
            product_id=as_str(data.get("productId")),
            product_name=as_str(data.get("productName")),
            brand=as_str(data.get("brand")),
            categories=tuple(
                as_str(c) for c in as_list(data.get("categories"))
            ),
            description=as_str(data.get("description")),
            link=as_str(data.get("link")),
            item=_parse_vtex_item(data, prefer_ean),
        )


@dataclass(frozen=True)
class VtexIntelligentRecord:
    """A product from the VTEX intelligent-search endpoint.

    Same SKU layout as the catalog API, but prices may only be present
    in ``priceRange`` and the product URL comes as ``linkText``.
    """

    source: str
    product_id: str
    product_name: str
    brand: str
    categories: tuple[str, ...]
    description: str
    link: str
    item: _VtexItem
    range_selling_price: float
    range_list_price: float

    @property
    def ean(self) -> str:
        return self.item.ean

    @classmethod
    def from_payload(
        cls,
        payload: object,
        source: str,
        prefer_ean: str | None = None,
    ) -> "VtexIntelligentRecord":
        data = _require_identity(payload, source, "intelligent-search")
        price_range = as_dict(data.get("priceRange"))
        link = as_str(data.get("link"))
        link_text = as_str(data.get("linkText"))
        if not link and link_text:
            link = f"/{link_text}/p"
        return cls(
            source=source,
            product_id=as_str(data.get("productId")),
            product_name=as_str(data.get("productName")),
            brand=as_str(data.get("brand")),
            categories=tuple(
                as_str(c) for c in as_list(data.get("categories"))
            ),
            description=as_str(data.get("description")),
            link=link,
            item=_parse_vtex_item(data, prefer_ean),
            range_selling_price=as_price(
                as_dict(price_range.get("sellingPrice")).get("lowPrice")
            ),
            range_list_price=as_price(
                as_dict(price_range.get("listPrice")).get("lowPrice")
            ),
        )


# ── Algolia (Automercado) ────────────────────────────────


@dataclass(frozen=True)
class AlgoliaRecord:
    """A hit from Automercado's Algolia product index.

    Prices are kept per store branch in ``storeDetail``; only the
    configured branch is read.
    """

    source: str
    object_id: str
    name: str
    brand: str
    ean: str
    sku: str
    category_path: str
    description: str
    image_url: str
    url: str
    sale_price: float
    base_price: float
    in_stock: bool

    @classmethod
    def from_payload(
        cls, payload: object, source: str, store_id: str,
    ) -> "AlgoliaRecord":
        data = as_dict(payload)
        name = as_str(
            data.get("ecomDescription")
            or data.get("name")
            or data.get("description")
        )
        object_id = as_str(data.get("objectID"))
        if not object_id or not name:
            raise UpstreamSchemaMismatch(
                source, "algolia hit missing objectID/name"
            )

        detail = as_dict(as_dict(data.get("storeDetail")).get(store_id))
        sale = as_price(detail.get("specialPrice")) or as_price(
            detail.get("amount")
        )
        if not sale and not detail:
            sale = as_price(data.get("price"))

        category: object = data.get("categoryPageId") or data.get(
            "category"
        )
        if isinstance(category, list):
            category = as_list(category)[-1] if category else ""

        inventory = detail.get("inventory", data.get("inventory"))
        return cls(
            source=source,
            object_id=object_id,
            name=name,
            brand=as_str(data.get("marca") or data.get("brand")),
            ean=as_str(data.get("ean") or data.get("barcode")),
            sku=as_str(data.get("productNumber") or data.get("sku")),
            category_path=as_str(category),
            description=as_str(data.get("description")),
            image_url=as_str(data.get("imageUrl") or data.get("image")),
            url=as_str(data.get("url")),
            sale_price=sale,
            base_price=as_price(detail.get("basePrice")),
            in_stock=(
                not isinstance(inventory, (int, float)) or inventory > 0
            ),
        )


RawRecord = VtexCatalogRecord | VtexIntelligentRecord | AlgoliaRecord
