"""Read-only view of the local product catalog."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class Variant:
    """
    A sellable variant of a local product.

    Attributes:
        sku: Local stock keeping unit, unique across the catalog.
        title: Variant title (falls back to the product name).
        price: Retail price.
        quantity: Stock on hand.
        barcode: EAN/UPC when known.
    """

    sku: str
    title: str | None = None
    price: Decimal | None = None
    quantity: int = 0
    barcode: str | None = None


@dataclass(frozen=True, slots=True)
class Product:
    """
    A local product with its variants.

    Attributes:
        id: Local product id.
        sku: Parent SKU, used where a channel wants one product-level id.
        name: Product title.
        description: Plain or HTML description.
        brand: Brand or vendor name.
        price: Product-level retail price, if set.
        images: Image URLs in display order.
        variants: Variants in display order.
    """

    id: int
    sku: str
    name: str
    description: str = ""
    brand: str = ""
    price: Decimal | None = None
    images: tuple[str, ...] = ()
    variants: tuple[Variant, ...] = ()

    @property
    def variant_skus(self) -> list[str]:
        """Return variant SKUs, or the parent SKU for single-SKU products."""
        skus = [variant.sku for variant in self.variants if variant.sku]
        return skus or [self.sku]

    @property
    def lowest_price(self) -> Decimal:
        """Return the product price, else the cheapest variant price."""
        if self.price is not None:
            return self.price
        prices = [variant.price for variant in self.variants if variant.price is not None]
        return min(prices) if prices else Decimal("0")

    @property
    def total_quantity(self) -> int:
        """Return the summed stock of all variants."""
        return max(0, sum(variant.quantity for variant in self.variants))

    def variant_title(self, variant: Variant) -> str:
        """Return the variant title, falling back to the product name."""
        return variant.title or self.name


@runtime_checkable
class ProductCatalog(Protocol):
    """Source of local products. Never written by the sync layer."""

    def get_product(self, product_id: int) -> Product | None:
        """Return the product, or None if it does not exist."""
        ...


class InMemoryCatalog:
    """ProductCatalog backed by a dict, for jobs that preload products."""

    def __init__(self, products: list[Product] | None = None) -> None:
        """Initialize with an optional list of products."""
        self._products: dict[int, Product] = {p.id: p for p in products or []}

    def add(self, product: Product) -> None:
        """Add or replace a product."""
        self._products[product.id] = product

    def get_product(self, product_id: int) -> Product | None:
        """Return the product, or None if it does not exist."""
        return self._products.get(product_id)
