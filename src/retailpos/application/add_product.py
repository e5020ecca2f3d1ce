"""Application service: Add Product use case.

Catalog maintenance proper belongs to the back office; this handler only
exists so a local catalog can be seeded from the command line.
"""

from __future__ import annotations

from retailpos.domain.exceptions import ValidationError
from retailpos.domain.model.product import Product, Variant
from retailpos.domain.model.value_objects import Money
from retailpos.domain.repository.product_repository import ProductRepository


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        name: str,
        barcode: str,
        price: str,
        cost: str = "0",
        brand: str = "",
        stock: int | None = None,
        variants: dict[str, int] | None = None,
        min_stock: int = 0,
    ) -> Product:
        """Add a new product with either a flat stock or per-size stock."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if not barcode or not barcode.strip():
            raise ValidationError("Barcode is required")
        if stock is not None and variants:
            raise ValidationError("Give either a total stock or per-size stock, not both")

        existing = self._product_repo.get_by_barcode(barcode.strip())
        if existing is not None:
            raise ValidationError(
                f"Barcode {barcode} is already used by '{existing.name}'"
            )

        price_money = Money.of(price)
        if price_money.is_zero:
            raise ValidationError("Product price must be greater than zero")

        # Auto-assign ID based on existing products
        all_products = self._product_repo.list_all()
        numeric_ids = [int(p.id) for p in all_products if p.id.isdigit()]
        next_id = str(max(numeric_ids) + 1) if numeric_ids else "1"

        product = Product(
            id=next_id,
            name=name.strip(),
            barcode=barcode.strip(),
            brand=brand.strip(),
            price=price_money,
            cost=Money.of(cost),
            min_stock=min_stock,
            total_stock=None if variants else (stock or 0),
            variants=tuple(Variant(size, qty) for size, qty in (variants or {}).items()),
        )
        return self._product_repo.save(product)
