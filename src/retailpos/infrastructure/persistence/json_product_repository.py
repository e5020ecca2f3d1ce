"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

from retailpos.domain.model.product import Product, Variant
from retailpos.domain.model.value_objects import DEFAULT_CURRENCY, Money
from retailpos.domain.repository.product_repository import ProductRepository


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._ensure_file()

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        products = self._load()
        return products.get(product_id)

    def get_by_barcode(self, barcode: str) -> Product | None:
        for product in self._load().values():
            if product.barcode == barcode:
                return product
        return None

    def list_all(self) -> list[Product]:
        return list(self._load().values())

    def save(self, product: Product) -> Product:
        products = self._load()
        products[product.id] = product
        self._persist(products)
        return product

    # --- Serialization helpers ------------------------------------------------

    @staticmethod
    def _to_raw(p: Product) -> dict:
        return {
            "id": p.id,
            "name": p.name,
            "barcode": p.barcode,
            "brand": p.brand,
            "price": str(p.price.amount),
            "cost": str(p.cost.amount),
            "currency": p.price.currency,
            "min_stock": p.min_stock,
            "total_stock": p.total_stock,
            "variants": [{"size": v.size, "stock": v.stock} for v in p.variants],
        }

    @staticmethod
    def _to_domain(item: dict) -> Product:
        currency = item.get("currency", DEFAULT_CURRENCY)
        return Product(
            id=item["id"],
            name=item["name"],
            barcode=item.get("barcode", ""),
            brand=item.get("brand", ""),
            price=Money(Decimal(item["price"]), currency),
            cost=Money(Decimal(item.get("cost", "0")), currency),
            min_stock=item.get("min_stock", 0),
            total_stock=item.get("total_stock"),
            variants=tuple(
                Variant(size=v["size"], stock=v["stock"]) for v in item.get("variants", [])
            ),
        )

    # --- File helpers ---------------------------------------------------------

    def _load(self) -> dict[str, Product]:
        raw = json.loads(self._file_path.read_text(encoding="utf-8"))
        return {item["id"]: self._to_domain(item) for item in raw}

    def _persist(self, products: dict[str, Product]) -> None:
        raw = [self._to_raw(p) for p in products.values()]
        self._file_path.write_text(
            json.dumps(raw, indent=2) + "\n", encoding="utf-8"
        )

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
