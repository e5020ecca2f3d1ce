"""JSON-file-backed implementation of SaleRepository.

Stands in for the sales backend on a standalone till: creating a sale
checks and deducts stock in the product file, cancelling one puts the
stock back. Failures are reported as RemoteOperationError, exactly as
the HTTP backend reports them.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

from retailpos.domain.exceptions import RemoteOperationError
from retailpos.domain.model.discount import DiscountType
from retailpos.domain.model.sale import PaymentMethod, Sale, SaleRequest
from retailpos.domain.model.value_objects import DEFAULT_CURRENCY, Money
from retailpos.domain.repository.sale_repository import SaleRepository
from retailpos.domain.service.stock_ceiling import resolve_ceiling
from retailpos.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)

logger = logging.getLogger(__name__)


class JsonSaleRepository(SaleRepository):

    def __init__(self, file_path: Path, products: JsonProductRepository) -> None:
        self._file_path = file_path
        self._products = products
        self._ensure_file()

    # --- SaleRepository interface ---------------------------------------------

    def create_sale(self, request: SaleRequest) -> Sale:
        product = self._products.get_by_id(request.product_id)
        if product is None:
            raise RemoteOperationError(f"Product {request.product_id} not found")
        if request.size is not None and product.has_variants and product.variant(request.size) is None:
            raise RemoteOperationError(f"{product.name} has no size {request.size}")
        available = resolve_ceiling(product, request.size)
        if request.quantity > available:
            raise RemoteOperationError(
                f"Insufficient stock for {product.label(request.size)} "
                f"(need {request.quantity}, have {available})"
            )

        sale = Sale.from_request(str(uuid4()), request)
        self._products.save(product.with_stock_decremented(request.quantity, request.size))

        records = self._load_raw()
        records.append(self._to_raw(sale))
        self._persist_raw(records)
        logger.info("Sale %s stored (%s x%d)", sale.id, product.label(sale.size), sale.quantity)
        return sale

    def cancel_sale(self, sale_id: str) -> None:
        records = self._load_raw()
        remaining = [raw for raw in records if raw["id"] != sale_id]
        if len(remaining) == len(records):
            raise RemoteOperationError(f"Sale {sale_id} not found")
        sale = next(self._to_domain(raw) for raw in records if raw["id"] == sale_id)

        product = self._products.get_by_id(sale.product_id)
        if product is not None:
            self._products.save(product.with_stock_restored(sale.quantity, sale.size))
        self._persist_raw(remaining)
        logger.info("Sale %s cancelled", sale_id)

    def list_all(self) -> list[Sale]:
        sales = [self._to_domain(raw) for raw in self._load_raw()]
        return sorted(sales, key=lambda s: s.sale_date, reverse=True)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(sale: Sale) -> dict:
        return {
            "id": sale.id,
            "product_id": sale.product_id,
            "product_name": sale.product_name,
            "size": sale.size,
            "quantity": sale.quantity,
            "unit_price": str(sale.unit_price.amount),
            "total_price": str(sale.total_price.amount),
            "currency": sale.unit_price.currency,
            "payment_method": sale.payment_method.value,
            "discount_type": sale.discount_type.value if sale.discount_type else None,
            "discount_value": str(sale.discount_value) if sale.discount_value is not None else None,
            "discount_amount": (
                str(sale.discount_amount.amount) if sale.discount_amount is not None else None
            ),
            "sale_date": sale.sale_date.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Sale:
        currency = raw.get("currency", DEFAULT_CURRENCY)
        return Sale(
            id=raw["id"],
            product_id=raw["product_id"],
            product_name=raw.get("product_name", ""),
            size=raw.get("size"),
            quantity=raw["quantity"],
            unit_price=Money(Decimal(raw["unit_price"]), currency),
            total_price=Money(Decimal(raw["total_price"]), currency),
            payment_method=PaymentMethod(raw["payment_method"]),
            discount_type=DiscountType(raw["discount_type"]) if raw.get("discount_type") else None,
            discount_value=(
                Decimal(raw["discount_value"]) if raw.get("discount_value") is not None else None
            ),
            discount_amount=(
                Money(Decimal(raw["discount_amount"]), currency)
                if raw.get("discount_amount") is not None
                else None
            ),
            sale_date=datetime.fromisoformat(raw["sale_date"]),
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, records: list[dict]) -> None:
        self._file_path.write_text(
            json.dumps(records, indent=2) + "\n", encoding="utf-8"
        )

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
