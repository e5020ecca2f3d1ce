"""Sale records.

There is no multi-line order aggregate: every committed cart line becomes
one independent Sale on the backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from retailpos.domain.exceptions import ValidationError
from retailpos.domain.model.discount import DiscountType
from retailpos.domain.model.value_objects import Money


class PaymentMethod(Enum):
    CASH = "CASH"
    TRANSFER = "TRANSFER"
    DEBIT_CARD = "DEBIT_CARD"
    CREDIT_CARD = "CREDIT_CARD"
    QR = "QR"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @staticmethod
    def parse(raw: str) -> PaymentMethod:
        key = raw.strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return PaymentMethod[key]
        except KeyError:
            options = ", ".join(m.name.lower() for m in PaymentMethod)
            raise ValidationError(
                f"Unknown payment method '{raw}' (expected one of: {options})"
            ) from None


@dataclass(frozen=True)
class SaleRequest:
    """Line data sent to the backend to create one Sale."""

    product_id: str
    product_name: str
    size: str | None
    quantity: int
    unit_price: Money
    total_price: Money
    payment_method: PaymentMethod
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = None
    discount_amount: Money | None = None


@dataclass(frozen=True)
class Sale:
    id: str
    product_id: str
    quantity: int
    unit_price: Money
    total_price: Money
    payment_method: PaymentMethod
    size: str | None = None
    product_name: str = ""
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = None
    discount_amount: Money | None = None
    sale_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def from_request(sale_id: str, request: SaleRequest, sale_date: datetime | None = None) -> Sale:
        return Sale(
            id=sale_id,
            product_id=request.product_id,
            product_name=request.product_name,
            size=request.size,
            quantity=request.quantity,
            unit_price=request.unit_price,
            total_price=request.total_price,
            payment_method=request.payment_method,
            discount_type=request.discount_type,
            discount_value=request.discount_value,
            discount_amount=request.discount_amount,
            sale_date=sale_date or datetime.now(timezone.utc),
        )
