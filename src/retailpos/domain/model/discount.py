"""Discount Calculator.

A discount is either a percentage of the subtotal or a fixed amount taken
off it. Calculation is a pure function; validation is separate so that the
caller can reject an invalid discount before any amount is computed.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

from retailpos.domain.exceptions import ValidationError
from retailpos.domain.model.value_objects import Money

MAX_PERCENTAGE = Decimal("100")


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


@dataclass(frozen=True)
class Discount:
    type: DiscountType
    value: Decimal

    @staticmethod
    def percentage(value: str | int | Decimal) -> Discount:
        return Discount(DiscountType.PERCENTAGE, _to_decimal(value))

    @staticmethod
    def fixed(value: str | int | Decimal) -> Discount:
        return Discount(DiscountType.FIXED_AMOUNT, _to_decimal(value))

    def __str__(self) -> str:
        if self.type is DiscountType.PERCENTAGE:
            return f"{self.value.normalize():f}%"
        return f"${self.value:,.2f} off"


@dataclass(frozen=True)
class DiscountResult:
    discount_amount: Money
    total: Money


def validate_discount(discount: Discount) -> None:
    """Raise ValidationError unless the discount can be applied.

    The value must be positive; a percentage may not exceed 100.
    """
    if not discount.value.is_finite():
        raise ValidationError(
            f"Invalid discount: value must be a number, got {discount.value}"
        )
    if discount.value <= 0:
        raise ValidationError(
            f"Invalid discount: value must be greater than zero, got {discount.value}"
        )
    if discount.type is DiscountType.PERCENTAGE and discount.value > MAX_PERCENTAGE:
        raise ValidationError(
            f"Invalid discount: percentage cannot exceed 100, got {discount.value}"
        )


def calculate_discount(subtotal: Money, discount: Discount) -> DiscountResult:
    """Compute the discount amount and the discounted total.

    A fixed amount is capped at the subtotal so the total never goes
    negative.
    """
    if discount.type is DiscountType.PERCENTAGE:
        amount = subtotal.percent(discount.value)
    elif discount.type is DiscountType.FIXED_AMOUNT:
        amount = Money(min(discount.value, subtotal.amount), subtotal.currency)
    else:
        raise ValidationError(f"Unsupported discount type: {discount.type}")
    return DiscountResult(discount_amount=amount, total=subtotal - amount)


def _to_decimal(value: str | int | Decimal) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid discount value: {value!r}") from exc
    if not result.is_finite():
        raise ValidationError(f"Invalid discount value: {value!r}")
    return result
