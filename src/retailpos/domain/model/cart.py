"""Cart aggregate: candidate sale lines checked against stock.

The Cart owns its lines and enforces the stock ceiling on every mutation.
Rejections are not exceptions: the operation becomes a no-op, ``error``
is set to a message naming the product, size and available quantity, and
the method returns False. A successful mutation clears ``error``.

The ceiling is asked of an injected function (normally
``StockLedger.ceiling``) each time, so a line is checked against whatever
stock the ledger holds at the moment of the call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

from retailpos.domain.exceptions import ValidationError
from retailpos.domain.model.discount import (
    Discount,
    DiscountResult,
    calculate_discount,
    validate_discount,
)
from retailpos.domain.model.product import Product
from retailpos.domain.model.sale import PaymentMethod, SaleRequest
from retailpos.domain.model.value_objects import DEFAULT_CURRENCY, Money
from retailpos.domain.service.stock_ceiling import resolve_ceiling

logger = logging.getLogger(__name__)

CeilingFn = Callable[[Product, "str | None"], int]
LineKey = tuple[str, "str | None"]


@dataclass
class CartLine:
    """One (product, size) entry with its own quantity and pricing.

    ``unit_price`` is the product price captured when the line was
    created. ``product`` is a shared snapshot and is never mutated.
    """

    product: Product
    quantity: int
    unit_price: Money
    selected_size: str | None = None
    discount: Discount | None = None

    @property
    def key(self) -> LineKey:
        return (self.product.id, self.selected_size)

    @property
    def label(self) -> str:
        return self.product.label(self.selected_size)

    @property
    def subtotal(self) -> Money:
        return self.unit_price * self.quantity

    @property
    def discount_result(self) -> DiscountResult | None:
        if self.discount is None:
            return None
        return calculate_discount(self.subtotal, self.discount)

    @property
    def discount_amount(self) -> Money | None:
        result = self.discount_result
        return result.discount_amount if result else None

    @property
    def total_price(self) -> Money:
        result = self.discount_result
        return result.total if result else self.subtotal

    def to_sale_request(self, payment_method: PaymentMethod) -> SaleRequest:
        return SaleRequest(
            product_id=self.product.id,
            product_name=self.product.name,
            size=self.selected_size,
            quantity=self.quantity,
            unit_price=self.unit_price,
            total_price=self.total_price,
            payment_method=payment_method,
            discount_type=self.discount.type if self.discount else None,
            discount_value=self.discount.value if self.discount else None,
            discount_amount=self.discount_amount,
        )


class Cart:
    """Ordered collection of CartLines, at most one per (product, size)."""

    def __init__(self, ceiling: CeilingFn = resolve_ceiling) -> None:
        self._ceiling = ceiling
        self._lines: list[CartLine] = []
        self.error: str | None = None

    # --- Mutations ------------------------------------------------------------

    def add_line(self, product: Product, quantity: int, size: str | None = None) -> bool:
        """Add ``quantity`` units of a product/size, merging with an existing line."""
        size = _normalize_size(size)
        if quantity < 1:
            return self._reject(f"Quantity for {product.label(size)} must be at least 1")
        if product.has_variants and size is None:
            return self._reject(
                f"Select a size for {product.name} "
                f"(available: {', '.join(product.sizes)})"
            )
        if not product.has_variants and size is not None:
            return self._reject(f"{product.name} has no size variants")

        ceiling = self._ceiling(product, size)
        if ceiling <= 0:
            if size is not None and product.variant(size) is None:
                return self._reject(f"{product.name} has no size {size}")
            return self._reject(f"{product.label(size)} is out of stock (0 available)")

        existing = self.get_line(product.id, size)
        if existing is not None:
            if existing.discount is not None:
                return self._reject(_discounted_line_message(existing))
            proposed = existing.quantity + quantity
            if proposed > ceiling:
                return self._reject(
                    f"Not enough stock for {product.label(size)}: "
                    f"{existing.quantity} already in cart, {quantity} more requested, "
                    f"only {ceiling} available"
                )
            existing.quantity = proposed
        else:
            if quantity > ceiling:
                return self._reject(
                    f"Not enough stock for {product.label(size)}: "
                    f"requested {quantity}, only {ceiling} available"
                )
            self._lines.append(
                CartLine(
                    product=product,
                    quantity=quantity,
                    unit_price=product.price,
                    selected_size=size,
                )
            )
        return self._accept()

    def update_quantity(self, product_id: str, quantity: int, size: str | None = None) -> bool:
        """Set a line's quantity; zero or less removes the line."""
        size = _normalize_size(size)
        if quantity <= 0:
            self.remove_line(product_id, size)
            return self._accept()

        line = self.get_line(product_id, size)
        if line is None:
            return self._reject(f"{_key_label(product_id, size)} is not in the cart")
        if line.discount is not None:
            return self._reject(_discounted_line_message(line))

        ceiling = self._ceiling(line.product, line.selected_size)
        if quantity > ceiling:
            return self._reject(
                f"Not enough stock for {line.label}: "
                f"requested {quantity}, only {ceiling} available "
                f"(keeping {line.quantity})"
            )
        line.quantity = quantity
        return self._accept()

    def remove_line(self, product_id: str, size: str | None = None) -> None:
        key = (product_id, _normalize_size(size))
        self._lines = [line for line in self._lines if line.key != key]

    def clear(self) -> None:
        self._lines = []
        self.error = None

    def restore(self, lines: Iterable[CartLine]) -> None:
        """Put back a previous set of lines (used when a checkout is rolled back)."""
        self._lines = list(lines)

    # --- Discounts ------------------------------------------------------------

    def apply_discount(self, product_id: str, discount: Discount, size: str | None = None) -> bool:
        size = _normalize_size(size)
        line = self.get_line(product_id, size)
        if line is None:
            return self._reject(f"{_key_label(product_id, size)} is not in the cart")
        if line.discount is not None:
            return self._reject(
                f"{line.label} already has a {line.discount} discount; remove it first"
            )
        try:
            validate_discount(discount)
        except ValidationError as exc:
            return self._reject(f"{exc} ({line.label})")
        line.discount = discount
        return self._accept()

    def remove_discount(self, product_id: str, size: str | None = None) -> bool:
        size = _normalize_size(size)
        line = self.get_line(product_id, size)
        if line is None:
            return self._reject(f"{_key_label(product_id, size)} is not in the cart")
        line.discount = None
        return self._accept()

    # --- Queries --------------------------------------------------------------

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: str, size: str | None = None) -> CartLine | None:
        key = (product_id, _normalize_size(size))
        for line in self._lines:
            if line.key == key:
                return line
        return None

    def subtotal(self) -> Money:
        return self._sum(line.subtotal for line in self._lines)

    def discount_total(self) -> Money:
        return self._sum(
            line.discount_amount for line in self._lines if line.discount_amount is not None
        )

    def total(self) -> Money:
        return self._sum(line.total_price for line in self._lines)

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(tuple(self._lines))

    def __len__(self) -> int:
        return len(self._lines)

    # --- Internal helpers -----------------------------------------------------

    def _sum(self, amounts: Iterable[Money]) -> Money:
        currency = self._lines[0].unit_price.currency if self._lines else DEFAULT_CURRENCY
        result = Money.zero(currency)
        for amount in amounts:
            result = result + amount
        return result

    def _accept(self) -> bool:
        self.error = None
        return True

    def _reject(self, message: str) -> bool:
        logger.info("Cart change rejected: %s", message)
        self.error = message
        return False


def _normalize_size(size: str | None) -> str | None:
    if size is None:
        return None
    size = size.strip()
    return size or None


def _key_label(product_id: str, size: str | None) -> str:
    return f"Product {product_id} (size {size})" if size else f"Product {product_id}"


def _discounted_line_message(line: CartLine) -> str:
    return (
        f"{line.label} has a {line.discount} discount applied; "
        f"remove the discount before changing the quantity"
    )
