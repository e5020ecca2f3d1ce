"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from retailpos.domain.model.cart import Cart
from retailpos.domain.model.sale import Sale


@dataclass(frozen=True)
class CartLineDTO:
    """Output: a single cart line as displayed to the user."""

    product_id: str
    product_name: str
    size: str | None
    quantity: int
    unit_price: str  # formatted, e.g. "$15.00"
    subtotal: str
    discount: str | None
    discount_amount: str | None
    total_price: str


@dataclass(frozen=True)
class CartDTO:
    lines: list[CartLineDTO]
    item_count: int
    subtotal: str
    discount_total: str
    total: str
    error: str | None

    @staticmethod
    def from_cart(cart: Cart) -> CartDTO:
        return CartDTO(
            lines=[
                CartLineDTO(
                    product_id=line.product.id,
                    product_name=line.product.name,
                    size=line.selected_size,
                    quantity=line.quantity,
                    unit_price=str(line.unit_price),
                    subtotal=str(line.subtotal),
                    discount=str(line.discount) if line.discount else None,
                    discount_amount=(
                        str(line.discount_amount) if line.discount_amount else None
                    ),
                    total_price=str(line.total_price),
                )
                for line in cart.lines
            ],
            item_count=cart.item_count(),
            subtotal=str(cart.subtotal()),
            discount_total=str(cart.discount_total()),
            total=str(cart.total()),
            error=cart.error,
        )


@dataclass(frozen=True)
class SaleDTO:
    """Output: a recorded sale as displayed to the user."""

    id: str
    product_name: str
    size: str | None
    quantity: int
    unit_price: str
    discount_amount: str | None
    total_price: str
    payment_method: str
    sale_date: str

    @staticmethod
    def from_sale(sale: Sale) -> SaleDTO:
        return SaleDTO(
            id=sale.id,
            product_name=sale.product_name or sale.product_id,
            size=sale.size,
            quantity=sale.quantity,
            unit_price=str(sale.unit_price),
            discount_amount=str(sale.discount_amount) if sale.discount_amount else None,
            total_price=str(sale.total_price),
            payment_method=sale.payment_method.label,
            sale_date=sale.sale_date.strftime("%Y-%m-%d %H:%M UTC"),
        )
