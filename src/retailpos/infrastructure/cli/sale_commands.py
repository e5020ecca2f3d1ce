"""CLI commands for selling: one-shot checkout and sales history."""

from __future__ import annotations

import click

from retailpos.application.dto import CartDTO
from retailpos.application.list_sales import ListSalesHandler
from retailpos.domain.exceptions import CheckoutError, DomainException
from retailpos.domain.model.sale import PaymentMethod
from retailpos.infrastructure.bootstrap import pos_session, sale_repository
from retailpos.infrastructure.cli.display import (
    ClickNotificationSink,
    display_cart,
    find_line,
    parse_discount,
    parse_item,
)

PAYMENT_CHOICES = [m.name.lower() for m in PaymentMethod]


@click.command("checkout")
@click.option(
    "--item", "items", multiple=True, required=True,
    help="Item as 'BARCODE:QTY' or 'BARCODE:QTY:SIZE'. Repeat for more items.",
)
@click.option(
    "--discount", "discounts", multiple=True,
    help="Line discount as 'BARCODE[:SIZE]=10%' or 'BARCODE[:SIZE]=1500'.",
)
@click.option(
    "--payment", type=click.Choice(PAYMENT_CHOICES, case_sensitive=False),
    default="cash", show_default=True, help="Payment method.",
)
def sale_checkout(items: tuple[str, ...], discounts: tuple[str, ...], payment: str) -> None:
    """Build a cart from the given items and commit it."""
    parsed_items = [parse_item(raw) for raw in items]
    parsed_discounts = [parse_discount(raw) for raw in discounts]

    try:
        session = pos_session(notifier=ClickNotificationSink())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    for code, qty, size in parsed_items:
        if not session.add_by_barcode(code, qty, size):
            raise click.ClickException(session.cart.error or f"Could not add {code}")

    for code, size, discount in parsed_discounts:
        line = find_line(session.cart.lines, code, size)
        if line is None:
            raise click.ClickException(f"No cart line for '{code}' to discount")
        if not session.apply_discount(line.product.id, discount, line.selected_size):
            raise click.ClickException(session.cart.error)

    display_cart(CartDTO.from_cart(session.cart))

    try:
        result = session.checkout(PaymentMethod.parse(payment))
    except CheckoutError as exc:
        if exc.committed:
            click.echo(f"{len(exc.committed)} sale(s) were recorded before the failure.", err=True)
        raise click.ClickException(str(exc))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Committed {len(result.sales)} sale(s), total {result.total}")


@click.command("list")
@click.option("--limit", type=int, default=20, show_default=True, help="Rows to show.")
def sale_list(limit: int) -> None:
    """Show recent sales, newest first."""
    handler = ListSalesHandler(sale_repo=sale_repository())

    try:
        sales = handler.handle(limit=limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not sales:
        click.echo("No sales recorded.")
        return

    click.echo(
        f"{'Date':<20} {'Product':<24} {'Size':<5} {'Qty':>4} {'Total':>12}  Payment"
    )
    click.echo("-" * 84)
    for sale in sales:
        click.echo(
            f"{sale.sale_date:<20} {sale.product_name:<24} {sale.size or '':<5} "
            f"{sale.quantity:>4} {sale.total_price:>12}  {sale.payment_method}"
        )
