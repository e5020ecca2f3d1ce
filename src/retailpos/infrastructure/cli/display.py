"""Shared parsing and formatting for the CLI commands."""

from __future__ import annotations

import click

from retailpos.application.dto import CartDTO
from retailpos.application.notifications import (
    Notification,
    NotificationSink,
    NotificationType,
)
from retailpos.domain.exceptions import ValidationError
from retailpos.domain.model.cart import CartLine
from retailpos.domain.model.discount import Discount

_COLORS = {
    NotificationType.SUCCESS: "green",
    NotificationType.ERROR: "red",
    NotificationType.WARNING: "yellow",
    NotificationType.INFO: "blue",
}


class ClickNotificationSink(NotificationSink):
    """Prints notifications to the terminal, errors to stderr."""

    def notify(self, notification: Notification) -> None:
        title = click.style(notification.title, fg=_COLORS[notification.type], bold=True)
        line = f"{title}: {notification.description}" if notification.description else title
        click.echo(line, err=notification.type is NotificationType.ERROR)


def parse_item(raw: str) -> tuple[str, int, str | None]:
    """Parse 'BARCODE:QTY[:SIZE]' into its parts."""
    parts = [p.strip() for p in raw.split(":")]
    if len(parts) not in (2, 3) or not parts[0]:
        raise click.BadParameter(
            f"Invalid item format '{raw}'. Expected 'BARCODE:QTY' or 'BARCODE:QTY:SIZE'."
        )
    try:
        qty = int(parts[1])
    except ValueError:
        raise click.BadParameter(f"Invalid quantity '{parts[1]}' for '{parts[0]}'.")
    size = parts[2] if len(parts) == 3 and parts[2] else None
    return parts[0], qty, size


def parse_discount_value(raw: str) -> Discount:
    """'10%' is a percentage, '1500' a fixed amount."""
    raw = raw.strip()
    try:
        if raw.endswith("%"):
            return Discount.percentage(raw[:-1])
        return Discount.fixed(raw)
    except ValidationError as exc:
        raise click.BadParameter(str(exc))


def parse_discount(raw: str) -> tuple[str, str | None, Discount]:
    """Parse 'BARCODE[:SIZE]=VALUE' into its parts."""
    if "=" not in raw:
        raise click.BadParameter(
            f"Invalid discount format '{raw}'. Expected 'BARCODE[:SIZE]=10%' or 'BARCODE[:SIZE]=1500'."
        )
    target, value = raw.split("=", 1)
    code, _, size = target.partition(":")
    return code.strip(), size.strip() or None, parse_discount_value(value)


def parse_variants(raw: str) -> dict[str, int]:
    """Parse 'S=2,M=5' into {size: stock}."""
    result: dict[str, int] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if "=" not in pair:
            raise click.BadParameter(f"Invalid size format '{pair}'. Expected 'SIZE=STOCK'.")
        size, qty_str = pair.split("=", 1)
        try:
            result[size.strip()] = int(qty_str)
        except ValueError:
            raise click.BadParameter(f"Invalid stock '{qty_str}' for size '{size}'.")
    return result


def find_line(lines, code: str, size: str | None) -> CartLine | None:
    """Find a cart line by barcode or product ID (and size, when given)."""
    for line in lines:
        if code not in (line.product.barcode, line.product.id):
            continue
        if size is None or line.selected_size == size:
            return line
    return None


def display_cart(dto: CartDTO) -> None:
    if not dto.lines:
        click.echo("Cart is empty.")
        return

    click.echo(f"  {'Product':<24} {'Size':<5} {'Qty':>4} {'Price':>12} {'Discount':>12} {'Total':>12}")
    click.echo(f"  {'-' * 74}")
    for line in dto.lines:
        discount = f"-{line.discount_amount}" if line.discount_amount else ""
        click.echo(
            f"  {line.product_name:<24} {line.size or '':<5} {line.quantity:>4} "
            f"{line.unit_price:>12} {discount:>12} {line.total_price:>12}"
        )
    click.echo(f"  {'-' * 74}")
    click.echo(f"  {'Items':<36} {dto.item_count:>38}")
    if dto.discount_total != "$0.00":
        click.echo(f"  {'Subtotal':<36} {dto.subtotal:>38}")
        click.echo(f"  {'Discounts':<36} {'-' + dto.discount_total:>38}")
    click.echo(f"  {'Total':<36} {dto.total:>38}")
