"""Interactive register: one cart held in memory for the whole session."""

from __future__ import annotations

import shlex

import click

from retailpos.application.session import PointOfSaleSession
from retailpos.domain.exceptions import CheckoutError, DomainException, EmptyCartError
from retailpos.domain.model.sale import PaymentMethod
from retailpos.infrastructure.bootstrap import pos_session
from retailpos.infrastructure.cli.display import (
    ClickNotificationSink,
    display_cart,
    find_line,
    parse_discount_value,
)

HELP = """\
Commands:
  scan BARCODE [QTY] [SIZE]      add a product to the cart
  qty BARCODE QTY [SIZE]         set a line's quantity (0 removes it)
  rm BARCODE [SIZE]              remove a line
  discount BARCODE VALUE [SIZE]  apply '10%' or a fixed amount to a line
  nodiscount BARCODE [SIZE]      remove a line's discount
  show                           show the cart
  clear                          empty the cart
  pay [METHOD]                   check out (cash, transfer, debit_card, credit_card, qr)
  refresh                        reload the catalog
  quit                           leave the register"""


def _line_or_fail(session: PointOfSaleSession, code: str, size: str | None):
    line = find_line(session.cart.lines, code, size)
    if line is None:
        raise click.UsageError(f"'{code}' is not in the cart")
    return line


def _execute(session: PointOfSaleSession, command: str, args: list[str]) -> bool:
    """Run one register command; return False when the session should end."""
    if command in ("quit", "exit"):
        return False
    if command == "help":
        click.echo(HELP)
    elif command == "scan":
        if not args:
            raise click.UsageError("scan needs a barcode")
        qty = int(args[1]) if len(args) > 1 else 1
        size = args[2] if len(args) > 2 else None
        session.add_by_barcode(args[0], qty, size)
    elif command == "qty":
        if len(args) < 2:
            raise click.UsageError("qty needs a barcode and a quantity")
        line = _line_or_fail(session, args[0], args[2] if len(args) > 2 else None)
        session.update_quantity(line.product.id, int(args[1]), line.selected_size)
    elif command == "rm":
        if not args:
            raise click.UsageError("rm needs a barcode")
        line = _line_or_fail(session, args[0], args[1] if len(args) > 1 else None)
        session.remove_line(line.product.id, line.selected_size)
    elif command == "discount":
        if len(args) < 2:
            raise click.UsageError("discount needs a barcode and a value")
        line = _line_or_fail(session, args[0], args[2] if len(args) > 2 else None)
        session.apply_discount(line.product.id, parse_discount_value(args[1]), line.selected_size)
    elif command == "nodiscount":
        if not args:
            raise click.UsageError("nodiscount needs a barcode")
        line = _line_or_fail(session, args[0], args[1] if len(args) > 1 else None)
        session.remove_discount(line.product.id, line.selected_size)
    elif command == "show":
        display_cart(session.snapshot())
    elif command == "clear":
        session.clear()
        click.echo("Cart cleared.")
    elif command == "pay":
        method = PaymentMethod.parse(args[0]) if args else PaymentMethod.CASH
        session.checkout(method)
    elif command == "refresh":
        session.refresh_catalog()
        click.echo(f"Catalog reloaded ({len(session.ledger)} products).")
    else:
        raise click.UsageError(f"Unknown command '{command}' (type 'help')")
    return True


@click.command("register")
def register() -> None:
    """Open an interactive register session."""
    try:
        session = pos_session(notifier=ClickNotificationSink())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Register open ({len(session.ledger)} products). Type 'help' for commands.")
    while True:
        raw = click.prompt("pos", default="", show_default=False, prompt_suffix="> ")
        try:
            parts = shlex.split(raw)
        except ValueError as exc:
            click.echo(f"Error: {exc}", err=True)
            continue
        if not parts:
            continue
        try:
            if not _execute(session, parts[0].lower(), parts[1:]):
                break
        except (click.UsageError, click.BadParameter) as exc:
            click.echo(f"Error: {exc.format_message()}", err=True)
        except ValueError as exc:
            click.echo(f"Error: {exc}", err=True)
        except (CheckoutError, EmptyCartError):
            # already reported through the notification sink
            continue
        except DomainException as exc:
            click.echo(f"Error: {exc}", err=True)

    if not session.cart.is_empty:
        click.echo(f"Leaving with {session.item_count()} item(s) still in the cart.")
    click.echo("Register closed.")
