"""CLI commands for the product catalog."""

from __future__ import annotations

import click

from retailpos.application.add_product import AddProductHandler
from retailpos.domain.exceptions import DomainException
from retailpos.domain.model.product import Product, StockStatus
from retailpos.infrastructure.bootstrap import product_repository
from retailpos.infrastructure.cli.display import parse_variants


def _stock_cell(product: Product) -> str:
    if product.has_variants:
        return " ".join(f"{v.size}:{v.stock}" for v in product.variants)
    return str(product.stock)


def _display_products(products: list[Product]) -> None:
    click.echo(f"{'ID':<6} {'Barcode':<15} {'Name':<24} {'Price':>12}  {'Status':<6} Stock")
    click.echo("-" * 80)
    for p in products:
        click.echo(
            f"{p.id:<6} {p.barcode:<15} {p.name:<24} {str(p.price):>12}  "
            f"{p.stock_status.value:<6} {_stock_cell(p)}"
        )


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--barcode", required=True, help="Barcode (must be unique).")
@click.option("--price", required=True, help="Sale price (e.g. 15000).")
@click.option("--cost", default="0", show_default=True, help="Unit cost.")
@click.option("--brand", default="", help="Brand name.")
@click.option("--stock", type=int, default=None, help="Total stock for products without sizes.")
@click.option("--sizes", default=None, help="Per-size stock as 'S=2,M=5'.")
@click.option("--min-stock", type=int, default=0, show_default=True, help="Reorder threshold.")
def product_add(
    name: str,
    barcode: str,
    price: str,
    cost: str,
    brand: str,
    stock: int | None,
    sizes: str | None,
    min_stock: int,
) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(product_repo=product_repository())
    variants = parse_variants(sizes) if sizes else None

    try:
        product = handler.handle(
            name=name, barcode=barcode, price=price, cost=cost, brand=brand,
            stock=stock, variants=variants, min_stock=min_stock,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product.id} '{product.name}' added at {product.price}")


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    try:
        products = product_repository().list_all()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not products:
        click.echo("No products found.")
        return
    _display_products(products)


@click.command("show")
@click.option("--barcode", required=True, help="Barcode to look up.")
def product_show(barcode: str) -> None:
    """Look up a product by exact barcode."""
    try:
        product = product_repository().get_by_barcode(barcode.strip())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if product is None:
        raise click.ClickException(f"Product not found: no product with barcode {barcode}")

    click.echo(f"{product.brand} {product.name}".strip())
    click.echo(f"  Barcode:   {product.barcode}")
    click.echo(f"  Price:     {product.price}")
    click.echo(f"  Stock:     {_stock_cell(product)}  ({product.stock_status.value})")
    click.echo(f"  Min stock: {product.min_stock}")


@click.command("low-stock")
def product_low_stock() -> None:
    """List products at or below their reorder threshold."""
    try:
        products = product_repository().list_all()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    low = [p for p in products if p.stock_status is not StockStatus.OK]
    if not low:
        click.echo("All products are above their minimum stock.")
        return
    _display_products(low)
