import logging

import click

from retailpos.domain.exceptions import DomainException
from retailpos.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    product_low_stock,
    product_show,
)
from retailpos.infrastructure.cli.register_commands import register
from retailpos.infrastructure.cli.sale_commands import sale_checkout, sale_list
from retailpos.infrastructure.config import load_settings


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log engine activity.")
def cli(verbose: bool) -> None:
    """retailpos — point-of-sale cart and checkout"""
    try:
        level = "DEBUG" if verbose else load_settings().log_level
    except DomainException as exc:
        raise click.ClickException(str(exc))
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.group()
def product() -> None:
    """Browse and seed the catalog."""


@cli.group()
def sale() -> None:
    """Sell and review sales."""


# Register subcommands
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_low_stock)
product.add_command(product_show)
sale.add_command(sale_checkout)
sale.add_command(sale_list)
cli.add_command(register)
