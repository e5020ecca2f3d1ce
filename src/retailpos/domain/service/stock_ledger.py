"""Domain service: Stock Ledger.

An in-memory projection of the catalog's stock, one Product per ID. Every
ceiling check reads it; only the checkout sequencer (through a stock sync
policy) writes to it. Writes replace the stored Product with a patched
copy, so cart lines holding the previous instance are never mutated.
"""

from __future__ import annotations

import logging
from typing import Iterable

from retailpos.domain.model.product import Product
from retailpos.domain.service.stock_ceiling import resolve_ceiling

logger = logging.getLogger(__name__)


class StockLedger:

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: dict[str, Product] = {}
        self.reload(products)

    # --- Queries --------------------------------------------------------------

    def get(self, product_id: str) -> Product | None:
        return self._products.get(product_id)

    def products(self) -> list[Product]:
        return list(self._products.values())

    def current(self, product: Product) -> Product:
        """The ledger's copy of ``product``, or ``product`` itself if untracked."""
        return self._products.get(product.id, product)

    def ceiling(self, product: Product, size: str | None = None) -> int:
        return resolve_ceiling(self.current(product), size)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._products

    def __len__(self) -> int:
        return len(self._products)

    # --- Writes ---------------------------------------------------------------

    def reload(self, products: Iterable[Product]) -> None:
        """Replace the whole projection (full catalog refresh)."""
        self._products = {p.id: p for p in products}

    def replace(self, product: Product) -> None:
        self._products[product.id] = product

    def apply_sale(self, product_id: str, size: str | None, quantity: int) -> Product | None:
        """Optimistically take ``quantity`` units out after a committed sale."""
        product = self._products.get(product_id)
        if product is None:
            logger.warning("Sold product %s is not in the stock ledger", product_id)
            return None
        available = resolve_ceiling(product, size)
        if quantity > available:
            logger.warning(
                "Local stock for %s is %d but %d were sold; clamping to 0",
                product.label(size), available, quantity,
            )
        patched = product.with_stock_decremented(quantity, size)
        self._products[product_id] = patched
        logger.debug(
            "Ledger: %s decremented by %d (now %d)",
            product.label(size), quantity, resolve_ceiling(patched, size),
        )
        return patched

    def restore(self, product_id: str, size: str | None, quantity: int) -> Product | None:
        """Put ``quantity`` units back after a rolled-back sale."""
        product = self._products.get(product_id)
        if product is None:
            logger.warning("Restored product %s is not in the stock ledger", product_id)
            return None
        patched = product.with_stock_restored(quantity, size)
        self._products[product_id] = patched
        return patched
