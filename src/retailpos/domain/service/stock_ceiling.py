"""Domain service: Stock Ceiling Resolver.

The ceiling is the largest quantity a single cart line may hold for a
product/size at this moment. It is recomputed at scan time, add time and
on every quantity change; nothing caches it.
"""

from __future__ import annotations

from retailpos.domain.model.product import Product


def resolve_ceiling(product: Product, size: str | None = None) -> int:
    """Return the maximum quantity placeable in one line.

    With a size on a product that has variants, the ceiling is that
    variant's stock, or 0 when the product has no such size. Without a
    size it is ``total_stock`` if known, else the sum of variant stocks.
    """
    if size is not None and product.has_variants:
        variant = product.variant(size)
        return variant.stock if variant is not None else 0
    if product.total_stock is not None:
        return product.total_stock
    if product.variants:
        return sum(v.stock for v in product.variants)
    return 0
