"""Product aggregate.

Products are owned by the catalog. Within a selling session the engine
treats them as immutable: the only change it ever makes is to the stock
figures after a committed sale, and it does so by building a patched copy
(``with_stock_decremented`` / ``with_stock_restored``) rather than mutating
the instance that cart lines may still reference.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from retailpos.domain.exceptions import ValidationError
from retailpos.domain.model.value_objects import Money


class StockStatus(Enum):
    OUT = "OUT"
    LOW = "LOW"
    OK = "OK"


@dataclass(frozen=True)
class Variant:
    """A (size, stock) pair belonging to exactly one product."""

    size: str
    stock: int

    def __post_init__(self) -> None:
        if not self.size or not self.size.strip():
            raise ValidationError("Variant size is required")
        if self.stock < 0:
            raise ValidationError(
                f"Stock for size {self.size} cannot be negative, got {self.stock}"
            )


@dataclass(frozen=True)
class Product:
    """A product in the catalog.

    Stock is either a flat ``total_stock`` or a set of ``variants``
    (one per size). When both are present the variants are the source of
    truth for per-size ceilings and ``total_stock`` is kept in step.

    Invariants:
    - sizes are unique within a product
    - no stock figure is ever negative
    """

    id: str
    name: str
    price: Money
    barcode: str = ""
    brand: str = ""
    cost: Money = field(default_factory=Money.zero)
    min_stock: int = 0
    total_stock: int | None = None
    variants: tuple[Variant, ...] = ()

    def __post_init__(self) -> None:
        sizes = [v.size for v in self.variants]
        if len(sizes) != len(set(sizes)):
            raise ValidationError(f"Duplicate sizes for product {self.name}")
        if self.total_stock is not None and self.total_stock < 0:
            raise ValidationError(
                f"Stock for {self.name} cannot be negative, got {self.total_stock}"
            )
        if self.min_stock < 0:
            raise ValidationError("Minimum stock cannot be negative")

    # --- Queries --------------------------------------------------------------

    @property
    def has_variants(self) -> bool:
        return bool(self.variants)

    @property
    def sizes(self) -> list[str]:
        return [v.size for v in self.variants]

    def variant(self, size: str) -> Variant | None:
        for v in self.variants:
            if v.size == size:
                return v
        return None

    @property
    def stock(self) -> int:
        """Total units on hand across all sizes."""
        if self.total_stock is not None:
            return self.total_stock
        return sum(v.stock for v in self.variants)

    @property
    def stock_status(self) -> StockStatus:
        if self.stock == 0:
            return StockStatus.OUT
        if self.stock <= self.min_stock:
            return StockStatus.LOW
        return StockStatus.OK

    def label(self, size: str | None = None) -> str:
        return f"{self.name} (size {size})" if size else self.name

    # --- Patched copies -------------------------------------------------------

    def with_stock_decremented(self, quantity: int, size: str | None = None) -> Product:
        """Return a copy with ``quantity`` units of ``size`` taken out.

        Figures are clamped at zero: the local copy may lag behind the
        backend, and a negative stock figure must never exist.
        """
        return self._with_stock_delta(-quantity, size)

    def with_stock_restored(self, quantity: int, size: str | None = None) -> Product:
        """Return a copy with ``quantity`` units of ``size`` put back."""
        return self._with_stock_delta(quantity, size)

    def _with_stock_delta(self, delta: int, size: str | None) -> Product:
        variants = self.variants
        if size is not None and self.has_variants:
            if self.variant(size) is None:
                raise ValidationError(f"{self.name} has no size {size}")
            variants = tuple(
                replace(v, stock=max(0, v.stock + delta)) if v.size == size else v
                for v in self.variants
            )
        total = self.total_stock
        if total is not None:
            total = max(0, total + delta)
        return replace(self, variants=variants, total_stock=total)
