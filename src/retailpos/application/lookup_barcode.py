"""Application service: Barcode Lookup use case.

A miss or a blank code is an expected, frequent outcome at the till, so it
is returned as a NOT_FOUND or INVALID result (and reported to the
notification sink) instead of being raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from retailpos.application.notifications import (
    Notification,
    NotificationSink,
    NotificationType,
)
from retailpos.domain.model.product import Product
from retailpos.domain.repository.product_repository import ProductRepository
from retailpos.domain.service.stock_ledger import StockLedger


class ScanStatus(Enum):
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"
    INVALID = "INVALID"


@dataclass(frozen=True)
class ScanResult:
    barcode: str
    status: ScanStatus
    product: Product | None = None
    available: int = 0
    in_stock_sizes: tuple[str, ...] = ()

    @property
    def found(self) -> bool:
        return self.status is ScanStatus.FOUND

    @property
    def suggested_size(self) -> str | None:
        """The only size with stock, when there is exactly one."""
        if len(self.in_stock_sizes) == 1:
            return self.in_stock_sizes[0]
        return None


class LookupBarcodeHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        ledger: StockLedger,
        notifier: NotificationSink,
    ) -> None:
        self._product_repo = product_repo
        self._ledger = ledger
        self._notifier = notifier

    def handle(self, barcode: str) -> ScanResult:
        """Resolve a scanned or typed code to a product.

        The fetched product replaces the ledger's copy so the ceiling shown
        at scan time reflects what the catalog just returned.
        """
        code = (barcode or "").strip()
        if not code:
            self._notifier.notify(
                Notification(NotificationType.ERROR, "Invalid barcode", "Barcode is required")
            )
            return ScanResult(barcode="", status=ScanStatus.INVALID)

        product = self._product_repo.get_by_barcode(code)
        if product is None:
            self._notifier.notify(
                Notification(
                    NotificationType.ERROR,
                    "Product not found",
                    f"No product with barcode {code}",
                )
            )
            return ScanResult(barcode=code, status=ScanStatus.NOT_FOUND)

        self._ledger.replace(product)
        available = self._ledger.ceiling(product)
        in_stock = tuple(v.size for v in product.variants if v.stock > 0)

        title = f"{product.brand} {product.name}".strip()
        if available > 0:
            self._notifier.notify(
                Notification(
                    NotificationType.SUCCESS,
                    "Product found",
                    f"{title} - {product.price} - {available} available",
                )
            )
        else:
            self._notifier.notify(
                Notification(
                    NotificationType.WARNING,
                    "Out of stock",
                    f"{title} has no stock available",
                )
            )
        return ScanResult(
            barcode=code,
            status=ScanStatus.FOUND,
            product=product,
            available=available,
            in_stock_sizes=in_stock,
        )
