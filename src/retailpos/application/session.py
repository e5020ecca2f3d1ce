"""Application service: Point-of-sale session.

One session owns one Cart, the StockLedger the cart checks against, the
sales recorded so far, and the sink that receives notifications. Every
screen or command that touches the cart is handed the same session.

Cart rejections are reported through ``cart.error`` and an error
notification; the method returns False. Only ``checkout`` raises.
"""

from __future__ import annotations

import logging

from retailpos.application.dto import CartDTO
from retailpos.application.lookup_barcode import LookupBarcodeHandler, ScanResult, ScanStatus
from retailpos.application.notifications import (
    LoggingNotificationSink,
    Notification,
    NotificationSink,
    NotificationType,
)
from retailpos.domain.exceptions import CheckoutError, EmptyCartError
from retailpos.domain.model.cart import Cart
from retailpos.domain.model.discount import Discount
from retailpos.domain.model.product import Product, StockStatus
from retailpos.domain.model.sale import PaymentMethod
from retailpos.domain.model.value_objects import Money
from retailpos.domain.repository.product_repository import ProductRepository
from retailpos.domain.repository.sale_repository import SaleRepository
from retailpos.domain.service.checkout_sequencer import (
    CheckoutResult,
    CheckoutSequencer,
    FailurePolicy,
    SalesHistory,
    StockSyncPolicy,
)
from retailpos.domain.service.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


class PointOfSaleSession:

    def __init__(
        self,
        product_repo: ProductRepository,
        sale_repo: SaleRepository,
        notifier: NotificationSink | None = None,
        on_failure: FailurePolicy = FailurePolicy.HALT,
        stock_sync: StockSyncPolicy | None = None,
    ) -> None:
        self._product_repo = product_repo
        self._notifier = notifier or LoggingNotificationSink()
        self.ledger = StockLedger()
        self.cart = Cart(self.ledger.ceiling)
        self.history = SalesHistory()
        self._lookup = LookupBarcodeHandler(product_repo, self.ledger, self._notifier)
        self._sequencer = CheckoutSequencer(
            sale_repo=sale_repo,
            ledger=self.ledger,
            history=self.history,
            stock_sync=stock_sync,
            on_failure=on_failure,
            refresh_catalog=self.refresh_catalog,
        )

    # --- Catalog --------------------------------------------------------------

    def refresh_catalog(self) -> None:
        """Reload the ledger from the catalog, dropping optimistic figures."""
        products = self._product_repo.list_all()
        self.ledger.reload(products)
        logger.info("Catalog refreshed: %d product(s)", len(products))

    def scan(self, barcode: str) -> ScanResult:
        return self._lookup.handle(barcode)

    # --- Cart -----------------------------------------------------------------

    def add_product(self, product: Product, quantity: int = 1, size: str | None = None) -> bool:
        if not self.cart.add_line(product, quantity, size):
            return self._report_rejection("Cannot add to cart")
        self._notify(
            NotificationType.SUCCESS,
            "Added to cart",
            f"{quantity} x {product.label(size)}",
        )
        return True

    def add_to_cart(self, product_id: str, quantity: int = 1, size: str | None = None) -> bool:
        product = self.ledger.get(product_id) or self._product_repo.get_by_id(product_id)
        if product is None:
            self.cart.error = f"Product {product_id} not found"
            self._notify(NotificationType.ERROR, "Product not found", self.cart.error)
            return False
        if product_id not in self.ledger:
            self.ledger.replace(product)
        return self.add_product(product, quantity, size)

    def add_by_barcode(self, barcode: str, quantity: int = 1, size: str | None = None) -> bool:
        """Scan a code and add it; a lone in-stock size is picked automatically."""
        result = self.scan(barcode)
        if result.status is ScanStatus.INVALID:
            self.cart.error = "Barcode is required"
            return False
        if not result.found:
            self.cart.error = f"No product with barcode {result.barcode}"
            return False
        return self.add_product(result.product, quantity, size or result.suggested_size)

    def update_quantity(self, product_id: str, quantity: int, size: str | None = None) -> bool:
        if not self.cart.update_quantity(product_id, quantity, size):
            return self._report_rejection("Cannot change quantity")
        return True

    def remove_line(self, product_id: str, size: str | None = None) -> None:
        self.cart.remove_line(product_id, size)

    def clear(self) -> None:
        self.cart.clear()

    def apply_discount(self, product_id: str, discount: Discount, size: str | None = None) -> bool:
        if not self.cart.apply_discount(product_id, discount, size):
            return self._report_rejection("Invalid discount")
        line = self.cart.get_line(product_id, size)
        self._notify(
            NotificationType.SUCCESS,
            "Discount applied",
            f"{discount} on {line.label}: -{line.discount_amount}",
        )
        return True

    def remove_discount(self, product_id: str, size: str | None = None) -> bool:
        if not self.cart.remove_discount(product_id, size):
            return self._report_rejection("Cannot remove discount")
        return True

    def total(self) -> Money:
        return self.cart.total()

    def item_count(self) -> int:
        return self.cart.item_count()

    def snapshot(self) -> CartDTO:
        return CartDTO.from_cart(self.cart)

    # --- Checkout -------------------------------------------------------------

    @property
    def failure_policy(self) -> FailurePolicy:
        return self._sequencer.failure_policy

    def checkout(self, payment_method: PaymentMethod) -> CheckoutResult:
        """Commit the cart line by line.

        Raises EmptyCartError or CheckoutError after notifying; on success
        the cart is empty and the catalog has been reloaded.
        """
        try:
            result = self._sequencer.run(self.cart, payment_method)
        except EmptyCartError as exc:
            self._notify(NotificationType.ERROR, "Cart is empty", str(exc))
            raise
        except CheckoutError as exc:
            self._notify(NotificationType.ERROR, "Checkout failed", str(exc))
            self._warn_low_stock(sale.product_id for sale in exc.committed)
            raise

        self._notify(
            NotificationType.SUCCESS,
            "Sale recorded",
            f"{result.item_count} item(s) in {len(result.sales)} sale(s) - "
            f"{result.total} ({payment_method.label})",
        )
        if not result.catalog_refreshed:
            self._notify(
                NotificationType.WARNING,
                "Catalog not refreshed",
                "Stock figures are local estimates until the next refresh",
            )
        self._warn_low_stock(sale.product_id for sale in result.sales)
        return result

    # --- Internal helpers -----------------------------------------------------

    def _warn_low_stock(self, product_ids) -> None:
        for product_id in dict.fromkeys(product_ids):
            product = self.ledger.get(product_id)
            if product is None or product.stock_status is StockStatus.OK:
                continue
            if product.stock_status is StockStatus.OUT:
                description = f"{product.name} is now out of stock"
            else:
                description = (
                    f"{product.name} has {product.stock} left "
                    f"(minimum {product.min_stock})"
                )
            self._notify(NotificationType.WARNING, "Low stock", description)

    def _report_rejection(self, title: str) -> bool:
        self._notify(NotificationType.ERROR, title, self.cart.error or "")
        return False

    def _notify(self, kind: NotificationType, title: str, description: str) -> None:
        self._notifier.notify(Notification(kind, title, description))
