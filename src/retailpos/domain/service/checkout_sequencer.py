"""Domain service: Checkout Sequencer.

Commits a Cart to the sales backend one line at a time, in cart order.
Every line is an independent remote call; there is no transaction across
lines. Each call completes before the next line is even checked, because
a line's ceiling is read from the ledger that the previous line's commit
has just updated.

Two seams are pluggable:

- ``StockSyncPolicy`` decides how the ledger learns about a committed
  sale: ``OptimisticDecrement`` (default) patches the local copy at once,
  ``RefetchAfterEachLine`` re-reads the product from the catalog.
- ``FailurePolicy`` decides what a failed line does to the rest of the
  pass: ``HALT`` (default) stops with no rollback, ``CONTINUE_REMAINING``
  attempts every line, ``ROLLBACK_ALL`` cancels what was committed.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from retailpos.domain.exceptions import (
    CheckoutError,
    EmptyCartError,
    RemoteOperationError,
    ValidationError,
)
from retailpos.domain.model.cart import Cart, CartLine
from retailpos.domain.model.sale import PaymentMethod, Sale
from retailpos.domain.model.value_objects import Money
from retailpos.domain.repository.product_repository import ProductRepository
from retailpos.domain.repository.sale_repository import SaleRepository
from retailpos.domain.service.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


class FailurePolicy(Enum):
    HALT = "halt"
    CONTINUE_REMAINING = "continue"
    ROLLBACK_ALL = "rollback"


# ---------------------------------------------------------------------------
# Stock sync policies
# ---------------------------------------------------------------------------


class StockSyncPolicy(ABC):

    @abstractmethod
    def after_commit(self, ledger: StockLedger, line: CartLine, sale: Sale) -> None:
        """Reflect the committed ``line`` in the ledger, keyed by its product and size."""

    @abstractmethod
    def after_rollback(self, ledger: StockLedger, line: CartLine, sale: Sale) -> None:
        """Reflect the cancelled sale for ``line`` in the ledger."""


class OptimisticDecrement(StockSyncPolicy):
    """Patch the local copy immediately, without asking the backend."""

    def after_commit(self, ledger: StockLedger, line: CartLine, sale: Sale) -> None:
        ledger.apply_sale(line.product.id, line.selected_size, line.quantity)

    def after_rollback(self, ledger: StockLedger, line: CartLine, sale: Sale) -> None:
        ledger.restore(line.product.id, line.selected_size, line.quantity)


class RefetchAfterEachLine(StockSyncPolicy):
    """Re-read the sold product from the catalog after every line.

    Slower than the optimistic decrement but never drifts from the
    backend. If the re-read itself fails, the sale is still committed, so
    the ledger falls back to the optimistic figures.
    """

    def __init__(self, products: ProductRepository) -> None:
        self._products = products
        self._fallback = OptimisticDecrement()

    def after_commit(self, ledger: StockLedger, line: CartLine, sale: Sale) -> None:
        if not self._refetch(ledger, line.product.id):
            self._fallback.after_commit(ledger, line, sale)

    def after_rollback(self, ledger: StockLedger, line: CartLine, sale: Sale) -> None:
        if not self._refetch(ledger, line.product.id):
            self._fallback.after_rollback(ledger, line, sale)

    def _refetch(self, ledger: StockLedger, product_id: str) -> bool:
        try:
            product = self._products.get_by_id(product_id)
        except RemoteOperationError as exc:
            logger.warning("Could not re-read product %s: %s", product_id, exc)
            return False
        if product is None:
            logger.warning("Product %s vanished from the catalog", product_id)
            return False
        ledger.replace(product)
        return True


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LineFailure:
    line: CartLine
    reason: str


@dataclass
class CheckoutResult:
    sales: list[Sale] = field(default_factory=list)
    catalog_refreshed: bool = False

    @property
    def item_count(self) -> int:
        return sum(sale.quantity for sale in self.sales)

    @property
    def total(self) -> Money:
        if not self.sales:
            return Money.zero()
        result = Money.zero(self.sales[0].total_price.currency)
        for sale in self.sales:
            result = result + sale.total_price
        return result


class SalesHistory:
    """Sales recorded during this session, newest first."""

    def __init__(self, sales: list[Sale] | None = None) -> None:
        self._sales: list[Sale] = list(sales or [])

    def record(self, sale: Sale) -> None:
        self._sales.insert(0, sale)

    def discard(self, sale_id: str) -> None:
        self._sales = [s for s in self._sales if s.id != sale_id]

    def list_all(self) -> list[Sale]:
        return list(self._sales)

    def __len__(self) -> int:
        return len(self._sales)


# ---------------------------------------------------------------------------
# Sequencer
# ---------------------------------------------------------------------------


class CheckoutSequencer:

    def __init__(
        self,
        sale_repo: SaleRepository,
        ledger: StockLedger,
        history: SalesHistory,
        stock_sync: StockSyncPolicy | None = None,
        on_failure: FailurePolicy = FailurePolicy.HALT,
        refresh_catalog: Callable[[], None] | None = None,
    ) -> None:
        self._sale_repo = sale_repo
        self._ledger = ledger
        self._history = history
        self._stock_sync = stock_sync or OptimisticDecrement()
        self._on_failure = on_failure
        self._refresh_catalog = refresh_catalog

    @property
    def failure_policy(self) -> FailurePolicy:
        return self._on_failure

    def run(self, cart: Cart, payment_method: PaymentMethod) -> CheckoutResult:
        """Commit every line of ``cart`` as an individual sale.

        Raises EmptyCartError before any remote call if the cart is empty,
        and CheckoutError if any line failed. Only a pass in which every
        line committed empties the cart and refreshes the catalog.
        """
        if cart.is_empty:
            cart.error = "Cart is empty"
            raise EmptyCartError("Cart is empty")

        original = cart.lines
        total_lines = len(original)
        committed: list[tuple[CartLine, Sale]] = []
        failures: list[LineFailure] = []
        logger.info(
            "Checkout started: %d line(s), payment=%s, on_failure=%s",
            total_lines, payment_method.value, self._on_failure.value,
        )

        for position, line in enumerate(original, start=1):
            try:
                sale = self._commit(line, payment_method)
            except (RemoteOperationError, ValidationError) as exc:
                logger.warning(
                    "Line %d/%d (%s) failed: %s", position, total_lines, line.label, exc
                )
                failures.append(LineFailure(line, str(exc)))
                if self._on_failure is FailurePolicy.CONTINUE_REMAINING:
                    continue
                break
            committed.append((line, sale))
            cart.remove_line(line.product.id, line.selected_size)
            logger.info(
                "Line %d/%d committed: %s x%d -> sale %s",
                position, total_lines, line.label, line.quantity, sale.id,
            )

        if failures:
            if self._on_failure is FailurePolicy.ROLLBACK_ALL:
                committed = self._rollback(cart, original, committed)
            raise self._failure_error(cart, failures, committed, total_lines)

        cart.clear()
        result = CheckoutResult(sales=[sale for _, sale in committed])
        result.catalog_refreshed = self._refresh()
        logger.info(
            "Checkout complete: %d sale(s), %d item(s), total %s",
            len(result.sales), result.item_count, result.total,
        )
        return result

    # --- Internal helpers -----------------------------------------------------

    def _commit(self, line: CartLine, payment_method: PaymentMethod) -> Sale:
        ceiling = self._ledger.ceiling(line.product, line.selected_size)
        if line.quantity > ceiling:
            raise ValidationError(
                f"Not enough stock for {line.label}: "
                f"{line.quantity} in cart, only {ceiling} available"
            )
        sale = self._sale_repo.create_sale(line.to_sale_request(payment_method))
        self._history.record(sale)
        self._stock_sync.after_commit(self._ledger, line, sale)
        return sale

    def _rollback(
        self,
        cart: Cart,
        original: tuple[CartLine, ...],
        committed: list[tuple[CartLine, Sale]],
    ) -> list[tuple[CartLine, Sale]]:
        """Cancel committed sales newest first; return those that could not be cancelled."""
        stuck: list[tuple[CartLine, Sale]] = []
        for line, sale in reversed(committed):
            try:
                self._sale_repo.cancel_sale(sale.id)
            except RemoteOperationError as exc:
                logger.error("Could not cancel sale %s (%s): %s", sale.id, line.label, exc)
                stuck.insert(0, (line, sale))
                continue
            self._history.discard(sale.id)
            self._stock_sync.after_rollback(self._ledger, line, sale)
            logger.info("Sale %s (%s) cancelled", sale.id, line.label)

        still_committed = {id(line) for line, _ in stuck}
        cart.restore(line for line in original if id(line) not in still_committed)
        return stuck

    def _failure_error(
        self,
        cart: Cart,
        failures: list[LineFailure],
        committed: list[tuple[CartLine, Sale]],
        total_lines: int,
    ) -> CheckoutError:
        first = failures[0]
        if self._on_failure is FailurePolicy.ROLLBACK_ALL:
            message = (
                f"Checkout failed on {first.line.label}: {first.reason}. "
                f"Committed sales were rolled back"
            )
            if committed:
                message += f"; {len(committed)} could not be cancelled"
        elif self._on_failure is FailurePolicy.CONTINUE_REMAINING:
            names = ", ".join(f.line.label for f in failures)
            message = (
                f"{len(failures)} of {total_lines} line(s) failed ({names}); "
                f"{len(committed)} of {total_lines} committed. "
                f"First failure: {first.reason}"
            )
        else:
            message = (
                f"Checkout stopped at {first.line.label}: {first.reason}. "
                f"{len(committed)} of {total_lines} line(s) committed before the failure"
            )
        cart.error = message
        return CheckoutError(
            message,
            committed=[sale for _, sale in committed],
            failed=[f.line for f in failures],
            total_lines=total_lines,
        )

    def _refresh(self) -> bool:
        if self._refresh_catalog is None:
            return False
        try:
            self._refresh_catalog()
        except RemoteOperationError as exc:
            logger.warning("Catalog refresh after checkout failed: %s", exc)
            return False
        return True
