"""Unit tests for the Cart aggregate and its stock ceilings."""

from decimal import Decimal

import pytest

from retailpos.domain.model.cart import Cart
from retailpos.domain.model.discount import Discount, DiscountType
from retailpos.domain.model.sale import PaymentMethod
from retailpos.domain.service.stock_ledger import StockLedger
from tests.fakes import make_product, money


def _cart(*products):
    ledger = StockLedger(products)
    return Cart(ledger.ceiling), ledger


# ── Adding lines ─────────────────────────────────────────────────────────────


class TestAddLine:

    def test_add_within_ceiling(self):
        p = make_product(sizes={"M": 3})
        cart, _ = _cart(p)

        assert cart.add_line(p, 2, "M") is True
        assert cart.error is None
        assert cart.get_line("1", "M").quantity == 2

    def test_add_more_than_variant_stock_rejected(self):
        p = make_product(sizes={"M": 3})
        cart, _ = _cart(p)

        assert cart.add_line(p, 5, "M") is False
        assert cart.is_empty
        assert "3" in cart.error
        assert "M" in cart.error

    def test_repeated_add_exceeding_ceiling_keeps_first_quantity(self):
        p = make_product(sizes={"M": 3})
        cart, _ = _cart(p)

        assert cart.add_line(p, 2, "M")
        assert cart.add_line(p, 2, "M") is False

        assert cart.get_line("1", "M").quantity == 2
        assert "2 already in cart" in cart.error
        assert "only 3 available" in cart.error

    def test_repeated_add_merges_into_one_line(self):
        p = make_product(sizes={"M": 3})
        cart, _ = _cart(p)

        cart.add_line(p, 1, "M")
        cart.add_line(p, 2, "M")

        assert len(cart) == 1
        assert cart.get_line("1", "M").quantity == 3

    def test_sizes_are_separate_lines(self):
        p = make_product(sizes={"S": 1, "M": 1})
        cart, _ = _cart(p)

        cart.add_line(p, 1, "S")
        cart.add_line(p, 1, "M")

        assert [line.selected_size for line in cart.lines] == ["S", "M"]

    def test_out_of_stock_rejected(self):
        p = make_product(stock=0)
        cart, _ = _cart(p)

        assert cart.add_line(p, 1) is False
        assert "out of stock" in cart.error

    def test_unknown_size_rejected(self):
        p = make_product(sizes={"M": 3})
        cart, _ = _cart(p)

        assert cart.add_line(p, 1, "XL") is False
        assert "no size XL" in cart.error

    def test_missing_size_rejected_for_variant_product(self):
        p = make_product(sizes={"S": 1, "M": 3})
        cart, _ = _cart(p)

        assert cart.add_line(p, 1) is False
        assert "Select a size" in cart.error
        assert "S, M" in cart.error

    def test_size_rejected_for_flat_product(self):
        p = make_product(stock=5)
        cart, _ = _cart(p)

        assert cart.add_line(p, 1, "M") is False
        assert "no size variants" in cart.error

    def test_zero_quantity_rejected(self):
        p = make_product(stock=5)
        cart, _ = _cart(p)

        assert cart.add_line(p, 0) is False
        assert cart.is_empty

    def test_success_clears_previous_error(self):
        p = make_product(stock=5)
        cart, _ = _cart(p)

        cart.add_line(p, 9)
        assert cart.error is not None
        cart.add_line(p, 1)
        assert cart.error is None

    def test_unit_price_is_captured_at_add_time(self):
        p = make_product(stock=5, price="1500")
        cart, _ = _cart(p)
        cart.add_line(p, 2)

        line = cart.get_line("1")
        assert line.unit_price == money(1500)
        assert line.subtotal == money(3000)


# ── Updating and removing ────────────────────────────────────────────────────


class TestUpdateQuantity:

    def test_update_within_ceiling(self):
        p = make_product(stock=5)
        cart, _ = _cart(p)
        cart.add_line(p, 1)

        assert cart.update_quantity("1", 5) is True
        assert cart.get_line("1").quantity == 5

    def test_update_above_ceiling_keeps_previous_quantity(self):
        p = make_product(stock=5)
        cart, _ = _cart(p)
        cart.add_line(p, 2)

        assert cart.update_quantity("1", 6) is False
        assert cart.get_line("1").quantity == 2
        assert "only 5 available" in cart.error

    def test_update_rechecks_against_current_ledger(self):
        p = make_product(sizes={"M": 3})
        cart, ledger = _cart(p)
        cart.add_line(p, 1, "M")

        ledger.apply_sale("1", "M", 2)  # stock dropped to 1 under the cart

        assert cart.update_quantity("1", 2, "M") is False
        assert "only 1 available" in cart.error

    @pytest.mark.parametrize("qty", [0, -1])
    def test_zero_or_less_removes(self, qty):
        p = make_product(stock=5)
        cart, _ = _cart(p)
        cart.add_line(p, 2)

        assert cart.update_quantity("1", qty) is True
        assert cart.is_empty

    def test_update_absent_line_rejected(self):
        cart, _ = _cart()
        assert cart.update_quantity("1", 2) is False
        assert "not in the cart" in cart.error


class TestRemoveAndClear:

    def test_remove_line(self):
        a = make_product(id="1", stock=5)
        b = make_product(id="2", stock=5)
        cart, _ = _cart(a, b)
        cart.add_line(a, 1)
        cart.add_line(b, 1)

        cart.remove_line("1")

        assert [line.product.id for line in cart.lines] == ["2"]

    def test_remove_absent_line_is_a_no_op(self):
        p = make_product(sizes={"M": 3})
        cart, _ = _cart(p)
        cart.add_line(p, 2, "M")
        before = cart.lines

        cart.remove_line("1", "L")
        cart.remove_line("99")

        assert cart.lines == before

    def test_clear_empties_lines_and_error(self):
        p = make_product(stock=1)
        cart, _ = _cart(p)
        cart.add_line(p, 1)
        cart.add_line(p, 1)  # rejected, sets error

        cart.clear()

        assert cart.is_empty
        assert cart.error is None
        assert cart.item_count() == 0


# ── Totals ───────────────────────────────────────────────────────────────────


class TestTotals:

    def test_total_and_item_count(self):
        a = make_product(id="1", price="1000", stock=5)
        b = make_product(id="2", price="250", sizes={"M": 4})
        cart, _ = _cart(a, b)
        cart.add_line(a, 2)
        cart.add_line(b, 3, "M")

        assert cart.total() == money(2750)
        assert cart.item_count() == 5

    def test_total_is_recomputed_after_mutation(self):
        p = make_product(price="100", stock=5)
        cart, _ = _cart(p)
        cart.add_line(p, 1)
        assert cart.total() == money(100)

        cart.update_quantity("1", 4)
        assert cart.total() == money(400)

    def test_empty_cart_totals(self):
        cart, _ = _cart()
        assert cart.total() == money(0)
        assert cart.item_count() == 0


# ── Ceiling invariant over a sequence of operations ──────────────────────────


class TestCeilingInvariant:

    def test_no_line_ever_exceeds_its_ceiling(self):
        p = make_product(sizes={"S": 2, "M": 3})
        cart, ledger = _cart(p)
        operations = [
            ("add", 1, "M"), ("add", 3, "M"), ("add", 2, "M"),
            ("update", 4, "M"), ("add", 2, "S"), ("add", 1, "S"),
            ("update", 1, "S"), ("add", 5, "S"), ("update", 3, "M"),
        ]

        for op, qty, size in operations:
            if op == "add":
                cart.add_line(p, qty, size)
            else:
                cart.update_quantity("1", qty, size)
            for line in cart.lines:
                assert line.quantity <= ledger.ceiling(line.product, line.selected_size)
                assert line.quantity >= 1


# ── Discounts ────────────────────────────────────────────────────────────────


class TestCartDiscounts:

    def test_percentage_discount_on_line(self):
        p = make_product(price="500", stock=5)
        cart, _ = _cart(p)
        cart.add_line(p, 2)

        assert cart.apply_discount("1", Discount.percentage(10))
        line = cart.get_line("1")
        assert line.discount_amount == money(100)
        assert line.total_price == money(900)
        assert cart.total() == money(900)
        assert cart.subtotal() == money(1000)
        assert cart.discount_total() == money(100)

    def test_fixed_discount_capped(self):
        p = make_product(price="500", stock=5)
        cart, _ = _cart(p)
        cart.add_line(p, 2)

        cart.apply_discount("1", Discount.fixed(1500))

        line = cart.get_line("1")
        assert line.discount_amount == money(1000)
        assert line.total_price == money(0)

    def test_remove_discount_restores_subtotal(self):
        p = make_product(price="333.33", stock=5)
        cart, _ = _cart(p)
        cart.add_line(p, 3)
        cart.apply_discount("1", Discount.percentage("12.5"))

        assert cart.remove_discount("1")

        line = cart.get_line("1")
        assert line.discount is None
        assert line.discount_amount is None
        assert line.total_price == line.subtotal
        assert cart.total() == cart.subtotal()

    @pytest.mark.parametrize("discount", [
        Discount.percentage(0),
        Discount.percentage(101),
        Discount.fixed(-1),
        Discount(DiscountType.PERCENTAGE, Decimal("NaN")),
        Discount(DiscountType.FIXED_AMOUNT, Decimal("Infinity")),
    ])
    def test_invalid_discount_rejected(self, discount):
        p = make_product(price="500", stock=5)
        cart, _ = _cart(p)
        cart.add_line(p, 1)

        assert cart.apply_discount("1", discount) is False
        assert "Invalid discount" in cart.error
        assert cart.get_line("1").discount is None

    def test_discounts_do_not_stack(self):
        p = make_product(price="500", stock=5)
        cart, _ = _cart(p)
        cart.add_line(p, 1)
        cart.apply_discount("1", Discount.percentage(10))

        assert cart.apply_discount("1", Discount.fixed(50)) is False
        assert cart.get_line("1").discount == Discount.percentage(10)

    def test_quantity_change_on_discounted_line_rejected(self):
        p = make_product(price="500", stock=5)
        cart, _ = _cart(p)
        cart.add_line(p, 1)
        cart.apply_discount("1", Discount.fixed(100))

        assert cart.update_quantity("1", 2) is False
        assert cart.add_line(p, 1) is False
        assert "remove the discount" in cart.error
        assert cart.get_line("1").quantity == 1

    def test_discounted_line_can_still_be_removed(self):
        p = make_product(price="500", stock=5)
        cart, _ = _cart(p)
        cart.add_line(p, 1)
        cart.apply_discount("1", Discount.fixed(100))

        assert cart.update_quantity("1", 0) is True
        assert cart.is_empty

    def test_discount_on_absent_line_rejected(self):
        cart, _ = _cart()
        assert cart.apply_discount("1", Discount.percentage(10)) is False
        assert cart.remove_discount("1") is False


class TestSaleRequest:

    def test_line_to_sale_request_carries_discount_fields(self):
        p = make_product(price="1000", sizes={"M": 3})
        cart, _ = _cart(p)
        cart.add_line(p, 1, "M")
        cart.apply_discount("1", Discount.percentage(10), "M")

        request = cart.get_line("1", "M").to_sale_request(PaymentMethod.QR)

        assert request.product_id == "1"
        assert request.size == "M"
        assert request.quantity == 1
        assert request.unit_price == money(1000)
        assert request.total_price == money(900)
        assert request.payment_method is PaymentMethod.QR
        assert request.discount_type is DiscountType.PERCENTAGE
        assert request.discount_amount == money(100)
