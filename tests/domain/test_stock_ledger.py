"""Unit tests for the in-memory stock ledger."""

from retailpos.domain.service.stock_ledger import StockLedger
from tests.fakes import make_product


class TestStockLedger:

    def test_ceiling_reads_the_ledger_copy(self):
        stale = make_product(sizes={"M": 3})
        ledger = StockLedger([stale])
        ledger.apply_sale("1", "M", 2)

        # a cart line still holding the stale instance sees the new figure
        assert ledger.ceiling(stale, "M") == 1
        assert stale.variant("M").stock == 3

    def test_untracked_product_falls_back_to_itself(self):
        ledger = StockLedger()
        assert ledger.ceiling(make_product(stock=4)) == 4

    def test_apply_sale_replaces_instance(self):
        product = make_product(stock=5)
        ledger = StockLedger([product])
        patched = ledger.apply_sale("1", None, 2)

        assert ledger.get("1") is patched
        assert patched.total_stock == 3

    def test_apply_sale_clamps_on_drift(self):
        ledger = StockLedger([make_product(stock=1)])
        ledger.apply_sale("1", None, 3)
        assert ledger.get("1").total_stock == 0

    def test_apply_sale_unknown_product_is_ignored(self):
        ledger = StockLedger()
        assert ledger.apply_sale("404", None, 1) is None
        assert len(ledger) == 0

    def test_restore(self):
        ledger = StockLedger([make_product(sizes={"M": 1})])
        ledger.restore("1", "M", 2)
        assert ledger.get("1").variant("M").stock == 3

    def test_reload_replaces_everything(self):
        ledger = StockLedger([make_product(id="1", stock=1)])
        ledger.reload([make_product(id="2", stock=2)])
        assert "1" not in ledger
        assert "2" in ledger
