"""Tests for the JSON-file repositories used by a standalone till."""

import json

import pytest

from retailpos.domain.exceptions import RemoteOperationError
from retailpos.domain.model.discount import DiscountType
from retailpos.domain.model.sale import PaymentMethod, SaleRequest
from retailpos.infrastructure.persistence.json_product_repository import JsonProductRepository
from retailpos.infrastructure.persistence.json_sale_repository import JsonSaleRepository
from tests.fakes import make_product, money


@pytest.fixture
def products(tmp_path):
    repo = JsonProductRepository(tmp_path / "products.json")
    repo.save(make_product(id="1", name="Remera", sizes={"S": 1, "M": 3}))
    repo.save(make_product(id="2", name="Gorra", price="500", stock=4))
    return repo


@pytest.fixture
def sales(tmp_path, products):
    return JsonSaleRepository(tmp_path / "sales.json", products)


def _request(product_id="2", quantity=1, size=None, discount=None):
    unit = money(500)
    subtotal = unit * quantity
    return SaleRequest(
        product_id=product_id,
        product_name="Gorra",
        size=size,
        quantity=quantity,
        unit_price=unit,
        total_price=subtotal - discount if discount else subtotal,
        payment_method=PaymentMethod.CREDIT_CARD,
        discount_type=DiscountType.FIXED_AMOUNT if discount else None,
        discount_value=discount.amount if discount else None,
        discount_amount=discount,
    )


class TestJsonProductRepository:

    def test_creates_empty_file(self, tmp_path):
        path = tmp_path / "nested" / "products.json"
        repo = JsonProductRepository(path)

        assert path.exists()
        assert repo.list_all() == []

    def test_round_trips_variants_and_flat_stock(self, products):
        remera = products.get_by_id("1")
        gorra = products.get_by_id("2")

        assert remera.variant("M").stock == 3
        assert remera.total_stock is None
        assert gorra.total_stock == 4
        assert gorra.price == money(500)

    def test_lookup_by_barcode(self, products):
        assert products.get_by_barcode("7790002").name == "Gorra"
        assert products.get_by_barcode("nope") is None

    def test_file_layout(self, tmp_path, products):
        raw = json.loads((tmp_path / "products.json").read_text(encoding="utf-8"))

        assert raw[0]["variants"] == [{"size": "S", "stock": 1}, {"size": "M", "stock": 3}]
        assert raw[1]["price"] == "500"
        assert raw[1]["currency"] == "ARS"


class TestJsonSaleRepository:

    def test_create_deducts_stock_and_stores_sale(self, products, sales):
        sale = sales.create_sale(_request(quantity=3))

        assert products.get_by_id("2").total_stock == 1
        assert [s.id for s in sales.list_all()] == [sale.id]
        assert sales.list_all()[0].payment_method is PaymentMethod.CREDIT_CARD

    def test_create_deducts_the_right_size(self, products, sales):
        sales.create_sale(_request(product_id="1", quantity=2, size="M"))

        remera = products.get_by_id("1")
        assert remera.variant("M").stock == 1
        assert remera.variant("S").stock == 1

    def test_insufficient_stock(self, products, sales):
        with pytest.raises(RemoteOperationError, match="need 5, have 4"):
            sales.create_sale(_request(quantity=5))

        assert products.get_by_id("2").total_stock == 4
        assert sales.list_all() == []

    def test_unknown_product_and_size(self, sales):
        with pytest.raises(RemoteOperationError, match="not found"):
            sales.create_sale(_request(product_id="99"))
        with pytest.raises(RemoteOperationError, match="no size XL"):
            sales.create_sale(_request(product_id="1", size="XL"))

    def test_discount_fields_persist(self, sales):
        sales.create_sale(_request(quantity=2, discount=money(100)))

        (stored,) = sales.list_all()
        assert stored.discount_type is DiscountType.FIXED_AMOUNT
        assert stored.discount_amount == money(100)
        assert stored.total_price == money(900)

    def test_cancel_restores_stock(self, products, sales):
        sale = sales.create_sale(_request(quantity=2))

        sales.cancel_sale(sale.id)

        assert products.get_by_id("2").total_stock == 4
        assert sales.list_all() == []

    def test_cancel_unknown_sale(self, sales):
        with pytest.raises(RemoteOperationError, match="Sale X not found"):
            sales.cancel_sale("X")

    def test_list_newest_first(self, tmp_path, sales):
        first = sales.create_sale(_request())
        second = sales.create_sale(_request())
        path = tmp_path / "sales.json"
        raw = json.loads(path.read_text(encoding="utf-8"))
        raw[0]["sale_date"] = "2024-03-01T10:00:00+00:00"
        raw[1]["sale_date"] = "2024-03-02T09:00:00+00:00"
        path.write_text(json.dumps(raw), encoding="utf-8")

        assert [s.id for s in sales.list_all()] == [second.id, first.id]
