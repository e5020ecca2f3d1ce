"""HTTP adapters for the retail backend's REST API.

The backend owns products and sales; these repositories translate its
JSON (camelCase, numbers for money) to and from the domain model. Every
transport or HTTP failure becomes a RemoteOperationError whose message is
the backend's own ``message`` field when it sends one.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import requests

from retailpos.domain.exceptions import RemoteOperationError, ValidationError
from retailpos.domain.model.discount import DiscountType
from retailpos.domain.model.product import Product, Variant
from retailpos.domain.model.sale import PaymentMethod, Sale, SaleRequest
from retailpos.domain.model.value_objects import Money
from retailpos.domain.repository.product_repository import ProductRepository
from retailpos.domain.repository.sale_repository import SaleRepository

logger = logging.getLogger(__name__)

PAGE_SIZE = 100

# Payment method codes used on the wire.
PAYMENT_CODES = {
    PaymentMethod.CASH: "EFECTIVO",
    PaymentMethod.TRANSFER: "TRANSFERENCIA",
    PaymentMethod.DEBIT_CARD: "TARJETA_DEBITO",
    PaymentMethod.CREDIT_CARD: "TARJETA_CREDITO",
    PaymentMethod.QR: "QR",
}
PAYMENT_METHODS = {code: method for method, code in PAYMENT_CODES.items()}


class ApiClient:
    """Thin wrapper over a ``requests.Session`` with bearer auth and a timeout."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url:
            raise ValidationError("Backend API URL is not configured")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def request(
        self,
        method: str,
        path: str,
        *,
        fallback: str,
        params: dict | None = None,
        json: dict | None = None,
        allow_not_found: bool = False,
    ) -> Any:
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            response = self._session.request(
                method, url, params=params, json=json, timeout=self._timeout
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise RemoteOperationError(f"{fallback}: {exc}") from exc

        if allow_not_found and response.status_code == 404:
            return None
        if not response.ok:
            message = _error_message(response, fallback)
            logger.warning("%s %s -> HTTP %d: %s", method, url, response.status_code, message)
            raise RemoteOperationError(message)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()


class HttpProductRepository(ProductRepository):

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def get_by_id(self, product_id: str) -> Product | None:
        data = self._client.request(
            "GET", f"/products/{product_id}",
            fallback="Error loading product", allow_not_found=True,
        )
        return product_from_api(data) if data else None

    def get_by_barcode(self, barcode: str) -> Product | None:
        data = self._client.request(
            "GET", f"/products/barcode/{barcode}",
            fallback="Error looking up barcode", allow_not_found=True,
        )
        return product_from_api(data) if data else None

    def list_all(self) -> list[Product]:
        products: list[Product] = []
        page = 1
        while True:
            body = self._client.request(
                "GET", "/products",
                params={"page": page, "limit": PAGE_SIZE},
                fallback="Error loading products",
            )
            items, meta = _unwrap(body)
            products.extend(product_from_api(item) for item in items)
            if not meta or page >= meta.get("totalPages", page):
                return products
            page += 1

    def save(self, product: Product) -> Product:
        payload = {
            "name": product.name,
            "brand": product.brand,
            "barcode": product.barcode,
            "price": float(product.price.amount),
            "cost": float(product.cost.amount),
            "stock": product.stock,
            "minStock": product.min_stock,
            "variants": [{"size": v.size, "stock": v.stock} for v in product.variants],
        }
        existing = self.get_by_id(product.id) if product.id else None
        if existing is None:
            data = self._client.request(
                "POST", "/products", json=payload, fallback="Error creating product"
            )
        else:
            data = self._client.request(
                "PATCH", f"/products/{product.id}", json=payload,
                fallback="Error updating product",
            )
        return product_from_api(data)


class HttpSaleRepository(SaleRepository):

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def create_sale(self, request: SaleRequest) -> Sale:
        payload: dict[str, Any] = {
            "productId": request.product_id,
            "quantity": request.quantity,
            "unitPrice": float(request.unit_price.amount),
            "totalPrice": float(request.total_price.amount),
            "paymentMethod": PAYMENT_CODES[request.payment_method],
        }
        if request.size is not None:
            payload["size"] = request.size
        if request.discount_type is not None:
            payload["discountType"] = request.discount_type.value
            payload["discountValue"] = float(request.discount_value)
            payload["discountAmount"] = float(request.discount_amount.amount)
        data = self._client.request(
            "POST", "/sales", json=payload, fallback="Error registering sale"
        )
        return _fill_from_request(sale_from_api(data), request)

    def cancel_sale(self, sale_id: str) -> None:
        self._client.request("DELETE", f"/sales/{sale_id}", fallback="Error cancelling sale")

    def list_all(self) -> list[Sale]:
        body = self._client.request(
            "GET", "/sales", params={"page": 1, "limit": PAGE_SIZE},
            fallback="Error loading sales",
        )
        items, _ = _unwrap(body)
        return [sale_from_api(item) for item in items]


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------


def product_from_api(data: dict) -> Product:
    variants = tuple(
        Variant(size=v["size"], stock=int(v.get("stock", 0))) for v in data.get("variants") or []
    )
    total = data.get("totalStock")
    if total is None and not variants:
        total = data.get("stock", 0)
    return Product(
        id=str(data["id"]),
        name=data["name"],
        barcode=data.get("barcode") or "",
        brand=data.get("brand") or "",
        price=Money.of(data["price"]),
        cost=Money.of(data.get("cost") or 0),
        min_stock=int(data.get("minStock") or 0),
        total_stock=int(total) if total is not None else None,
        variants=variants,
    )


def sale_from_api(data: dict) -> Sale:
    product = data.get("product") or {}
    discount_type = data.get("discountType")
    discount_value = data.get("discountValue")
    discount_amount = data.get("discountAmount")
    return Sale(
        id=str(data["id"]),
        product_id=str(data["productId"]),
        product_name=product.get("name", ""),
        size=data.get("size"),
        quantity=int(data["quantity"]),
        unit_price=Money.of(data["unitPrice"]),
        total_price=Money.of(data["totalPrice"]),
        payment_method=PAYMENT_METHODS.get(data.get("paymentMethod"), PaymentMethod.CASH),
        discount_type=DiscountType(discount_type) if discount_type else None,
        discount_value=Decimal(str(discount_value)) if discount_value is not None else None,
        discount_amount=Money.of(discount_amount) if discount_amount is not None else None,
        sale_date=_parse_datetime(data.get("saleDate") or data.get("createdAt")),
    )


def _fill_from_request(sale: Sale, request: SaleRequest) -> Sale:
    """Complete a created sale with the line data the backend did not echo back."""
    missing = {}
    if not sale.product_name:
        missing["product_name"] = request.product_name
    if sale.size is None and request.size is not None:
        missing["size"] = request.size
    if sale.discount_type is None and request.discount_type is not None:
        missing["discount_type"] = request.discount_type
        missing["discount_value"] = request.discount_value
        missing["discount_amount"] = request.discount_amount
    return replace(sale, **missing) if missing else sale


def _unwrap(body: Any) -> tuple[list[dict], dict | None]:
    if isinstance(body, list):
        return body, None
    if isinstance(body, dict):
        return body.get("data", []), body.get("meta")
    return [], None


def _parse_datetime(raw: str | None) -> datetime:
    if not raw:
        return datetime.now(timezone.utc)
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


def _error_message(response: requests.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, list):
            message = "; ".join(str(m) for m in message)
        if message:
            return str(message)
    return f"{fallback} (HTTP {response.status_code})"
