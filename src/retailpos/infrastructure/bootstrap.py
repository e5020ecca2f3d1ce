"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from retailpos.application.notifications import NotificationSink
from retailpos.application.session import PointOfSaleSession
from retailpos.domain.repository.product_repository import ProductRepository
from retailpos.domain.repository.sale_repository import SaleRepository
from retailpos.domain.service.checkout_sequencer import (
    OptimisticDecrement,
    RefetchAfterEachLine,
    StockSyncPolicy,
)
from retailpos.infrastructure.config import STOCK_SYNC_REFETCH, Settings, load_settings
from retailpos.infrastructure.http.api_client import (
    ApiClient,
    HttpProductRepository,
    HttpSaleRepository,
)
from retailpos.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from retailpos.infrastructure.persistence.json_sale_repository import (
    JsonSaleRepository,
)


def _settings(settings: Settings | None) -> Settings:
    return settings if settings is not None else load_settings()


def api_client(settings: Settings | None = None) -> ApiClient:
    settings = _settings(settings)
    return ApiClient(
        base_url=settings.api_url or "",
        token=settings.api_token,
        timeout=settings.api_timeout,
    )


def product_repository(settings: Settings | None = None) -> ProductRepository:
    settings = _settings(settings)
    if settings.uses_http_backend:
        return HttpProductRepository(api_client(settings))
    return JsonProductRepository(settings.data_dir / "products.json")


def sale_repository(
    settings: Settings | None = None,
    products: ProductRepository | None = None,
) -> SaleRepository:
    settings = _settings(settings)
    if settings.uses_http_backend:
        return HttpSaleRepository(api_client(settings))
    if not isinstance(products, JsonProductRepository):
        products = JsonProductRepository(settings.data_dir / "products.json")
    return JsonSaleRepository(settings.data_dir / "sales.json", products)


def stock_sync_policy(settings: Settings, products: ProductRepository) -> StockSyncPolicy:
    if settings.stock_sync == STOCK_SYNC_REFETCH:
        return RefetchAfterEachLine(products)
    return OptimisticDecrement()


def pos_session(
    settings: Settings | None = None,
    notifier: NotificationSink | None = None,
) -> PointOfSaleSession:
    settings = _settings(settings)
    products = product_repository(settings)
    session = PointOfSaleSession(
        product_repo=products,
        sale_repo=sale_repository(settings, products),
        notifier=notifier,
        on_failure=settings.failure_policy,
        stock_sync=stock_sync_policy(settings, products),
    )
    session.refresh_catalog()
    return session
