"""Application service: List Sales use case (query)."""

from __future__ import annotations

from retailpos.application.dto import SaleDTO
from retailpos.domain.repository.sale_repository import SaleRepository


class ListSalesHandler:

    def __init__(self, sale_repo: SaleRepository) -> None:
        self._sale_repo = sale_repo

    def handle(self, limit: int | None = None) -> list[SaleDTO]:
        sales = self._sale_repo.list_all()
        if limit is not None:
            sales = sales[:limit]
        return [SaleDTO.from_sale(sale) for sale in sales]
