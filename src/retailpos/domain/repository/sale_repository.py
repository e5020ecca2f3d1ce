"""Abstract repository for Sale records (the sales backend).

Each call is an independent remote operation: there is no transaction
spanning several sales. Implementations raise RemoteOperationError when
the backend rejects a call or cannot be reached.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from retailpos.domain.model.sale import Sale, SaleRequest


class SaleRepository(ABC):

    @abstractmethod
    def create_sale(self, request: SaleRequest) -> Sale:
        """Persist one sale and return the stored record."""

    @abstractmethod
    def cancel_sale(self, sale_id: str) -> None:
        """Void a previously created sale."""

    @abstractmethod
    def list_all(self) -> list[Sale]:
        """Return every recorded sale, newest first."""
