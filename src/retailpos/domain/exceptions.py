"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EmptyCartError(ValidationError):
    """Checkout was requested on a cart with no lines."""


class RemoteOperationError(DomainException):
    """The sales/catalog backend rejected a call or could not be reached."""


class CheckoutError(DomainException):
    """A checkout pass stopped with at least one uncommitted line.

    ``committed`` holds the sales that were persisted before (or despite)
    the failure; ``failed`` holds the cart lines that were not committed
    because they failed.
    """

    def __init__(self, message: str, committed=(), failed=(), total_lines: int = 0) -> None:
        super().__init__(message)
        self.committed = list(committed)
        self.failed = list(failed)
        self.total_lines = total_lines
