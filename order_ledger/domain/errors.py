"""Order ledger error taxonomy.

Every error carries the HTTP status it maps to; the API layer turns them into
``{"detail": message}`` responses.
"""

from typing import Optional


class OrderLedgerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(OrderLedgerError):
    status_code = 400


class NotFoundError(OrderLedgerError):
    status_code = 404


class InsufficientStockError(OrderLedgerError):
    status_code = 409

    def __init__(self, product_id: int, available: int, title: Optional[str] = None):
        label = title or f"product {product_id}"
        super().__init__(f"Only {available} units available for {label}")
        self.product_id = product_id
        self.available = available


class CouponInvalidError(OrderLedgerError):
    status_code = 400


class AuthorizationError(OrderLedgerError):
    status_code = 403


class InvalidStateError(OrderLedgerError):
    status_code = 409


class PartialCommitError(OrderLedgerError):
    """Storage failed after stock was mutated; the checkout was rolled back."""

    status_code = 500
