"""
Domain exceptions for StockLedger.

Every error carries a machine-readable code and a details mapping so the
API layer can render it without knowing the concrete type.
"""

from typing import Any


class StockLedgerError(Exception):
    """Base exception for all StockLedger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Lookup failures
class NotFoundError(StockLedgerError):
    """Referenced entity does not exist."""

    pass


class ProductNotFoundError(NotFoundError):
    """Product has no inventory record."""

    def __init__(self, product_id: str):
        super().__init__(
            "Product not found",
            code="PRODUCT_NOT_FOUND",
            details={"product_id": product_id},
        )
        self.product_id = product_id


class AlertNotFoundError(NotFoundError):
    """Reorder alert does not exist."""

    def __init__(self, alert_id: str):
        super().__init__(
            f"Reorder alert not found: {alert_id}",
            code="ALERT_NOT_FOUND",
            details={"alert_id": alert_id},
        )


class ProductAlreadyExistsError(StockLedgerError):
    """A product with this id already has an inventory record."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product already exists: {product_id}",
            code="PRODUCT_EXISTS",
            details={"product_id": product_id},
        )


# Validation failures
class ValidationError(StockLedgerError):
    """Input rejected before any state change."""

    pass


class InvalidQuantityError(ValidationError):
    """Quantity or cost outside its allowed range."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message, code="INVALID_QUANTITY", details=details)


class InvalidInputError(ValidationError):
    """Malformed or unsupported request value."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message, code="INVALID_INPUT", details=details)


class InsufficientStockError(ValidationError):
    """Outbound quantity exceeds units on hand."""

    def __init__(self, product_id: str, available: int, requested: int):
        super().__init__(
            "Insufficient stock",
            code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "available": available,
                "requested": requested,
            },
        )
        self.available = available
        self.requested = requested


# Bulk input failures
class BulkInputError(ValidationError):
    """Whole bulk file rejected before any row is processed."""

    pass


class EmptyInputError(BulkInputError):
    def __init__(self):
        super().__init__("CSV file is empty", code="EMPTY_INPUT")


class MissingHeadersError(BulkInputError):
    def __init__(self, missing: list[str]):
        super().__init__(
            f"Missing required headers: {', '.join(missing)}",
            code="MISSING_HEADERS",
            details={"missing": missing},
        )
        self.missing = missing


class TooManyRowsError(BulkInputError):
    def __init__(self, rows: int, limit: int):
        super().__init__(
            f"Too many rows: {rows} (maximum {limit})",
            code="TOO_MANY_ROWS",
            details={"rows": rows, "limit": limit},
        )


# Persistence failures
class RepositoryError(StockLedgerError):
    """Storage unavailable, timed out or failed. Safe to retry."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Repository error during {operation}: {error}",
            code="REPOSITORY_ERROR",
            details={"operation": operation, "error": error},
        )
        self.operation = operation


class ConcurrencyConflictError(StockLedgerError):
    """Product changed between read and conditional write."""

    def __init__(self, product_id: str, expected_version: int):
        super().__init__(
            f"Concurrent modification of product {product_id}",
            code="CONCURRENCY_CONFLICT",
            details={"product_id": product_id, "expected_version": expected_version},
        )
        self.product_id = product_id


class PartiallyPersistedError(StockLedgerError):
    """
    Product state was saved but its ledger transaction was not.

    The product is flagged for reconciliation before this is raised.
    ``transaction`` holds the row that failed to be written.
    """

    def __init__(self, product_id: str, transaction: Any, cause: str):
        super().__init__(
            f"Product {product_id} updated but transaction not recorded: {cause}",
            code="PARTIALLY_PERSISTED",
            details={
                "product_id": product_id,
                "transaction_id": getattr(transaction, "id", None),
                "cause": cause,
            },
        )
        self.product_id = product_id
        self.transaction = transaction
