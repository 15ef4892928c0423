"""Tests for domain exceptions."""

from stockledger.core.entities.inventory import InventoryTransaction, TransactionType
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    InsufficientStockError,
    InvalidInputError,
    MissingHeadersError,
    NotFoundError,
    PartiallyPersistedError,
    ProductNotFoundError,
    RepositoryError,
    StockLedgerError,
    ValidationError,
)


class TestStockLedgerError:
    def test_code_defaults_to_class_name(self):
        error = StockLedgerError("boom")
        assert error.code == "StockLedgerError"
        assert error.details == {}
        assert str(error) == "boom"

    def test_to_dict(self):
        error = InvalidInputError("Limit must be positive", limit=0)
        assert error.to_dict() == {
            "error": "INVALID_INPUT",
            "message": "Limit must be positive",
            "details": {"limit": 0},
        }


class TestHierarchy:
    def test_not_found(self):
        error = ProductNotFoundError("PROD001")
        assert isinstance(error, NotFoundError)
        assert error.code == "PRODUCT_NOT_FOUND"
        assert error.details == {"product_id": "PROD001"}

    def test_insufficient_stock_is_validation(self):
        error = InsufficientStockError("PROD001", 5, 8)
        assert isinstance(error, ValidationError)
        assert error.details["requested"] == 8

    def test_missing_headers_message(self):
        error = MissingHeadersError(["Reason", "Unit Cost"])
        assert error.message == "Missing required headers: Reason, Unit Cost"
        assert isinstance(error, ValidationError)

    def test_repository_and_conflict_are_not_validation(self):
        assert not isinstance(RepositoryError("get_product", "locked"), ValidationError)
        assert not isinstance(ConcurrencyConflictError("PROD001", 3), ValidationError)


class TestPartiallyPersistedError:
    def test_carries_transaction(self):
        transaction = InventoryTransaction(
            product_id="PROD001", type=TransactionType.SALE, quantity=-2, created_by="a"
        )
        error = PartiallyPersistedError("PROD001", transaction, "disk full")

        assert error.transaction is transaction
        assert error.details["transaction_id"] == transaction.id
        assert error.code == "PARTIALLY_PERSISTED"
        assert "disk full" in error.message
