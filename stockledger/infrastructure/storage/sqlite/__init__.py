"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.alert_store import SQLiteAlertStore
from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from stockledger.infrastructure.storage.sqlite.product_store import SQLiteProductStore
from stockledger.infrastructure.storage.sqlite.transaction_store import (
    SQLiteTransactionStore,
)

_product_store: SQLiteProductStore | None = None
_transaction_store: SQLiteTransactionStore | None = None
_alert_store: SQLiteAlertStore | None = None


async def get_product_store() -> SQLiteProductStore:
    """Get singleton product store instance."""
    global _product_store
    if _product_store is None:
        _product_store = SQLiteProductStore()
    return _product_store


async def get_transaction_store() -> SQLiteTransactionStore:
    """Get singleton transaction store instance."""
    global _transaction_store
    if _transaction_store is None:
        _transaction_store = SQLiteTransactionStore()
    return _transaction_store


async def get_alert_store() -> SQLiteAlertStore:
    """Get singleton alert store instance."""
    global _alert_store
    if _alert_store is None:
        _alert_store = SQLiteAlertStore()
    return _alert_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteAlertStore",
    "SQLiteProductStore",
    "SQLiteTransactionStore",
    # Factory functions
    "get_alert_store",
    "get_product_store",
    "get_transaction_store",
]
