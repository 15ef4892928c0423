"""Pytest fixtures for SQLite storage tests."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from stockledger.core.entities.inventory import (
    CostEntry,
    InventoryTransaction,
    ProductInventory,
    TransactionType,
)
from stockledger.infrastructure.storage.sqlite import connection as conn_module
from stockledger.infrastructure.storage.sqlite.connection import close_pool
from stockledger.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 5000
    return mock


@pytest.fixture
async def initialized_db(temp_db_path: Path, mock_settings) -> AsyncGenerator[Path, None]:
    """Migrated temporary database with the global pool pointed at it."""
    conn_module._pool = None
    await initialize_database(temp_db_path, create_backup_before=False)
    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        yield temp_db_path
        await close_pool()


@pytest.fixture
def sample_product() -> ProductInventory:
    return ProductInventory(
        product_id="PROD001",
        name="Lavender Essential Oil",
        category="Essential Oils",
        current_stock=100,
        initial_stock=100,
        weighted_average_cost=15.0,
        total_cost_value=1500.0,
        last_purchase_cost=15.0,
        selling_price=25.0,
        reorder_point=20,
        reorder_quantity=50,
        supplier_id="SUP-1",
        cost_history=[
            CostEntry(
                quantity=100,
                unit_cost=15.0,
                total_cost=1500.0,
                running_average=15.0,
                invoice_reference="Initial Migration",
            )
        ],
    )


@pytest.fixture
def make_transaction():
    def _make(product_id="PROD001", kind=TransactionType.SALE, quantity=-1, **fields):
        return InventoryTransaction(
            product_id=product_id,
            type=kind,
            quantity=quantity,
            created_by=fields.pop("created_by", "tester"),
            **fields,
        )

    return _make
