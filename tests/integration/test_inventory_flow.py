"""Integration test: the services against a migrated SQLite database."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from stockledger.application.dto.requests import RegisterProductRequest, ReplenishStockRequest
from stockledger.application.services import reset_services
from stockledger.application.use_cases import (
    ReconcileLedgerUseCase,
    RegisterProductUseCase,
    ReplenishStockUseCase,
)
from stockledger.config.settings import InventorySettings
from stockledger.core.entities.alert import AlertStatus
from stockledger.core.entities.inventory import AdjustmentMode, ProductInventory, TransactionType
from stockledger.core.exceptions import InsufficientStockError
from stockledger.core.services import (
    BulkAdjustmentService,
    LedgerService,
    ReorderAnalyticsService,
    StockMovementService,
    ValuationService,
)
from stockledger.infrastructure.storage.sqlite import (
    SQLiteAlertStore,
    SQLiteProductStore,
    SQLiteTransactionStore,
)
from stockledger.infrastructure.storage.sqlite import connection as conn_module
from stockledger.infrastructure.storage.sqlite.connection import close_pool
from stockledger.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture
async def sqlite_db(tmp_path):
    db_path = tmp_path / "flow.db"
    settings = MagicMock()
    settings.storage.db_path = db_path
    settings.storage.pool_size = 3
    settings.storage.busy_timeout = 5000

    conn_module._pool = None
    await initialize_database(db_path, create_backup_before=False)
    with patch.object(conn_module, "get_settings", return_value=settings):
        yield db_path
        await close_pool()


@pytest.fixture
def stores(sqlite_db):
    return SQLiteProductStore(), SQLiteTransactionStore(), SQLiteAlertStore()


@pytest.fixture
def flow_settings() -> InventorySettings:
    return InventorySettings(
        conflict_max_attempts=10,
        conflict_retry_delay=0.0,
        conflict_retry_max_delay=0.0,
    )


@pytest.fixture
def services(stores, flow_settings):
    products, transactions, alerts = stores
    movement = StockMovementService(products, transactions, flow_settings)
    return {
        "movement": movement,
        "reorder": ReorderAnalyticsService(products, transactions, alerts, flow_settings),
        "bulk": BulkAdjustmentService(movement, products, transactions, flow_settings),
        "valuation": ValuationService(products, transactions),
        "ledger": LedgerService(products, transactions),
    }


class TestInventoryFlow:
    """Register, move, alert, bulk-adjust, value and reconcile on one database."""

    async def test_full_flow(self, services):
        movement = services["movement"]

        await movement.register_product(
            ProductInventory(
                product_id="OIL",
                name="Lavender Essential Oil",
                category="Essential Oils",
                current_stock=100,
                weighted_average_cost=10.0,
                selling_price=25.0,
                reorder_point=20,
                reorder_quantity=50,
            )
        )
        await movement.register_product(
            ProductInventory(
                product_id="VIAL",
                name="Amber Vial",
                category="Packaging",
                current_stock=0,
                weighted_average_cost=2.0,
                reorder_point=4,
            )
        )

        # 100 @ 10 + 50 @ 25 -> WAC 15
        received = await movement.replenish("OIL", 50, 25.0, "buyer", supplier_id="SUP-1")
        assert received.new_stock == 150
        assert received.new_wac == 15.0

        sold = await movement.reduce_stock("OIL", 120, TransactionType.SALE, "till")
        assert sold.new_stock == 30
        assert sold.transaction.total_cost == -1800.0

        with pytest.raises(InsufficientStockError):
            await movement.reduce_stock("OIL", 31, TransactionType.SALE, "till")

        source, destination = await movement.transfer_stock("OIL", "VIAL", 5, "mover")
        assert source.new_stock == 25
        assert destination.new_stock == 5

        adjusted = await movement.adjust_inventory(
            "OIL", AdjustmentMode.DECREASE, 10, "Damaged", "counter"
        )
        assert adjusted.new_stock == 15

        # Only OIL is at or below its reorder point
        alerts = await services["reorder"].generate_alerts()
        assert [a.product_id for a in alerts] == ["OIL"]
        assert await services["reorder"].generate_alerts() == []
        resolved = await services["reorder"].resolve(alerts[0].id, "receiver")
        assert resolved.status is AlertStatus.RESOLVED
        assert await services["reorder"].get_active_alerts() == []

        sheet = (
            "Product ID,Adjustment Quantity,Unit Cost,Reason\n"
            "VIAL,+5,2.00,Recount\n"
            "GHOST,+1,1.00,Typo\n"
        )
        result = await services["bulk"].process_bulk_adjustments(sheet, "importer")
        assert result.successful == 1
        assert result.committed_rows == [1]
        assert result.errors[0].product_id == "GHOST"

        report = await services["valuation"].get_inventory_valuation()
        values = {i.product_id: i for i in report.items}
        assert values["OIL"].current_stock == 15
        assert values["VIAL"].current_stock == 10
        assert report.summary.total_units == 25

        for product_id in ("OIL", "VIAL"):
            status = await services["ledger"].reconcile(product_id)
            assert status.drift == 0
            assert status.needs_reconciliation is False

        history = await services["ledger"].get_transaction_history(product_id="OIL")
        assert history[0].running_total == 15
        assert [e.transaction.type for e in history] == [
            TransactionType.ADJUSTMENT,
            TransactionType.TRANSFER,
            TransactionType.SALE,
            TransactionType.PURCHASE,
        ]

    async def test_concurrent_sales_keep_ledger_balanced(self, services, stores):
        movement = services["movement"]
        await movement.register_product(
            ProductInventory(product_id="OIL", current_stock=20, weighted_average_cost=4.0)
        )

        await asyncio.gather(
            *(movement.reduce_stock("OIL", 2, TransactionType.SALE, f"till-{i}") for i in range(3))
        )

        products, transactions, _ = stores
        product = await products.get_product("OIL")
        ledger = await transactions.query_by_product("OIL")
        assert product.current_stock == 14
        assert product.version == 3
        assert len(ledger) == 3
        assert product.initial_stock + sum(t.quantity for t in ledger) == 14


class TestDefaultWiring:
    """Use cases built without a service fall back to the SQLite-backed factories."""

    @pytest.fixture(autouse=True)
    def fresh_services(self, sqlite_db):
        reset_services()
        yield
        reset_services()

    async def test_register_then_replenish(self):
        await RegisterProductUseCase().execute(
            RegisterProductRequest(product_id="OIL", current_stock=10, weighted_average_cost=2.0)
        )
        result = await ReplenishStockUseCase().execute(
            ReplenishStockRequest(product_id="OIL", quantity=10, unit_cost=4.0, actor_id="buyer")
        )

        assert result.new_stock == 20
        assert result.new_wac == 3.0
        status = await ReconcileLedgerUseCase().execute("OIL")
        assert status.drift == 0
