"""API fixtures: the app wired to in-memory stores through dependency overrides."""

import pytest
from httpx import ASGITransport, AsyncClient

from stockledger.api import dependencies as deps
from stockledger.api.main import app
from stockledger.application.use_cases import (
    AddTransactionUseCase,
    AdjustInventoryUseCase,
    GenerateReorderAlertsUseCase,
    ProcessBulkAdjustmentsUseCase,
    ReconcileLedgerUseCase,
    ReduceStockUseCase,
    RegisterProductUseCase,
    ReplenishStockUseCase,
    TransferStockUseCase,
    UpdateAlertStatusUseCase,
)


@pytest.fixture
def overrides(
    product_store,
    movement_service,
    reorder_service,
    bulk_service,
    valuation_service,
    ledger_service,
):
    return {
        deps.get_products: lambda: product_store,
        deps.get_reorder_service: lambda: reorder_service,
        deps.get_bulk_service: lambda: bulk_service,
        deps.get_valuation_svc: lambda: valuation_service,
        deps.get_ledger_svc: lambda: ledger_service,
        deps.get_register_product_use_case: lambda: RegisterProductUseCase(movement_service),
        deps.get_replenish_stock_use_case: lambda: ReplenishStockUseCase(movement_service),
        deps.get_reduce_stock_use_case: lambda: ReduceStockUseCase(movement_service),
        deps.get_adjust_inventory_use_case: lambda: AdjustInventoryUseCase(movement_service),
        deps.get_add_transaction_use_case: lambda: AddTransactionUseCase(movement_service),
        deps.get_transfer_stock_use_case: lambda: TransferStockUseCase(movement_service),
        deps.get_reconcile_ledger_use_case: lambda: ReconcileLedgerUseCase(ledger_service),
        deps.get_generate_alerts_use_case: lambda: GenerateReorderAlertsUseCase(reorder_service),
        deps.get_update_alert_status_use_case: lambda: UpdateAlertStatusUseCase(reorder_service),
        deps.get_process_bulk_adjustments_use_case: lambda: ProcessBulkAdjustmentsUseCase(
            bulk_service
        ),
    }


@pytest.fixture
async def client(overrides):
    app.dependency_overrides.update(overrides)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    for dependency in overrides:
        app.dependency_overrides.pop(dependency, None)
