"""
Dependency injection container for FastAPI.

Provides service and use case instances to route handlers.
"""

from functools import lru_cache

from stockledger.application.services import (
    get_bulk_adjustment_service,
    get_ledger_service,
    get_reorder_analytics_service,
    get_valuation_service,
)
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
from stockledger.config import Settings, get_settings
from stockledger.core.services import (
    BulkAdjustmentService,
    LedgerService,
    ReorderAnalyticsService,
    ValuationService,
)
from stockledger.infrastructure.storage.sqlite import (
    SQLiteProductStore,
    get_product_store,
)


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Service dependencies
async def get_reorder_service() -> ReorderAnalyticsService:
    return await get_reorder_analytics_service()


async def get_bulk_service() -> BulkAdjustmentService:
    return await get_bulk_adjustment_service()


async def get_valuation_svc() -> ValuationService:
    return await get_valuation_service()


async def get_ledger_svc() -> LedgerService:
    return await get_ledger_service()


# Store dependencies
async def get_products() -> SQLiteProductStore:
    """Get product store."""
    return await get_product_store()


# Use case dependencies
def get_register_product_use_case() -> RegisterProductUseCase:
    return RegisterProductUseCase()


def get_replenish_stock_use_case() -> ReplenishStockUseCase:
    """Get replenish stock use case."""
    return ReplenishStockUseCase()


def get_reduce_stock_use_case() -> ReduceStockUseCase:
    """Get reduce stock use case."""
    return ReduceStockUseCase()


def get_adjust_inventory_use_case() -> AdjustInventoryUseCase:
    return AdjustInventoryUseCase()


def get_add_transaction_use_case() -> AddTransactionUseCase:
    return AddTransactionUseCase()


def get_transfer_stock_use_case() -> TransferStockUseCase:
    return TransferStockUseCase()


def get_reconcile_ledger_use_case() -> ReconcileLedgerUseCase:
    return ReconcileLedgerUseCase()


def get_generate_alerts_use_case() -> GenerateReorderAlertsUseCase:
    return GenerateReorderAlertsUseCase()


def get_update_alert_status_use_case() -> UpdateAlertStatusUseCase:
    return UpdateAlertStatusUseCase()


def get_process_bulk_adjustments_use_case() -> ProcessBulkAdjustmentsUseCase:
    """Get bulk adjustment use case."""
    return ProcessBulkAdjustmentsUseCase()
