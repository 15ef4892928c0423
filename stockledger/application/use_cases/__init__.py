"""Application use cases."""

from stockledger.application.use_cases.add_transaction import AddTransactionUseCase
from stockledger.application.use_cases.adjust_inventory import AdjustInventoryUseCase
from stockledger.application.use_cases.manage_reorder_alerts import (
    GenerateReorderAlertsUseCase,
    UpdateAlertStatusUseCase,
)
from stockledger.application.use_cases.process_bulk_adjustments import (
    ProcessBulkAdjustmentsUseCase,
)
from stockledger.application.use_cases.reconcile_ledger import ReconcileLedgerUseCase
from stockledger.application.use_cases.reduce_stock import ReduceStockUseCase
from stockledger.application.use_cases.register_product import RegisterProductUseCase
from stockledger.application.use_cases.replenish_stock import ReplenishStockUseCase
from stockledger.application.use_cases.transfer_stock import TransferStockUseCase

__all__ = [
    "AddTransactionUseCase",
    "AdjustInventoryUseCase",
    "GenerateReorderAlertsUseCase",
    "ProcessBulkAdjustmentsUseCase",
    "ReconcileLedgerUseCase",
    "ReduceStockUseCase",
    "RegisterProductUseCase",
    "ReplenishStockUseCase",
    "TransferStockUseCase",
    "UpdateAlertStatusUseCase",
]
