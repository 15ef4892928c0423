"""Core domain entities."""

from stockledger.core.entities.alert import (
    AlertPriority,
    AlertStatus,
    ReorderAlert,
    ReorderRecommendation,
    StockAnalytics,
)
from stockledger.core.entities.bulk import (
    BulkAdjustmentRow,
    BulkOperationResult,
    BulkRowError,
    RowErr,
    RowOk,
    RowResult,
)
from stockledger.core.entities.inventory import (
    AdjustmentMode,
    CostEntry,
    InventoryTransaction,
    ProductInventory,
    TransactionType,
    as_utc,
    utc_now,
)
from stockledger.core.entities.valuation import (
    CategoryValuation,
    InventoryValuationItem,
    InventoryValuationReport,
    LedgerReconciliation,
    MovementAnalysis,
    MovementItem,
    PeriodComparison,
    PeriodValue,
    TransactionHistoryEntry,
    ValuationSummary,
    VarianceAnalysis,
    VarianceImpact,
    VarianceSignificance,
)

__all__ = [
    # Inventory
    "AdjustmentMode",
    "CostEntry",
    "InventoryTransaction",
    "ProductInventory",
    "TransactionType",
    "as_utc",
    "utc_now",
    # Alerts
    "AlertPriority",
    "AlertStatus",
    "ReorderAlert",
    "ReorderRecommendation",
    "StockAnalytics",
    # Bulk
    "BulkAdjustmentRow",
    "BulkOperationResult",
    "BulkRowError",
    "RowErr",
    "RowOk",
    "RowResult",
    # Reports
    "CategoryValuation",
    "InventoryValuationItem",
    "InventoryValuationReport",
    "LedgerReconciliation",
    "MovementAnalysis",
    "MovementItem",
    "PeriodComparison",
    "PeriodValue",
    "TransactionHistoryEntry",
    "ValuationSummary",
    "VarianceAnalysis",
    "VarianceImpact",
    "VarianceSignificance",
]
