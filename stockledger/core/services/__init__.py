"""Domain services."""

from stockledger.core.services.bulk_adjustment import BulkAdjustmentService
from stockledger.core.services.ledger_history import LedgerService
from stockledger.core.services.reorder_analytics import ReorderAnalyticsService
from stockledger.core.services.stock_movement import (
    MovementStage,
    StockMovementResult,
    StockMovementService,
)
from stockledger.core.services.valuation import ValuationService

__all__ = [
    "BulkAdjustmentService",
    "LedgerService",
    "MovementStage",
    "ReorderAnalyticsService",
    "StockMovementResult",
    "StockMovementService",
    "ValuationService",
]
