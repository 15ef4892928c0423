"""
Service factory functions for dependency injection.

Wires the SQLite stores into the domain services. Use cases and the API
import services from here rather than building them.
"""

from stockledger.core.services import (
    BulkAdjustmentService,
    LedgerService,
    ReorderAnalyticsService,
    StockMovementService,
    ValuationService,
)

_movement_service: StockMovementService | None = None
_reorder_service: ReorderAnalyticsService | None = None
_bulk_service: BulkAdjustmentService | None = None
_valuation_service: ValuationService | None = None
_ledger_service: LedgerService | None = None


async def get_stock_movement_service() -> StockMovementService:
    """Get or create the stock movement service."""
    global _movement_service
    if _movement_service is None:
        # Lazy import infrastructure to avoid circular imports
        from stockledger.infrastructure.storage.sqlite import (
            get_product_store,
            get_transaction_store,
        )

        _movement_service = StockMovementService(
            product_store=await get_product_store(),
            transaction_store=await get_transaction_store(),
        )
    return _movement_service


async def get_reorder_analytics_service() -> ReorderAnalyticsService:
    global _reorder_service
    if _reorder_service is None:
        from stockledger.infrastructure.storage.sqlite import (
            get_alert_store,
            get_product_store,
            get_transaction_store,
        )

        _reorder_service = ReorderAnalyticsService(
            product_store=await get_product_store(),
            transaction_store=await get_transaction_store(),
            alert_store=await get_alert_store(),
        )
    return _reorder_service


async def get_bulk_adjustment_service() -> BulkAdjustmentService:
    global _bulk_service
    if _bulk_service is None:
        from stockledger.infrastructure.storage.sqlite import (
            get_product_store,
            get_transaction_store,
        )

        _bulk_service = BulkAdjustmentService(
            movement_service=await get_stock_movement_service(),
            product_store=await get_product_store(),
            transaction_store=await get_transaction_store(),
        )
    return _bulk_service


async def get_valuation_service() -> ValuationService:
    global _valuation_service
    if _valuation_service is None:
        from stockledger.infrastructure.storage.sqlite import (
            get_product_store,
            get_transaction_store,
        )

        _valuation_service = ValuationService(
            product_store=await get_product_store(),
            transaction_store=await get_transaction_store(),
        )
    return _valuation_service


async def get_ledger_service() -> LedgerService:
    global _ledger_service
    if _ledger_service is None:
        from stockledger.infrastructure.storage.sqlite import (
            get_product_store,
            get_transaction_store,
        )

        _ledger_service = LedgerService(
            product_store=await get_product_store(),
            transaction_store=await get_transaction_store(),
        )
    return _ledger_service


def reset_services() -> None:
    """Drop cached services (for testing)."""
    global _movement_service, _reorder_service, _bulk_service
    global _valuation_service, _ledger_service
    _movement_service = None
    _reorder_service = None
    _bulk_service = None
    _valuation_service = None
    _ledger_service = None
