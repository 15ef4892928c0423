"""Entity to response DTO conversion shared by use cases and routes."""

from stockledger.application.dto.responses import (
    CostEntryResponse,
    ProductInventoryResponse,
    ReconciliationResponse,
    ReorderAlertResponse,
    StockMovementResponse,
    TransactionResponse,
)
from stockledger.core.entities.alert import ReorderAlert
from stockledger.core.entities.inventory import InventoryTransaction, ProductInventory
from stockledger.core.entities.valuation import LedgerReconciliation
from stockledger.core.services.stock_movement import StockMovementResult


def product_to_response(product: ProductInventory) -> ProductInventoryResponse:
    return ProductInventoryResponse(
        product_id=product.product_id,
        name=product.name,
        category=product.category,
        is_active=product.is_active,
        current_stock=product.current_stock,
        weighted_average_cost=product.weighted_average_cost,
        total_cost_value=product.total_cost_value,
        last_purchase_cost=product.last_purchase_cost,
        selling_price=product.selling_price,
        reorder_point=product.reorder_point,
        reorder_quantity=product.reorder_quantity,
        supplier_id=product.supplier_id,
        needs_reconciliation=product.needs_reconciliation,
        reconciliation_note=product.reconciliation_note,
        version=product.version,
        updated_at=product.updated_at,
        cost_history=[CostEntryResponse(**e.model_dump()) for e in product.cost_history],
    )


def transaction_to_response(transaction: InventoryTransaction) -> TransactionResponse:
    return TransactionResponse(**transaction.model_dump())


def movement_to_response(result: StockMovementResult) -> StockMovementResponse:
    return StockMovementResponse(
        product_id=result.product.product_id,
        new_stock=result.new_stock,
        new_wac=result.new_wac,
        total_cost_value=result.product.total_cost_value,
        transaction=transaction_to_response(result.transaction),
    )


def alert_to_response(alert: ReorderAlert) -> ReorderAlertResponse:
    return ReorderAlertResponse(**alert.model_dump())


def reconciliation_to_response(status: LedgerReconciliation) -> ReconciliationResponse:
    return ReconciliationResponse(**status.model_dump(), balanced=status.is_balanced)
