"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from stockledger.core.entities.alert import AlertPriority, AlertStatus
from stockledger.core.entities.inventory import TransactionType


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. PRODUCT_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)


class CostEntryResponse(BaseModel):
    date: datetime
    quantity: int
    unit_cost: float
    total_cost: float
    running_average: float
    supplier_id: str | None = None
    invoice_reference: str | None = None


class ProductInventoryResponse(BaseModel):
    """Product stock and cost basis."""

    product_id: str
    name: str
    category: str
    is_active: bool
    current_stock: int
    weighted_average_cost: float
    total_cost_value: float
    last_purchase_cost: float
    selling_price: float
    reorder_point: int
    reorder_quantity: int
    supplier_id: str | None = None
    needs_reconciliation: bool = False
    reconciliation_note: str | None = None
    version: int
    updated_at: datetime
    cost_history: list[CostEntryResponse] = Field(default_factory=list)


class TransactionResponse(BaseModel):
    id: str
    product_id: str
    type: TransactionType
    quantity: int
    unit_cost: float
    total_cost: float
    reference: str
    reason: str | None = None
    notes: str | None = None
    supplier_id: str | None = None
    counterpart_product_id: str | None = None
    created_by: str
    created_at: datetime


class StockMovementResponse(BaseModel):
    """Outcome of a recorded movement."""

    product_id: str
    new_stock: int
    new_wac: float
    total_cost_value: float
    transaction: TransactionResponse


class TransferStockResponse(BaseModel):
    source: StockMovementResponse
    destination: StockMovementResponse


class TransactionHistoryItemResponse(BaseModel):
    transaction: TransactionResponse
    running_total: int


class TransactionHistoryResponse(BaseModel):
    items: list[TransactionHistoryItemResponse]
    total: int


class ReconciliationResponse(BaseModel):
    product_id: str
    initial_stock: int
    ledger_total: int
    current_stock: int
    drift: int
    needs_reconciliation: bool
    transaction_count: int
    balanced: bool


class ReorderAlertResponse(BaseModel):
    id: str
    product_id: str
    product_name: str
    current_stock: int
    reorder_point: int
    reorder_quantity: int
    priority: AlertPriority
    status: AlertStatus
    recommended_action: str
    estimated_cost: float
    suggested_supplier_id: str | None = None
    alert_date: datetime
    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None
    ordered_by: str | None = None
    ordered_at: datetime | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    notes: str | None = None


class GenerateAlertsResponse(BaseModel):
    created: int
    alerts: list[ReorderAlertResponse]


class BulkRowErrorResponse(BaseModel):
    row: int
    product_id: str
    error: str
    partial: bool = False


class BulkOperationResponse(BaseModel):
    total: int
    successful: int
    failed: int
    errors: list[BulkRowErrorResponse]
    committed_rows: list[int]


class AdjustmentTemplateResponse(BaseModel):
    headers: list[str]
    sample_data: list[list[str]]
    instructions: list[str]


class PricingResponse(BaseModel):
    """Target-margin price against the current selling price."""

    product_id: str
    weighted_average_cost: float
    selling_price: float
    recommended_price: float
    minimum_price: float
    current_margin: float
    recommended_margin: float
    profit_per_unit: float
    is_profitable: bool
