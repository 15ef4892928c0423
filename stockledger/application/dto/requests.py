"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from stockledger.core.entities.inventory import AdjustmentMode, TransactionType


class ActorRequest(BaseModel):
    actor_id: str = Field(..., min_length=1, description="Who performs the change")


class RegisterProductRequest(BaseModel):
    """Create an inventory record for a product."""

    product_id: str = Field(..., min_length=1, description="Externally assigned product ID")
    name: str = Field(default="", description="Display name")
    category: str = Field(default="Uncategorized")
    current_stock: int = Field(default=0, ge=0, description="Opening stock")
    weighted_average_cost: float = Field(default=0.0, ge=0, description="Opening unit cost")
    selling_price: float = Field(default=0.0, ge=0)
    reorder_point: int | None = Field(default=None, ge=0)
    reorder_quantity: int | None = Field(default=None, ge=0)
    supplier_id: str | None = None
    legacy: bool = Field(
        default=False,
        description=(
            "Treat stock and cost as legacy flat fields: seeds cost history and "
            "derives reorder thresholds when not given"
        ),
    )


class ReplenishStockRequest(ActorRequest):
    """Receive purchased units."""

    product_id: str = Field(..., description="Product ID")
    quantity: int = Field(..., gt=0, description="Units received")
    unit_cost: float = Field(..., ge=0, description="Cost per unit")
    supplier_id: str | None = Field(default=None, description="Supplier of this lot")
    invoice_reference: str | None = Field(default=None, description="Supplier invoice number")
    notes: str | None = None


class ReduceStockRequest(ActorRequest):
    """Remove units as a sale or an outbound adjustment."""

    product_id: str
    quantity: int = Field(..., gt=0, description="Units removed")
    type: TransactionType = Field(
        default=TransactionType.SALE, description="sale or adjustment"
    )
    reference: str | None = Field(default=None, description="Order or document reference")
    notes: str | None = None


class AdjustInventoryRequest(ActorRequest):
    """Correct stock outside the purchase/sale flow."""

    product_id: str
    mode: AdjustmentMode
    quantity: int = Field(..., ge=0, description="Units, or target stock for correction")
    reason: str = Field(..., min_length=1)
    unit_cost: float | None = Field(default=None, ge=0)
    notes: str | None = None


class AddTransactionRequest(ActorRequest):
    """Quick entry from scanners: type decides the movement."""

    product_id: str
    type: str = Field(..., description="purchase, sale or adjustment")
    quantity: int = Field(..., description="Units; sign selects adjustment direction")
    unit_price: float = Field(default=0.0, ge=0)
    reason: str | None = None
    notes: str | None = None


class TransferStockRequest(ActorRequest):
    source_product_id: str
    destination_product_id: str
    quantity: int = Field(..., gt=0)
    reference: str | None = None
    notes: str | None = None


class AlertActionRequest(ActorRequest):
    notes: str | None = None


class BulkAdjustmentRequest(ActorRequest):
    """Adjustment sheet submitted as CSV text."""

    content: str = Field(..., description="CSV text with a header row")


class PeriodRequest(BaseModel):
    label: str
    as_of: datetime


class PeriodComparisonRequest(BaseModel):
    periods: list[PeriodRequest] = Field(..., min_length=1)
