"""Inventory domain entities."""

import math
import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class TransactionType(str, Enum):
    """Kinds of ledger rows."""

    PURCHASE = "purchase"
    SALE = "sale"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"


class AdjustmentMode(str, Enum):
    """How an adjustment quantity is interpreted."""

    INCREASE = "increase"
    DECREASE = "decrease"
    CORRECTION = "correction"  # absolute target stock


class CostEntry(BaseModel):
    """One purchase in a product's cost history."""

    date: datetime = Field(default_factory=utc_now)
    quantity: int
    unit_cost: float
    total_cost: float
    running_average: float  # WAC after this entry
    supplier_id: str | None = None
    invoice_reference: str | None = None


class ProductInventory(BaseModel):
    """Stock level and cost basis for one product."""

    product_id: str
    name: str = ""
    category: str = "Uncategorized"
    is_active: bool = True

    current_stock: int = Field(default=0, ge=0)
    initial_stock: int = Field(default=0, ge=0)
    weighted_average_cost: float = Field(default=0.0, ge=0)
    total_cost_value: float = Field(default=0.0, ge=0)
    last_purchase_cost: float = Field(default=0.0, ge=0)
    selling_price: float = Field(default=0.0, ge=0)
    cost_history: list[CostEntry] = Field(default_factory=list)

    reorder_point: int = Field(default=0, ge=0)
    reorder_quantity: int = Field(default=0, ge=0)
    supplier_id: str | None = None

    version: int = 0
    needs_reconciliation: bool = False
    reconciliation_note: str | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.reorder_point

    @classmethod
    def from_legacy(
        cls,
        product_id: str,
        stock: int,
        cost_price: float,
        *,
        name: str = "",
        category: str = "Uncategorized",
        selling_price: float = 0.0,
        reorder_point: int | None = None,
        reorder_quantity: int | None = None,
        supplier_id: str | None = None,
    ) -> "ProductInventory":
        """
        Build an inventory record from a product that only carried a flat
        stock count and cost price.

        The legacy stock becomes the ledger's opening balance. Reorder
        thresholds default to 20% (min 5) and 50% (min 10) of that stock.
        """
        stock = max(int(stock), 0)
        cost_price = max(float(cost_price), 0.0)
        now = utc_now()

        history: list[CostEntry] = []
        if cost_price > 0:
            history.append(
                CostEntry(
                    date=now,
                    quantity=stock,
                    unit_cost=cost_price,
                    total_cost=round(stock * cost_price, 2),
                    running_average=cost_price,
                    supplier_id=supplier_id,
                    invoice_reference="Initial Migration",
                )
            )

        return cls(
            product_id=product_id,
            name=name,
            category=category,
            current_stock=stock,
            initial_stock=stock,
            weighted_average_cost=cost_price,
            total_cost_value=round(stock * cost_price, 2),
            last_purchase_cost=cost_price,
            selling_price=selling_price,
            cost_history=history,
            reorder_point=(
                reorder_point if reorder_point is not None else max(math.floor(stock * 0.2), 5)
            ),
            reorder_quantity=(
                reorder_quantity
                if reorder_quantity is not None
                else max(math.floor(stock * 0.5), 10)
            ),
            supplier_id=supplier_id,
            created_at=now,
            updated_at=now,
        )


class InventoryTransaction(BaseModel):
    """Immutable ledger row. Positive quantity means stock went up."""

    id: str = Field(default_factory=new_id)
    product_id: str
    type: TransactionType
    quantity: int
    unit_cost: float = 0.0
    total_cost: float = 0.0
    reference: str = ""
    reason: str | None = None
    notes: str | None = None
    supplier_id: str | None = None
    counterpart_product_id: str | None = None  # other side of a transfer
    created_by: str
    created_at: datetime = Field(default_factory=utc_now)
