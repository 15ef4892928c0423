"""Reorder alert and stock analytics entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from stockledger.core.entities.inventory import new_id, utc_now


class AlertPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    AlertPriority.LOW: 1,
    AlertPriority.MEDIUM: 2,
    AlertPriority.HIGH: 3,
    AlertPriority.CRITICAL: 4,
}


class AlertStatus(str, Enum):
    ACTIVE = "active"
    ACKNOWLEDGED = "acknowledged"
    ORDERED = "ordered"
    RESOLVED = "resolved"


class ReorderAlert(BaseModel):
    """A product that has fallen to or below its reorder point."""

    id: str = Field(default_factory=new_id)
    product_id: str
    product_name: str = ""
    current_stock: int
    reorder_point: int
    reorder_quantity: int
    priority: AlertPriority
    status: AlertStatus = AlertStatus.ACTIVE
    recommended_action: str = ""
    estimated_cost: float = 0.0
    suggested_supplier_id: str | None = None
    alert_date: datetime = Field(default_factory=utc_now)

    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None
    ordered_by: str | None = None
    ordered_at: datetime | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    notes: str | None = None


class StockAnalytics(BaseModel):
    """Usage-derived figures for one product."""

    product_id: str
    average_daily_usage: float = 0.0
    days_of_stock_remaining: float = 0.0
    stock_turnover: float = 0.0
    last_order_date: datetime | None = None
    average_lead_time: int = 7
    predicted_stockout_date: datetime | None = None


class ReorderRecommendation(BaseModel):
    """Suggested order for a product at or approaching its reorder point."""

    product_id: str
    product_name: str = ""
    current_stock: int
    recommended_quantity: int
    estimated_cost: float
    priority: AlertPriority
    reason: str
    days_until_stockout: float
    supplier_id: str | None = None
