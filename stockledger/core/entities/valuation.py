"""Valuation, variance and ledger report entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from stockledger.core.entities.inventory import InventoryTransaction, utc_now


class InventoryValuationItem(BaseModel):
    product_id: str
    product_name: str
    category: str
    current_stock: int
    weighted_average_cost: float
    total_value: float
    last_purchase_cost: float
    cost_variance: float  # WAC - last purchase cost
    cost_variance_percent: float
    selling_price: float
    profit_margin: float
    units_sold: int = 0
    sales_revenue: float = 0.0
    cost_of_goods_sold: float = 0.0
    total_profit: float = 0.0
    turnover_ratio: float = 0.0
    days_in_inventory: float = 365.0
    is_low_stock: bool = False


class ValuationSummary(BaseModel):
    total_inventory_value: float = 0.0
    total_products: int = 0
    total_units: int = 0
    average_wac: float = 0.0
    low_stock_count: int = 0
    average_cost_variance_percent: float = 0.0
    total_profit_margin: float = 0.0
    average_turnover: float = 0.0
    slow_moving_items: int = 0
    fast_moving_items: int = 0


class CategoryValuation(BaseModel):
    category: str
    product_count: int
    total_units: int
    total_value: float
    average_wac: float
    percentage_of_total: float


class InventoryValuationReport(BaseModel):
    generated_at: datetime = Field(default_factory=utc_now)
    period_start: datetime | None = None
    period_end: datetime | None = None
    items: list[InventoryValuationItem] = Field(default_factory=list)
    summary: ValuationSummary = Field(default_factory=ValuationSummary)
    categories: list[CategoryValuation] = Field(default_factory=list)
    top_products: list[InventoryValuationItem] = Field(default_factory=list)


class VarianceImpact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class VarianceSignificance(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class VarianceAnalysis(BaseModel):
    product_id: str
    product_name: str
    current_wac: float
    previous_wac: float
    variance: float
    variance_percent: float
    impact: VarianceImpact
    significance: VarianceSignificance


class PeriodValue(BaseModel):
    label: str
    as_of: datetime
    total_value: float
    total_units: int
    change_amount: float = 0.0
    change_percent: float = 0.0


class PeriodComparison(BaseModel):
    periods: list[PeriodValue] = Field(default_factory=list)


class MovementItem(BaseModel):
    product_id: str
    product_name: str
    current_stock: int
    total_value: float
    days_in_inventory: float


class MovementAnalysis(BaseModel):
    fast_moving: list[MovementItem] = Field(default_factory=list)
    slow_moving: list[MovementItem] = Field(default_factory=list)
    dead_stock: list[MovementItem] = Field(default_factory=list)
    dead_stock_value: float = 0.0


class TransactionHistoryEntry(BaseModel):
    transaction: InventoryTransaction
    running_total: int


class LedgerReconciliation(BaseModel):
    product_id: str
    initial_stock: int
    ledger_total: int  # initial_stock + sum of quantities
    current_stock: int
    drift: int  # current_stock - ledger_total
    needs_reconciliation: bool
    transaction_count: int

    @property
    def is_balanced(self) -> bool:
        return self.drift == 0
