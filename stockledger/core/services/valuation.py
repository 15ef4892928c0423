"""
Inventory valuation and variance reporting.

Read-only aggregation over product state, cost history and the ledger.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta

from stockledger.config import get_logger
from stockledger.core.entities.inventory import (
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
    MovementAnalysis,
    MovementItem,
    PeriodComparison,
    PeriodValue,
    ValuationSummary,
    VarianceAnalysis,
    VarianceImpact,
    VarianceSignificance,
)
from stockledger.core.exceptions import InvalidInputError
from stockledger.core.interfaces import IProductStore, ITransactionStore
from stockledger.core.services.cost_ledger import margin_percent, round_money

logger = get_logger(__name__)

FAST_MOVING_DAYS = 30
SLOW_MOVING_DAYS = 180
DEAD_STOCK_DAYS = 365
TOP_PRODUCTS = 10


def wac_as_of(product: ProductInventory, as_of: datetime) -> float:
    """
    Cost basis at a point in time.

    The running average of the last cost entry dated on or before
    ``as_of``; the current WAC when no entry is that old.
    """
    entries = [e for e in product.cost_history if e.date <= as_of]
    if not entries:
        return product.weighted_average_cost
    return max(entries, key=lambda e: e.date).running_average


def classify_variance(variance_percent: float) -> VarianceSignificance:
    magnitude = abs(variance_percent)
    if magnitude > 20:
        return VarianceSignificance.HIGH
    if magnitude > 10:
        return VarianceSignificance.MEDIUM
    return VarianceSignificance.LOW


def _percent(part: float, whole: float) -> float:
    return round_money(part / whole * 100) if whole else 0.0


class ValuationService:
    """Valuation, variance, period and movement reports."""

    def __init__(
        self,
        product_store: IProductStore,
        transaction_store: ITransactionStore,
    ):
        self._products = product_store
        self._transactions = transaction_store

    def _value_item(
        self, product: ProductInventory, sales: list[InventoryTransaction]
    ) -> InventoryValuationItem:
        wac = product.weighted_average_cost
        value = round_money(product.current_stock * wac)
        units_sold = sum(abs(t.quantity) for t in sales)
        cogs = round_money(sum(abs(t.total_cost) for t in sales))
        revenue = round_money(units_sold * product.selling_price)
        turnover = cogs / value if value > 0 else 0.0
        last_cost = product.last_purchase_cost or wac
        variance = round_money(wac - last_cost)

        return InventoryValuationItem(
            product_id=product.product_id,
            product_name=product.name,
            category=product.category,
            current_stock=product.current_stock,
            weighted_average_cost=wac,
            total_value=value,
            last_purchase_cost=last_cost,
            cost_variance=variance,
            cost_variance_percent=_percent(variance, last_cost),
            selling_price=product.selling_price,
            profit_margin=margin_percent(product.selling_price, wac),
            units_sold=units_sold,
            sales_revenue=revenue,
            cost_of_goods_sold=cogs,
            total_profit=round_money(revenue - cogs),
            turnover_ratio=round(turnover, 4),
            days_in_inventory=round(365 / turnover, 1) if turnover > 0 else 365.0,
            is_low_stock=product.is_low_stock,
        )

    async def get_inventory_valuation(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> InventoryValuationReport:
        """
        Value every active product that has stock on hand.

        Sales figures and turnover use sale rows inside [start, end]
        (the whole ledger when no range is given).
        """
        start, end = as_utc(start), as_utc(end)
        if start and end and start > end:
            raise InvalidInputError("Start date must be before end date")

        products = await self._products.list_products(active_only=True)
        sales: dict[str, list[InventoryTransaction]] = defaultdict(list)
        for t in await self._transactions.list_transactions(
            transaction_type=TransactionType.SALE, start=start, end=end
        ):
            sales[t.product_id].append(t)

        items = [
            self._value_item(p, sales.get(p.product_id, []))
            for p in products
            if p.current_stock > 0
        ]
        items.sort(key=lambda i: i.total_value, reverse=True)

        total_value = round_money(sum(i.total_value for i in items))
        revenue = sum(i.sales_revenue for i in items)
        profit = sum(i.total_profit for i in items)
        count = len(items)

        summary = ValuationSummary(
            total_inventory_value=total_value,
            total_products=count,
            total_units=sum(i.current_stock for i in items),
            average_wac=round_money(sum(i.weighted_average_cost for i in items) / count)
            if count
            else 0.0,
            low_stock_count=sum(1 for p in products if p.is_low_stock),
            average_cost_variance_percent=round_money(
                sum(abs(i.cost_variance_percent) for i in items) / count
            )
            if count
            else 0.0,
            total_profit_margin=_percent(profit, revenue),
            average_turnover=round(sum(i.turnover_ratio for i in items) / count, 4)
            if count
            else 0.0,
            slow_moving_items=sum(1 for i in items if i.days_in_inventory > SLOW_MOVING_DAYS),
            fast_moving_items=sum(1 for i in items if i.days_in_inventory <= FAST_MOVING_DAYS),
        )

        logger.info(
            "inventory_valuation_computed",
            products=count,
            total_value=total_value,
        )
        return InventoryValuationReport(
            period_start=start,
            period_end=end,
            items=items,
            summary=summary,
            categories=self._category_breakdown(items, total_value),
            top_products=items[:TOP_PRODUCTS],
        )

    @staticmethod
    def _category_breakdown(
        items: list[InventoryValuationItem], total_value: float
    ) -> list[CategoryValuation]:
        grouped: dict[str, list[InventoryValuationItem]] = defaultdict(list)
        for item in items:
            grouped[item.category].append(item)

        categories = [
            CategoryValuation(
                category=category,
                product_count=len(members),
                total_units=sum(m.current_stock for m in members),
                total_value=round_money(sum(m.total_value for m in members)),
                average_wac=round_money(
                    sum(m.weighted_average_cost for m in members) / len(members)
                ),
                percentage_of_total=_percent(sum(m.total_value for m in members), total_value),
            )
            for category, members in grouped.items()
        ]
        categories.sort(key=lambda c: c.total_value, reverse=True)
        return categories

    async def get_variance_analysis(
        self, current_as_of: datetime, previous_as_of: datetime
    ) -> list[VarianceAnalysis]:
        """WAC movement per product between two dates, largest change first."""
        current_as_of, previous_as_of = as_utc(current_as_of), as_utc(previous_as_of)
        if previous_as_of > current_as_of:
            raise InvalidInputError("Previous date must not be after current date")

        results: list[VarianceAnalysis] = []
        for product in await self._products.list_products(active_only=True):
            previous = wac_as_of(product, previous_as_of)
            current = wac_as_of(product, current_as_of)
            if previous <= 0:
                continue
            variance = round_money(current - previous)
            percent = _percent(variance, previous)
            if variance > 0:
                impact = VarianceImpact.NEGATIVE
            elif variance < 0:
                impact = VarianceImpact.POSITIVE
            else:
                impact = VarianceImpact.NEUTRAL
            results.append(
                VarianceAnalysis(
                    product_id=product.product_id,
                    product_name=product.name,
                    current_wac=current,
                    previous_wac=previous,
                    variance=variance,
                    variance_percent=percent,
                    impact=impact,
                    significance=classify_variance(percent),
                )
            )

        results.sort(key=lambda r: abs(r.variance_percent), reverse=True)
        return results

    async def get_period_comparison(
        self, periods: list[tuple[str, datetime]]
    ) -> PeriodComparison:
        """
        Inventory value at each period end, with change from the prior period.

        Stock at a date is replayed from the ledger; cost basis is taken
        from the cost history as of that date.
        """
        if not periods:
            raise InvalidInputError("At least one period is required")

        products = await self._products.list_products(active_only=True)
        ledgers = {
            p.product_id: await self._transactions.query_by_product(p.product_id)
            for p in products
        }

        values: list[PeriodValue] = []
        normalized = [(label, as_utc(as_of)) for label, as_of in periods]
        for label, as_of in sorted(normalized, key=lambda p: p[1]):
            total_value = 0.0
            total_units = 0
            for product in products:
                if product.created_at > as_of:
                    continue
                stock = product.initial_stock + sum(
                    t.quantity for t in ledgers[product.product_id] if t.created_at <= as_of
                )
                stock = max(stock, 0)
                total_units += stock
                total_value += stock * wac_as_of(product, as_of)

            value = PeriodValue(
                label=label,
                as_of=as_of,
                total_value=round_money(total_value),
                total_units=total_units,
            )
            if values:
                prior = values[-1].total_value
                value.change_amount = round_money(value.total_value - prior)
                value.change_percent = _percent(value.change_amount, prior)
            values.append(value)

        return PeriodComparison(periods=values)

    async def get_movement_analysis(self) -> MovementAnalysis:
        """Bucket stocked products by days of inventory on hand."""
        report = await self.get_inventory_valuation()

        def entry(item: InventoryValuationItem) -> MovementItem:
            return MovementItem(
                product_id=item.product_id,
                product_name=item.product_name,
                current_stock=item.current_stock,
                total_value=item.total_value,
                days_in_inventory=item.days_in_inventory,
            )

        fast = [entry(i) for i in report.items if i.days_in_inventory <= FAST_MOVING_DAYS]
        slow = [
            entry(i)
            for i in report.items
            if SLOW_MOVING_DAYS < i.days_in_inventory <= DEAD_STOCK_DAYS
        ]
        dead = [entry(i) for i in report.items if i.days_in_inventory > DEAD_STOCK_DAYS]

        fast.sort(key=lambda m: m.days_in_inventory)
        slow.sort(key=lambda m: m.days_in_inventory, reverse=True)
        dead.sort(key=lambda m: m.total_value, reverse=True)

        return MovementAnalysis(
            fast_moving=fast,
            slow_moving=slow,
            dead_stock=dead,
            dead_stock_value=round_money(sum(m.total_value for m in dead)),
        )


def default_periods(now: datetime | None = None, months: int = 3) -> list[tuple[str, datetime]]:
    """Month-end-ish snapshots: now and every 30 days back."""
    now = now or utc_now()
    return [
        (f"T-{30 * i}d" if i else "Now", now - timedelta(days=30 * i))
        for i in range(months, -1, -1)
    ]
