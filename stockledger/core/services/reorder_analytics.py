"""
Reorder analytics.

Derives usage figures from the transaction ledger, raises reorder alerts
for products at or below their reorder point and builds order
recommendations. Alert status transitions live here too.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from stockledger.config import get_logger, get_settings
from stockledger.config.settings import InventorySettings
from stockledger.core.entities.alert import (
    AlertPriority,
    AlertStatus,
    ReorderAlert,
    ReorderRecommendation,
    StockAnalytics,
)
from stockledger.core.entities.inventory import (
    ProductInventory,
    TransactionType,
    utc_now,
)
from stockledger.core.exceptions import AlertNotFoundError, InvalidInputError
from stockledger.core.interfaces import IAlertStore, IProductStore, ITransactionStore
from stockledger.core.services.cost_ledger import round_money

logger = get_logger(__name__)


class ReorderAnalyticsService:
    """Stock usage analytics and the reorder alert lifecycle."""

    def __init__(
        self,
        product_store: IProductStore,
        transaction_store: ITransactionStore,
        alert_store: IAlertStore,
        settings: InventorySettings | None = None,
    ):
        self._products = product_store
        self._transactions = transaction_store
        self._alerts = alert_store
        self._settings = settings or get_settings().inventory

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def get_stock_analytics(
        self, product: ProductInventory, now: datetime | None = None
    ) -> StockAnalytics:
        """
        Usage figures for one product.

        Average daily usage is units sold over the trailing usage window
        divided by the window length. With no usage, days of stock
        remaining is a large sentinel and no stockout date is predicted.
        """
        now = now or utc_now()
        window = self._settings.usage_window_days

        sales = await self._transactions.list_transactions(
            product_id=product.product_id,
            transaction_type=TransactionType.SALE,
            start=now - timedelta(days=window),
            end=now,
        )
        purchases = await self._transactions.list_transactions(
            product_id=product.product_id,
            transaction_type=TransactionType.PURCHASE,
            start=now - timedelta(days=self._settings.purchase_lookback_days),
            end=now,
        )

        usage = sum(abs(t.quantity) for t in sales) / window
        stock = product.current_stock

        if usage > 0:
            days_remaining = stock / usage
            stockout = now + timedelta(days=days_remaining)
        else:
            days_remaining = float(self._settings.no_usage_days)
            stockout = None

        return StockAnalytics(
            product_id=product.product_id,
            average_daily_usage=usage,
            days_of_stock_remaining=days_remaining,
            stock_turnover=usage * 365 / max(stock, 1),
            last_order_date=max((t.created_at for t in purchases), default=None),
            average_lead_time=self._settings.default_lead_time_days,
            predicted_stockout_date=stockout,
        )

    def calculate_priority(
        self, current_stock: int, reorder_point: int, analytics: StockAnalytics
    ) -> AlertPriority:
        if current_stock <= 0:
            return AlertPriority.CRITICAL
        if current_stock <= reorder_point * 0.5:
            return AlertPriority.HIGH
        if analytics.days_of_stock_remaining <= self._settings.high_priority_days:
            return AlertPriority.HIGH
        if current_stock <= reorder_point * 0.75:
            return AlertPriority.MEDIUM
        return AlertPriority.LOW

    @staticmethod
    def recommended_action(
        current_stock: int, reorder_point: int, analytics: StockAnalytics
    ) -> str:
        if current_stock <= 0:
            return "URGENT: Stock depleted. Place emergency order immediately."
        if analytics.days_of_stock_remaining <= 3:
            return "CRITICAL: Stock will run out in 3 days or less. Place urgent order."
        if analytics.days_of_stock_remaining <= 7:
            return "HIGH PRIORITY: Stock will run out within a week. Place order soon."
        if current_stock <= reorder_point:
            return "REORDER NEEDED: Stock below reorder point. Place standard order."
        return "MONITOR: Stock approaching reorder point. Prepare to order."

    def _reorder_quantity(self, product: ProductInventory) -> int:
        if product.reorder_quantity > 0:
            return product.reorder_quantity
        return max(product.reorder_point, self._settings.minimum_reorder_quantity)

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    async def generate_alerts(self, now: datetime | None = None) -> list[ReorderAlert]:
        """
        Raise one alert per active product at or below its reorder point.

        Products that already have an active alert are skipped.
        """
        now = now or utc_now()
        created: list[ReorderAlert] = []

        for product in await self._products.list_products(active_only=True):
            if product.current_stock > product.reorder_point:
                continue
            if await self._alerts.query_active_alerts(product.product_id):
                continue

            analytics = await self.get_stock_analytics(product, now)
            quantity = self._reorder_quantity(product)
            alert = ReorderAlert(
                product_id=product.product_id,
                product_name=product.name,
                current_stock=product.current_stock,
                reorder_point=product.reorder_point,
                reorder_quantity=quantity,
                priority=self.calculate_priority(
                    product.current_stock, product.reorder_point, analytics
                ),
                recommended_action=self.recommended_action(
                    product.current_stock, product.reorder_point, analytics
                ),
                estimated_cost=round_money(quantity * product.weighted_average_cost),
                suggested_supplier_id=product.supplier_id,
                alert_date=now,
            )
            created.append(await self._alerts.save_alert(alert))
            logger.info(
                "reorder_alert_created",
                alert_id=alert.id,
                product_id=product.product_id,
                priority=alert.priority.value,
                current_stock=product.current_stock,
            )

        logger.info("reorder_alerts_generated", created=len(created))
        return created

    async def get_active_alerts(self) -> list[ReorderAlert]:
        """Active alerts, most urgent and most recent first."""
        alerts = await self._alerts.query_active_alerts()
        alerts.sort(key=lambda a: a.alert_date, reverse=True)
        alerts.sort(key=lambda a: a.priority.rank, reverse=True)
        return alerts

    async def get_recommendations(
        self, now: datetime | None = None
    ) -> list[ReorderRecommendation]:
        """
        Order suggestions for products at or approaching their reorder point.

        Quantity covers safety stock plus lead-time demand, and is never
        below the product's reorder quantity.
        """
        now = now or utc_now()
        recommendations: list[ReorderRecommendation] = []

        for product in await self._products.list_products(active_only=True):
            threshold = product.reorder_point * self._settings.approaching_factor
            if product.current_stock > threshold:
                continue

            analytics = await self.get_stock_analytics(product, now)
            usage = analytics.average_daily_usage
            safety = math.ceil(usage * self._settings.safety_stock_days)
            lead_time_stock = math.ceil(usage * analytics.average_lead_time)
            quantity = max(self._reorder_quantity(product), safety + lead_time_stock)

            recommendations.append(
                ReorderRecommendation(
                    product_id=product.product_id,
                    product_name=product.name,
                    current_stock=product.current_stock,
                    recommended_quantity=quantity,
                    estimated_cost=round_money(quantity * product.weighted_average_cost),
                    priority=self.calculate_priority(
                        product.current_stock, product.reorder_point, analytics
                    ),
                    reason=self.recommended_action(
                        product.current_stock, product.reorder_point, analytics
                    ),
                    days_until_stockout=analytics.days_of_stock_remaining,
                    supplier_id=product.supplier_id,
                )
            )

        recommendations.sort(key=lambda r: (-r.priority.rank, r.days_until_stockout))
        return recommendations

    async def _get_alert(self, alert_id: str) -> ReorderAlert:
        alert = await self._alerts.get_alert(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        return alert

    async def _transition(
        self,
        alert_id: str,
        actor_id: str,
        target: AlertStatus,
        allowed_from: tuple[AlertStatus, ...],
        notes: str | None,
    ) -> ReorderAlert:
        if not actor_id or not actor_id.strip():
            raise InvalidInputError("Actor id is required")

        alert = await self._get_alert(alert_id)
        if alert.status not in allowed_from:
            logger.info(
                "alert_transition_skipped",
                alert_id=alert_id,
                status=alert.status.value,
                requested=target.value,
            )
            return alert

        now = utc_now()
        update: dict = {"status": target}
        if target is AlertStatus.ACKNOWLEDGED:
            update.update(acknowledged_by=actor_id, acknowledged_at=now)
        elif target is AlertStatus.ORDERED:
            update.update(ordered_by=actor_id, ordered_at=now)
        else:
            update.update(resolved_by=actor_id, resolved_at=now)
        if notes:
            update["notes"] = notes

        saved = await self._alerts.save_alert(alert.model_copy(update=update))
        logger.info(
            "alert_status_changed",
            alert_id=alert_id,
            previous=alert.status.value,
            status=target.value,
            actor=actor_id,
        )
        return saved

    async def acknowledge(
        self, alert_id: str, actor_id: str, notes: str | None = None
    ) -> ReorderAlert:
        """Mark an active alert as seen. A no-op for any later status."""
        return await self._transition(
            alert_id, actor_id, AlertStatus.ACKNOWLEDGED, (AlertStatus.ACTIVE,), notes
        )

    async def mark_ordered(
        self, alert_id: str, actor_id: str, notes: str | None = None
    ) -> ReorderAlert:
        return await self._transition(
            alert_id,
            actor_id,
            AlertStatus.ORDERED,
            (AlertStatus.ACTIVE, AlertStatus.ACKNOWLEDGED),
            notes,
        )

    async def resolve(
        self, alert_id: str, actor_id: str, notes: str | None = None
    ) -> ReorderAlert:
        """Close an alert. Resolving a resolved alert is a no-op."""
        return await self._transition(
            alert_id,
            actor_id,
            AlertStatus.RESOLVED,
            (AlertStatus.ACTIVE, AlertStatus.ACKNOWLEDGED, AlertStatus.ORDERED),
            notes,
        )
