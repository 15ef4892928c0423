"""Tests for ReorderAnalyticsService."""

from datetime import timedelta

import pytest

from stockledger.core.entities.alert import AlertPriority, AlertStatus, StockAnalytics
from stockledger.core.entities.inventory import InventoryTransaction, TransactionType
from stockledger.core.exceptions import AlertNotFoundError, InvalidInputError


def seed(transaction_store, product_id, kind, quantity, when):
    transaction_store.transactions.append(
        InventoryTransaction(
            product_id=product_id,
            type=kind,
            quantity=quantity,
            created_by="seed",
            created_at=when,
        )
    )


def analytics(days: float) -> StockAnalytics:
    return StockAnalytics(product_id="P", days_of_stock_remaining=days)


class TestStockAnalytics:
    async def test_usage_from_sales_in_window(
        self, reorder_service, make_product, transaction_store, now
    ):
        product = make_product(stock=20)
        seed(transaction_store, "PROD001", TransactionType.SALE, -45, now - timedelta(days=5))
        seed(transaction_store, "PROD001", TransactionType.SALE, -15, now - timedelta(days=29))
        seed(transaction_store, "PROD001", TransactionType.SALE, -500, now - timedelta(days=40))
        seed(transaction_store, "PROD001", TransactionType.PURCHASE, 80, now - timedelta(days=10))

        result = await reorder_service.get_stock_analytics(product, now)

        assert result.average_daily_usage == 2.0
        assert result.days_of_stock_remaining == 10.0
        assert result.predicted_stockout_date == now + timedelta(days=10)
        assert result.stock_turnover == pytest.approx(36.5)
        assert result.last_order_date == now - timedelta(days=10)
        assert result.average_lead_time == 7

    async def test_no_usage_uses_sentinel(self, reorder_service, make_product, now):
        result = await reorder_service.get_stock_analytics(make_product(stock=20), now)
        assert result.average_daily_usage == 0
        assert result.days_of_stock_remaining == 999
        assert result.predicted_stockout_date is None
        assert result.last_order_date is None


class TestPriorityAndAction:
    @pytest.mark.parametrize(
        "stock,reorder_point,days,expected",
        [
            (0, 10, 999, AlertPriority.CRITICAL),
            (5, 10, 999, AlertPriority.HIGH),
            (9, 10, 6, AlertPriority.HIGH),
            (7, 10, 999, AlertPriority.MEDIUM),
            (9, 10, 999, AlertPriority.LOW),
        ],
    )
    def test_priority(self, reorder_service, stock, reorder_point, days, expected):
        assert reorder_service.calculate_priority(stock, reorder_point, analytics(days)) is expected

    @pytest.mark.parametrize(
        "stock,days,prefix",
        [
            (0, 999, "URGENT"),
            (5, 2, "CRITICAL"),
            (5, 6, "HIGH PRIORITY"),
            (5, 30, "REORDER NEEDED"),
            (12, 30, "MONITOR"),
        ],
    )
    def test_recommended_action(self, reorder_service, stock, days, prefix):
        action = reorder_service.recommended_action(stock, 10, analytics(days))
        assert action.startswith(prefix)


class TestGenerateAlerts:
    async def test_alerts_for_products_at_reorder_point(
        self, reorder_service, registered, make_product, alert_store
    ):
        await registered(
            make_product("EMPTY", stock=0, wac=4.0, reorder_point=10, reorder_quantity=25),
            make_product("LOW", stock=8, wac=2.0, reorder_point=10),
            make_product("PLENTY", stock=50, reorder_point=10),
            make_product("RETIRED", stock=0, reorder_point=10, is_active=False),
        )

        alerts = await reorder_service.generate_alerts()

        by_product = {a.product_id: a for a in alerts}
        assert set(by_product) == {"EMPTY", "LOW"}
        assert by_product["EMPTY"].priority is AlertPriority.CRITICAL
        assert by_product["EMPTY"].reorder_quantity == 25
        assert by_product["EMPTY"].estimated_cost == 100.0
        assert by_product["LOW"].reorder_quantity == 10
        assert by_product["LOW"].status is AlertStatus.ACTIVE
        assert len(alert_store.alerts) == 2

    async def test_existing_active_alert_not_duplicated(
        self, reorder_service, registered, make_product, alert_store
    ):
        await registered(make_product(stock=0, reorder_point=10))

        first = await reorder_service.generate_alerts()
        second = await reorder_service.generate_alerts()

        assert len(first) == 1
        assert second == []
        assert len(alert_store.alerts) == 1

    async def test_resolved_alert_allows_new_one(
        self, reorder_service, registered, make_product
    ):
        await registered(make_product(stock=0, reorder_point=10))
        [alert] = await reorder_service.generate_alerts()
        await reorder_service.resolve(alert.id, "buyer")

        again = await reorder_service.generate_alerts()

        assert len(again) == 1
        assert again[0].id != alert.id

    async def test_active_alerts_most_urgent_first(
        self, reorder_service, registered, make_product
    ):
        await registered(
            make_product("A", stock=9, reorder_point=10),
            make_product("B", stock=0, reorder_point=10),
        )
        await reorder_service.generate_alerts()

        active = await reorder_service.get_active_alerts()

        assert [a.product_id for a in active] == ["B", "A"]


class TestRecommendations:
    async def test_includes_products_approaching_reorder_point(
        self, reorder_service, registered, make_product, transaction_store, now
    ):
        await registered(
            make_product("NEAR", stock=11, reorder_point=10, reorder_quantity=20),
            make_product("FAR", stock=13, reorder_point=10),
            make_product("FAST", stock=10, wac=3.0, reorder_point=10, reorder_quantity=5),
        )
        seed(transaction_store, "FAST", TransactionType.SALE, -60, now - timedelta(days=3))

        recommendations = await reorder_service.get_recommendations(now)

        assert [r.product_id for r in recommendations] == ["FAST", "NEAR"]
        fast, near = recommendations
        # usage 2/day: 14 safety + 14 lead time
        assert fast.recommended_quantity == 28
        assert fast.estimated_cost == 84.0
        assert fast.priority is AlertPriority.HIGH
        assert fast.days_until_stockout == 5.0
        assert near.recommended_quantity == 20
        assert near.priority is AlertPriority.LOW


class TestAlertTransitions:
    @pytest.fixture
    async def alert(self, reorder_service, registered, make_product):
        await registered(make_product(stock=0, reorder_point=10))
        [alert] = await reorder_service.generate_alerts()
        return alert

    async def test_full_lifecycle(self, reorder_service, alert):
        acknowledged = await reorder_service.acknowledge(alert.id, "clerk", notes="seen")
        assert acknowledged.status is AlertStatus.ACKNOWLEDGED
        assert acknowledged.acknowledged_by == "clerk"
        assert acknowledged.acknowledged_at is not None
        assert acknowledged.notes == "seen"

        ordered = await reorder_service.mark_ordered(alert.id, "buyer")
        assert ordered.status is AlertStatus.ORDERED
        assert ordered.ordered_by == "buyer"

        resolved = await reorder_service.resolve(alert.id, "receiver")
        assert resolved.status is AlertStatus.RESOLVED
        assert resolved.resolved_by == "receiver"
        assert await reorder_service.get_active_alerts() == []

    async def test_order_directly_from_active(self, reorder_service, alert):
        ordered = await reorder_service.mark_ordered(alert.id, "buyer")
        assert ordered.status is AlertStatus.ORDERED
        assert ordered.acknowledged_by is None

    async def test_backward_transition_is_noop(self, reorder_service, alert, alert_store):
        await reorder_service.mark_ordered(alert.id, "buyer")

        result = await reorder_service.acknowledge(alert.id, "clerk")

        assert result.status is AlertStatus.ORDERED
        assert result.acknowledged_by is None
        assert alert_store.alerts[alert.id].status is AlertStatus.ORDERED

    async def test_resolve_twice_keeps_first_resolution(self, reorder_service, alert):
        first = await reorder_service.resolve(alert.id, "a")
        second = await reorder_service.resolve(alert.id, "b")
        assert second.resolved_by == "a"
        assert second.resolved_at == first.resolved_at

    async def test_unknown_alert(self, reorder_service):
        with pytest.raises(AlertNotFoundError):
            await reorder_service.acknowledge("missing", "clerk")

    async def test_actor_required(self, reorder_service, alert):
        with pytest.raises(InvalidInputError):
            await reorder_service.resolve(alert.id, "")
