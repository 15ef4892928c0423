"""SQLite implementation of reorder alert storage."""

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.alert import AlertPriority, AlertStatus, ReorderAlert
from stockledger.core.interfaces.alert_store import IAlertStore
from stockledger.infrastructure.storage.sqlite.connection import (
    from_db_time,
    get_connection,
    get_transaction,
    to_db_time,
    translate_errors,
)

logger = get_logger(__name__)


def _opt_time(value):
    return to_db_time(value) if value else None


class SQLiteAlertStore(IAlertStore):
    async def get_alert(self, alert_id: str) -> ReorderAlert | None:
        async with translate_errors("get_alert"), get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM reorder_alerts WHERE id = ?", (alert_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_alert(row) if row else None

    async def save_alert(self, alert: ReorderAlert) -> ReorderAlert:
        async with translate_errors("save_alert"), get_transaction() as conn:
            await conn.execute(
                """
                INSERT OR REPLACE INTO reorder_alerts (
                    id, product_id, product_name, current_stock, reorder_point,
                    reorder_quantity, priority, status, recommended_action,
                    estimated_cost, suggested_supplier_id, alert_date,
                    acknowledged_by, acknowledged_at, ordered_by, ordered_at,
                    resolved_by, resolved_at, notes
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    alert.id,
                    alert.product_id,
                    alert.product_name,
                    alert.current_stock,
                    alert.reorder_point,
                    alert.reorder_quantity,
                    alert.priority.value,
                    alert.status.value,
                    alert.recommended_action,
                    alert.estimated_cost,
                    alert.suggested_supplier_id,
                    to_db_time(alert.alert_date),
                    alert.acknowledged_by,
                    _opt_time(alert.acknowledged_at),
                    alert.ordered_by,
                    _opt_time(alert.ordered_at),
                    alert.resolved_by,
                    _opt_time(alert.resolved_at),
                    alert.notes,
                ),
            )
        logger.debug("alert_saved", alert_id=alert.id, status=alert.status.value)
        return alert

    async def query_active_alerts(
        self, product_id: str | None = None
    ) -> list[ReorderAlert]:
        query = "SELECT * FROM reorder_alerts WHERE status = ?"
        params: list = [AlertStatus.ACTIVE.value]
        if product_id is not None:
            query += " AND product_id = ?"
            params.append(product_id)
        query += " ORDER BY alert_date DESC"
        async with translate_errors("query_active_alerts"), get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_alert(row) for row in rows]

    @staticmethod
    def _row_to_alert(row: aiosqlite.Row) -> ReorderAlert:
        return ReorderAlert(
            id=row["id"],
            product_id=row["product_id"],
            product_name=row["product_name"],
            current_stock=row["current_stock"],
            reorder_point=row["reorder_point"],
            reorder_quantity=row["reorder_quantity"],
            priority=AlertPriority(row["priority"]),
            status=AlertStatus(row["status"]),
            recommended_action=row["recommended_action"],
            estimated_cost=float(row["estimated_cost"]),
            suggested_supplier_id=row["suggested_supplier_id"],
            alert_date=from_db_time(row["alert_date"]),
            acknowledged_by=row["acknowledged_by"],
            acknowledged_at=from_db_time(row["acknowledged_at"]),
            ordered_by=row["ordered_by"],
            ordered_at=from_db_time(row["ordered_at"]),
            resolved_by=row["resolved_by"],
            resolved_at=from_db_time(row["resolved_at"]),
            notes=row["notes"],
        )
