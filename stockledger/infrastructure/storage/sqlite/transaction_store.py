"""SQLite implementation of the append-only transaction ledger."""

from datetime import datetime

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.inventory import InventoryTransaction, TransactionType
from stockledger.core.interfaces.transaction_store import ITransactionStore
from stockledger.infrastructure.storage.sqlite.connection import (
    from_db_time,
    get_connection,
    get_transaction,
    to_db_time,
    translate_errors,
)

logger = get_logger(__name__)


class SQLiteTransactionStore(ITransactionStore):
    """Ledger rows ordered by an autoincrement sequence column."""

    async def append_transaction(self, transaction: InventoryTransaction) -> str:
        async with translate_errors("append_transaction"), get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO inventory_transactions (
                    id, product_id, type, quantity, unit_cost, total_cost,
                    reference, reason, notes, supplier_id, counterpart_product_id,
                    created_by, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    transaction.id,
                    transaction.product_id,
                    transaction.type.value,
                    transaction.quantity,
                    transaction.unit_cost,
                    transaction.total_cost,
                    transaction.reference,
                    transaction.reason,
                    transaction.notes,
                    transaction.supplier_id,
                    transaction.counterpart_product_id,
                    transaction.created_by,
                    to_db_time(transaction.created_at),
                ),
            )
        logger.debug(
            "transaction_appended",
            transaction_id=transaction.id,
            product_id=transaction.product_id,
            type=transaction.type.value,
            quantity=transaction.quantity,
        )
        return transaction.id

    async def query_by_product(self, product_id: str) -> list[InventoryTransaction]:
        return await self.list_transactions(product_id=product_id)

    async def list_transactions(
        self,
        product_id: str | None = None,
        transaction_type: TransactionType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[InventoryTransaction]:
        clauses: list[str] = []
        params: list = []
        if product_id is not None:
            clauses.append("product_id = ?")
            params.append(product_id)
        if transaction_type is not None:
            clauses.append("type = ?")
            params.append(TransactionType(transaction_type).value)
        if start is not None:
            clauses.append("created_at >= ?")
            params.append(to_db_time(start))
        if end is not None:
            clauses.append("created_at <= ?")
            params.append(to_db_time(end))

        query = "SELECT * FROM inventory_transactions"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY seq"

        async with translate_errors("list_transactions"), get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_transaction(row) for row in rows]

    @staticmethod
    def _row_to_transaction(row: aiosqlite.Row) -> InventoryTransaction:
        return InventoryTransaction(
            id=row["id"],
            product_id=row["product_id"],
            type=TransactionType(row["type"]),
            quantity=row["quantity"],
            unit_cost=float(row["unit_cost"]),
            total_cost=float(row["total_cost"]),
            reference=row["reference"],
            reason=row["reason"],
            notes=row["notes"],
            supplier_id=row["supplier_id"],
            counterpart_product_id=row["counterpart_product_id"],
            created_by=row["created_by"],
            created_at=from_db_time(row["created_at"]),
        )
