"""SQLite implementation of product inventory storage."""

import json

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.inventory import CostEntry, ProductInventory, utc_now
from stockledger.core.exceptions import ConcurrencyConflictError, ProductAlreadyExistsError
from stockledger.core.interfaces.product_store import IProductStore
from stockledger.infrastructure.storage.sqlite.connection import (
    from_db_time,
    get_connection,
    get_transaction,
    to_db_time,
    translate_errors,
)

logger = get_logger(__name__)

_COLUMNS = (
    "product_id, name, category, is_active, current_stock, initial_stock, "
    "weighted_average_cost, total_cost_value, last_purchase_cost, selling_price, "
    "cost_history, reorder_point, reorder_quantity, supplier_id, version, "
    "needs_reconciliation, reconciliation_note, created_at, updated_at"
)


class SQLiteProductStore(IProductStore):
    """Products table with a version column for conditional writes."""

    async def get_product(self, product_id: str) -> ProductInventory | None:
        async with translate_errors("get_product"), get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM products WHERE product_id = ?", (product_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_product(row)

    async def create_product(self, product: ProductInventory) -> ProductInventory:
        async with translate_errors("create_product"):
            try:
                async with get_transaction() as conn:
                    await conn.execute(
                        f"INSERT INTO products ({_COLUMNS}) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                        self._product_params(product),
                    )
            except aiosqlite.IntegrityError as e:
                if "UNIQUE" in str(e) or "PRIMARY KEY" in str(e):
                    raise ProductAlreadyExistsError(product.product_id) from e
                raise
        logger.info("product_created", product_id=product.product_id)
        return product

    async def save_product(
        self, product: ProductInventory, expected_version: int
    ) -> ProductInventory:
        saved = product.model_copy(
            update={"version": expected_version + 1, "updated_at": utc_now()}
        )
        async with translate_errors("save_product"), get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE products SET
                    name = ?, category = ?, is_active = ?,
                    current_stock = ?, initial_stock = ?,
                    weighted_average_cost = ?, total_cost_value = ?,
                    last_purchase_cost = ?, selling_price = ?, cost_history = ?,
                    reorder_point = ?, reorder_quantity = ?, supplier_id = ?,
                    version = ?, updated_at = ?
                WHERE product_id = ? AND version = ?
                """,
                (
                    saved.name,
                    saved.category,
                    int(saved.is_active),
                    saved.current_stock,
                    saved.initial_stock,
                    saved.weighted_average_cost,
                    saved.total_cost_value,
                    saved.last_purchase_cost,
                    saved.selling_price,
                    self._dump_history(saved.cost_history),
                    saved.reorder_point,
                    saved.reorder_quantity,
                    saved.supplier_id,
                    saved.version,
                    to_db_time(saved.updated_at),
                    saved.product_id,
                    expected_version,
                ),
            )
            if cursor.rowcount == 0:
                raise ConcurrencyConflictError(product.product_id, expected_version)
        return saved

    async def list_products(self, active_only: bool = False) -> list[ProductInventory]:
        query = "SELECT * FROM products"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY product_id"
        async with translate_errors("list_products"), get_connection() as conn:
            cursor = await conn.execute(query)
            rows = await cursor.fetchall()
            return [self._row_to_product(row) for row in rows]

    async def mark_needs_reconciliation(self, product_id: str, note: str | None) -> None:
        async with translate_errors("mark_needs_reconciliation"), get_transaction() as conn:
            await conn.execute(
                """
                UPDATE products
                SET needs_reconciliation = ?, reconciliation_note = ?
                WHERE product_id = ?
                """,
                (int(note is not None), note, product_id),
            )
        logger.info(
            "product_reconciliation_flag_set",
            product_id=product_id,
            flagged=note is not None,
        )

    @staticmethod
    def _dump_history(history: list[CostEntry]) -> str:
        return json.dumps([entry.model_dump(mode="json") for entry in history])

    @classmethod
    def _product_params(cls, product: ProductInventory) -> tuple:
        return (
            product.product_id,
            product.name,
            product.category,
            int(product.is_active),
            product.current_stock,
            product.initial_stock,
            product.weighted_average_cost,
            product.total_cost_value,
            product.last_purchase_cost,
            product.selling_price,
            cls._dump_history(product.cost_history),
            product.reorder_point,
            product.reorder_quantity,
            product.supplier_id,
            product.version,
            int(product.needs_reconciliation),
            product.reconciliation_note,
            to_db_time(product.created_at),
            to_db_time(product.updated_at),
        )

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> ProductInventory:
        history = [CostEntry.model_validate(e) for e in json.loads(row["cost_history"] or "[]")]
        return ProductInventory(
            product_id=row["product_id"],
            name=row["name"],
            category=row["category"],
            is_active=bool(row["is_active"]),
            current_stock=row["current_stock"],
            initial_stock=row["initial_stock"],
            weighted_average_cost=float(row["weighted_average_cost"]),
            total_cost_value=float(row["total_cost_value"]),
            last_purchase_cost=float(row["last_purchase_cost"]),
            selling_price=float(row["selling_price"]),
            cost_history=history,
            reorder_point=row["reorder_point"],
            reorder_quantity=row["reorder_quantity"],
            supplier_id=row["supplier_id"],
            version=row["version"],
            needs_reconciliation=bool(row["needs_reconciliation"]),
            reconciliation_note=row["reconciliation_note"],
            created_at=from_db_time(row["created_at"]) or utc_now(),
            updated_at=from_db_time(row["updated_at"]) or utc_now(),
        )
