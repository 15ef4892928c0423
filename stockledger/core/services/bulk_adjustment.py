"""
Bulk adjustment processing and CSV exports.

An uploaded sheet is checked as a whole (non-empty, required headers,
row limit), then each row is validated on its own. Invalid rows are
reported, valid rows are applied through the stock movement service.
Rows for one product are applied in file order; different products are
applied concurrently.
"""

from __future__ import annotations

import asyncio
import math
import re
from collections import defaultdict
from datetime import datetime

from stockledger.config import get_logger, get_settings
from stockledger.config.settings import InventorySettings
from stockledger.core.entities.bulk import (
    BulkAdjustmentRow,
    BulkOperationResult,
    BulkRowError,
    RowErr,
    RowOk,
    RowResult,
)
from stockledger.core.entities.inventory import (
    AdjustmentMode,
    ProductInventory,
    TransactionType,
)
from stockledger.core.exceptions import (
    EmptyInputError,
    MissingHeadersError,
    PartiallyPersistedError,
    StockLedgerError,
    TooManyRowsError,
)
from stockledger.core.interfaces import IProductStore, ITransactionStore
from stockledger.core.services import tabular
from stockledger.core.services.stock_movement import StockMovementService

logger = get_logger(__name__)

BULK_REFERENCE = "BULK_ADJUSTMENT"
SIGNED_QUANTITY = re.compile(r"^\s*([+-]?)\s*([0-9]+)\s*$")


def parse_signed_quantity(raw: str) -> int | None:
    """Parse ``+50``, ``-10`` or ``7``. None if not a whole number."""
    match = SIGNED_QUANTITY.match(raw)
    if match is None:
        return None
    sign, digits = match.groups()
    return -int(digits) if sign == "-" else int(digits)


def parse_unit_cost(raw: str) -> float | None:
    try:
        value = float(raw.replace(" ", ""))
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def validate_row(
    row_number: int,
    cells: dict[str, str],
    products: dict[str, ProductInventory],
    projected_stock: dict[str, int],
) -> RowResult:
    """
    Validate one sheet row against the product snapshot.

    ``projected_stock`` holds each product's stock after the valid rows
    seen so far and is advanced when this row is valid.
    """
    product_id = cells.get(tabular.PRODUCT_ID, "")

    def fail(message: str) -> RowErr:
        return RowErr(BulkRowError(row=row_number, product_id=product_id, error=message))

    if not product_id:
        return fail("Product ID is required")
    if product_id not in products:
        return fail("Product not found")

    raw_quantity = cells.get(tabular.ADJUSTMENT_QUANTITY, "")
    if not raw_quantity:
        return fail("Adjustment Quantity is required")
    delta = parse_signed_quantity(raw_quantity)
    if delta is None:
        return fail("Invalid adjustment quantity format")

    raw_cost = cells.get(tabular.UNIT_COST, "")
    if not raw_cost:
        return fail("Unit Cost is required")
    unit_cost = parse_unit_cost(raw_cost)
    if unit_cost is None:
        return fail("Invalid unit cost")

    reason = cells.get(tabular.REASON, "")
    if not reason:
        return fail("Reason is required")

    current = projected_stock[product_id]
    if current + delta < 0:
        return fail(f"Insufficient stock. Current: {current}, Adjustment: {delta}")

    projected_stock[product_id] = current + delta
    return RowOk(
        BulkAdjustmentRow(
            row=row_number,
            product_id=product_id,
            delta=delta,
            unit_cost=unit_cost,
            reason=reason,
            notes=cells.get(tabular.NOTES) or None,
        )
    )


class BulkAdjustmentService:
    """Apply adjustment sheets and produce CSV exports."""

    def __init__(
        self,
        movement_service: StockMovementService,
        product_store: IProductStore,
        transaction_store: ITransactionStore,
        settings: InventorySettings | None = None,
    ):
        self._movements = movement_service
        self._products = product_store
        self._transactions = transaction_store
        self._settings = settings or get_settings().inventory

    async def process_bulk_adjustments(
        self, content: str, actor_id: str
    ) -> BulkOperationResult:
        """
        Validate and apply an adjustment sheet.

        Raises:
            EmptyInputError: no content.
            MissingHeadersError: a required column is absent.
            TooManyRowsError: more data rows than allowed.
        """
        table = tabular.parse_csv(content)
        if table is None:
            raise EmptyInputError()

        missing = [h for h in tabular.REQUIRED_ADJUSTMENT_HEADERS if h not in table.headers]
        if missing:
            raise MissingHeadersError(missing)

        limit = self._settings.max_bulk_rows
        if len(table.rows) > limit:
            raise TooManyRowsError(len(table.rows), limit)

        products = {p.product_id: p for p in await self._products.list_products()}
        projected = {pid: p.current_stock for pid, p in products.items()}

        errors: list[BulkRowError] = []
        by_product: dict[str, list[BulkAdjustmentRow]] = defaultdict(list)
        for index, cells in enumerate(table.rows, start=1):
            outcome = validate_row(index, cells, products, projected)
            if isinstance(outcome, RowErr):
                errors.append(outcome.error)
            else:
                by_product[outcome.value.product_id].append(outcome.value)

        logger.info(
            "bulk_adjustment_validated",
            rows=len(table.rows),
            valid=sum(len(rows) for rows in by_product.values()),
            invalid=len(errors),
            products=len(by_product),
        )

        committed: list[int] = []
        results = await asyncio.gather(
            *(self._apply_product_rows(rows, actor_id) for rows in by_product.values())
        )
        for applied, failed in results:
            committed.extend(applied)
            errors.extend(failed)

        errors.sort(key=lambda e: e.row)
        committed.sort()
        result = BulkOperationResult(
            total=len(table.rows),
            successful=len(committed),
            failed=len(errors),
            errors=errors,
            committed_rows=committed,
        )
        logger.info(
            "bulk_adjustment_completed",
            total=result.total,
            successful=result.successful,
            failed=result.failed,
            actor=actor_id,
        )
        return result

    async def _apply_product_rows(
        self, rows: list[BulkAdjustmentRow], actor_id: str
    ) -> tuple[list[int], list[BulkRowError]]:
        applied: list[int] = []
        failed: list[BulkRowError] = []
        for row in rows:
            try:
                await self._apply_row(row, actor_id)
            except PartiallyPersistedError as e:
                logger.error(
                    "bulk_row_partially_persisted",
                    row=row.row,
                    product_id=row.product_id,
                    error=e.message,
                )
                failed.append(
                    BulkRowError(
                        row=row.row, product_id=row.product_id, error=e.message, partial=True
                    )
                )
            except StockLedgerError as e:
                logger.warning(
                    "bulk_row_failed",
                    row=row.row,
                    product_id=row.product_id,
                    error=e.message,
                    code=e.code,
                )
                failed.append(
                    BulkRowError(row=row.row, product_id=row.product_id, error=e.message)
                )
            else:
                applied.append(row.row)
        return applied, failed

    async def _apply_row(self, row: BulkAdjustmentRow, actor_id: str) -> None:
        if row.delta > 0:
            await self._movements.replenish(
                row.product_id,
                row.delta,
                row.unit_cost,
                actor_id,
                invoice_reference=BULK_REFERENCE,
                notes=row.combined_notes,
            )
        else:
            await self._movements.adjust_inventory(
                row.product_id,
                AdjustmentMode.DECREASE,
                abs(row.delta),
                row.reason,
                actor_id,
                notes=row.notes,
                reference=BULK_REFERENCE,
            )

    # ------------------------------------------------------------------
    # Templates and exports
    # ------------------------------------------------------------------

    async def generate_adjustment_template(
        self, prefill: bool = False
    ) -> tabular.AdjustmentTemplate:
        """
        Adjustment sheet template.

        With ``prefill`` the sample rows are replaced by one row per active
        product carrying its current stock and WAC, quantity left blank.
        """
        rows = [list(r) for r in tabular.TEMPLATE_SAMPLE_ROWS]
        if prefill:
            rows = [
                [
                    p.product_id,
                    p.name,
                    p.category,
                    str(p.current_stock),
                    "",
                    f"{p.weighted_average_cost:.2f}",
                    "",
                    "",
                ]
                for p in await self._products.list_products(active_only=True)
            ]
        return tabular.AdjustmentTemplate(
            headers=list(tabular.ADJUSTMENT_HEADERS),
            sample_data=rows,
            instructions=tabular.template_instructions(self._settings.max_bulk_rows),
        )

    async def export_valuation_csv(self) -> str:
        products = await self._products.list_products(active_only=True)
        rows = [
            [
                p.product_id,
                p.name,
                p.category,
                p.current_stock,
                f"{p.weighted_average_cost:.2f}",
                f"{p.total_cost_value:.2f}",
                p.updated_at.isoformat(),
                p.reorder_point,
            ]
            for p in products
        ]
        logger.info("valuation_exported", products=len(rows))
        return tabular.render_csv(tabular.VALUATION_HEADERS, rows)

    async def export_transactions_csv(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        transaction_type: TransactionType | None = None,
    ) -> str:
        names = {p.product_id: p.name for p in await self._products.list_products()}
        transactions = await self._transactions.list_transactions(
            transaction_type=transaction_type, start=start, end=end
        )
        rows = [
            [
                t.id,
                t.product_id,
                names.get(t.product_id, ""),
                t.type.value,
                t.quantity,
                f"{t.unit_cost:.2f}",
                f"{t.total_cost:.2f}",
                t.created_at.isoformat(),
                t.reference,
                t.notes or "",
                t.created_by,
            ]
            for t in transactions
        ]
        logger.info("transactions_exported", transactions=len(rows))
        return tabular.render_csv(tabular.TRANSACTION_HEADERS, rows)
