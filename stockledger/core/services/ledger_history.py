"""
Ledger history and reconciliation.

Replays the append-only transaction ledger to produce running stock
totals and to detect drift between a product's stored stock and the sum
of its ledger rows.
"""

from __future__ import annotations

from datetime import datetime

from stockledger.config import get_logger
from stockledger.core.entities.inventory import (
    InventoryTransaction,
    TransactionType,
)
from stockledger.core.entities.valuation import (
    LedgerReconciliation,
    TransactionHistoryEntry,
)
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    InvalidInputError,
    ProductNotFoundError,
)
from stockledger.core.interfaces import IProductStore, ITransactionStore
from stockledger.core.services.cost_ledger import round_money

logger = get_logger(__name__)

RECONCILE_REFERENCE = "RECONCILE"


class LedgerService:
    """Read and repair the transaction ledger."""

    def __init__(
        self,
        product_store: IProductStore,
        transaction_store: ITransactionStore,
    ):
        self._products = product_store
        self._transactions = transaction_store

    async def get_transaction_history(
        self,
        product_id: str | None = None,
        transaction_type: TransactionType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
    ) -> list[TransactionHistoryEntry]:
        """
        Ledger rows, newest first, each with the product's stock after it.

        Running totals are accumulated in creation order starting from each
        product's opening stock, over the product's full ledger, so filters
        do not change the totals shown.
        """
        if limit is not None and limit <= 0:
            raise InvalidInputError("Limit must be positive", limit=limit)

        selected = await self._transactions.list_transactions(
            product_id=product_id,
            transaction_type=transaction_type,
            start=start,
            end=end,
        )
        if not selected:
            return []

        running: dict[str, int] = {}
        for pid in {t.product_id for t in selected}:
            product = await self._products.get_product(pid)
            opening = product.initial_stock if product else 0
            total = opening
            for transaction in await self._transactions.query_by_product(pid):
                total += transaction.quantity
                running[transaction.id] = total

        entries = [
            TransactionHistoryEntry(
                transaction=t, running_total=running.get(t.id, t.quantity)
            )
            for t in selected
        ]
        entries.reverse()
        if limit is not None:
            entries = entries[:limit]
        return entries

    async def reconcile(self, product_id: str) -> LedgerReconciliation:
        """Compare stored stock with the replayed ledger."""
        product = await self._products.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        transactions = await self._transactions.query_by_product(product_id)
        ledger_total = product.initial_stock + sum(t.quantity for t in transactions)
        result = LedgerReconciliation(
            product_id=product_id,
            initial_stock=product.initial_stock,
            ledger_total=ledger_total,
            current_stock=product.current_stock,
            drift=product.current_stock - ledger_total,
            needs_reconciliation=product.needs_reconciliation,
            transaction_count=len(transactions),
        )
        if result.drift:
            logger.warning(
                "ledger_drift_detected",
                product_id=product_id,
                drift=result.drift,
                current_stock=product.current_stock,
                ledger_total=ledger_total,
            )
        return result

    async def repair(self, product_id: str, actor_id: str) -> LedgerReconciliation:
        """
        Bring the ledger back in line with stored stock.

        Appends one adjustment row for the drift (if any) and clears the
        reconciliation flag. Stored stock is treated as authoritative since
        it is always written first.

        Run this only while no movement for the product is in flight: a
        movement that has saved the product but not yet appended its row
        looks like drift. A product whose version changes while the drift
        is being measured raises ConcurrencyConflictError and nothing is
        written.
        """
        if not actor_id or not actor_id.strip():
            raise InvalidInputError("Actor id is required")

        before = await self._products.get_product(product_id)
        if before is None:
            raise ProductNotFoundError(product_id)
        status = await self.reconcile(product_id)
        product = await self._products.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        if product.version != before.version:
            logger.warning(
                "ledger_repair_conflict",
                product_id=product_id,
                expected_version=before.version,
                actual_version=product.version,
            )
            raise ConcurrencyConflictError(product_id, before.version)

        if status.drift:
            wac = product.weighted_average_cost
            await self._transactions.append_transaction(
                InventoryTransaction(
                    product_id=product_id,
                    type=TransactionType.ADJUSTMENT,
                    quantity=status.drift,
                    unit_cost=wac,
                    total_cost=round_money(status.drift * wac),
                    reference=RECONCILE_REFERENCE,
                    reason="Ledger reconciliation",
                    notes=product.reconciliation_note,
                    created_by=actor_id,
                )
            )
        if product.needs_reconciliation:
            await self._products.mark_needs_reconciliation(product_id, None)

        logger.info(
            "ledger_repaired",
            product_id=product_id,
            drift=status.drift,
            actor=actor_id,
        )
        return await self.reconcile(product_id)
