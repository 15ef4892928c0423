"""
Stock movement processor.

Every mutation of a product's stock or cost basis goes through this
service. A call moves through VALIDATING -> COMPUTING -> PERSISTING and
ends RECORDED, REJECTED (nothing written) or PARTIALLY_PERSISTED (product
saved, ledger row not written, product flagged for reconciliation).

Product writes are conditional on the version read at the start of the
call; a conflicting concurrent write restarts the whole read-modify-write.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from stockledger.config import get_logger, get_settings
from stockledger.config.settings import InventorySettings
from stockledger.core.entities.inventory import (
    AdjustmentMode,
    InventoryTransaction,
    ProductInventory,
    TransactionType,
    utc_now,
)
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    InsufficientStockError,
    InvalidInputError,
    InvalidQuantityError,
    PartiallyPersistedError,
    ProductNotFoundError,
    RepositoryError,
    StockLedgerError,
)
from stockledger.core.interfaces import IProductStore, ITransactionStore
from stockledger.core.services.cost_ledger import (
    compute_cogs,
    compute_new_wac,
    create_cost_entry,
    round_money,
)

logger = get_logger(__name__)

T = TypeVar("T")

QUICK_PURCHASE_SUPPLIER = "barcode-quick-purchase"
QUICK_PURCHASE_REFERENCE = "Quick Purchase"
QUICK_SALE_REFERENCE = "barcode-quick-sale"


class MovementStage(str, Enum):
    VALIDATING = "validating"
    COMPUTING = "computing"
    PERSISTING = "persisting"
    RECORDED = "recorded"
    REJECTED = "rejected"
    PARTIALLY_PERSISTED = "partially_persisted"


@dataclass
class StockMovementResult:
    """Product state after a recorded movement, plus its ledger row."""

    product: ProductInventory
    transaction: InventoryTransaction

    @property
    def new_stock(self) -> int:
        return self.product.current_stock

    @property
    def new_wac(self) -> float:
        return self.product.weighted_average_cost


# A plan turns the freshly loaded product into (updated product, ledger row).
# It must be pure: it runs again on every conflict retry.
MovementPlan = Callable[[ProductInventory], tuple[ProductInventory, InventoryTransaction]]


def _stamp() -> int:
    return int(utc_now().timestamp() * 1000)


def _require_actor(actor_id: str) -> None:
    if not actor_id or not actor_id.strip():
        raise InvalidInputError("Actor id is required")


def _with_stock(
    product: ProductInventory, stock: int, wac: float, **changes: Any
) -> ProductInventory:
    """Copy of ``product`` with new stock and WAC and a consistent total value."""
    return product.model_copy(
        update={
            "current_stock": stock,
            "weighted_average_cost": wac,
            "total_cost_value": round_money(stock * wac),
            "updated_at": utc_now(),
            **changes,
        }
    )


class StockMovementService:
    """Replenish, reduce, adjust and transfer stock with a ledger row per change."""

    def __init__(
        self,
        product_store: IProductStore,
        transaction_store: ITransactionStore,
        settings: InventorySettings | None = None,
    ):
        self._products = product_store
        self._transactions = transaction_store
        self._settings = settings or get_settings().inventory

    # ------------------------------------------------------------------
    # Repository access
    # ------------------------------------------------------------------

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a repository call under the configured timeout."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self._settings.repository_timeout)
        except StockLedgerError:
            raise
        except asyncio.TimeoutError as e:
            raise RepositoryError(
                operation, f"timed out after {self._settings.repository_timeout}s"
            ) from e
        except Exception as e:
            raise RepositoryError(operation, str(e)) from e

    async def _load(self, product_id: str) -> ProductInventory:
        product = await self._call("get_product", self._products.get_product(product_id))
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    @staticmethod
    def _log_conflict_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "movement_conflict_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    def _get_retry_decorator(self) -> Any:
        return retry(
            stop=stop_after_attempt(self._settings.conflict_max_attempts),
            wait=wait_exponential(
                multiplier=self._settings.conflict_retry_delay,
                max=self._settings.conflict_retry_max_delay,
            ),
            retry=retry_if_exception_type(ConcurrencyConflictError),
            before_sleep=self._log_conflict_retry,
            reraise=True,
        )

    async def _apply(
        self, operation: str, product_id: str, plan: MovementPlan
    ) -> StockMovementResult:
        """Run a plan against the product and record its ledger row."""
        log = logger.bind(operation=operation, product_id=product_id)
        stage = MovementStage.VALIDATING

        async def attempt() -> tuple[ProductInventory, InventoryTransaction]:
            nonlocal stage
            stage = MovementStage.VALIDATING
            product = await self._load(product_id)
            stage = MovementStage.COMPUTING
            updated, transaction = plan(product)
            stage = MovementStage.PERSISTING
            saved = await self._call(
                "save_product", self._products.save_product(updated, product.version)
            )
            return saved, transaction

        try:
            saved, transaction = await self._get_retry_decorator()(attempt)()
        except StockLedgerError as e:
            log.info(
                "movement_rejected",
                stage=MovementStage.REJECTED.value,
                failed_at=stage.value,
                error=e.message,
                code=e.code,
            )
            raise

        try:
            await self._call(
                "append_transaction", self._transactions.append_transaction(transaction)
            )
        except (StockLedgerError, asyncio.CancelledError) as e:
            cause = e.message if isinstance(e, StockLedgerError) else "cancelled"
            await self._flag_for_reconciliation(
                product_id, f"{operation}: transaction {transaction.id} not recorded ({cause})"
            )
            log.error(
                "movement_partially_persisted",
                stage=MovementStage.PARTIALLY_PERSISTED.value,
                transaction_id=transaction.id,
                quantity=transaction.quantity,
                cause=cause,
            )
            raise PartiallyPersistedError(product_id, transaction, cause) from e

        log.info(
            "movement_recorded",
            stage=MovementStage.RECORDED.value,
            transaction_id=transaction.id,
            type=transaction.type.value,
            quantity=transaction.quantity,
            new_stock=saved.current_stock,
            new_wac=saved.weighted_average_cost,
            actor=transaction.created_by,
        )
        return StockMovementResult(product=saved, transaction=transaction)

    async def _flag_for_reconciliation(self, product_id: str, note: str) -> None:
        try:
            await self._call(
                "mark_needs_reconciliation",
                self._products.mark_needs_reconciliation(product_id, note),
            )
        except StockLedgerError:
            # The PartiallyPersistedError raised by the caller still carries the row.
            logger.exception("reconciliation_flag_failed", product_id=product_id, note=note)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def register_product(self, product: ProductInventory) -> ProductInventory:
        """Create a product's inventory record."""
        if not product.product_id.strip():
            raise InvalidInputError("Product ID is required")
        # A new record has no ledger rows, so its opening stock is its current stock.
        product = product.model_copy(
            update={
                "initial_stock": product.current_stock,
                "total_cost_value": round_money(
                    product.current_stock * product.weighted_average_cost
                ),
                "version": 0,
                "needs_reconciliation": False,
            }
        )
        created = await self._call("create_product", self._products.create_product(product))
        logger.info(
            "product_registered",
            product_id=created.product_id,
            stock=created.current_stock,
            wac=created.weighted_average_cost,
        )
        return created

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------

    async def replenish(
        self,
        product_id: str,
        quantity: int,
        unit_cost: float,
        actor_id: str,
        supplier_id: str | None = None,
        invoice_reference: str | None = None,
        notes: str | None = None,
    ) -> StockMovementResult:
        """
        Receive purchased units.

        Blends the lot into the WAC, appends a cost-history entry, records
        the unit cost as the last purchase cost and writes a purchase row.
        """
        _require_actor(actor_id)
        if quantity <= 0:
            raise InvalidQuantityError("Quantity must be positive", quantity=quantity)
        if unit_cost < 0:
            raise InvalidQuantityError("Unit cost cannot be negative", unit_cost=unit_cost)

        reference = invoice_reference or f"INV-{_stamp()}"
        logger.info(
            "replenish_started",
            product_id=product_id,
            quantity=quantity,
            unit_cost=unit_cost,
        )

        def plan(product: ProductInventory) -> tuple[ProductInventory, InventoryTransaction]:
            wac = compute_new_wac(
                product.current_stock, product.weighted_average_cost, quantity, unit_cost
            )
            entry = create_cost_entry(
                quantity,
                unit_cost,
                wac.new_wac,
                supplier_id=supplier_id,
                invoice_reference=reference,
            )
            updated = _with_stock(
                product,
                wac.new_total_units,
                wac.new_wac,
                last_purchase_cost=unit_cost,
                cost_history=[*product.cost_history, entry],
            )
            transaction = InventoryTransaction(
                product_id=product_id,
                type=TransactionType.PURCHASE,
                quantity=quantity,
                unit_cost=unit_cost,
                total_cost=round_money(quantity * unit_cost),
                reference=reference,
                notes=notes,
                supplier_id=supplier_id,
                created_by=actor_id,
            )
            return updated, transaction

        return await self._apply("replenish", product_id, plan)

    async def reduce_stock(
        self,
        product_id: str,
        quantity: int,
        transaction_type: TransactionType,
        actor_id: str,
        reference: str | None = None,
        notes: str | None = None,
    ) -> StockMovementResult:
        """Remove units at the current WAC. Fails if stock would go negative."""
        _require_actor(actor_id)
        if quantity <= 0:
            raise InvalidQuantityError("Quantity must be positive", quantity=quantity)
        transaction_type = TransactionType(transaction_type)
        if transaction_type not in (TransactionType.SALE, TransactionType.ADJUSTMENT):
            raise InvalidInputError(
                "Reduction type must be sale or adjustment", type=transaction_type.value
            )

        reference = reference or f"{transaction_type.value.upper()}-{_stamp()}"

        def plan(product: ProductInventory) -> tuple[ProductInventory, InventoryTransaction]:
            if quantity > product.current_stock:
                raise InsufficientStockError(product_id, product.current_stock, quantity)
            cogs = compute_cogs(quantity, product.weighted_average_cost)
            updated = _with_stock(
                product, product.current_stock - quantity, product.weighted_average_cost
            )
            transaction = InventoryTransaction(
                product_id=product_id,
                type=transaction_type,
                quantity=-quantity,
                unit_cost=product.weighted_average_cost,
                total_cost=-cogs,
                reference=reference,
                notes=notes,
                created_by=actor_id,
            )
            return updated, transaction

        return await self._apply("reduce_stock", product_id, plan)

    async def adjust_inventory(
        self,
        product_id: str,
        mode: AdjustmentMode,
        quantity: int,
        reason: str,
        actor_id: str,
        unit_cost: float | None = None,
        notes: str | None = None,
        reference: str | None = None,
    ) -> StockMovementResult:
        """
        Correct stock outside the purchase/sale flow.

        ``increase`` adds units (at ``unit_cost`` if given, which re-blends
        the WAC, otherwise at the current WAC). ``decrease`` removes units,
        stopping at zero. ``correction`` sets stock to ``quantity``. The
        ledger row always carries the delta actually applied.
        """
        _require_actor(actor_id)
        mode = AdjustmentMode(mode)
        reason = (reason or "").strip()
        if not reason:
            raise InvalidInputError("Reason is required")
        if quantity < 0:
            raise InvalidQuantityError(
                "Adjustment quantity cannot be negative", quantity=quantity
            )
        if unit_cost is not None and unit_cost < 0:
            raise InvalidQuantityError("Unit cost cannot be negative", unit_cost=unit_cost)

        reference = f"{reference or f'ADJ-{_stamp()}'}: {reason}"

        def plan(product: ProductInventory) -> tuple[ProductInventory, InventoryTransaction]:
            current = product.current_stock
            wac = product.weighted_average_cost
            extra_notes = notes

            if mode is AdjustmentMode.INCREASE:
                delta = quantity
                if unit_cost is not None and quantity > 0:
                    wac = compute_new_wac(current, wac, quantity, unit_cost).new_wac
            elif mode is AdjustmentMode.DECREASE:
                delta = -min(quantity, current)
                if quantity > current:
                    clamp = f"requested {quantity}, clamped to {current}"
                    extra_notes = f"{notes} ({clamp})" if notes else clamp
            else:
                delta = quantity - current

            line_cost = wac
            if mode is AdjustmentMode.INCREASE and unit_cost is not None:
                line_cost = unit_cost
            combined = f"{mode.value.upper()}: {reason}"
            if extra_notes:
                combined = f"{combined} - {extra_notes}"

            updated = _with_stock(product, current + delta, wac)
            transaction = InventoryTransaction(
                product_id=product_id,
                type=TransactionType.ADJUSTMENT,
                quantity=delta,
                unit_cost=line_cost,
                total_cost=round_money(delta * line_cost),
                reference=reference,
                reason=reason,
                notes=combined,
                created_by=actor_id,
            )
            return updated, transaction

        return await self._apply("adjust_inventory", product_id, plan)

    async def add_transaction(
        self,
        product_id: str,
        transaction_type: TransactionType,
        quantity: int,
        unit_price: float,
        actor_id: str,
        reason: str | None = None,
        notes: str | None = None,
    ) -> StockMovementResult:
        """
        Single entry point for scanner and quick-entry callers.

        purchase -> replenish, sale -> reduce_stock, adjustment ->
        adjust_inventory with the mode taken from the sign of ``quantity``.
        Purchases and sales use the magnitude of ``quantity``; the type
        alone decides the direction.
        """
        try:
            transaction_type = TransactionType(transaction_type)
        except ValueError as e:
            raise InvalidInputError(
                "Unsupported transaction type", type=str(transaction_type)
            ) from e

        if transaction_type is TransactionType.PURCHASE:
            return await self.replenish(
                product_id,
                abs(quantity),
                unit_price,
                actor_id,
                supplier_id=QUICK_PURCHASE_SUPPLIER,
                invoice_reference=QUICK_PURCHASE_REFERENCE,
                notes=notes,
            )
        if transaction_type is TransactionType.SALE:
            return await self.reduce_stock(
                product_id,
                abs(quantity),
                TransactionType.SALE,
                actor_id,
                reference=QUICK_SALE_REFERENCE,
                notes=notes,
            )
        if transaction_type is TransactionType.ADJUSTMENT:
            if quantity > 0:
                return await self.adjust_inventory(
                    product_id,
                    AdjustmentMode.INCREASE,
                    quantity,
                    reason or "Quick adjustment",
                    actor_id,
                    unit_cost=unit_price if unit_price > 0 else None,
                    notes=notes,
                )
            return await self.adjust_inventory(
                product_id,
                AdjustmentMode.DECREASE,
                abs(quantity),
                reason or "Quick adjustment",
                actor_id,
                notes=notes,
            )
        raise InvalidInputError("Unsupported transaction type", type=transaction_type.value)

    async def transfer_stock(
        self,
        source_product_id: str,
        destination_product_id: str,
        quantity: int,
        actor_id: str,
        reference: str | None = None,
        notes: str | None = None,
    ) -> tuple[StockMovementResult, StockMovementResult]:
        """
        Move units from one product record to another at the source WAC.

        The source side is committed first. If the destination side then
        fails, the source is flagged for reconciliation and the failure
        surfaces as PartiallyPersistedError.
        """
        _require_actor(actor_id)
        if quantity <= 0:
            raise InvalidQuantityError("Quantity must be positive", quantity=quantity)
        if source_product_id == destination_product_id:
            raise InvalidInputError(
                "Source and destination must differ", product_id=source_product_id
            )
        # Fail fast on an unknown destination before touching the source.
        await self._load(destination_product_id)

        reference = reference or f"TRF-{_stamp()}"

        def take(product: ProductInventory) -> tuple[ProductInventory, InventoryTransaction]:
            if quantity > product.current_stock:
                raise InsufficientStockError(
                    source_product_id, product.current_stock, quantity
                )
            updated = _with_stock(
                product, product.current_stock - quantity, product.weighted_average_cost
            )
            transaction = InventoryTransaction(
                product_id=source_product_id,
                type=TransactionType.TRANSFER,
                quantity=-quantity,
                unit_cost=product.weighted_average_cost,
                total_cost=-round_money(quantity * product.weighted_average_cost),
                reference=reference,
                notes=notes,
                counterpart_product_id=destination_product_id,
                created_by=actor_id,
            )
            return updated, transaction

        outbound = await self._apply("transfer_out", source_product_id, take)
        transfer_cost = outbound.transaction.unit_cost

        def give(product: ProductInventory) -> tuple[ProductInventory, InventoryTransaction]:
            wac = compute_new_wac(
                product.current_stock, product.weighted_average_cost, quantity, transfer_cost
            )
            entry = create_cost_entry(
                quantity,
                transfer_cost,
                wac.new_wac,
                invoice_reference=reference,
            )
            updated = _with_stock(
                product,
                wac.new_total_units,
                wac.new_wac,
                cost_history=[*product.cost_history, entry],
            )
            transaction = InventoryTransaction(
                product_id=destination_product_id,
                type=TransactionType.TRANSFER,
                quantity=quantity,
                unit_cost=transfer_cost,
                total_cost=round_money(quantity * transfer_cost),
                reference=reference,
                notes=notes,
                counterpart_product_id=source_product_id,
                created_by=actor_id,
            )
            return updated, transaction

        try:
            inbound = await self._apply("transfer_in", destination_product_id, give)
        except PartiallyPersistedError:
            raise
        except (StockLedgerError, asyncio.CancelledError) as e:
            cause = e.message if isinstance(e, StockLedgerError) else "cancelled"
            await self._flag_for_reconciliation(
                source_product_id,
                f"transfer {reference}: {quantity} units not received by "
                f"{destination_product_id} ({cause})",
            )
            logger.error(
                "transfer_partially_persisted",
                source=source_product_id,
                destination=destination_product_id,
                quantity=quantity,
                cause=cause,
            )
            raise PartiallyPersistedError(source_product_id, outbound.transaction, cause) from e

        return outbound, inbound
