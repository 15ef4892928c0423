"""Pytest configuration and shared fixtures.

In-memory stores implement the storage interfaces so services can be
exercised without a database. They copy on read and write so callers
never share state with the store.
"""

import asyncio
from datetime import datetime

import pytest

from stockledger.config.settings import InventorySettings
from stockledger.core.entities.alert import AlertStatus, ReorderAlert
from stockledger.core.entities.inventory import (
    InventoryTransaction,
    ProductInventory,
    TransactionType,
    utc_now,
)
from stockledger.core.exceptions import ConcurrencyConflictError, ProductAlreadyExistsError
from stockledger.core.interfaces import IAlertStore, IProductStore, ITransactionStore
from stockledger.core.services import (
    BulkAdjustmentService,
    LedgerService,
    ReorderAnalyticsService,
    StockMovementService,
    ValuationService,
)


class InMemoryProductStore(IProductStore):
    def __init__(self):
        self.products: dict[str, ProductInventory] = {}
        self.flags: list[tuple[str, str | None]] = []
        # Number of upcoming saves that lose a race to another writer
        self.pending_conflicts = 0
        self.save_calls = 0
        self.delay = 0.0

    async def get_product(self, product_id: str) -> ProductInventory | None:
        if self.delay:
            await asyncio.sleep(self.delay)
        product = self.products.get(product_id)
        return product.model_copy(deep=True) if product else None

    async def create_product(self, product: ProductInventory) -> ProductInventory:
        if product.product_id in self.products:
            raise ProductAlreadyExistsError(product.product_id)
        self.products[product.product_id] = product.model_copy(deep=True)
        return product

    async def save_product(
        self, product: ProductInventory, expected_version: int
    ) -> ProductInventory:
        self.save_calls += 1
        stored = self.products[product.product_id]
        if self.pending_conflicts:
            self.pending_conflicts -= 1
            # Another writer got there first
            self.products[product.product_id] = stored.model_copy(
                update={"version": stored.version + 1}
            )
            raise ConcurrencyConflictError(product.product_id, expected_version)
        if stored.version != expected_version:
            raise ConcurrencyConflictError(product.product_id, expected_version)
        saved = product.model_copy(update={"version": expected_version + 1}, deep=True)
        self.products[product.product_id] = saved
        return saved.model_copy(deep=True)

    async def list_products(self, active_only: bool = False) -> list[ProductInventory]:
        return [
            p.model_copy(deep=True)
            for _, p in sorted(self.products.items())
            if p.is_active or not active_only
        ]

    async def mark_needs_reconciliation(self, product_id: str, note: str | None) -> None:
        self.flags.append((product_id, note))
        self.products[product_id] = self.products[product_id].model_copy(
            update={"needs_reconciliation": note is not None, "reconciliation_note": note}
        )


class InMemoryTransactionStore(ITransactionStore):
    def __init__(self):
        self.transactions: list[InventoryTransaction] = []
        self.fail_with: BaseException | None = None

    async def append_transaction(self, transaction: InventoryTransaction) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.transactions.append(transaction.model_copy(deep=True))
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
        return [
            t.model_copy(deep=True)
            for t in self.transactions
            if (product_id is None or t.product_id == product_id)
            and (transaction_type is None or t.type == transaction_type)
            and (start is None or t.created_at >= start)
            and (end is None or t.created_at <= end)
        ]


class InMemoryAlertStore(IAlertStore):
    def __init__(self):
        self.alerts: dict[str, ReorderAlert] = {}

    async def get_alert(self, alert_id: str) -> ReorderAlert | None:
        alert = self.alerts.get(alert_id)
        return alert.model_copy(deep=True) if alert else None

    async def save_alert(self, alert: ReorderAlert) -> ReorderAlert:
        self.alerts[alert.id] = alert.model_copy(deep=True)
        return alert

    async def query_active_alerts(self, product_id: str | None = None) -> list[ReorderAlert]:
        return [
            a.model_copy(deep=True)
            for a in self.alerts.values()
            if a.status is AlertStatus.ACTIVE
            and (product_id is None or a.product_id == product_id)
        ]


@pytest.fixture
def inventory_settings() -> InventorySettings:
    """Fast retries and a short repository timeout."""
    return InventorySettings(
        conflict_retry_delay=0.0,
        conflict_retry_max_delay=0.0,
        repository_timeout=0.5,
    )


@pytest.fixture
def product_store() -> InMemoryProductStore:
    return InMemoryProductStore()


@pytest.fixture
def transaction_store() -> InMemoryTransactionStore:
    return InMemoryTransactionStore()


@pytest.fixture
def alert_store() -> InMemoryAlertStore:
    return InMemoryAlertStore()


@pytest.fixture
def movement_service(product_store, transaction_store, inventory_settings):
    return StockMovementService(product_store, transaction_store, inventory_settings)


@pytest.fixture
def reorder_service(product_store, transaction_store, alert_store, inventory_settings):
    return ReorderAnalyticsService(
        product_store, transaction_store, alert_store, inventory_settings
    )


@pytest.fixture
def bulk_service(movement_service, product_store, transaction_store, inventory_settings):
    return BulkAdjustmentService(
        movement_service, product_store, transaction_store, inventory_settings
    )


@pytest.fixture
def valuation_service(product_store, transaction_store):
    return ValuationService(product_store, transaction_store)


@pytest.fixture
def ledger_service(product_store, transaction_store):
    return LedgerService(product_store, transaction_store)


@pytest.fixture
def make_product():
    """Build a product whose total value matches its stock and WAC."""

    def _make(
        product_id: str = "PROD001",
        stock: int = 100,
        wac: float = 15.0,
        **fields,
    ) -> ProductInventory:
        fields.setdefault("name", f"Product {product_id}")
        return ProductInventory(
            product_id=product_id,
            current_stock=stock,
            initial_stock=fields.pop("initial_stock", stock),
            weighted_average_cost=wac,
            total_cost_value=round(stock * wac, 2),
            last_purchase_cost=fields.pop("last_purchase_cost", wac),
            **fields,
        )

    return _make


@pytest.fixture
async def registered(movement_service, make_product):
    """Register products through the service and return them by id."""

    async def _register(*products: ProductInventory) -> dict[str, ProductInventory]:
        return {
            p.product_id: await movement_service.register_product(p) for p in products
        }

    return _register


@pytest.fixture
def now():
    return utc_now()
