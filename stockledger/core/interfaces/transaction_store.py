"""Abstract interface for the inventory transaction ledger."""

from abc import ABC, abstractmethod
from datetime import datetime

from stockledger.core.entities.inventory import InventoryTransaction, TransactionType


class ITransactionStore(ABC):
    """Append-only ledger. Rows are never updated or deleted."""

    @abstractmethod
    async def append_transaction(self, transaction: InventoryTransaction) -> str:
        """Append a ledger row and return its id."""
        pass

    @abstractmethod
    async def query_by_product(self, product_id: str) -> list[InventoryTransaction]:
        """All rows for a product, in creation order."""
        pass

    @abstractmethod
    async def list_transactions(
        self,
        product_id: str | None = None,
        transaction_type: TransactionType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[InventoryTransaction]:
        """Filtered rows across products, in creation order."""
        pass
