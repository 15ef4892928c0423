"""Abstract interface for product inventory storage."""

from abc import ABC, abstractmethod

from stockledger.core.entities.inventory import ProductInventory


class IProductStore(ABC):
    """Interface for product inventory state persistence."""

    @abstractmethod
    async def get_product(self, product_id: str) -> ProductInventory | None:
        """Get a product's inventory state, or None if unknown."""
        pass

    @abstractmethod
    async def create_product(self, product: ProductInventory) -> ProductInventory:
        """Insert a new product. Raises ProductAlreadyExistsError on duplicate id."""
        pass

    @abstractmethod
    async def save_product(
        self, product: ProductInventory, expected_version: int
    ) -> ProductInventory:
        """
        Conditionally overwrite a product.

        The write only happens if the stored version still equals
        ``expected_version``; otherwise ConcurrencyConflictError is raised.
        Returns the product with its version bumped.
        """
        pass

    @abstractmethod
    async def list_products(self, active_only: bool = False) -> list[ProductInventory]:
        """List products ordered by product id."""
        pass

    @abstractmethod
    async def mark_needs_reconciliation(self, product_id: str, note: str | None) -> None:
        """Flag (note given) or clear (note None) the reconciliation marker."""
        pass
