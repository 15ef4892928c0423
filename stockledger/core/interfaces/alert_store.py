"""Abstract interface for reorder alert storage."""

from abc import ABC, abstractmethod

from stockledger.core.entities.alert import ReorderAlert


class IAlertStore(ABC):
    """Interface for reorder alert persistence."""

    @abstractmethod
    async def get_alert(self, alert_id: str) -> ReorderAlert | None:
        pass

    @abstractmethod
    async def save_alert(self, alert: ReorderAlert) -> ReorderAlert:
        """Insert or replace an alert."""
        pass

    @abstractmethod
    async def query_active_alerts(
        self, product_id: str | None = None
    ) -> list[ReorderAlert]:
        """Alerts whose status is active, optionally for one product."""
        pass
