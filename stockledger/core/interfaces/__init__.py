"""Abstract interfaces (ports) for storage."""

from stockledger.core.interfaces.alert_store import IAlertStore
from stockledger.core.interfaces.product_store import IProductStore
from stockledger.core.interfaces.transaction_store import ITransactionStore

__all__ = [
    "IAlertStore",
    "IProductStore",
    "ITransactionStore",
]
