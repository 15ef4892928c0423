"""StockLedger: inventory costing, stock movement and reorder analytics."""

__version__ = "1.0.0"
