"""StockLedger domain core."""
