"""HTTP API for StockLedger."""
