"""Application layer: use cases and service wiring."""
