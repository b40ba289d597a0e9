"""Application layer: job processing and request commands."""
