"""External enrichment adapters (food detection, thumbnail generation)."""
