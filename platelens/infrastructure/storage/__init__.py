"""Blob store adapters (meal photos, ingredient thumbnails)."""
