"""Thumbnail transcoders."""
