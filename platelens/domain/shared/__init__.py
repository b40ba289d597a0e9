"""Shared domain building blocks (events, errors, ports)."""
