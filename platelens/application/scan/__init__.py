"""Scan request commands."""

from platelens.application.scan.commands import (
    CancelMealCommand,
    CancelMealCommandHandler,
    SubmitScanCommand,
    SubmitScanCommandHandler,
)

__all__ = [
    "CancelMealCommand",
    "CancelMealCommandHandler",
    "SubmitScanCommand",
    "SubmitScanCommandHandler",
]
