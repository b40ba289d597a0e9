"""Nutrition aggregator: merges per-item records into meal totals.

Sums are computed exactly (``math.fsum``) and rounded once at the end, so
the result does not depend on the order of the items:

- calories: rounded to an integer
- each macro: rounded to one decimal

Rounding is half-up, matching what users see in the client apps.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from platelens.domain.nutrition.entities import NutritionTotals


def round_half_up(value: float, places: int = 0) -> float:
    """
    Round ``value`` to ``places`` decimals, halves away from zero.

    Example:
        >>> round_half_up(2.5)
        3.0
        >>> round_half_up(1.25, 1)
        1.3
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def merge_totals(items: Iterable[NutritionTotals]) -> NutritionTotals:
    """
    Merge per-item nutrition into totals.

    Args:
        items: Per-ingredient calories and macros, in any order

    Returns:
        NutritionTotals with integer calories and one-decimal macros;
        all zeros for an empty input

    Example:
        >>> merge_totals([
        ...     NutritionTotals(calories=140.4, p=12.0, c=1.0, f=10.0),
        ...     NutritionTotals(calories=80.3, p=3.1, c=14.0, f=1.0),
        ... ])
        NutritionTotals(calories=221, p=15.1, c=15.0, f=11.0)
    """
    records = list(items)
    if not records:
        return NutritionTotals(calories=0, p=0.0, c=0.0, f=0.0)

    calories = math.fsum(r.calories for r in records)
    protein = math.fsum(r.p for r in records)
    carbs = math.fsum(r.c for r in records)
    fat = math.fsum(r.f for r in records)

    return NutritionTotals(
        calories=int(round_half_up(calories)),
        p=round_half_up(protein, 1),
        c=round_half_up(carbs, 1),
        f=round_half_up(fat, 1),
    )
