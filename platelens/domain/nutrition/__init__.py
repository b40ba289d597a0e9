"""Nutrition value objects and pure calculations."""

from platelens.domain.nutrition.aggregator import merge_totals, round_half_up
from platelens.domain.nutrition.entities import Macros, NutritionTotals
from platelens.domain.nutrition.estimates import estimate_item

__all__ = ["merge_totals", "round_half_up", "Macros", "NutritionTotals", "estimate_item"]
