"""Meal log (parent artifact of a scan)."""

from platelens.domain.meal.entities import MEALS_COLLECTION, IngredientLine, MealLog, MealStatus

__all__ = ["MEALS_COLLECTION", "IngredientLine", "MealLog", "MealStatus"]
