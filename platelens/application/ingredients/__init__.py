"""Ingredient identity resolution."""

from platelens.application.ingredients.resolver import (
    IngredientIdentityResolver,
    ResolvedIngredient,
)

__all__ = ["IngredientIdentityResolver", "ResolvedIngredient"]
