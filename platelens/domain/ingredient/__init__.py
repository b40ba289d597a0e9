"""Ingredient identity and entity."""

from platelens.domain.ingredient.entities import INGREDIENTS_COLLECTION, Ingredient
from platelens.domain.ingredient.identity import (
    IngredientIdentity,
    canonicalize_name,
    derive_identity,
    slugify,
)

__all__ = [
    "INGREDIENTS_COLLECTION",
    "Ingredient",
    "IngredientIdentity",
    "canonicalize_name",
    "derive_identity",
    "slugify",
]
