"""Enrichment results and the ports of the external AI services."""

from platelens.domain.enrichment.entities import DetectedIngredient, FoodDetectionResult
from platelens.domain.enrichment.ports import IFoodDetector, IIngredientImageGenerator

__all__ = [
    "DetectedIngredient",
    "FoodDetectionResult",
    "IFoodDetector",
    "IIngredientImageGenerator",
]
