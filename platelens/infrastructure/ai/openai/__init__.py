"""OpenAI client implementation for food detection and thumbnails."""

from platelens.infrastructure.ai.openai.client import OpenAIEnrichmentClient
from platelens.infrastructure.ai.openai.models import (
    DetectedIngredientModel,
    FoodDetectionResponse,
    MacrosModel,
)

__all__ = [
    "OpenAIEnrichmentClient",
    "DetectedIngredientModel",
    "FoodDetectionResponse",
    "MacrosModel",
]
