"""Ports (interfaces) for the external AI services.

Domain/application code depends on these; infrastructure provides the
OpenAI-backed implementation and a deterministic stub.
"""

from typing import Protocol

from platelens.domain.enrichment.entities import FoodDetectionResult


class IFoodDetector(Protocol):
    """Interface for food detection (photo or text → ingredients)."""

    async def detect_from_image(
        self, image: bytes, content_type: str = "image/jpeg"
    ) -> FoodDetectionResult:
        """
        Detect dish and ingredients in a meal photo.

        Args:
            image: Raw image bytes
            content_type: MIME type of ``image``

        Returns:
            Validated FoodDetectionResult (possibly empty)

        Raises:
            Exception: Implementation-specific errors once retries are exhausted
        """
        ...

    async def detect_from_text(self, description: str) -> FoodDetectionResult:
        """Detect dish and ingredients in a free-text meal description."""
        ...


class IIngredientImageGenerator(Protocol):
    """Interface for ingredient thumbnail generation."""

    async def generate_ingredient_image(self, display_name: str) -> bytes:
        """
        Generate a thumbnail for an ingredient.

        Returns:
            Image bytes (PNG)

        Raises:
            EnrichmentError: If the service returned no image
        """
        ...
