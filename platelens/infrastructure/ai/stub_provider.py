"""Stub enrichment provider for development and tests.

Returns deterministic detection results without calling external APIs.
Results are picked from keywords in the description; nutrition comes from
the same density table used to repair incomplete model answers.
"""

import hashlib
import io
import logging
from typing import Dict, List, Tuple

from PIL import Image

from platelens.domain.enrichment.entities import (
    UNKNOWN_DISH_TITLE,
    DetectedIngredient,
    FoodDetectionResult,
)
from platelens.domain.nutrition.estimates import estimate_item

logger = logging.getLogger(__name__)

THUMBNAIL_PX = 64

# dish title -> [(ingredient name, portion text, grams)]
_DISHES: Dict[str, List[Tuple[str, str, float]]] = {
    "Scrambled Eggs with Toast": [
        ("Eggs", "2 large", 100.0),
        ("Butter", "1 teaspoon", 5.0),
        ("Toast", "1 slice", 30.0),
    ],
    "Caprese Salad": [
        ("Mozzarella cheese", "4 slices", 100.0),
        ("Tomato", "1 medium", 120.0),
        ("Olive oil", "1 tablespoon", 14.0),
    ],
    "Margherita Pizza": [
        ("Pizza dough", "1 base", 150.0),
        ("Tomato sauce", "1/4 cup", 60.0),
        ("Mozzarella cheese", "3 oz", 85.0),
    ],
    "Grilled Chicken with Rice": [
        ("Chicken breast", "1 fillet", 150.0),
        ("Rice", "1 cup", 180.0),
        ("Others", "olive oil, salt, pepper", 8.0),
    ],
}

# keyword -> dish title, checked in order
_KEYWORDS: List[Tuple[str, str]] = [
    ("egg", "Scrambled Eggs with Toast"),
    ("pizza", "Margherita Pizza"),
    ("caprese", "Caprese Salad"),
    ("mozzarella", "Caprese Salad"),
    ("chicken", "Grilled Chicken with Rice"),
]

PHOTO_DISH = "Grilled Chicken with Rice"


def _build_result(dish_title: str, confidence: float) -> FoodDetectionResult:
    ingredients = []
    for name, portion_text, grams in _DISHES[dish_title]:
        totals = estimate_item(name, grams)
        ingredients.append(
            DetectedIngredient(
                name=name,
                estimated_weight_g=grams,
                calories=totals.calories,
                macros=totals.macros,
                portion_text=portion_text,
            )
        )
    return FoodDetectionResult(dish_title=dish_title, ingredients=ingredients, confidence=confidence)


class StubEnrichmentProvider:
    """
    Stub implementation of IFoodDetector and IIngredientImageGenerator.

    - Text: keyword match on the description ("egg" → Scrambled Eggs with
      Toast, "pizza" → Margherita Pizza, ...); blank text → empty result
    - Photo: always Grilled Chicken with Rice
    - Images: a small solid-colour PNG whose colour derives from the name
    """

    async def detect_from_image(
        self, image: bytes, content_type: str = "image/jpeg"
    ) -> FoodDetectionResult:
        logger.debug("Stub photo detection", extra={"image_bytes": len(image)})
        return _build_result(PHOTO_DISH, confidence=0.8)

    async def detect_from_text(self, description: str) -> FoodDetectionResult:
        text = description.strip().lower()
        if not text:
            return FoodDetectionResult.empty(UNKNOWN_DISH_TITLE)

        for keyword, dish_title in _KEYWORDS:
            if keyword in text:
                return _build_result(dish_title, confidence=0.9)

        return _build_result(PHOTO_DISH, confidence=0.5)

    async def generate_ingredient_image(self, display_name: str) -> bytes:
        digest = hashlib.sha1(display_name.strip().lower().encode("utf-8")).digest()
        image = Image.new("RGB", (THUMBNAIL_PX, THUMBNAIL_PX), color=(digest[0], digest[1], digest[2]))
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
