"""Validation and repair of food detection responses.

Upstream contract violations never fail the scan:
- no usable ingredient list → empty result with zero confidence
- malformed individual ingredients → dropped
- missing dish title → lone ingredient's name, else "Mixed Plate"
- missing calories/macros → density estimate from the portion weight
- negative numbers → zero, confidence clamped to [0, 1]

Ingredients named exactly like a word of the dish title are logged as a
data-quality signal but kept.
"""

import logging
import math
from typing import Any, List

from pydantic import ValidationError

from platelens.domain.enrichment.entities import (
    MIXED_PLATE_TITLE,
    UNKNOWN_DISH_TITLE,
    DetectedIngredient,
    FoodDetectionResult,
)
from platelens.domain.nutrition.entities import Macros
from platelens.domain.nutrition.estimates import estimate_item
from platelens.infrastructure.ai.openai.models import DetectedIngredientModel

logger = logging.getLogger(__name__)

DISH_WORD_MIN_LENGTH = 4


def _non_negative(value: float) -> float:
    return value if math.isfinite(value) and value > 0 else 0.0


def _clamp_confidence(value: Any) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(confidence):
        return 0.0
    return min(max(confidence, 0.0), 1.0)


def _to_domain(item: DetectedIngredientModel) -> DetectedIngredient:
    weight = _non_negative(item.estimated_weight_g)
    calories = item.calories
    macros = (
        Macros(p=_non_negative(item.macros.p), c=_non_negative(item.macros.c), f=_non_negative(item.macros.f))
        if item.macros is not None
        else None
    )
    if calories is None or macros is None:
        logger.warning(
            "Ingredient missing nutrition, using density estimate",
            extra={"ingredient": item.name, "weight_g": weight},
        )
        estimate = estimate_item(item.name, weight)
        calories = estimate.calories if calories is None else calories
        macros = estimate.macros if macros is None else macros
    return DetectedIngredient(
        name=item.name.strip(),
        estimated_weight_g=weight,
        calories=_non_negative(calories),
        macros=macros,
        portion_text=item.portion_text,
        notes=item.notes or None,
    )


def _repair_title(title: str, ingredients: List[DetectedIngredient], source: str) -> str:
    if title:
        return title
    logger.error(
        "Detection response is missing dishTitle",
        extra={"source": source, "ingredient_count": len(ingredients)},
    )
    if len(ingredients) == 1:
        repaired = ingredients[0].name
        logger.warning("Inferred dishTitle from single ingredient", extra={"dish_title": repaired})
        return repaired
    logger.warning("Using fallback dishTitle", extra={"dish_title": MIXED_PLATE_TITLE})
    return MIXED_PLATE_TITLE


def _log_title_collisions(title: str, ingredients: List[DetectedIngredient]) -> None:
    dish_words = {w for w in title.lower().split() if len(w) > DISH_WORD_MIN_LENGTH}
    colliding = [i.name for i in ingredients if i.name.lower() in dish_words]
    if colliding:
        logger.warning(
            "Ingredients look like dish names",
            extra={"dish_title": title, "ingredients": colliding},
        )


def validate_detection(payload: Any, source: str = "unknown") -> FoodDetectionResult:
    """
    Turn a raw detection payload into a FoodDetectionResult.

    Args:
        payload: Decoded JSON returned by the model
        source: "photo" or "text" (logging only)

    Returns:
        Validated result; never raises on malformed payloads

    Example:
        >>> validate_detection({"dishTitle": "", "ingredientsList": [
        ...     {"name": "Banana", "estimated_weight_g": 120, "calories": 107,
        ...      "macros": {"p": 1.3, "c": 27.6, "f": 0.4}}
        ... ]}).dish_title
        'Banana'
    """
    if not isinstance(payload, dict):
        logger.error("Invalid detection response structure", extra={"source": source})
        return FoodDetectionResult.empty()

    raw_title = payload.get("dishTitle")
    title = raw_title.strip() if isinstance(raw_title, str) else ""
    raw_items = payload.get("ingredientsList")

    if not isinstance(raw_items, list):
        logger.error(
            "Detection response has no usable ingredient list",
            extra={"source": source, "dish_title": title},
        )
        return FoodDetectionResult.empty(title or UNKNOWN_DISH_TITLE)

    ingredients: List[DetectedIngredient] = []
    for index, raw in enumerate(raw_items):
        try:
            model = DetectedIngredientModel.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                "Dropping malformed ingredient",
                extra={"source": source, "index": index, "error": str(e)},
            )
            continue
        ingredients.append(_to_domain(model))

    if raw_items and not ingredients:
        logger.error(
            "Every ingredient in the detection response was malformed",
            extra={"source": source, "raw_count": len(raw_items)},
        )
        return FoodDetectionResult.empty(title or UNKNOWN_DISH_TITLE)

    title = _repair_title(title, ingredients, source)
    _log_title_collisions(title, ingredients)

    return FoodDetectionResult(
        dish_title=title,
        ingredients=ingredients,
        confidence=_clamp_confidence(payload.get("confidence", 0.0)),
    )
