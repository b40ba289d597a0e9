"""Food detection entities returned by the enrichment adapter."""

from dataclasses import dataclass, field
from typing import List, Optional

from platelens.domain.nutrition.entities import Macros

UNKNOWN_DISH_TITLE = "Unknown Dish"
MIXED_PLATE_TITLE = "Mixed Plate"


@dataclass(frozen=True)
class DetectedIngredient:
    """
    Entity: one ingredient detected in a photo or text.

    Example:
        DetectedIngredient(
            name="Mozzarella cheese",
            portion_text="2 slices",
            estimated_weight_g=56.0,
            calories=157.0,
            macros=Macros(p=15.7, c=1.7, f=9.5),
        )
    """

    name: str
    estimated_weight_g: float
    calories: float
    macros: Macros
    portion_text: str = ""
    notes: Optional[str] = None


@dataclass(frozen=True)
class FoodDetectionResult:
    """
    Entity: validated detection output.

    An empty ingredient list with zero confidence is the pipeline's
    "nothing usable found" result; it is not an error.
    """

    dish_title: str
    ingredients: List[DetectedIngredient] = field(default_factory=list)
    confidence: float = 0.0

    @classmethod
    def empty(cls, dish_title: str = UNKNOWN_DISH_TITLE) -> "FoodDetectionResult":
        return cls(dish_title=dish_title, ingredients=[], confidence=0.0)

    def is_empty(self) -> bool:
        return not self.ingredients
