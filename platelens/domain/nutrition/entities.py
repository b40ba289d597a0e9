"""Nutrition value objects."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class Macros:
    """Macronutrients in grams: protein (p), carbohydrates (c), fat (f)."""

    p: float = 0.0
    c: float = 0.0
    f: float = 0.0

    @classmethod
    def from_document(cls, doc: Optional[Mapping[str, Any]]) -> "Macros":
        doc = doc or {}
        return cls(
            p=float(doc.get("p") or 0.0),
            c=float(doc.get("c") or 0.0),
            f=float(doc.get("f") or 0.0),
        )

    def to_document(self) -> Dict[str, float]:
        return {"p": self.p, "c": self.c, "f": self.f}


@dataclass(frozen=True)
class NutritionTotals:
    """
    Calories plus macros for one item or for a whole meal.

    Example:
        NutritionTotals(calories=420, p=21.5, c=30.0, f=18.2)
    """

    calories: float = 0
    p: float = 0.0
    c: float = 0.0
    f: float = 0.0

    @property
    def macros(self) -> Macros:
        return Macros(p=self.p, c=self.c, f=self.f)
