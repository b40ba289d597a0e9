"""Per-100g density estimates.

Used to fill an ingredient whose calories or macros are missing from the
model response. Unknown foods fall back to a generic mixed-food row.
"""

from typing import Dict, Tuple

from platelens.domain.nutrition.aggregator import round_half_up
from platelens.domain.nutrition.entities import NutritionTotals

# name -> (kcal, protein, carbs, fat) per 100 g
DENSITY_PER_100G: Dict[str, Tuple[float, float, float, float]] = {
    "egg": (143.0, 12.6, 0.7, 9.5),
    "eggs": (143.0, 12.6, 0.7, 9.5),
    "bread": (265.0, 9.0, 49.0, 3.2),
    "toast": (293.0, 9.0, 54.0, 4.0),
    "butter": (717.0, 0.9, 0.1, 81.0),
    "rice": (130.0, 2.7, 28.0, 0.3),
    "pasta": (158.0, 5.8, 31.0, 0.9),
    "chicken breast": (165.0, 31.0, 0.0, 3.6),
    "salmon": (206.0, 22.0, 0.0, 12.0),
    "mozzarella cheese": (280.0, 28.0, 3.1, 17.0),
    "olive oil": (884.0, 0.0, 0.0, 100.0),
    "tomato": (18.0, 0.9, 3.9, 0.2),
    "potato": (87.0, 1.9, 20.0, 0.1),
    "banana": (89.0, 1.1, 23.0, 0.3),
    "apple": (52.0, 0.3, 14.0, 0.2),
    "milk": (61.0, 3.2, 4.8, 3.3),
}

FALLBACK_PER_100G: Tuple[float, float, float, float] = (150.0, 8.0, 15.0, 5.0)


def estimate_item(name: str, grams: float) -> NutritionTotals:
    """
    Estimate nutrition for ``grams`` of the named food.

    Args:
        name: Ingredient name (case-insensitive exact lookup)
        grams: Portion weight; negative values count as zero

    Returns:
        NutritionTotals with integer calories and one-decimal macros

    Example:
        >>> estimate_item("Butter", 10)
        NutritionTotals(calories=72, p=0.1, c=0.0, f=8.1)
    """
    kcal, protein, carbs, fat = DENSITY_PER_100G.get(name.strip().lower(), FALLBACK_PER_100G)
    factor = max(grams, 0.0) / 100.0
    return NutritionTotals(
        calories=int(round_half_up(kcal * factor)),
        p=round_half_up(protein * factor, 1),
        c=round_half_up(carbs * factor, 1),
        f=round_half_up(fat * factor, 1),
    )
