"""Pydantic models for OpenAI structured outputs.

These models define the JSON schema sent as ``response_format`` and are used
to validate each returned ingredient. Field names follow the wire format the
client apps consume (``dishTitle``, ``ingredientsList``).
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MacrosModel(BaseModel):
    """Macronutrients for one ingredient portion."""

    p: float = Field(..., description="Protein in grams")
    c: float = Field(..., description="Carbohydrates in grams")
    f: float = Field(..., description="Fat in grams")


class DetectedIngredientModel(BaseModel):
    """
    Single ingredient recognized from photo or text.

    Maps to domain entity DetectedIngredient.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(
        ...,
        min_length=1,
        description=(
            "Name of the ingredient (e.g., 'Mozzarella cheese', 'Tomato sauce'). "
            "Can use 'Others' for minor ingredients combined."
        ),
    )
    portion_text: str = Field(
        default="",
        description='Portion in everyday units (e.g., "1 cup", "2 slices", "1 tablespoon")',
    )
    estimated_weight_g: float = Field(..., description="Estimated weight in grams")
    calories: Optional[float] = Field(
        default=None,
        description="Estimated calories for this specific portion of the ingredient",
    )
    macros: Optional[MacrosModel] = Field(
        default=None,
        description="Macronutrients for this ingredient",
    )
    notes: Optional[str] = Field(
        default=None,
        description="Any uncertainty or additional observations",
    )


class FoodDetectionResponse(BaseModel):
    """
    Complete response from food detection.

    This is the root model for OpenAI structured outputs.
    """

    dishTitle: str = Field(
        default="",
        description=(
            'Overall name of the dish (e.g., "Margherita Pizza", '
            '"Grilled Chicken with Rice"). Be specific and appetizing.'
        ),
    )
    ingredientsList: List[DetectedIngredientModel] = Field(
        default_factory=list,
        description=(
            "List of INGREDIENTS only. Do NOT include the dish name itself. "
            "Calculate calories and macros for each ingredient."
        ),
    )
    confidence: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Confidence score from 0 to 1",
    )
