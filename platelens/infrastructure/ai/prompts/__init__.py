"""Food detection prompts for OpenAI."""

from platelens.infrastructure.ai.prompts.food_detection import (
    FOOD_DETECTION_SYSTEM_PROMPT,
    IMAGE_ANALYSIS_USER_PROMPT,
    build_text_analysis_prompt,
    build_thumbnail_prompt,
)

__all__ = [
    "FOOD_DETECTION_SYSTEM_PROMPT",
    "IMAGE_ANALYSIS_USER_PROMPT",
    "build_text_analysis_prompt",
    "build_thumbnail_prompt",
]
