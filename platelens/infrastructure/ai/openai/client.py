"""OpenAI client implementing the enrichment ports.

Key Features:
- Photo and text food detection with a JSON-schema response format
- Lenient validation of the returned payload (see validation)
- Ingredient thumbnails via the image generation API
- Retry with exponential backoff and jitter on every API call
"""

import base64
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError
from tenacity import AsyncRetrying

from platelens.domain.enrichment.entities import FoodDetectionResult
from platelens.domain.shared.errors import EnrichmentError
from platelens.infrastructure.ai.openai.models import FoodDetectionResponse
from platelens.infrastructure.ai.prompts.food_detection import (
    FOOD_DETECTION_SYSTEM_PROMPT,
    IMAGE_ANALYSIS_USER_PROMPT,
    build_text_analysis_prompt,
    build_thumbnail_prompt,
)
from platelens.infrastructure.ai.openai.validation import validate_detection
from platelens.infrastructure.ai.retry import call_with_backoff

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = "1024x1024"
THUMBNAIL_QUALITY = "medium"


class OpenAIEnrichmentClient:
    """
    OpenAI adapter implementing IFoodDetector and IIngredientImageGenerator.

    Detection never fails on a malformed model answer: contract violations
    are repaired or turned into an empty result. API failures are retried
    and then raised as EnrichmentError.

    Example:
        >>> client = OpenAIEnrichmentClient(api_key="sk-...")
        >>> result = await client.detect_from_text("2 scrambled eggs with toast")
        >>> print(result.dish_title, len(result.ingredients))
    """

    def __init__(
        self,
        api_key: str,
        image_api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        image_model: str = "gpt-image-1",
        max_completion_tokens: int = 1500,
        retrying: Optional[AsyncRetrying] = None,
    ):
        """
        Initialize OpenAI clients.

        Args:
            api_key: OpenAI API key used for detection
            image_api_key: Separate key for image generation (defaults to api_key)
            model: Chat model used for detection
            image_model: Image generation model
            max_completion_tokens: Completion budget per detection call
            retrying: Retry controller override (tests inject a fake sleep)
        """
        self._client = AsyncOpenAI(api_key=api_key, max_retries=0)
        if image_api_key and image_api_key != api_key:
            self._image_client = AsyncOpenAI(api_key=image_api_key, max_retries=0)
        else:
            self._image_client = self._client
        self._model = model
        self._image_model = image_model
        self._max_completion_tokens = max_completion_tokens
        self._retrying = retrying

    async def detect_from_image(
        self, image: bytes, content_type: str = "image/jpeg"
    ) -> FoodDetectionResult:
        """
        Detect dish and ingredients in a meal photo.

        The image is sent inline as a base64 data URL.
        """
        start_time = time.time()
        logger.info(
            "Analyzing photo",
            extra={"image_bytes": len(image), "content_type": content_type, "model": self._model},
        )

        encoded = base64.b64encode(image).decode("ascii")
        user_message: Dict[str, Any] = {
            "role": "user",
            "content": [
                {"type": "text", "text": IMAGE_ANALYSIS_USER_PROMPT},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{content_type};base64,{encoded}", "detail": "auto"},
                },
            ],
        }

        payload = await self._structured_completion([user_message])
        result = validate_detection(payload, source="photo")

        logger.info(
            "Photo analysis complete",
            extra={
                "dish_title": result.dish_title,
                "item_count": len(result.ingredients),
                "confidence": result.confidence,
                "processing_time_ms": int((time.time() - start_time) * 1000),
            },
        )
        return result

    async def detect_from_text(self, description: str) -> FoodDetectionResult:
        """Detect dish and ingredients in a free-text description."""
        start_time = time.time()
        logger.info(
            "Analyzing text",
            extra={"text_length": len(description), "model": self._model},
        )

        user_message = {"role": "user", "content": build_text_analysis_prompt(description)}
        payload = await self._structured_completion([user_message])
        result = validate_detection(payload, source="text")

        logger.info(
            "Text analysis complete",
            extra={
                "dish_title": result.dish_title,
                "item_count": len(result.ingredients),
                "confidence": result.confidence,
                "processing_time_ms": int((time.time() - start_time) * 1000),
            },
        )
        return result

    async def generate_ingredient_image(self, display_name: str) -> bytes:
        """
        Generate a square thumbnail for an ingredient.

        Returns:
            PNG bytes

        Raises:
            EnrichmentError: If the API returned no image or kept failing
        """
        logger.info(
            "Generating ingredient image",
            extra={"display_name": display_name, "model": self._image_model},
        )
        response = await self._call(
            "image generation",
            self._image_client.images.generate,
            model=self._image_model,
            prompt=build_thumbnail_prompt(display_name),
            size=THUMBNAIL_SIZE,
            quality=THUMBNAIL_QUALITY,
        )

        data = getattr(response, "data", None) or []
        b64 = data[0].b64_json if data else None
        if not b64:
            raise EnrichmentError("OpenAI image generation returned empty response")
        return base64.b64decode(b64)

    async def _structured_completion(self, messages: List[Dict[str, Any]]) -> Any:
        """
        Run a detection completion and decode its JSON content.

        Returns:
            Decoded JSON, or None when the model returned nothing usable
        """
        full_messages = [
            {"role": "system", "content": FOOD_DETECTION_SYSTEM_PROMPT},
            *messages,
        ]
        completion = await self._call(
            "chat completion",
            self._client.chat.completions.create,
            model=self._model,
            messages=full_messages,
            max_completion_tokens=self._max_completion_tokens,
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": "food_detection",
                    "schema": FoodDetectionResponse.model_json_schema(),
                    "strict": False,
                },
            },
        )

        usage = getattr(completion, "usage", None)
        if usage is not None:
            logger.info(
                "OpenAI response received",
                extra={
                    "model": self._model,
                    "total_tokens": usage.total_tokens,
                    "prompt_tokens": usage.prompt_tokens,
                    "completion_tokens": usage.completion_tokens,
                },
            )

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            logger.error("No content in OpenAI response", extra={"model": self._model})
            return None

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(
                "OpenAI response is not valid JSON",
                extra={"model": self._model, "error": str(e), "content": content[:200]},
            )
            return None

    async def _call(
        self, operation: str, fn: Callable[..., Awaitable[Any]], **kwargs: Any
    ) -> Any:
        try:
            return await call_with_backoff(fn, retrying=self._retrying, **kwargs)
        except OpenAIError as e:
            logger.error(
                f"OpenAI {operation} failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            raise EnrichmentError(f"OpenAI {operation} failed: {e}") from e
