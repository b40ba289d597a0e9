"""Enrichment provider factory.

Environment-based provider selection:
- ENRICHMENT_PROVIDER=openai → OpenAIEnrichmentClient (requires OPENAI_API_KEY)
- ENRICHMENT_PROVIDER=stub (default) → StubEnrichmentProvider

Usage:
    from platelens.infrastructure.ai.factory import create_enrichment_provider

    provider = create_enrichment_provider()
    result = await provider.detect_from_text("chicken caesar salad")
"""

import logging
from typing import Union

from platelens.infrastructure.ai.openai.client import OpenAIEnrichmentClient
from platelens.infrastructure.ai.stub_provider import StubEnrichmentProvider
from platelens.infrastructure.config import (
    get_ai_image_model,
    get_ai_model,
    get_enrichment_provider,
    get_openai_api_key,
    get_openai_image_api_key,
)

logger = logging.getLogger(__name__)

EnrichmentProvider = Union[OpenAIEnrichmentClient, StubEnrichmentProvider]


def create_enrichment_provider() -> EnrichmentProvider:
    """Create the provider selected by ENRICHMENT_PROVIDER.

    Returns:
        Object implementing IFoodDetector and IIngredientImageGenerator

    Raises:
        ValueError: If ENRICHMENT_PROVIDER=openai and OPENAI_API_KEY is not set,
            or the provider name is unknown
    """
    mode = get_enrichment_provider()

    if mode == "openai":
        api_key = get_openai_api_key()
        if not api_key:
            raise ValueError(
                "ENRICHMENT_PROVIDER=openai but OPENAI_API_KEY not set. "
                "Set OPENAI_API_KEY in .env or use ENRICHMENT_PROVIDER=stub"
            )
        logger.info("Using OpenAI enrichment provider", extra={"model": get_ai_model()})
        return OpenAIEnrichmentClient(
            api_key=api_key,
            image_api_key=get_openai_image_api_key(),
            model=get_ai_model(),
            image_model=get_ai_image_model(),
        )

    if mode == "stub":
        return StubEnrichmentProvider()

    raise ValueError(f"Unknown ENRICHMENT_PROVIDER: {mode}. Use 'openai' or 'stub'")
