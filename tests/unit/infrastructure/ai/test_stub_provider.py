"""Unit tests for the stub enrichment provider."""

import io

import pytest
from PIL import Image

from platelens.domain.enrichment.entities import UNKNOWN_DISH_TITLE
from platelens.infrastructure.ai.stub_provider import PHOTO_DISH, StubEnrichmentProvider


@pytest.fixture
def provider() -> StubEnrichmentProvider:
    return StubEnrichmentProvider()


class TestTextDetection:
    @pytest.mark.asyncio
    async def test_keyword_match(self, provider: StubEnrichmentProvider) -> None:
        result = await provider.detect_from_text("2 scrambled eggs with toast")

        assert result.dish_title == "Scrambled Eggs with Toast"
        assert [i.name for i in result.ingredients] == ["Eggs", "Butter", "Toast"]
        assert [i.calories for i in result.ingredients] == [143, 36, 88]
        assert result.confidence == 0.9

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text, dish",
        [
            ("Margherita PIZZA", "Margherita Pizza"),
            ("caprese salad", "Caprese Salad"),
            ("fresh mozzarella", "Caprese Salad"),
            ("grilled chicken", "Grilled Chicken with Rice"),
        ],
    )
    async def test_keywords(self, provider: StubEnrichmentProvider, text: str, dish: str) -> None:
        assert (await provider.detect_from_text(text)).dish_title == dish

    @pytest.mark.asyncio
    async def test_blank_text_is_empty(self, provider: StubEnrichmentProvider) -> None:
        result = await provider.detect_from_text("   ")

        assert result.is_empty()
        assert result.dish_title == UNKNOWN_DISH_TITLE

    @pytest.mark.asyncio
    async def test_no_keyword_falls_back(self, provider: StubEnrichmentProvider) -> None:
        result = await provider.detect_from_text("something unusual")

        assert result.dish_title == PHOTO_DISH
        assert result.confidence == 0.5


class TestPhotoDetection:
    @pytest.mark.asyncio
    async def test_photo_is_deterministic(self, provider: StubEnrichmentProvider) -> None:
        first = await provider.detect_from_image(b"a")
        second = await provider.detect_from_image(b"b", content_type="image/png")

        assert first == second
        assert first.dish_title == PHOTO_DISH
        assert first.confidence == 0.8


class TestImageGeneration:
    @pytest.mark.asyncio
    async def test_png_thumbnail(self, provider: StubEnrichmentProvider) -> None:
        data = await provider.generate_ingredient_image("Tomato")

        image = Image.open(io.BytesIO(data))
        assert image.format == "PNG"
        assert image.size == (64, 64)

    @pytest.mark.asyncio
    async def test_colour_depends_on_name(self, provider: StubEnrichmentProvider) -> None:
        tomato = await provider.generate_ingredient_image("Tomato")
        same = await provider.generate_ingredient_image(" tomato ")
        rice = await provider.generate_ingredient_image("Rice")

        assert tomato == same
        assert tomato != rice
