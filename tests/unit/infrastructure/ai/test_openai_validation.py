"""Unit tests for detection payload validation and repair."""

import logging

import pytest

from platelens.domain.enrichment.entities import MIXED_PLATE_TITLE, UNKNOWN_DISH_TITLE
from platelens.domain.nutrition.entities import Macros
from platelens.infrastructure.ai.openai.validation import validate_detection


def _ingredient(name: str = "Eggs", **overrides):
    item = {
        "name": name,
        "portion_text": "2 large",
        "estimated_weight_g": 100,
        "calories": 143,
        "macros": {"p": 12.6, "c": 0.7, "f": 9.5},
    }
    item.update(overrides)
    return item


class TestStructure:
    """Test handling of payloads without a usable structure."""

    @pytest.mark.parametrize("payload", [None, "text", 42, ["a", "b"]])
    def test_non_object_gives_empty_result(self, payload) -> None:
        result = validate_detection(payload)

        assert result.is_empty()
        assert result.dish_title == UNKNOWN_DISH_TITLE
        assert result.confidence == 0.0

    def test_missing_ingredient_list_keeps_title(self) -> None:
        result = validate_detection({"dishTitle": "Pancakes", "confidence": 0.9})

        assert result.is_empty()
        assert result.dish_title == "Pancakes"
        assert result.confidence == 0.0

    def test_non_list_ingredients_without_title(self) -> None:
        result = validate_detection({"ingredientsList": {"name": "Eggs"}})

        assert result.is_empty()
        assert result.dish_title == UNKNOWN_DISH_TITLE

    def test_all_items_malformed_gives_empty_result(self) -> None:
        payload = {
            "dishTitle": "Soup",
            "ingredientsList": [{"name": ""}, {"portion_text": "1 cup"}, "carrot"],
            "confidence": 0.7,
        }

        result = validate_detection(payload)

        assert result.is_empty()
        assert result.dish_title == "Soup"
        assert result.confidence == 0.0

    def test_empty_list_is_valid(self) -> None:
        result = validate_detection({"dishTitle": "Water", "ingredientsList": [], "confidence": 0.4})

        assert result.is_empty()
        assert result.dish_title == "Water"
        assert result.confidence == 0.4


class TestIngredients:
    """Test per-ingredient validation."""

    def test_valid_payload(self) -> None:
        payload = {
            "dishTitle": "Scrambled Eggs with Toast",
            "ingredientsList": [_ingredient("Eggs"), _ingredient("Toast", calories=88)],
            "confidence": 0.92,
        }

        result = validate_detection(payload, source="text")

        assert result.dish_title == "Scrambled Eggs with Toast"
        assert [i.name for i in result.ingredients] == ["Eggs", "Toast"]
        assert result.ingredients[0].macros == Macros(p=12.6, c=0.7, f=9.5)
        assert result.ingredients[0].portion_text == "2 large"
        assert result.ingredients[1].calories == 88
        assert result.confidence == 0.92

    def test_malformed_items_are_dropped(self) -> None:
        payload = {
            "dishTitle": "Breakfast",
            "ingredientsList": [
                _ingredient("Eggs"),
                {"name": "Bacon"},
                _ingredient("Toast"),
            ],
            "confidence": 0.8,
        }

        result = validate_detection(payload)

        assert [i.name for i in result.ingredients] == ["Eggs", "Toast"]

    def test_missing_nutrition_is_estimated(self) -> None:
        payload = {
            "dishTitle": "Fruit",
            "ingredientsList": [{"name": "Banana", "estimated_weight_g": 120}],
        }

        result = validate_detection(payload)

        banana = result.ingredients[0]
        assert banana.calories == 107
        assert banana.macros == Macros(p=1.3, c=27.6, f=0.4)

    def test_missing_macros_keeps_reported_calories(self) -> None:
        payload = {
            "dishTitle": "Fruit",
            "ingredientsList": [{"name": "Banana", "estimated_weight_g": 120, "calories": 110}],
        }

        banana = validate_detection(payload).ingredients[0]

        assert banana.calories == 110
        assert banana.macros == Macros(p=1.3, c=27.6, f=0.4)

    def test_negative_numbers_clamped(self) -> None:
        payload = {
            "dishTitle": "Odd",
            "ingredientsList": [
                _ingredient(
                    "Eggs",
                    estimated_weight_g=-5,
                    calories=-10,
                    macros={"p": -1, "c": 2, "f": 3},
                )
            ],
        }

        eggs = validate_detection(payload).ingredients[0]

        assert eggs.estimated_weight_g == 0.0
        assert eggs.calories == 0.0
        assert eggs.macros == Macros(p=0.0, c=2.0, f=3.0)

    def test_name_is_stripped(self) -> None:
        payload = {"dishTitle": "Eggs", "ingredientsList": [_ingredient("  Eggs  ")]}

        assert validate_detection(payload).ingredients[0].name == "Eggs"


class TestDishTitle:
    """Test dish title repair."""

    def test_missing_title_single_ingredient(self) -> None:
        payload = {"ingredientsList": [_ingredient("Banana")], "confidence": 0.6}

        assert validate_detection(payload).dish_title == "Banana"

    def test_blank_title_multiple_ingredients(self) -> None:
        payload = {
            "dishTitle": "   ",
            "ingredientsList": [_ingredient("Eggs"), _ingredient("Toast")],
        }

        assert validate_detection(payload).dish_title == MIXED_PLATE_TITLE

    def test_title_is_stripped(self) -> None:
        payload = {"dishTitle": " Omelette ", "ingredientsList": [_ingredient("Eggs")]}

        assert validate_detection(payload).dish_title == "Omelette"

    def test_ingredient_named_like_dish_is_kept_and_logged(self, caplog) -> None:
        payload = {
            "dishTitle": "Margherita Pizza",
            "ingredientsList": [_ingredient("Pizza"), _ingredient("Tomato sauce")],
        }

        with caplog.at_level(logging.WARNING):
            result = validate_detection(payload)

        assert [i.name for i in result.ingredients] == ["Pizza", "Tomato sauce"]
        assert "Ingredients look like dish names" in caplog.text


class TestConfidence:
    """Test confidence clamping."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (0.5, 0.5),
            (1.7, 1.0),
            (-0.2, 0.0),
            ("0.3", 0.3),
            ("high", 0.0),
            (None, 0.0),
            (float("nan"), 0.0),
            ("NaN", 0.0),
            (float("inf"), 0.0),
        ],
    )
    def test_clamped(self, raw, expected) -> None:
        payload = {"dishTitle": "Eggs", "ingredientsList": [_ingredient()], "confidence": raw}

        assert validate_detection(payload).confidence == pytest.approx(expected)

    def test_missing_confidence_is_zero(self) -> None:
        payload = {"dishTitle": "Eggs", "ingredientsList": [_ingredient()]}

        assert validate_detection(payload).confidence == 0.0
