"""Tests for recipe_service."""

import pytest

from fridge_tracker.services import recipe_service
from fridge_tracker.services.exceptions import RecipeNotFound, ValidationError


class TestCreateRecipe:
    def test_lines_kept_in_order(self, test_db, flour, grams):
        recipe = recipe_service.create_recipe(
            "Roux",
            [
                {"ingredient_id": flour.id, "unit_id": grams.id, "quantity": 30},
                {"name": "Butter", "quantity": 30, "unit_text": "g"},
            ],
            servings=2,
        )

        loaded = recipe_service.get_recipe(recipe.id)
        assert [line.display_name for line in loaded.ingredients] == ["Flour", "Butter"]
        assert loaded.ingredients[0].is_consumable
        assert not loaded.ingredients[1].is_linked
        assert loaded.serving_ratio(5) == 2.5

    def test_invalid_lines_rejected(self, test_db):
        with pytest.raises(ValidationError) as exc_info:
            recipe_service.create_recipe(
                "Broken",
                [{"quantity": -1}, {"name": "Salt", "colour": "white"}],
                servings=0,
            )

        assert len(exc_info.value.errors) == 4

    def test_get_recipe_missing(self, test_db):
        assert recipe_service.get_recipe_by_id(42) is None
        with pytest.raises(RecipeNotFound):
            recipe_service.get_recipe(42)
