"""Tests for cooking_service: cookability checks and cooking from the fridge.

Tests cover:
- Required vs optional lines in check_cookability()
- Serving scaling of required quantities
- cook_recipe() consumption, dish lot creation and shortfall warnings
- force=True cooking with short stock
- Atomic rollback when the cook fails part-way
"""

from datetime import timedelta

import pytest

from fridge_tracker.models import LotKind, LotStatus
from fridge_tracker.services import cooking_service, recipe_service, stock_lot_service
from fridge_tracker.services.exceptions import (
    DatabaseError,
    InsufficientIngredients,
    InvalidOwnerScope,
    RecipeNotFound,
    ValidationError,
)
from fridge_tracker.services.stock_lot_service import ConsumptionRecord
from fridge_tracker.tests.conftest import day


@pytest.fixture
def bread(test_db, flour, grams):
    """One-serving recipe needing 100 g flour."""
    return recipe_service.create_recipe(
        "Flatbread",
        [{"ingredient_id": flour.id, "unit_id": grams.id, "name": "Flour", "quantity": 100}],
        servings=1,
    )


@pytest.fixture
def omelette(test_db, eggs, basil, pieces, grams):
    """Recipe with a required line, an optional stocked line and a free-text line."""
    return recipe_service.create_recipe(
        "Omelette",
        [
            {"ingredient_id": eggs.id, "unit_id": pieces.id, "name": "Eggs", "quantity": 3},
            {
                "ingredient_id": basil.id,
                "unit_id": grams.id,
                "name": "Basil",
                "quantity": 5,
                "optional": True,
            },
            {"name": "Salt", "unit_text": "pinch", "quantity": 1, "optional": True},
        ],
        servings=1,
    )


@pytest.fixture
def twice_flour(test_db, flour, grams):
    """Recipe using flour twice in the same unit."""
    return recipe_service.create_recipe(
        "Fried Dough",
        [
            {"ingredient_id": flour.id, "unit_id": grams.id, "name": "Flour", "quantity": 100},
            {
                "ingredient_id": flour.id,
                "unit_id": grams.id,
                "name": "Flour for dusting",
                "quantity": 100,
            },
        ],
    )


def _stock(owner, ingredient, unit, quantity, price=0.0, expiry=None):
    return stock_lot_service.add_stock_lot(
        owner,
        ingredient.id,
        unit.id,
        quantity,
        price=price,
        purchase_date=day(1),
        expiry_date=expiry or day(20),
    )


class TestCheckCookability:
    """Tests for check_cookability()."""

    def test_required_present_optional_missing(self, test_db, owner, omelette, eggs, pieces):
        """Test: missing optional lines don't block cooking."""
        _stock(owner, eggs, pieces, 6)

        result = cooking_service.check_cookability(omelette.id, owner)

        assert result.can_cook_required is True
        assert result.can_cook is True
        assert result.can_cook_all is False
        assert result.required_missing == []
        assert [item.name for item in result.optional_missing] == ["Basil", "Salt"]
        assert result.ingredients is None

    def test_required_missing(self, test_db, owner, omelette, eggs, pieces):
        """Test: a short required line reports required, available and missing."""
        _stock(owner, eggs, pieces, 2)

        result = cooking_service.check_cookability(omelette.id, owner)

        assert result.can_cook_required is False
        [eggs_line] = result.required_missing
        assert (eggs_line.required, eggs_line.available, eggs_line.missing) == (3.0, 2.0, 1.0)

    def test_required_and_optional_split(self, test_db, owner, flour, basil, grams):
        """Test: one short required line and one short optional line land in separate lists."""
        recipe = recipe_service.create_recipe(
            "Pesto Bread",
            [
                {"ingredient_id": flour.id, "unit_id": grams.id, "name": "Flour", "quantity": 100},
                {
                    "ingredient_id": basil.id,
                    "unit_id": grams.id,
                    "name": "Basil",
                    "quantity": 5,
                    "optional": True,
                },
            ],
        )
        _stock(owner, flour, grams, 50)

        result = cooking_service.check_cookability(recipe.id, owner)

        assert result.can_cook_required is False
        assert result.can_cook_all is False
        assert [item.name for item in result.required_missing] == ["Flour"]
        assert [item.name for item in result.optional_missing] == ["Basil"]

    def test_repeated_ingredient_shares_stock(self, test_db, owner, twice_flour, flour, grams):
        """Test: two 100 g flour lines against 150 g leave the second line 50 g short."""
        _stock(owner, flour, grams, 150)

        result = cooking_service.check_cookability(twice_flour.id, owner, verbose=True)

        assert result.can_cook_required is False
        first, second = result.ingredients
        assert (first.available, first.is_enough) == (150.0, True)
        assert (second.available, second.missing) == (50.0, 50.0)
        assert [item.name for item in result.required_missing] == ["Flour for dusting"]

    def test_servings_scale_required_quantity(self, test_db, owner, bread, flour, grams):
        """Test: cooking 3 servings of a 1-serving recipe needs 300 g."""
        _stock(owner, flour, grams, 250)

        result = cooking_service.check_cookability(bread.id, owner, servings=3, verbose=True)

        assert result.servings == 3
        [line] = result.ingredients
        assert (line.required, line.available, line.missing) == (300.0, 250.0, 50.0)
        assert result.can_cook_required is False

    def test_check_is_read_only(self, test_db, owner, bread, flour, grams):
        """Test: repeated checks return the same answer and leave stock alone."""
        _stock(owner, flour, grams, 150)

        first = cooking_service.check_cookability(bread.id, owner, verbose=True)
        second = cooking_service.check_cookability(bread.id, owner, verbose=True)

        assert first == second
        assert stock_lot_service.get_available_quantity(owner, flour.id, grams.id) == 150.0

    def test_other_scope_stock_ignored(self, test_db, owner, group_owner, bread, flour, grams):
        """Test: household stock doesn't make a personal cook possible."""
        _stock(group_owner, flour, grams, 500)

        assert not cooking_service.check_cookability(bread.id, owner).can_cook_required
        assert cooking_service.check_cookability(bread.id, group_owner).can_cook_required

    def test_unknown_recipe(self, test_db, owner):
        """Test: unknown recipe IDs raise RecipeNotFound."""
        with pytest.raises(RecipeNotFound):
            cooking_service.check_cookability(999, owner)

    def test_negative_servings_rejected(self, test_db, owner, bread):
        """Test: servings cannot be negative."""
        with pytest.raises(ValidationError):
            cooking_service.check_cookability(bread.id, owner, servings=-1)


class TestCookRecipe:
    """Tests for cook_recipe()."""

    def test_exact_cook(self, test_db, owner, bread, flour, grams):
        """Test: 2 servings draw 200 g of 300 g and store a 2-serving dish."""
        lot = _stock(owner, flour, grams, 300, price=6.0)

        result = cooking_service.cook_recipe(bread.id, owner, servings=2)

        assert result.warnings == []
        assert result.total_consumed == 1
        assert stock_lot_service.get_stock_lot(lot.id).quantity == 100.0

        dish = result.cooked_lot
        assert dish.kind == LotKind.COOKED_DISH.value
        assert dish.status == LotStatus.IN_STOCK.value
        assert dish.quantity == 2.0
        assert dish.unit_id is None
        assert dish.recipe_id == bread.id
        assert dish.cooked_from_recipe_id == bread.id
        assert dish.price == 4.0
        assert (dish.user_id, dish.group_id) == (owner.user_id, None)

    def test_insufficient_aborts_without_consuming(self, test_db, owner, bread, flour, grams):
        """Test: a short required line raises and leaves stock unchanged."""
        _stock(owner, flour, grams, 50)

        with pytest.raises(InsufficientIngredients) as exc_info:
            cooking_service.cook_recipe(bread.id, owner, servings=2)

        assert [item.name for item in exc_info.value.missing] == ["Flour"]
        assert "Flour (need 200.0, have 50.0)" in str(exc_info.value)
        assert stock_lot_service.get_available_quantity(owner, flour.id, grams.id) == 50.0
        assert stock_lot_service.get_stock_lots(owner, kind=LotKind.COOKED_DISH.value) == []

    def test_forced_cook_consumes_what_exists(self, test_db, owner, bread, flour, grams):
        """Test: force=True drains 50 of the 200 needed and warns about 150."""
        _stock(owner, flour, grams, 50, price=5.0)

        result = cooking_service.cook_recipe(bread.id, owner, servings=2, force=True)

        [consumption] = result.consumptions
        assert (consumption.consumed, consumption.shortfall) == (50.0, 150.0)
        [warning] = result.warnings
        assert (warning.name, warning.required, warning.missing) == ("Flour", 200.0, 150.0)
        assert warning.optional is False
        assert result.cooked_lot.quantity == 2.0
        assert result.cooked_lot.price == 5.0
        assert stock_lot_service.get_available_quantity(owner, flour.id, grams.id) == 0.0

    def test_optional_lines_consumed_and_warned(
        self, test_db, owner, omelette, eggs, basil, pieces, grams
    ):
        """Test: optional stock is drawn too; what it lacks becomes a warning."""
        _stock(owner, eggs, pieces, 6)
        _stock(owner, basil, grams, 3)

        result = cooking_service.cook_recipe(omelette.id, owner)

        assert stock_lot_service.get_available_quantity(owner, eggs.id, pieces.id) == 3.0
        assert stock_lot_service.get_available_quantity(owner, basil.id, grams.id) == 0.0
        assert len(result.consumptions) == 2
        warnings = {w.name: w for w in result.warnings}
        assert set(warnings) == {"Basil", "Salt"}
        assert warnings["Basil"].missing == 2.0
        assert warnings["Basil"].optional is True
        assert warnings["Salt"].missing == 1.0

    def test_dish_expiry_defaults_to_three_days(self, test_db, owner, bread, flour, grams):
        """Test: a cooked dish expires three days after cooking by default."""
        _stock(owner, flour, grams, 100)

        dish = cooking_service.cook_recipe(bread.id, owner).cooked_lot

        assert dish.expiry_date - dish.cooked_at == timedelta(days=3)

    def test_dish_expiry_from_environment(self, test_db, owner, bread, flour, grams, monkeypatch):
        """Test: FRIDGE_TRACKER_COOKED_EXPIRY_DAYS overrides the shelf life."""
        from fridge_tracker.utils.config import reset_config

        monkeypatch.setenv("FRIDGE_TRACKER_COOKED_EXPIRY_DAYS", "5")
        reset_config()
        _stock(owner, flour, grams, 100)

        dish = cooking_service.cook_recipe(bread.id, owner).cooked_lot

        assert dish.expiry_date - dish.cooked_at == timedelta(days=5)

    def test_group_dish_has_no_user(self, test_db, group_owner, bread, flour, grams):
        """Test: a household cook stores the dish under the group only."""
        _stock(group_owner, flour, grams, 100)

        dish = cooking_service.cook_recipe(
            bread.id, {"user_id": 1, "group_id": group_owner.group_id}
        ).cooked_lot

        assert (dish.user_id, dish.group_id) == (None, group_owner.group_id)

    def test_failure_rolls_back_consumption(
        self, test_db, owner, bread, flour, grams, monkeypatch
    ):
        """Test: an error after consumption leaves every lot as it was."""
        _stock(owner, flour, grams, 300)

        def _broken(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(stock_lot_service, "create_cooked_dish_lot", _broken)

        with pytest.raises(DatabaseError):
            cooking_service.cook_recipe(bread.id, owner)

        assert stock_lot_service.get_available_quantity(owner, flour.id, grams.id) == 300.0

    def test_invalid_owner(self, test_db, bread):
        """Test: a principal without user or group is rejected."""
        with pytest.raises(InvalidOwnerScope):
            cooking_service.cook_recipe(bread.id, {"name": "nobody"})

    def test_repeated_ingredient_blocks_unforced_cook(
        self, test_db, owner, twice_flour, flour, grams
    ):
        """Test: lines sharing one stock can't overdraw it without force."""
        _stock(owner, flour, grams, 150)

        with pytest.raises(InsufficientIngredients):
            cooking_service.cook_recipe(twice_flour.id, owner)

        assert stock_lot_service.get_available_quantity(owner, flour.id, grams.id) == 150.0

    def test_repeated_ingredient_forced_cook_warns(
        self, test_db, owner, twice_flour, flour, grams
    ):
        """Test: a forced cook reports the second line's 50 g shortfall."""
        _stock(owner, flour, grams, 150)

        result = cooking_service.cook_recipe(twice_flour.id, owner, force=True)

        assert [record.shortfall for record in result.consumptions] == [0.0, 50.0]
        [warning] = result.warnings
        assert warning.name == "Flour for dusting"
        assert (warning.missing, warning.optional) == (50.0, False)


class TestCollectWarnings:
    """Tests for merging snapshot and consumption shortfalls."""

    def _line(self, missing=0.0, optional=False):
        return cooking_service.IngredientAvailability(
            ingredient_id=1,
            unit_id=1,
            name="Flour",
            required=100.0,
            available=100.0 - missing,
            missing=missing,
            optional=optional,
            is_enough=missing == 0,
        )

    def _snapshot(self, *lines):
        return cooking_service.CookabilityResult(
            recipe_id=1,
            recipe_title="Bread",
            servings=1,
            can_cook_required=True,
            can_cook_all=True,
            ingredients=list(lines),
        )

    def test_consumption_shortfall_beats_snapshot(self):
        """Test: stock that vanished between check and draw is still reported."""
        record = ConsumptionRecord(ingredient_id=1, unit_id=1, requested=100.0, shortfall=30.0)

        [warning] = cooking_service._collect_warnings(self._snapshot(self._line()), [record])

        assert (warning.missing, warning.required, warning.optional) == (30.0, 100.0, False)

    def test_snapshot_shortfall_kept_for_required_line(self):
        record = ConsumptionRecord(ingredient_id=1, unit_id=1, requested=100.0, shortfall=20.0)

        [warning] = cooking_service._collect_warnings(
            self._snapshot(self._line(missing=40.0)), [record]
        )

        assert warning.missing == 40.0

    def test_no_warning_when_satisfied(self):
        record = ConsumptionRecord(ingredient_id=1, unit_id=1, requested=100.0, consumed=100.0)

        assert cooking_service._collect_warnings(self._snapshot(self._line()), [record]) == []
