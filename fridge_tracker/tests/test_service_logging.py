"""Tests for service layer structured logging.

These tests verify that cooking and consumption emit structured log
entries with owner and recipe context.
"""

import logging

from fridge_tracker.services import cooking_service, recipe_service, stock_lot_service
from fridge_tracker.services.logging_utils import get_service_logger, log_operation
from fridge_tracker.tests.conftest import day


class TestLoggingUtilities:
    """Tests for logging utility functions."""

    def test_get_service_logger_extracts_module_name(self):
        """get_service_logger keeps only the module name under the service prefix."""
        logger = get_service_logger("fridge_tracker.services.cooking_service")
        assert logger.name == "fridge_tracker.services.cooking_service"

    def test_log_operation_includes_extra_context(self, caplog):
        """log_operation attaches context fields to the log record."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(logger, operation="context_test", outcome="success", recipe_id=42)

        [record] = caplog.records
        assert record.getMessage() == "context_test: success"
        assert record.operation == "context_test"
        assert record.recipe_id == 42


class TestServiceLogging:
    """Tests that service operations log their outcome."""

    def test_cook_logs_success(self, test_db, owner, flour, grams, caplog):
        recipe = recipe_service.create_recipe(
            "Flatbread",
            [{"ingredient_id": flour.id, "unit_id": grams.id, "name": "Flour", "quantity": 100}],
        )
        stock_lot_service.add_stock_lot(
            owner, flour.id, grams.id, 100, purchase_date=day(1), expiry_date=day(9)
        )

        with caplog.at_level(logging.INFO, logger="fridge_tracker.services"):
            result = cooking_service.cook_recipe(recipe.id, owner)

        [record] = [r for r in caplog.records if getattr(r, "operation", None) == "cook_recipe"]
        assert record.outcome == "success"
        assert record.owner == "user:1"
        assert record.cooked_lot_id == result.cooked_lot.id

    def test_conflict_logged_as_warning(self, test_db, owner, flour, grams, caplog, monkeypatch):
        stock_lot_service.add_stock_lot(
            owner, flour.id, grams.id, 10, purchase_date=day(1), expiry_date=day(9)
        )
        attempts = iter([False, True])
        monkeypatch.setattr(
            stock_lot_service, "_write_lot_guarded", lambda *args: next(attempts)
        )

        with caplog.at_level(logging.WARNING, logger="fridge_tracker.services"):
            record = stock_lot_service.consume_fifo(owner, flour.id, grams.id, 4)

        assert record.consumed == 4.0
        [warning] = caplog.records
        assert warning.outcome == "revision_conflict"
        assert warning.attempt == 1
