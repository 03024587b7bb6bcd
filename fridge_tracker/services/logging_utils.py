"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across cooking, consumption and
shopping-list operations.

Usage:
    from fridge_tracker.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="cook_recipe",
        outcome="success",
        recipe_id=45,
        cooked_lot_id=123,
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger named under the 'fridge_tracker.services' prefix.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'fridge_tracker.services.cooking_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"fridge_tracker.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "cook_recipe", "consume_fifo")
        outcome: Outcome description (e.g., "success", "insufficient_ingredients")
        level: Log level (default: INFO). Use DEBUG for verbose/frequent logs.
        **context: Additional context fields (entity IDs, quantities, etc.)
            Common fields:
            - recipe_id: Recipe being processed
            - owner: Owner scope description
            - cooked_lot_id: ID of the created dish lot
            - missing_ingredients: Names of short ingredients
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
