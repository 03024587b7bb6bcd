"""Service layer exception classes for the fridge tracker inventory core.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the core.

Exception Hierarchy:
    ServiceError (base)
    ├── RecipeNotFound
    ├── IngredientNotFound
    ├── UnitNotFound
    ├── StockLotNotFound
    ├── StockLotConflict
    ├── InsufficientIngredients
    ├── InvalidOwnerScope
    ├── ValidationError
    └── DatabaseError
"""


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID.

    Args:
        recipe_id: The recipe ID that was not found

    Example:
        >>> raise RecipeNotFound(42)
        RecipeNotFound: Recipe with ID 42 not found
    """

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class IngredientNotFound(ServiceError):
    """Raised when an ingredient cannot be found by ID."""

    def __init__(self, ingredient_id: int):
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient with ID {ingredient_id} not found")


class UnitNotFound(ServiceError):
    """Raised when a unit cannot be found by ID."""

    def __init__(self, unit_id: int):
        self.unit_id = unit_id
        super().__init__(f"Unit with ID {unit_id} not found")


class StockLotNotFound(ServiceError):
    """Raised when a stock lot cannot be found by ID, or is outside the caller's scope.

    Args:
        lot_id: The stock lot ID that was not found

    Example:
        >>> raise StockLotNotFound(456)
        StockLotNotFound: Stock lot with ID 456 not found
    """

    def __init__(self, lot_id: int):
        self.lot_id = lot_id
        super().__init__(f"Stock lot with ID {lot_id} not found")


class StockLotConflict(ServiceError):
    """Raised when a stock lot keeps changing underneath a guarded write.

    The FIFO consumer retries a conflicting lot once; a second conflict
    surfaces this error.
    """

    def __init__(self, lot_id: int):
        self.lot_id = lot_id
        super().__init__(f"Stock lot {lot_id} was modified concurrently; retry the operation")


class InsufficientIngredients(ServiceError):
    """Raised when required ingredients are short and cooking was not forced.

    This is an expected, actionable outcome: the caller can replenish stock
    or retry with force=True.

    Args:
        recipe_id: The recipe being cooked
        missing: List of IngredientAvailability entries for the short
                 required ingredients
    """

    def __init__(self, recipe_id: int, missing: list):
        self.recipe_id = recipe_id
        self.missing = missing
        details = ", ".join(
            f"{item.name} (need {item.required}, have {item.available})" for item in missing
        )
        super().__init__(f"Insufficient ingredients: {details}")


class InvalidOwnerScope(ServiceError):
    """Raised when neither a user nor a group owner can be determined."""

    def __init__(self, message: str = "Either a user_id or a group_id is required"):
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
