"""Services package - business logic layer for the fridge tracker inventory core.

Architecture:
- Services: Stateless functions organized by domain
- Transactions: Managed via session_scope() context manager; every public
  function also accepts a caller-owned session
- Exceptions: Consistent error handling via the ServiceError hierarchy
- Owner scope: Every inventory operation takes an explicit Owner

Service Modules:
- stock_lot_service: Stock lots, available quantity and FIFO consumption
- cooking_service: Cookability checks and cooking recipes
- shopping_list_service: Shopping list from a recipe's shortfall
- recipe_service: Read access to the recipe catalog
- catalog_service: Ingredient and unit lookups

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- owner_scope: Owner value type and principal resolution
"""

from . import (
    database,
    catalog_service,
    recipe_service,
    stock_lot_service,
    cooking_service,
    shopping_list_service,
)

from .owner_scope import Owner, resolve_owner

from .cooking_service import (
    CookabilityResult,
    CookResult,
    IngredientAvailability,
    ShortfallWarning,
    check_cookability,
    cook_recipe,
)

from .shopping_list_service import (
    ShoppingListDraft,
    ShoppingListItem,
    build_shopping_list_from_recipe,
)

from .stock_lot_service import (
    ConsumptionRecord,
    LotDraw,
    consume_fifo,
    get_available_quantity,
)

from .exceptions import (
    ServiceError,
    RecipeNotFound,
    IngredientNotFound,
    UnitNotFound,
    StockLotNotFound,
    StockLotConflict,
    InsufficientIngredients,
    InvalidOwnerScope,
    ValidationError,
    DatabaseError,
)

__all__ = [
    # Modules
    "database",
    "catalog_service",
    "recipe_service",
    "stock_lot_service",
    "cooking_service",
    "shopping_list_service",
    # Owner scope
    "Owner",
    "resolve_owner",
    # Core operations
    "check_cookability",
    "cook_recipe",
    "build_shopping_list_from_recipe",
    "consume_fifo",
    "get_available_quantity",
    # Result types
    "CookabilityResult",
    "CookResult",
    "IngredientAvailability",
    "ShortfallWarning",
    "ShoppingListDraft",
    "ShoppingListItem",
    "ConsumptionRecord",
    "LotDraw",
    # Exceptions
    "ServiceError",
    "RecipeNotFound",
    "IngredientNotFound",
    "UnitNotFound",
    "StockLotNotFound",
    "StockLotConflict",
    "InsufficientIngredients",
    "InvalidOwnerScope",
    "ValidationError",
    "DatabaseError",
]
