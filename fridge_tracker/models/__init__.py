"""
Database models package.

This package contains all SQLAlchemy ORM models for the inventory core.
"""

from .base import Base, BaseModel
from .enums import LotKind, LotStatus
from .ingredient import Ingredient
from .unit import Unit
from .recipe import Recipe, RecipeIngredient
from .stock_lot import StockLot

__all__ = [
    "Base",
    "BaseModel",
    # Enums
    "LotKind",
    "LotStatus",
    # Catalog
    "Ingredient",
    "Unit",
    "Recipe",
    "RecipeIngredient",
    # Inventory
    "StockLot",
]
