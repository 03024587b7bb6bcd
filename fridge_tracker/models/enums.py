"""
Enumerations for stock lot tracking.

This module contains enums used by the StockLot model:
- LotKind: What a lot holds (raw ingredient or cooked dish)
- LotStatus: Lifecycle state of a lot
"""

from enum import Enum


class LotKind(str, Enum):
    """
    Kind of inventory held by a stock lot.

    Values:
        INGREDIENT: Raw ingredient measured in a catalog unit
        COOKED_DISH: Dish produced by cooking a recipe, measured in servings
    """

    INGREDIENT = "ingredient"
    COOKED_DISH = "cooked_dish"


class LotStatus(str, Enum):
    """
    Lifecycle status of a stock lot.

    Only IN_STOCK lots with a positive quantity count as available or
    can be consumed.

    Values:
        IN_STOCK: Usable
        CONSUMED: Quantity drained to zero by cooking or manual edits
        EXPIRED: Passed its expiry date while still in stock
        DISCARDED: Thrown away by the user
    """

    IN_STOCK = "in-stock"
    CONSUMED = "consumed"
    EXPIRED = "expired"
    DISCARDED = "discarded"
