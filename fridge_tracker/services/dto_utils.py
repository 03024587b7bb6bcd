"""DTO utilities for service layer.

Provides standardized rounding and formatting for prices and quantities,
so every service rounds money the same way (half-up on the cent).
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from fridge_tracker.utils.constants import PRICE_DECIMAL_PLACES, QUANTITY_DECIMAL_PLACES

Number = Union[Decimal, float, int, str]

_PRICE_QUANTUM = Decimal(1).scaleb(-PRICE_DECIMAL_PLACES)
_QUANTITY_QUANTUM = Decimal(1).scaleb(-QUANTITY_DECIMAL_PLACES)


def round_price(value: Number) -> float:
    """
    Round a monetary amount to 2 decimal places, half-up.

    Examples:
        >>> round_price(12.345)
        12.35
        >>> round_price(0.125)
        0.13
    """
    return float(Decimal(str(value)).quantize(_PRICE_QUANTUM, rounding=ROUND_HALF_UP))


def round_quantity(value: Number) -> float:
    """
    Round a quantity to 3 decimal places, half-up.

    Keeps repeated float subtraction from leaving lots with tiny residues.
    """
    return float(Decimal(str(value)).quantize(_QUANTITY_QUANTUM, rounding=ROUND_HALF_UP))


def cost_to_string(value: Union[Number, None]) -> str:
    """
    Convert a cost value to a 2-decimal string format.

    Returns "0.00" if value is None.

    Examples:
        >>> cost_to_string(12.3)
        '12.30'
        >>> cost_to_string(None)
        '0.00'
    """
    if value is None:
        return "0.00"
    rounded = Decimal(str(value)).quantize(_PRICE_QUANTUM, rounding=ROUND_HALF_UP)
    return str(rounded)


def remaining_lot_price(old_price: float, old_quantity: float, new_quantity: float) -> float:
    """
    Value left in a lot after its quantity drops from old_quantity to new_quantity.

    Rules:
        - new_quantity of 0 leaves no value
        - otherwise the price shrinks proportionally to the implied unit price
        - free lots (no unit price) keep their price unchanged

    Args:
        old_price: Lot price before the change
        old_quantity: Lot quantity before the change
        new_quantity: Lot quantity after the change

    Returns:
        New lot price, rounded to 2 decimal places

    Examples:
        >>> remaining_lot_price(20.0, 10.0, 6.0)
        12.0
        >>> remaining_lot_price(20.0, 10.0, 0.0)
        0.0
    """
    if new_quantity <= 0:
        return 0.0
    unit_price = old_price / old_quantity if old_quantity > 0 else 0.0
    if unit_price > 0:
        return round_price(unit_price * new_quantity)
    return old_price
