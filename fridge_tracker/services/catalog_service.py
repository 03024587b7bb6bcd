"""Catalog Service - ingredient and unit lookups.

The ingredient and unit catalog is maintained outside the inventory core.
This module provides the lookups the core needs plus create helpers used
to seed the catalog.

All public functions accept an optional session for transaction composability.
"""

from typing import Optional

from sqlalchemy.orm import Session

from fridge_tracker.models import Ingredient, Unit
from .database import session_scope
from .exceptions import (
    DatabaseError,
    IngredientNotFound,
    UnitNotFound,
    ValidationError as ServiceValidationError,
)


def create_ingredient(
    name: str, default_expire_days: int = 0, session: Optional[Session] = None
) -> Ingredient:
    """Create an ingredient catalog entry.

    Args:
        name: Ingredient name (required, unique)
        default_expire_days: Shelf life for lots added without an expiry date
        session: Optional database session

    Returns:
        Ingredient: Created ingredient with assigned ID

    Raises:
        ValidationError: If name is blank or default_expire_days is negative
        DatabaseError: If database operation fails
    """
    errors = []
    if not name or not name.strip():
        errors.append("Ingredient name is required")
    if default_expire_days is None or default_expire_days < 0:
        errors.append("Default expire days cannot be negative")
    if errors:
        raise ServiceValidationError(errors)

    def _impl(sess: Session) -> Ingredient:
        ingredient = Ingredient(name=name.strip(), default_expire_days=default_expire_days)
        sess.add(ingredient)
        sess.flush()
        return ingredient

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except Exception as e:
        raise DatabaseError(f"Failed to create ingredient '{name}'", original_error=e)


def create_unit(
    name: str, abbreviation: Optional[str] = None, session: Optional[Session] = None
) -> Unit:
    """Create a unit catalog entry.

    Raises:
        ValidationError: If name is blank
        DatabaseError: If database operation fails
    """
    if not name or not name.strip():
        raise ServiceValidationError(["Unit name is required"])

    def _impl(sess: Session) -> Unit:
        unit = Unit(name=name.strip(), abbreviation=abbreviation)
        sess.add(unit)
        sess.flush()
        return unit

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except Exception as e:
        raise DatabaseError(f"Failed to create unit '{name}'", original_error=e)


def get_ingredient(ingredient_id: int, session: Optional[Session] = None) -> Ingredient:
    """Retrieve an ingredient by ID.

    Raises:
        IngredientNotFound: If ingredient_id doesn't exist
    """
    if session is not None:
        ingredient = session.get(Ingredient, ingredient_id)
    else:
        with session_scope() as sess:
            ingredient = sess.get(Ingredient, ingredient_id)
    if ingredient is None:
        raise IngredientNotFound(ingredient_id)
    return ingredient


def get_unit(unit_id: int, session: Optional[Session] = None) -> Unit:
    """Retrieve a unit by ID.

    Raises:
        UnitNotFound: If unit_id doesn't exist
    """
    if session is not None:
        unit = session.get(Unit, unit_id)
    else:
        with session_scope() as sess:
            unit = sess.get(Unit, unit_id)
    if unit is None:
        raise UnitNotFound(unit_id)
    return unit
