"""Recipe Service - read access to the recipe catalog.

The inventory core never mutates recipes. Recipe authoring lives in the
surrounding application; create_recipe() exists so the catalog can be
seeded (imports, fixtures).

Session Management Pattern:
- All public functions accept session=None parameter
- If session provided, use it directly
- If session is None, create a new session via session_scope()
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from fridge_tracker.models import Recipe, RecipeIngredient
from .database import session_scope
from .exceptions import (
    DatabaseError,
    RecipeNotFound,
    ValidationError as ServiceValidationError,
)

_LINE_FIELDS = ("ingredient_id", "unit_id", "name", "quantity", "unit_text", "note", "optional")


def get_recipe_by_id(recipe_id: int, session: Optional[Session] = None) -> Optional[Recipe]:
    """
    Look up a recipe with its ingredient lines.

    Args:
        recipe_id: Recipe identifier
        session: Optional database session

    Returns:
        Recipe, or None if the ID does not resolve
    """
    if session is not None:
        return session.get(Recipe, recipe_id)
    with session_scope() as sess:
        return sess.get(Recipe, recipe_id)


def get_recipe(recipe_id: int, session: Optional[Session] = None) -> Recipe:
    """
    Retrieve a recipe by ID.

    Raises:
        RecipeNotFound: If recipe_id doesn't exist
    """
    recipe = get_recipe_by_id(recipe_id, session=session)
    if recipe is None:
        raise RecipeNotFound(recipe_id)
    return recipe


def _validate_recipe(title: str, servings: int, lines: List[Dict[str, Any]]) -> None:
    errors = []
    if not title or not title.strip():
        errors.append("Recipe title is required")
    if servings is None or servings < 1:
        errors.append("Servings must be at least 1")
    for index, line in enumerate(lines):
        unknown = set(line) - set(_LINE_FIELDS)
        if unknown:
            errors.append(f"Line {index + 1}: unknown fields {sorted(unknown)}")
        quantity = line.get("quantity")
        if quantity is not None and quantity < 0:
            errors.append(f"Line {index + 1}: quantity cannot be negative")
        if not line.get("ingredient_id") and not line.get("name"):
            errors.append(f"Line {index + 1}: free-text lines need a name")
    if errors:
        raise ServiceValidationError(errors)


def create_recipe(
    title: str,
    ingredients: List[Dict[str, Any]],
    servings: int = 1,
    description: Optional[str] = None,
    tag: str = "other",
    session: Optional[Session] = None,
) -> Recipe:
    """
    Create a recipe with its ingredient lines.

    Args:
        title: Recipe title
        ingredients: Line dicts with keys from ingredient_id, unit_id, name,
                     quantity, unit_text, note, optional
        servings: Base serving count the line quantities are written for
        description: Optional description
        tag: Category tag
        session: Optional database session

    Returns:
        Recipe: Created recipe with lines loaded

    Raises:
        ValidationError: If title, servings or a line is invalid
        DatabaseError: If database operation fails
    """
    _validate_recipe(title, servings, ingredients)

    def _impl(sess: Session) -> Recipe:
        recipe = Recipe(
            title=title.strip(),
            description=description,
            servings=servings,
            tag=tag,
        )
        for line in ingredients:
            recipe.ingredients.append(
                RecipeIngredient(
                    ingredient_id=line.get("ingredient_id"),
                    unit_id=line.get("unit_id"),
                    name=line.get("name"),
                    quantity=line.get("quantity"),
                    unit_text=line.get("unit_text"),
                    note=line.get("note"),
                    optional=bool(line.get("optional", False)),
                )
            )
        sess.add(recipe)
        sess.flush()
        return recipe

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except Exception as e:
        raise DatabaseError(f"Failed to create recipe '{title}'", original_error=e)
