"""
Shopping List Service - shortfall analysis for a recipe.

Compares a recipe's ingredient lines against the owner's current stock and
lists what still has to be bought.

Matching is exact on (ingredient, unit): stock held in a different unit is
not counted. When none of it is in the recipe's unit, the line carries an
inventory note so the user can check.
Free-text lines (no catalog ingredient) are always listed as fully missing.

Session Management Pattern:
- All public functions accept session=None parameter
- If session provided, use it directly
- If session is None, create a new session via session_scope()
"""

from dataclasses import dataclass, field
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from fridge_tracker.models import Recipe, RecipeIngredient
from fridge_tracker.utils.constants import DIFFERENT_UNIT_NOTE
from .database import session_scope
from .dto_utils import round_quantity
from .logging_utils import get_service_logger, log_operation
from .owner_scope import Owner, resolve_owner
from .recipe_service import get_recipe
from .stock_lot_service import get_quantities_by_unit

logger = get_service_logger(__name__)


@dataclass
class ShoppingListItem:
    """One line to buy."""

    name: str
    ingredient_id: Optional[int]
    unit_id: Optional[int]
    unit_text: Optional[str]
    missing_quantity: float  # required - have_quantity
    have_quantity: float  # stock in the exact unit
    note: Optional[str] = None
    optional: bool = False
    inventory_note: Optional[str] = None


@dataclass
class ShoppingListDraft:
    """Deficit list for a recipe; nothing is persisted."""

    recipe_id: int
    title: str
    servings: float
    items: List[ShoppingListItem] = field(default_factory=list)


def _fully_missing(line: RecipeIngredient, required: float) -> ShoppingListItem:
    return ShoppingListItem(
        name=line.display_name,
        ingredient_id=line.ingredient_id,
        unit_id=line.unit_id,
        unit_text=line.unit_text,
        missing_quantity=required,
        have_quantity=0.0,
        note=line.note,
        optional=bool(line.optional),
    )


def _line_gap(
    line: RecipeIngredient,
    ratio: float,
    owner: Owner,
    stock_cache: Dict[int, Dict[int, float]],
    claimed: Dict[Tuple[int, int], float],
    session: Session,
) -> Optional[ShoppingListItem]:
    """
    Calculate the shortfall for one recipe line.

    Earlier lines with the same (ingredient, unit) have already claimed
    part of the stock; only the rest counts for this line.

    Returns:
        ShoppingListItem, or None when stock already covers the line
    """
    required = round_quantity(line.required_quantity(ratio))

    if not line.is_linked:
        return _fully_missing(line, required)

    if line.ingredient_id not in stock_cache:
        stock_cache[line.ingredient_id] = get_quantities_by_unit(
            owner, line.ingredient_id, session=session
        )
    by_unit = stock_cache[line.ingredient_id]

    available = 0.0
    if line.unit_id is not None:
        key = (line.ingredient_id, line.unit_id)
        stocked = by_unit.get(line.unit_id, 0.0)
        available = round_quantity(max(0.0, stocked - claimed.get(key, 0.0)))
        claimed[key] = claimed.get(key, 0.0) + required
    if available >= required:
        return None

    item = _fully_missing(line, round_quantity(required - available))
    item.have_quantity = available
    if by_unit and line.unit_id not in by_unit:
        item.inventory_note = DIFFERENT_UNIT_NOTE
    return item


def _build_impl(recipe: Recipe, owner: Owner, servings, session: Session) -> ShoppingListDraft:
    target = servings or recipe.base_servings
    ratio = recipe.serving_ratio(target)
    stock_cache: Dict[int, Dict[int, float]] = {}
    claimed: Dict[Tuple[int, int], float] = {}

    items = []
    for line in recipe.ingredients:
        item = _line_gap(line, ratio, owner, stock_cache, claimed, session)
        if item is not None:
            items.append(item)

    return ShoppingListDraft(recipe_id=recipe.id, title=recipe.title, servings=target, items=items)


def build_shopping_list_from_recipe(
    recipe_id: int,
    owner,
    servings=None,
    session: Optional[Session] = None,
) -> ShoppingListDraft:
    """
    Build a shopping list for the part of a recipe the fridge can't cover.

    Read-only and safe to call repeatedly.

    Args:
        recipe_id: Recipe to shop for
        owner: Owner (or a principal resolvable by resolve_owner)
        servings: Optional target servings; defaults to the recipe's own
                  servings (quantities as written)
        session: Optional session for transaction sharing

    Returns:
        ShoppingListDraft with one item per line that is not fully covered

    Raises:
        InvalidOwnerScope: If owner cannot be resolved
        RecipeNotFound: If recipe doesn't exist
    """
    owner = resolve_owner(owner)

    if session is not None:
        recipe = get_recipe(recipe_id, session=session)
        draft = _build_impl(recipe, owner, servings, session)
    else:
        with session_scope() as sess:
            recipe = get_recipe(recipe_id, session=sess)
            draft = _build_impl(recipe, owner, servings, sess)

    log_operation(
        logger,
        operation="build_shopping_list_from_recipe",
        outcome="covered" if not draft.items else "items_missing",
        level=logging.DEBUG,
        recipe_id=recipe_id,
        owner=str(owner),
        missing_ingredients=[item.name for item in draft.items],
    )
    return draft
