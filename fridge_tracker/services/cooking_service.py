"""
Cooking Service for cookability checks and cooking recipes from the fridge.

This module provides functions for:
- Checking whether a recipe can be cooked from current stock
- Cooking a recipe: FIFO consumption of every stocked ingredient line
- Storing the cooked dish as a new stock lot measured in servings

The service integrates with:
- stock_lot_service.get_available_quantity() for availability (read-only pass)
- stock_lot_service.consume_fifo() for FIFO consumption (mutating pass)
- recipe_service.get_recipe() for the recipe catalog

Quantities are matched on the exact (ingredient, unit) pair; no unit
conversion is performed. Recipe lines that are free text (no ingredient) or
have no unit can never be matched and always count as unavailable.
"""

from contextlib import nullcontext
from dataclasses import dataclass, field
from datetime import timedelta
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from fridge_tracker.models import Recipe, RecipeIngredient, StockLot
from fridge_tracker.utils.config import get_config
from fridge_tracker.utils.datetime_utils import utc_now
from .database import session_scope
from .dto_utils import round_price, round_quantity
from .exceptions import (
    DatabaseError,
    InsufficientIngredients,
    ServiceError,
    ValidationError as ServiceValidationError,
)
from .logging_utils import get_service_logger, log_operation
from .owner_scope import Owner, resolve_owner
from .recipe_service import get_recipe
from . import stock_lot_service
from .stock_lot_service import ConsumptionRecord

logger = get_service_logger(__name__)


# =============================================================================
# Result types
# =============================================================================


@dataclass
class IngredientAvailability:
    """Required vs available quantity for one recipe line."""

    ingredient_id: Optional[int]
    unit_id: Optional[int]
    name: str
    required: float
    available: float
    missing: float
    optional: bool
    is_enough: bool


@dataclass
class CookabilityResult:
    """Outcome of a cookability check."""

    recipe_id: int
    recipe_title: str
    servings: float
    can_cook_required: bool
    can_cook_all: bool
    required_missing: List[IngredientAvailability] = field(default_factory=list)
    optional_missing: List[IngredientAvailability] = field(default_factory=list)
    # Full per-line breakdown; only populated in verbose mode
    ingredients: Optional[List[IngredientAvailability]] = None

    @property
    def can_cook(self) -> bool:
        return self.can_cook_required


@dataclass
class ShortfallWarning:
    """Quantity a cook could not draw from the fridge for one line."""

    name: str
    ingredient_id: Optional[int]
    unit_id: Optional[int]
    required: float
    missing: float
    optional: bool


@dataclass
class CookResult:
    """Outcome of cooking a recipe."""

    recipe_id: int
    servings: float
    cooked_lot: StockLot
    consumptions: List[ConsumptionRecord] = field(default_factory=list)
    warnings: List[ShortfallWarning] = field(default_factory=list)

    @property
    def total_consumed(self) -> int:
        """Number of lots drawn from across all lines."""
        return sum(len(record.breakdown) for record in self.consumptions)


# =============================================================================
# Cookability Evaluator
# =============================================================================


def _target_servings(recipe: Recipe, servings) -> float:
    if servings is not None and servings < 0:
        raise ServiceValidationError(["Servings cannot be negative"])
    return servings or recipe.base_servings


def _evaluate_line(
    line: RecipeIngredient,
    ratio: float,
    owner: Owner,
    session: Session,
    stock_left: Dict[Tuple[int, int], float],
) -> IngredientAvailability:
    """Compare one line with the stock still unclaimed by earlier lines.

    Lines sharing an (ingredient, unit) pair draw from one pool in recipe
    order, the same order cook_recipe consumes them in.
    """
    required = round_quantity(line.required_quantity(ratio))
    if line.is_consumable:
        key = (line.ingredient_id, line.unit_id)
        if key not in stock_left:
            stock_left[key] = stock_lot_service.get_available_quantity(
                owner, line.ingredient_id, line.unit_id, session=session
            )
        available = stock_left[key]
        stock_left[key] = round_quantity(max(0.0, available - required))
    else:
        available = 0.0
    is_enough = available >= required
    return IngredientAvailability(
        ingredient_id=line.ingredient_id,
        unit_id=line.unit_id,
        name=line.display_name,
        required=required,
        available=available,
        missing=0.0 if is_enough else round_quantity(required - available),
        optional=bool(line.optional),
        is_enough=is_enough,
    )


def evaluate_cookability(
    recipe: Recipe,
    owner,
    servings=None,
    verbose: bool = False,
    session: Optional[Session] = None,
) -> CookabilityResult:
    """
    Evaluate a loaded recipe against the owner's current stock.

    Every line is scaled by servings / recipe.servings and compared with the
    available quantity in the line's exact unit. Lines repeating an
    (ingredient, unit) pair share that stock.

    Args:
        recipe: Recipe with ingredient lines loaded
        owner: Owner (or a principal resolvable by resolve_owner)
        servings: Target servings (defaults to the recipe's servings when falsy)
        verbose: If True, include the full per-line breakdown
        session: Optional database session

    Returns:
        CookabilityResult
    """
    owner = resolve_owner(owner)
    target = _target_servings(recipe, servings)
    ratio = recipe.serving_ratio(target)

    def _impl(sess: Session) -> CookabilityResult:
        stock_left: Dict[Tuple[int, int], float] = {}
        results = [
            _evaluate_line(line, ratio, owner, sess, stock_left) for line in recipe.ingredients
        ]

        required_missing = [r for r in results if not r.is_enough and not r.optional]
        optional_missing = [r for r in results if not r.is_enough and r.optional]

        return CookabilityResult(
            recipe_id=recipe.id,
            recipe_title=recipe.title,
            servings=target,
            can_cook_required=not required_missing,
            can_cook_all=not required_missing and not optional_missing,
            required_missing=required_missing,
            optional_missing=optional_missing,
            ingredients=results if verbose else None,
        )

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def check_cookability(
    recipe_id: int,
    owner,
    servings=None,
    verbose: bool = False,
    *,
    session=None,
) -> CookabilityResult:
    """
    Check if a recipe can be cooked with current stock.

    Read-only: calling it repeatedly without intervening changes returns
    the same result.

    Args:
        recipe_id: ID of the recipe to check
        owner: Owner (or a principal resolvable by resolve_owner)
        servings: Target servings (defaults to the recipe's servings)
        verbose: If True, include the full per-line breakdown in `ingredients`
        session: Optional database session (uses session_scope if not provided)

    Returns:
        CookabilityResult with can_cook_required, can_cook_all,
        required_missing and optional_missing

    Raises:
        InvalidOwnerScope: If owner cannot be resolved
        RecipeNotFound: If recipe doesn't exist
    """
    owner = resolve_owner(owner)
    cm = nullcontext(session) if session is not None else session_scope()
    with cm as session:
        recipe = get_recipe(recipe_id, session=session)
        result = evaluate_cookability(recipe, owner, servings, verbose, session=session)

    log_operation(
        logger,
        operation="check_cookability",
        outcome="ready" if result.can_cook_required else "insufficient_ingredients",
        level=logging.DEBUG,
        recipe_id=recipe_id,
        owner=str(owner),
        missing_ingredients=[r.name for r in result.required_missing],
    )
    return result


# =============================================================================
# Cooking Orchestrator
# =============================================================================


def _snapshot_warning(item: IngredientAvailability) -> ShortfallWarning:
    return ShortfallWarning(
        name=item.name,
        ingredient_id=item.ingredient_id,
        unit_id=item.unit_id,
        required=item.required,
        missing=item.missing,
        optional=item.optional,
    )


def _collect_warnings(
    snapshot: CookabilityResult,
    line_records: List[Optional[ConsumptionRecord]],
) -> List[ShortfallWarning]:
    """Merge shortfalls into the warnings list of a cook.

    Required lines report the shortfall from the evaluation snapshot, or
    the one consumption observed when that is larger. Optional lines report
    what consumption actually observed, or the snapshot shortfall when the
    line could not be drawn from inventory.
    """
    warnings = []
    for item, record in zip(snapshot.ingredients, line_records):
        if record is None or (not item.optional and record.shortfall <= item.missing):
            if not item.is_enough:
                warnings.append(_snapshot_warning(item))
        elif record.shortfall > 0:
            warnings.append(
                ShortfallWarning(
                    name=item.name,
                    ingredient_id=item.ingredient_id,
                    unit_id=item.unit_id,
                    required=round_quantity(record.requested),
                    missing=record.shortfall,
                    optional=item.optional,
                )
            )
    return warnings


def cook_recipe(
    recipe_id: int,
    owner,
    servings=None,
    force: bool = False,
    cooked_expiry_days: Optional[int] = None,
    *,
    session=None,
) -> CookResult:
    """
    Cook a recipe from the owner's fridge.

    This function:
    1. Evaluates cookability; aborts unless required ingredients suffice or force=True
    2. Consumes every line that has an ingredient and a unit via FIFO,
       scaled to the target servings (shortfalls are reported, not raised)
    3. Stores the cooked dish as a new in-stock lot of `servings` servings,
       expiring cooked_expiry_days from now, in the same owner scope
    4. Returns the dish lot, the consumption ledger and shortfall warnings

    When this function owns its session the whole cook is one transaction:
    a failure part-way rolls back earlier lot deductions.

    Args:
        recipe_id: ID of the recipe to cook
        owner: Owner (or a principal resolvable by resolve_owner)
        servings: Target servings (defaults to the recipe's servings)
        force: If True, cook even when required ingredients are short
        cooked_expiry_days: Shelf life of the dish (defaults to configuration, 3 days)
        session: Optional database session (uses session_scope if not provided)

    Returns:
        CookResult with cooked_lot, consumptions and warnings

    Raises:
        InvalidOwnerScope: If owner cannot be resolved
        RecipeNotFound: If recipe doesn't exist
        InsufficientIngredients: If required ingredients are short and force is False
        StockLotConflict: If a lot keeps changing during consumption
        DatabaseError: If a store operation fails
    """
    owner = resolve_owner(owner)
    if cooked_expiry_days is None:
        cooked_expiry_days = get_config().cooked_expiry_days
    if cooked_expiry_days < 0:
        raise ServiceValidationError(["Cooked expiry days cannot be negative"])

    try:
        cm = nullcontext(session) if session is not None else session_scope()
        with cm as session:
            recipe = get_recipe(recipe_id, session=session)

            # 1. Evaluate
            snapshot = evaluate_cookability(
                recipe, owner, servings, verbose=True, session=session
            )
            if not snapshot.can_cook_required and not force:
                log_operation(
                    logger,
                    operation="cook_recipe",
                    outcome="insufficient_ingredients",
                    level=logging.WARNING,
                    recipe_id=recipe_id,
                    owner=str(owner),
                    missing_ingredients=[r.name for r in snapshot.required_missing],
                )
                raise InsufficientIngredients(recipe_id, snapshot.required_missing)

            target = snapshot.servings
            ratio = recipe.serving_ratio(target)

            # 2. Consume (one record per line; None for lines without ingredient or unit)
            line_records: List[Optional[ConsumptionRecord]] = []
            for line in recipe.ingredients:
                if not line.is_consumable:
                    line_records.append(None)
                    continue
                line_records.append(
                    stock_lot_service.consume_fifo(
                        owner,
                        line.ingredient_id,
                        line.unit_id,
                        line.required_quantity(ratio),
                        session=session,
                    )
                )
            consumptions = [record for record in line_records if record is not None]

            # 3. Materialize
            cooked_at = utc_now()
            total_cost = round_price(sum(record.total_cost for record in consumptions))
            cooked_lot = stock_lot_service.create_cooked_dish_lot(
                owner,
                recipe_id=recipe.id,
                servings=target,
                expiry_date=cooked_at + timedelta(days=cooked_expiry_days),
                price=total_cost,
                cooked_at=cooked_at,
                session=session,
            )

            # 4. Report
            result = CookResult(
                recipe_id=recipe.id,
                servings=target,
                cooked_lot=cooked_lot,
                consumptions=consumptions,
                warnings=_collect_warnings(snapshot, line_records),
            )
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to cook recipe {recipe_id}", original_error=e)

    log_operation(
        logger,
        operation="cook_recipe",
        outcome="success" if not result.warnings else "success_with_shortfall",
        recipe_id=recipe_id,
        owner=str(owner),
        cooked_lot_id=result.cooked_lot.id,
        servings=result.servings,
        forced=force,
        lots_consumed=result.total_consumed,
        warnings=[w.name for w in result.warnings],
    )
    return result
