"""Stock Lot Service - fridge inventory with FIFO consumption.

This module provides business logic for stock lots: lot creation, available
quantity lookups, FIFO (soonest-expiry-first) consumption, manual edits and
expiry sweeps.

All functions are stateless and use session_scope() for transaction management.

Key Features:
- Lot-based inventory tracking per owner scope (user or group)
- **FIFO consumption algorithm** - soonest-expiring lots consumed first
- Proportional price shrink as lots are drawn down
- Guarded writes: every lot update is a compare-and-swap on StockLot.revision,
  so concurrent consumers cannot silently over-deduct the same lot
- No unit conversion: quantities only match on the exact (ingredient, unit) pair

Example Usage:
      >>> from fridge_tracker.services.owner_scope import Owner
      >>> from fridge_tracker.services.stock_lot_service import add_stock_lot, consume_fifo
      >>>
      >>> owner = Owner.for_user(7)
      >>> lot = add_stock_lot(owner, ingredient_id=1, unit_id=2, quantity=500, price=4.50)
      >>>
      >>> record = consume_fifo(owner, ingredient_id=1, unit_id=2, quantity_needed=200)
      >>> record.satisfied   # True if enough inventory
      >>> record.shortfall   # 0.0 if satisfied, otherwise amount short
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from fridge_tracker.models import Ingredient, LotKind, LotStatus, StockLot, Unit
from fridge_tracker.utils.datetime_utils import to_naive_utc, utc_now
from .database import session_scope
from .dto_utils import remaining_lot_price, round_price, round_quantity
from .exceptions import (
    DatabaseError,
    IngredientNotFound,
    ServiceError,
    StockLotConflict,
    StockLotNotFound,
    UnitNotFound,
    ValidationError as ServiceValidationError,
)
from .logging_utils import get_service_logger, log_operation
from .owner_scope import Owner, resolve_owner

logger = get_service_logger(__name__)

# Fields callers may change through update_stock_lot()
_EDITABLE_FIELDS = {"quantity", "price", "expiry_date", "notes"}

# Number of guarded-write attempts per lot during consumption (first try + one retry)
_WRITE_ATTEMPTS = 2


@dataclass
class LotDraw:
    """Quantity taken from a single lot during consumption."""

    lot_id: int
    taken: float
    remaining_in_lot: float
    value_taken: float


@dataclass
class ConsumptionRecord:
    """Result of a FIFO consumption request for one ingredient/unit pair."""

    ingredient_id: int
    unit_id: Optional[int]
    requested: float
    consumed: float = 0.0
    shortfall: float = 0.0
    breakdown: List[LotDraw] = field(default_factory=list)
    total_cost: float = 0.0

    @property
    def satisfied(self) -> bool:
        """True if the full requested quantity was drawn."""
        return self.shortfall <= 0


# =============================================================================
# Session helpers
# =============================================================================


def _run(impl, session: Optional[Session], failure_message: str):
    """Run impl with the caller's session or a fresh session_scope().

    Service errors propagate unchanged; anything else is wrapped in DatabaseError.
    """
    try:
        if session is not None:
            return impl(session)
        with session_scope() as sess:
            return impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(failure_message, original_error=e)


def _eligible_lots_query(sess: Session, owner: Owner, ingredient_id: int, unit_id: Optional[int]):
    """Query for ingredient lots that can be counted or consumed."""
    q = sess.query(StockLot).filter(
        owner.lot_filter(),
        StockLot.kind == LotKind.INGREDIENT.value,
        StockLot.ingredient_id == ingredient_id,
        StockLot.status == LotStatus.IN_STOCK.value,
        StockLot.quantity > 0,
    )
    if unit_id is not None:
        q = q.filter(StockLot.unit_id == unit_id)
    return q


def _write_lot_guarded(sess: Session, lot: StockLot, values: Dict[str, Any]) -> bool:
    """Compare-and-swap update of a lot against the revision that was read.

    Returns:
        True if the write landed; False if another writer advanced the
        lot's revision first. On success the lot is reloaded.
    """
    result = sess.execute(
        update(StockLot)
        .where(StockLot.id == lot.id, StockLot.revision == lot.revision)
        .values(revision=lot.revision + 1, updated_at=utc_now(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False
    sess.refresh(lot)
    return True


# =============================================================================
# Quantity Resolver
# =============================================================================


def get_available_quantity(
    owner,
    ingredient_id: int,
    unit_id: Optional[int],
    session: Optional[Session] = None,
) -> float:
    """Total usable quantity of an ingredient in one exact unit.

    Counts in-stock ingredient lots with quantity > 0 in the owner's scope.
    A missing unit_id can never match inventory and yields 0.

    Args:
        owner: Owner (or a principal resolvable by resolve_owner)
        ingredient_id: Catalog ingredient
        unit_id: Catalog unit the quantity must be expressed in
        session: Optional database session

    Returns:
        float: Sum of matching lot quantities, 0.0 if none match
    """
    owner = resolve_owner(owner)
    if ingredient_id is None or unit_id is None:
        return 0.0

    def _impl(sess: Session) -> float:
        total = (
            _eligible_lots_query(sess, owner, ingredient_id, unit_id)
            .with_entities(func.coalesce(func.sum(StockLot.quantity), 0.0))
            .scalar()
        )
        return round_quantity(total or 0.0)

    return _run(_impl, session, f"Failed to total stock for ingredient {ingredient_id}")


def get_quantities_by_unit(
    owner, ingredient_id: int, session: Optional[Session] = None
) -> Dict[int, float]:
    """Usable quantity of an ingredient grouped by unit.

    Units are not converted; each unit gets its own total.

    Returns:
        Dict[int, float]: unit_id -> total quantity (empty when nothing is stocked)

    Example:
        >>> get_quantities_by_unit(owner, flour.id)
        {grams.id: 750.0, cups.id: 2.0}
    """
    owner = resolve_owner(owner)

    def _impl(sess: Session) -> Dict[int, float]:
        rows = (
            _eligible_lots_query(sess, owner, ingredient_id, None)
            .with_entities(StockLot.unit_id, func.sum(StockLot.quantity))
            .group_by(StockLot.unit_id)
            .all()
        )
        return {unit_id: round_quantity(total) for unit_id, total in rows}

    return _run(_impl, session, f"Failed to total stock for ingredient {ingredient_id}")


# =============================================================================
# FIFO Consumer
# =============================================================================


def _draw_from_lot(
    sess: Session, lot: StockLot, remaining: float, dry_run: bool
) -> Optional[LotDraw]:
    """Take up to `remaining` from one lot.

    Returns:
        LotDraw, or None if the lot was emptied by another writer
    """
    for attempt in range(_WRITE_ATTEMPTS):
        if not lot.is_available:
            return None

        old_quantity = lot.quantity
        old_price = lot.price or 0.0
        take = min(old_quantity, remaining)
        new_quantity = round_quantity(old_quantity - take)

        if new_quantity <= 0:
            new_quantity = 0.0
            values = {
                "quantity": 0.0,
                "status": LotStatus.CONSUMED.value,
                "price": 0.0,
            }
        else:
            values = {
                "quantity": new_quantity,
                "price": remaining_lot_price(old_price, old_quantity, new_quantity),
            }
        draw = LotDraw(
            lot_id=lot.id,
            taken=round_quantity(take),
            remaining_in_lot=new_quantity,
            value_taken=round_price(old_price - values["price"]),
        )

        if dry_run or _write_lot_guarded(sess, lot, values):
            return draw

        log_operation(
            logger,
            operation="consume_fifo",
            outcome="revision_conflict",
            level=logging.WARNING,
            lot_id=lot.id,
            attempt=attempt + 1,
        )
        sess.refresh(lot)

    raise StockLotConflict(lot.id)


def consume_fifo(
    owner,
    ingredient_id: int,
    unit_id: int,
    quantity_needed: float,
    dry_run: bool = False,
    session: Optional[Session] = None,
) -> ConsumptionRecord:
    """Consume inventory using FIFO (soonest expiry first) logic.

    **CRITICAL FUNCTION**: This implements the core inventory consumption algorithm.

    Algorithm:
        1. Return an empty record for non-positive requests (no lot is touched)
        2. Query eligible lots ordered by expiry_date ASC (soonest first)
        3. For each lot take min(lot.quantity, remaining)
        4. Shrink the lot's price in proportion to its implied unit price;
           a drained lot becomes consumed with price 0
        5. Write each lot (guarded by revision) and flush before the next lot
        6. Report any unconsumed remainder as shortfall

    Args:
        owner: Owner (or a principal resolvable by resolve_owner)
        ingredient_id: Ingredient to consume
        unit_id: Exact unit the quantity is expressed in
        quantity_needed: Amount to consume
        dry_run: If True, simulate consumption without modifying the database
        session: Optional database session. If provided, the caller owns the
                 transaction and this function will NOT commit.

    Returns:
        ConsumptionRecord with consumed, shortfall, per-lot breakdown and
        total_cost (value drawn from the lots)

    Raises:
        InvalidOwnerScope: If owner cannot be resolved
        StockLotConflict: If a lot changes underneath two write attempts in a row
        DatabaseError: If database operation fails

    Note:
        - Shortfall is never an error; the caller decides whether it is fatal
        - Quantities are maintained at 3 decimal precision, prices at 2
        - Exhausted lots are kept with status consumed for history
    """
    owner = resolve_owner(owner)
    requested = float(quantity_needed or 0.0)
    record = ConsumptionRecord(ingredient_id=ingredient_id, unit_id=unit_id, requested=requested)

    if requested <= 0:
        return record
    if unit_id is None:
        record.shortfall = round_quantity(requested)
        return record

    def _do_consume(sess: Session) -> ConsumptionRecord:
        lots = (
            _eligible_lots_query(sess, owner, ingredient_id, unit_id)
            .order_by(StockLot.expiry_date.asc(), StockLot.id.asc())
            .all()
        )

        remaining = requested
        for lot in lots:
            if remaining <= 0:
                break

            draw = _draw_from_lot(sess, lot, remaining, dry_run)
            if draw is None:
                continue

            record.breakdown.append(draw)
            record.consumed = round_quantity(record.consumed + draw.taken)
            record.total_cost = round_price(record.total_cost + draw.value_taken)
            remaining = round_quantity(remaining - draw.taken)

            if not dry_run:
                sess.flush()

        record.shortfall = max(0.0, remaining)
        log_operation(
            logger,
            operation="consume_fifo",
            outcome="satisfied" if record.satisfied else "shortfall",
            level=logging.DEBUG,
            owner=str(owner),
            ingredient_id=ingredient_id,
            unit_id=unit_id,
            requested=requested,
            consumed=record.consumed,
            shortfall=record.shortfall,
            lots_touched=len(record.breakdown),
            dry_run=dry_run,
        )
        return record

    return _run(
        _do_consume, session, f"Failed to consume FIFO for ingredient {ingredient_id}"
    )


# =============================================================================
# Lot creation
# =============================================================================


def add_stock_lot(
    owner,
    ingredient_id: int,
    unit_id: int,
    quantity: float,
    price: float = 0.0,
    purchase_date: Optional[datetime] = None,
    expiry_date: Optional[datetime] = None,
    notes: Optional[str] = None,
    session: Optional[Session] = None,
) -> StockLot:
    """Add a new ingredient lot to the owner's fridge.

    This is the replenishment entry point (e.g., shopping checkout).
    Existing lots are never topped up; every purchase is its own lot.

    Args:
        owner: Owner (or a principal resolvable by resolve_owner)
        ingredient_id: Catalog ingredient
        unit_id: Catalog unit of the quantity
        quantity: Amount added (must be >= 0)
        price: Total price paid for the lot (must be >= 0)
        purchase_date: When bought (defaults to now)
        expiry_date: When it expires (defaults to purchase_date plus the
                     ingredient's default_expire_days)
        notes: Optional user notes
        session: Optional database session for transaction composability

    Returns:
        StockLot: Created lot with assigned ID

    Raises:
        InvalidOwnerScope: If owner cannot be resolved
        IngredientNotFound: If ingredient_id doesn't exist
        UnitNotFound: If unit_id doesn't exist
        ValidationError: If quantity/price is negative or expiry precedes purchase
        DatabaseError: If database operation fails
    """
    owner = resolve_owner(owner)

    errors = []
    if ingredient_id is None or unit_id is None:
        errors.append("Ingredient and unit are required")
    if quantity is None or quantity < 0:
        errors.append("Quantity cannot be negative")
    if price is None or price < 0:
        errors.append("Price cannot be negative")
    if errors:
        raise ServiceValidationError(errors)

    actual_purchase_date = to_naive_utc(purchase_date) if purchase_date else utc_now()
    actual_expiry_date = to_naive_utc(expiry_date) if expiry_date else None
    if actual_expiry_date and actual_expiry_date < actual_purchase_date:
        raise ServiceValidationError(["Expiry date cannot be before purchase date"])

    def _impl(sess: Session) -> StockLot:
        ingredient = sess.get(Ingredient, ingredient_id)
        if ingredient is None:
            raise IngredientNotFound(ingredient_id)
        if sess.get(Unit, unit_id) is None:
            raise UnitNotFound(unit_id)

        expiry = actual_expiry_date or actual_purchase_date + timedelta(
            days=ingredient.default_expire_days or 0
        )
        lot = StockLot(
            **owner.lot_fields(),
            kind=LotKind.INGREDIENT.value,
            ingredient_id=ingredient_id,
            unit_id=unit_id,
            quantity=round_quantity(quantity),
            price=round_price(price),
            purchase_date=actual_purchase_date,
            expiry_date=expiry,
            status=LotStatus.IN_STOCK.value if quantity > 0 else LotStatus.CONSUMED.value,
            notes=notes,
        )
        sess.add(lot)
        sess.flush()
        log_operation(
            logger,
            operation="add_stock_lot",
            outcome="success",
            owner=str(owner),
            lot_id=lot.id,
            ingredient_id=ingredient_id,
            quantity=lot.quantity,
        )
        return lot

    return _run(_impl, session, "Failed to add stock lot")


def create_cooked_dish_lot(
    owner,
    recipe_id: int,
    servings: float,
    expiry_date: datetime,
    price: float = 0.0,
    cooked_at: Optional[datetime] = None,
    session: Optional[Session] = None,
) -> StockLot:
    """Store a freshly cooked dish as a new lot measured in servings.

    Args:
        owner: Owner the dish belongs to (same scope the ingredients came from)
        recipe_id: Recipe the dish was cooked from
        servings: Number of servings produced
        expiry_date: When the dish expires
        price: Value of the ingredients that went into the dish
        cooked_at: Cooking timestamp (defaults to now)
        session: Optional database session

    Returns:
        StockLot: Created cooked-dish lot
    """
    owner = resolve_owner(owner)
    if servings is None or servings <= 0:
        raise ServiceValidationError(["Servings must be positive"])

    cooked_time = to_naive_utc(cooked_at) if cooked_at else utc_now()

    def _impl(sess: Session) -> StockLot:
        lot = StockLot(
            **owner.lot_fields(),
            kind=LotKind.COOKED_DISH.value,
            recipe_id=recipe_id,
            unit_id=None,
            quantity=round_quantity(servings),
            price=round_price(price),
            purchase_date=cooked_time,
            expiry_date=to_naive_utc(expiry_date),
            status=LotStatus.IN_STOCK.value,
            cooked_from_recipe_id=recipe_id,
            cooked_at=cooked_time,
        )
        sess.add(lot)
        sess.flush()
        return lot

    return _run(_impl, session, f"Failed to store cooked dish for recipe {recipe_id}")


# =============================================================================
# Lot queries
# =============================================================================


def get_stock_lot(lot_id: int, owner=None, session: Optional[Session] = None) -> StockLot:
    """Retrieve a lot by ID.

    Args:
        lot_id: Stock lot identifier
        owner: Optional owner scope; lots outside it are reported as not found
        session: Optional database session

    Raises:
        StockLotNotFound: If lot_id doesn't exist or is outside the owner's scope
    """
    scope = resolve_owner(owner) if owner is not None else None

    def _impl(sess: Session) -> StockLot:
        lot = sess.get(StockLot, lot_id)
        if lot is None or (scope is not None and not scope.owns(lot)):
            raise StockLotNotFound(lot_id)
        return lot

    return _run(_impl, session, f"Failed to load stock lot {lot_id}")


def get_stock_lots(
    owner,
    status: Optional[str] = None,
    ingredient_id: Optional[int] = None,
    kind: Optional[str] = None,
    include_empty: bool = False,
    session: Optional[Session] = None,
) -> List[StockLot]:
    """List the owner's lots, soonest expiry first.

    Args:
        owner: Owner (or a principal resolvable by resolve_owner)
        status: Optional LotStatus value filter
        ingredient_id: Optional ingredient filter
        kind: Optional LotKind value filter
        include_empty: If False (default), lots with quantity 0 are excluded
        session: Optional database session

    Returns:
        List[StockLot]: Matching lots ordered by expiry_date ASC
    """
    owner = resolve_owner(owner)

    def _impl(sess: Session) -> List[StockLot]:
        q = sess.query(StockLot).filter(owner.lot_filter())
        if status:
            q = q.filter(StockLot.status == status)
        if ingredient_id is not None:
            q = q.filter(StockLot.ingredient_id == ingredient_id)
        if kind:
            q = q.filter(StockLot.kind == kind)
        if not include_empty:
            q = q.filter(StockLot.quantity > 0)
        return q.order_by(StockLot.expiry_date.asc(), StockLot.id.asc()).all()

    return _run(_impl, session, "Failed to list stock lots")


# =============================================================================
# Manual edits
# =============================================================================


def update_stock_lot(
    lot_id: int, owner, updates: Dict[str, Any], session: Optional[Session] = None
) -> StockLot:
    """Apply a manual edit to a lot.

    Editable fields: quantity, price, expiry_date, notes. Quantity may only
    decrease; replenishment creates new lots. When quantity decreases and no
    price is supplied, the price shrinks in proportion to the unit price.
    A lot edited down to 0 is marked consumed with price 0.

    Raises:
        StockLotNotFound: If the lot doesn't exist or isn't the owner's
        ValidationError: For immutable fields, negative values or increases
        StockLotConflict: If the lot changed since it was read
        DatabaseError: If database operation fails
    """
    owner = resolve_owner(owner)

    immutable = sorted(set(updates) - _EDITABLE_FIELDS)
    if immutable:
        raise ServiceValidationError([f"Fields cannot be changed: {', '.join(immutable)}"])

    def _impl(sess: Session) -> StockLot:
        lot = get_stock_lot(lot_id, owner=owner, session=sess)
        values: Dict[str, Any] = {}
        errors = []

        if "quantity" in updates:
            new_quantity = updates["quantity"]
            if new_quantity is None or new_quantity < 0:
                errors.append("Quantity cannot be negative")
            elif new_quantity > lot.quantity:
                errors.append("Quantity cannot be increased; add a new lot instead")
            else:
                values["quantity"] = round_quantity(new_quantity)
                if "price" not in updates:
                    values["price"] = remaining_lot_price(
                        lot.price or 0.0, lot.quantity, values["quantity"]
                    )

        if "price" in updates:
            if updates["price"] is None or updates["price"] < 0:
                errors.append("Price cannot be negative")
            else:
                values["price"] = round_price(updates["price"])

        if "expiry_date" in updates:
            if updates["expiry_date"] is None:
                errors.append("Expiry date is required")
            else:
                values["expiry_date"] = to_naive_utc(updates["expiry_date"])

        if "notes" in updates:
            values["notes"] = updates["notes"]

        if errors:
            raise ServiceValidationError(errors)

        if values.get("quantity") == 0:
            values["price"] = 0.0
            if lot.status == LotStatus.IN_STOCK.value:
                values["status"] = LotStatus.CONSUMED.value

        if values and not _write_lot_guarded(sess, lot, values):
            raise StockLotConflict(lot_id)

        log_operation(
            logger,
            operation="update_stock_lot",
            outcome="success",
            owner=str(owner),
            lot_id=lot_id,
            fields=sorted(values),
        )
        return lot

    return _run(_impl, session, f"Failed to update stock lot {lot_id}")


def discard_stock_lot(lot_id: int, owner, session: Optional[Session] = None) -> StockLot:
    """Mark a lot as thrown away.

    Quantity and price are kept so waste can be valued later.

    Raises:
        StockLotNotFound: If the lot doesn't exist or isn't the owner's
        ValidationError: If the lot was already consumed or discarded
        StockLotConflict: If the lot changed since it was read
    """
    owner = resolve_owner(owner)

    def _impl(sess: Session) -> StockLot:
        lot = get_stock_lot(lot_id, owner=owner, session=sess)
        if lot.status in (LotStatus.CONSUMED.value, LotStatus.DISCARDED.value):
            raise ServiceValidationError([f"Lot {lot_id} is already {lot.status}"])
        if not _write_lot_guarded(sess, lot, {"status": LotStatus.DISCARDED.value}):
            raise StockLotConflict(lot_id)
        log_operation(
            logger, operation="discard_stock_lot", outcome="success", owner=str(owner), lot_id=lot_id
        )
        return lot

    return _run(_impl, session, f"Failed to discard stock lot {lot_id}")


def mark_expired_lots(
    owner, as_of: Optional[datetime] = None, session: Optional[Session] = None
) -> int:
    """Move the owner's in-stock lots past their expiry date to expired.

    Args:
        owner: Owner (or a principal resolvable by resolve_owner)
        as_of: Reference time (defaults to now)
        session: Optional database session

    Returns:
        int: Number of lots marked expired
    """
    owner = resolve_owner(owner)
    cutoff = to_naive_utc(as_of) if as_of else utc_now()

    def _impl(sess: Session) -> int:
        result = sess.execute(
            update(StockLot)
            .where(
                owner.lot_filter(),
                StockLot.status == LotStatus.IN_STOCK.value,
                StockLot.expiry_date < cutoff,
            )
            .values(
                status=LotStatus.EXPIRED.value,
                revision=StockLot.revision + 1,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        # Objects already in this session must not keep the stale status
        sess.expire_all()
        log_operation(
            logger,
            operation="mark_expired_lots",
            outcome="success",
            owner=str(owner),
            expired_count=result.rowcount,
        )
        return result.rowcount

    return _run(_impl, session, "Failed to mark expired stock lots")
