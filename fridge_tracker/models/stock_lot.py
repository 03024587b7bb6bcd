"""
StockLot model for tracking fridge inventory.

Each lot is a discrete quantity of one ingredient (or one cooked dish)
with its own expiry date and remaining value. Multiple lots can exist for
the same ingredient; they are consumed in expiry order (soonest first).

Ownership: a lot belongs to exactly one of a user (personal fridge) or a
group (shared household fridge), never both and never neither.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import LotKind, LotStatus
from fridge_tracker.utils.datetime_utils import utc_now


class StockLot(BaseModel):
    """
    StockLot model representing one lot of fridge inventory.

    Quantity only ever decreases in place; replenishment creates new lots.
    When quantity reaches zero the lot is marked consumed and its price is
    reset to zero. Exhausted lots are kept for history.

    Attributes:
        user_id: Owning user (personal scope), or None
        group_id: Owning group (household scope), or None
        kind: LotKind value ("ingredient" or "cooked_dish")
        ingredient_id: Catalog ingredient (ingredient lots only)
        unit_id: Catalog unit (ingredient lots only)
        recipe_id: Recipe the dish was cooked from (cooked-dish lots only)
        quantity: Remaining quantity (unit quantity, or servings for dishes)
        price: Total remaining value of the lot (not a unit price)
        purchase_date: When the lot entered the fridge
        expiry_date: When the lot expires; drives FIFO order
        status: LotStatus value
        cooked_from_recipe_id: Provenance recipe for cooked dishes
        cooked_at: Provenance timestamp for cooked dishes
        revision: Optimistic concurrency counter, bumped on guarded writes
        notes: Optional user notes
    """

    __tablename__ = "stock_lots"

    # Owner scope (exactly one set)
    user_id = Column(Integer, nullable=True, index=True)
    group_id = Column(Integer, nullable=True, index=True)

    kind = Column(String(20), nullable=False, default=LotKind.INGREDIENT.value)

    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="RESTRICT"), nullable=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="RESTRICT"), nullable=True)

    quantity = Column(Float, nullable=False, default=0.0)
    price = Column(Float, nullable=False, default=0.0)

    purchase_date = Column(DateTime, nullable=False, default=utc_now)
    expiry_date = Column(DateTime, nullable=False, index=True)

    status = Column(String(20), nullable=False, default=LotStatus.IN_STOCK.value, index=True)

    # Provenance (cooked dishes)
    cooked_from_recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="RESTRICT"), nullable=True
    )
    cooked_at = Column(DateTime, nullable=True)

    revision = Column(Integer, nullable=False, default=0)

    notes = Column(Text, nullable=True)

    ingredient = relationship("Ingredient", lazy="joined")
    unit = relationship("Unit", lazy="joined")
    recipe = relationship("Recipe", foreign_keys=[recipe_id])

    __table_args__ = (
        CheckConstraint(
            "(user_id IS NOT NULL AND group_id IS NULL) "
            "OR (user_id IS NULL AND group_id IS NOT NULL)",
            name="ck_stock_lot_single_owner",
        ),
        CheckConstraint(
            "kind != 'ingredient' OR (ingredient_id IS NOT NULL AND unit_id IS NOT NULL)",
            name="ck_stock_lot_ingredient_refs",
        ),
        CheckConstraint(
            "kind != 'cooked_dish' OR (recipe_id IS NOT NULL AND unit_id IS NULL)",
            name="ck_stock_lot_dish_refs",
        ),
        CheckConstraint("quantity >= 0", name="ck_stock_lot_quantity_non_negative"),
        CheckConstraint("price >= 0", name="ck_stock_lot_price_non_negative"),
        Index("idx_stock_lot_lookup", "ingredient_id", "unit_id", "status"),
    )

    def __repr__(self) -> str:
        """String representation of stock lot."""
        return (
            f"StockLot(id={self.id}, kind='{self.kind}', "
            f"ingredient_id={self.ingredient_id}, "
            f"quantity={self.quantity}, status='{self.status}')"
        )

    @property
    def is_available(self) -> bool:
        """True if the lot can be counted or consumed."""
        return self.status == LotStatus.IN_STOCK.value and (self.quantity or 0) > 0

    @property
    def unit_price(self) -> float:
        """
        Implied price per unit of quantity.

        Returns:
            price / quantity, or 0.0 for empty lots
        """
        if not self.quantity or self.quantity <= 0:
            return 0.0
        return (self.price or 0.0) / self.quantity

    def is_expired(self, as_of=None) -> bool:
        """
        Check if the lot's expiry date has passed.

        Args:
            as_of: Reference time (naive UTC); defaults to now
        """
        reference = as_of or utc_now()
        return self.expiry_date < reference
