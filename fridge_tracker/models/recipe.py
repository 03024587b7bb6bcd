"""
Recipe models.

This module contains:
- Recipe: Recipe metadata with its base serving count
- RecipeIngredient: One ingredient line of a recipe

Recipes are read-only to the inventory core.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class Recipe(BaseModel):
    """
    Recipe model.

    Attributes:
        title: Recipe title (required)
        description: Optional description
        servings: Base serving count that line quantities are written for
        tag: Free-form category tag (e.g., "main", "dessert")
    """

    __tablename__ = "recipes"

    title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    servings = Column(Integer, nullable=False, default=1)
    tag = Column(String(50), nullable=False, default="other", index=True)

    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        lazy="joined",
        order_by="RecipeIngredient.id",
    )

    __table_args__ = (CheckConstraint("servings >= 1", name="ck_recipe_servings_positive"),)

    def __repr__(self) -> str:
        """String representation of recipe."""
        return f"Recipe(id={self.id}, title='{self.title}', servings={self.servings})"

    @property
    def base_servings(self) -> int:
        """Serving count used as the scaling base; unset or zero counts as 1."""
        return self.servings or 1

    def serving_ratio(self, target_servings=None) -> float:
        """
        Scale factor for cooking a different number of servings.

        Args:
            target_servings: Desired servings; falsy values mean the base servings

        Returns:
            target_servings / base_servings
        """
        target = target_servings or self.base_servings
        return target / self.base_servings


class RecipeIngredient(BaseModel):
    """
    One ingredient line of a recipe.

    A line without an ingredient_id is free text (e.g., "salt to taste")
    and can never be matched against inventory. A line without a unit_id
    cannot be matched either, since matching is unit-exact.

    Attributes:
        recipe_id: Foreign key to Recipe
        ingredient_id: Optional foreign key to Ingredient
        unit_id: Optional foreign key to Unit
        name: Display name snapshot
        quantity: Amount needed for the recipe's base servings
        unit_text: Human-readable unit as typed by the author
        note: Optional note (e.g., "finely chopped")
        optional: Whether the recipe is cookable without this line
    """

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=True
    )
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="RESTRICT"), nullable=True)

    name = Column(String(200), nullable=True)
    quantity = Column(Float, nullable=True)
    unit_text = Column(String(50), nullable=True)
    note = Column(String(500), nullable=True)
    optional = Column(Boolean, nullable=False, default=False)

    recipe = relationship("Recipe", back_populates="ingredients")
    ingredient = relationship("Ingredient", lazy="joined")
    unit = relationship("Unit", lazy="joined")

    __table_args__ = (
        Index("idx_recipe_ingredient_recipe", "recipe_id"),
        Index("idx_recipe_ingredient_ingredient", "ingredient_id"),
        CheckConstraint(
            "quantity IS NULL OR quantity >= 0", name="ck_recipe_ingredient_quantity_non_negative"
        ),
    )

    def __repr__(self) -> str:
        """String representation of recipe ingredient."""
        return (
            f"RecipeIngredient(recipe_id={self.recipe_id}, "
            f"ingredient_id={self.ingredient_id}, "
            f"quantity={self.quantity}, unit_id={self.unit_id})"
        )

    @property
    def display_name(self) -> str:
        """Name snapshot, falling back to the catalog ingredient name."""
        if self.name:
            return self.name
        if self.ingredient is not None:
            return self.ingredient.name
        return ""

    @property
    def is_linked(self) -> bool:
        """True if the line references a catalog ingredient."""
        return self.ingredient_id is not None

    @property
    def is_consumable(self) -> bool:
        """True if the line can be drawn from inventory (ingredient and unit known)."""
        return self.ingredient_id is not None and self.unit_id is not None

    def required_quantity(self, ratio: float = 1.0) -> float:
        """Quantity needed after scaling; a missing quantity counts as 0."""
        return (self.quantity or 0.0) * ratio
