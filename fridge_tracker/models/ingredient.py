"""
Ingredient catalog model.

Ingredients are referenced by recipe lines and by ingredient stock lots.
"""

from sqlalchemy import Column, Integer, String

from .base import BaseModel


class Ingredient(BaseModel):
    """
    Ingredient catalog entry.

    Attributes:
        name: Canonical ingredient name
        default_expire_days: Shelf life applied when a lot is added without
                             an explicit expiry date
    """

    __tablename__ = "ingredients"

    name = Column(String(200), unique=True, nullable=False, index=True)
    default_expire_days = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        """String representation of ingredient."""
        return f"Ingredient(id={self.id}, name='{self.name}')"
