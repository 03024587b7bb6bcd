"""
Unit reference model.

Units are part of the catalog maintained outside the inventory core.
Quantities are only ever compared when the unit matches exactly; no
conversion between units is performed.
"""

from sqlalchemy import Column, String

from .base import BaseModel


class Unit(BaseModel):
    """
    Reference table for measurement units.

    Attributes:
        name: Human-readable name (e.g., "gram")
        abbreviation: Short symbol (e.g., "g")
    """

    __tablename__ = "units"

    name = Column(String(50), unique=True, nullable=False, index=True)
    abbreviation = Column(String(20), nullable=True)

    def __repr__(self) -> str:
        """Return string representation of Unit."""
        return f"Unit(id={self.id}, name='{self.name}')"
