"""
Declarative base shared by the catalog and inventory models.

Every table gets an integer id, a string uuid and created/updated
timestamps (naive UTC).
"""

import uuid as uuid_lib
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base, validates

from fridge_tracker.utils.datetime_utils import utc_now

Base = declarative_base()


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


class BaseModel(Base):
    """Abstract model with id, uuid and audit timestamps."""

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    # String form keeps SQLite happy
    uuid = Column(
        String(36), unique=True, nullable=False, default=lambda: str(uuid_lib.uuid4()), index=True
    )

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    def to_dict(self, include_relationships: bool = False) -> Dict[str, Any]:
        """
        Column values as plain Python data.

        Datetimes become ISO strings and enums their values. With
        include_relationships, loaded related rows are nested one level deep.
        """
        data = {column.name: _plain(getattr(self, column.name)) for column in self.__table__.columns}

        if include_relationships:
            for rel in self.__mapper__.relationships:
                related = getattr(self, rel.key)
                if related is None:
                    data[rel.key] = None
                elif isinstance(related, list):
                    data[rel.key] = [item.to_dict() for item in related]
                else:
                    data[rel.key] = related.to_dict()

        return data

    @validates("uuid")
    def _validate_uuid(self, _key: str, value: Any) -> str:
        return value if value is None else str(value)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id})"
