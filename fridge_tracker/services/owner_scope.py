"""
Owner scope resolution for inventory queries and new stock lots.

Every core operation takes an explicit Owner: either a personal scope
(user_id) or a household scope (group_id). The two scopes never mix in a
single query: group queries only see group lots, and personal queries only
see the user's lots that are not shared with a group.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy import and_

from fridge_tracker.models import StockLot
from .exceptions import InvalidOwnerScope


@dataclass(frozen=True)
class Owner:
    """Exactly one of a user or a group that owns stock lots."""

    user_id: Optional[int] = None
    group_id: Optional[int] = None

    def __post_init__(self):
        if (self.user_id is None) == (self.group_id is None):
            raise InvalidOwnerScope(
                "Exactly one of user_id or group_id is required for an owner scope"
            )

    @classmethod
    def for_user(cls, user_id: int) -> "Owner":
        return cls(user_id=user_id)

    @classmethod
    def for_group(cls, group_id: int) -> "Owner":
        return cls(group_id=group_id)

    @property
    def is_group(self) -> bool:
        return self.group_id is not None

    def lot_filter(self):
        """SQLAlchemy criteria selecting the lots visible to this scope."""
        if self.is_group:
            return StockLot.group_id == self.group_id
        return and_(StockLot.user_id == self.user_id, StockLot.group_id.is_(None))

    def lot_fields(self) -> Dict[str, Optional[int]]:
        """Owner columns for a lot created in this scope."""
        if self.is_group:
            return {"user_id": None, "group_id": self.group_id}
        return {"user_id": self.user_id, "group_id": None}

    def owns(self, lot: StockLot) -> bool:
        """True if the lot belongs to this scope."""
        if self.is_group:
            return lot.group_id == self.group_id
        return lot.user_id == self.user_id and lot.group_id is None

    def __str__(self) -> str:
        if self.is_group:
            return f"group:{self.group_id}"
        return f"user:{self.user_id}"


def _lookup(principal: Any, *names: str):
    for name in names:
        if isinstance(principal, dict):
            value = principal.get(name)
        else:
            value = getattr(principal, name, None)
        if value is not None:
            return value
    return None


def resolve_owner(principal: Any) -> Owner:
    """
    Resolve the owner scope from an authenticated principal.

    Group scope takes precedence when the principal belongs to a group;
    otherwise the personal scope is used.

    Args:
        principal: Mapping or object exposing group_id and user_id
                   (``id`` is accepted as the user id)

    Returns:
        Owner for the principal

    Raises:
        InvalidOwnerScope: If neither a group nor a user id is present

    Example:
        >>> resolve_owner({"user_id": 7, "group_id": 3})
        Owner(user_id=None, group_id=3)
    """
    if isinstance(principal, Owner):
        return principal
    if principal is None:
        raise InvalidOwnerScope()

    group_id = _lookup(principal, "group_id")
    if group_id is not None:
        return Owner.for_group(group_id)

    user_id = _lookup(principal, "user_id", "id")
    if user_id is not None:
        return Owner.for_user(user_id)

    raise InvalidOwnerScope()
