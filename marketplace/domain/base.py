"""Base classes for domain layer.

Entities in the marketplace are immutable records: factories validate
and build them, and updates produce a new value instead of mutating the
old one.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Self


def utcnow() -> datetime:
    """Current time as timezone-aware UTC."""
    return datetime.now(timezone.utc)


# ============================================================================
# Entity Base
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class Entity:
    """Base class for entities.

    Attributes:
        id: Unique identifier for this entity.
        created_at: Timestamp when the entity was created.
        updated_at: Timestamp of last modification.
    """

    id: str
    created_at: datetime = field(default_factory=utcnow, compare=False)
    updated_at: datetime = field(default_factory=utcnow, compare=False)

    def with_changes(self, **changes: Any) -> Self:
        """Return a copy with the given attributes replaced.

        The copy's updated_at is refreshed unless explicitly supplied.

        Args:
            **changes: Attribute values to replace.

        Returns:
            New entity instance.
        """
        changes.setdefault("updated_at", utcnow())
        return replace(self, **changes)
