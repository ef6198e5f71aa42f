"""
Base models and mixins for SQLAlchemy ORM.

Provides reusable base classes, mixins for timestamps and UUIDs,
and common utilities for all database models.
"""

from datetime import datetime, timezone
from typing import Any
import json
import uuid

from sqlalchemy import Column, String, text
from sqlalchemy.orm import declarative_base


# SQLAlchemy declarative base for all ORM models
Base = declarative_base()


def utc_now_iso() -> str:
    """
    Get current UTC timestamp in ISO format.

    Returns:
        ISO format timestamp string (e.g., "2025-01-15T10:30:45.123456+00:00")

    Note:
        ISO strings sort chronologically, so ``ORDER BY created_at`` works
        on the TEXT column.
    """
    return datetime.now(timezone.utc).isoformat()


def parse_iso(value: str | None) -> datetime | None:
    """Parse a stored timestamp back into an aware datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace(" ", "T"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def load_json(value: str | None, default: Any) -> Any:
    """Parse a JSON TEXT column, falling back to ``default`` when empty."""
    if not value:
        return default
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return default


def dump_json(value: Any) -> str:
    return json.dumps(value)


class TimestampMixin:
    """
    Mixin that adds created_at and updated_at timestamp columns.

    Uses TEXT type for SQLite compatibility (ISO format strings).

    Attributes:
        created_at: Timestamp when record was created (immutable)
        updated_at: Timestamp when record was last updated (auto-updated)
    """

    created_at = Column(
        String,
        nullable=False,
        default=utc_now_iso,
        server_default=text("CURRENT_TIMESTAMP"),
        index=True,
        doc="UTC timestamp when record was created"
    )

    updated_at = Column(
        String,
        nullable=False,
        default=utc_now_iso,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now_iso,
        doc="UTC timestamp when record was last updated"
    )


class UUIDMixin:
    """
    Mixin that adds a UUID primary key column.

    UUIDs are stored as strings for easy migration to PostgreSQL.

    Attributes:
        id: UUID primary key as TEXT
    """

    id = Column(
        String,
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        doc="UUID primary key"
    )


class ModelMixin:
    """
    Mixin providing common model utilities.

    Adds helper methods for serialization and representation.
    """

    # Columns holding JSON text; to_dict() returns them parsed
    __json_columns__: dict[str, Any] = {}

    # Columns never serialized (secrets)
    __private_columns__: frozenset[str] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """
        Convert model instance to dictionary.

        Returns:
            Dictionary with all column values, JSON columns parsed

        Note:
            Only includes columns, not relationships.
        """
        data = {}
        for prop in self.__mapper__.column_attrs:
            name = prop.columns[0].name
            if name in self.__private_columns__:
                continue
            value = getattr(self, prop.key)
            if name in self.__json_columns__:
                value = load_json(value, self.__json_columns__[name])
            data[name] = value
        return data

    def __repr__(self) -> str:
        attrs = ", ".join(
            f"{key}={repr(value)}"
            for key, value in self.to_dict().items()
            if key in ["id", "name", "slug", "email", "status"]  # Key identifying fields
        )
        return f"{self.__class__.__name__}({attrs})"
