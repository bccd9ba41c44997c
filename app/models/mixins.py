"""Shared column mixins and portable column types."""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Enum
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite test databases)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleState(str, enum.Enum):
    ACTIVE = "active"
    DELETED = "deleted"


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class LifecycleMixin:
    """Explicit active/deleted state instead of a bare soft-delete flag."""

    lifecycle_state = Column(
        Enum(
            LifecycleState,
            name="lifecycle_state",
            values_callable=lambda states: [s.value for s in states],
        ),
        nullable=False,
        default=LifecycleState.ACTIVE,
        index=True,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_active(self) -> bool:
        return self.lifecycle_state == LifecycleState.ACTIVE
