"""Query helpers shared by the repositories."""

from __future__ import annotations

import enum
from typing import Any, Type

from sqlalchemy.orm import Query

from app.models.mixins import LifecycleState


class Visibility(str, enum.Enum):
    """Which lifecycle states a repository read should return."""

    ACTIVE = "active"
    DELETED = "deleted"
    ALL = "all"


def apply_visibility(query: Query, model: Type[Any], visibility: Visibility) -> Query:
    if visibility == Visibility.ALL:
        return query
    state = (
        LifecycleState.ACTIVE
        if visibility == Visibility.ACTIVE
        else LifecycleState.DELETED
    )
    return query.filter(model.lifecycle_state == state)

