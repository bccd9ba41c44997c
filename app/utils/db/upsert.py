"""
Idempotent insert-or-merge keyed by an entity's natural key.

The unique constraint on the natural key is the only concurrency control:
two writers racing on the same key both land on one row, last write wins
per column. Columns absent from ``patch`` keep their stored values.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.models.mixins import utcnow

ModelType = TypeVar("ModelType")

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert(
    db: Session,
    model: Type[ModelType],
    key: Dict[str, Any],
    patch: Dict[str, Any],
    defaults: Optional[Dict[str, Any]] = None,
) -> ModelType:
    """Insert ``key + defaults + patch`` or update ``patch`` on conflict."""
    dialect = db.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"upsert is not supported on {dialect!r}")

    values = {**(defaults or {}), **patch, **key}
    stmt = insert(model).values(**values)
    update_columns = {
        name: stmt.excluded[name] for name in patch.keys() if name not in key
    }
    if update_columns:
        update_columns["updated_at"] = utcnow()
        stmt = stmt.on_conflict_do_update(index_elements=list(key), set_=update_columns)
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(key))

    db.execute(stmt)
    db.commit()
    return db.query(model).filter_by(**key).one()
