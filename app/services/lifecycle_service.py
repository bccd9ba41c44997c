"""Generic active/deleted lifecycle handling shared by the repositories."""

from __future__ import annotations

from typing import Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy.orm import Query, Session

from app.models.mixins import LifecycleState, utcnow
from app.utils.db.filtering import Visibility, apply_visibility

ModelType = TypeVar("ModelType")


class LifecycleService(Generic[ModelType]):
    def __init__(self, db: Session, model: Type[ModelType]) -> None:
        self.db = db
        self.model = model

    def query(self, visibility: Visibility = Visibility.ACTIVE) -> Query:
        return apply_visibility(self.db.query(self.model), self.model, visibility)

    def get_record(
        self, record_id: UUID, visibility: Visibility = Visibility.ACTIVE
    ) -> Optional[ModelType]:
        return self.query(visibility).filter(self.model.id == record_id).first()

    def delete_record(self, record_id: UUID) -> bool:
        """Move a record to the deleted state. Returns False if it does not exist."""
        record = self.get_record(record_id, Visibility.ALL)
        if record is None:
            return False
        if record.lifecycle_state != LifecycleState.DELETED:
            record.lifecycle_state = LifecycleState.DELETED
            record.deleted_at = utcnow()
            self.db.commit()
        return True

    def restore_record(self, record_id: UUID) -> bool:
        record = self.get_record(record_id, Visibility.DELETED)
        if record is None:
            return False
        record.lifecycle_state = LifecycleState.ACTIVE
        record.deleted_at = None
        self.db.commit()
        return True
