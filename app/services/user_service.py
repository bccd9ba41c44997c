from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.user import User
from app.services.lifecycle_service import LifecycleService


class UserService(LifecycleService[User]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, User)

    def get_user(self, user_id: UUID) -> Optional[User]:
        """Fetch an active user by ID."""
        return self.get_record(user_id)

    def find_by_identifier(self, identifier: str) -> Optional[User]:
        """Resolve a user from either our id or the auth layer's external id."""
        try:
            user = self.get_user(UUID(identifier))
        except ValueError:
            user = None
        if user is not None:
            return user
        return self.query().filter(User.external_id == identifier).first()
