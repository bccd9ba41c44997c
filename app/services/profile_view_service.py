from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.profile_view import ProfileView
from app.services.lifecycle_service import LifecycleService
from app.utils.db.filtering import Visibility
from app.utils.db.pagination import CursorPage, paginate_query
from app.utils.db.upsert import upsert


class ProfileViewService(LifecycleService[ProfileView]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, ProfileView)

    def find_by_natural_key(
        self,
        account_id: UUID,
        external_id: str,
        visibility: Visibility = Visibility.ACTIVE,
    ) -> Optional[ProfileView]:
        return (
            self.query(visibility)
            .filter(
                ProfileView.account_id == account_id,
                ProfileView.external_id == external_id,
            )
            .first()
        )

    def record_view(
        self, account_id: UUID, external_id: str, patch: Dict[str, Any]
    ) -> ProfileView:
        return upsert(
            self.db,
            ProfileView,
            key={"account_id": account_id, "external_id": external_id},
            patch=patch,
        )

    def list_by_owner(
        self,
        account_id: UUID,
        visibility: Visibility = Visibility.ACTIVE,
        cursor: Optional[str] = None,
        limit: int = 50,
    ) -> CursorPage:
        query = (
            self.query(visibility)
            .filter(ProfileView.account_id == account_id)
            .order_by(
                ProfileView.viewed_at.is_(None),
                ProfileView.viewed_at.desc(),
                ProfileView.id,
            )
        )
        return paginate_query(query, cursor=cursor, limit=limit)
