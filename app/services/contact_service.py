from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.contact import Contact
from app.models.mixins import utcnow
from app.services.lifecycle_service import LifecycleService
from app.utils.time import as_utc
from app.utils.db.filtering import Visibility
from app.utils.db.pagination import CursorPage, paginate_query
from app.utils.db.upsert import upsert


class ContactService(LifecycleService[Contact]):
    """Contacts keyed by (account, external id)."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Contact)

    def find_by_natural_key(
        self,
        account_id: UUID,
        external_id: str,
        visibility: Visibility = Visibility.ACTIVE,
    ) -> Optional[Contact]:
        return (
            self.query(visibility)
            .filter(Contact.account_id == account_id, Contact.external_id == external_id)
            .first()
        )

    def upsert_contact(
        self, account_id: UUID, external_id: str, patch: Dict[str, Any]
    ) -> Contact:
        return upsert(
            self.db,
            Contact,
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
            .filter(Contact.account_id == account_id)
            .order_by(
                Contact.last_interaction_at.is_(None),
                Contact.last_interaction_at.desc(),
                Contact.id,
            )
        )
        return paginate_query(query, cursor=cursor, limit=limit)

    def touch_interaction(self, contact: Contact, at: Optional[datetime] = None) -> None:
        """Move last_interaction_at forward; older timestamps are ignored."""
        at = as_utc(at) or utcnow()
        current = as_utc(contact.last_interaction_at)
        if current is not None and current >= at:
            return
        contact.last_interaction_at = at
        self.db.commit()
