"""Chat and attendee repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Query, Session, joinedload

from app.models.account import ProviderAccount
from app.models.chat import Chat, ChatAttendee
from app.models.mixins import LifecycleState
from app.services.lifecycle_service import LifecycleService
from app.utils.db.filtering import Visibility
from app.utils.db.pagination import CursorPage, paginate_query
from app.utils.db.upsert import upsert
from app.utils.time import as_utc


class ChatService(LifecycleService[Chat]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, Chat)

    def get_chat(
        self, chat_id: UUID, visibility: Visibility = Visibility.ACTIVE
    ) -> Optional[Chat]:
        return self.get_record(chat_id, visibility)

    def find_by_natural_key(
        self,
        account_id: UUID,
        external_id: str,
        visibility: Visibility = Visibility.ACTIVE,
    ) -> Optional[Chat]:
        return (
            self.query(visibility)
            .filter(Chat.account_id == account_id, Chat.external_id == external_id)
            .first()
        )

    def upsert_chat(
        self,
        account_id: UUID,
        external_id: str,
        patch: Dict[str, Any],
        defaults: Optional[Dict[str, Any]] = None,
    ) -> Chat:
        return upsert(
            self.db,
            Chat,
            key={"account_id": account_id, "external_id": external_id},
            patch=patch,
            defaults=defaults,
        )

    def _owner_query(self, user_id: UUID, visibility: Visibility) -> Query:
        """Chats of the user's active accounts, newest conversation first."""
        return (
            self.query(visibility)
            .join(ProviderAccount, Chat.account_id == ProviderAccount.id)
            .filter(
                ProviderAccount.user_id == user_id,
                ProviderAccount.lifecycle_state == LifecycleState.ACTIVE,
            )
            .order_by(
                Chat.last_message_at.is_(None),
                Chat.last_message_at.desc(),
                Chat.created_at,
                Chat.id,
            )
        )

    def list_by_owner(
        self,
        user_id: UUID,
        visibility: Visibility = Visibility.ACTIVE,
        cursor: Optional[str] = None,
        limit: int = 50,
    ) -> CursorPage:
        query = self._owner_query(user_id, visibility).options(
            joinedload(Chat.attendees).joinedload(ChatAttendee.contact)
        )
        return paginate_query(query, cursor=cursor, limit=limit)

    def list_all_by_owner(
        self, user_id: UUID, visibility: Visibility = Visibility.ACTIVE
    ) -> List[Chat]:
        """Every chat of the user in recency order, with attendees loaded."""
        return (
            self._owner_query(user_id, visibility)
            .options(joinedload(Chat.attendees).joinedload(ChatAttendee.contact))
            .all()
        )

    def touch_last_message(
        self,
        chat: Chat,
        sent_at: Optional[datetime],
        increment_unread: bool = False,
    ) -> None:
        """Advance last_message_at (never backwards) and optionally bump unread."""
        sent_at = as_utc(sent_at)
        current = as_utc(chat.last_message_at)
        if sent_at is not None and (current is None or sent_at > current):
            chat.last_message_at = sent_at
        if increment_unread:
            chat.unread_count = (chat.unread_count or 0) + 1
        self.db.commit()

    def mark_read(self, chat: Chat) -> None:
        chat.unread_count = 0
        self.db.commit()

    def upsert_attendee(
        self, chat_id: UUID, external_id: str, patch: Dict[str, Any]
    ) -> ChatAttendee:
        return upsert(
            self.db,
            ChatAttendee,
            key={"chat_id": chat_id, "external_id": external_id},
            patch=patch,
        )
