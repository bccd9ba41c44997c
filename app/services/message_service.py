"""Message and attachment repository."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from app.constants.provider import MessageDirection
from app.models.message import LOCAL_MESSAGE_ID_PREFIX, Message, MessageAttachment
from app.models.mixins import LifecycleState, utcnow
from app.services.lifecycle_service import LifecycleService
from app.utils.db.filtering import Visibility
from app.utils.db.pagination import CursorPage, paginate_query
from app.utils.db.upsert import upsert
from app.utils.time import as_utc

# How far apart a local placeholder and its provider copy may be sent
PLACEHOLDER_MATCH_WINDOW = timedelta(minutes=10)


def new_local_message_id() -> str:
    """Placeholder id; the prefix never occurs in provider ids."""
    return f"{LOCAL_MESSAGE_ID_PREFIX}{uuid.uuid4().hex}"


class MessageService(LifecycleService[Message]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, Message)

    def find_by_natural_key(
        self,
        account_id: UUID,
        external_id: str,
        visibility: Visibility = Visibility.ACTIVE,
    ) -> Optional[Message]:
        return (
            self.query(visibility)
            .filter(Message.account_id == account_id, Message.external_id == external_id)
            .first()
        )

    def upsert_message(
        self,
        account_id: UUID,
        chat_id: UUID,
        external_id: str,
        patch: Dict[str, Any],
    ) -> Message:
        """Insert or merge a message. The chat of an existing row never changes."""
        return upsert(
            self.db,
            Message,
            key={"account_id": account_id, "external_id": external_id},
            patch=patch,
            defaults={"chat_id": chat_id},
        )

    def update_message(
        self, account_id: UUID, external_id: str, patch: Dict[str, Any]
    ) -> Optional[Message]:
        """Update fields of a known message; unknown messages are left alone."""
        message = self.find_by_natural_key(account_id, external_id, Visibility.ALL)
        if message is None:
            return None
        for name, value in patch.items():
            setattr(message, name, value)
        self.db.commit()
        self.db.refresh(message)
        return message

    def mark_deleted(self, account_id: UUID, external_id: str) -> Optional[Message]:
        message = self.find_by_natural_key(account_id, external_id, Visibility.ALL)
        if message is None:
            return None
        self.delete_record(message.id)
        return message

    def list_by_chat(
        self,
        chat_id: UUID,
        visibility: Visibility = Visibility.ACTIVE,
        cursor: Optional[str] = None,
        limit: int = 50,
    ) -> CursorPage:
        """Newest first."""
        query = (
            self.query(visibility)
            .options(joinedload(Message.attachments))
            .filter(Message.chat_id == chat_id)
            .order_by(Message.sent_at.is_(None), Message.sent_at.desc(), Message.id)
        )
        return paginate_query(query, cursor=cursor, limit=limit)

    def list_by_owner(
        self,
        account_id: UUID,
        visibility: Visibility = Visibility.ACTIVE,
        cursor: Optional[str] = None,
        limit: int = 50,
    ) -> CursorPage:
        """Every message of an account across its chats, newest first."""
        query = (
            self.query(visibility)
            .filter(Message.account_id == account_id)
            .order_by(Message.sent_at.is_(None), Message.sent_at.desc(), Message.id)
        )
        return paginate_query(query, cursor=cursor, limit=limit)

    def latest_in_chat(self, chat_id: UUID) -> Optional[Message]:
        return (
            self.query(Visibility.ACTIVE)
            .filter(Message.chat_id == chat_id)
            .order_by(Message.sent_at.is_(None), Message.sent_at.desc(), Message.id)
            .first()
        )

    def mark_chat_messages_read(self, chat_id: UUID) -> int:
        updated = (
            self.db.query(Message)
            .filter(
                Message.chat_id == chat_id,
                Message.direction == MessageDirection.INCOMING.value,
                Message.is_read.is_(False),
            )
            .update({Message.is_read: True, Message.seen: True}, synchronize_session=False)
        )
        self.db.commit()
        return updated

    def create_local_message(
        self,
        account_id: UUID,
        chat_id: UUID,
        content: str,
        sent_at: Optional[datetime] = None,
        external_id: Optional[str] = None,
    ) -> Message:
        """Persist a message the user just sent, under the provider id when known."""
        return self.upsert_message(
            account_id,
            chat_id,
            external_id or new_local_message_id(),
            {
                "direction": MessageDirection.OUTGOING.value,
                "message_type": "text",
                "content": content,
                "sent_at": sent_at or utcnow(),
                "is_read": True,
                "seen": True,
                "delivered": True,
            },
        )

    def reconcile_local_message(
        self,
        account_id: UUID,
        chat_id: UUID,
        provider_external_id: str,
        content: Optional[str],
        sent_at: Optional[datetime],
    ) -> Optional[Message]:
        """
        Fold a local placeholder into the provider's copy of the same message.

        The closest active placeholder in the chat with the same body, sent
        within PLACEHOLDER_MATCH_WINDOW, adopts the provider id. If the provider
        row already exists, the placeholder is retired instead.
        """
        if provider_external_id.startswith(LOCAL_MESSAGE_ID_PREFIX):
            return None
        sent_at = as_utc(sent_at)
        candidates = (
            self.query(Visibility.ACTIVE)
            .filter(
                Message.account_id == account_id,
                Message.chat_id == chat_id,
                Message.direction == MessageDirection.OUTGOING.value,
                Message.external_id.startswith(LOCAL_MESSAGE_ID_PREFIX),
                Message.content == content,
            )
            .all()
        )
        if sent_at is not None:
            candidates = [
                m
                for m in candidates
                if m.sent_at is not None
                and abs(as_utc(m.sent_at) - sent_at) <= PLACEHOLDER_MATCH_WINDOW
            ]
            candidates.sort(key=lambda m: abs(as_utc(m.sent_at) - sent_at))
        if not candidates:
            return None

        placeholder = candidates[0]
        existing = self.find_by_natural_key(account_id, provider_external_id, Visibility.ALL)
        if existing is not None:
            placeholder.lifecycle_state = LifecycleState.DELETED
            placeholder.deleted_at = utcnow()
        else:
            placeholder.external_id = provider_external_id
        self.db.commit()
        self.db.refresh(placeholder)
        return placeholder

    def upsert_attachment(
        self, message_id: UUID, external_id: str, patch: Dict[str, Any]
    ) -> MessageAttachment:
        return upsert(
            self.db,
            MessageAttachment,
            key={"message_id": message_id, "external_id": external_id},
            patch=patch,
        )
