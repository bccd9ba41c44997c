"""Command to list the user's chats, newest first, under the contact limit."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.commands.base_inbox import BaseInboxCommand
from app.schemas.inbox import ChatPage, chat_read
from app.services.contact_limit_service import ContactLimitService
from app.services.message_service import MessageService
from app.utils.db.pagination import DEFAULT_PAGE_SIZE


class ListChatsCommand(BaseInboxCommand):
    def __init__(
        self, db: Session, contact_limits: Optional[ContactLimitService] = None
    ) -> None:
        super().__init__(db, contact_limits=contact_limits)
        self.messages = MessageService(db)

    def execute(
        self,
        user_id: UUID,
        cursor: Optional[str] = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ChatPage:
        """One page of chats, each with its latest message as a preview."""
        page = self.chats.list_by_owner(user_id, cursor=cursor, limit=limit)
        views = []
        for chat in page.items:
            latest = self.messages.latest_in_chat(chat.id)
            views.append(chat_read(chat, [latest] if latest is not None else []))
        items = self.contact_limits.apply_to_chats(user_id, views)
        return ChatPage(items=items, next_cursor=page.next_cursor, has_more=page.has_more)
