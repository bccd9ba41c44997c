"""
Base command for user-facing inbox operations.

Every command that acts on a specific chat resolves it through
``get_owned_chat`` and re-checks the contact limit itself.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import ChatNotFoundError, ChatNotOwnedError, ContactLimitExceededError
from app.models.chat import Chat
from app.services.chat_service import ChatService
from app.services.contact_limit_service import ContactLimitService


class BaseInboxCommand:
    def __init__(
        self,
        db: Session,
        contact_limits: Optional[ContactLimitService] = None,
    ) -> None:
        self.db = db
        self.chats = ChatService(db)
        self.contact_limits = contact_limits or ContactLimitService(db, chat_service=self.chats)
        self.logger = logging.getLogger(self.__class__.__module__)

    def get_owned_chat(self, user_id: UUID, chat_id: UUID) -> Chat:
        """Return the active chat if it belongs to one of the user's active accounts."""
        chat = self.chats.get_chat(chat_id)
        if chat is None or chat.account is None or not chat.account.is_active:
            raise ChatNotFoundError(f"Chat {chat_id} not found")
        if chat.account.user_id != user_id:
            self.logger.warning("User %s tried to access chat %s", user_id, chat_id)
            raise ChatNotOwnedError(f"Chat {chat_id} does not belong to the caller")
        return chat

    def ensure_not_obfuscated(self, user_id: UUID, chat: Chat) -> None:
        if self.contact_limits.is_chat_obfuscated(user_id, chat):
            raise ContactLimitExceededError(
                "Contact limit reached; upgrade your plan to act on this chat"
            )
