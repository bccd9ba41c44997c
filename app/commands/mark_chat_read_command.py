"""Command to mark one of the user's chats as read."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.adapters.base import BaseMessagingProvider, ProviderError
from app.commands.base_inbox import BaseInboxCommand
from app.core.errors import ProviderRequestFailedError
from app.schemas.inbox import ChatRead, chat_read
from app.services.contact_limit_service import ContactLimitService
from app.services.message_service import MessageService

READ_STATUS_ACTION = "setReadStatus"


class MarkChatReadCommand(BaseInboxCommand):
    def __init__(
        self,
        db: Session,
        provider: BaseMessagingProvider,
        contact_limits: Optional[ContactLimitService] = None,
    ) -> None:
        super().__init__(db, contact_limits=contact_limits)
        self.provider = provider
        self.messages = MessageService(db)

    def execute(self, user_id: UUID, chat_id: UUID) -> ChatRead:
        """Mark read at the provider, then clear local unread state. Read-only chats are fine."""
        chat = self.get_owned_chat(user_id, chat_id)
        self.ensure_not_obfuscated(user_id, chat)

        try:
            result = self.provider.patch_chat(
                chat.external_id, chat.account.external_id, READ_STATUS_ACTION, True
            )
        except ProviderError as e:
            raise ProviderRequestFailedError(f"Provider could not mark chat read: {e}") from e
        if not result.success:
            raise ProviderRequestFailedError("Provider could not mark chat read")

        self.chats.mark_read(chat)
        updated = self.messages.mark_chat_messages_read(chat.id)
        self.logger.info("Chat %s marked read (%d messages)", chat.id, updated)
        return chat_read(chat)
