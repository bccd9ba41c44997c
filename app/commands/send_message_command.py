"""Command to send a message into one of the user's chats."""

from __future__ import annotations

import uuid
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.adapters.base import BaseMessagingProvider, ProviderError
from app.commands.base_inbox import BaseInboxCommand
from app.constants.provider import MessageDirection
from app.core.errors import ProviderRequestFailedError, ReadOnlyChatError
from app.models.chat import Chat
from app.models.mixins import utcnow
from app.schemas.inbox import MessageRead
from app.services.contact_limit_service import ContactLimitService
from app.services.message_service import MessageService, new_local_message_id
from app.utils.metrics import PROVIDER_REQUESTS_TOTAL


class SendMessageCommand(BaseInboxCommand):
    """
    Send a text message through the provider and record it locally.

    All authorization checks run before the provider is called. A send the
    provider accepted is always recorded, under the provider's message id or
    a local placeholder id when none comes back.
    """

    def __init__(
        self,
        db: Session,
        provider: BaseMessagingProvider,
        contact_limits: Optional[ContactLimitService] = None,
    ) -> None:
        super().__init__(db, contact_limits=contact_limits)
        self.provider = provider
        self.messages = MessageService(db)

    def execute(self, user_id: UUID, chat_id: UUID, text: str) -> MessageRead:
        """
        Raises:
            ChatNotFoundError, ChatNotOwnedError, ReadOnlyChatError,
            ContactLimitExceededError: checked in this order
            ProviderRequestFailedError: the provider rejected the send
        """
        chat = self.get_owned_chat(user_id, chat_id)
        if chat.read_only:
            raise ReadOnlyChatError(f"Chat {chat_id} is read-only")
        self.ensure_not_obfuscated(user_id, chat)

        account = chat.account
        try:
            result = self.provider.send_message(chat.external_id, account.external_id, text)
        except ProviderError as e:
            self.logger.warning("Send to chat %s failed: %s", chat.id, e)
            raise ProviderRequestFailedError(f"Provider rejected the message: {e}") from e
        if result.failed:
            self.logger.warning("Provider reported failed send to chat %s", chat.id)
            raise ProviderRequestFailedError("Provider reported the message as failed")

        return self._record_sent(chat, text, result.message_id)

    def _record_sent(
        self, chat: Chat, text: str, provider_message_id: Optional[str]
    ) -> MessageRead:
        sent_at = utcnow()
        external_id = provider_message_id or new_local_message_id()
        try:
            message = self.messages.create_local_message(
                chat.account_id, chat.id, text, sent_at=sent_at, external_id=external_id
            )
            self.chats.touch_last_message(chat, sent_at)
        except Exception:
            # The provider already accepted the message; report it as sent
            self.db.rollback()
            PROVIDER_REQUESTS_TOTAL.labels(operation="send_message", status="unrecorded").inc()
            self.logger.exception("Sent message %s could not be recorded locally", external_id)
            return MessageRead(
                id=uuid.uuid4(),
                chat_id=chat.id,
                external_id=external_id,
                direction=MessageDirection.OUTGOING.value,
                message_type="text",
                content=text,
                sent_at=sent_at,
                is_read=True,
                seen=True,
                delivered=True,
            )
        self.logger.info("Message %s sent to chat %s", message.external_id, chat.id)
        return MessageRead.model_validate(message)
