"""Command to read one page of a chat's messages."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.adapters.base import BaseMessagingProvider
from app.adapters.blob_store import BlobStore
from app.commands.base_inbox import BaseInboxCommand
from app.core.contact_limits import obfuscate_chat
from app.models.message import Message
from app.schemas.inbox import MessagePage, MessageRead, chat_read
from app.services.attachment_resolver import AttachmentResolver
from app.services.contact_limit_service import ContactLimitService
from app.services.message_service import MessageService
from app.utils.db.pagination import DEFAULT_PAGE_SIZE


class GetChatMessagesCommand(BaseInboxCommand):
    """
    Messages newest first. Attachments go through the resolver so expired
    provider URLs are refreshed on read; chats beyond the contact limit come
    back with placeholder content and no attachments.
    """

    def __init__(
        self,
        db: Session,
        provider: BaseMessagingProvider,
        blob_store: Optional[BlobStore] = None,
        contact_limits: Optional[ContactLimitService] = None,
    ) -> None:
        super().__init__(db, contact_limits=contact_limits)
        self.messages = MessageService(db)
        self.resolver = AttachmentResolver(
            db, provider, blob_store=blob_store, message_service=self.messages
        )

    def execute(
        self,
        user_id: UUID,
        chat_id: UUID,
        cursor: Optional[str] = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> MessagePage:
        chat = self.get_owned_chat(user_id, chat_id)
        page = self.messages.list_by_chat(chat.id, cursor=cursor, limit=limit)

        if self.contact_limits.is_chat_obfuscated(user_id, chat):
            items = obfuscate_chat(chat_read(chat, page.items)).messages
        else:
            account_external_id = chat.account.external_id
            items = [self._resolve(message, account_external_id) for message in page.items]
        return MessagePage(items=items, next_cursor=page.next_cursor, has_more=page.has_more)

    def _resolve(self, message: Message, account_external_id: str) -> MessageRead:
        view = MessageRead.model_validate(message)
        attachments = list(message.attachments)
        if not attachments:
            return view
        resolved = [
            self.resolver.resolve(a, view.external_id, account_external_id)
            for a in attachments
        ]
        return view.model_copy(update={"attachments": resolved})
