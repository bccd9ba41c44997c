"""Message and attachment models."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import JSONType, LifecycleMixin, TimestampMixin

# Prefix for ids of messages composed locally before the provider id is known
LOCAL_MESSAGE_ID_PREFIX = "local:"


class Message(Base, TimestampMixin, LifecycleMixin):
    """
    One chat message.

    ``external_id`` is the only dedup key: webhook and bulk sync deliveries
    of the same provider message land on the same row.
    """

    __tablename__ = "messages"

    __table_args__ = (
        UniqueConstraint("account_id", "external_id", name="uq_messages_account_external"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(
        Uuid,
        ForeignKey("provider_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chat_id = Column(
        Uuid,
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    external_id = Column(String(255), nullable=False)
    sender_id = Column(String(255), nullable=True, index=True)
    sender_urn = Column(String(255), nullable=True)
    direction = Column(String(16), nullable=False, default="incoming")  # incoming | outgoing
    message_type = Column(String(32), nullable=False, default="text")
    content = Column(Text, nullable=True)
    subject = Column(String(512), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True, index=True)
    is_read = Column(Boolean, nullable=False, default=False)
    seen = Column(Boolean, nullable=False, default=False)
    delivered = Column(Boolean, nullable=False, default=False)
    edited = Column(Boolean, nullable=False, default=False)
    is_event = Column(Boolean, nullable=False, default=False)
    provider_metadata = Column(JSONType, nullable=True)

    chat = relationship("Chat", back_populates="messages")
    attachments = relationship(
        "MessageAttachment",
        back_populates="message",
        order_by="MessageAttachment.created_at",
    )


class MessageAttachment(Base, TimestampMixin):
    """
    Attachment on a message.

    Available when any of storage_url, url or content is set. storage_url is
    authoritative once written.
    """

    __tablename__ = "message_attachments"

    __table_args__ = (
        UniqueConstraint(
            "message_id", "external_id", name="uq_message_attachments_message_external"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    message_id = Column(
        Uuid,
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    external_id = Column(String(255), nullable=False)
    attachment_type = Column(String(32), nullable=True)
    mime_type = Column(String(255), nullable=True)
    filename = Column(String(512), nullable=True)
    file_size = Column(BigInteger, nullable=True)
    content = Column(Text, nullable=True)  # base64
    url = Column(Text, nullable=True)
    url_expires_at = Column(DateTime(timezone=True), nullable=True)
    unavailable = Column(Boolean, nullable=False, default=False)
    storage_key = Column(String(512), nullable=True)
    storage_url = Column(Text, nullable=True)
    storage_uploaded_at = Column(DateTime(timezone=True), nullable=True)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    duration = Column(Integer, nullable=True)
    sticker = Column(Boolean, nullable=False, default=False)
    gif = Column(Boolean, nullable=False, default=False)
    voice_note = Column(Boolean, nullable=False, default=False)

    message = relationship("Message", back_populates="attachments")
