"""Chat and chat attendee models."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import LifecycleMixin, TimestampMixin


class Chat(Base, TimestampMixin, LifecycleMixin):
    """One conversation thread, unique per (account, external_id)."""

    __tablename__ = "chats"

    __table_args__ = (
        UniqueConstraint("account_id", "external_id", name="uq_chats_account_external"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(
        Uuid,
        ForeignKey("provider_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    external_id = Column(String(255), nullable=False)
    provider = Column(String(32), nullable=False, default="linkedin")
    chat_type = Column(String(16), nullable=False, default="direct")  # direct | group
    name = Column(String(512), nullable=True)
    subject = Column(String(512), nullable=True)
    content_type = Column(String(64), nullable=True)
    organization_id = Column(String(255), nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True, index=True)
    unread_count = Column(Integer, nullable=False, default=0)
    read_only = Column(Boolean, nullable=False, default=False)
    archived = Column(Boolean, nullable=False, default=False)
    muted = Column(Boolean, nullable=False, default=False)

    account = relationship("ProviderAccount", back_populates="chats")
    attendees = relationship(
        "ChatAttendee",
        back_populates="chat",
        order_by="ChatAttendee.created_at",
    )
    messages = relationship("Message", back_populates="chat")


class ChatAttendee(Base, TimestampMixin):
    """Chat participant; refreshed on every sync and never hard-deleted."""

    __tablename__ = "chat_attendees"

    __table_args__ = (
        UniqueConstraint("chat_id", "external_id", name="uq_chat_attendees_chat_external"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chat_id = Column(
        Uuid,
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    contact_id = Column(
        Uuid,
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
    )
    external_id = Column(String(255), nullable=False)
    display_name = Column(String(512), nullable=True)
    profile_url = Column(String(1024), nullable=True)
    attendee_type = Column(String(32), nullable=True)  # person | organization
    is_self = Column(Boolean, nullable=False, default=False)
    hidden = Column(Boolean, nullable=False, default=False)

    chat = relationship("Chat", back_populates="attendees")
    contact = relationship("Contact")
