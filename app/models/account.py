"""
Provider account model.

One external messaging identity (e.g. a LinkedIn login connected through the
provider), owned by exactly one user. The sync snapshot columns are written
as a historical sync advances so a crashed run still reports partial state.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import LifecycleMixin, TimestampMixin


class ProviderAccount(Base, TimestampMixin, LifecycleMixin):
    __tablename__ = "provider_accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    provider = Column(String(32), nullable=False, default="linkedin")
    account_type = Column(String(32), nullable=False, default="LINKEDIN")
    external_id = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=True)
    provider_user_id = Column(String(255), nullable=True)  # account owner's own id
    status = Column(String(32), nullable=False, default="connected")

    # Sync snapshot
    sync_status = Column(String(32), nullable=False, default="idle")
    sync_step = Column(String(64), nullable=True)
    sync_cursor = Column(Text, nullable=True)
    chats_processed = Column(Integer, nullable=False, default=0)
    messages_processed = Column(Integer, nullable=False, default=0)
    attendees_processed = Column(Integer, nullable=False, default=0)
    sync_started_at = Column(DateTime(timezone=True), nullable=True)
    sync_completed_at = Column(DateTime(timezone=True), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    last_sync_error = Column(Text, nullable=True)

    user = relationship("User", back_populates="accounts")
    chats = relationship("Chat", back_populates="account")
