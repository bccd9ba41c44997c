"""Contact model: a person known to a provider account."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)

from app.db import Base
from app.models.mixins import JSONType, LifecycleMixin, TimestampMixin


class Contact(Base, TimestampMixin, LifecycleMixin):
    __tablename__ = "contacts"

    __table_args__ = (
        UniqueConstraint("account_id", "external_id", name="uq_contacts_account_external"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(
        Uuid,
        ForeignKey("provider_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    external_id = Column(String(255), nullable=False)
    full_name = Column(String(512), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    headline = Column(Text, nullable=True)
    profile_image_url = Column(Text, nullable=True)
    provider_url = Column(Text, nullable=True)
    occupation = Column(Text, nullable=True)
    location = Column(String(512), nullable=True)
    member_urn = Column(String(255), nullable=True)
    network_distance = Column(String(32), nullable=True)
    is_connection = Column(Boolean, nullable=False, default=False)
    pending_invitation = Column(Boolean, nullable=False, default=False)
    contact_info = Column(JSONType, nullable=True)
    last_interaction_at = Column(DateTime(timezone=True), nullable=True)
