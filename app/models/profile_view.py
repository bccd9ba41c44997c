from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid

from app.db import Base
from app.models.mixins import LifecycleMixin, TimestampMixin


class ProfileView(Base, TimestampMixin, LifecycleMixin):
    """Someone viewed the account owner's profile. Viewers count as contacts."""

    __tablename__ = "profile_views"

    __table_args__ = (
        UniqueConstraint(
            "account_id", "external_id", name="uq_profile_views_account_external"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(
        Uuid,
        ForeignKey("provider_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    external_id = Column(String(255), nullable=False)
    viewer_profile_id = Column(String(255), nullable=True, index=True)
    viewer_name = Column(String(512), nullable=True)
    viewer_headline = Column(Text, nullable=True)
    viewer_image_url = Column(Text, nullable=True)
    viewer_profile_url = Column(Text, nullable=True)
    viewed_at = Column(DateTime(timezone=True), nullable=True)
