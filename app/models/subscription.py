from __future__ import annotations

import uuid

from sqlalchemy import Column, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import TimestampMixin


class Subscription(Base, TimestampMixin):
    """A user's billing plan. Only the plan name matters to contact limits."""

    __tablename__ = "subscriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    plan = Column(String(32), nullable=False, default="FREE")
    status = Column(String(32), nullable=False, default="active")

    user = relationship("User", back_populates="subscription")
