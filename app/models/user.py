"""User model (identity is resolved by the external auth layer)."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, String, Uuid
from sqlalchemy.orm import relationship

from app.db import Base
from app.models.mixins import LifecycleMixin, TimestampMixin


class User(Base, TimestampMixin, LifecycleMixin):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(320), nullable=True, index=True)
    external_id = Column(String(255), unique=True, nullable=True)
    name = Column(String(255), nullable=True)

    accounts = relationship("ProviderAccount", back_populates="user")
    subscription = relationship("Subscription", back_populates="user", uselist=False)
