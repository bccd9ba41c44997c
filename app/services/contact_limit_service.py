"""
Contact-limit engine: live contact counting and read-path obfuscation.

Nothing is cached. Every call recounts from the database so soft deletes
and new incoming messages are reflected immediately.
"""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, union
from sqlalchemy.orm import Session

from app.constants.contact_limits import (
    DEFAULT_PLAN,
    PLAN_CONTACT_LIMITS,
    SubscriptionPlan,
)
from app.constants.provider import MessageDirection
from app.core.contact_limits import hidden_chat_ids, obfuscate_chat
from app.models.account import ProviderAccount
from app.models.chat import Chat
from app.models.message import Message
from app.models.mixins import LifecycleState
from app.models.profile_view import ProfileView
from app.schemas.inbox import ChatRead, ContactLimitStatus, chat_read
from app.services.chat_service import ChatService
from app.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


class ContactLimitService:
    def __init__(
        self,
        db: Session,
        plan_limits: Optional[Mapping[SubscriptionPlan, int]] = None,
        subscription_service: Optional[SubscriptionService] = None,
        chat_service: Optional[ChatService] = None,
    ) -> None:
        self.db = db
        self._plan_limits = dict(plan_limits or PLAN_CONTACT_LIMITS)
        self._subscriptions = subscription_service or SubscriptionService(db)
        self._chats = chat_service or ChatService(db)

    def get_limit(self, user_id: UUID) -> int:
        plan = self._subscriptions.get_plan(user_id)
        return self._plan_limits.get(plan, self._plan_limits[DEFAULT_PLAN])

    def count_contacts(self, user_id: UUID) -> int:
        """
        Size of the union of incoming-message senders and profile viewers
        across the user's active accounts.
        """
        senders = (
            select(Message.sender_id.label("contact_id"))
            .join(ProviderAccount, Message.account_id == ProviderAccount.id)
            .where(
                ProviderAccount.user_id == user_id,
                ProviderAccount.lifecycle_state == LifecycleState.ACTIVE,
                Message.lifecycle_state == LifecycleState.ACTIVE,
                Message.direction == MessageDirection.INCOMING.value,
                Message.sender_id.is_not(None),
            )
        )
        viewers = (
            select(ProfileView.viewer_profile_id.label("contact_id"))
            .join(ProviderAccount, ProfileView.account_id == ProviderAccount.id)
            .where(
                ProviderAccount.user_id == user_id,
                ProviderAccount.lifecycle_state == LifecycleState.ACTIVE,
                ProfileView.lifecycle_state == LifecycleState.ACTIVE,
                ProfileView.viewer_profile_id.is_not(None),
            )
        )
        contacts = union(senders, viewers).subquery()
        return self.db.execute(select(func.count()).select_from(contacts)).scalar_one()

    def get_status(self, user_id: UUID) -> ContactLimitStatus:
        return ContactLimitStatus.compute(
            limit=self.get_limit(user_id), count=self.count_contacts(user_id)
        )

    def _ranking_views(self, user_id: UUID) -> List[ChatRead]:
        return [chat_read(c) for c in self._chats.list_all_by_owner(user_id)]

    def apply_to_chats(
        self,
        user_id: UUID,
        chats: Sequence[ChatRead],
        status: Optional[ContactLimitStatus] = None,
    ) -> List[ChatRead]:
        """
        Obfuscate the over-limit chats in ``chats``.

        ``chats`` may be one page of the inbox; ranking always runs over the
        user's whole chat list so a chat's visibility does not depend on
        which page it is read from.
        """
        status = status or self.get_status(user_id)
        if not status.is_exceeded:
            return list(chats)
        hidden = hidden_chat_ids(self._ranking_views(user_id), status.limit)
        return [obfuscate_chat(c) if c.id in hidden else c for c in chats]

    def is_chat_obfuscated(self, user_id: UUID, chat: Chat) -> bool:
        status = self.get_status(user_id)
        if not status.is_exceeded:
            return False
        hidden = hidden_chat_ids(self._ranking_views(user_id), status.limit)
        obfuscated = chat.id in hidden
        if obfuscated:
            logger.info(
                "Chat %s is beyond the contact limit for user %s (%d/%d)",
                chat.id,
                user_id,
                status.count,
                status.limit,
            )
        return obfuscated
