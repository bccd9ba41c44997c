"""
Command to handle provider webhook events.

Validates the shared secret, parses the body into one of the tagged event
variants and applies exactly one upsert or status transition per event.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.adapters.base import BaseMessagingProvider
from app.config import SyncConfig, get_settings
from app.constants.provider import PROVIDER_ACCOUNT_STATUS_MAP, AccountStatus
from app.models.account import ProviderAccount
from app.schemas.provider_events import (
    AccountConnectedEvent,
    AccountDisconnectedEvent,
    AccountStatusEvent,
    MessageDeletedEvent,
    MessageEditedEvent,
    MessageReactionEvent,
    MessageReadEvent,
    MessageReceivedEvent,
    ProfileViewEvent,
    ProviderEvent,
    parse_provider_event,
)
from app.services.account_service import AccountService
from app.services.inbox_ingestion_service import InboxIngestionService, provided
from app.services.message_service import MessageService
from app.services.profile_view_service import ProfileViewService
from app.services.user_service import UserService
from app.utils.metrics import WEBHOOK_EVENTS_TOTAL

PROCESSED = "processed"
IGNORED = "ignored"
SKIPPED = "skipped"

DEFAULT_PROVIDER = "linkedin"


class ProviderEventCommand:
    """Apply provider webhook events to the local inbox."""

    def __init__(
        self,
        db: Session,
        provider: BaseMessagingProvider,
        config: SyncConfig,
        enqueue_sync: Optional[Callable[[UUID], Any]] = None,
    ) -> None:
        self.db = db
        self.provider = provider
        self.settings = get_settings()
        self.accounts = AccountService(db)
        self.messages = MessageService(db)
        self.profile_views = ProfileViewService(db)
        self.users = UserService(db)
        self.ingestion = InboxIngestionService(
            db, provider, config, message_service=self.messages
        )
        self.enqueue_sync = enqueue_sync
        self.logger = logging.getLogger(__name__)

    def execute(self, headers: Mapping[str, str], body: Any) -> dict[str, str]:
        """
        Verify, parse and apply a webhook delivery.

        Returns:
            dict: {"status": ..., "event": ...}

        Raises:
            HTTPException: 403 on a bad secret, 400 on an unparseable event.
        """
        if not self.provider.verify_webhook(
            self.settings.provider_webhook_secret, dict(headers)
        ):
            raise HTTPException(status_code=403, detail="Invalid webhook secret")
        try:
            event = parse_provider_event(body)
        except ValueError as e:
            self.logger.warning("Provider webhook parse error: %s", e)
            WEBHOOK_EVENTS_TOTAL.labels(event="unknown", status="invalid").inc()
            raise HTTPException(status_code=400, detail="Invalid provider event") from e
        status = self.handle(event)
        return {"status": status, "event": event.event}

    def handle(self, event: ProviderEvent) -> str:
        handlers: dict[type, Callable[[Any], str]] = {
            MessageReceivedEvent: self._on_message_received,
            MessageReadEvent: self._on_message_read,
            MessageReactionEvent: self._on_message_reaction,
            MessageEditedEvent: self._on_message_edited,
            MessageDeletedEvent: self._on_message_deleted,
            AccountStatusEvent: self._on_account_status,
            AccountConnectedEvent: self._on_account_connected,
            AccountDisconnectedEvent: self._on_account_disconnected,
            ProfileViewEvent: self._on_profile_view,
        }
        try:
            status = handlers[type(event)](event)
        except Exception:
            self.db.rollback()
            WEBHOOK_EVENTS_TOTAL.labels(event=event.event, status="failed").inc()
            raise
        WEBHOOK_EVENTS_TOTAL.labels(event=event.event, status=status).inc()
        return status

    def _account(self, event: Any) -> Optional[ProviderAccount]:
        account = self.accounts.find_by_natural_key(event.account_id)
        if account is None:
            self.logger.info(
                "Ignoring %s for unknown account %s", event.event, event.account_id
            )
        return account

    # Messages

    def _on_message_received(self, event: MessageReceivedEvent) -> str:
        account = self._account(event)
        if account is None:
            return IGNORED
        message = self.ingestion.ingest_event_message(account, event)
        if message is None:
            return SKIPPED
        self.logger.info(
            "Stored %s message %s in chat %s",
            message.direction,
            event.message_id,
            event.chat_id,
        )
        return PROCESSED

    def _update_message(self, event: Any, patch: dict[str, Any]) -> str:
        account = self._account(event)
        if account is None:
            return IGNORED
        message = self.messages.update_message(account.id, event.message_id, patch)
        if message is None:
            self.logger.info(
                "Ignoring %s for unknown message %s", event.event, event.message_id
            )
            return IGNORED
        return PROCESSED

    def _on_message_read(self, event: MessageReadEvent) -> str:
        return self._update_message(event, {"is_read": True, "seen": True})

    def _on_message_edited(self, event: MessageEditedEvent) -> str:
        return self._update_message(event, {"content": event.new_content, "edited": True})

    def _on_message_reaction(self, event: MessageReactionEvent) -> str:
        self.logger.info(
            "Reaction %s on message %s by %s",
            event.reaction,
            event.message_id,
            event.reactor_id,
        )
        return PROCESSED

    def _on_message_deleted(self, event: MessageDeletedEvent) -> str:
        account = self._account(event)
        if account is None:
            return IGNORED
        if self.messages.mark_deleted(account.id, event.message_id) is None:
            self.logger.info("Ignoring delete of unknown message %s", event.message_id)
            return IGNORED
        return PROCESSED

    # Accounts

    def _on_account_status(self, event: AccountStatusEvent) -> str:
        account = self._account(event)
        if account is None:
            return IGNORED
        status = PROVIDER_ACCOUNT_STATUS_MAP.get(event.message.upper())
        if status is None:
            self.logger.warning(
                "Unknown provider status %s for account %s", event.message, account.id
            )
            return IGNORED
        self.accounts.update_status(account, status)
        return PROCESSED

    def _on_account_connected(self, event: AccountConnectedEvent) -> str:
        user = self.users.find_by_identifier(event.user_identifier)
        if user is None:
            self.logger.warning(
                "Account %s connected for unknown user %s",
                event.account_id,
                event.user_identifier,
            )
            return IGNORED
        status = PROVIDER_ACCOUNT_STATUS_MAP.get(
            (event.status or "OK").upper(), AccountStatus.CONNECTED
        )
        account = self.accounts.upsert_account(
            user.id,
            event.account_id,
            {
                "provider": (event.provider or DEFAULT_PROVIDER).lower(),
                "status": status.value,
            },
        )
        self.logger.info("Account %s connected for user %s", account.id, user.id)
        if status == AccountStatus.CONNECTED and self.enqueue_sync is not None:
            self.enqueue_sync(account.id)
        return PROCESSED

    def _on_account_disconnected(self, event: AccountDisconnectedEvent) -> str:
        if self.accounts.mark_disconnected(event.account_id) is None:
            self.logger.info("Ignoring disconnect of unknown account %s", event.account_id)
            return IGNORED
        return PROCESSED

    # Profile views

    def _on_profile_view(self, event: ProfileViewEvent) -> str:
        account = self._account(event)
        if account is None:
            return IGNORED
        viewer = event.viewer
        if viewer is None:
            self.logger.info("Ignoring anonymous profile view on account %s", account.id)
            return IGNORED
        external_id = event.id
        if not external_id:
            viewed = event.viewed_at.isoformat() if event.viewed_at else ""
            external_id = f"{viewer.id}:{viewed}"
        self.profile_views.record_view(
            account.id,
            external_id,
            provided(
                {
                    "viewer_profile_id": viewer.id,
                    "viewer_name": viewer.full_name,
                    "viewer_headline": viewer.headline,
                    "viewer_image_url": viewer.profile_picture_url or viewer.avatar_url,
                    "viewer_profile_url": viewer.profile_url,
                    "viewed_at": event.viewed_at,
                }
            ),
        )
        return PROCESSED
