"""Command to run a bounded historical sync of one provider account."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.adapters.base import BaseMessagingProvider, ProviderError, ProviderPermanentError
from app.config import SyncConfig
from app.constants.provider import AccountStatus, SyncStatus, SyncStep
from app.core.company_classifier import is_company_chat
from app.core.errors import AccountNotFoundError
from app.models.account import ProviderAccount
from app.models.chat import Chat
from app.schemas.provider import ProviderAccountInfo, ProviderChat
from app.services.account_service import AccountService
from app.services.inbox_ingestion_service import InboxIngestionService
from app.utils.metrics import SYNC_ITEMS_TOTAL, SYNC_RUNS_TOTAL


@dataclass
class ChatSyncResult:
    chat_external_id: str
    chat_id: Optional[UUID] = None
    attendees: int = 0
    messages: int = 0
    skipped: bool = False


@dataclass
class SyncSummary:
    account_id: UUID
    status: str
    chats_processed: int = 0
    messages_processed: int = 0
    attendees_processed: int = 0
    chats_skipped: int = 0
    failed_chats: List[Dict[str, Any]] = field(default_factory=list)


def provider_user_id_from(info: Optional[ProviderAccountInfo]) -> Optional[str]:
    """The member id of the connected account, as reported under connection_params.im."""
    if info is None or not info.connection_params:
        return None
    im = info.connection_params.get("im") or {}
    return im.get("id") if isinstance(im, dict) else None


def _halts_sync(error: Exception) -> bool:
    return isinstance(error, ProviderPermanentError) and error.is_auth_failure


class HistoricalSyncCommand:
    """
    Paginated, capped ingestion of an account's chats, attendees and messages.

    Progress is written to the account after every chat page, so a run that
    dies half way can be started again with ``resume=True`` and continue from
    the persisted cursor.
    """

    def __init__(
        self,
        db: Session,
        provider: BaseMessagingProvider,
        config: SyncConfig,
        ingestion: Optional[InboxIngestionService] = None,
    ) -> None:
        self.db = db
        self.provider = provider
        self.config = config
        self.accounts = AccountService(db)
        self.ingestion = ingestion or InboxIngestionService(db, provider, config)
        self.logger = logging.getLogger(__name__)

    def execute(self, account_id: UUID, resume: bool = False) -> SyncSummary:
        """
        Run the sync for one account.

        Raises:
            AccountNotFoundError: no active account with this id
            ProviderError: the provider could not be reached or rejected the
                account; the account is marked failed before re-raising
        """
        account = self.accounts.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")

        self.accounts.start_sync(account, resume=resume)
        summary = SyncSummary(account_id=account.id, status=SyncStatus.SYNCING.value)
        try:
            self._check_connectivity(account)
            self._sync_chat_pages(account, summary)
        except ProviderError as e:
            self.db.rollback()
            self.accounts.fail_sync(account, str(e))
            SYNC_RUNS_TOTAL.labels(status="failed").inc()
            self.logger.warning("Historical sync failed for account=%s: %s", account.id, e)
            raise

        self.accounts.complete_sync(account)
        summary.status = SyncStatus.COMPLETED.value
        summary.chats_processed = account.chats_processed or 0
        summary.messages_processed = account.messages_processed or 0
        summary.attendees_processed = account.attendees_processed or 0
        SYNC_RUNS_TOTAL.labels(status="completed").inc()
        self.logger.info(
            "Historical sync completed for account=%s: chats=%d messages=%d attendees=%d "
            "skipped=%d failed=%d",
            account.id,
            summary.chats_processed,
            summary.messages_processed,
            summary.attendees_processed,
            summary.chats_skipped,
            len(summary.failed_chats),
        )
        return summary

    def sync_chat(self, account: ProviderAccount, provider_chat: ProviderChat) -> ChatSyncResult:
        """Ingest one chat with its attendees and recent messages."""
        result = ChatSyncResult(chat_external_id=provider_chat.id)
        if is_company_chat(provider_chat) and not self.config.flags.include_company_messages:
            self._detail("Skipping company chat %s", provider_chat.id)
            SYNC_ITEMS_TOTAL.labels(kind="chat", status="skipped").inc()
            result.skipped = True
            return result

        chat = self.ingestion.ingest_chat(account, provider_chat)
        result.chat_id = chat.id
        result.attendees = self._sync_attendees(account, chat)
        result.messages = self._sync_messages(account, chat)
        SYNC_ITEMS_TOTAL.labels(kind="chat", status="synced").inc()
        self._detail(
            "Synced chat %s: attendees=%d messages=%d",
            chat.external_id,
            result.attendees,
            result.messages,
        )
        return result

    def _detail(self, msg: str, *args: Any) -> None:
        if self.config.flags.enable_detailed_logging:
            self.logger.info(msg, *args)
        else:
            self.logger.debug(msg, *args)

    def _check_connectivity(self, account: ProviderAccount) -> None:
        info = self.provider.get_account(account.external_id)
        provider_user_id = provider_user_id_from(info)
        if provider_user_id and provider_user_id != account.provider_user_id:
            account.provider_user_id = provider_user_id
        account.status = AccountStatus.CONNECTED.value
        self.db.commit()
        self.accounts.record_progress(account, step=SyncStep.FETCH_CHATS)

    def _sync_chat_pages(self, account: ProviderAccount, summary: SyncSummary) -> None:
        limits = self.config.limits
        processed = account.chats_processed or 0
        cursor = account.sync_cursor

        while processed < limits.max_chats:
            limit = min(limits.page_size, limits.max_chats - processed)
            page = self.provider.list_chats(account.external_id, limit=limit, cursor=cursor)
            items = page.items[:limit]
            if not items:
                break

            attendees = messages = 0
            for provider_chat in items:
                try:
                    result = self.sync_chat(account, provider_chat)
                except Exception as e:
                    if _halts_sync(e):
                        raise
                    self.db.rollback()
                    SYNC_ITEMS_TOTAL.labels(kind="chat", status="failed").inc()
                    self.logger.warning(
                        "Failed to sync chat %s for account=%s: %s",
                        provider_chat.id,
                        account.id,
                        e,
                    )
                    summary.failed_chats.append(
                        provider_chat.model_dump(mode="json", by_alias=True)
                    )
                    continue
                if result.skipped:
                    summary.chats_skipped += 1
                attendees += result.attendees
                messages += result.messages

            processed += len(items)
            self.accounts.record_progress(
                account,
                step=SyncStep.SYNC_MESSAGES,
                chats=len(items),
                messages=messages,
                attendees=attendees,
                cursor=page.cursor,
            )
            if not page.cursor:
                break
            cursor = page.cursor

    def _sync_attendees(self, account: ProviderAccount, chat: Chat) -> int:
        limit = self.config.limits.max_attendees_per_chat
        page = self.provider.list_attendees(chat.external_id, account.external_id, limit=limit)
        stored = 0
        for attendee in page.items[:limit]:
            try:
                self.ingestion.ingest_attendee(account, chat, attendee)
            except Exception as e:
                if _halts_sync(e):
                    raise
                self.db.rollback()
                SYNC_ITEMS_TOTAL.labels(kind="attendee", status="failed").inc()
                self.logger.warning(
                    "Failed to sync attendee %s of chat %s: %s",
                    attendee.external_id,
                    chat.external_id,
                    e,
                )
                continue
            stored += 1
            SYNC_ITEMS_TOTAL.labels(kind="attendee", status="synced").inc()
        return stored

    def _sync_messages(self, account: ProviderAccount, chat: Chat) -> int:
        limits = self.config.limits
        fetched = stored = 0
        cursor: Optional[str] = None

        while fetched < limits.max_messages_per_chat:
            limit = min(limits.message_batch_size, limits.max_messages_per_chat - fetched)
            page = self.provider.list_messages(
                chat.external_id, account.external_id, limit=limit, cursor=cursor
            )
            items = page.items[:limit]
            if not items:
                break
            for provider_message in items:
                try:
                    message = self.ingestion.ingest_provider_message(
                        account, chat, provider_message
                    )
                except Exception as e:
                    if _halts_sync(e):
                        raise
                    self.db.rollback()
                    SYNC_ITEMS_TOTAL.labels(kind="message", status="failed").inc()
                    self.logger.warning(
                        "Failed to sync message %s of chat %s: %s",
                        provider_message.id,
                        chat.external_id,
                        e,
                    )
                    continue
                if message is not None:
                    stored += 1
                    SYNC_ITEMS_TOTAL.labels(kind="message", status="synced").inc()
            fetched += len(items)
            if not page.cursor:
                break
            cursor = page.cursor
        return stored
