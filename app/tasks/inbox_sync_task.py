"""Celery tasks for historical sync and webhook event processing."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from app.adapters.base import ProviderTransientError
from app.adapters.provider_client import ProviderClient
from app.commands.historical_sync_command import HistoricalSyncCommand
from app.commands.webhooks.provider_event_command import ProviderEventCommand
from app.config import get_sync_config
from app.core.errors import AccountNotFoundError
from app.infra.celery_app import celery_app
from app.infra.logging_config import get_logger
from app.schemas.provider import ProviderChat
from app.schemas.provider_events import parse_provider_event
from app.services.account_service import AccountService
from app.utils.db.db_session_helper import db_session

logger = get_logger("inbox_sync")

MAX_SYNC_RETRIES = 5
RETRY_BACKOFF_SECONDS = 30
MAX_RETRY_BACKOFF_SECONDS = 600


def _retry_countdown(retries: int, retry_after: int | None = None) -> int:
    backoff = min(RETRY_BACKOFF_SECONDS * (2**retries), MAX_RETRY_BACKOFF_SECONDS)
    return max(backoff, retry_after or 0)


@celery_app.task(
    bind=True,
    name="app.tasks.inbox_sync_task.historical_sync_task",
    max_retries=MAX_SYNC_RETRIES,
)
def historical_sync_task(
    self, account_id_str: str, resume: bool = False
) -> dict[str, Any] | None:
    """
    Run a historical sync for one account. Transient provider failures retry
    with backoff and resume from the persisted cursor; chats that failed on
    their own are re-queued individually.
    """
    try:
        account_id = UUID(account_id_str)
    except ValueError:
        logger.warning("Invalid account_id for historical sync: %s", account_id_str)
        return None

    provider = ProviderClient.from_settings()
    try:
        with db_session() as db:
            command = HistoricalSyncCommand(db, provider, get_sync_config())
            summary = command.execute(account_id, resume=resume)
    except AccountNotFoundError:
        logger.warning("Historical sync skipped, account %s not found", account_id)
        return None
    except ProviderTransientError as e:
        countdown = _retry_countdown(self.request.retries, e.retry_after)
        logger.info(
            "Historical sync for %s hit a transient error, retrying in %ss: %s",
            account_id,
            countdown,
            e,
        )
        raise self.retry(exc=e, countdown=countdown, kwargs={"resume": True})

    for chat_payload in summary.failed_chats:
        sync_chat_task.delay(account_id_str, chat_payload)

    return {
        "account_id": account_id_str,
        "status": summary.status,
        "chats_processed": summary.chats_processed,
        "messages_processed": summary.messages_processed,
        "attendees_processed": summary.attendees_processed,
        "chats_skipped": summary.chats_skipped,
        "chats_failed": len(summary.failed_chats),
    }


@celery_app.task(
    bind=True,
    name="app.tasks.inbox_sync_task.sync_chat_task",
    max_retries=MAX_SYNC_RETRIES,
)
def sync_chat_task(self, account_id_str: str, chat_payload: dict[str, Any]) -> str | None:
    """Re-run ingestion of a single chat."""
    provider_chat = ProviderChat.model_validate(chat_payload)
    provider = ProviderClient.from_settings()
    try:
        with db_session() as db:
            account = AccountService(db).get_account(UUID(account_id_str))
            if account is None:
                logger.warning("Chat sync skipped, account %s not found", account_id_str)
                return None
            command = HistoricalSyncCommand(db, provider, get_sync_config())
            result = command.sync_chat(account, provider_chat)
    except ProviderTransientError as e:
        raise self.retry(exc=e, countdown=_retry_countdown(self.request.retries, e.retry_after))

    return str(result.chat_id) if result.chat_id else None


@celery_app.task(name="app.tasks.inbox_sync_task.process_provider_event_task")
def process_provider_event_task(raw_event: dict[str, Any]) -> str:
    """Apply a webhook event outside the request cycle."""
    event = parse_provider_event(raw_event)
    provider = ProviderClient.from_settings()
    with db_session() as db:
        command = ProviderEventCommand(
            db,
            provider,
            get_sync_config(),
            enqueue_sync=lambda account_id: historical_sync_task.delay(str(account_id)),
        )
        return command.handle(event)
