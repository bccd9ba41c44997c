"""
Webhook route for provider pushes.

The provider POSTs one event per request; we verify the shared secret,
parse the event and apply it before returning 200.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.adapters.base import BaseMessagingProvider
from app.commands.webhooks.provider_event_command import ProviderEventCommand
from app.config import SyncConfig
from app.db import get_db
from app.routers.utils.dependencies import get_inbox_sync_config, get_provider
from app.tasks.inbox_sync_task import historical_sync_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/provider")
async def provider_webhook(
    request: Request,
    db: Session = Depends(get_db),
    provider: BaseMessagingProvider = Depends(get_provider),
    config: SyncConfig = Depends(get_inbox_sync_config),
) -> dict[str, str]:
    """Receive a provider event. New connected accounts get a historical sync queued."""
    try:
        body = await request.json()
    except ValueError as e:
        logger.warning("Provider webhook invalid JSON: %s", e)
        raise HTTPException(status_code=400, detail="Invalid JSON body") from e

    command = ProviderEventCommand(
        db,
        provider,
        config,
        enqueue_sync=lambda account_id: historical_sync_task.delay(str(account_id)),
    )
    # Blocking DB and provider I/O runs in a worker thread
    return await asyncio.to_thread(command.execute, request.headers, body)
