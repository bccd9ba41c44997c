"""Inbox API: chats, messages, sending, read state, contact limit and sync triggers."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.adapters.base import BaseMessagingProvider
from app.adapters.blob_store import BlobStore
from app.commands.get_chat_messages_command import GetChatMessagesCommand
from app.commands.list_chats_command import ListChatsCommand
from app.commands.mark_chat_read_command import MarkChatReadCommand
from app.commands.send_message_command import SendMessageCommand
from app.db import get_db
from app.models.account import ProviderAccount
from app.models.user import User
from app.routers.utils.dependencies import (
    get_blob_store,
    get_current_user,
    get_owned_account,
    get_provider,
)
from app.schemas.inbox import (
    ChatPage,
    ChatRead,
    ContactLimitStatus,
    MessagePage,
    MessageRead,
    SendMessageRequest,
    SyncTriggerResponse,
)
from app.services.contact_limit_service import ContactLimitService
from app.tasks.inbox_sync_task import historical_sync_task
from app.utils.db.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter(
    prefix="/inbox",
    tags=["inbox"],
    responses={404: {"description": "Not found"}},
)


@router.get("/chats", response_model=ChatPage)
def list_chats(
    cursor: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ChatPage:
    """List the caller's chats, newest first, with the contact limit applied."""
    return ListChatsCommand(db).execute(current_user.id, cursor=cursor, limit=limit)


@router.get("/chats/{chat_id}/messages", response_model=MessagePage)
def get_chat_messages(
    chat_id: UUID,
    cursor: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    provider: BaseMessagingProvider = Depends(get_provider),
    blob_store: Optional[BlobStore] = Depends(get_blob_store),
    db: Session = Depends(get_db),
) -> MessagePage:
    command = GetChatMessagesCommand(db, provider, blob_store=blob_store)
    return command.execute(current_user.id, chat_id, cursor=cursor, limit=limit)


@router.post("/chats/{chat_id}/messages", response_model=MessageRead, status_code=201)
def send_message(
    chat_id: UUID,
    payload: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    provider: BaseMessagingProvider = Depends(get_provider),
    db: Session = Depends(get_db),
) -> MessageRead:
    return SendMessageCommand(db, provider).execute(current_user.id, chat_id, payload.text)


@router.post("/chats/{chat_id}/read", response_model=ChatRead)
def mark_chat_read(
    chat_id: UUID,
    current_user: User = Depends(get_current_user),
    provider: BaseMessagingProvider = Depends(get_provider),
    db: Session = Depends(get_db),
) -> ChatRead:
    return MarkChatReadCommand(db, provider).execute(current_user.id, chat_id)


@router.get("/contact-limit", response_model=ContactLimitStatus)
def get_contact_limit(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContactLimitStatus:
    """Live contact usage for the caller's plan."""
    return ContactLimitService(db).get_status(current_user.id)


@router.post(
    "/accounts/{account_id}/sync",
    response_model=SyncTriggerResponse,
    status_code=202,
)
def trigger_sync(
    account: ProviderAccount = Depends(get_owned_account),
) -> SyncTriggerResponse:
    """Queue a historical sync for one of the caller's accounts."""
    historical_sync_task.delay(str(account.id))
    return SyncTriggerResponse(account_id=account.id)
