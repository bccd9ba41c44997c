from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.adapters.base import BaseMessagingProvider, ProviderPermanentError
from app.adapters.blob_store import BlobStore
from app.adapters.provider_client import ProviderClient
from app.config import SyncConfig, get_sync_config
from app.db import get_db
from app.models.account import ProviderAccount
from app.models.user import User
from app.services.account_service import AccountService
from app.services.user_service import UserService


def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> User:
    """
    FastAPI dependency resolving the caller. Authentication happens upstream;
    the gateway forwards the authenticated user's id in X-User-Id.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing user identity")
    user = UserService(db).find_by_identifier(x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def get_provider() -> BaseMessagingProvider:
    """FastAPI dependency for the messaging provider client."""
    try:
        return ProviderClient.from_settings()
    except ProviderPermanentError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


def get_blob_store() -> Optional[BlobStore]:
    return BlobStore.from_settings()


def get_inbox_sync_config() -> SyncConfig:
    return get_sync_config()


def get_owned_account(
    account_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProviderAccount:
    """FastAPI dependency to get one of the caller's active accounts by ID."""
    account = AccountService(db).get_account(account_id)
    if account is None or account.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Account not found")
    return account
