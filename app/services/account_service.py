"""Provider account repository and sync-progress bookkeeping."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.constants.provider import AccountStatus, SyncStatus, SyncStep
from app.models.account import ProviderAccount
from app.models.mixins import LifecycleState, utcnow
from app.services.lifecycle_service import LifecycleService
from app.utils.db.filtering import Visibility
from app.utils.db.pagination import CursorPage, paginate_query
from app.utils.db.upsert import upsert


class AccountService(LifecycleService[ProviderAccount]):
    def __init__(self, db: Session) -> None:
        super().__init__(db, ProviderAccount)

    def get_account(
        self, account_id: UUID, visibility: Visibility = Visibility.ACTIVE
    ) -> Optional[ProviderAccount]:
        return self.get_record(account_id, visibility)

    def find_by_natural_key(
        self, external_id: str, visibility: Visibility = Visibility.ACTIVE
    ) -> Optional[ProviderAccount]:
        return (
            self.query(visibility)
            .filter(ProviderAccount.external_id == external_id)
            .first()
        )

    def upsert_account(
        self, user_id: UUID, external_id: str, patch: Dict[str, Any]
    ) -> ProviderAccount:
        """
        Create or refresh an account. Reconnecting a previously deleted
        account brings it back to the active state.
        """
        return upsert(
            self.db,
            ProviderAccount,
            key={"external_id": external_id},
            patch={
                **patch,
                "user_id": user_id,
                "lifecycle_state": LifecycleState.ACTIVE,
                "deleted_at": None,
            },
        )

    def list_by_owner(
        self,
        user_id: UUID,
        visibility: Visibility = Visibility.ACTIVE,
        cursor: Optional[str] = None,
        limit: int = 50,
    ) -> CursorPage:
        query = (
            self.query(visibility)
            .filter(ProviderAccount.user_id == user_id)
            .order_by(ProviderAccount.created_at, ProviderAccount.id)
        )
        return paginate_query(query, cursor=cursor, limit=limit)

    def update_status(self, account: ProviderAccount, status: AccountStatus) -> None:
        account.status = status.value
        self.db.commit()

    def mark_disconnected(self, external_id: str) -> Optional[ProviderAccount]:
        account = self.find_by_natural_key(external_id)
        if account is None:
            return None
        account.status = AccountStatus.DISCONNECTED.value
        self.db.commit()
        self.delete_record(account.id)
        return account

    def start_sync(self, account: ProviderAccount, resume: bool = False) -> None:
        """
        Enter the syncing state. ``resume`` keeps counters and cursor from an
        interrupted run so it continues where it stopped.
        """
        now = utcnow()
        resuming = resume and account.sync_status in (
            SyncStatus.SYNCING.value,
            SyncStatus.FAILED.value,
        )
        if not resuming:
            account.chats_processed = 0
            account.messages_processed = 0
            account.attendees_processed = 0
            account.sync_cursor = None
            account.sync_started_at = now
        account.sync_status = SyncStatus.SYNCING.value
        account.sync_step = SyncStep.CONNECTIVITY.value
        account.last_sync_error = None
        self.db.commit()
        self.db.refresh(account)

    def record_progress(
        self,
        account: ProviderAccount,
        *,
        step: Optional[SyncStep] = None,
        chats: int = 0,
        messages: int = 0,
        attendees: int = 0,
        cursor: Optional[str] = None,
        clear_cursor: bool = False,
    ) -> None:
        """Add to the progress counters (only non-zero / non-None values change)."""
        if step is not None:
            account.sync_step = step.value
        if chats:
            account.chats_processed = (account.chats_processed or 0) + chats
        if messages:
            account.messages_processed = (account.messages_processed or 0) + messages
        if attendees:
            account.attendees_processed = (account.attendees_processed or 0) + attendees
        if cursor is not None:
            account.sync_cursor = cursor
        if clear_cursor:
            account.sync_cursor = None
        self.db.commit()

    def complete_sync(
        self, account: ProviderAccount, completed_at: Optional[datetime] = None
    ) -> None:
        now = completed_at or utcnow()
        account.sync_status = SyncStatus.COMPLETED.value
        account.sync_step = SyncStep.DONE.value
        account.sync_cursor = None
        account.sync_completed_at = now
        account.last_synced_at = now
        account.last_sync_error = None
        self.db.commit()
        self.db.refresh(account)

    def fail_sync(self, account: ProviderAccount, error: str) -> None:
        account.sync_status = SyncStatus.FAILED.value
        account.last_sync_error = error[:2000]
        self.db.commit()
        self.db.refresh(account)
