"""
Messaging provider interface.

The sync pipeline and the user-facing commands talk to the provider only
through this contract, so tests and future providers can stand in for it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from app.schemas.provider import (
    PatchChatResult,
    ProviderAccountInfo,
    ProviderAttendee,
    ProviderChat,
    ProviderMessage,
    ProviderPage,
    ProviderProfile,
    SendMessageResult,
)

AUTH_FAILURE_STATUS_CODES = (401, 403)


class ProviderError(Exception):
    """Any failure talking to the provider."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderTransientError(ProviderError):
    """Timeouts, connection errors, rate limits and 5xx. Safe to retry the step."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retry_after: Optional[int] = None,
    ) -> None:
        super().__init__(message, status_code)
        self.retry_after = retry_after


class ProviderPermanentError(ProviderError):
    """Auth revoked, resource gone or request rejected. Retrying will not help."""

    @property
    def is_auth_failure(self) -> bool:
        """The account lost access; nothing else can be fetched for it."""
        return self.status_code in AUTH_FAILURE_STATUS_CODES


@dataclass
class AttachmentDownload:
    """Raw attachment bytes fetched from the provider."""

    content: bytes
    mime_type: Optional[str] = None


class BaseMessagingProvider(ABC):
    """Contract for messaging providers. All calls may fail transiently."""

    @abstractmethod
    def list_chats(
        self, account_id: str, limit: int, cursor: Optional[str] = None
    ) -> ProviderPage[ProviderChat]:
        ...

    @abstractmethod
    def list_messages(
        self,
        chat_id: str,
        account_id: str,
        limit: int,
        cursor: Optional[str] = None,
    ) -> ProviderPage[ProviderMessage]:
        ...

    @abstractmethod
    def list_attendees(
        self, chat_id: str, account_id: str, limit: int
    ) -> ProviderPage[ProviderAttendee]:
        ...

    @abstractmethod
    def get_profile(self, identifier: str, account_id: str) -> ProviderProfile:
        ...

    @abstractmethod
    def get_account(self, account_id: str) -> ProviderAccountInfo:
        ...

    @abstractmethod
    def send_message(
        self, chat_id: str, account_id: str, text: str
    ) -> SendMessageResult:
        ...

    @abstractmethod
    def patch_chat(
        self, chat_id: str, account_id: str, action: str, value: Any = None
    ) -> PatchChatResult:
        ...

    @abstractmethod
    def download_attachment(
        self, message_id: str, attachment_id: str, account_id: str
    ) -> AttachmentDownload:
        ...

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """
        Verify webhook request (shared secret header). Override if the provider signs.
        Return True if valid or verification not required; False to reject.
        """
        return True
