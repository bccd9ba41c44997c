"""
Domain errors for inbox operations.

Each user-facing rejection has a stable ``ErrorKind`` so callers can branch
on the reason without parsing messages.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN_NOT_OWNER = "forbidden_not_owner"
    FORBIDDEN_CONTACT_LIMIT = "forbidden_contact_limit"
    FORBIDDEN_READ_ONLY = "forbidden_read_only"
    BAD_GATEWAY = "bad_gateway"
    INVALID_CONFIG = "invalid_config"


class InboxError(Exception):
    """Base error carrying a stable kind and an HTTP status."""

    kind: ErrorKind = ErrorKind.BAD_GATEWAY
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"detail": self.message, "kind": self.kind.value}


class ChatNotFoundError(InboxError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class AccountNotFoundError(InboxError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class ChatNotOwnedError(InboxError):
    kind = ErrorKind.FORBIDDEN_NOT_OWNER
    status_code = 403


class ContactLimitExceededError(InboxError):
    kind = ErrorKind.FORBIDDEN_CONTACT_LIMIT
    status_code = 403


class ReadOnlyChatError(InboxError):
    kind = ErrorKind.FORBIDDEN_READ_ONLY
    status_code = 403


class ProviderRequestFailedError(InboxError):
    """The provider rejected or failed a user-initiated action."""

    kind = ErrorKind.BAD_GATEWAY
    status_code = 502


class InvalidSyncConfigError(InboxError, ValueError):
    kind = ErrorKind.INVALID_CONFIG
    status_code = 500
