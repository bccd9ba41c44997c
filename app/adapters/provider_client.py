"""HTTP client for the messaging provider's REST API."""

from __future__ import annotations

from typing import Any, Optional

import requests
from pydantic import ValidationError

from app.adapters.base import (
    AttachmentDownload,
    BaseMessagingProvider,
    ProviderError,
    ProviderPermanentError,
    ProviderTransientError,
)
from app.config import Settings, get_settings
from app.infra.logging_config import get_logger
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
from app.utils.metrics import PROVIDER_REQUESTS_TOTAL
from app.utils.rate_limit import check_provider_rate_limit, get_redis_client

logger = get_logger("provider_client")

TIMEOUT_SECONDS = 30
DEFAULT_RETRY_AFTER_SECONDS = 60


def _retry_after(resp: requests.Response) -> Optional[int]:
    value = resp.headers.get("Retry-After")
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class ProviderClient(BaseMessagingProvider):
    """Provider REST client. Stateless apart from the pooled HTTP session."""

    API_KEY_HEADER = "X-API-KEY"
    WEBHOOK_SECRET_HEADER = "Unipile-Auth"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: int = TIMEOUT_SECONDS,
        webhook_secret: Optional[str] = None,
        redis_client: Optional[Any] = None,
        rate_limit_per_minute: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._webhook_secret = webhook_secret
        self._redis = redis_client
        self._rate_limit = rate_limit_per_minute
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ProviderClient":
        settings = settings or get_settings()
        if not settings.provider_api_key:
            raise ProviderPermanentError("Provider API key is not configured")
        redis_client = None
        if settings.provider_rate_limit_per_account_per_minute:
            redis_client = get_redis_client(settings.redis_host, settings.redis_port)
        return cls(
            base_url=settings.provider_base_url,
            api_key=settings.provider_api_key,
            timeout=settings.provider_timeout_seconds,
            webhook_secret=settings.provider_webhook_secret,
            redis_client=redis_client,
            rate_limit_per_minute=settings.provider_rate_limit_per_account_per_minute,
        )

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        account_id: Optional[str] = None,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> requests.Response:
        if account_id and not check_provider_rate_limit(
            account_id, self._redis, self._rate_limit
        ):
            PROVIDER_REQUESTS_TOTAL.labels(operation=operation, status="throttled").inc()
            raise ProviderTransientError(
                f"{operation}: local rate limit reached for account {account_id}",
                status_code=429,
                retry_after=DEFAULT_RETRY_AFTER_SECONDS,
            )

        url = f"{self._base_url}{path}"
        query = {k: v for k, v in (params or {}).items() if v is not None}
        headers = {"Accept": "application/json", self.API_KEY_HEADER: self._api_key}
        try:
            resp = self._session.request(
                method,
                url,
                params=query,
                json=json,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            PROVIDER_REQUESTS_TOTAL.labels(operation=operation, status="error").inc()
            raise ProviderTransientError(f"{operation}: {e}") from e

        if resp.status_code == 429:
            PROVIDER_REQUESTS_TOTAL.labels(operation=operation, status="throttled").inc()
            raise ProviderTransientError(
                f"{operation}: rate limited by provider",
                status_code=429,
                retry_after=_retry_after(resp) or DEFAULT_RETRY_AFTER_SECONDS,
            )
        if resp.status_code >= 500:
            PROVIDER_REQUESTS_TOTAL.labels(operation=operation, status="error").inc()
            raise ProviderTransientError(
                f"{operation}: HTTP {resp.status_code}", status_code=resp.status_code
            )
        if resp.status_code >= 400:
            PROVIDER_REQUESTS_TOTAL.labels(operation=operation, status="rejected").inc()
            body = resp.text[:500] if resp.text else "no body"
            raise ProviderPermanentError(
                f"{operation}: HTTP {resp.status_code}: {body}",
                status_code=resp.status_code,
            )

        PROVIDER_REQUESTS_TOTAL.labels(operation=operation, status="success").inc()
        return resp

    def _json(self, operation: str, resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise ProviderTransientError(f"{operation}: invalid JSON: {e}") from e

    def _parse(self, operation: str, model: Any, data: Any) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ProviderPermanentError(f"{operation}: unexpected payload: {e}") from e

    def list_chats(
        self, account_id: str, limit: int, cursor: Optional[str] = None
    ) -> ProviderPage[ProviderChat]:
        resp = self._request(
            "list_chats",
            "GET",
            "/chats",
            account_id=account_id,
            params={"account_id": account_id, "limit": limit, "cursor": cursor},
        )
        return self._parse(
            "list_chats", ProviderPage[ProviderChat], self._json("list_chats", resp)
        )

    def list_messages(
        self,
        chat_id: str,
        account_id: str,
        limit: int,
        cursor: Optional[str] = None,
    ) -> ProviderPage[ProviderMessage]:
        resp = self._request(
            "list_messages",
            "GET",
            f"/chats/{chat_id}/messages",
            account_id=account_id,
            params={"account_id": account_id, "limit": limit, "cursor": cursor},
        )
        return self._parse(
            "list_messages",
            ProviderPage[ProviderMessage],
            self._json("list_messages", resp),
        )

    def list_attendees(
        self, chat_id: str, account_id: str, limit: int
    ) -> ProviderPage[ProviderAttendee]:
        resp = self._request(
            "list_attendees",
            "GET",
            f"/chats/{chat_id}/attendees",
            account_id=account_id,
            params={"account_id": account_id, "limit": limit},
        )
        return self._parse(
            "list_attendees",
            ProviderPage[ProviderAttendee],
            self._json("list_attendees", resp),
        )

    def get_profile(self, identifier: str, account_id: str) -> ProviderProfile:
        resp = self._request(
            "get_profile",
            "GET",
            f"/users/{identifier}",
            account_id=account_id,
            params={"account_id": account_id},
        )
        return self._parse("get_profile", ProviderProfile, self._json("get_profile", resp))

    def get_account(self, account_id: str) -> ProviderAccountInfo:
        resp = self._request("get_account", "GET", f"/accounts/{account_id}")
        return self._parse(
            "get_account", ProviderAccountInfo, self._json("get_account", resp)
        )

    def send_message(
        self, chat_id: str, account_id: str, text: str
    ) -> SendMessageResult:
        resp = self._request(
            "send_message",
            "POST",
            f"/chats/{chat_id}/messages",
            account_id=account_id,
            params={"account_id": account_id},
            json={"text": text},
        )
        return self._parse(
            "send_message", SendMessageResult, self._json("send_message", resp) or {}
        )

    def patch_chat(
        self, chat_id: str, account_id: str, action: str, value: Any = None
    ) -> PatchChatResult:
        payload: dict[str, Any] = {"action": action}
        if value is not None:
            payload["value"] = value
        resp = self._request(
            "patch_chat",
            "PATCH",
            f"/chats/{chat_id}",
            account_id=account_id,
            params={"account_id": account_id},
            json=payload,
        )
        return self._parse(
            "patch_chat", PatchChatResult, self._json("patch_chat", resp) or {}
        )

    def download_attachment(
        self, message_id: str, attachment_id: str, account_id: str
    ) -> AttachmentDownload:
        resp = self._request(
            "download_attachment",
            "GET",
            f"/messages/{message_id}/attachments/{attachment_id}",
            account_id=account_id,
            params={"account_id": account_id},
        )
        if not resp.content:
            raise ProviderPermanentError("download_attachment: empty body")
        mime_type = resp.headers.get("Content-Type")
        if mime_type:
            mime_type = mime_type.split(";")[0].strip()
        return AttachmentDownload(content=resp.content, mime_type=mime_type)

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """Validate the shared-secret header if a webhook secret is configured."""
        expected = secret or self._webhook_secret
        if not expected:
            return True
        request_headers = request_headers or {}
        header_lower = self.WEBHOOK_SECRET_HEADER.lower()
        actual = None
        for key, value in request_headers.items():
            if key.lower() == header_lower:
                actual = value
                break
        return actual == expected


__all__ = [
    "ProviderClient",
    "ProviderError",
    "ProviderPermanentError",
    "ProviderTransientError",
]
