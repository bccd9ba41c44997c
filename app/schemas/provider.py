"""
Typed views of the messaging provider's REST responses.

Only the fields the sync pipeline reads are declared; anything else the
provider sends is kept in ``model_extra``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")

# Fields that may carry an attachment URL, most specific first
ATTACHMENT_URL_FIELDS = ("url", "content_url", "download_url", "media_url", "src", "href")


class ProviderModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ProviderAttachment(ProviderModel):
    id: Optional[str] = None
    attachment_id: Optional[str] = None
    type: Optional[str] = None
    attachment_type: Optional[str] = None
    url: Optional[str] = None
    content_url: Optional[str] = None
    download_url: Optional[str] = None
    media_url: Optional[str] = None
    src: Optional[str] = None
    href: Optional[str] = None
    filename: Optional[str] = None
    file_name: Optional[str] = None
    name: Optional[str] = None
    file_size: Optional[int] = None
    size: Optional[int] = None
    mime_type: Optional[str] = None
    mimetype: Optional[str] = None
    unavailable: bool = False
    url_expires_at: Optional[datetime] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[int] = None
    sticker: bool = False
    gif: bool = False
    voice_note: bool = False

    @field_validator("url_expires_at", mode="before")
    @classmethod
    def _epoch_millis(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        return value

    @property
    def external_id(self) -> Optional[str]:
        return self.id or self.attachment_id

    @property
    def kind(self) -> Optional[str]:
        return self.type or self.attachment_type

    @property
    def resolved_url(self) -> Optional[str]:
        for name in ATTACHMENT_URL_FIELDS:
            value = getattr(self, name)
            if value:
                return value
        return None

    @property
    def resolved_filename(self) -> Optional[str]:
        return self.filename or self.file_name or self.name

    @property
    def resolved_size(self) -> Optional[int]:
        return self.file_size if self.file_size is not None else self.size

    @property
    def resolved_mime_type(self) -> Optional[str]:
        return self.mime_type or self.mimetype


class ProviderMessage(ProviderModel):
    id: str
    chat_id: Optional[str] = None
    sender_id: Optional[str] = None
    sender_urn: Optional[str] = None
    text: Optional[str] = None
    subject: Optional[str] = None
    timestamp: Optional[datetime] = None
    is_sender: bool = False
    seen: bool = False
    delivered: bool = False
    edited: bool = False
    deleted: bool = False
    hidden: bool = False
    is_event: bool = False
    message_type: Optional[str] = None
    attachments: List[ProviderAttachment] = Field(default_factory=list)


class ProviderChat(ProviderModel):
    id: str
    account_id: Optional[str] = None
    name: Optional[str] = None
    type: int = 0  # 0 direct, 1 group, 2 channel
    timestamp: Optional[datetime] = None
    unread_count: int = 0
    read_only: bool = False
    archived: bool = False
    muted: bool = False
    subject: Optional[str] = None
    content_type: Optional[str] = None
    organization_id: Optional[str] = None
    attendee_provider_id: Optional[str] = None
    last_message: Optional[ProviderMessage] = Field(default=None, alias="lastMessage")

    @field_validator("read_only", "archived", "muted", mode="before")
    @classmethod
    def _nullable_flag(cls, value: Any) -> Any:
        return bool(value) if value is not None else False


class ProviderAttendee(ProviderModel):
    id: str
    provider_id: Optional[str] = None
    name: Optional[str] = None
    is_self: bool = False
    hidden: bool = False
    picture_url: Optional[str] = None
    profile_url: Optional[str] = None
    attendee_type: Optional[str] = None
    specifics: Dict[str, Any] = Field(default_factory=dict)

    @property
    def external_id(self) -> str:
        return self.provider_id or self.id


class WorkExperience(ProviderModel):
    position: Optional[str] = None
    company: Optional[str] = None
    current: bool = False


class ProviderProfile(ProviderModel):
    provider_id: Optional[str] = None
    public_identifier: Optional[str] = None
    member_urn: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    headline: Optional[str] = None
    location: Optional[str] = None
    profile_picture_url: Optional[str] = None
    profile_picture_url_large: Optional[str] = None
    public_profile_url: Optional[str] = None
    network_distance: Optional[str] = None
    is_relationship: Optional[bool] = None
    invitation: Optional[Dict[str, Any]] = None
    work_experience: List[WorkExperience] = Field(default_factory=list)
    contact_info: Optional[Dict[str, Any]] = None


class ProviderAccountInfo(ProviderModel):
    id: str
    name: Optional[str] = None
    type: Optional[str] = None
    connection_params: Dict[str, Any] = Field(default_factory=dict)
    sources: List[Dict[str, Any]] = Field(default_factory=list)


class ProviderPage(ProviderModel, Generic[T]):
    items: List[T] = Field(default_factory=list)
    cursor: Optional[str] = None


class SendMessageResult(ProviderModel):
    message_id: Optional[str] = None
    status: Optional[str] = None

    @property
    def failed(self) -> bool:
        return (self.status or "").lower() == "failed"


class PatchChatResult(ProviderModel):
    success: bool = True
    updated_fields: Optional[Dict[str, Any]] = None
