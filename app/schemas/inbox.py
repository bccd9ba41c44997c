"""Read and write models for the inbox API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContactRead(BaseModel):
    id: UUID
    external_id: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    headline: Optional[str] = None
    profile_image_url: Optional[str] = None
    provider_url: Optional[str] = None
    occupation: Optional[str] = None
    location: Optional[str] = None
    network_distance: Optional[str] = None
    is_connection: bool = False

    model_config = ConfigDict(from_attributes=True)


class AttendeeRead(BaseModel):
    id: UUID
    external_id: str
    display_name: Optional[str] = None
    profile_url: Optional[str] = None
    is_self: bool = False
    hidden: bool = False
    contact: Optional[ContactRead] = None

    model_config = ConfigDict(from_attributes=True)


class AttachmentRead(BaseModel):
    id: UUID
    external_id: str
    attachment_type: Optional[str] = None
    mime_type: Optional[str] = None
    filename: Optional[str] = None
    file_size: Optional[int] = None
    content: Optional[str] = None
    url: Optional[str] = None
    url_expires_at: Optional[datetime] = None
    storage_url: Optional[str] = None
    unavailable: bool = False
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[int] = None
    sticker: bool = False
    gif: bool = False
    voice_note: bool = False

    model_config = ConfigDict(from_attributes=True)


class MessageRead(BaseModel):
    id: UUID
    chat_id: UUID
    external_id: str
    direction: str
    message_type: str
    content: Optional[str] = None
    subject: Optional[str] = None
    sent_at: Optional[datetime] = None
    sender_id: Optional[str] = None
    sender_urn: Optional[str] = None
    is_read: bool = False
    seen: bool = False
    delivered: bool = False
    edited: bool = False
    attachments: List[AttachmentRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class ChatRead(BaseModel):
    id: UUID
    account_id: UUID
    external_id: str
    provider: str
    chat_type: str
    name: Optional[str] = None
    last_message_at: Optional[datetime] = None
    unread_count: int = 0
    read_only: bool = False
    attendees: List[AttendeeRead] = Field(default_factory=list)
    messages: List[MessageRead] = Field(default_factory=list)
    is_obfuscated: bool = False

    model_config = ConfigDict(from_attributes=True)


class ChatPage(BaseModel):
    items: List[ChatRead]
    next_cursor: Optional[str] = None
    has_more: bool = False


class MessagePage(BaseModel):
    items: List[MessageRead]
    next_cursor: Optional[str] = None
    has_more: bool = False


class ContactLimitStatus(BaseModel):
    """Live per-request view of a subscriber's contact usage."""

    limit: int
    count: int
    is_exceeded: bool
    remaining_contacts: int

    @classmethod
    def compute(cls, limit: int, count: int) -> "ContactLimitStatus":
        return cls(
            limit=limit,
            count=count,
            is_exceeded=count > limit,
            remaining_contacts=max(0, limit - count),
        )


class SendMessageRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=8000)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must not be blank")
        return v


class SyncTriggerResponse(BaseModel):
    account_id: UUID
    status: str = "queued"


def chat_read(chat: Any, messages: Sequence[Any] = ()) -> ChatRead:
    """Build a ChatRead from an ORM chat without touching its full message history."""
    return ChatRead(
        id=chat.id,
        account_id=chat.account_id,
        external_id=chat.external_id,
        provider=chat.provider,
        chat_type=chat.chat_type,
        name=chat.name,
        last_message_at=chat.last_message_at,
        unread_count=chat.unread_count or 0,
        read_only=bool(chat.read_only),
        attendees=[AttendeeRead.model_validate(a) for a in chat.attendees],
        messages=[MessageRead.model_validate(m) for m in messages],
    )
