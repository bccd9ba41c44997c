"""
Provider webhook events as tagged variants.

Raw webhook bodies are validated here, at the boundary, and the sync
pipeline only ever sees one of the concrete event classes below.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from app.schemas.provider import ProviderAttachment


class EventModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class EventParticipant(EventModel):
    attendee_id: Optional[str] = None
    attendee_name: Optional[str] = None
    attendee_profile_url: Optional[str] = None
    attendee_provider_id: Optional[str] = None
    attendee_type: Optional[str] = None


class EventAccountInfo(EventModel):
    user_id: Optional[str] = None
    type: Optional[str] = None
    feature: Optional[str] = None


class MessageReceivedEvent(EventModel):
    event: Literal["message_received"]
    account_id: str
    account_type: Optional[str] = None
    account_info: EventAccountInfo = Field(default_factory=EventAccountInfo)
    chat_id: str
    message_id: str
    provider_message_id: Optional[str] = None
    message: Optional[str] = None
    message_type: Optional[str] = None
    subject: Optional[str] = None
    timestamp: Optional[datetime] = None
    sender: Optional[EventParticipant] = None
    sender_urn: Optional[str] = None
    attendees: List[EventParticipant] = Field(default_factory=list)
    attachments: List[ProviderAttachment] = Field(default_factory=list)
    is_event: bool = False
    is_group: bool = False
    chat_content_type: Optional[str] = None
    quoted: Optional[dict[str, Any]] = None

    @property
    def is_outgoing(self) -> bool:
        return self.is_sent_by(self.account_info.user_id)

    def is_sent_by(self, own_id: Optional[str]) -> bool:
        return bool(
            own_id and self.sender and self.sender.attendee_provider_id == own_id
        )


class MessageReadEvent(EventModel):
    event: Literal["message_read"]
    account_id: str
    message_id: str
    read_by: Optional[str] = None
    read_at: Optional[datetime] = None


class MessageReactionEvent(EventModel):
    event: Literal["message_reaction"]
    account_id: str
    message_id: str
    reaction: Optional[str] = None
    reactor_id: Optional[str] = None


class MessageEditedEvent(EventModel):
    event: Literal["message_edited"]
    account_id: str
    message_id: str
    new_content: str
    edited_at: Optional[datetime] = None


class MessageDeletedEvent(EventModel):
    event: Literal["message_deleted"]
    account_id: str
    message_id: str
    deleted_at: Optional[datetime] = None


class AccountStatusEvent(EventModel):
    event: Literal["account_status"]
    account_id: str
    account_type: Optional[str] = None
    message: str  # provider status, e.g. OK, CREDENTIALS, ERROR
    user_identifier: Optional[str] = None


class AccountConnectedEvent(EventModel):
    event: Literal["account_connected"]
    account_id: str
    provider: Optional[str] = None
    status: Optional[str] = None
    user_identifier: str


class AccountDisconnectedEvent(EventModel):
    event: Literal["account_disconnected"]
    account_id: str
    provider: Optional[str] = None
    user_identifier: Optional[str] = None


class ProfileViewer(EventModel):
    id: str
    name: Optional[str] = None
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    headline: Optional[str] = None
    profile_picture_url: Optional[str] = None
    avatar_url: Optional[str] = None
    profile_url: Optional[str] = None

    @property
    def full_name(self) -> Optional[str]:
        if self.name or self.display_name:
            return self.name or self.display_name
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or None


class ProfileViewEvent(EventModel):
    event: Literal["profile_view"]
    account_id: str
    id: Optional[str] = None
    viewer: Optional[ProfileViewer] = None
    viewed_at: Optional[datetime] = None


ProviderEvent = Annotated[
    Union[
        MessageReceivedEvent,
        MessageReadEvent,
        MessageReactionEvent,
        MessageEditedEvent,
        MessageDeletedEvent,
        AccountStatusEvent,
        AccountConnectedEvent,
        AccountDisconnectedEvent,
        ProfileViewEvent,
    ],
    Field(discriminator="event"),
]

_event_adapter: TypeAdapter[ProviderEvent] = TypeAdapter(ProviderEvent)

# Webhook names the provider uses that differ from our tags
EVENT_ALIASES = {
    "message.received": "message_received",
    "account.status": "account_status",
    "account.connected": "account_connected",
    "account.disconnected": "account_disconnected",
    "profile.view": "profile_view",
}


def _normalize(raw: dict[str, Any]) -> dict[str, Any]:
    # Account status webhooks arrive wrapped: {"AccountStatus": {...}}
    if "AccountStatus" in raw and isinstance(raw["AccountStatus"], dict):
        return {"event": "account_status", **raw["AccountStatus"]}
    event = raw.get("event")
    if isinstance(event, str) and event in EVENT_ALIASES:
        return {**raw, "event": EVENT_ALIASES[event]}
    return raw


def parse_provider_event(raw: Any) -> ProviderEvent:
    """Validate a raw webhook body. Raises ValueError for unknown or malformed events."""
    if not isinstance(raw, dict):
        raise ValueError("Provider event must be a JSON object")
    try:
        return _event_adapter.validate_python(_normalize(raw))
    except ValidationError as e:
        raise ValueError(f"Invalid provider event: {e}") from e
