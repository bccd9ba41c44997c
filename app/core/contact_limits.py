"""
Contact-limit obfuscation.

Pure transforms over chat read models. Chats are ranked by recency; the
first ``limit`` distinct primary contacts stay visible and every chat whose
primary contact falls beyond that is replaced by a placeholder view. No
data is deleted and no I/O happens here.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Set

from app.constants.contact_limits import (
    OBFUSCATED_FIRST_NAME,
    OBFUSCATED_HEADLINE,
    OBFUSCATED_LAST_NAME,
    OBFUSCATED_MESSAGE,
    OBFUSCATED_NAME,
)
from app.schemas.inbox import (
    AttendeeRead,
    ChatRead,
    ContactLimitStatus,
    ContactRead,
    MessageRead,
)

# Where a chat attendee's contact identifier comes from, first hit wins
CONTACT_IDENTIFIER_SOURCES: Sequence[Callable[[AttendeeRead], Optional[str]]] = (
    lambda attendee: attendee.contact.external_id if attendee.contact else None,
    lambda attendee: attendee.external_id,
)


def attendee_contact_id(attendee: AttendeeRead) -> Optional[str]:
    for source in CONTACT_IDENTIFIER_SOURCES:
        value = source(attendee)
        if value:
            return value
    return None


def primary_contact_id(chat: ChatRead) -> Optional[str]:
    """Identifier of the first non-self attendee, if any."""
    for attendee in chat.attendees:
        if attendee.is_self:
            continue
        contact_id = attendee_contact_id(attendee)
        if contact_id:
            return contact_id
    return None


def _recency(value: Optional[datetime]) -> float:
    if value is None:
        return float("-inf")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def sort_by_recency(chats: Iterable[ChatRead]) -> List[ChatRead]:
    """Newest first; ties keep their input order."""
    return sorted(chats, key=lambda chat: _recency(chat.last_message_at), reverse=True)


def visible_contact_ids(contact_ids: Iterable[Optional[str]], limit: int) -> Set[str]:
    """The first ``limit`` distinct identifiers of an already ranked sequence."""
    seen: Set[str] = set()
    visible: Set[str] = set()
    for contact_id in contact_ids:
        if not contact_id or contact_id in seen:
            continue
        seen.add(contact_id)
        if len(seen) <= limit:
            visible.add(contact_id)
    return visible


def is_chat_hidden(chat: ChatRead, visible: Set[str]) -> bool:
    contact_id = primary_contact_id(chat)
    return contact_id is not None and contact_id not in visible


def obfuscate_contact(contact: ContactRead) -> ContactRead:
    return contact.model_copy(
        update={
            "full_name": OBFUSCATED_NAME,
            "first_name": OBFUSCATED_FIRST_NAME,
            "last_name": OBFUSCATED_LAST_NAME,
            "headline": OBFUSCATED_HEADLINE,
            "profile_image_url": None,
            "provider_url": None,
            "occupation": None,
            "location": None,
        }
    )


def obfuscate_attendee(attendee: AttendeeRead) -> AttendeeRead:
    if attendee.is_self:
        return attendee
    return attendee.model_copy(
        update={
            "display_name": OBFUSCATED_NAME,
            "profile_url": None,
            "contact": obfuscate_contact(attendee.contact) if attendee.contact else None,
        }
    )


def obfuscate_message(message: MessageRead) -> MessageRead:
    return message.model_copy(
        update={
            "content": OBFUSCATED_MESSAGE,
            "subject": None,
            "sender_id": None,
            "sender_urn": None,
            "attachments": [],
        }
    )


def obfuscate_chat(chat: ChatRead) -> ChatRead:
    return chat.model_copy(
        update={
            "name": OBFUSCATED_NAME,
            "attendees": [obfuscate_attendee(a) for a in chat.attendees],
            "messages": [obfuscate_message(m) for m in chat.messages],
            "is_obfuscated": True,
        }
    )


def hidden_chat_ids(chats: Sequence[ChatRead], limit: int) -> Set:
    ranked = sort_by_recency(chats)
    visible = visible_contact_ids((primary_contact_id(c) for c in ranked), limit)
    return {c.id for c in ranked if is_chat_hidden(c, visible)}


def apply_contact_limits(
    chats: Sequence[ChatRead], status: ContactLimitStatus
) -> List[ChatRead]:
    """Return ``chats`` in their input order with over-limit chats obfuscated."""
    if not status.is_exceeded:
        return list(chats)
    hidden = hidden_chat_ids(chats, status.limit)
    return [obfuscate_chat(c) if c.id in hidden else c for c in chats]
