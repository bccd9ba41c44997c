"""
Classify chats and messages as organization-originated or personal.

Pure functions over whatever shape the payload comes in (validated provider
models or plain dicts). Missing fields always classify as personal.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from app.constants.provider import ORGANIZATION_CONTENT_TYPES, ORGANIZATION_URN_PREFIX


def _get(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def is_organization_urn(value: Optional[str]) -> bool:
    """True for ``urn:li:organization:...`` in any letter case."""
    if not value or not isinstance(value, str):
        return False
    return value.lower().startswith(ORGANIZATION_URN_PREFIX)


def is_company_attendee(attendee: Any) -> bool:
    if attendee is None:
        return False
    attendee_type = _get(attendee, "attendee_type")
    if isinstance(attendee_type, str) and attendee_type.lower() == "organization":
        return True
    return is_organization_urn(_get(attendee, "attendee_provider_id")) or (
        is_organization_urn(_get(attendee, "provider_id"))
    )


def is_company_message(payload: Any) -> bool:
    """
    A message is organization-originated when its sender is an organization,
    or when strictly more than half of its listed attendees are.
    """
    if payload is None:
        return False

    if is_company_attendee(_get(payload, "sender")):
        return True
    if is_organization_urn(_get(payload, "sender_urn")) or is_organization_urn(
        _get(payload, "sender_id")
    ):
        return True

    attendees: Sequence[Any] = _get(payload, "attendees") or []
    if not attendees:
        return False
    organizations = sum(1 for a in attendees if is_company_attendee(a))
    return organizations * 2 > len(attendees)


def is_company_chat(chat: Any) -> bool:
    """
    Chat-level check for listings that carry no attendees: organization id,
    organization-only content types, or an organization sender on the last message.
    """
    if chat is None:
        return False
    if _get(chat, "organization_id"):
        return True
    content_type = _get(chat, "content_type")
    if isinstance(content_type, str) and content_type.lower() in ORGANIZATION_CONTENT_TYPES:
        return True
    last_message = _get(chat, "last_message")
    if last_message is None and isinstance(chat, dict):
        last_message = chat.get("lastMessage")
    return is_company_message(last_message)
