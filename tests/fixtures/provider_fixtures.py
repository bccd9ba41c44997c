"""Builders for provider payloads and a scripted provider."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from app.schemas.provider import (
    ProviderAccountInfo,
    ProviderAttendee,
    ProviderChat,
    ProviderMessage,
    ProviderPage,
)

from tests.fixtures.account_fixtures import OWN_PROVIDER_ID

ORG_URN = "urn:li:organization:1035"


def provider_chat(chat_id: str, **fields: Any) -> ProviderChat:
    fields.setdefault("timestamp", datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc))
    return ProviderChat(id=chat_id, **fields)


def provider_attendee(
    attendee_id: str, name: str = "Ada Lovelace", **fields: Any
) -> ProviderAttendee:
    return ProviderAttendee(id=attendee_id, provider_id=attendee_id, name=name, **fields)


def provider_message(message_id: str, **fields: Any) -> ProviderMessage:
    fields.setdefault("timestamp", datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc))
    fields.setdefault("text", f"message {message_id}")
    return ProviderMessage(id=message_id, **fields)


def page(items: List[Any], cursor: Optional[str] = None) -> ProviderPage:
    return ProviderPage(items=items, cursor=cursor)


def message_received_payload(
    account_external_id: str,
    chat_id: str,
    message_id: str,
    sender_id: str,
    text: Optional[str] = "Hello there",
    own_id: str = OWN_PROVIDER_ID,
    **extra: Any,
) -> Dict[str, Any]:
    payload = {
        "event": "message_received",
        "account_id": account_external_id,
        "account_type": "LINKEDIN",
        "account_info": {"user_id": own_id, "type": "LINKEDIN"},
        "chat_id": chat_id,
        "message_id": message_id,
        "message": text,
        "timestamp": "2026-05-01T12:00:00Z",
        "sender": {
            "attendee_provider_id": sender_id,
            "attendee_name": "Grace Hopper",
            "attendee_profile_url": f"https://www.linkedin.com/in/{sender_id}",
        },
        "attendees": [
            {"attendee_provider_id": own_id, "attendee_name": "Me"},
            {"attendee_provider_id": sender_id, "attendee_name": "Grace Hopper"},
        ],
        "attachments": [],
    }
    payload.update(extra)
    return payload


@pytest.fixture
def scripted_provider(mock_provider):
    """
    Provider that serves one chat page with one attendee and two messages.
    Override the return values on the mock for other shapes.
    """
    mock_provider.get_account.return_value = ProviderAccountInfo(
        id="acc", connection_params={"im": {"id": OWN_PROVIDER_ID}}
    )
    mock_provider.list_chats.return_value = page([provider_chat("chat-1", name="Ada")])
    mock_provider.list_attendees.return_value = page(
        [
            provider_attendee(OWN_PROVIDER_ID, name="Me", is_self=True),
            provider_attendee(
                "ACoAAAda",
                specifics={"network_distance": "FIRST_DEGREE", "headline": "Engineer"},
            ),
        ]
    )
    mock_provider.list_messages.return_value = page(
        [
            provider_message("m-1", sender_id="ACoAAAda", text="Hi"),
            provider_message("m-2", sender_id=OWN_PROVIDER_ID, is_sender=True, text="Hello"),
        ]
    )
    return mock_provider
