"""Tests for contact-limit obfuscation."""

import uuid
from datetime import datetime, timedelta, timezone

from app.constants.contact_limits import OBFUSCATED_MESSAGE, OBFUSCATED_NAME
from app.core.contact_limits import (
    apply_contact_limits,
    hidden_chat_ids,
    primary_contact_id,
    visible_contact_ids,
)
from app.schemas.inbox import (
    AttendeeRead,
    ChatRead,
    ContactLimitStatus,
    ContactRead,
    MessageRead,
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def _chat(contact_id, last_message_at, name="Chat"):
    chat_id = uuid.uuid4()
    contact = ContactRead(
        id=uuid.uuid4(),
        external_id=contact_id,
        full_name=f"Person {contact_id}",
        profile_image_url="https://img.example/p.png",
        provider_url=f"https://www.linkedin.com/in/{contact_id}",
    )
    return ChatRead(
        id=chat_id,
        account_id=uuid.uuid4(),
        external_id=f"chat-{contact_id}",
        provider="linkedin",
        chat_type="direct",
        name=name,
        last_message_at=last_message_at,
        attendees=[
            AttendeeRead(id=uuid.uuid4(), external_id="me", is_self=True, display_name="Me"),
            AttendeeRead(
                id=uuid.uuid4(),
                external_id=contact_id,
                display_name=contact.full_name,
                profile_url=contact.provider_url,
                contact=contact,
            ),
        ],
        messages=[
            MessageRead(
                id=uuid.uuid4(),
                chat_id=chat_id,
                external_id=f"msg-{contact_id}",
                direction="incoming",
                message_type="text",
                content="private words",
                sender_id=contact_id,
                sender_urn=f"urn:li:member:{contact_id}",
            )
        ],
    )


def test_not_exceeded_returns_list_unchanged():
    chats = [_chat("a", NOW), _chat("b", NOW - timedelta(hours=1))]
    status = ContactLimitStatus.compute(limit=1, count=1)
    assert apply_contact_limits(chats, status) == chats


def test_limit_one_hides_older_chat():
    """With a limit of 1 the newer chat stays visible and the older one is obfuscated."""
    newer = _chat("a", NOW)
    older = _chat("b", NOW - timedelta(hours=1))
    status = ContactLimitStatus.compute(limit=1, count=2)

    result = apply_contact_limits([newer, older], status)

    assert result[0] == newer
    hidden = result[1]
    assert hidden.is_obfuscated is True
    assert hidden.name == OBFUSCATED_NAME
    other = [a for a in hidden.attendees if not a.is_self][0]
    assert other.display_name == OBFUSCATED_NAME
    assert other.profile_url is None
    assert other.contact.full_name == OBFUSCATED_NAME
    assert other.contact.profile_image_url is None
    assert other.contact.provider_url is None
    assert hidden.messages[0].content == OBFUSCATED_MESSAGE
    assert hidden.messages[0].sender_id is None
    assert hidden.messages[0].sender_urn is None


def test_swapping_recency_flips_visibility():
    a = _chat("a", NOW - timedelta(hours=1))
    b = _chat("b", NOW)
    status = ContactLimitStatus.compute(limit=1, count=2)

    result = apply_contact_limits([a, b], status)

    assert result[0].is_obfuscated is True
    assert result[1].is_obfuscated is False


def test_chat_sharing_visible_contact_stays_visible():
    """A later chat with an already counted contact is not obfuscated."""
    first = _chat("a", NOW)
    second = _chat("b", NOW - timedelta(hours=1))
    third = _chat("a", NOW - timedelta(hours=2))

    hidden = hidden_chat_ids([first, second, third], limit=1)

    assert hidden == {second.id}


def test_ties_keep_input_order():
    a = _chat("a", NOW)
    b = _chat("b", NOW)
    assert hidden_chat_ids([a, b], limit=1) == {b.id}
    assert hidden_chat_ids([b, a], limit=1) == {a.id}


def test_self_attendee_is_never_obfuscated():
    status = ContactLimitStatus.compute(limit=1, count=5)
    result = apply_contact_limits([_chat("a", NOW), _chat("b", NOW - timedelta(days=1))], status)
    me = [a for a in result[1].attendees if a.is_self][0]
    assert me.display_name == "Me"


def test_chat_without_contact_stays_visible():
    lonely = _chat("a", NOW).model_copy(update={"attendees": []})
    assert primary_contact_id(lonely) is None
    assert hidden_chat_ids([_chat("b", NOW + timedelta(minutes=1)), lonely], limit=1) == set()


def test_visible_contact_ids_counts_distinct_ids():
    assert visible_contact_ids(["a", "a", None, "b", "c"], limit=2) == {"a", "b"}
