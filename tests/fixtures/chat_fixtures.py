"""Fixtures for chats, attendees and contacts."""

from datetime import timedelta

import pytest

from app.models.chat import Chat, ChatAttendee
from app.models.contact import Contact
from app.models.mixins import utcnow


@pytest.fixture
def chat_factory(db, faker):
    """
    Build a direct chat between the account owner and one contact.

    ``contact_external_id=None`` gives a chat with only the self attendee.
    """

    def _make(
        account,
        contact_external_id=None,
        last_message_at=None,
        read_only=False,
        name=None,
    ):
        chat = Chat(
            account_id=account.id,
            external_id=faker.uuid4(),
            provider="linkedin",
            chat_type="direct",
            name=name or faker.name(),
            last_message_at=last_message_at,
            read_only=read_only,
        )
        db.add(chat)
        db.flush()
        db.add(
            ChatAttendee(
                chat_id=chat.id,
                external_id=account.provider_user_id or "self",
                display_name=account.name,
                is_self=True,
            )
        )
        if contact_external_id:
            first_name, last_name = faker.first_name(), faker.last_name()
            contact = Contact(
                account_id=account.id,
                external_id=contact_external_id,
                full_name=f"{first_name} {last_name}",
                first_name=first_name,
                last_name=last_name,
                headline=faker.job(),
                profile_image_url=faker.image_url(),
                provider_url=f"https://www.linkedin.com/in/{faker.user_name()}",
            )
            db.add(contact)
            db.flush()
            db.add(
                ChatAttendee(
                    chat_id=chat.id,
                    contact_id=contact.id,
                    external_id=contact_external_id,
                    display_name=contact.full_name,
                    profile_url=contact.provider_url,
                )
            )
        db.commit()
        db.refresh(chat)
        return chat

    return _make


@pytest.fixture(scope="function")
def setup_chat(chat_factory, setup_account):
    """A chat with one contact, last active a minute ago."""
    return chat_factory(
        setup_account,
        contact_external_id="ACoAAContactOne",
        last_message_at=utcnow() - timedelta(minutes=1),
    )
