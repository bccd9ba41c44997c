"""Fixtures for messages and attachments."""

import pytest

from app.models.message import Message, MessageAttachment
from app.models.mixins import utcnow


@pytest.fixture
def message_factory(db, faker):
    def _make(
        chat,
        direction="incoming",
        sender_id=None,
        content=None,
        sent_at=None,
        external_id=None,
    ):
        message = Message(
            account_id=chat.account_id,
            chat_id=chat.id,
            external_id=external_id or faker.uuid4(),
            direction=direction,
            message_type="text",
            sender_id=sender_id,
            content=content or faker.sentence(),
            sent_at=sent_at or utcnow(),
        )
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    return _make


@pytest.fixture
def attachment_factory(db, faker):
    def _make(message, **fields):
        attachment = MessageAttachment(
            message_id=message.id,
            external_id=fields.pop("external_id", faker.uuid4()),
            attachment_type=fields.pop("attachment_type", "img"),
            mime_type=fields.pop("mime_type", "image/png"),
            filename=fields.pop("filename", faker.file_name(extension="png")),
            **fields,
        )
        db.add(attachment)
        db.commit()
        db.refresh(attachment)
        return attachment

    return _make
