"""Tests for listing chats and reading chat messages."""

from datetime import timedelta

from app.commands.get_chat_messages_command import GetChatMessagesCommand
from app.commands.list_chats_command import ListChatsCommand
from app.constants.contact_limits import OBFUSCATED_MESSAGE, OBFUSCATED_NAME, SubscriptionPlan
from app.models.mixins import utcnow
from app.services.contact_limit_service import ContactLimitService


def test_list_chats_newest_first_with_preview(
    db, setup_user, setup_account, chat_factory, message_factory
):
    now = utcnow()
    older = chat_factory(
        setup_account, contact_external_id="A", last_message_at=now - timedelta(hours=2)
    )
    newer = chat_factory(setup_account, contact_external_id="B", last_message_at=now)
    message_factory(newer, sender_id="B", content="first", sent_at=now - timedelta(minutes=5))
    message_factory(newer, sender_id="B", content="latest", sent_at=now)

    page = ListChatsCommand(db).execute(setup_user.id)

    assert [c.id for c in page.items] == [newer.id, older.id]
    assert [m.content for m in page.items[0].messages] == ["latest"]
    assert page.items[1].messages == []
    assert not any(c.is_obfuscated for c in page.items)


def test_list_chats_excludes_other_users(db, setup_user, setup_other_account, chat_factory):
    chat_factory(setup_other_account, contact_external_id="X")
    assert ListChatsCommand(db).execute(setup_user.id).items == []


def test_list_chats_pages_keep_obfuscation_stable(
    db, setup_user, setup_account, chat_factory, message_factory
):
    """The second page is ranked against the whole inbox, not just itself."""
    now = utcnow()
    newer = chat_factory(setup_account, contact_external_id="NEW", last_message_at=now)
    older = chat_factory(
        setup_account, contact_external_id="OLD", last_message_at=now - timedelta(days=1)
    )
    message_factory(newer, sender_id="NEW")
    message_factory(older, sender_id="OLD")
    limits = ContactLimitService(db, plan_limits={SubscriptionPlan.FREE: 1})
    command = ListChatsCommand(db, contact_limits=limits)

    first = command.execute(setup_user.id, limit=1)
    second = command.execute(setup_user.id, cursor=first.next_cursor, limit=1)

    assert first.has_more is True
    assert first.items[0].is_obfuscated is False
    assert second.items[0].id == older.id
    assert second.items[0].is_obfuscated is True
    assert second.items[0].name == OBFUSCATED_NAME


def test_chat_messages_obfuscated_beyond_limit(
    db, mock_provider, setup_user, setup_account, chat_factory, message_factory,
    attachment_factory,
):
    now = utcnow()
    newer = chat_factory(setup_account, contact_external_id="NEW", last_message_at=now)
    older = chat_factory(
        setup_account, contact_external_id="OLD", last_message_at=now - timedelta(days=1)
    )
    message_factory(newer, sender_id="NEW")
    hidden = message_factory(older, sender_id="OLD", content="secret")
    attachment_factory(hidden, url="https://provider.example/a.png")
    limits = ContactLimitService(db, plan_limits={SubscriptionPlan.FREE: 1})

    page = GetChatMessagesCommand(db, mock_provider, contact_limits=limits).execute(
        setup_user.id, older.id
    )

    assert len(page.items) == 1
    assert page.items[0].content == OBFUSCATED_MESSAGE
    assert page.items[0].sender_id is None
    assert page.items[0].attachments == []
    mock_provider.download_attachment.assert_not_called()


def test_chat_messages_resolve_attachments(
    db, mock_provider, setup_user, setup_chat, message_factory, attachment_factory
):
    message = message_factory(setup_chat, sender_id="ACoAAContactOne")
    attachment_factory(message, storage_url="https://cdn.example/a.png")

    page = GetChatMessagesCommand(db, mock_provider).execute(setup_user.id, setup_chat.id)

    assert page.items[0].attachments[0].storage_url == "https://cdn.example/a.png"
    mock_provider.download_attachment.assert_not_called()
