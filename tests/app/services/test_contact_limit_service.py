"""Tests for live contact counting and chat obfuscation."""

from datetime import timedelta

from app.constants.contact_limits import OBFUSCATED_NAME, SubscriptionPlan
from app.models.mixins import utcnow
from app.schemas.inbox import ContactLimitStatus, chat_read
from app.services.account_service import AccountService
from app.services.contact_limit_service import ContactLimitService
from app.services.message_service import MessageService
from app.services.profile_view_service import ProfileViewService
from app.services.subscription_service import SubscriptionService


def test_status_over_limit():
    status = ContactLimitStatus.compute(limit=100, count=150)
    assert status.is_exceeded is True
    assert status.remaining_contacts == 0


def test_status_under_limit():
    status = ContactLimitStatus.compute(limit=100, count=50)
    assert status.is_exceeded is False
    assert status.remaining_contacts == 50


def test_status_at_limit_is_not_exceeded():
    status = ContactLimitStatus.compute(limit=100, count=100)
    assert status.is_exceeded is False
    assert status.remaining_contacts == 0


def test_missing_subscription_defaults_to_free(db, setup_user):
    assert SubscriptionService(db).get_plan(setup_user.id) == SubscriptionPlan.FREE
    assert ContactLimitService(db).get_limit(setup_user.id) == 100


def test_plan_is_case_insensitive(db, setup_user, subscription_factory):
    subscription_factory(setup_user, plan="starter")
    assert ContactLimitService(db).get_limit(setup_user.id) == 1000


def test_unknown_plan_falls_back_to_free(db, setup_user, subscription_factory):
    subscription_factory(setup_user, plan="PLATINUM")
    assert ContactLimitService(db).get_limit(setup_user.id) == 100


def test_count_is_union_of_senders_and_viewers(
    db, setup_user, setup_account, setup_chat, message_factory, profile_view_factory
):
    """Senders and viewers are counted once each, outgoing messages not at all."""
    message_factory(setup_chat, sender_id="A")
    message_factory(setup_chat, sender_id="A")
    message_factory(setup_chat, sender_id="B")
    message_factory(setup_chat, direction="outgoing", sender_id="Me")
    profile_view_factory(setup_account, "B")
    profile_view_factory(setup_account, "C")

    assert ContactLimitService(db).count_contacts(setup_user.id) == 3


def test_deleted_rows_are_not_counted(
    db, setup_user, setup_account, setup_chat, message_factory, profile_view_factory
):
    message = message_factory(setup_chat, sender_id="A")
    view = profile_view_factory(setup_account, "B")
    service = ContactLimitService(db)
    assert service.count_contacts(setup_user.id) == 2

    MessageService(db).delete_record(message.id)
    ProfileViewService(db).delete_record(view.id)

    assert service.count_contacts(setup_user.id) == 0


def test_deleted_account_is_not_counted(
    db, setup_user, setup_account, setup_chat, message_factory
):
    message_factory(setup_chat, sender_id="A")
    AccountService(db).delete_record(setup_account.id)
    assert ContactLimitService(db).count_contacts(setup_user.id) == 0


def test_other_users_contacts_are_not_counted(
    db, setup_user, setup_other_account, chat_factory, message_factory
):
    other_chat = chat_factory(setup_other_account, contact_external_id="X")
    message_factory(other_chat, sender_id="X")
    assert ContactLimitService(db).count_contacts(setup_user.id) == 0


def test_apply_to_chats_ranks_over_whole_inbox(db, setup_user, setup_account, chat_factory):
    """A page holding only the older chat still sees it obfuscated."""
    now = utcnow()
    chat_factory(setup_account, contact_external_id="NEW", last_message_at=now)
    older = chat_factory(
        setup_account,
        contact_external_id="OLD",
        last_message_at=now - timedelta(days=1),
    )
    service = ContactLimitService(db)
    status = ContactLimitStatus.compute(limit=1, count=2)

    result = service.apply_to_chats(setup_user.id, [chat_read(older)], status=status)

    assert result[0].is_obfuscated is True
    assert result[0].name == OBFUSCATED_NAME
    assert service.is_chat_obfuscated(setup_user.id, older) is False


def test_is_chat_obfuscated_when_over_limit(
    db, setup_user, setup_account, chat_factory, message_factory
):
    now = utcnow()
    newer = chat_factory(setup_account, contact_external_id="NEW", last_message_at=now)
    older = chat_factory(
        setup_account,
        contact_external_id="OLD",
        last_message_at=now - timedelta(days=1),
    )
    message_factory(newer, sender_id="NEW")
    message_factory(older, sender_id="OLD")
    service = ContactLimitService(db, plan_limits={SubscriptionPlan.FREE: 1})

    assert service.get_status(setup_user.id).is_exceeded is True
    assert service.is_chat_obfuscated(setup_user.id, older) is True
    assert service.is_chat_obfuscated(setup_user.id, newer) is False
