"""Natural-key lookups and owner listings across the repositories."""

from datetime import timedelta

from app.models.mixins import utcnow
from app.services.account_service import AccountService
from app.services.contact_service import ContactService
from app.services.message_service import MessageService
from app.services.profile_view_service import ProfileViewService
from app.utils.db.filtering import Visibility


def test_contacts_list_most_recent_interaction_first(db, setup_account, setup_other_account):
    contacts = ContactService(db)
    now = utcnow()
    contacts.upsert_contact(
        setup_account.id, "c-old", {"last_interaction_at": now - timedelta(days=2)}
    )
    contacts.upsert_contact(setup_account.id, "c-never", {"full_name": "No Messages"})
    contacts.upsert_contact(setup_account.id, "c-new", {"last_interaction_at": now})
    contacts.upsert_contact(setup_other_account.id, "c-foreign", {"last_interaction_at": now})

    first = contacts.list_by_owner(setup_account.id, limit=2)
    assert [c.external_id for c in first.items] == ["c-new", "c-old"]
    assert first.has_more

    second = contacts.list_by_owner(setup_account.id, cursor=first.next_cursor, limit=2)
    assert [c.external_id for c in second.items] == ["c-never"]
    assert not second.has_more
    assert second.next_cursor is None


def test_deleted_contacts_are_hidden_unless_asked_for(db, setup_account):
    contacts = ContactService(db)
    contact = contacts.upsert_contact(setup_account.id, "c-1", {"full_name": "Ada"})
    contacts.delete_record(contact.id)

    assert contacts.find_by_natural_key(setup_account.id, "c-1") is None
    assert contacts.find_by_natural_key(setup_account.id, "c-1", Visibility.DELETED) is not None
    assert contacts.list_by_owner(setup_account.id).items == []
    assert len(contacts.list_by_owner(setup_account.id, Visibility.ALL).items) == 1


def test_profile_views_list_newest_first(db, setup_account):
    views = ProfileViewService(db)
    now = utcnow()
    views.record_view(
        setup_account.id, "v-1", {"viewer_profile_id": "p1", "viewed_at": now - timedelta(hours=1)}
    )
    views.record_view(setup_account.id, "v-2", {"viewer_profile_id": "p2", "viewed_at": now})
    views.record_view(setup_account.id, "v-1", {"viewer_name": "Grace"})

    page = views.list_by_owner(setup_account.id)

    assert [v.external_id for v in page.items] == ["v-2", "v-1"]
    assert views.find_by_natural_key(setup_account.id, "v-1").viewer_name == "Grace"


def test_accounts_list_by_owner_skips_disconnected(
    db, setup_user, setup_account, setup_other_account
):
    accounts = AccountService(db)
    second = accounts.upsert_account(setup_user.id, "acc-second", {"provider": "linkedin"})

    page = accounts.list_by_owner(setup_user.id)
    assert {a.id for a in page.items} == {setup_account.id, second.id}

    accounts.mark_disconnected("acc-second")

    assert [a.id for a in accounts.list_by_owner(setup_user.id).items] == [setup_account.id]
    assert accounts.find_by_natural_key("acc-second") is None


def test_malformed_cursor_restarts_from_the_first_page(db, setup_account):
    contacts = ContactService(db)
    contacts.upsert_contact(setup_account.id, "c-1", {"full_name": "Ada"})

    page = contacts.list_by_owner(setup_account.id, cursor="not-a-cursor")

    assert [c.external_id for c in page.items] == ["c-1"]


def test_messages_list_by_owner_spans_chats(
    db, setup_account, setup_other_account, chat_factory, message_factory
):
    now = utcnow()
    first_chat = chat_factory(setup_account, contact_external_id="ACoAAFirst")
    second_chat = chat_factory(setup_account, contact_external_id="ACoAASecond")
    foreign_chat = chat_factory(setup_other_account, contact_external_id="ACoAAFirst")
    message_factory(first_chat, external_id="m-old", sent_at=now - timedelta(hours=2))
    message_factory(second_chat, external_id="m-new", sent_at=now)
    gone = message_factory(first_chat, external_id="m-gone", sent_at=now - timedelta(hours=1))
    message_factory(foreign_chat, external_id="m-foreign", sent_at=now)
    messages = MessageService(db)
    messages.delete_record(gone.id)

    page = messages.list_by_owner(setup_account.id)

    assert [m.external_id for m in page.items] == ["m-new", "m-old"]
    assert not page.has_more
