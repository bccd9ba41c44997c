"""create inbox tables

Revision ID: a1c4e7b20f31
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from typing import List, Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c4e7b20f31"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

lifecycle_state = postgresql.ENUM(
    "active", "deleted", name="lifecycle_state", create_type=False
)


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamps() -> List[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def _lifecycle() -> List[sa.Column]:
    return [
        sa.Column(
            "lifecycle_state",
            lifecycle_state,
            nullable=False,
            server_default="active",
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _owner(column: str, table: str, ondelete: str = "CASCADE", **kw) -> sa.Column:
    return sa.Column(
        column,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(f"{table}.id", ondelete=ondelete),
        nullable=kw.pop("nullable", False),
        **kw,
    )


def upgrade() -> None:
    """Upgrade schema: users, accounts, contacts, chats, messages, profile views."""
    lifecycle_state.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("external_id", sa.String(length=255), nullable=True, unique=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        *_timestamps(),
        *_lifecycle(),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_lifecycle_state", "users", ["lifecycle_state"])

    op.create_table(
        "subscriptions",
        _id(),
        _owner("user_id", "users", unique=True),
        sa.Column("plan", sa.String(length=32), nullable=False, server_default="FREE"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        *_timestamps(),
    )

    op.create_table(
        "provider_accounts",
        _id(),
        _owner("user_id", "users"),
        sa.Column("provider", sa.String(length=32), nullable=False),
        sa.Column("account_type", sa.String(length=32), nullable=False),
        sa.Column("external_id", sa.String(length=255), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("provider_user_id", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("sync_status", sa.String(length=32), nullable=False, server_default="idle"),
        sa.Column("sync_step", sa.String(length=64), nullable=True),
        sa.Column("sync_cursor", sa.Text(), nullable=True),
        sa.Column("chats_processed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("messages_processed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("attendees_processed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sync_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sync_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_sync_error", sa.Text(), nullable=True),
        *_timestamps(),
        *_lifecycle(),
    )
    op.create_index("ix_provider_accounts_user_id", "provider_accounts", ["user_id"])
    op.create_index(
        "ix_provider_accounts_lifecycle_state", "provider_accounts", ["lifecycle_state"]
    )

    op.create_table(
        "contacts",
        _id(),
        _owner("account_id", "provider_accounts"),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=512), nullable=True),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("headline", sa.Text(), nullable=True),
        sa.Column("profile_image_url", sa.Text(), nullable=True),
        sa.Column("provider_url", sa.Text(), nullable=True),
        sa.Column("occupation", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=512), nullable=True),
        sa.Column("member_urn", sa.String(length=255), nullable=True),
        sa.Column("network_distance", sa.String(length=32), nullable=True),
        sa.Column("is_connection", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "pending_invitation", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("contact_info", postgresql.JSONB(), nullable=True),
        sa.Column("last_interaction_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        *_lifecycle(),
        sa.UniqueConstraint("account_id", "external_id", name="uq_contacts_account_external"),
    )
    op.create_index("ix_contacts_account_id", "contacts", ["account_id"])
    op.create_index("ix_contacts_lifecycle_state", "contacts", ["lifecycle_state"])

    op.create_table(
        "chats",
        _id(),
        _owner("account_id", "provider_accounts"),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("provider", sa.String(length=32), nullable=False),
        sa.Column("chat_type", sa.String(length=16), nullable=False, server_default="direct"),
        sa.Column("name", sa.String(length=512), nullable=True),
        sa.Column("subject", sa.String(length=512), nullable=True),
        sa.Column("content_type", sa.String(length=64), nullable=True),
        sa.Column("organization_id", sa.String(length=255), nullable=True),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unread_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("read_only", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("muted", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        *_lifecycle(),
        sa.UniqueConstraint("account_id", "external_id", name="uq_chats_account_external"),
    )
    op.create_index("ix_chats_account_id", "chats", ["account_id"])
    op.create_index("ix_chats_last_message_at", "chats", ["last_message_at"])
    op.create_index("ix_chats_lifecycle_state", "chats", ["lifecycle_state"])

    op.create_table(
        "chat_attendees",
        _id(),
        _owner("chat_id", "chats"),
        _owner("contact_id", "contacts", ondelete="SET NULL", nullable=True),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=512), nullable=True),
        sa.Column("profile_url", sa.String(length=1024), nullable=True),
        sa.Column("attendee_type", sa.String(length=32), nullable=True),
        sa.Column("is_self", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("hidden", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("chat_id", "external_id", name="uq_chat_attendees_chat_external"),
    )
    op.create_index("ix_chat_attendees_chat_id", "chat_attendees", ["chat_id"])

    op.create_table(
        "messages",
        _id(),
        _owner("account_id", "provider_accounts"),
        _owner("chat_id", "chats"),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("sender_id", sa.String(length=255), nullable=True),
        sa.Column("sender_urn", sa.String(length=255), nullable=True),
        sa.Column("direction", sa.String(length=16), nullable=False),
        sa.Column("message_type", sa.String(length=32), nullable=False, server_default="text"),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("subject", sa.String(length=512), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("seen", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("delivered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("edited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_event", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("provider_metadata", postgresql.JSONB(), nullable=True),
        *_timestamps(),
        *_lifecycle(),
        sa.UniqueConstraint("account_id", "external_id", name="uq_messages_account_external"),
    )
    op.create_index("ix_messages_account_id", "messages", ["account_id"])
    op.create_index("ix_messages_chat_id", "messages", ["chat_id"])
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"])
    op.create_index("ix_messages_sent_at", "messages", ["sent_at"])
    op.create_index("ix_messages_lifecycle_state", "messages", ["lifecycle_state"])

    op.create_table(
        "message_attachments",
        _id(),
        _owner("message_id", "messages"),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("attachment_type", sa.String(length=32), nullable=True),
        sa.Column("mime_type", sa.String(length=255), nullable=True),
        sa.Column("filename", sa.String(length=512), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("url_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unavailable", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("storage_key", sa.String(length=512), nullable=True),
        sa.Column("storage_url", sa.Text(), nullable=True),
        sa.Column("storage_uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("sticker", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("gif", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("voice_note", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint(
            "message_id", "external_id", name="uq_message_attachments_message_external"
        ),
    )
    op.create_index("ix_message_attachments_message_id", "message_attachments", ["message_id"])

    op.create_table(
        "profile_views",
        _id(),
        _owner("account_id", "provider_accounts"),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("viewer_profile_id", sa.String(length=255), nullable=True),
        sa.Column("viewer_name", sa.String(length=512), nullable=True),
        sa.Column("viewer_headline", sa.Text(), nullable=True),
        sa.Column("viewer_image_url", sa.Text(), nullable=True),
        sa.Column("viewer_profile_url", sa.Text(), nullable=True),
        sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        *_lifecycle(),
        sa.UniqueConstraint(
            "account_id", "external_id", name="uq_profile_views_account_external"
        ),
    )
    op.create_index("ix_profile_views_account_id", "profile_views", ["account_id"])
    op.create_index("ix_profile_views_viewer_profile_id", "profile_views", ["viewer_profile_id"])
    op.create_index("ix_profile_views_lifecycle_state", "profile_views", ["lifecycle_state"])


def downgrade() -> None:
    """Downgrade schema: drop every inbox table."""
    for table in (
        "profile_views",
        "message_attachments",
        "messages",
        "chat_attendees",
        "chats",
        "contacts",
        "provider_accounts",
        "subscriptions",
        "users",
    ):
        op.drop_table(table)
    lifecycle_state.drop(op.get_bind(), checkfirst=True)
