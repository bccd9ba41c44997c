"""Tests for attachment source resolution."""

import base64
from datetime import timedelta
from unittest.mock import MagicMock

from app.adapters.base import AttachmentDownload, ProviderTransientError
from app.adapters.blob_store import BlobStoreError
from app.models.mixins import utcnow
from app.services.attachment_resolver import AttachmentResolver


def _resolve(db, provider, attachment, blob_store=None):
    resolver = AttachmentResolver(db, provider, blob_store=blob_store)
    return resolver.resolve(attachment, "m-1", "acc-1")


def test_durable_url_skips_provider(
    db, mock_provider, setup_chat, message_factory, attachment_factory
):
    attachment = attachment_factory(
        message_factory(setup_chat),
        storage_url="https://cdn.example/attachments/a.png",
        url="https://provider.example/expired",
        url_expires_at=utcnow() - timedelta(days=1),
    )

    result = _resolve(db, mock_provider, attachment)

    assert result.storage_url == "https://cdn.example/attachments/a.png"
    mock_provider.download_attachment.assert_not_called()


def test_unexpired_provider_url_is_used(
    db, mock_provider, setup_chat, message_factory, attachment_factory
):
    attachment = attachment_factory(
        message_factory(setup_chat),
        url="https://provider.example/a.png",
        url_expires_at=utcnow() + timedelta(hours=1),
    )

    result = _resolve(db, mock_provider, attachment)

    assert result.url == "https://provider.example/a.png"
    mock_provider.download_attachment.assert_not_called()


def test_expired_url_without_store_inlines_content(
    db, mock_provider, setup_chat, message_factory, attachment_factory
):
    """With no blob store the fresh bytes are kept inline and the dead URL dropped."""
    mock_provider.download_attachment.return_value = AttachmentDownload(
        content=b"png-bytes", mime_type="image/png"
    )
    attachment = attachment_factory(
        message_factory(setup_chat),
        external_id="att-1",
        url="https://provider.example/a.png",
        url_expires_at=utcnow() - timedelta(minutes=1),
    )

    result = _resolve(db, mock_provider, attachment)

    mock_provider.download_attachment.assert_called_once_with("m-1", "att-1", "acc-1")
    assert result.content == base64.b64encode(b"png-bytes").decode("ascii")
    assert result.url is None
    assert result.file_size == len(b"png-bytes")


def test_expired_url_is_migrated_to_store(
    db, mock_provider, setup_chat, message_factory, attachment_factory
):
    mock_provider.download_attachment.return_value = AttachmentDownload(
        content=b"png-bytes", mime_type="image/png"
    )
    blob_store = MagicMock()
    blob_store.upload.return_value = "https://cdn.example/attachments/new.png"
    attachment = attachment_factory(
        message_factory(setup_chat),
        url="https://provider.example/a.png",
        unavailable=True,
    )

    result = _resolve(db, mock_provider, attachment, blob_store=blob_store)

    assert result.storage_url == "https://cdn.example/attachments/new.png"
    assert result.unavailable is False
    key = blob_store.upload.call_args.args[0]
    assert key.startswith(f"attachments/{attachment.message_id}/")
    assert key.endswith(".png")

    # Second read comes straight from durable storage
    mock_provider.download_attachment.reset_mock()
    db.refresh(attachment)
    _resolve(db, mock_provider, attachment, blob_store=blob_store)
    mock_provider.download_attachment.assert_not_called()


def test_upload_failure_falls_back_to_inline(
    db, mock_provider, setup_chat, message_factory, attachment_factory
):
    mock_provider.download_attachment.return_value = AttachmentDownload(content=b"bytes")
    blob_store = MagicMock()
    blob_store.upload.side_effect = BlobStoreError("bucket missing")
    attachment = attachment_factory(message_factory(setup_chat), unavailable=True)

    result = _resolve(db, mock_provider, attachment, blob_store=blob_store)

    assert result.storage_url is None
    assert result.content == base64.b64encode(b"bytes").decode("ascii")


def test_download_failure_returns_original(
    db, mock_provider, setup_chat, message_factory, attachment_factory
):
    mock_provider.download_attachment.side_effect = ProviderTransientError("timeout")
    attachment = attachment_factory(
        message_factory(setup_chat),
        url="https://provider.example/a.png",
        url_expires_at=utcnow() - timedelta(minutes=1),
    )

    result = _resolve(db, mock_provider, attachment)

    assert result.id == attachment.id
    assert result.url == "https://provider.example/a.png"
    assert result.content is None


def test_inline_only_attachment_is_served_inline(
    db, mock_provider, setup_chat, message_factory, attachment_factory
):
    attachment = attachment_factory(message_factory(setup_chat), content="aGVsbG8=")

    result = _resolve(db, mock_provider, attachment)

    assert result.content == "aGVsbG8="
    mock_provider.download_attachment.assert_not_called()
