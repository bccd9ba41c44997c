"""Tests for the Supabase-backed BlobStore."""

from unittest.mock import MagicMock, patch

import pytest

from app.adapters.blob_store import (
    BlobStore,
    BlobStoreError,
    extension_for,
    generate_attachment_key,
)
from app.config import Settings


@pytest.fixture
def bucket():
    return MagicMock()


@pytest.fixture
def store(bucket):
    client = MagicMock()
    client.storage.from_.return_value = bucket
    return BlobStore(client, "inbox-attachments")


@pytest.mark.parametrize(
    "mime_type, filename, expected",
    [
        ("image/PNG", None, "png"),
        (None, "report.PDF", "pdf"),
        ("application/x-unknown", "archive.tar.gz", "gz"),
        (None, "no-extension", "bin"),
        (None, "weird.ext!", "bin"),
    ],
)
def test_extension_for(mime_type, filename, expected):
    assert extension_for(mime_type, filename) == expected


def test_attachment_keys_are_scoped_per_message():
    key = generate_attachment_key("msg-1", "image/jpeg")
    assert key.startswith("attachments/msg-1/")
    assert key.endswith(".jpg")
    assert generate_attachment_key("msg-1", "image/jpeg") != key


def test_upload_returns_public_url(store, bucket):
    bucket.get_public_url.return_value = "https://cdn.test/attachments/a.png"

    url = store.upload("attachments/m/a.png", b"bytes", "image/png", {"size": 5})

    assert url == "https://cdn.test/attachments/a.png"
    kwargs = bucket.upload.call_args.kwargs
    assert kwargs["path"] == "attachments/m/a.png"
    assert kwargs["file"] == b"bytes"
    assert kwargs["file_options"]["content-type"] == "image/png"
    assert kwargs["file_options"]["metadata"] == {"size": "5"}


def test_upload_failure_is_wrapped(store, bucket):
    bucket.upload.side_effect = RuntimeError("bucket not found")

    with pytest.raises(BlobStoreError):
        store.upload("attachments/m/a.png", b"bytes", None)


def test_exists_searches_the_key_folder(store, bucket):
    bucket.list.return_value = [{"name": "a.png"}, {"name": "a.png.bak"}]

    assert store.exists("attachments/m/a.png") is True
    bucket.list.assert_called_once_with("attachments/m", {"search": "a.png"})

    bucket.list.return_value = []
    assert store.exists("attachments/m/b.png") is False


def test_signed_url(store, bucket):
    bucket.create_signed_url.return_value = {"signedURL": "https://cdn.test/signed"}

    assert store.signed_url("attachments/m/a.png", expires_in=60) == "https://cdn.test/signed"
    bucket.create_signed_url.assert_called_once_with("attachments/m/a.png", 60)


def test_from_settings_without_credentials_is_none():
    assert BlobStore.from_settings(Settings(supabase_url=None)) is None


def test_from_settings_builds_client():
    settings = Settings(
        supabase_url="https://project.supabase.test",
        SUPABASE_SERVICE_KEY="service-key",
        blob_bucket="files",
    )
    with patch("app.adapters.blob_store.create_client") as create_client:
        store = BlobStore.from_settings(settings)

    create_client.assert_called_once_with("https://project.supabase.test", "service-key")
    assert store is not None
