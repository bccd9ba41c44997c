"""
Supabase Storage bucket for durable attachment copies.

Provider attachment URLs expire; once bytes are copied here the public URL
is stored on the attachment row and never re-derived.
"""

from __future__ import annotations

import posixpath
import secrets
from typing import Any, Optional

from supabase import Client, create_client

from app.config import Settings, get_settings
from app.infra.logging_config import get_logger

logger = get_logger("blob_store")

SIGNED_URL_TTL_SECONDS = 3600

MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/ogg": "ogg",
    "audio/wav": "wav",
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/zip": "zip",
    "text/plain": "txt",
    "text/csv": "csv",
}
DEFAULT_EXTENSION = "bin"


class BlobStoreError(Exception):
    """Upload or lookup against object storage failed."""


def extension_for(mime_type: Optional[str], filename: Optional[str] = None) -> str:
    if mime_type and mime_type.lower() in MIME_EXTENSIONS:
        return MIME_EXTENSIONS[mime_type.lower()]
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[1].lower()
        if ext.isalnum() and len(ext) <= 8:
            return ext
    return DEFAULT_EXTENSION


def generate_attachment_key(
    message_id: str, mime_type: Optional[str], filename: Optional[str] = None
) -> str:
    """``attachments/<message>/<random>.<ext>``"""
    extension = extension_for(mime_type, filename)
    return f"attachments/{message_id}/{secrets.token_hex(3)}.{extension}"


class BlobStore:
    def __init__(self, client: Client, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> Optional["BlobStore"]:
        """Build a store from settings, or None when storage is not configured."""
        settings = settings or get_settings()
        if not (settings.supabase_url and settings.supabase_service_key):
            return None
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return cls(client=client, bucket=settings.blob_bucket)

    @property
    def _storage(self) -> Any:
        return self._client.storage.from_(self._bucket)

    def upload(
        self,
        key: str,
        data: bytes,
        mime_type: Optional[str],
        metadata: Optional[dict[str, str]] = None,
    ) -> str:
        """Store ``data`` under ``key`` and return its public URL."""
        file_options = {
            "content-type": mime_type or "application/octet-stream",
            "cache-control": "3600",
            "upsert": "true",
        }
        if metadata:
            file_options["metadata"] = {k: str(v) for k, v in metadata.items()}
        try:
            self._storage.upload(path=key, file=data, file_options=file_options)
            url = self._storage.get_public_url(key)
        except Exception as e:
            raise BlobStoreError(f"Upload of {key} failed: {e}") from e
        logger.info("Uploaded %s (%d bytes)", key, len(data))
        return url

    def exists(self, key: str) -> bool:
        folder, name = posixpath.split(key)
        try:
            entries = self._storage.list(folder, {"search": name})
        except Exception as e:
            raise BlobStoreError(f"Lookup of {key} failed: {e}") from e
        return any(entry.get("name") == name for entry in entries or [])

    def signed_url(self, key: str, expires_in: int = SIGNED_URL_TTL_SECONDS) -> str:
        try:
            response = self._storage.create_signed_url(key, expires_in)
        except Exception as e:
            raise BlobStoreError(f"Signing {key} failed: {e}") from e
        return response["signedURL"]
