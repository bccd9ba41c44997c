"""
Attachment resolver.

Picks the best available source for an attachment by walking an ordered
list of resolvers. The first one that produces a result wins:

1. durable storage URL (authoritative, never re-checked)
2. provider URL that has not expired
3. fresh copy from the provider, migrated into durable storage
4. inline base64 content

Any failure degrades to the attachment as it was stored.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.adapters.base import BaseMessagingProvider
from app.adapters.blob_store import BlobStore, BlobStoreError, generate_attachment_key
from app.models.message import MessageAttachment
from app.models.mixins import utcnow
from app.schemas.inbox import AttachmentRead
from app.services.message_service import MessageService
from app.utils.metrics import ATTACHMENT_RESOLUTIONS_TOTAL
from app.utils.time import as_utc

logger = logging.getLogger(__name__)


@dataclass
class ResolutionRequest:
    attachment: MessageAttachment
    message_external_id: str
    account_external_id: str
    now: datetime


Resolver = Callable[[ResolutionRequest], Optional[AttachmentRead]]


class AttachmentResolver:
    def __init__(
        self,
        db: Session,
        provider: BaseMessagingProvider,
        blob_store: Optional[BlobStore] = None,
        message_service: Optional[MessageService] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self._provider = provider
        self._blob_store = blob_store
        self._messages = message_service or MessageService(db)
        self._clock = clock

    @property
    def resolvers(self) -> Sequence[Tuple[str, Resolver]]:
        return (
            ("durable", self._from_durable_url),
            ("provider_url", self._from_provider_url),
            ("refreshed", self._refresh_from_provider),
            ("inline", self._from_inline_content),
        )

    def resolve(
        self,
        attachment: MessageAttachment,
        message_external_id: str,
        account_external_id: str,
    ) -> AttachmentRead:
        original = AttachmentRead.model_validate(attachment)
        request = ResolutionRequest(
            attachment=attachment,
            message_external_id=message_external_id,
            account_external_id=account_external_id,
            now=self._clock(),
        )
        for source, resolver in self.resolvers:
            try:
                result = resolver(request)
            except Exception as e:
                self.db.rollback()
                logger.warning(
                    "Attachment %s resolution failed at %s: %s",
                    attachment.id,
                    source,
                    e,
                )
                ATTACHMENT_RESOLUTIONS_TOTAL.labels(source="failed").inc()
                return original
            if result is not None:
                ATTACHMENT_RESOLUTIONS_TOTAL.labels(source=source).inc()
                return result
        ATTACHMENT_RESOLUTIONS_TOTAL.labels(source="none").inc()
        return original

    def _from_durable_url(self, request: ResolutionRequest) -> Optional[AttachmentRead]:
        if request.attachment.storage_url:
            return AttachmentRead.model_validate(request.attachment)
        return None

    def _from_provider_url(self, request: ResolutionRequest) -> Optional[AttachmentRead]:
        attachment = request.attachment
        if not attachment.url or attachment.unavailable:
            return None
        expires_at = as_utc(attachment.url_expires_at)
        if expires_at is not None and expires_at <= request.now:
            return None
        return AttachmentRead.model_validate(attachment)

    def _refresh_from_provider(
        self, request: ResolutionRequest
    ) -> Optional[AttachmentRead]:
        attachment = request.attachment
        # Inline-only attachments never had a provider copy to refresh
        if attachment.content and not attachment.url and not attachment.unavailable:
            return None

        download = self._provider.download_attachment(
            request.message_external_id,
            attachment.external_id,
            request.account_external_id,
        )
        mime_type = download.mime_type or attachment.mime_type

        patch = None
        if self._blob_store is not None:
            key = generate_attachment_key(
                str(attachment.message_id), mime_type, attachment.filename
            )
            try:
                storage_url = self._blob_store.upload(
                    key,
                    download.content,
                    mime_type,
                    metadata={
                        "message_id": str(attachment.message_id),
                        "attachment_id": attachment.external_id,
                    },
                )
            except BlobStoreError as e:
                logger.warning("Durable copy of attachment %s failed: %s", attachment.id, e)
            else:
                patch = {
                    "storage_key": key,
                    "storage_url": storage_url,
                    "storage_uploaded_at": request.now,
                    "content": None,
                    "mime_type": mime_type,
                    "unavailable": False,
                }

        if patch is None:
            # No durable copy: keep the bytes inline and drop the dead URL
            patch = {
                "content": base64.b64encode(download.content).decode("ascii"),
                "mime_type": mime_type,
                "unavailable": False,
                "url": None,
                "url_expires_at": None,
            }
        if not attachment.file_size:
            patch["file_size"] = len(download.content)

        updated = self._messages.upsert_attachment(
            attachment.message_id, attachment.external_id, patch
        )
        return AttachmentRead.model_validate(updated)

    def _from_inline_content(self, request: ResolutionRequest) -> Optional[AttachmentRead]:
        if request.attachment.content:
            return AttachmentRead.model_validate(request.attachment)
        return None
