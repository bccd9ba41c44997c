"""
Ingestion policies shared by historical sync and webhook events.

Both paths hand provider payloads to this service, which classifies them,
maps them onto our entities and merges them through the repositories'
natural-key upserts. Whichever path delivers an entity first, the other
one lands on the same row.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.adapters.base import BaseMessagingProvider, ProviderError
from app.config import SyncConfig
from app.constants.provider import (
    NETWORK_DISTANCE_MAP,
    ChatType,
    MessageDirection,
    NetworkDistance,
)
from app.core.company_classifier import is_company_message
from app.models.account import ProviderAccount
from app.models.chat import Chat, ChatAttendee
from app.models.contact import Contact
from app.models.message import Message
from app.models.mixins import LifecycleState, utcnow
from app.schemas.provider import (
    ProviderAttachment,
    ProviderAttendee,
    ProviderChat,
    ProviderMessage,
    ProviderProfile,
)
from app.schemas.provider_events import EventParticipant, MessageReceivedEvent
from app.services.chat_service import ChatService
from app.services.contact_service import ContactService
from app.services.message_service import MessageService
from app.utils.db.filtering import Visibility
from app.utils.metrics import SYNC_ITEMS_TOTAL

logger = logging.getLogger(__name__)

ATTACHMENT_MESSAGE_TYPES = {"img": "image", "image": "image", "video": "video", "audio": "audio"}


def provided(patch: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values so absent provider fields never overwrite stored ones."""
    return {k: v for k, v in patch.items() if v is not None}


def split_name(name: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    first, _, rest = (name or "").strip().partition(" ")
    return first or None, rest.strip() or None


def infer_message_type(text: Optional[str], attachments: Sequence[ProviderAttachment]) -> str:
    if text or not attachments:
        return "text"
    kind = (attachments[0].kind or "").lower()
    return ATTACHMENT_MESSAGE_TYPES.get(kind, "attachment")


def contact_patch_from_attendee(attendee: ProviderAttendee) -> Dict[str, Any]:
    specifics = attendee.specifics or {}
    first_name, last_name = split_name(attendee.name)
    distance = NETWORK_DISTANCE_MAP.get(specifics.get("network_distance") or "")
    patch: Dict[str, Any] = {
        "full_name": attendee.name,
        "first_name": first_name,
        "last_name": last_name,
        "headline": specifics.get("headline"),
        "occupation": specifics.get("occupation"),
        "location": specifics.get("location"),
        "member_urn": specifics.get("member_urn"),
        "contact_info": specifics.get("contact_info"),
        "profile_image_url": attendee.picture_url,
        "provider_url": attendee.profile_url,
    }
    if "pending_invitation" in specifics:
        patch["pending_invitation"] = bool(specifics["pending_invitation"])
    if distance is not None:
        patch["network_distance"] = distance.value
        patch["is_connection"] = distance != NetworkDistance.OUT_OF_NETWORK
    return provided(patch)


def contact_patch_from_participant(participant: EventParticipant) -> Dict[str, Any]:
    first_name, last_name = split_name(participant.attendee_name)
    return provided(
        {
            "full_name": participant.attendee_name,
            "first_name": first_name,
            "last_name": last_name,
            "provider_url": participant.attendee_profile_url,
        }
    )


def contact_patch_from_profile(profile: ProviderProfile) -> Dict[str, Any]:
    full_name = " ".join(p for p in (profile.first_name, profile.last_name) if p)
    distance = NETWORK_DISTANCE_MAP.get(profile.network_distance or "")
    occupation = next(
        (w.position for w in profile.work_experience if w.current and w.position), None
    )
    contact_info = None
    if profile.contact_info:
        info = profile.contact_info
        contact_info = {
            "emails": info.get("emails") or [],
            "phones": info.get("phones") or [],
            "addresses": info.get("addresses") or info.get("adresses") or [],
            "socials": info.get("socials") or [],
        }
    patch: Dict[str, Any] = {
        "full_name": full_name or None,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "headline": profile.headline,
        "location": profile.location,
        "profile_image_url": profile.profile_picture_url_large or profile.profile_picture_url,
        "provider_url": profile.public_profile_url,
        "occupation": occupation,
        "member_urn": profile.member_urn,
        "contact_info": contact_info,
    }
    if distance is not None:
        patch["network_distance"] = distance.value
        patch["is_connection"] = distance != NetworkDistance.OUT_OF_NETWORK
    return provided(patch)


def chat_patch_from_provider(account: ProviderAccount, chat: ProviderChat) -> Dict[str, Any]:
    last_message_at = chat.timestamp
    if chat.last_message is not None and chat.last_message.timestamp is not None:
        last_message_at = chat.last_message.timestamp
    return provided(
        {
            "provider": account.provider,
            "chat_type": ChatType.DIRECT.value if chat.type == 0 else ChatType.GROUP.value,
            "name": chat.name,
            "subject": chat.subject,
            "content_type": chat.content_type,
            "organization_id": chat.organization_id,
            "last_message_at": last_message_at,
            "unread_count": chat.unread_count,
            "read_only": chat.read_only,
            "archived": chat.archived,
            "muted": chat.muted,
        }
    )


def message_patch_from_provider(message: ProviderMessage) -> Dict[str, Any]:
    direction = MessageDirection.OUTGOING if message.is_sender else MessageDirection.INCOMING
    patch: Dict[str, Any] = {
        "sender_id": message.sender_id,
        "sender_urn": message.sender_urn,
        "direction": direction.value,
        "message_type": infer_message_type(message.text, message.attachments),
        "content": message.text,
        "subject": message.subject,
        "sent_at": message.timestamp,
        "is_read": message.seen or direction == MessageDirection.OUTGOING,
        "seen": message.seen,
        "delivered": message.delivered,
        "edited": message.edited,
        "is_event": message.is_event,
    }
    if message.deleted:
        patch["lifecycle_state"] = LifecycleState.DELETED
        patch["deleted_at"] = utcnow()
    return provided(patch)


def message_patch_from_event(event: MessageReceivedEvent, outgoing: bool) -> Dict[str, Any]:
    direction = MessageDirection.OUTGOING if outgoing else MessageDirection.INCOMING
    return provided(
        {
            "sender_id": event.sender.attendee_provider_id if event.sender else None,
            "sender_urn": event.sender_urn,
            "direction": direction.value,
            "message_type": infer_message_type(event.message, event.attachments),
            "content": event.message,
            "subject": event.subject,
            "sent_at": event.timestamp,
            "is_read": outgoing,
            "seen": outgoing,
            "delivered": True,
            "is_event": event.is_event,
            "provider_metadata": provided(
                {
                    "provider_message_id": event.provider_message_id,
                    "quoted": event.quoted,
                }
            )
            or None,
        }
    )


def attachment_patch(attachment: ProviderAttachment) -> Dict[str, Any]:
    return provided(
        {
            "attachment_type": attachment.kind,
            "mime_type": attachment.resolved_mime_type,
            "filename": attachment.resolved_filename,
            "file_size": attachment.resolved_size,
            "url": attachment.resolved_url,
            "url_expires_at": attachment.url_expires_at,
            "unavailable": attachment.unavailable,
            "width": attachment.width,
            "height": attachment.height,
            "duration": attachment.duration,
            "sticker": attachment.sticker,
            "gif": attachment.gif,
            "voice_note": attachment.voice_note,
        }
    )


class InboxIngestionService:
    def __init__(
        self,
        db: Session,
        provider: BaseMessagingProvider,
        config: SyncConfig,
        chat_service: Optional[ChatService] = None,
        contact_service: Optional[ContactService] = None,
        message_service: Optional[MessageService] = None,
    ) -> None:
        self.db = db
        self._provider = provider
        self._config = config
        self._chats = chat_service or ChatService(db)
        self._contacts = contact_service or ContactService(db)
        self._messages = message_service or MessageService(db)

    @property
    def include_company_messages(self) -> bool:
        return self._config.flags.include_company_messages

    def _detail(self, msg: str, *args: Any) -> None:
        if self._config.flags.enable_detailed_logging:
            logger.info(msg, *args)

    # Contacts

    def _profile_patch(self, account: ProviderAccount, external_id: str) -> Dict[str, Any]:
        try:
            profile = self._provider.get_profile(external_id, account.external_id)
        except ProviderError as e:
            logger.warning(
                "Profile enrichment failed for %s on account %s: %s",
                external_id,
                account.id,
                e,
            )
            return {}
        return contact_patch_from_profile(profile)

    def resolve_contact(
        self,
        account: ProviderAccount,
        external_id: str,
        basic_patch: Dict[str, Any],
    ) -> Contact:
        """
        Merge basic attendee data into the contact. Contacts seen for the
        first time are enriched from the provider profile when enabled.
        """
        patch = dict(basic_patch)
        existing = self._contacts.find_by_natural_key(account.id, external_id, Visibility.ALL)
        if existing is None and self._config.flags.enable_profile_enrichment:
            patch.update(self._profile_patch(account, external_id))
        return self._contacts.upsert_contact(account.id, external_id, patch)

    # Chats and attendees

    def ingest_chat(self, account: ProviderAccount, chat: ProviderChat) -> Chat:
        return self._chats.upsert_chat(
            account.id, chat.id, chat_patch_from_provider(account, chat)
        )

    def ingest_attendee(
        self, account: ProviderAccount, chat: Chat, attendee: ProviderAttendee
    ) -> ChatAttendee:
        external_id = attendee.external_id
        patch: Dict[str, Any] = provided(
            {
                "display_name": attendee.name,
                "profile_url": attendee.profile_url,
                "attendee_type": attendee.attendee_type,
                "is_self": attendee.is_self,
                "hidden": attendee.hidden,
            }
        )
        if not attendee.is_self:
            contact = self.resolve_contact(
                account, external_id, contact_patch_from_attendee(attendee)
            )
            patch["contact_id"] = contact.id
        return self._chats.upsert_attendee(chat.id, external_id, patch)

    def ingest_participants(
        self,
        account: ProviderAccount,
        chat: Chat,
        participants: Iterable[EventParticipant],
        own_provider_id: Optional[str],
    ) -> List[ChatAttendee]:
        attendees: List[ChatAttendee] = []
        for participant in participants:
            external_id = participant.attendee_provider_id or participant.attendee_id
            if not external_id:
                continue
            is_self = bool(own_provider_id) and external_id == own_provider_id
            patch: Dict[str, Any] = provided(
                {
                    "display_name": participant.attendee_name,
                    "profile_url": participant.attendee_profile_url,
                    "attendee_type": participant.attendee_type,
                    "is_self": is_self,
                }
            )
            if not is_self:
                contact = self.resolve_contact(
                    account, external_id, contact_patch_from_participant(participant)
                )
                patch["contact_id"] = contact.id
            attendees.append(self._chats.upsert_attendee(chat.id, external_id, patch))
        return attendees

    # Messages

    def ingest_provider_message(
        self, account: ProviderAccount, chat: Chat, message: ProviderMessage
    ) -> Optional[Message]:
        """Store one message from a history page; company messages may be skipped."""
        if is_company_message(message) and not self.include_company_messages:
            self._detail("Skipping company message %s in chat %s", message.id, chat.id)
            SYNC_ITEMS_TOTAL.labels(kind="message", status="skipped").inc()
            return None
        return self.store_message(
            account,
            chat,
            message.id,
            message_patch_from_provider(message),
            message.attachments,
        )

    def ingest_event_message(
        self, account: ProviderAccount, event: MessageReceivedEvent
    ) -> Optional[Message]:
        """Store a pushed message, creating its chat and participants as needed."""
        if is_company_message(event) and not self.include_company_messages:
            self._detail("Skipping company message %s", event.message_id)
            SYNC_ITEMS_TOTAL.labels(kind="message", status="skipped").inc()
            return None

        chat = self._chats.find_by_natural_key(account.id, event.chat_id, Visibility.ALL)
        if chat is None:
            chat = self._chats.upsert_chat(
                account.id,
                event.chat_id,
                patch={},
                defaults=provided(
                    {
                        "provider": account.provider,
                        "chat_type": (
                            ChatType.GROUP.value if event.is_group else ChatType.DIRECT.value
                        ),
                        "content_type": event.chat_content_type,
                        "subject": event.subject,
                    }
                ),
            )
        elif not chat.is_active:
            # New activity brings a deleted conversation back
            self._chats.restore_record(chat.id)
            self.db.refresh(chat)

        own_id = event.account_info.user_id or account.provider_user_id
        participants = list(event.attendees)
        if event.sender is not None:
            participants.append(event.sender)
        self.ingest_participants(account, chat, participants, own_id)
        outgoing = event.is_sent_by(own_id)

        is_new = self._messages.find_by_natural_key(
            account.id, event.message_id, Visibility.ALL
        ) is None
        message = self.store_message(
            account,
            chat,
            event.message_id,
            message_patch_from_event(event, outgoing),
            event.attachments,
        )
        if is_new:
            self._chats.touch_last_message(
                chat, event.timestamp, increment_unread=not outgoing
            )
        return message

    def store_message(
        self,
        account: ProviderAccount,
        chat: Chat,
        external_id: str,
        patch: Dict[str, Any],
        attachments: Sequence[ProviderAttachment] = (),
    ) -> Message:
        if patch.get("direction") == MessageDirection.OUTGOING.value:
            self._messages.reconcile_local_message(
                account.id, chat.id, external_id, patch.get("content"), patch.get("sent_at")
            )
        message = self._messages.upsert_message(account.id, chat.id, external_id, patch)
        self.store_attachments(message, attachments)

        sender_id = patch.get("sender_id")
        if patch.get("direction") == MessageDirection.INCOMING.value and sender_id:
            contact = self._contacts.find_by_natural_key(account.id, sender_id)
            if contact is not None:
                self._contacts.touch_interaction(contact, patch.get("sent_at"))
        return message

    def store_attachments(
        self, message: Message, attachments: Sequence[ProviderAttachment]
    ) -> int:
        """Persist attachment references; a bad attachment never blocks the message."""
        stored = 0
        for index, attachment in enumerate(attachments):
            external_id = attachment.external_id or f"{message.external_id}_{index}"
            try:
                self._messages.upsert_attachment(
                    message.id, external_id, attachment_patch(attachment)
                )
            except Exception:
                self.db.rollback()
                SYNC_ITEMS_TOTAL.labels(kind="attachment", status="failed").inc()
                logger.exception(
                    "Failed to store attachment %s of message %s",
                    external_id,
                    message.external_id,
                )
                continue
            stored += 1
            SYNC_ITEMS_TOTAL.labels(kind="attachment", status="synced").inc()
        return stored
