"""Provider-side vocabularies and our mapping of them."""

from enum import StrEnum


class AccountStatus(StrEnum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    SYNCING = "syncing"


class SyncStatus(StrEnum):
    IDLE = "idle"
    SYNCING = "syncing"
    COMPLETED = "completed"
    FAILED = "failed"


class SyncStep(StrEnum):
    CONNECTIVITY = "connectivity"
    FETCH_CHATS = "fetch_chats"
    SYNC_MESSAGES = "sync_messages"
    DONE = "done"


class MessageDirection(StrEnum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class ChatType(StrEnum):
    DIRECT = "direct"
    GROUP = "group"


class NetworkDistance(StrEnum):
    FIRST = "FIRST"
    SECOND = "SECOND"
    THIRD = "THIRD"
    OUT_OF_NETWORK = "OUT_OF_NETWORK"


# Provider distance labels -> ours
NETWORK_DISTANCE_MAP = {
    "FIRST_DEGREE": NetworkDistance.FIRST,
    "SECOND_DEGREE": NetworkDistance.SECOND,
    "THIRD_DEGREE": NetworkDistance.THIRD,
    "OUT_OF_NETWORK": NetworkDistance.OUT_OF_NETWORK,
    "DISTANCE_1": NetworkDistance.FIRST,
    "DISTANCE_2": NetworkDistance.SECOND,
    "DISTANCE_3": NetworkDistance.THIRD,
}

# Provider account status messages -> connection status
PROVIDER_ACCOUNT_STATUS_MAP = {
    "OK": AccountStatus.CONNECTED,
    "CONNECTING": AccountStatus.SYNCING,
    "SYNC_SUCCESS": AccountStatus.CONNECTED,
    "CREATION_SUCCESS": AccountStatus.CONNECTED,
    "RECONNECTED": AccountStatus.CONNECTED,
    "CREDENTIALS": AccountStatus.DISCONNECTED,
    "DELETED": AccountStatus.DISCONNECTED,
    "STOPPED": AccountStatus.DISCONNECTED,
    "ERROR": AccountStatus.ERROR,
}

# Chat content types that only organizations send
ORGANIZATION_CONTENT_TYPES = frozenset({"inmail", "sponsored", "linkedin_offer"})

ORGANIZATION_URN_PREFIX = "urn:li:organization:"
