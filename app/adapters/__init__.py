"""Adapters for the messaging provider and object storage."""

from app.adapters.base import BaseMessagingProvider
from app.adapters.blob_store import BlobStore
from app.adapters.provider_client import ProviderClient

__all__ = ["BaseMessagingProvider", "BlobStore", "ProviderClient"]
