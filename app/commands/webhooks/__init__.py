"""Webhook command handlers."""

from app.commands.webhooks.provider_event_command import ProviderEventCommand

__all__ = ["ProviderEventCommand"]
