# Import celery app first
from app.infra.celery_app import celery_app

# Initialize logging configuration for Celery workers
from app.infra.logging_config import LoggingConfig
from app.tasks.inbox_sync_task import (
    historical_sync_task,
    process_provider_event_task,
    sync_chat_task,
)

LoggingConfig()  # Initialize logging

__all__ = [
    "celery_app",
    "historical_sync_task",
    "process_provider_event_task",
    "sync_chat_task",
]
