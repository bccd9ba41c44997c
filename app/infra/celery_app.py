from celery import Celery

from app.config import get_settings

settings = get_settings()

celery_app = Celery(
    "inbox_sync",
    broker=settings.broker_url,
    include=["app.tasks.inbox_sync_task"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_always_eager=settings.is_test,
)
