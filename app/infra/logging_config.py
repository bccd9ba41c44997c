"""Process-wide logging setup shared by the API and the Celery worker."""

import logging
import sys

from app.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "inbox_sync"


class LoggingConfig:
    """Configure the root logger once per process."""

    _configured = False

    def __init__(self, level: str | None = None) -> None:
        if LoggingConfig._configured:
            return
        settings = get_settings()
        log_level = (level or settings.log_level or "INFO").upper()

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

        root = logging.getLogger()
        root.handlers = [handler]
        root.setLevel(log_level)

        # Quiet chatty client libraries
        for noisy in ("urllib3", "httpx", "httpcore"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

        LoggingConfig._configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the service root."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
