"""Notification sink — fire-and-forget success/error messages for the admin UI."""
from enum import Enum
from typing import Protocol

from app.core.logging import get_logger

logger = get_logger(__name__)


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class NotificationSink(Protocol):
    def notify(self, kind: NotificationKind, message: str) -> None:
        ...


class LoggingNotifier:
    """Default sink: writes notifications to the application log."""

    def notify(self, kind: NotificationKind, message: str) -> None:
        if kind == NotificationKind.ERROR:
            logger.warning("Notification: %s", message)
        else:
            logger.info("Notification: %s", message)
