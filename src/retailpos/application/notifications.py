"""Notification sink: where the engine reports outcomes for display.

The engine never renders anything; it hands structured events to a sink.
The CLI prints them, the default sink logs them, tests record them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class NotificationType(Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    type: NotificationType
    title: str
    description: str = ""


class NotificationSink(ABC):

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        """Deliver one event."""


class LoggingNotificationSink(NotificationSink):

    _LEVELS = {
        NotificationType.SUCCESS: logging.INFO,
        NotificationType.INFO: logging.INFO,
        NotificationType.WARNING: logging.WARNING,
        NotificationType.ERROR: logging.ERROR,
    }

    def notify(self, notification: Notification) -> None:
        logger.log(
            self._LEVELS[notification.type],
            "%s: %s",
            notification.title,
            notification.description,
        )
