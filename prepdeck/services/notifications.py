"""
User-facing notifications.

View-models never talk to a UI directly; they report outcomes through
a NotificationSink handed to them at construction.
"""
import logging
from dataclasses import dataclass, field
from typing import Protocol

from prepdeck.models import Severity

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def notify(self, severity: Severity, message: str) -> None:
        ...


_LOG_LEVELS = {
    Severity.SUCCESS: logging.INFO,
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LoggingNotificationSink:
    """Writes notifications to the log. Default for headless use."""

    def notify(self, severity: Severity, message: str) -> None:
        logger.log(_LOG_LEVELS[severity], f"[{severity.value}] {message}")


@dataclass
class Notification:
    severity: Severity
    message: str


@dataclass
class MemoryNotificationSink:
    """Keeps every notification in order so callers can inspect them."""
    notifications: list[Notification] = field(default_factory=list)

    def notify(self, severity: Severity, message: str) -> None:
        self.notifications.append(Notification(severity, message))

    def messages(self, severity: Severity | None = None) -> list[str]:
        return [n.message for n in self.notifications if severity is None or n.severity == severity]

    def clear(self) -> None:
        self.notifications.clear()
