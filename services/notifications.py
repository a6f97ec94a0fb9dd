"""
User-facing notifications raised by the sessions.

The presentation layer subscribes to a NotificationCenter and renders each
notification once (toast, alert box...).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from services.errors import SessionError, ValidationError
from utils.logging_config import get_logger


@dataclass(frozen=True)
class Notification:
    """Single message shown to the user"""
    level: str  # "info", "warning", "error"
    title: str
    message: str
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_error(cls, error: SessionError, action: str) -> 'Notification':
        level = "warning" if isinstance(error, ValidationError) else "error"
        return cls(level=level, title=error.title, message=error.describe(action))


NotificationListener = Callable[[Notification], None]


class NotificationCenter:
    """Collects notifications and fans them out to listeners"""

    def __init__(self, max_pending: int = 50):
        self.logger = get_logger(__name__)
        self.max_pending = max_pending
        self._pending: List[Notification] = []
        self._listeners: List[NotificationListener] = []

    def subscribe(self, listener: NotificationListener) -> None:
        self._listeners.append(listener)

    def publish(self, notification: Notification) -> None:
        self._pending.append(notification)
        if len(self._pending) > self.max_pending:
            self._pending.pop(0)

        for listener in self._listeners:
            listener(notification)

        self.logger.debug(f"Notification published: {notification.title}")

    def info(self, title: str, message: str) -> None:
        self.publish(Notification(level="info", title=title, message=message))

    def failure(self, error: SessionError, action: str) -> None:
        self.publish(Notification.from_error(error, action))

    def drain(self) -> List[Notification]:
        """Return and forget the notifications not yet rendered"""
        pending, self._pending = self._pending, []
        return pending

    @property
    def pending(self) -> List[Notification]:
        return list(self._pending)

    @property
    def last(self) -> Optional[Notification]:
        return self._pending[-1] if self._pending else None
