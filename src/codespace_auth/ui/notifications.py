"""Notification channel for transient success/error messages."""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List, Optional

from ..utils.constants import DEFAULT_NOTIFICATION_LIMIT, ERROR_TITLE

logger = logging.getLogger(__name__)


class NotificationVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    id: int
    title: str
    description: str = ""
    variant: NotificationVariant = NotificationVariant.DEFAULT


class NotificationChannel:
    """
    Holds the notifications waiting to be shown, newest first.

    Only the most recent `limit` notifications are kept.
    """

    def __init__(self, limit: int = DEFAULT_NOTIFICATION_LIMIT) -> None:
        self.limit = limit
        self._items: Deque[Notification] = deque(maxlen=limit)
        self._next_id = 1

    @property
    def items(self) -> List[Notification]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def notify(
        self,
        title: str,
        description: str = "",
        variant: NotificationVariant = NotificationVariant.DEFAULT,
    ) -> Notification:
        notification = Notification(
            id=self._next_id, title=title, description=description, variant=variant
        )
        self._next_id += 1
        self._items.appendleft(notification)
        if variant is NotificationVariant.DESTRUCTIVE:
            logger.info("Notification [error] %s: %s", title, description)
        else:
            logger.info("Notification %s: %s", title, description)
        return notification

    def success(self, title: str, description: str = "") -> Notification:
        return self.notify(title, description)

    def error(self, description: str, title: str = ERROR_TITLE) -> Notification:
        return self.notify(title, description, NotificationVariant.DESTRUCTIVE)

    def dismiss(self, notification_id: Optional[int] = None) -> None:
        """Dismiss one notification, or all of them when no id is given."""
        if notification_id is None:
            self._items.clear()
            return
        self._items = deque(
            (n for n in self._items if n.id != notification_id), maxlen=self.limit
        )

    def drain(self) -> List[Notification]:
        """Return and clear the pending notifications."""
        items = list(self._items)
        self._items.clear()
        return items
