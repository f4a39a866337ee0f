"""Bounded in-memory queue of notifications raised by background work and user actions."""

import logging
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .events import EventBus, NotificationAddedEvent
from .workstreams.models import generate_id, utcnow

logger = logging.getLogger(__name__)

DEFAULT_MAX_NOTIFICATIONS = 50


class NotificationType(str, Enum):
    PR_UPDATE = "pr_update"
    AGENT_DONE = "agent_done"
    AGENT_STUCK = "agent_stuck"
    AGENT_NEEDS_INPUT = "agent_needs_input"
    REMINDER = "reminder"
    INFO = "info"
    ERROR = "error"


URGENT_TYPES = frozenset({NotificationType.ERROR, NotificationType.AGENT_STUCK, NotificationType.AGENT_NEEDS_INPUT})


class Notification(BaseModel):
    """A queued notification.

    ``workstream_id`` is only a lookup key; deleting the workstream does not
    remove its notifications.
    """

    id: str = Field(default_factory=lambda: generate_id("notif"))
    type: NotificationType
    message: str
    workstream_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)
    read: bool = False


class NotificationQueue:
    """Notifications kept in arrival order with a hard size cap.

    When the cap is exceeded, read notifications are evicted before unread
    ones, oldest first within each group.
    """

    def __init__(self, max_notifications: int = DEFAULT_MAX_NOTIFICATIONS, event_bus: Optional[EventBus] = None):
        if max_notifications < 1:
            raise ValueError("max_notifications must be at least 1")
        self._max = max_notifications
        self._bus = event_bus
        # Insertion order == arrival order
        self._notifications: Dict[str, Notification] = {}

    @property
    def max_notifications(self) -> int:
        return self._max

    def __len__(self) -> int:
        return len(self._notifications)

    def add(
        self,
        type: NotificationType,
        message: str,
        workstream_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(type=NotificationType(type), message=message, workstream_id=workstream_id)
        self._notifications[notification.id] = notification

        if len(self._notifications) > self._max:
            self._prune()

        logger.debug("Queued %s notification %s", notification.type.value, notification.id)
        if self._bus is not None:
            self._bus.emit(
                NotificationAddedEvent(
                    notification_id=notification.id,
                    notification_type=notification.type.value,
                    workstream_id=workstream_id,
                )
            )
        return notification

    def _prune(self) -> None:
        to_remove = len(self._notifications) - self._max
        if to_remove <= 0:
            return

        # Stable sort keeps arrival order inside each group, so read-then-oldest
        candidates = sorted(self._notifications.values(), key=lambda n: not n.read)[:to_remove]
        for notification in candidates:
            del self._notifications[notification.id]
        logger.debug("Evicted %d notification(s) over cap of %d", len(candidates), self._max)

    def mark_as_read(self, notification_id: str) -> None:
        notification = self._notifications.get(notification_id)
        if notification is not None:
            notification.read = True

    def mark_all_as_read(self) -> None:
        for notification in self._notifications.values():
            notification.read = True

    def remove(self, notification_id: str) -> bool:
        return self._notifications.pop(notification_id, None) is not None

    def clear(self) -> None:
        self._notifications.clear()

    def clear_read(self) -> None:
        self._notifications = {nid: n for nid, n in self._notifications.items() if not n.read}

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        return self._notifications.get(notification_id)

    def get_notifications(self) -> List[Notification]:
        """All notifications, newest first."""
        return list(reversed(self._notifications.values()))

    def get_unread(self) -> List[Notification]:
        return [n for n in self.get_notifications() if not n.read]

    def get_by_workstream(self, workstream_id: str) -> List[Notification]:
        return [n for n in self.get_notifications() if n.workstream_id == workstream_id]

    def get_by_type(self, type: NotificationType) -> List[Notification]:
        return [n for n in self.get_notifications() if n.type == type]

    def get_unread_counts(self) -> Dict[NotificationType, int]:
        """Unread tally for every notification type, zero-filled."""
        counts = {t: 0 for t in NotificationType}
        for notification in self._notifications.values():
            if not notification.read:
                counts[notification.type] += 1
        return counts

    def has_urgent(self) -> bool:
        return any(not n.read and n.type in URGENT_TYPES for n in self._notifications.values())
