"""Event system for workstream lifecycle, notifications and sync."""

from .base import BaseEvent, EventType
from .bus import EventBus
from .events import (
    NotificationAddedEvent,
    SyncCompletedEvent,
    WorkstreamCreatedEvent,
    WorkstreamDeletedEvent,
    WorkstreamRestoredEvent,
    WorkstreamUpdatedEvent,
)

__all__ = [
    "BaseEvent",
    "EventBus",
    "EventType",
    "NotificationAddedEvent",
    "SyncCompletedEvent",
    "WorkstreamCreatedEvent",
    "WorkstreamDeletedEvent",
    "WorkstreamRestoredEvent",
    "WorkstreamUpdatedEvent",
]
