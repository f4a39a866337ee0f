"""Base event model and event type enum."""

from datetime import datetime, timezone
from enum import IntEnum

from pydantic import BaseModel, Field


class EventType(IntEnum):
    """Event type enumeration."""

    # Workstream lifecycle
    WORKSTREAM_CREATED = 1
    WORKSTREAM_UPDATED = 2
    WORKSTREAM_DELETED = 3
    WORKSTREAM_RESTORED = 4

    # Notifications
    NOTIFICATION_ADDED = 10

    # Background sync
    SYNC_COMPLETED = 20


class BaseEvent(BaseModel):
    """Base class for all events."""

    model_config = {"frozen": True, "use_enum_values": False}

    event_type: EventType = Field(frozen=True)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
