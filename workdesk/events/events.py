"""All event classes consolidated in one module."""

from typing import List, Optional

from pydantic import Field

from .base import BaseEvent, EventType

# ============================================================================
# Workstream Events
# ============================================================================


class WorkstreamCreatedEvent(BaseEvent):
    """A workstream was created."""

    event_type: EventType = Field(default=EventType.WORKSTREAM_CREATED, frozen=True)
    workstream_id: str
    name: str
    workstream_type: str


class WorkstreamUpdatedEvent(BaseEvent):
    """A workstream was updated.

    Args:
        workstream_id: Updated workstream
        fields: Names of the fields the caller supplied
        version: Version after the write
    """

    event_type: EventType = Field(default=EventType.WORKSTREAM_UPDATED, frozen=True)
    workstream_id: str
    fields: List[str] = Field(default_factory=list)
    version: int = Field(ge=1)


class WorkstreamDeletedEvent(BaseEvent):
    """A workstream was moved to the trash."""

    event_type: EventType = Field(default=EventType.WORKSTREAM_DELETED, frozen=True)
    workstream_id: str
    reason: Optional[str] = None


class WorkstreamRestoredEvent(BaseEvent):
    """A workstream came back from the trash."""

    event_type: EventType = Field(default=EventType.WORKSTREAM_RESTORED, frozen=True)
    workstream_id: str


# ============================================================================
# Notification Events
# ============================================================================


class NotificationAddedEvent(BaseEvent):
    """A notification was queued."""

    event_type: EventType = Field(default=EventType.NOTIFICATION_ADDED, frozen=True)
    notification_id: str
    notification_type: str
    workstream_id: Optional[str] = None


# ============================================================================
# Sync Events
# ============================================================================


class SyncCompletedEvent(BaseEvent):
    """A poll cycle finished; listeners should refresh whatever they display.

    Emitted after every manual poll even when nothing changed.

    Args:
        checked: Number of workstreams polled
        notifications: Number of notifications queued during the cycle
        manual: True for on-demand polls
    """

    event_type: EventType = Field(default=EventType.SYNC_COMPLETED, frozen=True)
    checked: int = Field(default=0, ge=0)
    notifications: int = Field(default=0, ge=0)
    manual: bool = False
