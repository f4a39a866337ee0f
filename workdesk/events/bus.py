"""EventBus for broadcasting events to multiple handlers."""

import logging
from typing import Callable, List

from .base import BaseEvent

logger = logging.getLogger(__name__)


class EventBus:
    """Broadcast events to multiple handlers with error isolation."""

    def __init__(self):
        self._handlers: List[Callable[[BaseEvent], None]] = []

    def subscribe(self, handler: Callable[[BaseEvent], None]) -> None:
        """Subscribe a handler to receive events.

        Args:
            handler: Callable that accepts a BaseEvent
        """
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: Callable[[BaseEvent], None]) -> None:
        """Unsubscribe a handler.

        Args:
            handler: Handler to remove
        """
        if handler in self._handlers:
            self._handlers.remove(handler)

    def emit(self, event: BaseEvent) -> None:
        """Emit event to all subscribers with error isolation.

        Args:
            event: Event to broadcast
        """
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler %r failed for %s", handler, event.event_type.name)

    def has_handlers(self) -> bool:
        return len(self._handlers) > 0

    def handler_count(self) -> int:
        return len(self._handlers)
