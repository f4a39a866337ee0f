"""Background poller that keeps PR workstreams in sync with their check status."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from workdesk.events import EventBus, SyncCompletedEvent
from workdesk.notifications import NotificationQueue, NotificationType
from workdesk.workstreams.manager import WorkstreamManager
from workdesk.workstreams.models import Workstream, WorkstreamStatus, WorkstreamType, utcnow

from .provider import CheckStatus, CheckSummary, StatusProvider, aggregate_status, format_status_message

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0
MAX_FAILED_NAMES = 3

_WORKSTREAM_STATUS_FOR = {
    CheckStatus.FAILURE: WorkstreamStatus.ERROR,
    CheckStatus.SUCCESS: WorkstreamStatus.WAITING,
}


@dataclass
class PollCacheEntry:
    workstream_id: str
    last_status: CheckStatus
    last_checked_at: datetime


class BackgroundSynchronizer:
    """Poll a status provider for PR workstreams and turn changes into notifications.

    Only a handful of transitions notify (→ success, → failure, failure →
    pending). The first observation of a workstream is always silent, and the
    cache lives in memory only, so a restart never triggers a burst.
    """

    def __init__(
        self,
        workstream_manager: WorkstreamManager,
        notification_queue: NotificationQueue,
        provider: Optional[StatusProvider],
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        enabled: bool = True,
        event_bus: Optional[EventBus] = None,
    ):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self._manager = workstream_manager
        self._queue = notification_queue
        self._provider = provider
        self._interval = poll_interval
        self._enabled = enabled
        self._bus = event_bus
        self._cache: Dict[str, PollCacheEntry] = {}
        self._running = False
        self._ticker: Optional[asyncio.Task] = None
        self._cycle_lock = asyncio.Lock()
        self._active_cycles: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def available(self) -> bool:
        return self._enabled and self._provider is not None and self._provider.is_configured()

    def start(self) -> None:
        """Run one cycle right away, then one every poll interval.

        Does nothing if polling is disabled or no provider is configured. Must
        be called from a running event loop.
        """
        if self._running:
            return
        if not self.available:
            logger.debug("Background sync not started: no configured status provider")
            return

        self._running = True
        self._ticker = asyncio.create_task(self._tick_loop())
        logger.info("Background sync started (every %.0fs)", self._interval)

    def stop(self) -> None:
        """Stop scheduling new cycles. A cycle already in flight still completes."""
        self._running = False
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        logger.info("Background sync stopped")

    async def wait_idle(self) -> None:
        """Wait for in-flight cycles to finish."""
        if self._active_cycles:
            await asyncio.gather(*self._active_cycles, return_exceptions=True)

    async def _tick_loop(self) -> None:
        while self._running:
            self._fire_cycle()
            await asyncio.sleep(self._interval)

    def _fire_cycle(self) -> None:
        # Detached from the ticker so stop() never cancels a cycle mid-way
        task = asyncio.create_task(self._timed_cycle())
        self._active_cycles.add(task)
        task.add_done_callback(self._active_cycles.discard)

    async def _timed_cycle(self) -> None:
        if self._cycle_lock.locked():
            logger.info("Previous poll cycle still running, skipping this tick")
            return
        async with self._cycle_lock:
            try:
                checked, notified = await self._poll_cycle()
            except Exception:
                logger.exception("Poll cycle failed")
                return
        if self._bus is not None and notified:
            self._bus.emit(SyncCompletedEvent(checked=checked, notifications=notified))

    async def poll_now(self) -> None:
        """Run one cycle on demand and then signal listeners, changed or not."""
        checked = 0
        notified = 0
        if self._provider is not None and self._provider.is_configured():
            async with self._cycle_lock:
                checked, notified = await self._poll_cycle()
        if self._bus is not None:
            self._bus.emit(SyncCompletedEvent(checked=checked, notifications=notified, manual=True))

    def get_cached_status(self, workstream_id: str) -> Optional[PollCacheEntry]:
        return self._cache.get(workstream_id)

    def _pollable(self) -> list[Workstream]:
        return [
            w
            for w in self._manager.get_by_type(WorkstreamType.PR)
            if w.status != WorkstreamStatus.DONE
            and w.metadata is not None
            and w.metadata.pr_url
            and w.metadata.pr_number is not None
        ]

    async def _poll_cycle(self) -> tuple[int, int]:
        """Check every pollable workstream, one after another.

        Returns:
            (workstreams checked, notifications queued)
        """
        workstreams = self._pollable()
        notified = 0
        for workstream in workstreams:
            try:
                if await self._check_workstream(workstream):
                    notified += 1
            except Exception:
                logger.exception("Unexpected error syncing workstream %s", workstream.id)

        self._prune_cache({w.id for w in workstreams})

        if workstreams:
            logger.debug("Poll cycle checked %d workstream(s), %d notification(s)", len(workstreams), notified)
        return len(workstreams), notified

    def _prune_cache(self, live_ids: set[str]) -> None:
        # Deleted or finished workstreams start silent again if they come back
        for workstream_id in set(self._cache) - live_ids:
            del self._cache[workstream_id]

    async def _check_workstream(self, workstream: Workstream) -> bool:
        """Poll one workstream. Returns True if a notification was queued."""
        before = (workstream.status, workstream.status_message)
        try:
            summary = await self._provider.get_check_summary(workstream.metadata)
        except Exception as e:
            logger.warning("Error checking PR for %s: %s", workstream.name, e)
            self._write_status(workstream.id, before, status_message=f"Error checking PR: {e}")
            return False

        current = aggregate_status(summary)
        cached = self._cache.get(workstream.id)
        previous = cached.last_status if cached is not None else CheckStatus.UNKNOWN

        self._cache[workstream.id] = PollCacheEntry(
            workstream_id=workstream.id,
            last_status=current,
            last_checked_at=utcnow(),
        )

        notified = False
        if previous is not CheckStatus.UNKNOWN and previous is not current:
            notified = self._handle_status_change(workstream, previous, current, summary)

        self._write_status(
            workstream.id,
            before,
            status_message=format_status_message(summary),
            status=_WORKSTREAM_STATUS_FOR.get(current, WorkstreamStatus.IN_PROGRESS),
        )
        return notified

    def _write_status(self, workstream_id: str, before: tuple, **fields) -> None:
        """Apply a sync result unless status or status_message changed while fetching.

        Other fields are left alone by the update, so edits to them never conflict.
        """
        latest = self._manager.get(workstream_id)
        if latest is None:
            logger.debug("Workstream %s went away during sync", workstream_id)
            return
        if (latest.status, latest.status_message) != before:
            logger.info("Status of %s changed during sync, keeping the newer value", workstream_id)
            return
        self._manager.update(workstream_id, **fields)

    def _handle_status_change(
        self,
        workstream: Workstream,
        previous: CheckStatus,
        current: CheckStatus,
        summary: CheckSummary,
    ) -> bool:
        if current is CheckStatus.SUCCESS:
            notification_type = NotificationType.PR_UPDATE
            message = f"✅ {workstream.name}: All checks passed!"
        elif current is CheckStatus.FAILURE:
            notification_type = NotificationType.ERROR
            failed_names = ", ".join(summary.failing_names[:MAX_FAILED_NAMES]) or "Unknown checks"
            message = f"❌ {workstream.name}: Checks failed ({failed_names})"
        elif previous is CheckStatus.FAILURE and current is CheckStatus.PENDING:
            notification_type = NotificationType.INFO
            message = f"🔄 {workstream.name}: Checks restarted"
        else:
            return False

        logger.info("Workstream %s checks went %s -> %s", workstream.id, previous.value, current.value)
        self._queue.add(type=notification_type, message=message, workstream_id=workstream.id)
        return True
