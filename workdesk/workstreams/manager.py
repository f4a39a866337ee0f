"""Workstream CRUD, disk persistence and soft delete through the trash bin."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from workdesk.events import (
    EventBus,
    WorkstreamCreatedEvent,
    WorkstreamDeletedEvent,
    WorkstreamRestoredEvent,
    WorkstreamUpdatedEvent,
)
from workdesk.exceptions import StaleUpdateError

from .conversation import DEFAULT_MAX_MESSAGES, estimate_message_tokens, trim_messages
from .models import (
    ATTENTION_STATUSES,
    TERMINAL_STATUSES,
    LLMConfig,
    TrashedWorkstream,
    Workstream,
    WorkstreamMetadata,
    WorkstreamStatus,
    WorkstreamType,
    generate_id,
    timestamp_after,
    utcnow,
)
from .storage import RecordStore
from .trash import TrashBin

logger = logging.getLogger(__name__)

# Fields callers may never overwrite through update()
IMMUTABLE_FIELDS = frozenset({"id", "created_at", "version"})


class WorkstreamManager:
    """In-memory set of active workstreams backed by one JSON file each.

    Every create/update/delete rewrites the affected file before returning.
    Writes to the same id are last-write-wins unless the caller passes
    ``expected_version`` to ``update``.
    """

    def __init__(
        self,
        workstreams_dir: Path,
        trash_bin: TrashBin,
        event_bus: Optional[EventBus] = None,
        default_llm_config: Optional[LLMConfig] = None,
        max_conversation_messages: int = DEFAULT_MAX_MESSAGES,
    ):
        self._store: RecordStore[Workstream] = RecordStore(workstreams_dir, Workstream)
        self._trash = trash_bin
        self._bus = event_bus
        self._default_llm_config = default_llm_config or LLMConfig()
        self._max_conversation_messages = max_conversation_messages
        self._workstreams: Dict[str, Workstream] = {}
        self._loaded = False

    @property
    def trash_bin(self) -> TrashBin:
        return self._trash

    def load(self) -> None:
        """Hydrate from disk once; later calls are no-ops."""
        if self._loaded:
            return

        self._store.ensure_dir()
        self._workstreams = self._store.load_all()
        self._loaded = True
        self._recover_interrupted_transfers()
        logger.debug("Loaded %d workstream(s) from %s", len(self._workstreams), self._store.directory)

    def _recover_interrupted_transfers(self) -> None:
        """Settle ids found in both the active store and the trash.

        That only happens when a delete or restore was interrupted between its
        two writes. The newer timestamp says which one: a trash copy deleted
        after the active copy's last update is an unfinished delete, otherwise
        it is an unfinished restore.
        """
        for workstream_id in list(self._workstreams):
            trashed = self._trash.get(workstream_id)
            if trashed is None:
                continue

            active = self._workstreams[workstream_id]
            if trashed.deleted_at > active.updated_at:
                logger.warning("Finishing interrupted delete of workstream %s", workstream_id)
                del self._workstreams[workstream_id]
                self._store.delete(workstream_id)
            else:
                logger.warning("Finishing interrupted restore of workstream %s", workstream_id)
                self._trash.discard(workstream_id)

    def _save(self, workstream: Workstream) -> None:
        self._store.save(workstream)

    def _emit(self, event) -> None:
        if self._bus is not None:
            self._bus.emit(event)

    def create(
        self,
        type: WorkstreamType,
        name: str,
        metadata: Optional[WorkstreamMetadata] = None,
    ) -> Workstream:
        self.load()

        now = utcnow()
        workstream = Workstream(
            id=generate_id("ws"),
            name=name,
            type=WorkstreamType(type),
            status=WorkstreamStatus.WAITING,
            created_at=now,
            updated_at=now,
            metadata=metadata,
            llm_config=self._default_llm_config.model_copy(),
        )

        self._save(workstream)
        self._workstreams[workstream.id] = workstream
        logger.info("Created %s workstream %s (%s)", workstream.type.value, workstream.id, name)
        self._emit(
            WorkstreamCreatedEvent(workstream_id=workstream.id, name=name, workstream_type=workstream.type.value)
        )
        return workstream

    def update(self, workstream_id: str, expected_version: Optional[int] = None, **fields: Any) -> Optional[Workstream]:
        """Merge the given fields into a workstream and persist it.

        Args:
            workstream_id: Workstream to update
            expected_version: If given, the update is rejected unless the stored
                version still matches
            **fields: Fields to replace; ``id``, ``created_at`` and ``version``
                are ignored

        Returns:
            The updated workstream, or None if the id is unknown

        Raises:
            StaleUpdateError: If expected_version no longer matches
            ValueError: If a field is unknown or fails validation
        """
        self.load()

        current = self._workstreams.get(workstream_id)
        if current is None:
            return None

        if expected_version is not None and expected_version != current.version:
            raise StaleUpdateError(workstream_id, expected_version, current.version)

        changes = {key: value for key, value in fields.items() if key not in IMMUTABLE_FIELDS}
        unknown = set(changes) - set(Workstream.model_fields)
        if unknown:
            raise ValueError(f"Unknown workstream field(s): {', '.join(sorted(unknown))}")

        data = current.model_dump()
        data.update(changes)
        data["updated_at"] = timestamp_after(current.updated_at)
        data["version"] = current.version + 1
        try:
            updated = Workstream.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid update for workstream {workstream_id}: {e}") from e

        self._save(updated)
        self._workstreams[workstream_id] = updated
        self._emit(WorkstreamUpdatedEvent(workstream_id=workstream_id, fields=sorted(changes), version=updated.version))
        return updated

    def update_status(
        self,
        workstream_id: str,
        status: WorkstreamStatus,
        status_message: Optional[str] = None,
    ) -> Optional[Workstream]:
        return self.update(workstream_id, status=status, status_message=status_message)

    def trim_history(self, workstream_id: str, max_messages: Optional[int] = None) -> Optional[Workstream]:
        """Trim a workstream's stored messages and recompute its token estimate.

        max_messages defaults to the manager's configured conversation cap.

        Returns the workstream unchanged (and unwritten) when it is already short enough.
        """
        self.load()

        workstream = self._workstreams.get(workstream_id)
        if workstream is None:
            return None
        if max_messages is None:
            max_messages = self._max_conversation_messages
        if len(workstream.messages) <= max_messages:
            return workstream

        trimmed = trim_messages(workstream.messages, max_messages)
        logger.debug("Trimmed workstream %s from %d to %d messages", workstream_id, len(workstream.messages), len(trimmed))
        return self.update(workstream_id, messages=trimmed, token_estimate=estimate_message_tokens(trimmed))

    def delete(self, workstream_id: str, reason: Optional[str] = None) -> Optional[TrashedWorkstream]:
        """Soft delete: move a workstream to the trash bin.

        The trash copy is written before the active file is removed. The two
        writes are not atomic; an interruption between them is settled by the
        recovery sweep on the next load.
        """
        self.load()

        workstream = self._workstreams.get(workstream_id)
        if workstream is None:
            return None

        trashed = self._trash.move_to_trash(workstream, reason)

        del self._workstreams[workstream_id]
        self._store.delete(workstream_id)

        logger.info("Deleted workstream %s", workstream_id)
        self._emit(WorkstreamDeletedEvent(workstream_id=workstream_id, reason=reason))
        return trashed

    def restore_from_trash(self, workstream_id: str) -> Optional[Workstream]:
        self.load()

        trashed = self._trash.get(workstream_id)
        if trashed is None:
            return None

        restored = trashed.to_workstream()
        restored.updated_at = timestamp_after(max(trashed.updated_at, trashed.deleted_at))

        # Active copy first so an interruption leaves the record in both stores, not neither
        self._save(restored)
        self._workstreams[restored.id] = restored
        self._trash.discard(workstream_id)

        logger.info("Restored workstream %s from trash", workstream_id)
        self._emit(WorkstreamRestoredEvent(workstream_id=workstream_id))
        return restored

    def permanently_delete(self, workstream_id: str) -> bool:
        """Remove a workstream from the trash for good."""
        return self._trash.permanently_delete(workstream_id)

    def empty_trash(self) -> int:
        return self._trash.empty_trash()

    def get(self, workstream_id: str) -> Optional[Workstream]:
        return self._workstreams.get(workstream_id)

    def get_all(self) -> List[Workstream]:
        """All active workstreams, oldest first so numbering stays stable."""
        return sorted(self._workstreams.values(), key=lambda w: w.created_at)

    def get_by_type(self, type: WorkstreamType) -> List[Workstream]:
        return [w for w in self.get_all() if w.type == type]

    def get_by_status(self, status: WorkstreamStatus) -> List[Workstream]:
        return [w for w in self.get_all() if w.status == status]

    def get_needing_attention(self) -> List[Workstream]:
        return [w for w in self.get_all() if w.status in ATTENTION_STATUSES]

    def get_active(self) -> List[Workstream]:
        return [w for w in self.get_all() if w.status not in TERMINAL_STATUSES]
