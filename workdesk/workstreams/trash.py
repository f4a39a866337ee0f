"""Soft-delete trash bin for workstreams with retention, search and recovery."""

import logging
import re
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .models import TrashedWorkstream, TrashSearchResult, TrashStats, Workstream, timestamp_after, utcnow
from .storage import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30

MIN_SMART_SCORE = 20
TERM_SCORE_MAX = 60
MESSAGE_TERM_WEIGHT = 0.6
PREVIEW_MAX_LENGTH = 80

SEARCHABLE_METADATA_FIELDS = ("ticket_key", "pr_url", "description")

STOP_WORDS = frozenset(
    """
    the a an and or but in on at to for of with by from is are was were be been
    being have has had do does did will would could should may might must shall
    can need about into through during before after above below between under
    again further then once my your his her its our their this that these those
    what which who whom where when why how all each every both few more most
    other some such no nor not only own same so than too very just also
    """.split()
)

_PUNCTUATION = re.compile(r"[^\w\s-]")


def extract_keywords(query: str) -> List[str]:
    """Lower-case the query, drop punctuation, stop words and tokens of two characters or fewer."""
    cleaned = _PUNCTUATION.sub(" ", query.lower())
    return [term for term in cleaned.split() if len(term) > 2 and term not in STOP_WORDS]


def term_score(text: str, terms: List[str]) -> float:
    """Share of keywords present in text, scaled to a maximum of 60."""
    if not terms:
        return 0.0
    matches = sum(1 for term in terms if term in text)
    return matches / len(terms) * TERM_SCORE_MAX


def match_preview(content: str, search_term: str) -> str:
    """Short single-line excerpt of content around the first match of search_term."""
    index = content.lower().find(search_term.lower()) if search_term else -1

    if index == -1:
        preview = content[:PREVIEW_MAX_LENGTH] + ("..." if len(content) > PREVIEW_MAX_LENGTH else "")
        return preview.replace("\n", " ").strip()

    start = max(0, index - 30)
    end = min(len(content), index + len(search_term) + 50)

    preview = content[start:end]
    if start > 0:
        preview = "..." + preview
    if end < len(content):
        preview = preview + "..."
    return preview.replace("\n", " ").strip()


class TrashBin:
    """Retention-bounded store of soft-deleted workstreams.

    Items older than the retention window are purged lazily, the first time
    the bin is loaded in a process.
    """

    def __init__(self, trash_dir: Path, retention_days: int = DEFAULT_RETENTION_DAYS):
        self._store: RecordStore[TrashedWorkstream] = RecordStore(trash_dir, TrashedWorkstream)
        self._items: Dict[str, TrashedWorkstream] = {}
        self._loaded = False
        self._retention_days = max(1, retention_days)

    @property
    def retention_days(self) -> int:
        return self._retention_days

    def set_retention_days(self, days: int) -> None:
        """Change the purge horizon used by subsequent loads (minimum 1 day)."""
        self._retention_days = max(1, days)

    def load(self) -> None:
        if self._loaded:
            return

        self._store.ensure_dir()
        self._items = self._store.load_all()
        self._loaded = True

        removed = self._cleanup_expired()
        if removed:
            logger.info("Purged %d trashed workstream(s) older than %d days", removed, self._retention_days)

    def _cleanup_expired(self) -> int:
        cutoff = utcnow() - timedelta(days=self._retention_days)
        expired = [item_id for item_id, item in self._items.items() if item.deleted_at < cutoff]
        for item_id in expired:
            self.permanently_delete(item_id)
        return len(expired)

    def move_to_trash(self, workstream: Workstream, reason: Optional[str] = None) -> TrashedWorkstream:
        """Persist a snapshot of workstream in the trash. The source object is not modified."""
        self.load()

        # Deletion times are strictly increasing so "most recent first" is unambiguous
        floor = max([workstream.updated_at, *(item.deleted_at for item in self._items.values())])

        data = workstream.model_dump()
        data["deleted_at"] = timestamp_after(floor)
        data["deletion_reason"] = reason
        trashed = TrashedWorkstream.model_validate(data)

        self._store.save(trashed)
        self._items[trashed.id] = trashed
        logger.info("Moved workstream %s to trash", trashed.id)
        return trashed

    def restore(self, workstream_id: str) -> Optional[Workstream]:
        """Take a workstream out of the trash.

        Returns:
            The workstream without trash fields and with a refreshed
            ``updated_at``, or None if it is not in the trash
        """
        self.load()

        trashed = self._items.pop(workstream_id, None)
        if trashed is None:
            return None

        self._store.delete(workstream_id)

        workstream = trashed.to_workstream()
        workstream.updated_at = timestamp_after(max(trashed.updated_at, trashed.deleted_at))
        return workstream

    def permanently_delete(self, workstream_id: str) -> bool:
        self.load()

        if self._items.pop(workstream_id, None) is None:
            return False

        self._store.delete(workstream_id)
        logger.info("Permanently deleted workstream %s", workstream_id)
        return True

    def discard(self, workstream_id: str) -> None:
        """Drop a trash copy whose workstream is already back in the active store."""
        self.load()
        self._items.pop(workstream_id, None)
        self._store.delete(workstream_id)

    def empty_trash(self) -> int:
        """Permanently delete everything in the trash.

        Returns:
            Number of items deleted
        """
        self.load()

        count = len(self._items)
        for item_id in list(self._items):
            self._store.delete(item_id)
        self._items.clear()
        return count

    def list(self) -> List[TrashedWorkstream]:
        """All trashed workstreams, most recently deleted first."""
        self.load()
        return sorted(self._items.values(), key=lambda item: item.deleted_at, reverse=True)

    def get(self, workstream_id: str) -> Optional[TrashedWorkstream]:
        self.load()
        return self._items.get(workstream_id)

    def __contains__(self, workstream_id: str) -> bool:
        self.load()
        return workstream_id in self._items

    def search(self, query: str) -> List[TrashSearchResult]:
        """Plain substring search over name, metadata and message content.

        At most one result per item, in no particular order of relevance.
        """
        self.load()

        results: List[TrashSearchResult] = []
        query_lower = query.lower()
        query_terms = query_lower.split()
        if not query_terms:
            return results

        for trashed in self._items.values():
            if query_lower in trashed.name.lower():
                results.append(
                    TrashSearchResult(workstream=trashed, match_context=f'Name: "{trashed.name}"', match_type="name")
                )
                continue

            if trashed.metadata is not None:
                meta_string = trashed.metadata.model_dump_json(exclude_none=True).lower()
                if any(term in meta_string for term in query_terms):
                    meta = trashed.metadata
                    preview = meta.ticket_key or meta.pr_url or meta.description or "metadata match"
                    results.append(
                        TrashSearchResult(workstream=trashed, match_context=f"Metadata: {preview}", match_type="metadata")
                    )
                    continue

            for msg in trashed.messages:
                content_lower = msg.content.lower()
                if any(term in content_lower for term in query_terms):
                    preview = match_preview(msg.content, query_terms[0])
                    results.append(
                        TrashSearchResult(workstream=trashed, match_context=f'Message: "{preview}"', match_type="message")
                    )
                    break

        return results

    def smart_search(self, query: str) -> List[TrashSearchResult]:
        """Scored search, best matches first.

        Each item gets the best single score across its fields: exact name
        100, name substring 80, metadata substring 70, type substring 60,
        message substring 50, or a keyword-overlap score (max 60, scaled by
        0.6 for message content). Items scoring 20 or less are dropped.
        """
        self.load()

        query_lower = query.lower().strip()
        terms = extract_keywords(query)

        scored: List[TrashSearchResult] = []
        for trashed in self._items.values():
            score, context, match_type = self._score_item(trashed, query_lower, terms)
            if score > MIN_SMART_SCORE:
                scored.append(
                    TrashSearchResult(workstream=trashed, match_context=context, match_type=match_type, score=score)
                )

        scored.sort(key=lambda result: result.score, reverse=True)
        return scored

    def _score_item(self, trashed: TrashedWorkstream, query_lower: str, terms: List[str]) -> Tuple[float, str, str]:
        best_score = 0.0
        best_context = ""
        best_type = "name"

        name_lower = trashed.name.lower()
        if query_lower and name_lower == query_lower:
            best_score, best_context = 100.0, f'Name: "{trashed.name}"'
        elif query_lower and query_lower in name_lower:
            best_score, best_context = 80.0, f'Name: "{trashed.name}"'
        else:
            name_score = term_score(name_lower, terms)
            if name_score > best_score:
                best_score, best_context = name_score, f'Name: "{trashed.name}"'

        if query_lower and query_lower in trashed.type.value and best_score < 60:
            best_score, best_context, best_type = 60.0, f"Type: {trashed.type.value}", "name"

        if trashed.metadata is not None:
            for field_name in SEARCHABLE_METADATA_FIELDS:
                value = getattr(trashed.metadata, field_name)
                if not value:
                    continue
                value_lower = value.lower()
                if query_lower and query_lower in value_lower and best_score < 70:
                    best_score, best_context, best_type = 70.0, f"Metadata: {value}", "metadata"
                    break
                meta_score = term_score(value_lower, terms)
                if meta_score > best_score:
                    best_score, best_context, best_type = meta_score, f"Metadata: {value}", "metadata"

        for msg in trashed.messages:
            content_lower = msg.content.lower()

            if query_lower and query_lower in content_lower and best_score < 50:
                preview = match_preview(msg.content, query_lower)
                best_score, best_context, best_type = 50.0, f'Message: "{preview}"', "message"

            # Free text is verbose, so keyword overlap counts for less here
            msg_score = term_score(content_lower, terms) * MESSAGE_TERM_WEIGHT
            if msg_score > best_score:
                preview = match_preview(msg.content, terms[0] if terms else "")
                best_score, best_context, best_type = msg_score, f'Message: "{preview}"', "message"

        return best_score, best_context, best_type

    def get_stats(self) -> TrashStats:
        self.load()

        items = list(self._items.values())
        if not items:
            return TrashStats()

        deleted_times = [item.deleted_at for item in items]
        return TrashStats(
            count=len(items),
            oldest_deleted_at=min(deleted_times),
            newest_deleted_at=max(deleted_times),
            total_messages=sum(len(item.messages) for item in items),
        )
