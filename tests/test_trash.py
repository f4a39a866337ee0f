"""Tests for the trash bin."""

import json
from datetime import timedelta

import pytest

from workdesk.workstreams import (
    AIMessage,
    HumanMessage,
    TrashBin,
    Workstream,
    WorkstreamMetadata,
    WorkstreamType,
)
from workdesk.workstreams.models import utcnow
from workdesk.workstreams.trash import extract_keywords, match_preview, term_score


def make_workstream(ws_id="ws_1", name="Fix login flow", type=WorkstreamType.TICKET, metadata=None, messages=None):
    return Workstream(id=ws_id, name=name, type=type, metadata=metadata, messages=messages or [])


def write_trashed(trash_dir, ws_id, deleted_at, name="Old work"):
    trash_dir.mkdir(parents=True, exist_ok=True)
    record = {
        "id": ws_id,
        "name": name,
        "type": "custom",
        "created_at": (deleted_at - timedelta(days=1)).isoformat(),
        "updated_at": (deleted_at - timedelta(days=1)).isoformat(),
        "deleted_at": deleted_at.isoformat(),
    }
    (trash_dir / f"{ws_id}.json").write_text(json.dumps(record))


class TestMoveAndRestore:
    def test_move_to_trash_persists_snapshot(self, trash_bin, data_dir):
        workstream = make_workstream()
        trashed = trash_bin.move_to_trash(workstream, reason="done with it")

        assert trashed.id == workstream.id
        assert trashed.deletion_reason == "done with it"
        assert trashed.deleted_at > workstream.updated_at
        assert (data_dir / "trash" / "ws_1.json").exists()
        # Source untouched
        assert not hasattr(workstream, "deleted_at")

    def test_move_snapshot_independent_of_source(self, trash_bin):
        workstream = make_workstream(messages=[HumanMessage(content="hi")])
        trash_bin.move_to_trash(workstream)
        workstream.messages.append(HumanMessage(content="later"))
        assert len(trash_bin.get("ws_1").messages) == 1

    def test_restore_strips_trash_fields(self, trash_bin, data_dir):
        workstream = make_workstream()
        trashed = trash_bin.move_to_trash(workstream, reason="oops")

        restored = trash_bin.restore("ws_1")

        assert isinstance(restored, Workstream)
        assert "deleted_at" not in restored.model_dump()
        assert restored.updated_at > trashed.deleted_at
        assert trash_bin.get("ws_1") is None
        assert not (data_dir / "trash" / "ws_1.json").exists()

    def test_restore_missing_returns_none(self, trash_bin):
        assert trash_bin.restore("ws_missing") is None

    def test_permanently_delete(self, trash_bin, data_dir):
        trash_bin.move_to_trash(make_workstream())
        assert trash_bin.permanently_delete("ws_1") is True
        assert trash_bin.permanently_delete("ws_1") is False
        assert not (data_dir / "trash" / "ws_1.json").exists()

    def test_empty_trash(self, trash_bin):
        trash_bin.move_to_trash(make_workstream("ws_1"))
        trash_bin.move_to_trash(make_workstream("ws_2"))
        assert trash_bin.empty_trash() == 2
        assert trash_bin.list() == []

    def test_list_newest_deletion_first(self, trash_bin):
        trash_bin.move_to_trash(make_workstream("ws_1"))
        trash_bin.move_to_trash(make_workstream("ws_2"))
        assert [item.id for item in trash_bin.list()] == ["ws_2", "ws_1"]


class TestPersistenceAndRetention:
    def test_reload_from_disk(self, trash_bin, data_dir):
        trash_bin.move_to_trash(make_workstream(), reason="r")

        fresh = TrashBin(data_dir / "trash")
        item = fresh.get("ws_1")
        assert item is not None
        assert item.deletion_reason == "r"

    def test_expired_items_purged_on_load(self, data_dir):
        trash_dir = data_dir / "trash"
        write_trashed(trash_dir, "ws_old", utcnow() - timedelta(days=31))
        write_trashed(trash_dir, "ws_new", utcnow() - timedelta(days=5))

        bin_ = TrashBin(trash_dir)
        assert [item.id for item in bin_.list()] == ["ws_new"]
        assert not (trash_dir / "ws_old.json").exists()

    def test_custom_retention(self, data_dir):
        trash_dir = data_dir / "trash"
        write_trashed(trash_dir, "ws_a", utcnow() - timedelta(days=3))

        bin_ = TrashBin(trash_dir)
        bin_.set_retention_days(2)
        assert bin_.list() == []

    def test_retention_clamped_to_one_day(self, trash_bin):
        trash_bin.set_retention_days(0)
        assert trash_bin.retention_days == 1
        trash_bin.set_retention_days(-10)
        assert trash_bin.retention_days == 1

    def test_corrupt_file_skipped(self, data_dir):
        trash_dir = data_dir / "trash"
        write_trashed(trash_dir, "ws_ok", utcnow())
        (trash_dir / "ws_bad.json").write_text("{not json")

        bin_ = TrashBin(trash_dir)
        assert [item.id for item in bin_.list()] == ["ws_ok"]

    def test_non_utf8_file_skipped(self, data_dir):
        trash_dir = data_dir / "trash"
        write_trashed(trash_dir, "ws_ok", utcnow())
        (trash_dir / "ws_binary.json").write_bytes(b"\x80\x81")

        bin_ = TrashBin(trash_dir)
        assert [item.id for item in bin_.list()] == ["ws_ok"]

    def test_epoch_millisecond_timestamps_accepted(self, data_dir):
        trash_dir = data_dir / "trash"
        trash_dir.mkdir(parents=True)
        now_ms = int(utcnow().timestamp() * 1000)
        record = {
            "id": "ws_ms",
            "name": "Legacy",
            "type": "ask",
            "status": "done",
            "createdAt": now_ms,
            "created_at": now_ms - 1000,
            "updated_at": now_ms,
            "deleted_at": now_ms,
            "unknownField": True,
        }
        (trash_dir / "ws_ms.json").write_text(json.dumps(record))

        item = TrashBin(trash_dir).get("ws_ms")
        assert item is not None
        assert item.deleted_at.tzinfo is not None

    def test_stats(self, trash_bin):
        assert trash_bin.get_stats().count == 0
        assert trash_bin.get_stats().oldest_deleted_at is None

        first = trash_bin.move_to_trash(make_workstream("ws_1", messages=[HumanMessage(content="a")]))
        second = trash_bin.move_to_trash(
            make_workstream("ws_2", messages=[HumanMessage(content="b"), AIMessage(content="c")])
        )

        stats = trash_bin.get_stats()
        assert stats.count == 2
        assert stats.total_messages == 3
        assert stats.oldest_deleted_at == first.deleted_at
        assert stats.newest_deleted_at == second.deleted_at


class TestSearch:
    def test_name_match(self, trash_bin):
        trash_bin.move_to_trash(make_workstream(name="Refactor billing"))
        results = trash_bin.search("billing")
        assert len(results) == 1
        assert results[0].match_type == "name"

    def test_metadata_match(self, trash_bin):
        trash_bin.move_to_trash(make_workstream(metadata=WorkstreamMetadata(ticket_key="PROJ-42")))
        results = trash_bin.search("proj-42")
        assert results[0].match_type == "metadata"
        assert results[0].match_context == "Metadata: PROJ-42"

    def test_message_match_one_per_item(self, trash_bin):
        messages = [HumanMessage(content="the cache is stale"), AIMessage(content="cache rebuilt")]
        trash_bin.move_to_trash(make_workstream(messages=messages))
        results = trash_bin.search("cache")
        assert len(results) == 1
        assert results[0].match_type == "message"
        assert "cache" in results[0].match_context

    def test_no_match(self, trash_bin):
        trash_bin.move_to_trash(make_workstream())
        assert trash_bin.search("nothing-here") == []

    def test_blank_query(self, trash_bin):
        trash_bin.move_to_trash(make_workstream())
        assert trash_bin.search("   ") == []


class TestSmartSearch:
    def test_metadata_ticket_ranks_above_message_text(self, trash_bin):
        trash_bin.move_to_trash(
            make_workstream("ws_ticket", name="Fix login", metadata=WorkstreamMetadata(ticket_key="PROJ-123"))
        )
        trash_bin.move_to_trash(
            make_workstream(
                "ws_chatter",
                name="Unrelated",
                messages=[HumanMessage(content="someone mentioned proj-123 in passing")],
            )
        )

        results = trash_bin.smart_search("PROJ-123")

        assert results[0].workstream.id == "ws_ticket"
        assert results[0].score >= 70
        assert results[0].match_type == "metadata"
        assert results[1].workstream.id == "ws_chatter"
        assert results[1].score < results[0].score

    def test_exact_name_scores_100(self, trash_bin):
        trash_bin.move_to_trash(make_workstream(name="Deploy pipeline"))
        results = trash_bin.smart_search("deploy pipeline")
        assert results[0].score == 100

    def test_name_substring_scores_80(self, trash_bin):
        trash_bin.move_to_trash(make_workstream(name="Deploy pipeline cleanup"))
        results = trash_bin.smart_search("pipeline")
        assert results[0].score == 80

    def test_type_match_scores_60(self, trash_bin):
        trash_bin.move_to_trash(make_workstream(name="Something", type=WorkstreamType.INVESTIGATION))
        results = trash_bin.smart_search("investigation")
        assert results[0].score == 60

    def test_keyword_overlap_in_name(self, trash_bin):
        trash_bin.move_to_trash(make_workstream(name="Flaky payment tests"))
        # One of two keywords present -> 30
        results = trash_bin.smart_search("payment retries")
        assert results[0].score == pytest.approx(30)

    def test_message_overlap_down_weighted(self, trash_bin):
        messages = [HumanMessage(content="payment retries keep failing")]
        trash_bin.move_to_trash(make_workstream(name="Misc", messages=messages))
        results = trash_bin.smart_search("the payment, retries!")
        # Substring doesn't match, full keyword overlap is 60 * 0.6
        assert results[0].score == pytest.approx(36)

    def test_low_scores_dropped(self, trash_bin):
        trash_bin.move_to_trash(make_workstream(name="Alpha beta gamma"))
        # 1 of 3 keywords = 20, which is not above the threshold
        assert trash_bin.smart_search("alpha delta epsilon") == []

    def test_results_sorted_descending(self, trash_bin):
        trash_bin.move_to_trash(make_workstream("ws_a", name="billing"))
        trash_bin.move_to_trash(make_workstream("ws_b", name="billing export job"))
        scores = [r.score for r in trash_bin.smart_search("billing")]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == 100


class TestHelpers:
    def test_extract_keywords(self):
        assert extract_keywords("What is the PR for PROJ-123?") == ["proj-123"]
        assert extract_keywords("fix the flaky login tests") == ["fix", "flaky", "login", "tests"]

    def test_term_score(self):
        assert term_score("anything", []) == 0
        assert term_score("login flow", ["login", "cache"]) == 30

    def test_match_preview_around_term(self):
        content = "x" * 100 + " needle " + "y" * 100
        preview = match_preview(content, "needle")
        assert preview.startswith("...")
        assert preview.endswith("...")
        assert "needle" in preview

    def test_match_preview_without_term(self):
        assert match_preview("short\ntext", "") == "short text"
