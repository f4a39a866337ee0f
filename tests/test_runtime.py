"""Tests for runtime wiring."""

from workdesk.config import Config
from workdesk.events import EventType
from workdesk.runtime import build_runtime
from workdesk.sync import GitHubChecksProvider
from workdesk.workstreams import HumanMessage, SystemMessage, WorkstreamType


def test_components_share_one_bus(tmp_path):
    runtime = build_runtime(Config(data_dir=tmp_path / "data"))
    received = []
    runtime.event_bus.subscribe(received.append)

    workstream = runtime.workstreams.create(WorkstreamType.ASK, "q")
    runtime.notifications.add(type="info", message="hi", workstream_id=workstream.id)

    assert [e.event_type for e in received] == [EventType.WORKSTREAM_CREATED, EventType.NOTIFICATION_ADDED]
    assert runtime.workstreams.trash_bin is runtime.trash_bin


def test_config_flows_into_components(tmp_path):
    config = Config(
        data_dir=tmp_path / "data",
        trash_retention_days=3,
        max_notifications=5,
        poll_interval_seconds=12,
        standard_model="model-a",
    )
    runtime = build_runtime(config)

    assert runtime.trash_bin.retention_days == 3
    assert runtime.notifications.max_notifications == 5
    assert runtime.workstreams.create(WorkstreamType.ASK, "q").llm_config.standard_model == "model-a"
    assert (tmp_path / "data" / "workstreams").is_dir()
    assert (tmp_path / "data" / "trash").is_dir()


def test_default_provider_is_github(tmp_path):
    runtime = build_runtime(Config(data_dir=tmp_path / "data"))
    assert isinstance(runtime.synchronizer._provider, GitHubChecksProvider)
    # No GITHUB_TOKEN in the test environment
    assert runtime.synchronizer.available is False


def test_poller_disabled_by_config(tmp_path, monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
    runtime = build_runtime(Config(data_dir=tmp_path / "data", poller_enabled=False))
    assert runtime.synchronizer.available is False

    enabled = build_runtime(Config(data_dir=tmp_path / "data"))
    assert enabled.synchronizer.available is True


def test_existing_data_loaded(tmp_path):
    config = Config(data_dir=tmp_path / "data")
    workstream = build_runtime(config).workstreams.create(WorkstreamType.PR, "Fix CI")

    assert build_runtime(config).workstreams.get(workstream.id).name == "Fix CI"


def test_conversation_cap_flows_into_manager(tmp_path):
    runtime = build_runtime(Config(data_dir=tmp_path / "data", max_conversation_messages=2))
    workstream = runtime.workstreams.create(WorkstreamType.ASK, "q")
    runtime.workstreams.update(
        workstream.id, messages=[SystemMessage(content="sys"), HumanMessage(content="a"), HumanMessage(content="b")]
    )

    trimmed = runtime.workstreams.trim_history(workstream.id)

    assert [m.content for m in trimmed.messages] == ["sys", "b"]
