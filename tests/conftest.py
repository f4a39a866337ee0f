"""Test configuration and fixtures."""

from pathlib import Path

import pytest

from workdesk.events import EventBus
from workdesk.notifications import NotificationQueue
from workdesk.workstreams import TrashBin, WorkstreamManager


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch) -> Path:
    """Keep config and data lookups away from the real home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    return home


@pytest.fixture
def data_dir(tmp_path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def trash_bin(data_dir) -> TrashBin:
    return TrashBin(data_dir / "trash")


@pytest.fixture
def manager(data_dir, trash_bin, event_bus) -> WorkstreamManager:
    return WorkstreamManager(data_dir / "workstreams", trash_bin, event_bus=event_bus)


@pytest.fixture
def queue(event_bus) -> NotificationQueue:
    return NotificationQueue(max_notifications=50, event_bus=event_bus)


@pytest.fixture
def recorded_events(event_bus) -> list:
    """Every event emitted on the shared bus during the test."""
    events = []
    event_bus.subscribe(events.append)
    return events
