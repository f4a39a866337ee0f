"""Process-wide wiring of the workstream core.

Exactly one of each component is built here at startup and handed to its
collaborators; nothing in the package keeps module-level instances.
"""

from dataclasses import dataclass
from typing import Optional

from .config import Config, load_config
from .events import EventBus
from .notifications import NotificationQueue
from .sync import BackgroundSynchronizer, GitHubChecksProvider, StatusProvider
from .workstreams import LLMConfig, TrashBin, WorkstreamManager


@dataclass
class Runtime:
    config: Config
    event_bus: EventBus
    trash_bin: TrashBin
    workstreams: WorkstreamManager
    notifications: NotificationQueue
    synchronizer: BackgroundSynchronizer


def build_runtime(
    config: Optional[Config] = None,
    provider: Optional[StatusProvider] = None,
    load: bool = True,
) -> Runtime:
    """Build the workstream core from configuration.

    Args:
        config: Configuration to use; loaded from disk when omitted
        provider: Status provider for background sync; defaults to GitHub checks
        load: Hydrate the workstream and trash stores immediately

    Returns:
        Runtime holding one instance of every component
    """
    if config is None:
        config = load_config()
    if provider is None:
        provider = GitHubChecksProvider()

    bus = EventBus()
    trash_bin = TrashBin(config.trash_dir, retention_days=config.trash_retention_days)
    manager = WorkstreamManager(
        config.workstreams_dir,
        trash_bin,
        event_bus=bus,
        default_llm_config=LLMConfig(
            standard_model=config.standard_model,
            external_comms_model=config.external_comms_model,
        ),
        max_conversation_messages=config.max_conversation_messages,
    )
    queue = NotificationQueue(max_notifications=config.max_notifications, event_bus=bus)
    synchronizer = BackgroundSynchronizer(
        manager,
        queue,
        provider,
        poll_interval=config.poll_interval_seconds,
        enabled=config.poller_enabled,
        event_bus=bus,
    )

    if load:
        trash_bin.load()
        manager.load()

    return Runtime(
        config=config,
        event_bus=bus,
        trash_bin=trash_bin,
        workstreams=manager,
        notifications=queue,
        synchronizer=synchronizer,
    )
