"""Background synchronization of workstream status with external check providers."""

from .github import GitHubChecksProvider
from .poller import BackgroundSynchronizer, PollCacheEntry
from .provider import CheckStatus, CheckSummary, StatusProvider, aggregate_status, format_status_message

__all__ = [
    "BackgroundSynchronizer",
    "CheckStatus",
    "CheckSummary",
    "GitHubChecksProvider",
    "PollCacheEntry",
    "StatusProvider",
    "aggregate_status",
    "format_status_message",
]
