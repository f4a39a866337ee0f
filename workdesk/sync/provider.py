"""Status provider interface consumed by the background synchronizer."""

from enum import Enum
from typing import List, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from workdesk.workstreams.models import WorkstreamMetadata


class CheckStatus(str, Enum):
    """Aggregate state of a workstream's external checks."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    UNKNOWN = "unknown"


class CheckSummary(BaseModel):
    passing: int = Field(default=0, ge=0)
    pending: int = Field(default=0, ge=0)
    failing: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    failing_names: List[str] = Field(default_factory=list)

    @property
    def overall(self) -> CheckStatus:
        return aggregate_status(self)


def aggregate_status(summary: CheckSummary) -> CheckStatus:
    """Collapse check counts into one status. Any failure wins, then anything pending."""
    if summary.failing > 0:
        return CheckStatus.FAILURE
    if summary.pending > 0:
        return CheckStatus.PENDING
    if summary.total > 0 and summary.passing == summary.total:
        return CheckStatus.SUCCESS
    return CheckStatus.UNKNOWN


def format_status_message(summary: CheckSummary) -> str:
    """Human-readable one-liner for a workstream's status message."""
    overall = aggregate_status(summary)
    if overall is CheckStatus.SUCCESS:
        return f"✅ All {summary.total} checks passed"
    if overall is CheckStatus.FAILURE:
        return f"❌ {summary.failing}/{summary.total} checks failed"
    if overall is CheckStatus.PENDING:
        return f"⏳ {summary.passing}/{summary.total} passed, {summary.pending} pending"
    return f"Checks: {summary.passing} passed, {summary.pending} pending, {summary.failing} failed"


@runtime_checkable
class StatusProvider(Protocol):
    """Answers "what is the current check state of this external reference?".

    Retries and backoff are the provider's business; the synchronizer treats
    any exception as a one-off failure for that workstream.
    """

    def is_configured(self) -> bool: ...

    async def get_check_summary(self, metadata: WorkstreamMetadata) -> CheckSummary: ...
