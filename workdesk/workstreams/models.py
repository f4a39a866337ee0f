"""Pydantic models for workstreams, their conversation messages and the trash bin."""

import json
import secrets
import time
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkstreamType(str, Enum):
    """Kind of work a workstream tracks."""

    PR = "pr"
    TICKET = "ticket"
    ASK = "ask"
    INVESTIGATION = "investigation"
    CUSTOM = "custom"


class WorkstreamStatus(str, Enum):
    """Workstream status.

    No transition table is enforced: any status may be set from any other.
    DONE and ERROR count as terminal for queries, but ERROR is routinely
    re-entered as IN_PROGRESS on retry.
    """

    NEEDS_INPUT = "needs_input"
    IN_PROGRESS = "in_progress"
    WAITING = "waiting"
    DONE = "done"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({WorkstreamStatus.DONE, WorkstreamStatus.ERROR})
ATTENTION_STATUSES = frozenset({WorkstreamStatus.NEEDS_INPUT, WorkstreamStatus.ERROR})

STATUS_INDICATORS: Dict[WorkstreamStatus, str] = {
    WorkstreamStatus.NEEDS_INPUT: "[!]",
    WorkstreamStatus.IN_PROGRESS: "[~]",
    WorkstreamStatus.WAITING: "[·]",
    WorkstreamStatus.DONE: "[✓]",
    WorkstreamStatus.ERROR: "[✗]",
}

STATUS_COLORS: Dict[WorkstreamStatus, str] = {
    WorkstreamStatus.NEEDS_INPUT: "red",
    WorkstreamStatus.IN_PROGRESS: "yellow",
    WorkstreamStatus.WAITING: "cyan",
    WorkstreamStatus.DONE: "green",
    WorkstreamStatus.ERROR: "red",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def timestamp_after(previous: Optional[datetime]) -> datetime:
    """Return the current time, nudged forward so it is strictly later than previous."""
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def generate_id(prefix: str) -> str:
    """Generate an opaque unique id such as ``ws_1718000000000_3fa9c1b``."""
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def _parse_datetime(v):
    """Accept ISO strings and epoch milliseconds as well as datetimes."""
    if v is None:
        return None
    if isinstance(v, str):
        v = datetime.fromisoformat(v.replace("Z", "+00:00"))
    elif isinstance(v, (int, float)):
        v = datetime.fromtimestamp(v / 1000, tz=timezone.utc)
    if isinstance(v, datetime) and v.tzinfo is None:
        v = v.replace(tzinfo=timezone.utc)
    return v


# ============================================================================
# Messages
# ============================================================================


class ToolCall(BaseModel):
    """A tool invocation requested by the assistant."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class _MessageBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def stringify_content(cls, v):
        """Structured (multi-part) content is stored as its JSON text."""
        if v is None:
            return ""
        if not isinstance(v, str):
            return json.dumps(v, ensure_ascii=False)
        return v


class HumanMessage(_MessageBase):
    type: Literal["human"] = "human"


class SystemMessage(_MessageBase):
    type: Literal["system"] = "system"


class AIMessage(_MessageBase):
    type: Literal["ai"] = "ai"
    tool_calls: List[ToolCall] = Field(default_factory=list)

    @property
    def has_tool_calls(self) -> bool:
        return len(self.tool_calls) > 0


class ToolMessage(_MessageBase):
    type: Literal["tool"] = "tool"
    tool_call_id: str
    name: Optional[str] = None


Message = Annotated[
    Union[HumanMessage, SystemMessage, AIMessage, ToolMessage],
    Field(discriminator="type"),
]


# ============================================================================
# Workstreams
# ============================================================================


class WorkstreamMetadata(BaseModel):
    """External references attached to a workstream.

    Extra keys are kept so callers can stash their own free-form fields.
    """

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    pr_url: Optional[str] = None
    pr_number: Optional[int] = None
    pr_owner: Optional[str] = None
    pr_repo: Optional[str] = None
    ticket_key: Optional[str] = None
    ticket_url: Optional[str] = None
    description: Optional[str] = None


class LLMConfig(BaseModel):
    """Per-workstream model selection."""

    model_config = ConfigDict(extra="ignore")

    standard_model: Optional[str] = None
    external_comms_model: Optional[str] = None


class ToolCallProgress(BaseModel):
    name: str
    timestamp: datetime
    preview: str = ""

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_datetime(cls, v):
        return _parse_datetime(v)


class LiveProgress(BaseModel):
    """Transient progress snapshot that survives switching between workstreams."""

    model_config = ConfigDict(extra="ignore")

    cursor_status: Optional[str] = None
    cursor_started_at: Optional[datetime] = None
    tool_calls: List[ToolCallProgress] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utcnow)

    @field_validator("cursor_started_at", "last_updated", mode="before")
    @classmethod
    def parse_datetime(cls, v):
        return _parse_datetime(v)


class Workstream(BaseModel):
    """A tracked unit of work with its own status and conversation history.

    ``id`` and ``created_at`` never change after creation; ``created_at`` is the
    stable sort key for numbered listings. ``version`` increases on every
    persisted write and backs optimistic concurrency checks.
    """

    model_config = ConfigDict(
        extra="ignore",  # Unknown fields in older/newer files are dropped
        validate_assignment=False,
    )

    id: str
    name: str
    type: WorkstreamType
    status: WorkstreamStatus = WorkstreamStatus.WAITING
    status_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 1

    messages: List[Message] = Field(default_factory=list)
    token_estimate: int = 0
    turn_count: int = 0

    metadata: Optional[WorkstreamMetadata] = None

    personality: str = "proactive"
    character: str = "none"
    datadog_enabled: bool = False
    llm_config: Optional[LLMConfig] = None

    is_processing: bool = False
    live_progress: Optional[LiveProgress] = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def parse_datetime(cls, v):
        """Parse ISO strings or epoch milliseconds into aware datetimes."""
        return _parse_datetime(v)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def indicator(self) -> str:
        return STATUS_INDICATORS[self.status]


class TrashedWorkstream(Workstream):
    """A soft-deleted workstream waiting in the trash bin."""

    deleted_at: datetime = Field(default_factory=utcnow)
    deletion_reason: Optional[str] = None

    @field_validator("deleted_at", mode="before")
    @classmethod
    def parse_deleted_at(cls, v):
        return _parse_datetime(v)

    def to_workstream(self) -> Workstream:
        """Strip the trash-only fields."""
        data = self.model_dump(exclude={"deleted_at", "deletion_reason"})
        return Workstream.model_validate(data)


class TrashSearchResult(BaseModel):
    """A trash bin search hit with a short preview of where it matched."""

    workstream: TrashedWorkstream
    match_context: str
    match_type: Literal["name", "message", "metadata"]
    score: float = 0.0


class TrashStats(BaseModel):
    count: int = 0
    oldest_deleted_at: Optional[datetime] = None
    newest_deleted_at: Optional[datetime] = None
    total_messages: int = 0
