"""Workstream tracking: models, persistence, trash bin and conversation trimming."""

from .conversation import (
    ConversationState,
    add_assistant_message,
    add_messages,
    add_user_message,
    create_conversation,
    estimate_tokens,
    get_token_stats,
    trim_conversation,
    trim_messages,
)
from .manager import WorkstreamManager
from .models import (
    STATUS_COLORS,
    STATUS_INDICATORS,
    AIMessage,
    HumanMessage,
    LiveProgress,
    LLMConfig,
    Message,
    SystemMessage,
    ToolCall,
    ToolMessage,
    TrashedWorkstream,
    TrashSearchResult,
    TrashStats,
    Workstream,
    WorkstreamMetadata,
    WorkstreamStatus,
    WorkstreamType,
)
from .storage import RecordStore
from .trash import TrashBin

__all__ = [
    "AIMessage",
    "ConversationState",
    "HumanMessage",
    "LLMConfig",
    "LiveProgress",
    "Message",
    "RecordStore",
    "STATUS_COLORS",
    "STATUS_INDICATORS",
    "SystemMessage",
    "ToolCall",
    "ToolMessage",
    "TrashBin",
    "TrashSearchResult",
    "TrashStats",
    "TrashedWorkstream",
    "Workstream",
    "WorkstreamManager",
    "WorkstreamMetadata",
    "WorkstreamStatus",
    "WorkstreamType",
    "add_assistant_message",
    "add_messages",
    "add_user_message",
    "create_conversation",
    "estimate_tokens",
    "get_token_stats",
    "trim_conversation",
    "trim_messages",
]
