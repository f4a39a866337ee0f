"""Conversation state with token tracking and safe history trimming.

Trimming keeps the leading system message plus the most recent messages, and
moves the cut point so an assistant message with tool calls is never separated
from the tool responses that follow it.
"""

import math
from typing import List, Sequence

from pydantic import BaseModel, Field

from .models import AIMessage, HumanMessage, Message, SystemMessage, ToolMessage

DEFAULT_MAX_MESSAGES = 50


class ConversationState(BaseModel):
    """Message history plus running counters."""

    messages: List[Message] = Field(default_factory=list)
    token_estimate: int = 0
    turn_count: int = 0


def estimate_tokens(text: str) -> int:
    """Rough token estimate (4 chars ≈ 1 token)."""
    return math.ceil(len(text) / 4)


def estimate_message_tokens(messages: Sequence[Message]) -> int:
    return sum(estimate_tokens(msg.content) for msg in messages)


def create_conversation(system_prompt: str) -> ConversationState:
    return ConversationState(
        messages=[SystemMessage(content=system_prompt)],
        token_estimate=estimate_tokens(system_prompt),
        turn_count=0,
    )


def add_user_message(state: ConversationState, content: str) -> ConversationState:
    return ConversationState(
        messages=[*state.messages, HumanMessage(content=content)],
        token_estimate=state.token_estimate + estimate_tokens(content),
        turn_count=state.turn_count,
    )


def add_assistant_message(state: ConversationState, message: AIMessage) -> ConversationState:
    return ConversationState(
        messages=[*state.messages, message],
        token_estimate=state.token_estimate + estimate_tokens(message.content),
        turn_count=state.turn_count + 1,
    )


def add_messages(state: ConversationState, messages: Sequence[Message]) -> ConversationState:
    """Append a batch of messages; any assistant message in the batch counts as one turn."""
    has_ai = any(isinstance(msg, AIMessage) for msg in messages)
    return ConversationState(
        messages=[*state.messages, *messages],
        token_estimate=state.token_estimate + estimate_message_tokens(messages),
        turn_count=state.turn_count + (1 if has_ai else 0),
    )


def get_token_stats(state: ConversationState) -> dict:
    return {
        "estimated": state.token_estimate,
        "turns": state.turn_count,
        "message_count": len(state.messages),
    }


def _is_tool(msg: Message) -> bool:
    return isinstance(msg, ToolMessage)


def _is_ai_with_tool_calls(msg: Message) -> bool:
    return isinstance(msg, AIMessage) and msg.has_tool_calls


def find_safe_cut_point(messages: Sequence[Message], target_cut_index: int) -> int:
    """Find where to start keeping messages (after index 0) without orphaning tool responses.

    Args:
        messages: Full message history
        target_cut_index: Ideal first index to keep

    Returns:
        Index of the first message to keep after the leading message
    """
    if target_cut_index <= 1:
        return 1

    cut_index = target_cut_index

    # Leading tool responses would have no call before them: skip past them
    while cut_index < len(messages) and _is_tool(messages[cut_index]):
        cut_index += 1

    # Nothing but tool responses left; keep the original target
    if cut_index >= len(messages):
        cut_index = target_cut_index

    if cut_index > 1:
        prev_msg = messages[cut_index - 1]
        if _is_ai_with_tool_calls(prev_msg):
            expected_calls = len(prev_msg.tool_calls)

            response_count = 0
            i = cut_index
            while i < len(messages) and _is_tool(messages[i]):
                response_count += 1
                i += 1

            # Responses after the cut belong to the call before it: keep the call too
            if 0 < response_count <= expected_calls:
                cut_index -= 1

    return cut_index


def trim_messages(messages: Sequence[Message], max_messages: int = DEFAULT_MAX_MESSAGES) -> List[Message]:
    """Bound a message history to roughly ``max_messages`` entries.

    The first message (system/context) is always kept along with the most
    recent ``max_messages - 1`` messages, adjusted so tool responses stay with
    the assistant message that requested them. If the overflow boundary already
    split one call's responses, only the retained part of that set is kept.

    Args:
        messages: Message history, oldest first
        max_messages: Maximum number of messages to retain

    Returns:
        The original messages as a new list if short enough, otherwise the trimmed list

    Raises:
        ValueError: If max_messages is less than 1
    """
    if max_messages < 1:
        raise ValueError(f"max_messages must be at least 1, got {max_messages}")

    if len(messages) <= max_messages:
        return list(messages)

    ideal_cut_index = len(messages) - (max_messages - 1)
    safe_cut_index = find_safe_cut_point(messages, ideal_cut_index)

    return [messages[0], *messages[safe_cut_index:]]


def trim_conversation(state: ConversationState, max_messages: int = DEFAULT_MAX_MESSAGES) -> ConversationState:
    """Trim a conversation and recompute its token estimate from scratch."""
    if len(state.messages) <= max_messages:
        return state

    trimmed = trim_messages(state.messages, max_messages)
    return ConversationState(
        messages=trimmed,
        token_estimate=estimate_message_tokens(trimmed),
        turn_count=state.turn_count,
    )
