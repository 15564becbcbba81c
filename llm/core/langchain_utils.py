"""Shared LangChain message conversion used by all providers."""

from __future__ import annotations

import json
from typing import Any, List, Set

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage

from llm.service.errors import ProtocolError
from llm.types.messages import Message, ToolCall


def _normalize_tool_call(tc: object) -> ToolCall:
    """Convert LangChain tool call (dict or object) to our ToolCall."""
    if isinstance(tc, dict):
        return ToolCall(
            id=tc.get("id") or "",
            name=tc.get("name") or "",
            arguments=tc.get("args") or {},
        )
    return ToolCall(
        id=getattr(tc, "id", None) or "",
        name=getattr(tc, "name", None) or "",
        arguments=getattr(tc, "args", None) or {},
    )


def parse_tool_calls_from_ai_message(ai_message: object) -> list[ToolCall] | None:
    """Extract our ToolCall list from a LangChain AIMessage (or AIMessageChunk).

    Calls without a name are partial fragments and are dropped.
    """
    raw = getattr(ai_message, "tool_calls", None) or []
    calls = [_normalize_tool_call(tc) for tc in raw]
    calls = [tc for tc in calls if tc.name]
    return calls or None


def message_text(content: Any) -> str:
    """Flatten LangChain message content to plain text.

    Content may be a string or a list of parts; text parts are joined and any
    other part is JSON encoded.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and item.get("type") == "text":
                parts.append(str(item.get("text", "")))
            else:
                parts.append(json.dumps(item, ensure_ascii=False))
        return "".join(parts)
    return str(content)


def reasoning_text(ai_message: object) -> str:
    """Return provider reasoning (e.g. DeepSeek ``reasoning_content``) if present."""
    extra = getattr(ai_message, "additional_kwargs", None) or {}
    return str(extra.get("reasoning_content") or "")


def check_tool_linkage(messages: List[Message]) -> None:
    """Raise ProtocolError unless every tool message answers an earlier assistant tool call.

    Assistant tool calls must carry a non-empty id, and each ``tool`` message's
    ``tool_call_id`` must match one of them.
    """
    issued: Set[str] = set()
    for index, m in enumerate(messages):
        if m.role == "assistant" and m.tool_call is not None:
            if not m.tool_call.id:
                raise ProtocolError(
                    f"message {index}: assistant tool call {m.tool_call.name!r} has no id"
                )
            issued.add(m.tool_call.id)
        elif m.role == "tool":
            if not m.tool_call_id:
                raise ProtocolError(f"message {index}: tool message has no tool_call_id")
            if m.tool_call_id not in issued:
                raise ProtocolError(
                    f"message {index}: tool_call_id {m.tool_call_id!r} matches no earlier tool call"
                )


def to_langchain_messages(messages: List[Message]) -> List[BaseMessage]:
    """Convert internal Message objects to LangChain message types.

    Role mapping:
        system    → SystemMessage
        user      → HumanMessage
        assistant → AIMessage; with tool_call → empty content plus exactly one tool call
        tool      → ToolMessage(tool_call_id)

    Raises ProtocolError for any other role, and for tool messages that do not
    answer an earlier tool call (see ``check_tool_linkage``).
    """
    check_tool_linkage(messages)
    lc_messages: List[BaseMessage] = []
    for m in messages:
        if m.role == "system":
            lc_messages.append(SystemMessage(content=m.content))
        elif m.role == "user":
            lc_messages.append(HumanMessage(content=m.content))
        elif m.role == "assistant":
            if m.tool_call is not None:
                tc = m.tool_call
                lc_messages.append(
                    AIMessage(
                        content="",
                        tool_calls=[{"id": tc.id, "name": tc.name, "args": dict(tc.arguments)}],
                    )
                )
            else:
                lc_messages.append(AIMessage(content=m.content))
        elif m.role == "tool":
            lc_messages.append(ToolMessage(content=m.content, tool_call_id=m.tool_call_id))
        else:
            raise ProtocolError(f"unknown role: {m.role!r}")
    return lc_messages


__all__ = [
    "check_tool_linkage",
    "message_text",
    "parse_tool_calls_from_ai_message",
    "reasoning_text",
    "to_langchain_messages",
]
