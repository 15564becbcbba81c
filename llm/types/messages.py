from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


Role = Literal["system", "user", "assistant", "tool"]


class ToolCall(BaseModel):
    """Represents a tool invocation requested by the model."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""  # correlates call with result; synthesized by the pipeline when empty
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict, alias="args")


class Message(BaseModel):
    """Generic chat message used across pipelines, providers and the HTTP API.

    An assistant message that requests a tool carries exactly one ``tool_call``
    and empty ``content``; the matching ``tool`` message carries ``tool_call_id``.
    """

    role: Role
    content: str = ""
    name: Optional[str] = None
    tool_call: Optional[ToolCall] = None  # assistant messages requesting a tool
    tool_call_id: Optional[str] = None  # tool result messages
    metadata: Dict[str, Any] = Field(default_factory=dict)


__all__ = ["Role", "Message", "ToolCall"]
