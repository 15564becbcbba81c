from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .messages import Message, ToolCall


class Usage(BaseModel):
    """Token accounting for a single LLM call."""

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class ChatResponse(BaseModel):
    """Normalized response from a chat model or pipeline."""

    message: Message
    model: str
    usage: Optional[Usage] = None
    tool_calls: List[ToolCall] = Field(default_factory=list)  # requested by the model this turn
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ModelChunk(BaseModel):
    """One partial response produced while a model streams.

    Text arrives as ``content``; tool calls are only reported once fully
    assembled, on the last chunk of the stream.
    """

    content: str = ""
    tool_calls: Optional[List[ToolCall]] = None
    reasoning: str = ""


__all__ = ["Usage", "ChatResponse", "ModelChunk"]
