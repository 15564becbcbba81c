from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .context import RunContext
from .messages import Message


class ChatRequest(BaseModel):
    """One orchestration run: the conversation so far plus what the model may use.

    ``tools`` holds registry names chosen by the caller; ``tool_schemas`` is filled
    in by the pipeline from those names and is what gets passed to bind_tools().
    """

    messages: List[Message]
    stream: bool = False
    model: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)  # temperature, max_tokens overrides
    tools: Optional[List[str]] = None
    tool_schemas: Optional[List[Dict[str, Any]]] = None
    context: Optional[RunContext] = None


__all__ = ["ChatRequest"]
