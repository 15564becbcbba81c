from __future__ import annotations

from typing import Any, Dict, Literal

from pydantic import BaseModel, Field


StreamEventType = Literal[
    "content_delta",
    "tool_result",
    "error",
    "done",
]


class StreamEvent(BaseModel):
    """Single streaming event emitted during a chat run.

    ``data`` by type:
        content_delta -> {"text": str}
        tool_result   -> {"result": str, "tool_name": str, "tool_call_id": str}
        error         -> {"message": str, "error_type": str}
        done          -> {}
    """

    event_type: StreamEventType
    data: Dict[str, Any] = Field(default_factory=dict)
    sequence: int
    run_id: str


__all__ = ["StreamEventType", "StreamEvent"]
