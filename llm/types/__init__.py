from .messages import Message, ToolCall
from .context import RunContext
from .requests import ChatRequest
from .responses import ChatResponse, ModelChunk, Usage
from .streaming import StreamEvent

__all__ = [
    "Message",
    "ToolCall",
    "RunContext",
    "ChatRequest",
    "ChatResponse",
    "ModelChunk",
    "Usage",
    "StreamEvent",
]
