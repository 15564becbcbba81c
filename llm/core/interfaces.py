from __future__ import annotations

from typing import Iterator, Protocol, runtime_checkable

from llm.types.requests import ChatRequest
from llm.types.responses import ChatResponse, ModelChunk


@runtime_checkable
class ChatModel(Protocol):
    """
    Provider-agnostic chat model interface.

    Concrete implementations wrap LangChain chat models (e.g. ChatOpenAI)
    rather than calling provider SDKs directly. When ``request.tool_schemas`` is
    set the tools are bound for that call only.
    """

    name: str

    def generate(self, request: ChatRequest) -> ChatResponse:
        """Run a single non-streaming chat completion.

        The returned ``ChatResponse.tool_calls`` lists any tools the model wants
        invoked; an empty list means ``message.content`` is a final answer.
        """

        ...

    def stream(self, request: ChatRequest) -> Iterator[ModelChunk]:
        """Stream partial responses: text chunks as they arrive, then the
        assembled tool calls (if any) as the last chunk."""

        ...


__all__ = ["ChatModel"]
