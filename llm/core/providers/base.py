"""Base class for LangChain-backed ChatModel implementations.

Encapsulates the shared generate/stream logic so provider subclasses only
need to supply a configured LangChain chat model client.
"""

from __future__ import annotations

from typing import Iterator

from llm.core.interfaces import ChatModel
from llm.core.langchain_utils import (
    message_text,
    parse_tool_calls_from_ai_message,
    reasoning_text,
    to_langchain_messages,
)
from llm.service.errors import LLMProviderError
from llm.types.messages import Message
from llm.types.requests import ChatRequest
from llm.types.responses import ChatResponse, ModelChunk, Usage


class BaseLangChainChatModel(ChatModel):
    """Shared generate/stream logic for all LangChain-backed providers.

    Subclasses must set ``self.name`` and ``self._client`` in their
    ``__init__`` (the LangChain chat model instance, e.g. ``ChatOpenAI``).
    They may override ``_provider_label`` for error messages.
    """

    name: str
    _client: object  # LangChain BaseChatModel instance
    _provider_label: str = "LLM"

    def _bound_client(self, request: ChatRequest):
        client = self._client
        if request.tool_schemas:
            client = client.bind_tools(request.tool_schemas)
        if request.params:
            client = client.bind(**request.params)
        return client

    def generate(self, request: ChatRequest) -> ChatResponse:
        lc_messages = to_langchain_messages(request.messages)
        client = self._bound_client(request)
        try:
            result = client.invoke(lc_messages)
        except Exception as exc:
            raise LLMProviderError(
                f"{self._provider_label} generate failed for model={self.name}"
            ) from exc

        message = Message(
            role="assistant",
            content=message_text(getattr(result, "content", "")),
        )
        metadata = {}
        reasoning = reasoning_text(result)
        if reasoning:
            metadata["reasoning"] = reasoning

        usage = None
        usage_meta = getattr(result, "usage_metadata", None)
        if isinstance(usage_meta, dict):
            usage = Usage(
                prompt_tokens=usage_meta.get("input_tokens"),
                completion_tokens=usage_meta.get("output_tokens"),
                total_tokens=usage_meta.get("total_tokens"),
            )

        return ChatResponse(
            message=message,
            model=self.name,
            usage=usage,
            tool_calls=parse_tool_calls_from_ai_message(result) or [],
            metadata=metadata,
        )

    def stream(self, request: ChatRequest) -> Iterator[ModelChunk]:
        lc_messages = to_langchain_messages(request.messages)
        client = self._bound_client(request)
        aggregate = None

        try:
            for chunk in client.stream(lc_messages):
                # AIMessageChunk supports "+", which merges partial tool call args.
                aggregate = chunk if aggregate is None else aggregate + chunk
                text = message_text(getattr(chunk, "content", ""))
                reasoning = reasoning_text(chunk)
                if text or reasoning:
                    yield ModelChunk(content=text, reasoning=reasoning)
        except Exception as exc:
            raise LLMProviderError(
                f"{self._provider_label} streaming failed for model={self.name}"
            ) from exc

        tool_calls = parse_tool_calls_from_ai_message(aggregate) if aggregate is not None else None
        if tool_calls:
            yield ModelChunk(tool_calls=tool_calls)


__all__ = ["BaseLangChainChatModel"]
