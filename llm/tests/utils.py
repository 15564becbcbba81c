"""Test utilities for the llm app."""

from __future__ import annotations

import os
import threading
import time
import unittest
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from llm.service.errors import ToolFailure
from llm.types.context import RunContext
from llm.types.messages import Message, ToolCall
from llm.types.requests import ChatRequest
from llm.types.responses import ChatResponse, ModelChunk


def require_test_apis(reason: str = "Set TEST_APIS=True in the environment to run live API tests."):
    """
    Decorator to skip a test unless TEST_APIS is set to True (case-insensitive).

    Use for tests that call the real OpenAI-compatible endpoint.
    """
    test_apis = os.environ.get("TEST_APIS", "").strip().lower() == "true"
    return unittest.skipUnless(test_apis, reason)


class AddArgs(BaseModel):
    a: float = Field(description="First number")
    b: float = Field(description="Second number")


class AddNumberTool:
    name = "add_number"
    description = "Add two numbers and return the sum."
    args_schema = AddArgs

    def run(self, args: AddArgs, context: RunContext) -> str:
        return str(args.a + args.b)


class SleepArgs(BaseModel):
    label: str
    delay: float = 0.0


class SleepTool:
    """Sleeps ``delay`` seconds, then echoes ``label``. Records the threads it ran on."""

    name = "sleep_echo"
    description = "Echo a label after a delay."
    args_schema = SleepArgs

    def __init__(self) -> None:
        self.threads = set()
        self._lock = threading.Lock()

    def run(self, args: SleepArgs, context: RunContext) -> str:
        with self._lock:
            self.threads.add(threading.get_ident())
        time.sleep(args.delay)
        return args.label


class FailingTool:
    name = "always_fails"
    description = "Fails every time."
    args_schema = AddArgs

    def run(self, args: AddArgs, context: RunContext) -> str:
        raise ToolFailure(self.name, "nothing to do here")


def tool_call(name: str, call_id: str = "", **arguments) -> ToolCall:
    return ToolCall(id=call_id, name=name, arguments=arguments)


def text_response(text: str, model: str = "fake-model", **metadata) -> ChatResponse:
    return ChatResponse(
        message=Message(role="assistant", content=text),
        model=model,
        metadata=dict(metadata),
    )


def tool_calls_response(calls: List[ToolCall], text: str = "", model: str = "fake-model") -> ChatResponse:
    return ChatResponse(
        message=Message(role="assistant", content=text),
        model=model,
        tool_calls=calls,
    )


class FakeChatModel:
    """Scripted ChatModel: one entry per round.

    ``generate`` pops ChatResponses from ``responses``; ``stream`` pops lists of
    ModelChunks from ``chunks``. Every request seen is kept in ``requests``.
    """

    def __init__(
        self,
        responses: Optional[Iterable[ChatResponse]] = None,
        chunks: Optional[Iterable[List[ModelChunk]]] = None,
        repeat_last: bool = False,
    ) -> None:
        self.responses = list(responses or [])
        self.chunks = list(chunks or [])
        self.repeat_last = repeat_last
        self.requests: List[ChatRequest] = []

    def _next(self, items):
        if len(items) == 1 and self.repeat_last:
            return items[0]
        return items.pop(0)

    def generate(self, request: ChatRequest) -> ChatResponse:
        self.requests.append(request)
        return self._next(self.responses)

    def stream(self, request: ChatRequest):
        self.requests.append(request)
        for chunk in self._next(self.chunks):
            yield chunk
