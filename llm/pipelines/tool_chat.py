"""Tool-calling chat pipeline: model rounds until an answer without tool calls."""

from __future__ import annotations

import itertools
import logging
import secrets
from contextlib import closing
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from llm.core.interfaces import ChatModel
from llm.core.langchain_utils import check_tool_linkage
from llm.core.registry import ModelRegistry, get_model_registry
from llm.pipelines.base import BasePipeline
from llm.pipelines.registry import get_pipeline_registry
from llm.service.errors import LLMTimeoutError, LLMToolLoopLimitError
from llm.service.policies import get_max_tool_rounds, get_tool_max_workers
from llm.tools import tools_to_langchain_schemas
from llm.tools.dispatcher import ToolDispatcher
from llm.tools.registry import ToolRegistry, get_tool_registry
from llm.types.context import RunContext
from llm.types.messages import Message, ToolCall
from llm.types.requests import ChatRequest
from llm.types.responses import ChatResponse
from llm.types.streaming import StreamEvent

logger = logging.getLogger(__name__)

_FROM_SETTINGS = object()


class Conversation:
    """Append-only message list owned by a single run.

    Also owns the run's tool call id counter: ids the model leaves empty, or
    that repeat one already seen in this run, are replaced with fresh ones.
    """

    def __init__(self, messages: Iterable[Message]) -> None:
        self._messages: List[Message] = list(messages)
        self._counter = itertools.count(1)
        self._seen_ids: Set[str] = set()
        for m in self._messages:
            if m.tool_call is not None and m.tool_call.id:
                self._seen_ids.add(m.tool_call.id)
            if m.tool_call_id:
                self._seen_ids.add(m.tool_call_id)

    @property
    def messages(self) -> List[Message]:
        """Snapshot of the conversation so far."""
        return list(self._messages)

    def _new_id(self) -> str:
        while True:
            candidate = f"toolcall_{next(self._counter)}_{secrets.token_hex(4)}"
            if candidate not in self._seen_ids:
                return candidate

    def assign_ids(self, tool_calls: Iterable[ToolCall]) -> List[ToolCall]:
        assigned = []
        for tc in tool_calls:
            tc_id = tc.id
            if not tc_id or tc_id in self._seen_ids:
                tc_id = self._new_id()
            self._seen_ids.add(tc_id)
            assigned.append(tc if tc_id == tc.id else tc.model_copy(update={"id": tc_id}))
        return assigned

    def append_tool_exchange(self, tool_call: ToolCall, result: Message) -> None:
        """Append the call and its result, always as an adjacent pair."""
        self._messages.append(Message(role="assistant", content="", tool_call=tool_call))
        self._messages.append(result)


class ToolChatPipeline(BasePipeline):
    """LLM-driven tool calling via bind_tools().

    Each round invokes the model with the whole conversation. Requested tools
    are dispatched and their results appended, then the model is asked again;
    the first response without tool calls ends the run.
    """

    id = "tool_chat"
    capabilities = {"streaming": True, "tools": True}

    def __init__(
        self,
        max_rounds=_FROM_SETTINGS,
        max_workers: Optional[int] = None,
        tool_registry: Optional[ToolRegistry] = None,
        model_registry: Optional[ModelRegistry] = None,
    ) -> None:
        self._max_rounds = max_rounds
        self._max_workers = max_workers
        self._tool_registry = tool_registry
        self._model_registry = model_registry

    @property
    def max_rounds(self) -> Optional[int]:
        if self._max_rounds is _FROM_SETTINGS:
            return get_max_tool_rounds()
        return self._max_rounds

    def run(self, request: ChatRequest) -> ChatResponse:
        chat_model, req, dispatcher = self._prepare(request)
        context = req.context or RunContext.create()
        conversation = Conversation(req.messages)

        for round_no in self._rounds(context):
            response = chat_model.generate(req.model_copy(update={"messages": conversation.messages}))
            if not response.tool_calls:
                response.metadata.setdefault("rounds", round_no)
                return response

            if response.message.content:
                logger.debug("Model text alongside tool calls (run %s): %s", context.run_id, response.message.content)
            calls = conversation.assign_ids(response.tool_calls)
            logger.info(
                "Run %s round %d: dispatching %s",
                context.run_id,
                round_no,
                [tc.name for tc in calls],
            )
            with closing(dispatcher.iter_dispatch(calls, context)) as results:
                for tool_call, result in results:
                    conversation.append_tool_exchange(tool_call, result)

    def stream(self, request: ChatRequest) -> Iterator[StreamEvent]:
        chat_model, req, dispatcher = self._prepare(request)
        context = req.context or RunContext.create()
        run_id = context.run_id
        conversation = Conversation(req.messages)
        sequence = itertools.count(1)

        for round_no in self._rounds(context):
            tool_calls: List[ToolCall] = []
            round_req = req.model_copy(update={"messages": conversation.messages})
            for chunk in chat_model.stream(round_req):
                if chunk.content:
                    yield StreamEvent(
                        event_type="content_delta",
                        data={"text": chunk.content},
                        sequence=next(sequence),
                        run_id=run_id,
                    )
                if chunk.tool_calls:
                    tool_calls.extend(chunk.tool_calls)

            if not tool_calls:
                return

            calls = conversation.assign_ids(tool_calls)
            logger.info(
                "Run %s round %d: dispatching %s (stream)",
                run_id,
                round_no,
                [tc.name for tc in calls],
            )
            exchanged: List[Tuple[ToolCall, Message]] = []
            with closing(dispatcher.iter_dispatch(calls, context)) as results:
                for tool_call, result in results:
                    exchanged.append((tool_call, result))
                    yield StreamEvent(
                        event_type="tool_result",
                        data={
                            "result": result.content,
                            "tool_name": tool_call.name,
                            "tool_call_id": tool_call.id,
                        },
                        sequence=next(sequence),
                        run_id=run_id,
                    )
            for tool_call, result in exchanged:
                conversation.append_tool_exchange(tool_call, result)

    def _rounds(self, context: RunContext) -> Iterator[int]:
        """Yield round numbers from 1, enforcing the round guard and the deadline."""
        max_rounds = self.max_rounds
        for round_no in itertools.count(1):
            if max_rounds is not None and round_no > max_rounds:
                raise LLMToolLoopLimitError(max_rounds)
            if context.deadline_exceeded():
                raise LLMTimeoutError(
                    f"Run {context.run_id} exceeded its {context.deadline_seconds}s deadline"
                )
            yield round_no

    def _prepare(self, request: ChatRequest) -> Tuple[ChatModel, ChatRequest, ToolDispatcher]:
        if not request.model:
            raise ValueError("request.model must be set by the service before calling pipeline")
        check_tool_linkage(request.messages)
        tools = (self._tool_registry or get_tool_registry()).get_tools(request.tools or [])
        schemas = tools_to_langchain_schemas(tools) if tools else None
        req = request.model_copy(update={"tool_schemas": schemas})
        chat_model = (self._model_registry or get_model_registry()).get_model(req.model)
        max_workers = self._max_workers if self._max_workers is not None else get_tool_max_workers()
        dispatcher = ToolDispatcher({t.name: t for t in tools}, max_workers=max_workers)
        return chat_model, req, dispatcher


# Register so LLMService can resolve "tool_chat"
_registry = get_pipeline_registry()
_registry.register_pipeline(ToolChatPipeline())


__all__ = ["Conversation", "ToolChatPipeline"]
