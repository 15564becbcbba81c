"""Turn model-requested tool calls into tool result messages.

Every outcome becomes a ``tool`` message: unknown tool, invalid arguments and
tool failures are reported back to the model as text instead of being raised,
so one bad call never ends the conversation.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from django.db import connections
from pydantic import ValidationError

from llm.service.errors import ToolError, ToolNotFound, ToolValidationError
from llm.tools.interfaces import Tool
from llm.tools.registry import ToolRegistry, get_tool_registry
from llm.types.context import RunContext
from llm.types.messages import Message, ToolCall

logger = logging.getLogger(__name__)


def describe_validation_error(exc: ValidationError) -> str:
    """Condense a pydantic ValidationError to ``loc: msg`` pairs."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def _error_content(tool_name: str, message: str, error_type: str) -> str:
    return json.dumps(
        {"error": message, "tool": tool_name, "error_type": error_type},
        ensure_ascii=False,
    )


class ToolDispatcher:
    """Resolve, validate and execute tool calls against a fixed catalog."""

    def __init__(self, tools: Mapping[str, Tool], max_workers: int = 1) -> None:
        self._tools: Dict[str, Tool] = dict(tools)
        self.max_workers = max(1, max_workers)

    @classmethod
    def from_registry(
        cls, registry: Optional[ToolRegistry] = None, max_workers: int = 1
    ) -> "ToolDispatcher":
        return cls((registry or get_tool_registry()).list_tools(), max_workers=max_workers)

    def execute(self, tool_call: ToolCall, context: RunContext) -> str:
        """Run one call and return its text result. Raises ToolError subclasses."""
        tool = self._tools.get(tool_call.name)
        if tool is None:
            raise ToolNotFound(tool_call.name)
        try:
            args = tool.args_schema.model_validate(tool_call.arguments)
        except ValidationError as exc:
            raise ToolValidationError(
                tool.name, f"Invalid arguments for {tool.name}: {describe_validation_error(exc)}"
            ) from exc
        result = tool.run(args, context)
        if isinstance(result, str):
            return result
        return json.dumps(result, ensure_ascii=False, default=str)

    def dispatch(self, tool_call: ToolCall, context: RunContext) -> Message:
        """Execute one call and wrap the outcome, success or failure, in a tool message."""
        try:
            content = self.execute(tool_call, context)
        except ToolError as exc:
            logger.warning(
                "Tool call %s (%s) failed: %s", tool_call.id, tool_call.name, exc.message
            )
            content = _error_content(tool_call.name, exc.message, type(exc).__name__)
        except Exception as exc:
            logger.exception("Tool call %s (%s) raised", tool_call.id, tool_call.name)
            content = _error_content(
                tool_call.name, str(exc) or type(exc).__name__, type(exc).__name__
            )
        return Message(
            role="tool",
            content=content,
            tool_call_id=tool_call.id,
            name=tool_call.name,
        )

    def iter_dispatch(
        self, tool_calls: List[ToolCall], context: RunContext
    ) -> Iterator[Tuple[ToolCall, Message]]:
        """Yield ``(call, result)`` pairs in request order.

        With more than one call and ``max_workers > 1`` the calls run on a thread
        pool. Closing the iterator early still waits for calls already submitted.
        """
        if len(tool_calls) <= 1 or self.max_workers <= 1:
            for tool_call in tool_calls:
                yield tool_call, self.dispatch(tool_call, context)
            return

        workers = min(self.max_workers, len(tool_calls))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tool-dispatch") as pool:
            futures = [pool.submit(self._dispatch_in_worker, tc, context) for tc in tool_calls]
            for tool_call, future in zip(tool_calls, futures):
                yield tool_call, future.result()

    def dispatch_many(self, tool_calls: List[ToolCall], context: RunContext) -> List[Message]:
        return [message for _, message in self.iter_dispatch(tool_calls, context)]

    def _dispatch_in_worker(self, tool_call: ToolCall, context: RunContext) -> Message:
        try:
            return self.dispatch(tool_call, context)
        finally:
            # Django opens one connection per thread; release this worker's.
            connections.close_all()


__all__ = ["ToolDispatcher", "describe_validation_error"]
