"""Tool interface for the LLM framework."""

from __future__ import annotations

from typing import Protocol, Type, runtime_checkable

from pydantic import BaseModel

from llm.types.context import RunContext


@runtime_checkable
class Tool(Protocol):
    """Protocol for a named operation the model can invoke.

    ``args_schema`` is the structural validator: the dispatcher validates the
    model's raw arguments against it and hands the validated instance to
    ``run``. ``run`` returns the text fed back to the model, or raises
    ``ToolFailure`` when the operation cannot be completed.
    """

    name: str
    description: str
    args_schema: Type[BaseModel]

    def run(self, args: BaseModel, context: RunContext) -> str:
        """Execute the tool with validated arguments and the run context."""
        ...


__all__ = ["Tool"]
