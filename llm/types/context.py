from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class RunContext(BaseModel):
    """Per-run context handed to the pipeline and to every tool execution."""

    run_id: str = Field(default_factory=lambda: str(uuid4()))
    trace_id: str = Field(default_factory=lambda: str(uuid4()))
    conversation_id: Optional[str] = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    deadline_seconds: Optional[int] = None

    @classmethod
    def create(
        cls,
        conversation_id: Any | None = None,
        deadline_seconds: int | None = None,
    ) -> "RunContext":
        return cls(
            conversation_id=str(conversation_id) if conversation_id is not None else None,
            deadline_seconds=deadline_seconds,
        )

    def seconds_elapsed(self) -> float:
        return (datetime.now(timezone.utc) - self.started_at).total_seconds()

    def deadline_exceeded(self) -> bool:
        if self.deadline_seconds is None:
            return False
        return self.seconds_elapsed() > self.deadline_seconds


__all__ = ["RunContext"]
