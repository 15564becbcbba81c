"""
LLM call logging helpers.

These functions write to the ``llm.calls`` logger without ever raising: a
logging failure must never surface to the caller. Conversations themselves are
not persisted; only sizes, timings and outcomes are logged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from llm.types.requests import ChatRequest
    from llm.types.responses import ChatResponse

logger = logging.getLogger("llm.calls")


def _request_fields(request: "ChatRequest") -> Dict[str, Any]:
    context = request.context
    return {
        "run_id": context.run_id if context else "",
        "model": request.model or "",
        "messages": len(request.messages),
        "tools": len(request.tools or []),
    }


def log_call(request: "ChatRequest", response: "ChatResponse", duration_ms: int) -> None:
    """Log a successful non-streaming run."""
    try:
        fields = _request_fields(request)
        usage = response.usage
        logger.info(
            "llm run ok run_id=%s model=%s messages=%d tools=%d rounds=%s "
            "output_chars=%d total_tokens=%s duration_ms=%d",
            fields["run_id"],
            fields["model"],
            fields["messages"],
            fields["tools"],
            response.metadata.get("rounds", "?"),
            len(response.message.content),
            usage.total_tokens if usage else None,
            duration_ms,
        )
    except Exception:
        logger.exception("Failed to write LLM call log (non-streaming)")


def log_stream(
    request: "ChatRequest",
    summary: Dict[str, int],
    duration_ms: int,
) -> None:
    """Log a completed streaming run. ``summary`` counts events by type."""
    try:
        fields = _request_fields(request)
        logger.info(
            "llm stream ok run_id=%s model=%s messages=%d tools=%d content_deltas=%d "
            "tool_results=%d output_chars=%d duration_ms=%d",
            fields["run_id"],
            fields["model"],
            fields["messages"],
            fields["tools"],
            summary.get("content_delta", 0),
            summary.get("tool_result", 0),
            summary.get("output_chars", 0),
            duration_ms,
        )
    except Exception:
        logger.exception("Failed to write LLM call log (streaming)")


def log_error(
    request: "ChatRequest",
    exc: BaseException,
    duration_ms: int,
    *,
    is_stream: bool = False,
) -> None:
    """Log a failed run, with the traceback of ``exc``."""
    try:
        fields = _request_fields(request)
        logger.error(
            "llm %s failed run_id=%s model=%s error_type=%s error=%s duration_ms=%d",
            "stream" if is_stream else "run",
            fields["run_id"],
            fields["model"],
            type(exc).__name__,
            exc,
            duration_ms,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
    except Exception:
        logger.exception("Failed to write LLM error log")


__all__ = ["log_call", "log_stream", "log_error"]
