"""Server-sent events wire format for StreamEvent sequences.

Each event is one ``data: <json>`` line followed by a blank line:

    content_delta -> data: {"content": "..."}
    tool_result   -> data: {"toolCallResult": "..."}
    error         -> data: {"error": "..."}
    done          -> data: [DONE]
"""

from __future__ import annotations

import json
from typing import Iterable, Iterator

from django.http import StreamingHttpResponse

from llm.types.streaming import StreamEvent

DONE_SENTINEL = "data: [DONE]\n\n"


def _data_line(payload: dict) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def encode_event(event: StreamEvent) -> str:
    """Encode a single event as an SSE frame."""
    if event.event_type == "content_delta":
        return _data_line({"content": event.data.get("text", "")})
    if event.event_type == "tool_result":
        return _data_line({"toolCallResult": event.data.get("result", "")})
    if event.event_type == "error":
        return _data_line({"error": event.data.get("message", "")})
    if event.event_type == "done":
        return DONE_SENTINEL
    raise ValueError(f"Unknown stream event type: {event.event_type!r}")


def encode_events(events: Iterable[StreamEvent]) -> Iterator[bytes]:
    """Lazily encode events; the source is only advanced when the consumer reads.

    Closing this generator (client disconnect) closes the source as well.
    """
    source = iter(events)
    try:
        for event in source:
            yield encode_event(event).encode("utf-8")
    finally:
        close = getattr(source, "close", None)
        if close is not None:
            close()


def sse_response(events: Iterable[StreamEvent]) -> StreamingHttpResponse:
    """Wrap an event sequence in a non-cacheable ``text/event-stream`` response.

    The ``Connection`` header is hop-by-hop and is left to the server.
    """
    response = StreamingHttpResponse(encode_events(events), content_type="text/event-stream")
    response["Cache-Control"] = "no-cache"
    response["X-Accel-Buffering"] = "no"
    return response


__all__ = ["DONE_SENTINEL", "encode_event", "encode_events", "sse_response"]
