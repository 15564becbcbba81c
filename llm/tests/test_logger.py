"""Tests for llm.service.logger: log_call, log_stream, log_error."""

from unittest.mock import patch

from django.test import SimpleTestCase

from llm.service.errors import LLMProviderError
from llm.service.logger import log_call, log_error, log_stream
from llm.types.context import RunContext
from llm.types.messages import Message
from llm.types.requests import ChatRequest
from llm.types.responses import ChatResponse, Usage


def _make_request(model="deepseek-chat", tools=None):
    return ChatRequest(
        messages=[Message(role="system", content="Be brief"), Message(role="user", content="Hello")],
        model=model,
        tools=tools,
        context=RunContext.create(),
    )


class LogCallTests(SimpleTestCase):
    def test_logs_success_summary(self):
        request = _make_request(tools=["get_chapter", "list_outlines"])
        response = ChatResponse(
            message=Message(role="assistant", content="Hi!"),
            model="deepseek-chat",
            usage=Usage(prompt_tokens=5, completion_tokens=3, total_tokens=8),
            metadata={"rounds": 2},
        )
        with self.assertLogs("llm.calls", level="INFO") as logs:
            log_call(request, response, duration_ms=150)
        line = logs.output[0]
        self.assertIn(f"run_id={request.context.run_id}", line)
        self.assertIn("model=deepseek-chat", line)
        self.assertIn("messages=2", line)
        self.assertIn("tools=2", line)
        self.assertIn("rounds=2", line)
        self.assertIn("output_chars=3", line)
        self.assertIn("total_tokens=8", line)
        self.assertIn("duration_ms=150", line)

    def test_does_not_log_message_content(self):
        request = _make_request()
        response = ChatResponse(message=Message(role="assistant", content="secret plot twist"), model="m")
        with self.assertLogs("llm.calls", level="INFO") as logs:
            log_call(request, response, duration_ms=1)
        self.assertNotIn("secret plot twist", logs.output[0])
        self.assertNotIn("Hello", logs.output[0])

    def test_never_raises(self):
        request = _make_request()
        response = ChatResponse(message=Message(role="assistant", content="x"), model="m")
        with patch("llm.service.logger._request_fields", side_effect=RuntimeError("boom")):
            with self.assertLogs("llm.calls", level="ERROR") as logs:
                log_call(request, response, duration_ms=1)
        self.assertIn("Failed to write LLM call log", logs.output[0])


class LogStreamTests(SimpleTestCase):
    def test_logs_event_counts(self):
        request = _make_request()
        summary = {"content_delta": 4, "tool_result": 2, "output_chars": 40}
        with self.assertLogs("llm.calls", level="INFO") as logs:
            log_stream(request, summary, duration_ms=900)
        line = logs.output[0]
        self.assertIn("llm stream ok", line)
        self.assertIn("content_deltas=4", line)
        self.assertIn("tool_results=2", line)
        self.assertIn("output_chars=40", line)

    def test_missing_context_is_tolerated(self):
        request = _make_request()
        request.context = None
        with self.assertLogs("llm.calls", level="INFO") as logs:
            log_stream(request, {}, duration_ms=1)
        self.assertIn("run_id= ", logs.output[0])


class LogErrorTests(SimpleTestCase):
    def test_logs_error_type_and_traceback(self):
        request = _make_request()
        try:
            raise LLMProviderError("upstream 502")
        except LLMProviderError as exc:
            error = exc
        with self.assertLogs("llm.calls", level="ERROR") as logs:
            log_error(request, error, duration_ms=30, is_stream=True)
        record = logs.records[0]
        self.assertIn("llm stream failed", record.getMessage())
        self.assertIn("error_type=LLMProviderError", record.getMessage())
        self.assertIsNotNone(record.exc_info)

    def test_run_label(self):
        with self.assertLogs("llm.calls", level="ERROR") as logs:
            log_error(_make_request(), ValueError("bad"), duration_ms=1)
        self.assertIn("llm run failed", logs.output[0])
