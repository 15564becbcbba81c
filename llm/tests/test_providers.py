"""Tests for the LangChain-backed providers, with the LangChain client mocked."""

from unittest.mock import MagicMock, patch

from django.test import SimpleTestCase, override_settings
from langchain_core.messages import AIMessage, AIMessageChunk

from llm.core.providers.base import BaseLangChainChatModel
from llm.core.providers.openai import OpenAIChatModel
from llm.service.errors import LLMConfigurationError, LLMProviderError
from llm.types.messages import Message, ToolCall
from llm.types.requests import ChatRequest


class _StubModel(BaseLangChainChatModel):
    _provider_label = "Stub"

    def __init__(self, client):
        self.name = "stub-model"
        self._client = client


def _request(**kwargs):
    return ChatRequest(messages=[Message(role="user", content="hi")], model="stub-model", **kwargs)


class BaseLangChainChatModelTests(SimpleTestCase):
    def test_generate_maps_content_usage_and_reasoning(self):
        client = MagicMock()
        client.invoke.return_value = AIMessage(
            content="Hello",
            additional_kwargs={"reasoning_content": "user greeted me"},
            usage_metadata={"input_tokens": 3, "output_tokens": 1, "total_tokens": 4},
        )
        response = _StubModel(client).generate(_request())
        self.assertEqual(response.message.content, "Hello")
        self.assertEqual(response.model, "stub-model")
        self.assertEqual(response.usage.total_tokens, 4)
        self.assertEqual(response.metadata["reasoning"], "user greeted me")
        self.assertEqual(response.tool_calls, [])

    def test_generate_returns_tool_calls(self):
        client = MagicMock()
        client.bind_tools.return_value = client
        client.invoke.return_value = AIMessage(
            content="",
            tool_calls=[{"id": "c1", "name": "get_chapter", "args": {"number": 1}}],
        )
        schemas = [{"type": "function", "function": {"name": "get_chapter"}}]
        response = _StubModel(client).generate(_request(tool_schemas=schemas))
        client.bind_tools.assert_called_once_with(schemas)
        self.assertEqual(response.tool_calls, [ToolCall(id="c1", name="get_chapter", arguments={"number": 1})])

    def test_params_are_bound(self):
        client = MagicMock()
        client.bind.return_value = client
        client.invoke.return_value = AIMessage(content="ok")
        _StubModel(client).generate(_request(params={"temperature": 0.1}))
        client.bind.assert_called_once_with(temperature=0.1)

    def test_generate_wraps_client_errors(self):
        client = MagicMock()
        client.invoke.side_effect = TimeoutError("read timed out")
        with self.assertRaises(LLMProviderError) as ctx:
            _StubModel(client).generate(_request())
        self.assertIn("Stub generate failed", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, TimeoutError)

    def test_stream_yields_text_then_assembled_tool_calls(self):
        client = MagicMock()
        client.stream.return_value = iter([
            AIMessageChunk(content="Let me "),
            AIMessageChunk(content="check."),
            AIMessageChunk(
                content="",
                tool_call_chunks=[{"id": "c7", "name": "get_chapter", "args": '{"number"', "index": 0}],
            ),
            AIMessageChunk(
                content="",
                tool_call_chunks=[{"id": None, "name": None, "args": ": 2}", "index": 0}],
            ),
        ])
        chunks = list(_StubModel(client).stream(_request()))
        self.assertEqual([c.content for c in chunks[:2]], ["Let me ", "check."])
        self.assertEqual(chunks[-1].tool_calls, [ToolCall(id="c7", name="get_chapter", arguments={"number": 2})])
        self.assertEqual(len(chunks), 3)

    def test_stream_without_tool_calls_has_no_final_chunk(self):
        client = MagicMock()
        client.stream.return_value = iter([AIMessageChunk(content="Done.")])
        chunks = list(_StubModel(client).stream(_request()))
        self.assertEqual(len(chunks), 1)
        self.assertIsNone(chunks[0].tool_calls)

    def test_stream_wraps_mid_stream_errors(self):
        def broken(_messages):
            yield AIMessageChunk(content="partial")
            raise ConnectionError("reset by peer")

        client = MagicMock()
        client.stream.side_effect = broken
        stream = _StubModel(client).stream(_request())
        self.assertEqual(next(stream).content, "partial")
        with self.assertRaises(LLMProviderError):
            next(stream)


class OpenAIChatModelTests(SimpleTestCase):
    @override_settings(
        OPENAI_API_KEY="sk-test",
        OPENAI_BASE_URL="https://api.deepseek.com",
        LLM_TEMPERATURE=0.7,
        LLM_MAX_TOKENS=32768,
    )
    def test_builds_client_from_settings(self):
        with patch("llm.core.providers.openai.ChatOpenAI") as chat_openai:
            model = OpenAIChatModel("deepseek-chat")
        chat_openai.assert_called_once_with(
            model="deepseek-chat",
            api_key="sk-test",
            base_url="https://api.deepseek.com",
            temperature=0.7,
            max_tokens=32768,
            stream_usage=True,
        )
        self.assertEqual(model.name, "deepseek-chat")

    @override_settings(OPENAI_API_KEY="sk-test", OPENAI_BASE_URL="")
    def test_strips_openai_prefix(self):
        with patch("llm.core.providers.openai.ChatOpenAI") as chat_openai:
            OpenAIChatModel("openai/gpt-4o-mini")
        self.assertEqual(chat_openai.call_args.kwargs["model"], "gpt-4o-mini")
        self.assertIsNone(chat_openai.call_args.kwargs["base_url"])

    @override_settings(OPENAI_API_KEY="")
    def test_missing_api_key_raises_configuration_error(self):
        with self.assertRaises(LLMConfigurationError):
            OpenAIChatModel("deepseek-chat")
