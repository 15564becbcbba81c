"""Tests for LLM policies (resolve_model and the settings getters)."""

from django.test import SimpleTestCase, override_settings

from llm.service.errors import LLMConfigurationError, LLMPolicyDenied
from llm.service import policies
from llm.service.policies import get_allowed_models, resolve_model


class ResolveModelTests(SimpleTestCase):
    """Test model resolution and allowed-list behavior."""

    @override_settings(LLM_ALLOWED_MODELS=[], LLM_DEFAULT_MODEL="")
    def test_nothing_configured_raises_configuration_error(self):
        with self.assertRaises(LLMConfigurationError) as ctx:
            resolve_model(None)
        self.assertIn("LLM_ALLOWED_MODELS", str(ctx.exception))

    @override_settings(LLM_ALLOWED_MODELS=[], LLM_DEFAULT_MODEL="deepseek-chat")
    def test_empty_allowed_list_uses_requested_or_default(self):
        self.assertEqual(resolve_model(None), "deepseek-chat")
        self.assertEqual(resolve_model("deepseek-reasoner"), "deepseek-reasoner")

    @override_settings(LLM_ALLOWED_MODELS=["deepseek-chat", "gpt-4o"], LLM_DEFAULT_MODEL="deepseek-chat")
    def test_requested_not_allowed_raises_policy_denied(self):
        with self.assertRaises(LLMPolicyDenied) as ctx:
            resolve_model("gemini-1")
        self.assertIn("gemini-1", str(ctx.exception))
        self.assertIn("not in LLM_ALLOWED_MODELS", str(ctx.exception))

    @override_settings(LLM_ALLOWED_MODELS=["deepseek-chat", "gpt-4o"], LLM_DEFAULT_MODEL="deepseek-chat")
    def test_requested_allowed_returns_requested(self):
        self.assertEqual(resolve_model("gpt-4o"), "gpt-4o")
        self.assertEqual(resolve_model(None), "deepseek-chat")

    @override_settings(LLM_ALLOWED_MODELS=["gpt-4o", "deepseek-chat"], LLM_DEFAULT_MODEL="gemini-1")
    def test_default_not_allowed_uses_first_allowed(self):
        self.assertEqual(resolve_model(None), "gpt-4o")

    @override_settings(LLM_ALLOWED_MODELS="a, b,,c")
    def test_allowed_models_accepts_comma_string(self):
        self.assertEqual(get_allowed_models(), ["a", "b", "c"])


class SettingsGetterTests(SimpleTestCase):
    @override_settings(LLM_MAX_TOOL_ROUNDS=5)
    def test_max_tool_rounds(self):
        self.assertEqual(policies.get_max_tool_rounds(), 5)

    @override_settings(LLM_MAX_TOOL_ROUNDS=0)
    def test_zero_max_tool_rounds_means_unbounded(self):
        self.assertIsNone(policies.get_max_tool_rounds())

    @override_settings(LLM_TOOL_MAX_WORKERS=0)
    def test_tool_workers_never_below_one(self):
        self.assertEqual(policies.get_tool_max_workers(), 1)

    @override_settings(LLM_TEMPERATURE="0.2", LLM_MAX_TOKENS="1024", LLM_MAX_CONCURRENT_STREAMS=3)
    def test_numeric_settings_are_coerced(self):
        self.assertEqual(policies.get_default_temperature(), 0.2)
        self.assertEqual(policies.get_default_max_tokens(), 1024)
        self.assertEqual(policies.get_max_concurrent_streams(), 3)

    @override_settings(OPENAI_API_KEY="", OPENAI_BASE_URL="")
    def test_blank_openai_settings_are_none(self):
        self.assertIsNone(policies.get_openai_api_key())
        self.assertIsNone(policies.get_openai_base_url())
