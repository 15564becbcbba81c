from __future__ import annotations

from langchain_openai import ChatOpenAI

from llm.core.providers.base import BaseLangChainChatModel
from llm.core.registry import get_model_registry
from llm.service.errors import LLMConfigurationError
from llm.service.policies import (
    get_default_max_tokens,
    get_default_temperature,
    get_openai_api_key,
    get_openai_base_url,
)


class OpenAIChatModel(BaseLangChainChatModel):
    """ChatModel backed by LangChain's ChatOpenAI.

    Works against any OpenAI-compatible endpoint; set ``OPENAI_BASE_URL`` to
    point it at e.g. DeepSeek.
    """

    _provider_label = "OpenAI"

    # Prefix used in LLM_ALLOWED_MODELS; strip before sending to API.
    _API_MODEL_PREFIX = "openai/"

    def __init__(self, model_name: str) -> None:
        api_key = get_openai_api_key()
        if not api_key:
            raise LLMConfigurationError(
                "OPENAI_API_KEY is not set; cannot initialize OpenAIChatModel."
            )

        self.name = model_name
        api_model = model_name
        if model_name.startswith(self._API_MODEL_PREFIX):
            api_model = model_name[len(self._API_MODEL_PREFIX) :]
        self._client = ChatOpenAI(
            model=api_model,
            api_key=api_key,
            base_url=get_openai_base_url(),
            temperature=get_default_temperature(),
            max_tokens=get_default_max_tokens(),
            stream_usage=True,
        )


# Register default prefixes for OpenAI-compatible models.
_registry = get_model_registry()
_registry.register_model_prefix("gpt-", lambda name: OpenAIChatModel(name))
_registry.register_model_prefix("o1", lambda name: OpenAIChatModel(name))
_registry.register_model_prefix("o3", lambda name: OpenAIChatModel(name))
_registry.register_model_prefix("openai/", lambda name: OpenAIChatModel(name))
_registry.register_model_prefix("deepseek-", lambda name: OpenAIChatModel(name))


__all__ = ["OpenAIChatModel"]
