"""Model resolution and configuration helpers, read from Django settings."""

from __future__ import annotations

from typing import List, Optional

from django.conf import settings

from llm.service.errors import LLMConfigurationError, LLMPolicyDenied


def get_allowed_models() -> List[str]:
    """Return the list of allowed model names from LLM_ALLOWED_MODELS."""
    raw = getattr(settings, "LLM_ALLOWED_MODELS", [])
    if isinstance(raw, str):
        raw = raw.split(",")
    return [m.strip() for m in raw if m and m.strip()]


def get_default_model() -> Optional[str]:
    v = getattr(settings, "LLM_DEFAULT_MODEL", None)
    return v.strip() if v else None


def get_default_temperature() -> float:
    return float(getattr(settings, "LLM_TEMPERATURE", 0.7))


def get_default_max_tokens() -> int:
    return int(getattr(settings, "LLM_MAX_TOKENS", 32768))


def get_max_tool_rounds() -> Optional[int]:
    """Round guard for the tool loop. None means unbounded."""
    v = getattr(settings, "LLM_MAX_TOOL_ROUNDS", 20)
    return int(v) if v else None


def get_tool_max_workers() -> int:
    """Thread pool size for sibling tool calls in one round (1 = sequential)."""
    return max(1, int(getattr(settings, "LLM_TOOL_MAX_WORKERS", 4)))


def get_max_concurrent_streams() -> int:
    return int(getattr(settings, "LLM_MAX_CONCURRENT_STREAMS", 20))


def get_openai_api_key() -> Optional[str]:
    return getattr(settings, "OPENAI_API_KEY", None) or None


def get_openai_base_url() -> Optional[str]:
    return getattr(settings, "OPENAI_BASE_URL", None) or None


def resolve_model(requested: Optional[str] = None) -> str:
    """
    Resolve the model name to use: validate requested against allowed list,
    or choose default (LLM_DEFAULT_MODEL if allowed, else first allowed).

    With LLM_ALLOWED_MODELS empty, any requested model is accepted and
    LLM_DEFAULT_MODEL is used otherwise.
    Raises LLMConfigurationError if no model can be chosen.
    Raises LLMPolicyDenied if requested is not in the allowed list.
    """
    allowed = get_allowed_models()
    default = get_default_model()

    if not allowed:
        model = requested or default
        if not model:
            raise LLMConfigurationError(
                "Neither LLM_ALLOWED_MODELS nor LLM_DEFAULT_MODEL is set; cannot pick a model."
            )
        return model

    if requested is not None:
        if requested not in allowed:
            raise LLMPolicyDenied(
                f"Model '{requested}' is not in LLM_ALLOWED_MODELS. Allowed: {allowed}"
            )
        return requested

    if default and default in allowed:
        return default
    return allowed[0]


__all__ = [
    "get_allowed_models",
    "get_default_model",
    "get_default_temperature",
    "get_default_max_tokens",
    "get_max_tool_rounds",
    "get_tool_max_workers",
    "get_max_concurrent_streams",
    "get_openai_api_key",
    "get_openai_base_url",
    "resolve_model",
]
