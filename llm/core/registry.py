from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List

from llm.core.interfaces import ChatModel
from llm.service.errors import LLMConfigurationError


ChatModelFactory = Callable[[str], ChatModel]


@dataclass
class ModelRegistry:
    """
    Registry mapping model name prefixes to ChatModel factories.

    A factory receives the full model name (e.g. "deepseek-chat") and returns
    an initialized ChatModel wrapper. Instances are cached per model name, so a
    LangChain client is built once per process and shared by every run.
    """

    _prefix_factories: Dict[str, ChatModelFactory] = field(default_factory=dict)
    _instances: Dict[str, ChatModel] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def register_model_prefix(self, prefix: str, factory: ChatModelFactory) -> None:
        """Register a factory for model names starting with the given prefix."""

        if not prefix:
            raise ValueError("prefix must be non-empty")
        with self._lock:
            self._prefix_factories[prefix] = factory
            self._instances.clear()

    def get_model(self, model_name: str) -> ChatModel:
        """
        Resolve a ChatModel for the given model name using registered prefixes.

        Raises LLMConfigurationError if no prefix matches.
        """

        with self._lock:
            cached = self._instances.get(model_name)
            if cached is not None:
                return cached
            # Longest-first so "gpt-4" beats "gpt-" regardless of registration order.
            for prefix in sorted(self._prefix_factories, key=len, reverse=True):
                if model_name.startswith(prefix):
                    model = self._prefix_factories[prefix](model_name)
                    self._instances[model_name] = model
                    return model
            available_prefixes: List[str] = list(self._prefix_factories.keys())
        raise LLMConfigurationError(
            f"No ChatModel registered for model_name='{model_name}'. "
            f"Configured prefixes: {available_prefixes or '[]'}"
        )

    def clear(self) -> None:
        """Remove all registered prefix factories and cached models."""
        with self._lock:
            self._prefix_factories.clear()
            self._instances.clear()


_global_registry: ModelRegistry | None = None
_global_registry_lock = threading.Lock()


def get_model_registry() -> ModelRegistry:
    """Return the process-wide ModelRegistry singleton (thread-safe)."""

    global _global_registry
    if _global_registry is None:
        with _global_registry_lock:
            if _global_registry is None:
                _global_registry = ModelRegistry()
    return _global_registry


__all__ = ["ChatModelFactory", "ModelRegistry", "get_model_registry"]
