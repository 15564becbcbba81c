import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class LlmConfig(AppConfig):
    name = "llm"
    verbose_name = "LLM Orchestration"

    def ready(self) -> None:  # pragma: no cover - import side effects only
        # tool_chat registers itself in the pipeline registry; providers register model prefixes.
        try:
            from .pipelines import tool_chat  # noqa: F401
            from .core import providers  # noqa: F401
        except Exception:
            logger.error(
                "Could not load the tool_chat pipeline or the chat model providers. "
                "AI endpoints will answer with configuration errors until this is fixed.",
                exc_info=True,
            )
