import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class NovelConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "novel"
    verbose_name = "Novel chapters and outlines"

    def ready(self) -> None:  # pragma: no cover - import side effects only
        # Register the chapter/outline tools in the process-wide tool registry.
        try:
            from . import tools  # noqa: F401
        except Exception:
            logger.error(
                "Failed to register novel tools during startup. "
                "The assistant will run without chapter tools.",
                exc_info=True,
            )
