"""Process-wide lookup of pipelines by id."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from llm.pipelines.base import BasePipeline
from llm.service.errors import LLMConfigurationError


@dataclass
class PipelineRegistry:
    """Maps pipeline ids (e.g. ``"tool_chat"``) to pipeline instances.

    Pipelines register themselves when their module is imported, so lookups
    happen from request threads while registration may still be running.
    """

    _pipelines: Dict[str, BasePipeline] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def register_pipeline(self, pipeline: BasePipeline) -> None:
        """Register ``pipeline`` under its id, replacing any earlier one."""
        if not pipeline.id:
            raise ValueError("Pipeline id must be non-empty")
        with self._lock:
            self._pipelines[pipeline.id] = pipeline

    def get_pipeline(self, pipeline_id: str) -> BasePipeline:
        with self._lock:
            pipeline = self._pipelines.get(pipeline_id)
        if pipeline is None:
            raise LLMConfigurationError(
                f"No pipeline registered as '{pipeline_id}'. "
                f"Registered: {self.pipeline_ids() or '[]'}"
            )
        return pipeline

    def pipeline_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._pipelines)

    def clear(self) -> None:
        with self._lock:
            self._pipelines.clear()


_global_registry: Optional[PipelineRegistry] = None
_global_registry_lock = threading.Lock()


def get_pipeline_registry() -> PipelineRegistry:
    """Return the process-wide PipelineRegistry singleton (thread-safe)."""
    global _global_registry
    if _global_registry is None:
        with _global_registry_lock:
            if _global_registry is None:
                _global_registry = PipelineRegistry()
    return _global_registry


__all__ = ["PipelineRegistry", "get_pipeline_registry"]
