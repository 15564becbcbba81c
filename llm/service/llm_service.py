"""
LLMService: facade for running and streaming LLM pipelines.

Use from Django views or other apps:

    from llm import get_llm_service
    from llm.types import ChatRequest, Message, RunContext

    service = get_llm_service()
    request = ChatRequest(
        messages=[Message(role="user", content="Hello")],
        tools=["get_chapter"],
        model=None,  # use default from LLM_DEFAULT_MODEL / LLM_ALLOWED_MODELS
        context=RunContext.create(),
    )
    response = service.run("tool_chat", request)

For streaming:

    for event in service.stream("tool_chat", request):
        # content_delta / tool_result ..., then at most one error, then done
        ...

``stream`` never raises: any failure becomes a single ``error`` event and every
run ends with exactly one ``done`` event.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
import time
from contextlib import closing
from typing import AsyncIterator, Callable, Dict, Iterator, Optional

from llm.pipelines.registry import PipelineRegistry, get_pipeline_registry
from llm.service.errors import LLMError, LLMPolicyDenied, LLMProviderError
from llm.service.logger import log_call, log_error, log_stream
from llm.service.policies import get_max_concurrent_streams, resolve_model
from llm.types.context import RunContext
from llm.types.requests import ChatRequest
from llm.types.responses import ChatResponse
from llm.types.streaming import StreamEvent

logger = logging.getLogger(__name__)

# How often a producer blocked on a full queue checks whether the consumer is gone.
_PUT_POLL_SECONDS = 0.5


def _put_from_thread(
    loop: asyncio.AbstractEventLoop,
    queue: asyncio.Queue,
    item: object,
    stop: threading.Event,
    poll_seconds: float = _PUT_POLL_SECONDS,
) -> bool:
    """Put ``item`` on ``queue`` from a worker thread, waiting until the queue accepts it.

    Returns False without delivering once ``stop`` is set or the loop is no
    longer running, so the producer thread never blocks forever.
    """
    if stop.is_set() or loop.is_closed():
        return False
    try:
        future = asyncio.run_coroutine_threadsafe(queue.put(item), loop)
    except RuntimeError:  # event loop already closed
        return False
    while True:
        try:
            future.result(timeout=poll_seconds)
            return True
        except concurrent.futures.TimeoutError:
            if stop.is_set() or not loop.is_running():
                future.cancel()
                return False


class LLMService:
    """Facade that routes pipeline calls, enforces policies, and normalizes errors.

    Accepts optional dependency overrides for testability. When omitted the
    process-wide singletons are used, so ``get_llm_service()`` keeps working
    unchanged.
    """

    def __init__(
        self,
        pipeline_registry: PipelineRegistry | None = None,
        resolve_model_fn: Callable[[str | None], str] | None = None,
    ) -> None:
        self._pipeline_registry = pipeline_registry
        self._resolve_model_fn = resolve_model_fn
        self._stream_semaphore: Optional[asyncio.Semaphore] = None

    # -- private accessors --------------------------------------------------

    def _get_pipeline_registry(self) -> PipelineRegistry:
        return self._pipeline_registry or get_pipeline_registry()

    def _resolve_model(self, model: str | None) -> str:
        fn = self._resolve_model_fn or resolve_model
        return fn(model)

    # -- sync API -----------------------------------------------------------

    def run(self, pipeline_id: str, request: ChatRequest) -> ChatResponse:
        """Run a non-streaming pipeline. Ensures context and model are set; delegates to pipeline."""
        self._ensure_context(request)
        request.model = self._resolve_model(request.model)
        pipeline = self._get_pipeline_registry().get_pipeline(pipeline_id)
        if request.stream and not pipeline.capabilities.get("streaming", False):
            raise LLMPolicyDenied(f"Pipeline {pipeline_id} does not support streaming")
        t0 = time.monotonic()
        try:
            response = pipeline.run(request)
            log_call(request, response, int((time.monotonic() - t0) * 1000))
            return response
        except LLMError as exc:
            log_error(request, exc, int((time.monotonic() - t0) * 1000))
            raise
        except Exception as exc:
            log_error(request, exc, int((time.monotonic() - t0) * 1000))
            raise LLMProviderError(f"Pipeline {pipeline_id} run failed") from exc

    def stream(self, pipeline_id: str, request: ChatRequest) -> Iterator[StreamEvent]:
        """Stream events from a pipeline, closing the run with ``error``/``done``.

        Closing the returned generator cancels the run: no further model round
        is started.
        """
        self._ensure_context(request)
        run_id = request.context.run_id
        t0 = time.monotonic()
        summary: Dict[str, int] = {"content_delta": 0, "tool_result": 0, "output_chars": 0}
        sequence = 0
        try:
            request.model = self._resolve_model(request.model)
            pipeline = self._get_pipeline_registry().get_pipeline(pipeline_id)
            if not pipeline.capabilities.get("streaming", False):
                raise LLMPolicyDenied(f"Pipeline {pipeline_id} does not support streaming")
            with closing(pipeline.stream(request)) as events:
                for event in events:
                    sequence = event.sequence
                    summary[event.event_type] = summary.get(event.event_type, 0) + 1
                    if event.event_type == "content_delta":
                        summary["output_chars"] += len(event.data.get("text", ""))
                    yield event
            log_stream(request, summary, int((time.monotonic() - t0) * 1000))
        except GeneratorExit:
            logger.info("Stream %s closed by consumer after %d events", run_id, sequence)
            raise
        except Exception as exc:
            log_error(request, exc, int((time.monotonic() - t0) * 1000), is_stream=True)
            message = str(exc) if isinstance(exc, LLMError) else f"Pipeline {pipeline_id} stream failed"
            sequence += 1
            yield StreamEvent(
                event_type="error",
                data={"message": message, "error_type": type(exc).__name__},
                sequence=sequence,
                run_id=run_id,
            )
        yield StreamEvent(event_type="done", data={}, sequence=sequence + 1, run_id=run_id)

    # -- async bridge -------------------------------------------------------

    async def arun(self, pipeline_id: str, request: ChatRequest) -> ChatResponse:
        """Async wrapper around ``run()``. Executes the blocking call in a thread."""
        return await asyncio.to_thread(self.run, pipeline_id, request)

    _STREAM_SENTINEL = None  # sentinel to signal end of stream

    async def astream(
        self, pipeline_id: str, request: ChatRequest
    ) -> AsyncIterator[StreamEvent]:
        """Async wrapper around ``stream()``.

        A background thread runs the sync ``stream()`` generator and hands events
        over through a one-slot ``asyncio.Queue``, so production waits for the
        consumer. Leaving the ``async for`` early stops the producer after its
        current step.

        Concurrent streams are capped by ``LLM_MAX_CONCURRENT_STREAMS`` (default 20).
        """
        sem = self._get_stream_semaphore()
        async with sem:
            loop = asyncio.get_running_loop()
            q: asyncio.Queue[StreamEvent | BaseException | None] = asyncio.Queue(maxsize=1)
            stop = threading.Event()

            def _put(item) -> bool:
                return _put_from_thread(loop, q, item, stop)

            def _produce() -> None:
                try:
                    with closing(self.stream(pipeline_id, request)) as events:
                        for event in events:
                            if not _put(event):
                                return
                except Exception as exc:
                    _put(exc)
                else:
                    _put(self._STREAM_SENTINEL)

            thread = threading.Thread(target=_produce, daemon=True)
            thread.start()

            try:
                while True:
                    item = await q.get()
                    if item is self._STREAM_SENTINEL:
                        break
                    if isinstance(item, BaseException):
                        raise item
                    yield item
            finally:
                stop.set()
                while not q.empty():
                    q.get_nowait()

    def _get_stream_semaphore(self) -> asyncio.Semaphore:
        """Lazy-init the semaphore inside a running event loop."""
        if self._stream_semaphore is None:
            self._stream_semaphore = asyncio.Semaphore(get_max_concurrent_streams())
        return self._stream_semaphore

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def _ensure_context(request: ChatRequest) -> None:
        if request.context is None:
            request.context = RunContext.create()


_global_service: LLMService | None = None
_global_service_lock = threading.Lock()


def get_llm_service() -> LLMService:
    """Return the process-wide LLMService singleton (thread-safe)."""
    global _global_service
    if _global_service is None:
        with _global_service_lock:
            if _global_service is None:
                _global_service = LLMService()
    return _global_service


__all__ = ["LLMService", "get_llm_service"]
