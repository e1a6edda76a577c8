"""
Middleware Pipeline
===================

Owns the three category pipelines a send passes through:

    request  ── runs before the transport, may swap the pending request
    response ── runs after a response arrives, may swap the response
    fatal    ── observes transport failures; cannot suppress them

Pipe names are unique per category, so "log" may exist once in request and
once in response.
"""

from __future__ import annotations

from conduit.core.types import PipelineCategory, PipeOrder
from conduit.infra.telemetry import get_logger
from conduit.middleware.pipeline import PipeCallable, Pipeline

logger = get_logger(__name__)

class MiddlewarePipeline:
    """
    Registration, execution and merging of request/response/fatal pipes.

    Usage:
        middleware = MiddlewarePipeline()
        middleware.on_request(add_trace_header, name="trace", order=PipeOrder.FIRST)
        middleware.on_response(record_status)
        pending = middleware.execute_request_pipeline(pending)
    """

    def __init__(
        self,
        request_type: type | None = None,
        response_type: type | None = None,
    ) -> None:
        self._request = Pipeline(PipelineCategory.REQUEST, accepts=request_type)
        self._response = Pipeline(PipelineCategory.RESPONSE, accepts=response_type)
        self._fatal = Pipeline(PipelineCategory.FATAL)

    # ── Registration ─────────────────────────────────────────────────

    def on_request(
        self,
        callable: PipeCallable,
        name: str | None = None,
        order: PipeOrder | None = None,
    ) -> MiddlewarePipeline:
        self._request.insert(callable, name=name, order=order)
        return self

    def on_response(
        self,
        callable: PipeCallable,
        name: str | None = None,
        order: PipeOrder | None = None,
    ) -> MiddlewarePipeline:
        self._response.insert(callable, name=name, order=order)
        return self

    def on_fatal_exception(
        self,
        callable: PipeCallable,
        name: str | None = None,
        order: PipeOrder | None = None,
    ) -> MiddlewarePipeline:
        self._fatal.insert(callable, name=name, order=order)
        return self

    # ── Execution ────────────────────────────────────────────────────

    def execute_request_pipeline(self, pending_request):
        return self._request.execute(pending_request)

    def execute_response_pipeline(self, response):
        return self._response.execute(response)

    def execute_fatal_pipeline(self, exception: Exception) -> None:
        """
        Let every fatal pipe observe ``exception``. The caller re-raises it.

        A pipe that raises is logged and skipped; it can neither replace
        ``exception`` nor stop later pipes from seeing it.
        """
        logger.warning(
            "fatal_pipeline",
            error=type(exception).__name__,
            pipes=len(self._fatal),
        )
        for pipe in self._fatal.get_pipes():
            try:
                pipe(exception)
            except Exception:
                logger.exception(
                    "fatal_pipe_failed",
                    pipe=pipe.name,
                    error=type(exception).__name__,
                )

    # ── Merging ──────────────────────────────────────────────────────

    def merge(self, other: MiddlewarePipeline) -> MiddlewarePipeline:
        """
        Append all of ``other``'s pipes, category by category.

        Every category is checked before any is changed, so a name collision
        anywhere leaves this pipeline untouched.
        """
        pairs = (
            (self._request, other._request),
            (self._response, other._response),
            (self._fatal, other._fatal),
        )
        for ours, theirs in pairs:
            ours.check_mergeable(theirs)
        for ours, theirs in pairs:
            ours.merge(theirs)

        logger.debug(
            "middleware_merged",
            request_pipes=len(self._request),
            response_pipes=len(self._response),
            fatal_pipes=len(self._fatal),
        )
        return self

    # ── Accessors ────────────────────────────────────────────────────

    def get_request_pipeline(self) -> Pipeline:
        return self._request

    def get_response_pipeline(self) -> Pipeline:
        return self._response

    def get_fatal_pipeline(self) -> Pipeline:
        return self._fatal
