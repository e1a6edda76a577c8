"""
Connectors
==========

A connector holds what every request to one API shares (base URL, headers,
authenticator, middleware, retry defaults) and runs sends.

Send flow (one attempt):
    PendingRequest(connector, request)
      → request pipeline
      → sender ──FatalRequestError──▶ fatal pipeline → re-raise
      → response pipeline
      → response.throw() when a retry policy is active

The retry orchestrator wraps the attempt; a fresh PendingRequest is built for
every attempt from the same request definition.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from contextvars import Token

from conduit.core.config import ClientSettings
from conduit.core.exceptions import FatalRequestError
from conduit.core.retry import NoRetry, RetryableFailure, RetryOrchestrator, RetryPolicy, resolve_policy
from conduit.http.capabilities import Authenticatable, HasRequestProperties, Retryable
from conduit.http.pending_request import PendingRequest
from conduit.http.request import Request
from conduit.http.response import Response
from conduit.http.sender import HttpxSender, Sender
from conduit.infra.telemetry import get_logger, reset_request_context, set_request_context

logger = get_logger(__name__)

class Connector(HasRequestProperties, Authenticatable, Retryable, ABC):
    """
    Base class for API connectors.

    Example:
        class GitHub(Connector):
            tries = 3
            retry_interval = 250

            def resolve_base_url(self) -> str:
                return "https://api.github.com"

            def default_headers(self) -> dict[str, str]:
                return {"Accept": "application/vnd.github+json"}

        response = GitHub().send(GetUser("octocat"))
    """

    _sender: Sender | None = None
    _settings: ClientSettings | None = None

    def __init__(
        self,
        sender: Sender | None = None,
        settings: ClientSettings | None = None,
    ) -> None:
        self._sender = sender
        self._settings = settings

    @abstractmethod
    def resolve_base_url(self) -> str:
        ...

    def sender(self) -> Sender:
        if self._sender is None:
            self._sender = HttpxSender(self._settings)
        return self._sender

    def create_pending_request(self, request: Request) -> PendingRequest:
        return PendingRequest(self, request)

    def retry_policy_for(self, request: Request) -> RetryPolicy:
        """Request settings win over connector settings, field by field."""
        return resolve_policy(request, self)

    def retry_orchestrator(self, policy: RetryPolicy) -> RetryOrchestrator:
        return RetryOrchestrator(policy, self._should_retry)

    # ── Sending ──────────────────────────────────────────────────────

    def send(self, request: Request) -> Response:
        policy = self.retry_policy_for(request)
        orchestrator = self.retry_orchestrator(policy)
        throw = not isinstance(policy, NoRetry)

        token = self._bind_context()
        try:
            return orchestrator.run(request, lambda req: self._attempt(req, throw))
        finally:
            reset_request_context(token)

    async def asend(self, request: Request) -> Response:
        policy = self.retry_policy_for(request)
        orchestrator = self.retry_orchestrator(policy)
        throw = not isinstance(policy, NoRetry)

        token = self._bind_context()
        try:
            return await orchestrator.arun(request, lambda req: self._aattempt(req, throw))
        finally:
            reset_request_context(token)

    def _attempt(self, request: Request, throw: bool) -> Response:
        pending = self.create_pending_request(request)
        middleware = pending.middleware
        pending = middleware.execute_request_pipeline(pending)
        logger.debug("request_sending", method=str(pending.method), url=pending.url)

        try:
            response = self.sender().send(pending)
        except FatalRequestError as exc:
            middleware.execute_fatal_pipeline(exc)
            raise

        return self._finish(middleware.execute_response_pipeline(response), throw)

    async def _aattempt(self, request: Request, throw: bool) -> Response:
        pending = self.create_pending_request(request)
        middleware = pending.middleware
        pending = middleware.execute_request_pipeline(pending)
        logger.debug("request_sending", method=str(pending.method), url=pending.url)

        try:
            response = await self.sender().asend(pending)
        except FatalRequestError as exc:
            middleware.execute_fatal_pipeline(exc)
            raise

        return self._finish(middleware.execute_response_pipeline(response), throw)

    def _finish(self, response: Response, throw: bool) -> Response:
        logger.debug("response_received", status=response.status, url=response.pending_request.url)
        if throw:
            response.throw()
        return response

    def _should_retry(self, failure: RetryableFailure, request: Request) -> bool:
        return request.handle_retry(failure, request) and self.handle_retry(failure, request)

    def _bind_context(self) -> Token:
        return set_request_context(request_id=uuid.uuid4().hex, connector=type(self).__name__)

    # ── Lifecycle ────────────────────────────────────────────────────

    def close(self) -> None:
        if isinstance(self._sender, HttpxSender):
            self._sender.close()

    async def aclose(self) -> None:
        if isinstance(self._sender, HttpxSender):
            await self._sender.aclose()

    def __enter__(self) -> Connector:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    async def __aenter__(self) -> Connector:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
