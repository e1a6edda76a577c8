"""
Retry Orchestration
===================

Retry policy values and the loop that drives repeated send attempts.

A policy is either ``NoRetry`` (one attempt, failed responses are handed back
untouched) or ``Retry`` (up to ``tries`` attempts with an optional flat or
exponential delay between them). Policies are immutable and resolved once
per send; everything that changes between attempts lives in ``_RetryState``
and dies with the orchestrator call.

Flow per attempt:
    send(request) ── ok ──────────────────────────────▶ return response
        │
        └─ FatalRequestError / RequestError
              │ last attempt?  ── yes ──▶ exhausted
              │ hook(failure, request) is False ──▶ exhausted
              └─ sleep(delay) ──▶ next attempt

Exhausted: raise the last failure when ``throw_on_max_tries`` is set,
otherwise return the last failed response. A ``FatalRequestError`` has no
response and is always raised.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from conduit.core.exceptions import FatalRequestError, RequestError
from conduit.infra.telemetry import get_logger

logger = get_logger(__name__)

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")

RetryableFailure = FatalRequestError | RequestError
RetryHook = Callable[[RetryableFailure, Any], bool | Awaitable[bool]]

# ── Policy ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class NoRetry:
    """Single attempt; failed responses are returned, not raised."""

@dataclass(frozen=True, slots=True)
class Retry:
    """
    Attempt a send up to ``tries`` times.

    Attributes:
        tries:               Maximum number of attempts (>= 1)
        interval_ms:         Wait between attempts; None or 0 means no wait
        exponential_backoff: Double the interval after every failed attempt
        throw_on_max_tries:  Raise the last failure when attempts run out,
                             instead of returning the last failed response
    """

    tries: int
    interval_ms: int | None = None
    exponential_backoff: bool = False
    throw_on_max_tries: bool = True

    def __post_init__(self) -> None:
        if self.tries < 1:
            raise ValueError(f"tries must be at least 1, got {self.tries}")
        if self.interval_ms is not None and self.interval_ms < 0:
            raise ValueError(f"interval_ms must not be negative, got {self.interval_ms}")

    def delay_ms(self, attempt: int) -> int:
        """Delay after the given (1-based) failed attempt."""
        if not self.interval_ms:
            return 0
        if self.exponential_backoff:
            return self.interval_ms * (2 ** (attempt - 1))
        return self.interval_ms

RetryPolicy = NoRetry | Retry

NO_RETRY = NoRetry()

def resolve_policy(*sources: Any) -> RetryPolicy:
    """
    Build the effective policy from retry settings holders, most specific first.

    Each source exposes ``tries``, ``retry_interval``,
    ``use_exponential_backoff`` and ``throw_on_max_tries``; for every field
    the first source with a non-None value wins. No ``tries`` anywhere means
    ``NoRetry``, and so does ``tries < 1`` (a single attempt, nothing retried).
    """
    def first(attr: str) -> Any:
        for source in sources:
            value = getattr(source, attr, None)
            if value is not None:
                return value
        return None

    tries = first("tries")
    if tries is None or tries < 1:
        return NO_RETRY

    throw = first("throw_on_max_tries")
    return Retry(
        tries=tries,
        interval_ms=first("retry_interval"),
        exponential_backoff=bool(first("use_exponential_backoff")),
        throw_on_max_tries=True if throw is None else throw,
    )

# ── Orchestrator ─────────────────────────────────────────────────────────────

@dataclass
class _RetryState:
    """Per-invocation mutable state. Never shared across sends."""

    attempt: int = 0
    last_failure: RetryableFailure | None = None
    delays_ms: list[int] = field(default_factory=list)

class RetryOrchestrator(Generic[RequestT, ResponseT]):
    """
    Drives send attempts under a retry policy.

    The same ``request`` object is handed to every attempt and to the hook,
    so a hook may mutate it (e.g. refresh a credential) before the next try.

    Usage:
        orchestrator = RetryOrchestrator(Retry(tries=3, interval_ms=100))
        response = orchestrator.run(request, connector_attempt)
    """

    def __init__(
        self,
        policy: RetryPolicy,
        should_retry: RetryHook | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        async_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._policy = policy
        self._should_retry = should_retry
        self._sleep = sleep
        self._async_sleep = async_sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    # ── Public API ───────────────────────────────────────────────────

    def run(self, request: RequestT, send: Callable[[RequestT], ResponseT]) -> ResponseT:
        """Run ``send`` until it succeeds or the policy gives up (blocking waits)."""
        if isinstance(self._policy, NoRetry):
            return send(request)

        state = _RetryState()
        while True:
            state.attempt += 1
            try:
                return send(request)
            except (FatalRequestError, RequestError) as exc:
                state.last_failure = exc

            if not self._has_attempts_left(state):
                return self._exhausted(state)

            allowed = self._call_hook(state, request)
            if inspect.isawaitable(allowed):
                if inspect.iscoroutine(allowed):
                    allowed.close()
                raise TypeError("async retry hooks require RetryOrchestrator.arun()")
            if not allowed:
                return self._declined(state)

            delay_ms = self._next_delay(state)
            if delay_ms:
                self._sleep(delay_ms / 1000)

    async def arun(
        self,
        request: RequestT,
        send: Callable[[RequestT], ResponseT | Awaitable[ResponseT]],
    ) -> ResponseT:
        """Async twin of :meth:`run`; ``send`` and the hook may be sync or async."""
        if isinstance(self._policy, NoRetry):
            return await _resolve(send(request))

        state = _RetryState()
        while True:
            state.attempt += 1
            try:
                return await _resolve(send(request))
            except (FatalRequestError, RequestError) as exc:
                state.last_failure = exc

            if not self._has_attempts_left(state):
                return self._exhausted(state)

            if not await _resolve(self._call_hook(state, request)):
                return self._declined(state)

            delay_ms = self._next_delay(state)
            if delay_ms:
                await self._async_sleep(delay_ms / 1000)

    # ── Internal ─────────────────────────────────────────────────────

    def _has_attempts_left(self, state: _RetryState) -> bool:
        return state.attempt < self._policy.tries

    def _call_hook(self, state: _RetryState, request: RequestT) -> bool | Awaitable[bool]:
        if self._should_retry is None:
            return True
        return self._should_retry(state.last_failure, request)

    def _next_delay(self, state: _RetryState) -> int:
        delay_ms = self._policy.delay_ms(state.attempt)
        state.delays_ms.append(delay_ms)
        logger.warning(
            "retry_scheduled",
            attempt=state.attempt,
            max_tries=self._policy.tries,
            delay_ms=delay_ms,
            failure=type(state.last_failure).__name__,
        )
        return delay_ms

    def _declined(self, state: _RetryState) -> ResponseT:
        logger.info(
            "retry_declined",
            attempt=state.attempt,
            failure=type(state.last_failure).__name__,
        )
        return self._give_up(state)

    def _exhausted(self, state: _RetryState) -> ResponseT:
        logger.warning(
            "retries_exhausted",
            attempts=state.attempt,
            total_delay_ms=sum(state.delays_ms),
            failure=type(state.last_failure).__name__,
        )
        return self._give_up(state)

    def _give_up(self, state: _RetryState) -> ResponseT:
        failure = state.last_failure
        if self._policy.throw_on_max_tries or isinstance(failure, FatalRequestError):
            raise failure
        return failure.response

async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
