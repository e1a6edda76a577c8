"""
Capabilities
============

Behaviour shared by connectors and request definitions, composed from
explicit mixins rather than dynamic attribute forwarding:

- HasRequestProperties: default/override headers and query, own middleware
- Authenticatable:      an optional authenticator plus builder shortcuts
- Retryable:            retry settings, builder methods and the retry hook
- HasBody:              a request body with a default

Class attributes act as defaults; builder methods set instance attributes,
so ``class Flaky(Request): tries = 3`` and ``Flaky().with_retry(5)`` both work.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from conduit.core.retry import RetryableFailure, RetryPolicy, resolve_policy
from conduit.http.auth import (
    Authenticator,
    BasicAuthenticator,
    HeaderAuthenticator,
    QueryAuthenticator,
    TokenAuthenticator,
)
from conduit.http.store import ArrayStore
from conduit.middleware import MiddlewarePipeline

if TYPE_CHECKING:
    from conduit.http.request import Request

class HasRequestProperties:
    _headers: ArrayStore | None = None
    _query: ArrayStore | None = None
    _middleware: MiddlewarePipeline | None = None

    def default_headers(self) -> dict[str, Any]:
        return {}

    def default_query(self) -> dict[str, Any]:
        return {}

    def headers(self) -> ArrayStore:
        if self._headers is None:
            self._headers = ArrayStore(self.default_headers())
        return self._headers

    def query(self) -> ArrayStore:
        if self._query is None:
            self._query = ArrayStore(self.default_query())
        return self._query

    def middleware(self) -> MiddlewarePipeline:
        """Pipes registered here are merged into every send."""
        if self._middleware is None:
            self._middleware = MiddlewarePipeline()
        return self._middleware

class Authenticatable:
    _authenticator: Authenticator | None = None

    def default_auth(self) -> Authenticator | None:
        return None

    def get_authenticator(self) -> Authenticator | None:
        return self._authenticator or self.default_auth()

    def authenticate(self, authenticator: Authenticator) -> Self:
        self._authenticator = authenticator
        return self

    def with_token_auth(self, token: str, prefix: str = "Bearer") -> Self:
        return self.authenticate(TokenAuthenticator(token, prefix))

    def with_basic_auth(self, username: str, password: str) -> Self:
        return self.authenticate(BasicAuthenticator(username, password))

    def with_query_auth(self, parameter: str, value: str) -> Self:
        return self.authenticate(QueryAuthenticator(parameter, value))

    def with_header_auth(self, value: str, header: str = "Authorization") -> Self:
        return self.authenticate(HeaderAuthenticator(value, header))

class Retryable:
    """
    Retry settings. ``tries = None`` leaves the decision to the other party
    (request vs connector); when neither sets it, sends are not retried.
    """

    tries: int | None = None
    retry_interval: int | None = None  # milliseconds
    use_exponential_backoff: bool | None = None
    throw_on_max_tries: bool | None = None

    def handle_retry(self, failure: RetryableFailure, request: Request) -> bool:
        """
        Decide whether another attempt should be made.

        ``failure.response`` is available for HTTP-level failures. The request
        may be modified here; the next attempt sees the change.
        """
        return True

    def with_retry(
        self,
        tries: int | None,
        interval_ms: int | None = None,
        exponential_backoff: bool | None = None,
        throw_on_max_tries: bool | None = None,
    ) -> Self:
        self.tries = tries
        if interval_ms is not None:
            self.with_retry_interval(interval_ms)
        if exponential_backoff is not None:
            self.with_exponential_backoff(exponential_backoff)
        if throw_on_max_tries is not None:
            self.with_throw_on_max_tries(throw_on_max_tries)
        return self

    def with_retry_interval(self, milliseconds: int | None) -> Self:
        self.retry_interval = milliseconds
        return self

    def with_exponential_backoff(self, enabled: bool | None = True) -> Self:
        self.use_exponential_backoff = enabled
        return self

    def with_throw_on_max_tries(self, enabled: bool | None = True) -> Self:
        self.throw_on_max_tries = enabled
        return self

    def without_retry(self) -> Self:
        return self.with_retry(None)

    def retry_policy(self) -> RetryPolicy:
        """Policy from this object's settings alone."""
        return resolve_policy(self)

class HasBody:
    _body: Any = None
    _body_loaded: bool = False

    def default_body(self) -> Any:
        return None

    def body(self) -> Any:
        if not self._body_loaded:
            self._body = self.default_body()
            self._body_loaded = True
        return self._body

    def with_body(self, body: Any) -> Self:
        self._body = body
        self._body_loaded = True
        return self
