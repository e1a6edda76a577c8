"""HTTP response wrapper with status helpers and error conversion."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from conduit.core.exceptions import RequestError, error_for_status
from conduit.helpers import dot_get

if TYPE_CHECKING:
    from conduit.http.pending_request import PendingRequest

class Response:
    """Wraps an ``httpx.Response`` together with the request that produced it."""

    def __init__(self, raw: httpx.Response, pending_request: PendingRequest) -> None:
        self.raw = raw
        self.pending_request = pending_request

    @property
    def status(self) -> int:
        return self.raw.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.raw.headers

    def header(self, key: str, default: str | None = None) -> str | None:
        return self.raw.headers.get(key, default)

    def body(self) -> str:
        return self.raw.text

    def json(self, key: str | None = None, default: Any = None) -> Any:
        """Decoded JSON body, optionally narrowed with a dotted key (``"data.0.id"``)."""
        data = self.raw.json() if self.raw.content else {}
        return dot_get(data, key, default)

    # ── Status helpers ───────────────────────────────────────────────

    @property
    def ok(self) -> bool:
        return self.status == 200

    @property
    def successful(self) -> bool:
        return 200 <= self.status < 300

    @property
    def redirect(self) -> bool:
        return 300 <= self.status < 400

    @property
    def client_error(self) -> bool:
        return 400 <= self.status < 500

    @property
    def server_error(self) -> bool:
        return self.status >= 500

    @property
    def failed(self) -> bool:
        return self.client_error or self.server_error

    # ── Error conversion ─────────────────────────────────────────────

    def to_exception(self) -> RequestError | None:
        if not self.failed:
            return None
        return error_for_status(self.status)(self)

    def throw(self) -> Response:
        """Raise the matching RequestError if the response failed, else return self."""
        exc = self.to_exception()
        if exc is not None:
            raise exc
        return self

    def __repr__(self) -> str:
        return f"Response({self.status} {self.pending_request.method} {self.pending_request.url})"
