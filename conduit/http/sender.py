"""
Senders
=======

A sender turns a ``PendingRequest`` into a ``Response`` or raises
``FatalRequestError`` when no response could be obtained. It knows nothing
about middleware or retries.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx

from conduit.core.config import ClientSettings, get_settings
from conduit.core.exceptions import FatalRequestError
from conduit.http.pending_request import PendingRequest
from conduit.http.response import Response
from conduit.infra.telemetry import get_logger

logger = get_logger(__name__)

@runtime_checkable
class Sender(Protocol):
    def send(self, pending_request: PendingRequest) -> Response: ...

    async def asend(self, pending_request: PendingRequest) -> Response: ...

class HttpxSender:
    """
    Sends pending requests with httpx.

    Clients are created lazily and reused, one sync and one async. Pass
    ``transport`` (e.g. ``httpx.MockTransport``) to bypass the network.

    Usage:
        with HttpxSender() as sender:
            response = sender.send(pending)
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport
        self._client: httpx.Client | None = None
        self._async_client: httpx.AsyncClient | None = None

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self._settings.timeout_s,
            connect=self._settings.connect_timeout_s,
        )

    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout(),
                follow_redirects=self._settings.follow_redirects,
                verify=self._settings.verify_tls,
                transport=self._transport,
            )
        return self._client

    def async_client(self) -> httpx.AsyncClient:
        if self._async_client is None:
            self._async_client = httpx.AsyncClient(
                timeout=self._timeout(),
                follow_redirects=self._settings.follow_redirects,
                verify=self._settings.verify_tls,
                transport=self._transport,
            )
        return self._async_client

    # ── Sending ──────────────────────────────────────────────────────

    def send(self, pending_request: PendingRequest) -> Response:
        httpx_request = pending_request.create_httpx_request()
        try:
            raw = self.client().send(httpx_request)
        except httpx.TransportError as exc:
            raise _fatal(pending_request, exc) from exc
        return Response(raw, pending_request)

    async def asend(self, pending_request: PendingRequest) -> Response:
        httpx_request = pending_request.create_httpx_request()
        try:
            raw = await self.async_client().send(httpx_request)
        except httpx.TransportError as exc:
            raise _fatal(pending_request, exc) from exc
        return Response(raw, pending_request)

    # ── Lifecycle ────────────────────────────────────────────────────

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    async def aclose(self) -> None:
        if self._async_client is not None:
            await self._async_client.aclose()
            self._async_client = None
        self.close()

    def __enter__(self) -> HttpxSender:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    async def __aenter__(self) -> HttpxSender:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

def _fatal(pending_request: PendingRequest, exc: httpx.TransportError) -> FatalRequestError:
    logger.warning(
        "transport_failed",
        method=str(pending_request.method),
        url=pending_request.url,
        error=type(exc).__name__,
    )
    return FatalRequestError(
        f"{pending_request.method} {pending_request.url} could not be sent: {exc}",
        pending_request=pending_request,
        original_error=exc,
    )
