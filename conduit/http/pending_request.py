"""
Pending Requests
================

The mutable, fully resolved form of a request for one attempt. Built from the
connector and the request definition:

  - URL:        connector base URL + request endpoint
  - headers:    connector headers, then request headers (request wins)
  - query:      same merge order as headers
  - middleware: connector pipes, then request pipes, then the authenticator
                as the LAST request pipe
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from conduit.core.types import Method, PipeOrder
from conduit.http.auth import AUTHENTICATOR_PIPE
from conduit.http.capabilities import HasBody
from conduit.http.response import Response
from conduit.http.store import ArrayStore
from conduit.middleware import MiddlewarePipeline

if TYPE_CHECKING:
    from conduit.http.connector import Connector
    from conduit.http.request import Request

def join_url(base_url: str, endpoint: str) -> str:
    if endpoint.startswith(("http://", "https://")):
        return endpoint
    if not endpoint:
        return base_url
    return base_url.rstrip("/") + "/" + endpoint.lstrip("/")

class PendingRequest:
    """Everything the sender needs; request pipes read and mutate this."""

    def __init__(self, connector: Connector, request: Request) -> None:
        self.connector = connector
        self.request = request
        self.method = Method(request.method)
        self.url = join_url(connector.resolve_base_url(), request.resolve_endpoint())
        self.headers = ArrayStore().merge(connector.headers().all(), request.headers().all())
        self.query = ArrayStore().merge(connector.query().all(), request.query().all())
        self.body: Any = request.body() if isinstance(request, HasBody) else None

        # Raises DuplicatePipeNameError when connector and request share a pipe name
        self.middleware = MiddlewarePipeline(request_type=PendingRequest, response_type=Response)
        self.middleware.merge(connector.middleware()).merge(request.middleware())

        authenticator = request.get_authenticator() or connector.get_authenticator()
        if authenticator is not None:
            self.middleware.on_request(
                authenticator.set, name=AUTHENTICATOR_PIPE, order=PipeOrder.LAST
            )

    def create_httpx_request(self) -> httpx.Request:
        kwargs: dict[str, Any] = {}
        if isinstance(self.body, (dict, list)):
            kwargs["json"] = self.body
        elif isinstance(self.body, (str, bytes)):
            kwargs["content"] = self.body

        return httpx.Request(
            self.method.value,
            self.url,
            headers={k: str(v) for k, v in self.headers.all().items()},
            params=self.query.all() or None,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"PendingRequest({self.method} {self.url})"
