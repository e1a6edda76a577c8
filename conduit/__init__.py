"""
conduit
=======

HTTP client toolkit built around an ordered middleware pipeline and a retry
orchestrator.

Usage:
    from conduit import ClientSettings, Connector, Request

    class Api(Connector):
        def resolve_base_url(self) -> str:
            return "https://api.example.test"

    class ListUsers(Request):
        def resolve_endpoint(self) -> str:
            return "/users"

    api = Api().with_retry(3, interval_ms=200, exponential_backoff=True)
    api.middleware().on_request(lambda p: p.headers.add("X-Trace", "1"), name="trace")
    ClientSettings.from_env().configure_logging()
    users = api.send(ListUsers()).json("data")
"""

from conduit.core import (
    NO_RETRY,
    ClientSettings,
    ConduitException,
    DuplicatePipeNameError,
    FatalRequestError,
    Method,
    NoRetry,
    PipeOrder,
    RequestError,
    Retry,
    RetryOrchestrator,
    RetryPolicy,
)
from conduit.http import (
    BodyRequest,
    Connector,
    HttpxSender,
    PendingRequest,
    Request,
    Response,
)
from conduit.middleware import MiddlewarePipeline, Pipe, Pipeline

__version__ = "0.1.0"

__all__ = [
    "NO_RETRY",
    "BodyRequest",
    "ClientSettings",
    "ConduitException",
    "Connector",
    "DuplicatePipeNameError",
    "FatalRequestError",
    "HttpxSender",
    "Method",
    "MiddlewarePipeline",
    "NoRetry",
    "PendingRequest",
    "Pipe",
    "PipeOrder",
    "Pipeline",
    "Request",
    "RequestError",
    "Response",
    "Retry",
    "RetryOrchestrator",
    "RetryPolicy",
]
