"""
Core Layer
==========

Shared types, the exception hierarchy, client settings and retry
orchestration. Nothing here knows about httpx.
"""

from .config import ClientSettings, get_settings
from .exceptions import (
    ClientRequestError,
    ConduitException,
    ConfigurationError,
    DuplicatePipeNameError,
    FatalRequestError,
    RequestError,
    ServerRequestError,
)
from .retry import NO_RETRY, NoRetry, Retry, RetryOrchestrator, RetryPolicy, resolve_policy
from .types import Method, PipelineCategory, PipeOrder

__all__ = [
    "NO_RETRY",
    "ClientRequestError",
    "ClientSettings",
    "ConduitException",
    "ConfigurationError",
    "DuplicatePipeNameError",
    "FatalRequestError",
    "Method",
    "NoRetry",
    "PipeOrder",
    "PipelineCategory",
    "RequestError",
    "Retry",
    "RetryOrchestrator",
    "RetryPolicy",
    "ServerRequestError",
    "get_settings",
    "resolve_policy",
]
