"""
HTTP Layer
==========

Thin collaborators around the middleware core:

- request / pending_request: request definitions and their per-attempt form
- response:                  httpx response wrapper with status helpers
- sender:                    httpx-backed transport
- connector:                 runs sends through middleware and retries
- auth:                      query/header/token/basic authenticators
"""

from .auth import (
    Authenticator,
    BasicAuthenticator,
    HeaderAuthenticator,
    QueryAuthenticator,
    TokenAuthenticator,
)
from .capabilities import Authenticatable, HasBody, HasRequestProperties, Retryable
from .connector import Connector
from .pending_request import PendingRequest
from .request import BodyRequest, Request
from .response import Response
from .sender import HttpxSender, Sender
from .store import ArrayStore

__all__ = [
    "ArrayStore",
    "Authenticatable",
    "Authenticator",
    "BasicAuthenticator",
    "BodyRequest",
    "Connector",
    "HasBody",
    "HasRequestProperties",
    "HeaderAuthenticator",
    "HttpxSender",
    "PendingRequest",
    "QueryAuthenticator",
    "Request",
    "Response",
    "Retryable",
    "Sender",
    "TokenAuthenticator",
]
