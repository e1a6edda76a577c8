"""
Authenticators
==============

An authenticator mutates a pending request right before it is sent. The
connector registers it as the last request pipe, named "authenticator".
"""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from conduit.http.pending_request import PendingRequest

AUTHENTICATOR_PIPE = "authenticator"

@runtime_checkable
class Authenticator(Protocol):
    def set(self, pending_request: PendingRequest) -> None:
        """Apply credentials to the pending request in place."""
        ...

class QueryAuthenticator:
    """Adds a credential as a query parameter, e.g. ``?api_key=...``."""

    def __init__(self, parameter: str, value: str) -> None:
        self.parameter = parameter
        self.value = value

    def set(self, pending_request: PendingRequest) -> None:
        pending_request.query.add(self.parameter, self.value)

class HeaderAuthenticator:
    """Sends a raw credential in a header (``Authorization`` by default)."""

    def __init__(self, value: str, header: str = "Authorization") -> None:
        self.value = value
        self.header = header

    def set(self, pending_request: PendingRequest) -> None:
        pending_request.headers.add(self.header, self.value)

class TokenAuthenticator:
    """``Authorization: <prefix> <token>``; prefix defaults to Bearer."""

    def __init__(self, token: str, prefix: str = "Bearer") -> None:
        self.token = token
        self.prefix = prefix

    def set(self, pending_request: PendingRequest) -> None:
        value = f"{self.prefix} {self.token}".strip()
        pending_request.headers.add("Authorization", value)

class BasicAuthenticator:
    def __init__(self, username: str, password: str) -> None:
        self.username = username
        self.password = password

    def set(self, pending_request: PendingRequest) -> None:
        raw = f"{self.username}:{self.password}".encode()
        encoded = base64.b64encode(raw).decode("ascii")
        pending_request.headers.add("Authorization", f"Basic {encoded}")
