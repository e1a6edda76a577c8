"""
Request Definitions
===================

A ``Request`` describes one API call: method, endpoint, default headers,
query and body, its own middleware and retry settings. The same definition
object is reused for every retry attempt of a send.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from conduit.core.types import Method
from conduit.http.capabilities import Authenticatable, HasBody, HasRequestProperties, Retryable

class Request(HasRequestProperties, Authenticatable, Retryable, ABC):
    """
    Base class for request definitions.

    Example:
        class GetUser(Request):
            method = Method.GET

            def __init__(self, user_id: int):
                self.user_id = user_id

            def resolve_endpoint(self) -> str:
                return f"/users/{self.user_id}"
    """

    method: Method = Method.GET

    @abstractmethod
    def resolve_endpoint(self) -> str:
        """Path relative to the connector's base URL (or an absolute URL)."""

class BodyRequest(HasBody, Request):
    """Request carrying a body. Dicts and lists are sent as JSON."""

    method: Method = Method.POST
