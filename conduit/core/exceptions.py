"""Custom exception classes for conduit.

Includes:
- Base exception with a serializable error payload
- Registration errors (duplicate pipe names, bad configuration)
- Fatal (transport-level) request errors
- HTTP-level request errors, one subclass per notable status code
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from conduit.http.pending_request import PendingRequest
    from conduit.http.response import Response


class ConduitException(Exception):
    """Base exception for all conduit errors."""

    def __init__(self, detail: str, error_code: str = "CONDUIT_ERROR"):
        self.detail = detail
        self.error_code = error_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for logging or API payloads."""
        return {
            "error": self.error_code,
            "detail": self.detail,
            "timestamp": self.timestamp,
        }


class DuplicatePipeNameError(ConduitException):
    """Raised when a named pipe is registered twice on one pipeline."""

    def __init__(self, name: str):
        super().__init__(
            detail=f'The "{name}" pipe already exists on the pipeline',
            error_code="DUPLICATE_PIPE_NAME",
        )
        self.name = name


class ConfigurationError(ConduitException):
    """Raised when client settings fail validation."""

    def __init__(self, detail: str):
        super().__init__(detail=detail, error_code="CONFIGURATION_ERROR")


# =============================================================================
# REQUEST EXCEPTIONS
# =============================================================================


class FatalRequestError(ConduitException):
    """The transport could not complete the request (DNS, TCP, TLS, timeout).

    No response exists. Routed through the fatal pipeline and then always
    re-raised.
    """

    def __init__(
        self,
        detail: str,
        pending_request: PendingRequest | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(detail=detail, error_code="FATAL_REQUEST_ERROR")
        self.pending_request = pending_request
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        if self.original_error is not None:
            base["original_error"] = type(self.original_error).__name__
        return base


class RequestError(ConduitException):
    """An HTTP response indicated failure. The response stays inspectable."""

    def __init__(self, response: Response, detail: str | None = None):
        self.response = response
        self.status = response.status
        super().__init__(
            detail=detail or self._describe(response),
            error_code=f"HTTP_{response.status}",
        )

    @staticmethod
    def _describe(response: Response) -> str:
        pending = response.pending_request
        body = response.body()
        if len(body) > 200:
            body = body[:200] + "..."
        return (
            f"{pending.method} {pending.url} failed with status "
            f"{response.status}: {body}"
        )

    @property
    def pending_request(self) -> PendingRequest:
        return self.response.pending_request

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["status_code"] = self.status
        return base


class ClientRequestError(RequestError):
    """4xx response."""


class ServerRequestError(RequestError):
    """5xx response."""


class UnauthorizedError(ClientRequestError):
    pass


class ForbiddenError(ClientRequestError):
    pass


class NotFoundError(ClientRequestError):
    pass


class MethodNotAllowedError(ClientRequestError):
    pass


class RequestTimeoutError(ClientRequestError):
    pass


class UnprocessableEntityError(ClientRequestError):
    pass


class TooManyRequestsError(ClientRequestError):
    pass


class InternalServerError(ServerRequestError):
    pass


class ServiceUnavailableError(ServerRequestError):
    pass


class GatewayTimeoutError(ServerRequestError):
    pass


_STATUS_ERRORS: dict[int, type[RequestError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    405: MethodNotAllowedError,
    408: RequestTimeoutError,
    422: UnprocessableEntityError,
    429: TooManyRequestsError,
    500: InternalServerError,
    503: ServiceUnavailableError,
    504: GatewayTimeoutError,
}


def error_for_status(status: int) -> type[RequestError]:
    """Pick the most specific RequestError class for a failed status code."""
    if status in _STATUS_ERRORS:
        return _STATUS_ERRORS[status]
    if 400 <= status < 500:
        return ClientRequestError
    if status >= 500:
        return ServerRequestError
    return RequestError
