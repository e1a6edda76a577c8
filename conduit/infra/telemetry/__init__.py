"""
Telemetry Layer
===============

Structured logging with per-send correlation ids.

Usage:
    from conduit.infra.telemetry import get_logger

    logger = get_logger(__name__)
    logger.info("request_sent", method="GET", url="https://example.test/users")
"""

from conduit.infra.telemetry.logger import (
    BoundLogger,
    StructuredFormatter,
    StructuredLogger,
    clear_request_context,
    get_logger,
    get_request_id,
    reset_request_context,
    set_request_context,
    setup_logging,
)

__all__ = [
    "BoundLogger",
    "StructuredFormatter",
    "StructuredLogger",
    "clear_request_context",
    "get_logger",
    "get_request_id",
    "reset_request_context",
    "set_request_context",
    "setup_logging",
]
