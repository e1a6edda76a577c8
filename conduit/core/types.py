"""
Canonical Type Definitions
===========================

Shared enums used across the codebase:
- PipeOrder: placement group of a pipe inside its pipeline
- PipelineCategory: which of the three middleware pipelines a pipe lives in
- Method: HTTP request methods
"""

from enum import StrEnum

__all__ = [
    "Method",
    "PipeOrder",
    "PipelineCategory",
]

class PipeOrder(StrEnum):
    """Placement group for a pipe.

    FIRST and LAST are groups, not indices: several FIRST pipes keep their
    insertion order among themselves. Pipes without an order run between the
    two groups.
    """

    FIRST = "first"
    LAST = "last"

class PipelineCategory(StrEnum):
    REQUEST = "request"
    RESPONSE = "response"
    FATAL = "fatal"

class Method(StrEnum):
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
