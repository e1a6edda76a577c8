"""Small lookup helpers shared by responses and tests."""

from collections.abc import Mapping, Sequence
from typing import Any

_MISSING = object()

def dot_get(obj: Any, key: str | None, default: Any = None) -> Any:
    """
    Get a nested item using "dot" notation.

    Walks mappings by key, sequences by integer index and other objects by
    attribute. Returns ``default`` as soon as a segment is missing.

    >>> dot_get({"user": {"roles": ["admin"]}}, "user.roles.0")
    'admin'
    """
    if key is None or key == "":
        return obj

    for segment in key.split("."):
        obj = _step(obj, segment)
        if obj is _MISSING:
            return default
    return obj

def _step(obj: Any, segment: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(segment, _MISSING)
    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes)):
        try:
            return obj[int(segment)]
        except (ValueError, IndexError):
            return _MISSING
    return getattr(obj, segment, _MISSING)
