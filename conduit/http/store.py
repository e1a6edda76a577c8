"""Mutable key/value bag used for headers, query parameters and config."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

class ArrayStore:
    """Ordered dictionary wrapper with chainable mutation."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    def add(self, key: str, value: Any) -> ArrayStore:
        self._data[key] = value
        return self

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def remove(self, key: str) -> ArrayStore:
        self._data.pop(key, None)
        return self

    def merge(self, *data: Mapping[str, Any]) -> ArrayStore:
        """Merge mappings in order; later keys win."""
        for item in data:
            self._data.update(item)
        return self

    def set(self, data: Mapping[str, Any]) -> ArrayStore:
        self._data = dict(data)
        return self

    def all(self) -> dict[str, Any]:
        return dict(self._data)

    def is_empty(self) -> bool:
        return not self._data

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"
