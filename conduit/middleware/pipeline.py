"""
Pipes & Pipelines
=================

A ``Pipeline`` is an ordered list of ``Pipe``s of one category. Executing it
folds the pipes over an in-flight value: each pipe receives the current value
and may return a replacement for every pipe after it.

Ordering is resolved at read time:
    FIRST pipes (insertion order) → unordered pipes → LAST pipes

Thread-safety: ``insert`` and ``merge`` are setup-time operations and are not
locked. Mutating a pipeline while another thread executes it is the caller's
responsibility.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from conduit.core.exceptions import DuplicatePipeNameError
from conduit.core.types import PipelineCategory, PipeOrder
from conduit.infra.telemetry import get_logger

logger = get_logger(__name__)

PipeCallable = Callable[[Any], Any]

@dataclass(frozen=True, slots=True)
class Pipe:
    """
    One unit of work in a pipeline.

    Attributes:
        callable: Receives the in-flight value; a returned value replaces it
        name:     Optional name, unique within its pipeline
        order:    PipeOrder.FIRST / PipeOrder.LAST, or None to append
    """

    callable: PipeCallable
    name: str | None = None
    order: PipeOrder | None = None

    def __call__(self, value: Any) -> Any:
        return self.callable(value)

class Pipeline:
    """
    Ordered collection of pipes for one category.

    Args:
        category: Which middleware stage this pipeline serves (for logging)
        accepts:  When set, only return values of this type replace the
                  in-flight value; other non-None returns are ignored
    """

    def __init__(
        self,
        category: PipelineCategory | None = None,
        accepts: type | tuple[type, ...] | None = None,
    ) -> None:
        self._pipes: list[Pipe] = []
        self.category = category
        self.accepts = accepts

    def __len__(self) -> int:
        return len(self._pipes)

    def insert(
        self,
        callable: PipeCallable,
        name: str | None = None,
        order: PipeOrder | str | None = None,
    ) -> Pipeline:
        """Append a pipe. Raises DuplicatePipeNameError if ``name`` is taken."""
        if name is not None and self.has_pipe(name):
            raise DuplicatePipeNameError(name)
        if order is not None:
            order = PipeOrder(order)  # "first"/"last" strings; ValueError otherwise

        self._pipes.append(Pipe(callable=callable, name=name, order=order))
        logger.debug(
            "pipe_registered",
            category=str(self.category),
            pipe=name,
            order=str(order) if order else None,
        )
        return self

    def has_pipe(self, name: str) -> bool:
        return any(pipe.name == name for pipe in self._pipes)

    def get_pipes(self) -> list[Pipe]:
        """Pipes in execution order."""
        first = [p for p in self._pipes if p.order is PipeOrder.FIRST]
        middle = [p for p in self._pipes if p.order is None]
        last = [p for p in self._pipes if p.order is PipeOrder.LAST]
        return first + middle + last

    def execute(self, value: Any) -> Any:
        """Fold the ordered pipes over ``value`` and return the final value."""
        for pipe in self.get_pipes():
            result = pipe(value)
            if self._replaces(result):
                value = result
        return value

    def merge(self, other: Pipeline) -> Pipeline:
        """
        Append every pipe of ``other``, keeping both insertion orders.

        Raises DuplicatePipeNameError before changing anything if a name
        exists in both pipelines.
        """
        self.check_mergeable(other)
        self._pipes.extend(other._pipes)
        return self

    def check_mergeable(self, other: Pipeline) -> None:
        """Raise DuplicatePipeNameError if ``other`` shares a pipe name with us."""
        names = {pipe.name for pipe in self._pipes if pipe.name is not None}
        for pipe in other._pipes:
            if pipe.name is not None and pipe.name in names:
                raise DuplicatePipeNameError(pipe.name)

    def _replaces(self, result: Any) -> bool:
        if result is None:
            return False
        return self.accepts is None or isinstance(result, self.accepts)
