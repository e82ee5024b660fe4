"""Ordered middleware chain wrapped around job enqueue or job execution.

Each middleware is a callable ``(job_type, job, queue, call_next)``. It may
inspect or mutate the job record and must return ``call_next()`` for the
job to proceed down the chain.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, Protocol

from encrypted_args.logging import get_logger

log = get_logger("encrypted_args.middleware.chain")


class Middleware(Protocol):
    """Minimal middleware interface."""

    def __call__(
        self,
        job_type: Any,
        job: dict[str, Any],
        queue: str,
        call_next: Callable[[], Any],
    ) -> Any: ...


class MiddlewareChain:
    """An ordered list of middleware.

    Only one middleware of a given class is kept: adding another instance
    of the same class replaces the earlier entry.
    """

    def __init__(self, name: str = "default") -> None:
        self.name = name
        self._entries: list[Middleware] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(list(self._entries))

    @property
    def entries(self) -> list[Middleware]:
        """Return a copy of the middleware in invocation order."""
        return list(self._entries)

    def add(self, middleware: Middleware) -> None:
        """Append a middleware so it runs last."""
        self.remove(type(middleware))
        self._entries.append(middleware)
        log.debug("middleware_added", chain=self.name, middleware=type(middleware).__name__)

    def prepend(self, middleware: Middleware) -> None:
        """Insert a middleware so it runs first."""
        self.remove(type(middleware))
        self._entries.insert(0, middleware)
        log.debug("middleware_prepended", chain=self.name, middleware=type(middleware).__name__)

    def remove(self, middleware_class: type) -> None:
        """Remove every middleware of the given class."""
        self._entries = [m for m in self._entries if type(m) is not middleware_class]

    def exists(self, middleware_class: type) -> bool:
        """Check if a middleware of the given class is in the chain."""
        return any(type(m) is middleware_class for m in self._entries)

    def clear(self) -> None:
        self._entries = []

    def invoke(
        self,
        job_type: Any,
        job: dict[str, Any],
        queue: str,
        final: Callable[[], Any],
    ) -> Any:
        """Run the job record through every middleware, then ``final``.

        Returns:
            Whatever ``final`` returns, or the value of the middleware that
            stopped the chain.
        """
        entries = list(self._entries)

        def call_at(index: int) -> Any:
            if index == len(entries):
                return final()
            return entries[index](job_type, job, queue, lambda: call_at(index + 1))

        return call_at(0)
