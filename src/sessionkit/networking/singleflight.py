"""Share one in-flight coroutine among concurrent callers."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """At most one pending operation; every concurrent caller awaits it.

    The operation runs as its own task, so a caller that is cancelled while
    waiting does not cancel the work shared with the other callers. The
    handle is released as soon as the task settles, before any waiter
    resumes, so the next call after settlement starts a fresh operation.
    """

    def __init__(self) -> None:
        self._task: asyncio.Task[T] | None = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Join the pending operation, or start ``operation`` if none is."""
        if self._task is None:
            task = asyncio.ensure_future(operation())
            task.add_done_callback(self._release)
            self._task = task
        return await asyncio.shield(self._task)

    def _release(self, task: asyncio.Task[T]) -> None:
        if self._task is task:
            self._task = None
        # Waiters receive the exception through shield; when every waiter was
        # cancelled, mark it retrieved so the loop does not report it.
        if not task.cancelled():
            task.exception()
