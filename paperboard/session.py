"""Cancellation scope for AI requests issued on behalf of one open project."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionCancelled(RuntimeError):
    """Raised when work completes after its session was closed."""


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise SessionCancelled("session closed")


class Session:
    """Tracks outstanding tasks of one project; :meth:`close` cancels them all."""

    def __init__(self, project_id: Optional[str] = None) -> None:
        self.project_id = project_id
        self.token = CancellationToken()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def closed(self) -> bool:
        return self.token.cancelled

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def spawn(self, awaitable: Awaitable[T]) -> "asyncio.Task[T]":
        if self.token.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise SessionCancelled("session closed")
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* as a tracked task and fail if the session closed meanwhile."""

        try:
            result = await self.spawn(awaitable)
        except asyncio.CancelledError:
            if self.token.cancelled:
                raise SessionCancelled("session closed") from None
            raise
        self.token.raise_if_cancelled()
        return result

    def close(self) -> None:
        if self.token.cancelled:
            return
        self.token.cancel()
        outstanding = [task for task in self._tasks if not task.done()]
        for task in outstanding:
            task.cancel()
        if outstanding:
            logger.info("Cancelled %d outstanding request(s) of project %s", len(outstanding), self.project_id)


__all__ = ["SessionCancelled", "CancellationToken", "Session"]
