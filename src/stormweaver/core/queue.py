"""Serialized execution of async tasks."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Awaitable, Callable, TypeVar

from stormweaver.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SerialTaskQueue:
    """FIFO queue that runs at most one task at a time.

    Used to serialize access to a single shared resource (a search session, a rate-limited
    endpoint) no matter how many coroutines call into it concurrently. Tasks are passed as
    zero-argument factories so nothing starts before its turn.
    """

    def __init__(self) -> None:
        self._pending: deque[tuple[Callable[[], Awaitable[Any]], asyncio.Future[Any]]] = deque()
        self._drain_task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def pending(self) -> int:
        """Number of tasks waiting to start."""
        return len(self._pending)

    @property
    def running(self) -> bool:
        """Whether the drain loop is active."""
        return self._running

    async def enqueue(self, task_factory: Callable[[], Awaitable[T]]) -> T:
        """Schedule a task and wait for its result.

        Args:
            task_factory: Zero-argument callable returning the awaitable to run.

        Returns:
            The task's result.

        Raises:
            Exception: Whatever the task raised. Later tasks still run.
            asyncio.CancelledError: The task was cancelled, or the queue was torn down
                before it ran.
        """

        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()
        self._pending.append((task_factory, future))
        if not self._running:
            self._running = True
            self._drain_task = loop.create_task(self._drain())
        return await future

    async def _drain(self) -> None:
        try:
            while self._pending:
                task_factory, future = self._pending.popleft()
                if future.cancelled():
                    continue
                work = asyncio.ensure_future(_run(task_factory))
                try:
                    await asyncio.wait({work})
                except asyncio.CancelledError:
                    # the drain itself was cancelled; take the running task with it
                    work.cancel()
                    future.cancel()
                    raise
                if work.cancelled():
                    logger.debug("Queued task was cancelled")
                    future.cancel()
                    continue
                error = work.exception()
                if future.cancelled():
                    continue
                if error is not None:
                    logger.debug("Queued task failed", extra={"error": str(error)})
                    future.set_exception(error)
                else:
                    future.set_result(work.result())
        finally:
            while self._pending:
                _, future = self._pending.popleft()
                future.cancel()
            self._running = False
            self._drain_task = None


async def _run(task_factory: Callable[[], Awaitable[T]]) -> T:
    return await task_factory()
