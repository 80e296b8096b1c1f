"""Tracking for fire-and-forget work that must still run to completion."""

import asyncio
from collections.abc import Coroutine
from typing import Any

from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)


class BackgroundTasks:
    """Holds strong references to spawned tasks and logs their failures.

    ``drain`` is awaited at shutdown so billing and audit writes are not dropped
    when the process stops.
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        """Schedule ``coro`` on the running loop without awaiting it."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Background task {task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task {task.get_name()} failed: {exc}", exc_info=exc)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for outstanding tasks, cancelling whatever is left after ``timeout``."""
        if not self._tasks:
            return

        pending = set(self._tasks)
        logger.info(f"Waiting for {len(pending)} background tasks")
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        for task in still_pending:
            logger.warning(f"Cancelling background task {task.get_name()} after drain timeout")
            task.cancel()
        if still_pending:
            await asyncio.gather(*still_pending, return_exceptions=True)
