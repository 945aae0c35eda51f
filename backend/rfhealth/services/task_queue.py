"""Background task queue for fire-and-forget ingestion.

The webhook acknowledges the sender before its payload is processed, so
the work is handed to this queue. Delivery is best effort: failures are
logged, never reported to the sender, and pending work is lost if the
process dies.
"""
import asyncio
import logging
from typing import Awaitable, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTaskQueue:
    """Runs submitted coroutines as tasks and keeps them referenced until done."""

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def submit(self, coro: Awaitable, name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Background task {task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task {task.get_name()} failed: {exc}", exc_info=exc)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for in-flight tasks. Returns False if some were cancelled at the timeout."""
        if not self._tasks:
            return True
        tasks = list(self._tasks)
        done, not_done = await asyncio.wait(tasks, timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning(f"Cancelled {len(not_done)} background tasks still running at shutdown")
            await asyncio.gather(*not_done, return_exceptions=True)
            return False
        return True
