"""
Deferred tasks - delayed, cancellable, in-process jobs.

Used for deleting a ticket channel a few seconds after it is closed. Tasks live
only in the running event loop: a restart before a task fires drops it.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger("storebot.scheduler")

JobFactory = Callable[[], Awaitable[Any]]


class DeferredTasks:
    """Keyed delayed jobs. Scheduling an existing key replaces the old job."""

    def __init__(self) -> None:
        self._tasks: Dict[str, asyncio.Task] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def schedule(self, key: str, delay: float, job: JobFactory) -> asyncio.Task:
        self.cancel(key)
        task = asyncio.create_task(self._run(key, max(0.0, delay), job), name=f"deferred:{key}")
        self._tasks[key] = task
        return task

    async def _run(self, key: str, delay: float, job: JobFactory) -> None:
        try:
            await asyncio.sleep(delay)
            await job()
        except asyncio.CancelledError:
            logger.debug("Deferred task %s cancelled", key)
            raise
        except Exception:
            logger.exception("Deferred task %s failed", key)
        finally:
            if self._tasks.get(key) is asyncio.current_task():
                self._tasks.pop(key, None)

    def cancel(self, key: str) -> bool:
        task: Optional[asyncio.Task] = self._tasks.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def cancel_all(self) -> int:
        cancelled = 0
        for key in list(self._tasks):
            if self.cancel(key):
                cancelled += 1
        return cancelled
