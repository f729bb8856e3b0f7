from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Optional, Set

from loguru import logger

from .metrics import RatingMetrics


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class TaskDispatcher:
    """
    Fire-and-forget dispatch for collaborator calls (review request, URL open).

    Inside a running event loop the call becomes a task and ``submit`` returns
    immediately; without a loop it runs inline. Failures are logged and
    counted, never raised to the caller.
    """

    def __init__(self, metrics: Optional[RatingMetrics] = None) -> None:
        self.metrics = metrics or RatingMetrics()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, label: str, fn: Callable[..., Any], *args: Any) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            asyncio.run(self._run(label, fn, *args))
            return None

        task = loop.create_task(self._run(label, fn, *args), name=f"ratingkit:{label}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """等待所有未完成的派发任务"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, label: str, fn: Callable[..., Any], *args: Any) -> None:
        try:
            await maybe_await(fn(*args))
            self.metrics.dispatched_total += 1
            logger.debug(f"Dispatched {label}")
        except Exception as e:
            self.metrics.dispatch_failures += 1
            logger.warning(f"Collaborator call {label} failed (ignored): {e}")
