# File: markets/debounce.py
from __future__ import annotations

import asyncio
import logging
import typing as t

logger = logging.getLogger(__name__)


class Debouncer:
    """Run a trigger only once its callers have been quiet for ``wait`` seconds.

    Holds at most one pending timer. Each ``schedule`` call replaces the
    pending trigger, so only the last one in a burst runs, with its own
    arguments. Coroutine triggers are run as a task once the timer fires.
    """

    def __init__(self, wait: float = 1.0):
        self.wait = wait
        self._handle: asyncio.TimerHandle | None = None
        self._trigger: tuple[t.Callable[..., t.Any], tuple[t.Any, ...]] | None = None
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, trigger: t.Callable[..., t.Any], *args: t.Any) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._trigger = (trigger, args)
        self._handle = loop.call_later(self.wait, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._trigger = None

    def _fire(self) -> asyncio.Task | None:
        trigger = self._trigger
        self._handle = None
        self._trigger = None
        if trigger is None:
            return None
        fn, args = trigger
        result = fn(*args)
        if asyncio.iscoroutine(result):
            self._task = asyncio.ensure_future(result)
            self._task.add_done_callback(_log_task_error)
            return self._task
        return None

    async def flush(self) -> None:
        """Fire the pending trigger now and wait for it to finish."""
        if self._handle is not None:
            self._handle.cancel()
            self._fire()
        if self._task is not None and not self._task.done():
            await self._task


def _log_task_error(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Debounced trigger failed: %s", exc, exc_info=exc)
