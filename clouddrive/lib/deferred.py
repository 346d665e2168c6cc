"""Fire-and-forget background work that may outlive the triggering request.

Work submitted here is never awaited by the response path and is not
guaranteed to finish: the host may stop the process first. Callers get no
handle back, only the promise that failures end up in the log.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class DeferredTasks:
    """Run coroutine functions as detached ``asyncio`` tasks.

    A *name* makes a submission coalesce: while a task with the same name is
    still pending, further submissions under that name are dropped.
    """

    def __init__(self) -> None:
        self._pending: set[asyncio.Task] = set()
        self._named: dict[str, asyncio.Task] = {}

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        name: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Schedule ``func(*args, **kwargs)`` on the running event loop."""
        if name is not None:
            running = self._named.get(name)
            if running is not None and not running.done():
                logger.debug("Deferred task %s already pending, skipping", name)
                return

        task = asyncio.create_task(self._guard(func, *args, **kwargs), name=name)
        self._pending.add(task)
        if name is not None:
            self._named[name] = task
        task.add_done_callback(lambda t: self._forget(t, name))

    async def drain(self, timeout: float | None = None) -> bool:
        """Wait for pending work, including work submitted while waiting.

        Returns False when *timeout* expired with tasks still running; those
        tasks are left alone, not cancelled.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._pending:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                return False
            _, still_pending = await asyncio.wait(set(self._pending), timeout=remaining)
            if still_pending and deadline is not None and loop.time() >= deadline:
                return False
        return True

    def _forget(self, task: asyncio.Task, name: str | None) -> None:
        self._pending.discard(task)
        if name is not None and self._named.get(name) is task:
            del self._named[name]

    @staticmethod
    async def _guard(func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> None:
        try:
            await func(*args, **kwargs)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning("Deferred task %s failed", getattr(func, "__qualname__", func), exc_info=True)
