"""Cooperative scheduling on a single asyncio event loop.

Everything that touches application state runs on the loop thread. Blocking
work (git, HTTP, clipboard) is handed to the loop's default executor and the
awaiting coroutine resumes on the loop once it completes.
"""

import asyncio
import functools
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from worktree_tasks.logging_config import get_logger

logger = get_logger(__name__)


class Scheduler:
    """Thin facade over the running event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._tasks: Set[asyncio.Task] = set()
        self.on_error: Optional[Callable[[BaseException], None]] = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        """Start a coroutine without awaiting it.

        Exceptions escaping the coroutine are reported to ``on_error``.
        """
        task = self.loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return
        logger.error(f"Unhandled error in background task: {error!r}")
        if self.on_error:
            self.on_error(error)

    async def run_blocking(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a blocking callable in the default executor and await its result."""
        return await self.loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()


class RunOnce:
    """Guard against starting the same logical request twice concurrently."""

    def __init__(self, scheduler):
        self.scheduler = scheduler
        self._running: Dict[str, bool] = {}

    def is_running(self, key: str) -> bool:
        return self._running.get(key, False)

    def run(self, key: str, factory: Callable[[], Awaitable[Any]]) -> bool:
        """Spawn ``factory()`` unless a request with the same key is in flight.

        Returns True when a new request was started.
        """
        if self._running.get(key):
            logger.debug(f"Request '{key}' already running")
            return False
        self._running[key] = True
        self.scheduler.spawn(self._guarded(key, factory))
        return True

    async def _guarded(self, key: str, factory: Callable[[], Awaitable[Any]]) -> None:
        try:
            await factory()
        finally:
            self._running.pop(key, None)
