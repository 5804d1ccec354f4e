"""Best-effort background job runner.

Jobs are detached ``asyncio`` tasks: there is no delivery guarantee, a
failure is logged and dropped, and nothing awaits a job on the request
path. ``drain()`` and ``inline=True`` exist so callers such as tests and
shutdown can wait for outstanding work deterministically.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Awaitable

from loguru import logger

from ..memory.exceptions import BackgroundJobFailure


class BackgroundTaskRunner:
    def __init__(self, inline: bool = False, max_failures: int = 100):
        """
        Args:
            inline: Await each job inside ``spawn`` instead of detaching it.
            max_failures: How many recent failures to keep on ``failures``.
        """
        self.inline = inline
        self._tasks: set[asyncio.Task] = set()
        self.failures: deque[BackgroundJobFailure] = deque(maxlen=max_failures)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def _run(self, name: str, job: Awaitable) -> None:
        try:
            await job
        except asyncio.CancelledError:
            logger.debug(f"Background job '{name}' cancelled")
            raise
        except Exception as e:
            failure = BackgroundJobFailure(name, e)
            self.failures.append(failure)
            logger.error(str(failure))

    async def spawn(self, name: str, job: Awaitable) -> None:
        """Schedule ``job``. Returns without waiting unless running inline."""
        if self.inline:
            await self._run(name, job)
            return
        task = asyncio.create_task(self._run(name, job), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for every job spawned so far."""
        while self._tasks:
            tasks = list(self._tasks)
            done, pending = await asyncio.wait(tasks, timeout=timeout)
            if pending:
                logger.warning(f"{len(pending)} background job(s) still running")
                return

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
