"""Single-consumer request queue that serializes work per provider."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]


class ProviderWorker:
    """Runs submitted jobs strictly one at a time, in submission order.

    Every exchange against a provider (history append, eviction, the remote
    round-trip and the reply append) is one job, so no two completions for
    the same provider are ever in flight together. A slow provider call
    therefore delays every queued caller behind it.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._queue: asyncio.Queue[tuple[Job, asyncio.Future]] | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(
            self._run(self._queue), name=f"provider-worker-{self.name}"
        )

    async def submit(self, job: Job) -> Any:
        """Queue ``job`` and wait for its result (or its exception)."""
        self.start()
        future = asyncio.get_running_loop().create_future()
        await self._queue.put((job, future))
        return await future

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        while self._queue is not None and not self._queue.empty():
            _, future = self._queue.get_nowait()
            if not future.done():
                future.cancel()

    # -- internal ----------------------------------------------------------

    async def _run(self, queue: asyncio.Queue[tuple[Job, asyncio.Future]]) -> None:
        while True:
            job, future = await queue.get()
            try:
                if future.done():
                    continue
                try:
                    result = await job()
                except asyncio.CancelledError:
                    future.cancel()
                    raise
                except Exception as exc:
                    if not future.done():
                        future.set_exception(exc)
                else:
                    if not future.done():
                        future.set_result(result)
            finally:
                queue.task_done()
