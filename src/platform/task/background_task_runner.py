"""
Fire-and-forget background work.

Secondary writes (audit rows, license usage counters) must never block or
alter the response they instrument. They are spawned as detached asyncio
tasks; failures are logged and counted, never raised or retried. The runner
keeps a strong reference to every pending task so it is not garbage
collected mid-flight, and drains them (bounded) at shutdown.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.gateway_metrics import metrics


class BackgroundTaskRunner:
    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, label: str) -> asyncio.Task[Any]:
        task = asyncio.create_task(self._guard(coro, label=label), name=label)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, coro: Coroutine[Any, Any, Any], *, label: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            Logger.base.warning(f'⚠️ [Background] {label} cancelled')
            raise
        except Exception as e:
            metrics.record_background_task_failure(label=label)
            Logger.base.error(f'❌ [Background] {label} failed: {type(e).__name__}: {e}')

    async def drain(self, *, timeout: float) -> int:
        """Wait for pending tasks up to `timeout` seconds, then cancel the rest.

        Returns the number of tasks that had to be cancelled.
        """
        if not self._tasks:
            return 0

        Logger.base.info(f'⏳ [Background] Draining {len(self._tasks)} pending task(s)...')
        _, still_pending = await asyncio.wait(set(self._tasks), timeout=timeout)

        leftover = list(still_pending)
        for task in leftover:
            task.cancel()
        if leftover:
            await asyncio.gather(*leftover, return_exceptions=True)
            Logger.base.warning(f'⚠️ [Background] Cancelled {len(leftover)} task(s) after {timeout}s')
        return len(leftover)
