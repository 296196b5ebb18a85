"""
Recurring Tasks

A cancellable, interval-driven background task. The sleep coroutine is
injectable so tests can drive the schedule with a virtual clock instead of
waiting on wall time.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Tick = Callable[[], Union[Awaitable[Any], Any]]
Sleep = Callable[[float], Awaitable[Any]]


class RecurringTask:
    """
    Runs ``callback`` every ``interval_s`` seconds until cancelled.

    The first invocation happens after one interval unless
    ``run_immediately`` is set. A failing callback is logged and the
    schedule continues.
    """

    def __init__(
        self,
        interval_s: float,
        callback: Tick,
        *,
        name: str = "recurring-task",
        sleep: Sleep = asyncio.sleep,
        run_immediately: bool = False,
    ) -> None:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        self._interval_s = interval_s
        self._callback = callback
        self._name = name
        self._sleep = sleep
        self._run_immediately = run_immediately
        self._task: Optional[asyncio.Task[None]] = None
        self._runs = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def runs(self) -> int:
        """Number of completed callback invocations."""
        return self._runs

    def start(self) -> None:
        """Schedule the loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self._name)

    def cancel(self) -> None:
        """Request cancellation without waiting for the loop to unwind."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def stop(self) -> None:
        """Cancel the loop and wait until it has fully stopped."""
        task = self._task
        if task is None:
            return
        self.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        if self._run_immediately:
            await self._invoke()
        while True:
            await self._sleep(self._interval_s)
            await self._invoke()

    async def _invoke(self) -> None:
        try:
            result = self._callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Recurring task {self._name} failed")
        finally:
            self._runs += 1
