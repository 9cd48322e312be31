"""Throttle that coalesces bursts of "new data" signals into recomputations.

Both feed connectors call notify() once per received message. The scheduler
turns that bursty stream into recomputation fires spaced at least
throttle_ms apart. Signals are deferred, never dropped: any notify() that
arrives while IDLE arms a fire, and notify() calls while a fire is PENDING
are absorbed into it. The callback reads the store when it actually runs,
so a coalesced fire always reflects the latest writes.

All transitions run on the event loop thread, which makes "timer fired"
and "notify arrived" mutually exclusive without a lock.
"""

import asyncio
import time

from collections.abc import Awaitable, Callable
from enum import Enum

from spread_monitor.logging import get_logger

logger = get_logger(__name__)


class SchedulerState(str, Enum):
    """Throttle state machine."""

    IDLE = "idle"
    PENDING = "pending"


class UpdateScheduler:
    """Leaky-bucket style throttle in front of an async callback.

    Args:
        callback: Coroutine function run on each fire.
        throttle_ms: Minimum spacing between fires, in milliseconds.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        throttle_ms: int = 200,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._callback = callback
        self._interval = throttle_ms / 1000.0
        self._clock = clock
        self._state = SchedulerState.IDLE
        self._last_fire_time: float | None = None
        self._pending_deadline: float | None = None
        self._tasks: set[asyncio.Task] = set()  # type: ignore[type-arg]
        self._callback_lock = asyncio.Lock()
        self._fire_count = 0
        self._coalesced_count = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def last_fire_time(self) -> float | None:
        return self._last_fire_time

    @property
    def pending_deadline(self) -> float | None:
        return self._pending_deadline

    @property
    def fire_count(self) -> int:
        return self._fire_count

    @property
    def coalesced_count(self) -> int:
        return self._coalesced_count

    def notify(self) -> None:
        """Signal that new data is available.

        Must be called from the event loop thread. Never blocks.
        """
        if self._state is SchedulerState.PENDING:
            self._coalesced_count += 1
            return

        now = self._clock()
        if self._last_fire_time is None:
            delay = 0.0
        else:
            elapsed = now - self._last_fire_time
            delay = max(0.0, self._interval - elapsed)

        self._state = SchedulerState.PENDING
        self._pending_deadline = now + delay
        task = asyncio.get_running_loop().create_task(self._fire_at_deadline())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fire_at_deadline(self) -> None:
        """Wait for the pending deadline, then run the callback once.

        The whole fire runs under the callback lock. A fire armed while a slow
        callback is still running waits here, and every later notify() is
        coalesced into it, so at most one fire is ever queued.
        """
        async with self._callback_lock:
            deadline = self._pending_deadline
            if deadline is None:
                return

            # asyncio.sleep can wake marginally early; never fire before the deadline
            remaining = deadline - self._clock()
            while remaining > 0:
                await asyncio.sleep(remaining)
                remaining = deadline - self._clock()

            # Stamped once the lock is held, so spacing is measured between
            # actual callback starts.
            self._last_fire_time = self._clock()
            self._state = SchedulerState.IDLE
            self._pending_deadline = None
            self._fire_count += 1

            # Back to IDLE before running: notify() during the callback arms the
            # next trailing fire instead of being lost.
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("recompute_failed", exc_info=True)

    async def stop(self) -> None:
        """Cancel a pending fire, if any, and return to IDLE."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
        self._state = SchedulerState.IDLE
        self._pending_deadline = None
        logger.debug(
            "update_scheduler_stopped",
            fires=self._fire_count,
            coalesced=self._coalesced_count,
        )
