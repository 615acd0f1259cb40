"""Fire-time ordered timer queue driven by a single asyncio task."""

import asyncio
import contextlib
import heapq
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from meal_adherence.services.clock import Clock

logger = logging.getLogger(__name__)

TimerCallback = Callable[[UUID], Awaitable[None]]


@dataclass
class TimerQueue:
    """Priority queue of pending timers with one wake loop.

    Entries are keyed by id; scheduling an id again supersedes the earlier
    entry and discarding an id drops it lazily from the heap.
    """

    clock: Clock
    callback: TimerCallback
    max_sleep_seconds: float = 60.0
    _heap: list[tuple[datetime, int, UUID]] = field(default_factory=list, init=False)
    _due: dict[UUID, datetime] = field(default_factory=dict, init=False)
    _counter: itertools.count = field(default_factory=itertools.count, init=False)
    _wakeup: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False)

    def __len__(self) -> int:
        return len(self._due)

    def __contains__(self, key: object) -> bool:
        return key in self._due

    def schedule(self, key: UUID, fire_at: datetime) -> None:
        """Add or replace the timer for ``key``."""
        self._due[key] = fire_at
        heapq.heappush(self._heap, (fire_at, next(self._counter), key))
        self._wakeup.set()

    def discard(self, key: UUID) -> None:
        """Forget the timer for ``key`` if one is pending."""
        self._due.pop(key, None)

    def next_fire_at(self) -> datetime | None:
        """Return the earliest live fire time."""
        while self._heap:
            fire_at, _, key = self._heap[0]
            if self._due.get(key) == fire_at:
                return fire_at
            heapq.heappop(self._heap)
        return None

    async def run_due(self) -> int:
        """Fire every timer whose time has come and return how many fired."""
        fired = 0
        while True:
            fire_at = self.next_fire_at()
            if fire_at is None or fire_at > self.clock.now():
                return fired
            _, _, key = heapq.heappop(self._heap)
            self._due.pop(key, None)
            fired += 1
            try:
                await self.callback(key)
            except Exception:
                logger.exception("Timer callback failed for %s", key)

    def start(self) -> None:
        """Start the wake loop on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            self._wakeup.clear()
            fire_at = self.next_fire_at()
            if fire_at is None:
                await self._wakeup.wait()
                continue
            delay = (fire_at - self.clock.now()).total_seconds()
            if delay > 0:
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(
                        self._wakeup.wait(),
                        timeout=min(delay, self.max_sleep_seconds),
                    )
                continue
            await self.run_due()
