from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Cancellable delay: run `callback(value)` once input has been quiet for `delay_s`.

    Each `trigger()` cancels a not-yet-fired run and restarts the window. A run
    that has already fired is left to finish.
    """

    def __init__(self, delay_s: float, callback: Callable[[T], Awaitable[None]], *, name: str = "debounce") -> None:
        self._delay_s = max(0.0, float(delay_s))
        self._callback = callback
        self._name = name
        self._timer: Optional[asyncio.Task[None]] = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def delay_s(self) -> float:
        return self._delay_s

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def trigger(self, value: T) -> None:
        self.cancel()
        task = asyncio.create_task(self._fire_later(value), name=f"{self._name}-timer")
        self._timer = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel(self) -> bool:
        """Drop the pending run, if any. Returns True when something was cancelled."""
        timer, self._timer = self._timer, None
        if timer is None or timer.done():
            return False
        timer.cancel()
        return True

    async def drain(self) -> None:
        """Wait for the pending run (and any run in progress) to complete."""
        while True:
            running = [t for t in self._tasks if not t.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)

    async def aclose(self) -> None:
        self.cancel()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _fire_later(self, value: T) -> None:
        await asyncio.sleep(self._delay_s)
        # Fired: later triggers start a new window instead of cancelling this run.
        if self._timer is asyncio.current_task():
            self._timer = None
        try:
            await self._callback(value)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("%s callback failed", self._name)
