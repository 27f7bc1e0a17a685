# minicasino/domain/game/reveal_timer.py
import asyncio
import logging
from typing import Callable, Optional


class RevealTimer:
    """
    Cancellable minimum-duration timer for a round's reveal.

    Started when submission begins; ``wait()`` returns once ``floor``
    seconds have passed since ``start()``. An optional ``on_tick`` callback
    fires every ``tick_interval`` seconds while it runs (animation frames).
    """
    def __init__(self, floor: float, tick_interval: Optional[float] = None,
                 on_tick: Optional[Callable[[int], None]] = None):
        """
        Args:
            floor: Minimum reveal duration in seconds
            tick_interval: Seconds between ticks, None for no ticks
            on_tick: Called with the tick number (1-based)
        """
        self.logger = logging.getLogger("domain.game.timer")
        self.floor = max(0.0, float(floor))
        self.tick_interval = tick_interval if tick_interval and tick_interval > 0 else None
        self.on_tick = on_tick
        self.started_at: Optional[float] = None
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    def start(self) -> "RevealTimer":
        if self._task is not None:
            raise RuntimeError("RevealTimer already started")
        loop = asyncio.get_running_loop()
        self.started_at = loop.time()
        self._task = loop.create_task(self._run())
        return self

    @property
    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        return asyncio.get_running_loop().time() - self.started_at

    async def wait(self):
        """
        Block until the floor has elapsed.

        Raises:
            asyncio.CancelledError: If the timer was cancelled
        """
        if self._task is None:
            raise RuntimeError("RevealTimer not started")
        await asyncio.shield(self._task)

    def cancel(self) -> bool:
        if self._task is None or self._task.done():
            return False
        self._task.cancel()
        return True

    async def _run(self):
        loop = asyncio.get_running_loop()
        deadline = self.started_at + self.floor
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return
            if self.tick_interval is None:
                await asyncio.sleep(remaining)
                continue
            await asyncio.sleep(min(self.tick_interval, remaining))
            if loop.time() < deadline:
                self.ticks += 1
                if self.on_tick:
                    try:
                        self.on_tick(self.ticks)
                    except Exception as e:
                        self.logger.error(f"Error in reveal tick handler: {e}")
