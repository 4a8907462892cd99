import asyncio
from typing import Callable, Optional


class FrameThrottle:
    """Keeps only the last scheduled callback.

    Every `schedule()` cancels the pending handle and arms a new one
    `delay` seconds later on the running event loop, so a burst of input
    events collapses into a single evaluation.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, callback: Callable[[], None]) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, callback)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()
