import time
from typing import Callable, Optional


class OperationLock:
    """Cooldown gate consulted before a new drag may start.

    Holds a single `lock_until` timestamp (same clock as `clock`). It is
    advisory only and lives as long as the zone view that owns it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.lock_until: float = 0.0

    def is_locked(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = self._clock()
        return now < self.lock_until

    def lock_for(self, seconds: float) -> None:
        self.lock_until_timestamp(self._clock() + seconds)

    def lock_until_timestamp(self, timestamp: float) -> None:
        self.lock_until = timestamp
