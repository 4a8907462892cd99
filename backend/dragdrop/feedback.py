"""User feedback sinks: toasts and haptics.

The host application plugs in its own implementations; the defaults here
only log, so the coordinator works headless (tests, scripts).
"""

import logging
from enum import Enum
from typing import List, Protocol, Tuple

logger = logging.getLogger(__name__)


class HapticPattern(Enum):
    # Vibration patterns in milliseconds (on, off, on...).
    TAP = (10,)
    SUCCESS = (20, 10, 20)
    ERROR = (50, 30, 50)


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class Haptics(Protocol):
    def vibrate(self, pattern: HapticPattern) -> None:
        """Raise `HapticsUnavailable` when the host cannot vibrate."""
        ...


class LoggingNotifier:
    def success(self, message: str) -> None:
        logger.info("toast(success): %s", message)

    def error(self, message: str) -> None:
        logger.info("toast(error): %s", message)


class NullHaptics:
    def vibrate(self, pattern: HapticPattern) -> None:
        return None


class RecordingNotifier:
    """Keeps every toast in order; handy for hosts that render toasts later."""

    def __init__(self):
        self.messages: List[Tuple[str, str]] = []

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    @property
    def errors(self) -> List[str]:
        return [m for kind, m in self.messages if kind == "error"]

    @property
    def successes(self) -> List[str]:
        return [m for kind, m in self.messages if kind == "success"]
