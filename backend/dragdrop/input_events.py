"""Input events and their reduction to one coordinate pair.

Pointer (mouse drag) and touch events arrive in different shapes. They are
resolved once, at the input boundary, into a `ClientPoint` tagged with the
variant that produced it; nothing downstream looks at raw events again.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple, Union


class InputSource(Enum):
    TOUCH = "touch"
    CHANGED_TOUCHES = "changed_touches"
    POINTER = "pointer"


@dataclass(frozen=True)
class ClientPoint:
    x: float
    y: float
    source: InputSource


@dataclass
class PointerEvent:
    client_x: float
    client_y: float
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass
class TouchEvent:
    # Each touch is a (client_x, client_y) pair.
    touches: Sequence[Tuple[float, float]] = ()
    changed_touches: Sequence[Tuple[float, float]] = ()
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


InputEvent = Union[PointerEvent, TouchEvent]


@dataclass(frozen=True)
class ContainerRect:
    """Map container position in client space."""

    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0

    def to_local(self, point: ClientPoint) -> Tuple[float, float]:
        return point.x - self.left, point.y - self.top


def extract_point(event: InputEvent) -> Optional[ClientPoint]:
    """Canonical coordinates of an input event, or None if it carries none.

    A touch-end event has no active touches left; its last position is only
    available in `changed_touches`.
    """
    if isinstance(event, PointerEvent):
        return ClientPoint(event.client_x, event.client_y, InputSource.POINTER)

    if isinstance(event, TouchEvent):
        if event.touches:
            x, y = event.touches[0]
            return ClientPoint(x, y, InputSource.TOUCH)
        if event.changed_touches:
            x, y = event.changed_touches[0]
            return ClientPoint(x, y, InputSource.CHANGED_TOUCHES)
        return None

    raise TypeError(f"Unsupported input event {type(event).__name__}")


def is_touch(event: InputEvent) -> bool:
    return isinstance(event, TouchEvent)
