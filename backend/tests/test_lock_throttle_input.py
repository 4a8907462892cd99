import asyncio

import pytest

from dragdrop.input_events import (
    ClientPoint,
    ContainerRect,
    InputSource,
    PointerEvent,
    TouchEvent,
    extract_point,
)
from dragdrop.operation_lock import OperationLock
from dragdrop.throttle import FrameThrottle


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


# ------------------------
# Operation lock
# ------------------------

def test_lock_window():
    clock = FakeClock()
    lock = OperationLock(clock)
    assert not lock.is_locked()

    lock.lock_for(0.5)
    assert lock.is_locked()
    clock.now = 1000.25
    assert lock.is_locked()
    clock.now = 1000.5
    assert not lock.is_locked()


def test_lock_accepts_explicit_now():
    lock = OperationLock(FakeClock())
    lock.lock_until_timestamp(2000.0)
    assert lock.is_locked(now=1999.0)
    assert not lock.is_locked(now=2000.0)


# ------------------------
# Throttle
# ------------------------

@pytest.mark.asyncio
async def test_throttle_keeps_only_the_last_callback():
    calls = []
    throttle = FrameThrottle(0.01)
    for i in range(5):
        throttle.schedule(lambda i=i: calls.append(i))
    assert throttle.pending

    await asyncio.sleep(0.05)

    assert calls == [4]
    assert not throttle.pending


@pytest.mark.asyncio
async def test_cancelled_throttle_never_fires():
    calls = []
    throttle = FrameThrottle(0.01)
    throttle.schedule(lambda: calls.append(1))
    throttle.cancel()

    await asyncio.sleep(0.03)

    assert calls == []


# ------------------------
# Input events
# ------------------------

def test_pointer_event_point():
    assert extract_point(PointerEvent(10, 20)) == ClientPoint(10, 20, InputSource.POINTER)


def test_touch_event_prefers_active_touches():
    event = TouchEvent(touches=[(5, 6), (7, 8)], changed_touches=[(1, 2)])
    assert extract_point(event) == ClientPoint(5, 6, InputSource.TOUCH)


def test_touch_end_falls_back_to_changed_touches():
    event = TouchEvent(touches=[], changed_touches=[(1, 2)])
    assert extract_point(event) == ClientPoint(1, 2, InputSource.CHANGED_TOUCHES)


def test_touch_without_coordinates():
    assert extract_point(TouchEvent()) is None


def test_unknown_event_type():
    with pytest.raises(TypeError):
        extract_point(object())


def test_container_relative_coordinates():
    rect = ContainerRect(left=100, top=50, width=300, height=300)
    assert rect.to_local(ClientPoint(150, 80, InputSource.POINTER)) == (50, 30)


def test_prevent_default():
    event = PointerEvent(0, 0)
    event.prevent_default()
    assert event.default_prevented
