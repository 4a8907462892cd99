import asyncio
import json
import logging

import httpx
import pytest

from core.config import Settings
from dragdrop.drag_errors import HapticsUnavailable
from dragdrop.drag_session import DragPhase, DropAction
from dragdrop.feedback import HapticPattern, RecordingNotifier
from dragdrop.input_events import ContainerRect, PointerEvent, TouchEvent
from dragdrop.zone_view import ZoneView
from mapgrid.entity import GridEntity, GridPosition
from mapgrid.grid_config import GridConfig


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class RecordingHaptics:
    def __init__(self):
        self.patterns = []

    def vibrate(self, pattern):
        self.patterns.append(pattern)


class BrokenHaptics:
    def vibrate(self, pattern):
        raise HapticsUnavailable("no vibration motor")


def ok_handler(requests):
    def handler(request):
        requests.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})
    return handler


def make_view(handler, *, watchdog_ms=10_000, haptics=None, clock=None):
    # 3x3 grid over a 300x300 container: cell (r, c) spans x in [100(c-1), 100c], y in [100(r-1), 100r].
    config = GridConfig(max_rows=3, max_cols=3, start_x=0, end_x=300, start_y=0, end_y=300)
    settings = Settings(drag_throttle_ms=1, operation_lock_ms=500, drop_watchdog_ms=watchdog_ms)
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    view = ZoneView(
        "treetown",
        config,
        http,
        container=ContainerRect(0, 0, 300, 300),
        can_edit=True,
        notifier=RecordingNotifier(),
        haptics=haptics or RecordingHaptics(),
        settings=settings,
        clock=clock or FakeClock(),
    )
    view.mount([
        GridEntity("a", "treetown", 1, 1, {"name": "Alpha"}),
        GridEntity("b", "treetown", 2, 2, {"name": "Bravo"}),
    ])
    return view


def at(row, col):
    """Pointer event at the centre of a cell."""
    return PointerEvent(col * 100 - 50, row * 100 - 50)


async def settle_throttle():
    await asyncio.sleep(0.02)


# ------------------------
# Start guards
# ------------------------

def test_start_requires_edit_mode():
    view = make_view(ok_handler([]))
    view.can_edit = False
    event = at(1, 1)

    assert view.drag.start(view.entity("a"), event) is False
    assert event.default_prevented
    assert view.session.phase is DragPhase.IDLE


def test_start_rejected_while_loading_or_locked():
    clock = FakeClock()
    view = make_view(ok_handler([]), clock=clock)

    view.is_loading = True
    assert view.drag.start(view.entity("a"), at(1, 1)) is False
    view.is_loading = False

    view.lock.lock_for(0.5)
    assert view.drag.start(view.entity("a"), at(1, 1)) is False
    clock.now += 1
    assert view.drag.start(view.entity("a"), at(1, 1)) is True


def test_start_rejected_when_unmounted():
    view = make_view(ok_handler([]))
    view.teardown()
    assert view.drag.start(view.entity("a"), at(1, 1)) is False


def test_only_one_drag_at_a_time():
    view = make_view(ok_handler([]))
    assert view.drag.start(view.entity("a"), at(1, 1)) is True
    assert view.drag.start(view.entity("b"), TouchEvent(touches=[(150, 150)])) is False
    assert view.session.dragged_entity_id == "a"


def test_start_unknown_entity():
    view = make_view(ok_handler([]))
    assert view.drag.start(GridEntity("zz", "treetown", 3, 3), at(3, 3)) is False


# ------------------------
# Hover evaluation
# ------------------------

@pytest.mark.asyncio
async def test_move_tracks_pointer_and_resolves_action():
    view = make_view(ok_handler([]))
    view.drag.start(view.entity("a"), at(1, 1))

    view.drag.move(at(1, 3))
    # Ghost position is updated before the throttled evaluation runs.
    assert view.session.last_pointer_position == (250, 50)
    await settle_throttle()
    assert view.session.drag_over_position == GridPosition(1, 3)
    assert view.session.drop_action is DropAction.MOVE

    view.drag.move(at(2, 2))
    await settle_throttle()
    assert view.session.drop_action is DropAction.SWAP

    view.drag.move(PointerEvent(350, 50))
    await settle_throttle()
    assert view.session.drag_over_position is None
    assert view.session.drop_action is DropAction.BLOCKED


@pytest.mark.asyncio
async def test_hovering_own_cell_is_blocked():
    view = make_view(ok_handler([]))
    view.drag.start(view.entity("a"), at(1, 1))
    assert view.drag.evaluate(50, 50) is DropAction.BLOCKED


@pytest.mark.asyncio
async def test_move_with_other_modality_is_ignored():
    view = make_view(ok_handler([]))
    view.drag.start(view.entity("a"), at(1, 1))

    view.drag.move(TouchEvent(touches=[(250, 250)]))
    await settle_throttle()

    assert view.session.last_pointer_position == (50, 50)
    assert view.session.drag_over_position is None


# ------------------------
# Drop
# ------------------------

@pytest.mark.asyncio
async def test_drop_on_free_cell_moves_one_entity():
    requests = []
    view = make_view(ok_handler(requests))
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(3, 3))
    await settle_throttle()

    ok = await view.drag.drop(at(3, 3))

    assert ok is True
    assert requests == [{"establishmentId": "a", "grid_row": 3, "grid_col": 3, "zone": "treetown"}]
    assert view.position_of("a") == GridPosition(3, 3)
    assert view.position_of("b") == GridPosition(2, 2)
    assert view.session.phase is DragPhase.IDLE
    assert view.is_loading is False
    assert view.lock.is_locked()


@pytest.mark.asyncio
async def test_drop_on_occupied_cell_swaps():
    requests = []
    view = make_view(ok_handler(requests))
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(2, 2))
    await settle_throttle()

    assert await view.drag.drop(at(2, 2)) is True

    assert requests[0]["swap_with_id"] == "b"
    assert view.position_of("a") == GridPosition(2, 2)
    assert view.position_of("b") == GridPosition(1, 1)
    assert view.commit_client.notifier.successes == ["Establishments swapped"]


@pytest.mark.asyncio
async def test_drop_flushes_pending_hover():
    requests = []
    view = make_view(ok_handler(requests))
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(1, 2))

    # No time for the throttle to fire.
    assert await view.drag.drop(at(1, 2)) is True
    assert requests[0]["grid_col"] == 2


@pytest.mark.asyncio
async def test_drop_revalidates_occupancy():
    requests = []
    view = make_view(ok_handler(requests))
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(3, 1))
    await settle_throttle()
    assert view.session.drop_action is DropAction.MOVE

    # A refresh lands between the last hover and the drop.
    view.replace_entities(view.entities + [GridEntity("c", "treetown", 3, 1)])

    assert await view.drag.drop(at(3, 1)) is True
    assert requests[0]["swap_with_id"] == "c"
    assert view.position_of("c") == GridPosition(1, 1)


@pytest.mark.asyncio
async def test_drop_on_own_cell_sends_nothing():
    requests = []
    view = make_view(ok_handler(requests))
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(1, 2))
    await settle_throttle()
    # The dragged entity itself now sits on the hovered cell.
    view.replace_entities([GridEntity("a", "treetown", 1, 2), view.entity("b")])

    assert await view.drag.drop(at(1, 2)) is False
    assert requests == []
    assert view.position_of("a") == GridPosition(1, 2)
    assert view.session.phase is DragPhase.IDLE


@pytest.mark.asyncio
async def test_drop_after_entity_disappeared(caplog):
    requests = []
    view = make_view(ok_handler(requests))
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(3, 3))
    await settle_throttle()
    view.replace_entities([view.entity("b")])

    with caplog.at_level(logging.ERROR, logger="dragdrop.drag_session"):
        assert await view.drag.drop(at(3, 3)) is False

    assert requests == []
    assert "no longer listed" in caplog.text


@pytest.mark.asyncio
async def test_drop_outside_grid_is_blocked():
    requests = []
    view = make_view(ok_handler(requests))
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(PointerEvent(310, 310))
    await settle_throttle()

    assert await view.drag.drop(PointerEvent(310, 310)) is False
    assert requests == []
    assert view.session.is_dragging is False


@pytest.mark.asyncio
async def test_failed_commit_rolls_back():
    def handler(request):
        return httpx.Response(500, json={"detail": "boom"})

    haptics = RecordingHaptics()
    view = make_view(handler, haptics=haptics)
    view.drag.start(view.entity("a"), TouchEvent(touches=[(50, 50)]))
    view.drag.move(TouchEvent(touches=[(250, 250)]))
    await settle_throttle()

    assert await view.drag.drop(TouchEvent(changed_touches=[(250, 250)])) is False

    assert view.position_of("a") == GridPosition(1, 1)
    assert len(view.store) == 0
    assert not view.lock.is_locked()
    assert view.commit_client.notifier.errors == ["Server error - please try again"]
    assert haptics.patterns == [HapticPattern.TAP, HapticPattern.ERROR]


@pytest.mark.asyncio
async def test_edit_mode_revoked_mid_drag():
    requests = []
    view = make_view(ok_handler(requests))
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(1, 3))
    await settle_throttle()

    view.can_edit = False
    view.drag.move(at(3, 3))
    await settle_throttle()
    assert view.session.drag_over_position == GridPosition(1, 3)

    assert await view.drag.drop(at(1, 3)) is False
    assert requests == []


@pytest.mark.asyncio
async def test_watchdog_resets_a_hung_drop(caplog):
    release = asyncio.Event()
    requests = []

    async def handler(request):
        requests.append(request)
        await release.wait()
        return httpx.Response(200)

    view = make_view(handler, watchdog_ms=50)
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(3, 3))
    await settle_throttle()

    with caplog.at_level(logging.WARNING, logger="dragdrop.drag_session"):
        ok = await view.drag.drop(at(3, 3))

    assert ok is False
    assert len(requests) == 1
    assert "Loading timeout" in caplog.text
    assert view.session.phase is DragPhase.IDLE
    assert view.is_loading is False
    assert view.position_of("a") == GridPosition(1, 1)
    assert not view.drag.commit_in_flight


async def drag_to(view, entity_id, row, col):
    view.drag.start(view.entity(entity_id), at(1, 1))
    view.drag.move(at(row, col))
    await settle_throttle()
    return await view.drag.drop(at(row, col))


@pytest.mark.asyncio
async def test_move_back_before_refresh_is_committed():
    clock = FakeClock()
    requests = []
    view = make_view(ok_handler(requests), clock=clock)

    assert await drag_to(view, "a", 1, 3) is True
    clock.now += 1

    # No refresh yet: "a" is still (1, 1) in the authoritative list.
    assert await drag_to(view, "a", 1, 1) is True

    assert [(r["grid_row"], r["grid_col"]) for r in requests] == [(1, 3), (1, 1)]
    assert view.position_of("a") == GridPosition(1, 1)
    assert view.commit_client.notifier.successes == ["Establishment moved", "Establishment moved"]


@pytest.mark.asyncio
async def test_swap_after_move_sends_partner_to_rendered_cell():
    clock = FakeClock()
    requests = []
    view = make_view(ok_handler(requests), clock=clock)

    assert await drag_to(view, "a", 1, 3) is True
    clock.now += 1
    assert await drag_to(view, "a", 2, 2) is True

    assert requests[1]["swap_with_id"] == "b"
    assert view.position_of("a") == GridPosition(2, 2)
    assert view.position_of("b") == GridPosition(1, 3)


@pytest.mark.asyncio
async def test_failed_swap_puts_both_entities_back():
    def handler(request):
        return httpx.Response(400, json={"detail": {"code": "CONSTRAINT_VIOLATION", "message": "Database constraint violation"}})

    view = make_view(handler)
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(2, 2))
    await settle_throttle()
    assert view.session.drop_action is DropAction.SWAP

    assert await view.drag.drop(at(2, 2)) is False

    assert view.position_of("a") == GridPosition(1, 1)
    assert view.position_of("b") == GridPosition(2, 2)
    assert len(view.store) == 0
    assert view.commit_client.notifier.messages == [
        ("error", "Database constraint error - please try a different position"),
    ]
    assert view.session.phase is DragPhase.IDLE


@pytest.mark.asyncio
async def test_second_drop_during_commit_is_ignored():
    release = asyncio.Event()
    requests = []

    async def handler(request):
        requests.append(request)
        await release.wait()
        return httpx.Response(200)

    view = make_view(handler)
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(3, 3))
    await settle_throttle()

    first = asyncio.ensure_future(view.drag.drop(at(3, 3)))
    await asyncio.sleep(0.01)
    assert view.session.phase is DragPhase.DROPPING

    # The synthesized mouseup following touchend.
    assert await view.drag.drop(at(3, 3)) is False
    assert view.session.phase is DragPhase.DROPPING
    assert view.session.dragged_entity_id == "a"

    release.set()
    assert await first is True
    assert len(requests) == 1
    assert view.position_of("a") == GridPosition(3, 3)
    assert view.session.phase is DragPhase.IDLE


# ------------------------
# Touch specifics
# ------------------------

@pytest.mark.asyncio
async def test_touch_drag_prevents_scrolling_and_vibrates():
    haptics = RecordingHaptics()
    view = make_view(ok_handler([]), haptics=haptics)
    start = TouchEvent(touches=[(50, 50)])

    assert view.drag.start(view.entity("a"), start) is True
    assert start.default_prevented

    # Touch-end style move: only changed touches carry the position.
    view.drag.move(TouchEvent(changed_touches=[(150, 250)]))
    await settle_throttle()
    assert view.session.drag_over_position == GridPosition(3, 2)

    assert await view.drag.drop(TouchEvent(changed_touches=[(150, 250)])) is True
    assert haptics.patterns == [HapticPattern.TAP, HapticPattern.SUCCESS]


@pytest.mark.asyncio
async def test_pointer_drag_does_not_vibrate():
    haptics = RecordingHaptics()
    view = make_view(ok_handler([]), haptics=haptics)
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(3, 3))
    await settle_throttle()
    await view.drag.drop(at(3, 3))
    assert haptics.patterns == []


def test_missing_haptics_does_not_break_the_drag():
    view = make_view(ok_handler([]), haptics=BrokenHaptics())
    assert view.drag.start(view.entity("a"), TouchEvent(touches=[(50, 50)])) is True


# ------------------------
# Lifecycle
# ------------------------

@pytest.mark.asyncio
async def test_end_and_cancel_reset_the_session():
    view = make_view(ok_handler([]))
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(2, 3))
    view.drag.end()
    await settle_throttle()

    assert view.session.phase is DragPhase.IDLE
    assert view.session.drag_over_position is None

    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.cancel()
    assert view.session.dragged_entity_id is None


@pytest.mark.asyncio
async def test_teardown_during_drop_rolls_back():
    release = asyncio.Event()

    async def handler(request):
        await release.wait()
        return httpx.Response(200)

    view = make_view(handler)
    view.drag.start(view.entity("a"), at(1, 1))
    view.drag.move(at(3, 3))
    await settle_throttle()

    drop = asyncio.ensure_future(view.drag.drop(at(3, 3)))
    await asyncio.sleep(0.01)
    assert view.drag.commit_in_flight
    assert view.position_of("a") == GridPosition(3, 3)

    view.teardown()

    assert await drop is False
    assert len(view.store) == 0
    assert view.mounted is False
