"""Drag session state machine.

    idle --start--> dragging --drop--> dropping --(commit settles | watchdog)--> idle
      ^                |
      +---end/cancel---+

Pointer and touch input share the same machine. Only one session exists per
zone view, so a second `start` while a drag is active is rejected whatever its
input modality.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from mapgrid.coordinate_mapper import cell_from_point
from mapgrid.entity import GridEntity, GridPosition
from mapgrid.grid_config import GridConfig
from mapgrid.occupancy import OccupancyIndex

from .drag_errors import HapticsUnavailable, UnknownEntityError
from .feedback import HapticPattern
from .input_events import InputEvent, extract_point, is_touch

if TYPE_CHECKING:
    from .zone_view import ZoneView

logger = logging.getLogger(__name__)


class DragPhase(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPING = "dropping"


class DropAction(Enum):
    NONE = "none"
    MOVE = "move"
    SWAP = "swap"
    BLOCKED = "blocked"


@dataclass
class DragSession:
    dragged_entity_id: Optional[str] = None
    phase: DragPhase = DragPhase.IDLE
    drag_over_position: Optional[GridPosition] = None
    drop_action: DropAction = DropAction.NONE
    last_pointer_position: Optional[Tuple[float, float]] = None
    touch_input: bool = False

    @property
    def is_dragging(self) -> bool:
        return self.phase is not DragPhase.IDLE


def resolve_drop_action(
    dragged_id: str,
    target: Optional[GridPosition],
    occupancy: OccupancyIndex,
    config: GridConfig,
    *,
    editable: bool = True,
    locked: bool = False,
) -> DropAction:
    """Move onto a free cell, swap with another occupant, anything else is blocked."""
    if not editable or locked:
        return DropAction.BLOCKED
    if target is None or not config.contains(target.row, target.col):
        return DropAction.BLOCKED

    occupant = occupancy.entity_at(target.row, target.col)
    if occupant is None:
        return DropAction.MOVE
    if occupant.id == dragged_id:
        return DropAction.BLOCKED
    return DropAction.SWAP


class DragSessionMachine:
    def __init__(self, view: "ZoneView"):
        self.view = view
        self.session = DragSession()
        self._pending_point: Optional[Tuple[float, float]] = None
        self._commit_task: Optional[asyncio.Task] = None
        self._torn_down = False

    # ------------------------
    # Guards
    # ------------------------

    def _can_start(self) -> bool:
        view = self.view
        return (
            view.mounted
            and view.can_edit
            and not view.is_loading
            and not view.lock.is_locked()
            and not self.session.is_dragging
        )

    def _is_active_drag(self) -> bool:
        return self.view.can_edit and self.session.phase is DragPhase.DRAGGING

    def _haptic(self, pattern: HapticPattern) -> None:
        if not self.session.touch_input:
            return
        try:
            self.view.haptics.vibrate(pattern)
        except HapticsUnavailable:
            pass

    # ------------------------
    # Transitions
    # ------------------------

    def start(self, entity: GridEntity, event: InputEvent) -> bool:
        if not self._can_start() or self.view.entity(entity.id) is None:
            event.prevent_default()
            return False

        session = self.session
        session.dragged_entity_id = entity.id
        session.phase = DragPhase.DRAGGING
        session.touch_input = is_touch(event)
        point = extract_point(event)
        if point is not None:
            session.last_pointer_position = (point.x, point.y)

        if session.touch_input:
            # Keep the page from scrolling under the finger.
            event.prevent_default()
        self._haptic(HapticPattern.TAP)
        return True

    def move(self, event: InputEvent) -> None:
        if not self._is_active_drag() or is_touch(event) != self.session.touch_input:
            return

        point = extract_point(event)
        if point is None:
            return
        event.prevent_default()

        self.session.last_pointer_position = (point.x, point.y)
        self._pending_point = self.view.container.to_local(point)
        self.view.throttle.schedule(self._evaluate_pending)

    def _evaluate_pending(self) -> None:
        point, self._pending_point = self._pending_point, None
        if point is None or self.session.phase is not DragPhase.DRAGGING:
            return
        self.evaluate(*point)

    def evaluate(self, px: float, py: float) -> DropAction:
        """Recompute the hovered cell and drop action for a container-local point."""
        view = self.view
        session = self.session
        target = cell_from_point(px, py, view.config)
        session.drag_over_position = target
        session.drop_action = resolve_drop_action(
            session.dragged_entity_id,
            target,
            view.occupancy(),
            view.config,
            editable=view.can_edit,
            locked=view.lock.is_locked(),
        )
        return session.drop_action

    async def drop(self, event: InputEvent) -> bool:
        """Commit the drop. Returns True only when the server accepted the move/swap."""
        if self.session.phase is DragPhase.DROPPING:
            # touchend and the synthesized mouseup both land here; the first one owns the commit.
            logger.debug("Ignoring drop while %s is being committed", self.session.dragged_entity_id)
            return False

        if self._is_active_drag() and self.view.throttle.pending:
            self.view.throttle.cancel()
            self._evaluate_pending()

        session = self.session
        if (
            not self._is_active_drag()
            or session.dragged_entity_id is None
            or session.drag_over_position is None
            or session.drop_action is DropAction.BLOCKED
        ):
            self.reset()
            return False

        event.prevent_default()
        view = self.view
        target = session.drag_over_position
        try:
            entity = view.require_entity(session.dragged_entity_id)
        except UnknownEntityError as e:
            logger.error("Drop failed - %s", e)
            self.reset()
            return False

        # Never trust the throttled hover result for the commit decision.
        conflict = view.occupancy().entity_at(target.row, target.col)
        if conflict is not None and conflict.id == entity.id:
            logger.debug("Dropping %s on its own cell, cancelling", entity.id)
            self.reset()
            return False

        session.phase = DragPhase.DROPPING
        view.is_loading = True
        self._commit_task = asyncio.ensure_future(
            view.commit_client.commit(entity, target.row, target.col, conflict)
        )
        ok = False
        try:
            # wait_for cancels the task on expiry, which aborts the HTTP request
            # and rolls back its optimistic positions.
            ok = await asyncio.wait_for(self._commit_task, timeout=view.watchdog_seconds)
        except asyncio.TimeoutError:
            logger.warning("Loading timeout after %.1fs - resetting drag state", view.watchdog_seconds)
        except asyncio.CancelledError:
            if not self._torn_down:
                raise
            logger.debug("Zone view torn down while committing %s", entity.id)
        finally:
            self._commit_task = None
            view.is_loading = False
            self._haptic(HapticPattern.SUCCESS if ok else HapticPattern.ERROR)
            self.reset()
        return ok

    def end(self) -> None:
        self.reset()

    def cancel(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.view.throttle.cancel()
        self._pending_point = None
        self.session = DragSession()

    def teardown(self) -> None:
        self._torn_down = True
        if self._commit_task is not None and not self._commit_task.done():
            self._commit_task.cancel()
        self.reset()

    @property
    def commit_in_flight(self) -> bool:
        return self._commit_task is not None and not self._commit_task.done()
