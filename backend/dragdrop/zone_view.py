import logging
import time
from typing import Callable, Dict, Iterable, List, Optional

import httpx

from core.config import Settings, get_settings
from mapgrid.entity import GridEntity, GridPosition
from mapgrid.grid_config import GridConfig, get_zone_layout
from mapgrid.occupancy import OccupancyIndex, effective_position

from .commit_client import RemoteCommitClient
from .drag_errors import UnknownEntityError
from .drag_session import DragSession, DragSessionMachine
from .feedback import Haptics, Notifier, NullHaptics
from .input_events import ContainerRect
from .operation_lock import OperationLock
from .optimistic_store import OptimisticPositionStore
from .throttle import FrameThrottle

logger = logging.getLogger(__name__)


class ZoneView:
    """State container for one mounted zone map.

    Owns everything the drag & drop pipeline mutates: the entity working set,
    the optimistic overlay, the operation lock, the hover throttle and the
    single drag session. `mount()` on view creation, `teardown()` on unmount.

    `can_edit` comes from the host's role provider and may flip at any time;
    an active drag simply stops responding once it is False.
    """

    def __init__(
        self,
        zone: str,
        config: GridConfig,
        http: httpx.AsyncClient,
        *,
        container: Optional[ContainerRect] = None,
        can_edit: bool = False,
        notifier: Optional[Notifier] = None,
        haptics: Optional[Haptics] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        settings = settings or get_settings()
        self.zone = zone
        self.config = config
        self.container = container or ContainerRect()
        self.can_edit = can_edit
        self.is_loading = False
        self.mounted = False
        self.watchdog_seconds = settings.drop_watchdog_seconds

        self.store = OptimisticPositionStore()
        self.lock = OperationLock(clock)
        self.throttle = FrameThrottle(settings.drag_throttle_seconds)
        self.haptics = haptics or NullHaptics()
        self.commit_client = RemoteCommitClient(
            http,
            zone,
            config,
            self.store,
            self.lock,
            notifier=notifier,
            lock_seconds=settings.operation_lock_seconds,
        )
        self._entities: Dict[str, GridEntity] = {}
        self.drag = DragSessionMachine(self)

    @classmethod
    def for_zone(cls, zone: str, width: float, height: float, http: httpx.AsyncClient, **kwargs) -> "ZoneView":
        """Build a view from the registered zone layout and the container size."""
        layout = get_zone_layout(zone)
        if layout is None:
            raise ValueError(f"Unknown zone '{zone}'")
        kwargs.setdefault("container", ContainerRect(0.0, 0.0, width, height))
        return cls(zone, layout.grid_config(width, height), http, **kwargs)

    # ------------------------
    # Lifecycle
    # ------------------------

    def mount(self, entities: Iterable[GridEntity] = ()) -> None:
        self.mounted = True
        self.replace_entities(entities)

    def teardown(self) -> None:
        self.drag.teardown()
        self.mounted = False

    # ------------------------
    # Entity working set
    # ------------------------

    def replace_entities(self, entities: Iterable[GridEntity]) -> None:
        """Swap in a fresh authoritative list; settled overlay entries are dropped."""
        self._entities = {
            e.id: e for e in entities if e.is_placed and e.zone in (None, self.zone)
        }
        dropped = self.store.reconcile()
        if dropped:
            logger.debug("Refresh of %s superseded %d optimistic position(s)", self.zone, dropped)

    @property
    def entities(self) -> List[GridEntity]:
        return list(self._entities.values())

    def entity(self, entity_id: str) -> Optional[GridEntity]:
        return self._entities.get(entity_id)

    def require_entity(self, entity_id: str) -> GridEntity:
        entity = self._entities.get(entity_id)
        if entity is None:
            raise UnknownEntityError(f"establishment {entity_id} is no longer listed in {self.zone}")
        return entity

    def position_of(self, entity_id: str) -> Optional[GridPosition]:
        """Position as rendered: overlay first, then authoritative."""
        entity = self._entities.get(entity_id)
        if entity is None:
            return None
        return effective_position(entity, self.store.overlay())

    def occupancy(self) -> OccupancyIndex:
        return OccupancyIndex(self._entities.values(), self.store.overlay())

    @property
    def session(self) -> DragSession:
        return self.drag.session
