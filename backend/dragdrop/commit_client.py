"""Remote commit of a move/swap.

Applies the optimistic overlay, sends one request to the zone's grid-move
endpoint and settles or rolls back depending on the answer. There is no
retry: every failure ends the operation and the user drags again.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from core.config import Settings, get_settings
from mapgrid.entity import GridEntity, GridPosition
from mapgrid.grid_config import GridConfig

from .drag_errors import OutOfBoundsError
from .feedback import LoggingNotifier, Notifier
from .operation_lock import OperationLock
from .optimistic_store import OptimisticPositionStore

logger = logging.getLogger(__name__)


class CommitErrorKind(Enum):
    BOUNDS = "bounds"
    CONSTRAINT = "constraint"
    INVALID_POSITION = "invalid_position"
    SERVER = "server"
    NETWORK = "network"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CommitFailure:
    kind: CommitErrorKind
    message: str
    status: Optional[int] = None


def bounds_message(row: int, col: int) -> str:
    return f"Invalid position: Row {row}, Col {col} is out of bounds"


def classify_failure(status: Optional[int], body: str, *, is_swap: bool, target: GridPosition) -> CommitFailure:
    """Turn a failed response into the message shown to the user.

    Known substrings in the body win; otherwise the status code decides.
    `status=None` means the request never got an answer.
    """
    if status is None:
        return CommitFailure(CommitErrorKind.NETWORK, "Network error - please try again")

    text = (body or "").lower()
    if 400 <= status < 500:
        if "out of bounds" in text:
            return CommitFailure(CommitErrorKind.BOUNDS, bounds_message(target.row, target.col), status)
        if "constraint" in text:
            return CommitFailure(
                CommitErrorKind.CONSTRAINT,
                "Database constraint error - please try a different position",
                status,
            )

    if status == 400:
        return CommitFailure(
            CommitErrorKind.INVALID_POSITION,
            f"Invalid position: Row {target.row}, Col {target.col}",
            status,
        )
    if status == 500:
        return CommitFailure(CommitErrorKind.SERVER, "Server error - please try again", status)

    generic = "Failed to swap establishments" if is_swap else "Failed to move establishment"
    return CommitFailure(CommitErrorKind.UNKNOWN, generic, status)


def build_http_client(settings: Optional[Settings] = None, **kwargs: Any) -> httpx.AsyncClient:
    """AsyncClient bound to the API; its cookie jar carries the session credentials."""
    settings = settings or get_settings()
    kwargs.setdefault("timeout", settings.drop_watchdog_seconds)
    return httpx.AsyncClient(base_url=settings.api_base_url, **kwargs)


class RemoteCommitClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        zone: str,
        config: GridConfig,
        store: OptimisticPositionStore,
        lock: OperationLock,
        notifier: Optional[Notifier] = None,
        lock_seconds: float = 0.5,
    ):
        self._http = http
        self.zone = zone
        self.config = config
        self.store = store
        self.lock = lock
        self.notifier = notifier or LoggingNotifier()
        self.lock_seconds = lock_seconds
        self.last_failure: Optional[CommitFailure] = None

    @property
    def move_path(self) -> str:
        return f"/api/zones/{self.zone}/grid-move"

    def _validate_bounds(self, row: int, col: int) -> None:
        if not self.config.contains(row, col):
            raise OutOfBoundsError(bounds_message(row, col))

    def _request_body(self, entity: GridEntity, target: GridPosition, swap_with: Optional[GridEntity]) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "establishmentId": entity.id,
            "grid_row": target.row,
            "grid_col": target.col,
            "zone": self.zone,
        }
        if swap_with is not None:
            body["swap_with_id"] = swap_with.id
        return body

    def _fail(self, failure: CommitFailure) -> bool:
        self.last_failure = failure
        self.notifier.error(failure.message)
        return False

    async def commit(
        self,
        entity: GridEntity,
        target_row: int,
        target_col: int,
        conflict: Optional[GridEntity] = None,
    ) -> bool:
        """Move `entity` to (target_row, target_col), swapping with `conflict` if given.

        Returns True once the server accepted the change.
        """
        self.last_failure = None
        try:
            self._validate_bounds(target_row, target_col)
        except OutOfBoundsError as e:
            return self._fail(CommitFailure(CommitErrorKind.BOUNDS, str(e)))

        target = GridPosition(target_row, target_col)
        # Where the entity is rendered; a settled overlay entry outlives the refresh it waits for.
        origin = self.store.position_of(entity.id) or entity.position
        if origin == target:
            logger.debug("Dropping %s on its own cell, nothing to commit", entity.id)
            return False

        swap_with = conflict if conflict is not None and conflict.id != entity.id else None
        positions = {entity.id: target}
        if swap_with is not None and origin is not None:
            positions[swap_with.id] = origin
        update = self.store.stage(positions)

        try:
            response = await self._http.post(self.move_path, json=self._request_body(entity, target, swap_with))
        except asyncio.CancelledError:
            self.store.rollback(update)
            raise
        except httpx.HTTPError as exc:
            logger.error("Move operation error for %s: %s", entity.id, exc)
            self.store.rollback(update)
            return self._fail(classify_failure(None, "", is_swap=swap_with is not None, target=target))

        if response.is_success:
            logger.debug("Position of %s updated on server", entity.id)
            self.store.settle(update)
            self.lock.lock_for(self.lock_seconds)
            self.notifier.success("Establishments swapped" if swap_with is not None else "Establishment moved")
            return True

        logger.error(
            "%s failed for %s (status=%s): %s",
            "Swap" if swap_with is not None else "Move",
            entity.id,
            response.status_code,
            response.text,
        )
        self.store.rollback(update)
        return self._fail(
            classify_failure(response.status_code, response.text, is_swap=swap_with is not None, target=target)
        )
