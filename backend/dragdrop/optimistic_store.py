from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from mapgrid.entity import GridPosition


class UpdateState(Enum):
    PENDING = "pending"
    SETTLED = "settled"
    ROLLED_BACK = "rolled_back"


@dataclass
class OptimisticUpdate:
    """Positions applied together for one commit request."""

    positions: Dict[str, GridPosition]
    previous: Dict[str, Optional[GridPosition]]
    state: UpdateState = UpdateState.PENDING


class OptimisticPositionStore:
    """Tentative grid positions overlaying the authoritative entity list.

    Entries are staged when a commit request is sent. A failed request rolls
    its entries back; a successful one leaves them in place until the next
    authoritative refresh (`reconcile`) supersedes them. Entries owned by a
    request that is still in flight survive a refresh.
    """

    def __init__(self):
        self._entries: Dict[str, GridPosition] = {}
        self._owners: Dict[str, OptimisticUpdate] = {}

    def stage(self, positions: Mapping[str, GridPosition]) -> OptimisticUpdate:
        update = OptimisticUpdate(
            positions=dict(positions),
            previous={entity_id: self._entries.get(entity_id) for entity_id in positions},
        )
        for entity_id, position in update.positions.items():
            self._entries[entity_id] = position
            self._owners[entity_id] = update
        return update

    def settle(self, update: OptimisticUpdate) -> None:
        if update.state is UpdateState.PENDING:
            update.state = UpdateState.SETTLED

    def rollback(self, update: OptimisticUpdate) -> None:
        if update.state is not UpdateState.PENDING:
            return
        for entity_id, previous in update.previous.items():
            # A later update may have taken over this entity; leave it alone.
            if self._owners.get(entity_id) is not update:
                continue
            del self._owners[entity_id]
            if previous is None:
                self._entries.pop(entity_id, None)
            else:
                self._entries[entity_id] = previous
        update.state = UpdateState.ROLLED_BACK

    def reconcile(self) -> int:
        """Drop every entry not owned by a pending request. Returns how many were dropped."""
        stale = [
            entity_id
            for entity_id in self._entries
            if self._owners.get(entity_id) is None or self._owners[entity_id].state is not UpdateState.PENDING
        ]
        for entity_id in stale:
            del self._entries[entity_id]
            self._owners.pop(entity_id, None)
        return len(stale)

    def position_of(self, entity_id: str) -> Optional[GridPosition]:
        return self._entries.get(entity_id)

    def overlay(self) -> Mapping[str, GridPosition]:
        return dict(self._entries)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
