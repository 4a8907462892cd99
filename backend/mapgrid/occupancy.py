from typing import Dict, Iterable, Mapping, Optional

from mapgrid.entity import GridEntity, GridPosition


def effective_position(entity: GridEntity, overlay: Optional[Mapping[str, GridPosition]] = None) -> Optional[GridPosition]:
    """Overlay position if one is pending for the entity, else its stored position."""
    if overlay and entity.id in overlay:
        return overlay[entity.id]
    return entity.position


def entity_at(
    row: int,
    col: int,
    entities: Iterable[GridEntity],
    overlay: Optional[Mapping[str, GridPosition]] = None,
) -> Optional[GridEntity]:
    """Linear scan for the occupant of (row, col) using effective positions."""
    target = GridPosition(row, col)
    for entity in entities:
        if effective_position(entity, overlay) == target:
            return entity
    return None


class OccupancyIndex:
    """Cell -> entity lookup built once from a snapshot of the entity list.

    If two entities claim the same cell (only possible transiently while an
    overlay is pending) the first one in list order wins, matching `entity_at`.
    """

    def __init__(self, entities: Iterable[GridEntity], overlay: Optional[Mapping[str, GridPosition]] = None):
        self._cells: Dict[GridPosition, GridEntity] = {}
        for entity in entities:
            pos = effective_position(entity, overlay)
            if pos is not None and pos not in self._cells:
                self._cells[pos] = entity

    def entity_at(self, row: int, col: int) -> Optional[GridEntity]:
        return self._cells.get(GridPosition(row, col))

    def is_free(self, row: int, col: int) -> bool:
        return GridPosition(row, col) not in self._cells

    def __len__(self) -> int:
        return len(self._cells)
