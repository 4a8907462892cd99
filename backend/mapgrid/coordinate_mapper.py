"""Pixel <-> grid cell conversion.

Coordinates are relative to the map container's top-left corner. Columns
run along x, rows along y.
"""

from typing import Optional, Tuple

from mapgrid.entity import GridPosition
from mapgrid.grid_config import GridConfig


def _index(value: float, start: float, end: float, count: int) -> int:
    normalized = (value - start) / (end - start)
    # The far edge belongs to the last cell.
    return min(int(normalized * count), count - 1) + 1


def cell_from_point(px: float, py: float, config: GridConfig) -> Optional[GridPosition]:
    """Return the 1-indexed cell containing (px, py), or None outside the grid box."""
    if not (config.start_x <= px <= config.end_x and config.start_y <= py <= config.end_y):
        return None

    col = _index(px, config.start_x, config.end_x, config.max_cols)
    row = _index(py, config.start_y, config.end_y, config.max_rows)
    return GridPosition(row=row, col=col)


def cell_center(position: GridPosition, config: GridConfig) -> Tuple[float, float]:
    """Pixel centre of a cell (used to snap the drag ghost)."""
    cell_w = (config.end_x - config.start_x) / config.max_cols
    cell_h = (config.end_y - config.start_y) / config.max_rows
    return (
        config.start_x + (position.col - 0.5) * cell_w,
        config.start_y + (position.row - 0.5) * cell_h,
    )
