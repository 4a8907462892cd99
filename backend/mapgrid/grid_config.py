from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple


ColumnRanges = Mapping[int, Tuple[int, int]]


def _cell_allowed(row: int, col: int, max_rows: int, max_cols: int, column_ranges: ColumnRanges) -> bool:
    if row < 1 or row > max_rows or col < 1 or col > max_cols:
        return False
    if row in column_ranges:
        low, high = column_ranges[row]
        return low <= col <= high
    return True


@dataclass(frozen=True)
class GridConfig:
    """Static bounds of one zone grid, in container pixel space.

    The pixel box [start_x, end_x] x [start_y, end_y] is split evenly into
    `max_rows` x `max_cols` cells. `column_ranges` optionally masks cells per
    row (row -> inclusive (min_col, max_col)).
    """

    max_rows: int
    max_cols: int
    start_x: float
    end_x: float
    start_y: float
    end_y: float
    column_ranges: ColumnRanges = field(default_factory=dict)

    def __post_init__(self):
        if self.max_rows < 1 or self.max_cols < 1:
            raise ValueError("Grid must have at least one row and one column")
        if self.end_x <= self.start_x or self.end_y <= self.start_y:
            raise ValueError("Grid bounding box must have a positive area")

    def contains(self, row: int, col: int) -> bool:
        return _cell_allowed(row, col, self.max_rows, self.max_cols, self.column_ranges)


@dataclass(frozen=True)
class ZoneLayout:
    """Per-zone grid shape, with the drawing box expressed in percent of the map container."""

    zone: str
    max_rows: int
    max_cols: int
    start_x: float = 0.0
    end_x: float = 100.0
    start_y: float = 0.0
    end_y: float = 100.0
    column_ranges: Dict[int, Tuple[int, int]] = field(default_factory=dict)
    title: str = ""

    @property
    def display_name(self) -> str:
        return self.title or self.zone

    def contains(self, row: int, col: int) -> bool:
        return _cell_allowed(row, col, self.max_rows, self.max_cols, self.column_ranges)

    def column_range(self, row: int) -> Tuple[int, int]:
        return self.column_ranges.get(row, (1, self.max_cols))

    def grid_config(self, width: float, height: float) -> GridConfig:
        """Pixel-space GridConfig for a container of the given size."""
        return GridConfig(
            max_rows=self.max_rows,
            max_cols=self.max_cols,
            start_x=width * self.start_x / 100,
            end_x=width * self.end_x / 100,
            start_y=height * self.start_y / 100,
            end_y=height * self.end_y / 100,
            column_ranges=dict(self.column_ranges),
        )


ZONE_LAYOUTS: Dict[str, ZoneLayout] = {
    layout.zone: layout
    for layout in (
        ZoneLayout("soi6", title="Soi 6", max_rows=2, max_cols=20, start_x=2, end_x=98, start_y=10, end_y=90),
        ZoneLayout("walkingstreet", title="Walking Street", max_rows=42, max_cols=24, start_x=2, end_x=98, start_y=2, end_y=98),
        ZoneLayout(
            "lkmetro",
            title="LK Metro",
            max_rows=4,
            max_cols=9,
            start_x=5,
            end_x=95,
            start_y=5,
            end_y=95,
            column_ranges={1: (1, 9), 2: (1, 8), 3: (3, 9), 4: (1, 9)},
        ),
        ZoneLayout("treetown", title="Tree Town", max_rows=3, max_cols=10, start_x=5, end_x=95, start_y=10, end_y=90),
        ZoneLayout("soibuakhao", title="Soi Buakhao", max_rows=3, max_cols=18, start_x=2, end_x=98, start_y=10, end_y=90),
        ZoneLayout("jomtiencomplex", title="Jomtien Complex", max_rows=2, max_cols=15, start_x=2, end_x=98, start_y=10, end_y=90),
        ZoneLayout("boyztown", title="BoyzTown", max_rows=2, max_cols=12, start_x=1, end_x=99, start_y=10, end_y=90),
        ZoneLayout("soi78", title="Soi 7 & 8", max_rows=3, max_cols=16, start_x=2, end_x=98, start_y=10, end_y=90),
        ZoneLayout("beachroad", title="Beach Road", max_rows=2, max_cols=40, start_x=1, end_x=99, start_y=10, end_y=90),
    )
}


def get_zone_layout(zone: str) -> Optional[ZoneLayout]:
    return ZONE_LAYOUTS.get(zone)
