from typing import Optional

from mapgrid.grid_config import ZoneLayout, get_zone_layout

from .grid_move_errors import PositionOutOfBoundsError, UnknownZoneError


class PositionValidator:
    @staticmethod
    def layout_for(zone: str) -> ZoneLayout:
        layout = get_zone_layout(zone)
        if layout is None:
            raise UnknownZoneError(f"Unknown zone '{zone}'")
        return layout

    @staticmethod
    def check(zone: str, grid_row: int, grid_col: int) -> Optional[PositionOutOfBoundsError]:
        """
        Returns the bounds violation for (grid_row, grid_col) in `zone`, or None.
        Columns are checked against the zone width first, then rows, then the
        per-row column mask.
        """
        layout = PositionValidator.layout_for(zone)
        name = layout.display_name

        if grid_col < 1 or grid_col > layout.max_cols:
            return PositionOutOfBoundsError(
                "Column position out of bounds",
                f"{name} columns must be between 1 and {layout.max_cols}.",
                (1, layout.max_cols),
            )

        if grid_row < 1 or grid_row > layout.max_rows:
            return PositionOutOfBoundsError(
                f"Row position out of bounds for {name}",
                f"{name} rows must be between 1 and {layout.max_rows}.",
                (1, layout.max_rows),
            )

        min_col, max_col = layout.column_range(grid_row)
        if grid_col < min_col or grid_col > max_col:
            return PositionOutOfBoundsError(
                f"Column position out of bounds for {name}",
                f"{name} row {grid_row} columns must be between {min_col} and {max_col}.",
                (min_col, max_col),
            )

        return None

    @staticmethod
    def validate(zone: str, grid_row: int, grid_col: int) -> None:
        issue = PositionValidator.check(zone, grid_row, grid_col)
        if issue is not None:
            raise issue
