import argparse
import os
import sys

# Add project root to sys.path so we can import from db
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy.orm import Session

from db.database import engine, init_db
from db.establishment_repository import EstablishmentRepository
from mapgrid.grid_config import ZONE_LAYOUTS, ZoneLayout


def render_zone(layout: ZoneLayout, establishments) -> str:
    """ASCII view of a zone: '.' free, '#' masked, letters for occupied cells."""
    occupied = {(e.grid_row, e.grid_col): e for e in establishments}
    legend = []

    lines = ['+' + '-' * layout.max_cols + '+']
    for row in range(1, layout.max_rows + 1):
        chars = []
        for col in range(1, layout.max_cols + 1):
            if not layout.contains(row, col):
                chars.append('#')
            elif (row, col) in occupied:
                est = occupied[(row, col)]
                chars.append(est.name[:1].upper() or '?')
                legend.append(f"  ({row},{col}) {est.name}")
            else:
                chars.append('.')
        lines.append('|' + ''.join(chars) + '|')
    lines.append('+' + '-' * layout.max_cols + '+')
    return "\n".join(lines + legend)


def show_zone_layout(zones):
    init_db()

    with Session(engine) as session:
        repo = EstablishmentRepository(session)
        for zone in zones:
            layout = ZONE_LAYOUTS[zone]
            establishments = repo.list_zone(zone)
            print(f"{layout.display_name} ({zone}) - {layout.max_rows}x{layout.max_cols}, {len(establishments)} placed")
            print(render_zone(layout, establishments))
            print()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print the stored grid of one or more zones.")
    parser.add_argument("zones", nargs="*", help="zones to show (default: all)")
    args = parser.parse_args()
    unknown = [z for z in args.zones if z not in ZONE_LAYOUTS]
    if unknown:
        parser.error(f"unknown zone(s): {', '.join(unknown)}; choose from {', '.join(sorted(ZONE_LAYOUTS))}")
    show_zone_layout(args.zones or list(ZONE_LAYOUTS))
