from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class GridPosition:
    """A logical (1-indexed) cell inside a zone grid."""

    row: int
    col: int


@dataclass(frozen=True)
class GridEntity:
    """An establishment placed on a zone map.

    `metadata` (name, icon, type...) is opaque to the grid code and is passed
    through untouched.
    """

    id: str
    zone: Optional[str]
    row: Optional[int]
    col: Optional[int]
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def position(self) -> Optional[GridPosition]:
        if self.row is None or self.col is None:
            return None
        return GridPosition(self.row, self.col)

    @property
    def is_placed(self) -> bool:
        return self.position is not None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "GridEntity":
        """Build an entity from the establishment JSON returned by the API."""
        meta = {k: v for k, v in data.items() if k not in ("id", "zone", "grid_row", "grid_col")}
        return cls(
            id=str(data["id"]),
            zone=data.get("zone"),
            row=data.get("grid_row"),
            col=data.get("grid_col"),
            metadata=meta,
        )
