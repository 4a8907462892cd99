import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from db.establishment_repository import EstablishmentRepository
from db.models import EstablishmentModel

from .grid_move_errors import EstablishmentNotFoundError, GridConstraintError
from .position_validator import PositionValidator

logger = logging.getLogger(__name__)


@dataclass
class MoveResult:
    operation: str  # "move" | "swap" | "auto_swap"
    message: str
    establishments: List[EstablishmentModel]


class GridMoveService:
    """
    Applies move/swap requests to the stored establishments.
    The database is the authority; the client only mirrors the result.
    """

    def __init__(self, repo: EstablishmentRepository):
        self.repo = repo

    # ------------------------
    # Internal helpers
    # ------------------------

    def _require(self, establishment_id: str) -> EstablishmentModel:
        model = self.repo.get(establishment_id)
        if model is None:
            raise EstablishmentNotFoundError(f"Establishment {establishment_id} not found")
        return model

    def _swap(self, source: EstablishmentModel, target: EstablishmentModel, zone: str, row: int, col: int) -> None:
        try:
            self.repo.swap(source, target, zone=zone, row=row, col=col)
        except IntegrityError as e:
            logger.warning("Swap of %s with %s rejected by the database: %s", source.id, target.id, e.orig)
            raise GridConstraintError("Database constraint violation") from e

    # ------------------------
    # Operations
    # ------------------------

    def move(
        self,
        establishment_id: str,
        zone: str,
        grid_row: int,
        grid_col: int,
        swap_with_id: Optional[str] = None,
    ) -> MoveResult:
        PositionValidator.validate(zone, grid_row, grid_col)
        source = self._require(establishment_id)

        if swap_with_id is not None:
            target = self._require(swap_with_id)
            self._swap(source, target, zone, grid_row, grid_col)
            return MoveResult("swap", "Swap operation completed successfully", [source, target])

        occupant = self.repo.find_at(zone, grid_row, grid_col, exclude_id=source.id)
        if occupant is not None:
            logger.info(
                "Target (%s, %d, %d) occupied by %s - converting move of %s into a swap",
                zone, grid_row, grid_col, occupant.id, source.id,
            )
            self._swap(source, occupant, zone, grid_row, grid_col)
            return MoveResult("auto_swap", "Auto-swap operation completed successfully", [source, occupant])

        try:
            self.repo.move(source, zone=zone, row=grid_row, col=grid_col)
        except IntegrityError as e:
            logger.warning("Move of %s rejected by the database: %s", source.id, e.orig)
            raise GridConstraintError("Database constraint violation") from e
        return MoveResult("move", "Position updated successfully", [source])
