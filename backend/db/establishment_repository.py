import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import EstablishmentModel


class EstablishmentRepository:
    """Data-access layer for establishments and their grid slots.

    Why this exists:
    - Keeps SQLAlchemy/DB code out of the FastAPI router and the move service.
    - Owns the transaction boundaries of moves and swaps.
    """

    def __init__(self, db: Session):
        self._db = db

    def get(self, establishment_id: str) -> Optional[EstablishmentModel]:
        return self._db.get(EstablishmentModel, establishment_id)

    def list_zone(self, zone: str) -> List[EstablishmentModel]:
        stmt = (
            select(EstablishmentModel)
            .where(EstablishmentModel.zone == zone)
            .where(EstablishmentModel.grid_row.is_not(None))
            .where(EstablishmentModel.grid_col.is_not(None))
            .order_by(EstablishmentModel.grid_row, EstablishmentModel.grid_col)
        )
        return list(self._db.scalars(stmt))

    def find_at(self, zone: str, row: int, col: int, exclude_id: Optional[str] = None) -> Optional[EstablishmentModel]:
        stmt = select(EstablishmentModel).where(
            EstablishmentModel.zone == zone,
            EstablishmentModel.grid_row == row,
            EstablishmentModel.grid_col == col,
        )
        if exclude_id is not None:
            stmt = stmt.where(EstablishmentModel.id != exclude_id)
        return self._db.scalars(stmt).first()

    def create(
        self,
        *,
        name: str,
        zone: Optional[str] = None,
        grid_row: Optional[int] = None,
        grid_col: Optional[int] = None,
        category: Optional[str] = None,
        establishment_id: Optional[str] = None,
    ) -> EstablishmentModel:
        model = EstablishmentModel(
            id=establishment_id or str(uuid.uuid4()),
            name=name,
            category=category,
            zone=zone,
            grid_row=grid_row,
            grid_col=grid_col,
        )
        self._db.add(model)
        self._db.commit()
        self._db.refresh(model)
        return model

    def move(self, model: EstablishmentModel, *, zone: str, row: int, col: int) -> EstablishmentModel:
        """Place `model` on a cell. Raises IntegrityError (after rollback) if the cell is taken."""
        try:
            model.zone = zone
            model.grid_row = row
            model.grid_col = col
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise
        self._db.refresh(model)
        return model

    def swap(
        self,
        source: EstablishmentModel,
        target: EstablishmentModel,
        *,
        zone: str,
        row: int,
        col: int,
    ) -> None:
        """Move `source` to (zone, row, col) and `target` to source's previous slot.

        Runs as one transaction: source is parked at NULL first so the unique
        cell constraint never sees two establishments on the same slot. Any
        failure rolls back both rows.
        """
        source_zone, source_row, source_col = source.zone, source.grid_row, source.grid_col
        try:
            source.grid_row = None
            source.grid_col = None
            source.zone = zone
            self._db.flush()

            target.zone = source_zone
            target.grid_row = source_row
            target.grid_col = source_col
            self._db.flush()

            source.grid_row = row
            source.grid_col = col
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise
        self._db.refresh(source)
        self._db.refresh(target)
