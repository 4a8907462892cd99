import datetime as dt
from typing import Optional

from sqlalchemy import DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


class EstablishmentModel(Base):
    """An establishment and its slot on a zone map.

    `zone`, `grid_row` and `grid_col` are nullable: unplaced establishments
    exist, and a swap parks one side at NULL while the other moves. The
    unique constraint guarantees one establishment per cell.
    """

    __tablename__ = "establishments"
    __table_args__ = (
        UniqueConstraint("zone", "grid_row", "grid_col", name="uq_establishments_zone_cell"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    zone: Mapped[Optional[str]] = mapped_column(String(50), index=True, nullable=True)
    grid_row: Mapped[Optional[int]] = mapped_column(nullable=True)
    grid_col: Mapped[Optional[int]] = mapped_column(nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)
