import uuid
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _check_uuid(value: str) -> str:
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        raise ValueError("must be a valid UUID")
    return value


# --- Request DTOs ---

class GridMoveRequest(BaseModel):
    establishmentId: str
    grid_row: int
    grid_col: int
    zone: str
    swap_with_id: Optional[str] = None

    @field_validator("establishmentId")
    @classmethod
    def _establishment_uuid(cls, v: str) -> str:
        return _check_uuid(v)

    @field_validator("swap_with_id")
    @classmethod
    def _swap_uuid(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_uuid(v)


# --- Response DTOs ---

class EstablishmentDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: Optional[str] = None
    logo_url: Optional[str] = None
    zone: Optional[str] = None
    grid_row: Optional[int] = None
    grid_col: Optional[int] = None


class GridMoveResponse(BaseModel):
    success: bool
    operation: str
    message: str
    establishments: List[EstablishmentDTO]


class ZoneEstablishmentsResponse(BaseModel):
    zone: str
    items: List[EstablishmentDTO]


class ZoneLayoutDTO(BaseModel):
    zone: str
    title: str
    max_rows: int
    max_cols: int
    # Percent of the map container.
    box: Tuple[float, float, float, float]
    column_ranges: Dict[int, Tuple[int, int]] = Field(default_factory=dict)


class ZoneListResponse(BaseModel):
    items: List[ZoneLayoutDTO]
