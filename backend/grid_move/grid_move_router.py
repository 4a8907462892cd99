"""Zone map HTTP API.

Consumed by the map views of the frontend.

Key concepts:
- The database is the authority for every establishment's cell.
- The frontend moves establishments optimistically and sends one request per
  drop; this router validates it and applies a move or a swap atomically.
- Errors carry a `code` plus a human `message`; the client matches on the
  message ("out of bounds", "constraint") to pick its toast.
"""

from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from sqlalchemy.orm import Session

from db.deps import get_db
from db.establishment_repository import EstablishmentRepository
from mapgrid.grid_config import ZONE_LAYOUTS, ZoneLayout

from .grid_move_dtos import (
    EstablishmentDTO,
    GridMoveRequest,
    GridMoveResponse,
    ZoneEstablishmentsResponse,
    ZoneLayoutDTO,
    ZoneListResponse,
)
from .grid_move_errors import GridMoveError, PositionOutOfBoundsError
from .grid_move_service import GridMoveService
from .position_validator import PositionValidator


class GridMoveRoute(APIRoute):
    """
    Reports malformed requests (bad UUIDs, missing fields) as 400 INVALID_REQUEST
    instead of FastAPI's default 422, so the client shows its "Invalid position" toast.
    """

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()

        async def route_handler(request: Request) -> Response:
            try:
                return await handler(request)
            except RequestValidationError as e:
                raise HTTPException(
                    status_code=400,
                    detail={"code": "INVALID_REQUEST", "message": _describe_validation_errors(e)},
                )

        return route_handler


def _describe_validation_errors(e: RequestValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else err.get("msg", "invalid"))
    return "Invalid request - " + "; ".join(parts)


router = APIRouter(prefix="/api/zones", tags=["zones"], route_class=GridMoveRoute)


# ------------------------
# Serialization helpers
# ------------------------

def _layout_to_dto(layout: ZoneLayout) -> ZoneLayoutDTO:
    return ZoneLayoutDTO(
        zone=layout.zone,
        title=layout.display_name,
        max_rows=layout.max_rows,
        max_cols=layout.max_cols,
        box=(layout.start_x, layout.end_x, layout.start_y, layout.end_y),
        column_ranges=dict(layout.column_ranges),
    )


def _to_http_error(e: GridMoveError) -> HTTPException:
    detail = {"code": e.code, "message": str(e)}
    if isinstance(e, PositionOutOfBoundsError):
        detail["details"] = e.details
        if e.valid_range is not None:
            detail["validRange"] = {"min": e.valid_range[0], "max": e.valid_range[1]}
    return HTTPException(status_code=e.status_code, detail=detail)


def _require_zone(zone: str) -> ZoneLayout:
    try:
        return PositionValidator.layout_for(zone)
    except GridMoveError as e:
        raise _to_http_error(e)


# ------------------------
# Routes
# ------------------------

@router.get("", response_model=ZoneListResponse)
def list_zones():
    return ZoneListResponse(items=[_layout_to_dto(layout) for layout in ZONE_LAYOUTS.values()])


@router.get("/{zone}/establishments", response_model=ZoneEstablishmentsResponse)
def list_zone_establishments(zone: str, db: Session = Depends(get_db)):
    _require_zone(zone)
    repo = EstablishmentRepository(db)
    items = [EstablishmentDTO.model_validate(m) for m in repo.list_zone(zone)]
    return ZoneEstablishmentsResponse(zone=zone, items=items)


@router.post("/{zone}/grid-move", response_model=GridMoveResponse)
def grid_move(zone: str, req: GridMoveRequest, db: Session = Depends(get_db)):
    _require_zone(zone)
    if req.zone != zone:
        raise HTTPException(
            status_code=400,
            detail={"code": "ZONE_MISMATCH", "message": f"Body zone '{req.zone}' does not match path zone '{zone}'"},
        )

    service = GridMoveService(EstablishmentRepository(db))
    try:
        result = service.move(
            req.establishmentId,
            zone,
            req.grid_row,
            req.grid_col,
            swap_with_id=req.swap_with_id,
        )
    except GridMoveError as e:
        raise _to_http_error(e)

    return GridMoveResponse(
        success=True,
        operation=result.operation,
        message=result.message,
        establishments=[EstablishmentDTO.model_validate(m) for m in result.establishments],
    )
