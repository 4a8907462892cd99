# Raised by the move service; the router wraps them into HTTP errors for the frontend.

from typing import Optional, Tuple


class GridMoveError(Exception):
    """
    Base class for all grid move errors.
    """

    code = "GRID_MOVE_ERROR"
    status_code = 400


class UnknownZoneError(GridMoveError):
    """
    Raised when a zone has no registered layout.
    """

    code = "UNKNOWN_ZONE"
    status_code = 404


class EstablishmentNotFoundError(GridMoveError):
    """
    Raised when the moved (or swapped) establishment does not exist.
    """

    code = "ESTABLISHMENT_NOT_FOUND"
    status_code = 404


class PositionOutOfBoundsError(GridMoveError):
    """
    Raised when a target cell is outside the zone grid.
    """

    code = "OUT_OF_BOUNDS"
    status_code = 400

    def __init__(self, message: str, details: str, valid_range: Optional[Tuple[int, int]] = None):
        super().__init__(message)
        self.details = details
        self.valid_range = valid_range


class GridConstraintError(GridMoveError):
    """
    Raised when the database refuses the new layout (cell already taken).
    """

    code = "CONSTRAINT_VIOLATION"
    status_code = 400
