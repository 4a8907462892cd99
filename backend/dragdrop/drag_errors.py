# Raised inside the drag & drop pipeline and turned into toasts at the commit boundary.


class DragDropError(Exception):
    """
    Base class for all drag & drop errors.
    """
    pass


class OutOfBoundsError(DragDropError):
    """
    Raised when a target cell is outside the zone grid (or masked).
    """
    pass


class UnknownEntityError(DragDropError):
    """
    Raised when the dragged entity is no longer in the working set.
    """
    pass


class HapticsUnavailable(DragDropError):
    """
    Raised by a haptics backend when the host cannot vibrate.
    """
    pass
