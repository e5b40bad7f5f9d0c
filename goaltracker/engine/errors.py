"""Domain errors raised by state operations and the sync coordinator."""


class TrackerError(Exception):
    """Base class for goaltracker errors."""


class StateError(TrackerError):
    """Operation referenced an unknown goal/widget id or an invalid position."""


class SessionError(TrackerError):
    """No active session, or the session has already been closed."""


class PositionError(StateError):
    """Reorder target index is outside the collection."""
