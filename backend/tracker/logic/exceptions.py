"""Typed domain exceptions for scorekeeping rule violations.

Every rule violation raised by the logic package is a subclass of
TrackerError. The HTTP layer converts them to error responses using the
``code`` attribute, so each subclass declares a stable code string.
"""


class TrackerError(Exception):
    """Base exception for scorekeeping rule violations."""

    code = "tracker_error"


class InvalidSeatError(TrackerError):
    """Seat index is outside [0, 4)."""

    code = "invalid_seat"


class SeatCollisionError(TrackerError):
    """Deal-in winner and discarder are the same seat."""

    code = "seat_collision"


class InvalidDeltasError(TrackerError):
    """Delta vector is malformed (wrong length, empty adjustment)."""

    code = "invalid_deltas"


class MinimumFanError(TrackerError):
    """Hand value is below the session's minimum fan."""

    code = "minimum_fan"

    def __init__(self, *, fan: int, min_fan: int) -> None:
        self.fan = fan
        self.min_fan = min_fan
        super().__init__(f"Minimum {min_fan} fan required to win, got {fan}")


class SessionClosedError(TrackerError):
    """Session no longer accepts this operation (ended or match over)."""

    code = "session_closed"


class InvalidSessionError(TrackerError):
    """Session construction or seating input is invalid."""

    code = "invalid_session"


class SessionNotFoundError(TrackerError):
    """No session is stored under the requested id."""

    code = "session_not_found"

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session '{session_id}' not found")
