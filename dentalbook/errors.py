"""
Booking engine error taxonomy

Every failure the engine reports is one of a closed set of kinds. Each kind is
its own exception class carrying a ``kind`` tag and the HTTP status it maps to,
so routers (and the single exception handler in main.py) can handle every case
without matching on message strings.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    FORMAT = "format_error"
    OUT_OF_HOURS = "out_of_hours"
    CONFLICT = "opening_hours_conflict"
    NOT_FOUND = "not_found"
    ALREADY_BOOKED = "already_booked"
    PERMISSION_DENIED = "permission_denied"
    GEOCODE = "geocode_error"
    NOTIFICATION = "notification_error"


class BookingEngineError(Exception):
    """Base class for all engine errors"""

    kind: ErrorKind
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def extra(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        payload = {"error": self.kind.value, "detail": self.message}
        payload.update(self.extra())
        return payload


class ValidationError(BookingEngineError):
    """Client input rejected before any store access"""

    kind = ErrorKind.VALIDATION
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def extra(self) -> dict[str, Any]:
        return {"field": self.field} if self.field else {}


class FormatError(ValidationError):
    """Malformed HH:MM time string"""

    kind = ErrorKind.FORMAT

    def __init__(self, value: Any, message: Optional[str] = None):
        super().__init__(message or f"Invalid time format: {value!r} (expected HH:MM)")
        self.value = value

    def extra(self) -> dict[str, Any]:
        return {"value": self.value}


class OutOfHoursError(ValidationError):
    """Slot falls outside the practice's opening window for its weekday"""

    kind = ErrorKind.OUT_OF_HOURS

    def __init__(
        self,
        message: str,
        day: Optional[str] = None,
        open_time: Optional[str] = None,
        close_time: Optional[str] = None,
    ):
        super().__init__(message)
        self.day = day
        self.open_time = open_time
        self.close_time = close_time

    def extra(self) -> dict[str, Any]:
        return {"day": self.day, "open": self.open_time, "close": self.close_time}


class ConflictError(BookingEngineError):
    """
    An opening-hours change would invalidate existing appointments.

    ``conflicts`` holds one entry per offending appointment; the change is
    rejected as a whole.
    """

    kind = ErrorKind.CONFLICT
    status_code = 409

    def __init__(self, conflicts: list[dict[str, Any]]):
        ids = ", ".join(c["appointment_id"] for c in conflicts)
        super().__init__(
            f"{len(conflicts)} existing appointment(s) fall outside the new opening hours: {ids}"
        )
        self.conflicts = conflicts

    @property
    def appointment_ids(self) -> list[str]:
        return [c["appointment_id"] for c in self.conflicts]

    def extra(self) -> dict[str, Any]:
        return {"conflicts": self.conflicts}


class NotFoundError(BookingEngineError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id

    def extra(self) -> dict[str, Any]:
        return {"resource": self.resource, "id": self.resource_id}


class AlreadyBookedError(BookingEngineError):
    """Slot already booked - by an earlier booking or a concurrent one that won"""

    kind = ErrorKind.ALREADY_BOOKED
    status_code = 409

    def __init__(self, appointment_id: str):
        super().__init__("This appointment is no longer available")
        self.appointment_id = appointment_id

    def extra(self) -> dict[str, Any]:
        return {"appointment_id": self.appointment_id}


class PermissionDeniedError(BookingEngineError):
    kind = ErrorKind.PERMISSION_DENIED
    status_code = 403


class GeocodeError(BookingEngineError):
    kind = ErrorKind.GEOCODE
    status_code = 400

    def __init__(self, postcode: str, message: Optional[str] = None):
        super().__init__(message or f"Could not find a location for postcode '{postcode}'")
        self.postcode = postcode

    def extra(self) -> dict[str, Any]:
        return {"postcode": self.postcode}


class NotificationError(BookingEngineError):
    """Email delivery failed. Logged by the booking flow, never raised to its caller."""

    kind = ErrorKind.NOTIFICATION
    status_code = 502

    def __init__(self, recipient: str, message: str):
        super().__init__(message)
        self.recipient = recipient

    def extra(self) -> dict[str, Any]:
        return {"recipient": self.recipient}
