"""
Domain errors raised by the hotel services.

Every error is raised synchronously to the caller and aborts the surrounding
transaction. `status_code` is the HTTP status the API layer answers with and
`kind` is the stable machine-readable name placed in the response body.
"""

from typing import Optional


class HotelError(Exception):
    status_code = 400
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(HotelError):
    status_code = 400
    kind = "validation_error"


class ImportFormatError(ValidationError):
    kind = "import_format_error"

    def __init__(self, message: str = "invalid data format, expected a JSON export"):
        super().__init__(message)


class NotFound(HotelError):
    status_code = 404
    kind = "not_found"


class RoomNotFound(NotFound):
    def __init__(self, room_id: str):
        super().__init__(f"room {room_id} not found")
        self.room_id = room_id


class BookingNotFound(NotFound):
    def __init__(self, booking_id: str):
        super().__init__(f"booking {booking_id} not found")
        self.booking_id = booking_id


class UserNotFound(NotFound):
    def __init__(self, user_id: str):
        super().__init__(f"user {user_id} not found")
        self.user_id = user_id


class Conflict(HotelError):
    status_code = 409
    kind = "conflict"


class DuplicateRoomNumber(Conflict):
    def __init__(self, room_number: str):
        super().__init__(f"room number {room_number} already exists")
        self.room_number = room_number


class RoomUnavailable(Conflict):
    def __init__(self, room_id: str, conflicting: Optional[list[str]] = None):
        super().__init__("room is not available for the selected dates")
        self.room_id = room_id
        self.conflicting = conflicting or []


class DuplicateEmail(Conflict):
    def __init__(self, email: str):
        super().__init__(f"user with email {email} already exists")
        self.email = email


class InvalidTransition(HotelError):
    status_code = 409
    kind = "invalid_transition"

    def __init__(self, booking_id: str, current: str, requested: str):
        super().__init__(f"cannot move booking {booking_id} from {current} to {requested}")
        self.booking_id = booking_id
        self.current = current
        self.requested = requested


class PreconditionFailed(HotelError):
    status_code = 409
    kind = "precondition_failed"


class RoomHasActiveBookings(PreconditionFailed):
    def __init__(self, room_id: str, active: int):
        super().__init__(f"room {room_id} has {active} active booking(s)")
        self.room_id = room_id
        self.active = active


class LastAdmin(PreconditionFailed):
    def __init__(self, user_id: str, message: str = "cannot delete the last admin user"):
        super().__init__(message)
        self.user_id = user_id
