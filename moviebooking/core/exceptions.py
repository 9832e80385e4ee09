"""
Domain errors raised by the booking services.

Routes let these propagate; ``moviebooking.main`` maps each one to an HTTP
status. Services run their compensating actions before raising, so by the
time a caller sees one of these the stored state is consistent.
"""

from typing import List, Optional
from uuid import UUID


class BookingError(Exception):
    status_code = 400
    error = "booking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class ValidationError(BookingError):
    status_code = 400
    error = "validation_error"


class NotFoundError(BookingError):
    status_code = 404
    error = "not_found"


class ConflictError(BookingError):
    """Seat no longer available. The user should pick other seats."""

    status_code = 409
    error = "seats_unavailable"

    def __init__(self, message: str, unavailable_seat_ids: Optional[List[UUID]] = None):
        super().__init__(message)
        self.unavailable_seat_ids = list(unavailable_seat_ids or [])

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["unavailable_seat_ids"] = [str(s) for s in self.unavailable_seat_ids]
        return data


class InvalidStateError(BookingError):
    """A transition was attempted from the wrong booking status."""

    status_code = 409
    error = "invalid_state"


class ProviderError(BookingError):
    """The payment provider declined, failed or timed out."""

    status_code = 402
    error = "payment_failed"

    def __init__(self, message: str, booking_id: Optional[UUID] = None):
        super().__init__(message)
        self.booking_id = booking_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["booking_id"] = str(self.booking_id) if self.booking_id else None
        return data


class PersistenceError(BookingError):
    """Transient database failure. Retrying the whole operation is safe."""

    status_code = 503
    error = "persistence_error"
