from __future__ import annotations

from typing import Annotated, Optional, List
from pydantic import BaseModel, Field, UUID4
from decimal import Decimal
from datetime import datetime

from moviebooking.models.booking import BookingStatus, PaymentMethod
from moviebooking.models.seat import SeatType


# Booking - Create (POST /bookings, POST /payments)
class BookingCreate(BaseModel):
    showtime_id: UUID4
    seat_ids: Annotated[List[UUID4], Field(min_length=1, max_length=10)]
    payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD


class BookingSeatResponse(BaseModel):
    id: UUID4
    label: str
    seat_type: SeatType


# Booking - Full response (POST /bookings, GET /bookings/{id})
class Booking(BaseModel):
    id: UUID4
    booking_number: str
    user_id: UUID4
    showtime_id: UUID4
    movie_id: UUID4
    cinema_id: UUID4
    seats: List[BookingSeatResponse] = []
    subtotal_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    status: BookingStatus
    payment_method: PaymentMethod
    payment_reference: Optional[str] = None
    points_earned: int = 0
    booking_date: Optional[datetime] = None
    expires_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None


# Booking - Admin view (GET /admin/bookings, includes user info)
class AdminBooking(Booking):
    user: Optional[UserSummary] = None


# Import at the bottom to avoid circular imports
from moviebooking.schemas.user import UserSummary  # noqa: E402

AdminBooking.model_rebuild()
