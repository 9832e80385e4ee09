from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from moviebooking.db.session import get_db
from moviebooking.api.deps import get_current_user, get_provider
from moviebooking.models.user import User
from moviebooking.models.booking import Booking, BookingSeat, BookingStatus
from moviebooking.schemas.booking import (
    BookingCreate,
    Booking as BookingSchema,
    BookingSeatResponse,
)
from moviebooking.schemas.common import PaginatedResponse, ErrorResponse, SeatsUnavailableError, PaymentFailedError
from moviebooking.services import bookings as booking_service
from moviebooking.services import payments
from moviebooking.services.payments import PaymentProvider

router = APIRouter(prefix="/bookings", tags=["Bookings"])
payments_router = APIRouter(prefix="/payments", tags=["Payments"])

PAYMENT_ERROR_RESPONSES = {
    402: {"model": PaymentFailedError},
    404: {"model": ErrorResponse},
    409: {"model": SeatsUnavailableError},
    503: {"model": ErrorResponse},
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_booking(booking_id: UUID, user_id, db: Session) -> Booking:
    """Load a booking owned by ``user_id`` with its seats eager-loaded."""
    return (
        db.query(Booking)
        .options(joinedload(Booking.seats).joinedload(BookingSeat.seat))
        .filter(Booking.id == booking_id, Booking.user_id == user_id)
        .first()
    )


def serialize_booking(booking: Booking, schema=BookingSchema, **extra):
    """Convert a Booking ORM object to its schema representation."""
    seats_out = [
        BookingSeatResponse(
            id=bs.seat.id,
            label=bs.seat.label,
            seat_type=bs.seat.seat_type,
        )
        for bs in booking.seats
    ]

    return schema(
        id=booking.id,
        booking_number=booking.booking_number,
        user_id=booking.user_id,
        showtime_id=booking.showtime_id,
        movie_id=booking.movie_id,
        cinema_id=booking.cinema_id,
        seats=seats_out,
        subtotal_amount=booking.subtotal_amount,
        discount_amount=booking.discount_amount,
        total_amount=booking.total_amount,
        status=booking.status,
        payment_method=booking.payment_method,
        payment_reference=booking.payment_reference,
        points_earned=booking.points_earned or 0,
        booking_date=booking.booking_date,
        expires_at=booking.expires_at,
        confirmed_at=booking.confirmed_at,
        cancelled_at=booking.cancelled_at,
        cancel_reason=booking.cancel_reason,
        **extra,
    )


def _owned_booking_or_404(booking_id: UUID, user: User, db: Session) -> Booking:
    booking = _load_booking(booking_id, user.id, db)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


# ---------------------------------------------------------------------------
# POST /payments - book, charge and confirm in one call
# ---------------------------------------------------------------------------


@payments_router.post(
    "/",
    response_model=BookingSchema,
    status_code=status.HTTP_201_CREATED,
    responses=PAYMENT_ERROR_RESPONSES,
)
def pay(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    provider: PaymentProvider = Depends(get_provider),
):
    """
    Run a complete payment attempt for the selected seats.

    - 201: booking CONFIRMED, points credited.
    - 409: a seat was taken first; nothing was booked.
    - 402: payment failed; the booking was CANCELLED and its seats released.
    """
    booking = payments.process_payment(
        db,
        provider,
        current_user,
        data.showtime_id,
        data.seat_ids,
        data.payment_method,
    )
    return serialize_booking(_load_booking(booking.id, current_user.id, db))


# ---------------------------------------------------------------------------
# POST /bookings - hold seats in a PENDING booking
# ---------------------------------------------------------------------------


@router.post("/", response_model=BookingSchema, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Claim the selected seats in a PENDING booking.
    The booking must be paid before `expires_at` or its seats are released.
    """
    booking = booking_service.create_booking(
        db,
        current_user,
        data.showtime_id,
        data.seat_ids,
        data.payment_method,
    )
    return serialize_booking(_load_booking(booking.id, current_user.id, db))


@router.post("/{booking_id}/pay", response_model=BookingSchema, responses=PAYMENT_ERROR_RESPONSES)
def pay_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    provider: PaymentProvider = Depends(get_provider),
):
    """Charge and confirm a PENDING booking created earlier."""
    booking = _owned_booking_or_404(booking_id, current_user, db)
    booking = payments.settle_booking(db, provider, booking)
    return serialize_booking(_load_booking(booking.id, current_user.id, db))


# ---------------------------------------------------------------------------
# GET /bookings - list current user's bookings
# ---------------------------------------------------------------------------


@router.get("/", response_model=PaginatedResponse[BookingSchema])
def list_my_bookings(
    status: Optional[BookingStatus] = Query(
        None, description="Filter by status: PENDING, CONFIRMED, CANCELLED, COMPLETED"
    ),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Return the authenticated user's bookings, newest first."""
    query = (
        db.query(Booking)
        .options(joinedload(Booking.seats).joinedload(BookingSeat.seat))
        .filter(Booking.user_id == current_user.id)
    )
    if status:
        query = query.filter(Booking.status == status)

    total = query.count()
    bookings = (
        query.order_by(Booking.booking_date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=[serialize_booking(b) for b in bookings],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


# ---------------------------------------------------------------------------
# GET /bookings/{id} - single booking detail
# ---------------------------------------------------------------------------


@router.get("/{booking_id}", response_model=BookingSchema)
def get_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Return a single booking. Only the owning user can access it."""
    return serialize_booking(_owned_booking_or_404(booking_id, current_user, db))


# ---------------------------------------------------------------------------
# POST /bookings/{id}/cancel
# ---------------------------------------------------------------------------


@router.post("/{booking_id}/cancel", response_model=BookingSchema)
def cancel_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Abandon a PENDING booking and release its seats.
    Confirmed bookings cannot be cancelled here (409).
    """
    _owned_booking_or_404(booking_id, current_user, db)
    booking_service.cancel_booking(db, booking_id, reason="Cancelled by user")
    return serialize_booking(_load_booking(booking_id, current_user.id, db))
