"""
Booking lifecycle.

    PENDING ──► CONFIRMED ──► COMPLETED
       │
       └──────► CANCELLED

A booking is only ever created PENDING, together with its seat claim. Every
transition is a conditional UPDATE on the current status, so a booking that
was confirmed and cancelled at the same time ends up in exactly one of the
two states.
"""

import logging
import random
import string
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from moviebooking.core.config import settings
from moviebooking.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from moviebooking.db.session import commit_or_raise
from moviebooking.models.booking import Booking, BookingSeat, BookingStatus, PaymentMethod
from moviebooking.models.showtime import Showtime
from moviebooking.models.user import User
from moviebooking.services import inventory, membership

logger = logging.getLogger(__name__)

BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}


def assert_transition(current: BookingStatus, target: BookingStatus) -> None:
    current = BookingStatus(current)
    if target not in BOOKING_TRANSITIONS[current]:
        raise InvalidStateError(
            f"Cannot move booking from {current.value} to {target.value}"
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _generate_booking_number(db: Session) -> str:
    """Generate a unique 'MVB-XXXXXXXX' booking reference."""
    chars = string.ascii_uppercase + string.digits
    while True:
        number = "MVB-" + "".join(random.choices(chars, k=8))
        if not db.query(Booking.id).filter(Booking.booking_number == number).first():
            return number


def get_booking(db: Session, booking_id: UUID) -> Booking:
    """Load a booking, discarding anything stale in the session for it."""
    booking = (
        db.query(Booking)
        .filter(Booking.id == booking_id)
        .populate_existing()
        .first()
    )
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def hold_expired(db: Session, booking_id: UUID) -> bool:
    """True once a booking's payment window has passed."""
    now = datetime.now(timezone.utc)
    return (
        db.query(Booking.id)
        .filter(Booking.id == booking_id, Booking.expires_at < now)
        .first()
        is not None
    )


def _transition(db: Session, booking_id: UUID, source: BookingStatus, values: dict) -> bool:
    """Compare-and-set on the booking status. Returns False if the status was not ``source``."""
    updated = (
        db.query(Booking)
        .filter(Booking.id == booking_id, Booking.status == source)
        .update(values, synchronize_session=False)
    )
    return updated == 1


def price_seats(showtime: Showtime, seats, level) -> dict:
    """Subtotal by seat type, then the member discount for ``level``."""
    subtotal = sum(
        (inventory.seat_price(showtime.price, s.seat_type) for s in seats),
        Decimal("0.00"),
    )
    discount = (subtotal * membership.discount_rate(level)).quantize(Decimal("0.01"))
    return {
        "subtotal_amount": subtotal,
        "discount_amount": discount,
        "total_amount": subtotal - discount,
    }


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def create_booking(
    db: Session,
    user: User,
    showtime_id: UUID,
    seat_ids: Sequence[UUID],
    payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD,
) -> Booking:
    """
    Create a PENDING booking and claim its seats in the same transaction.

    If any seat is already taken nothing is written and ConflictError is
    raised; no CANCELLED booking is left behind for a lost race.
    """
    seat_ids = list(seat_ids)
    if not seat_ids:
        raise ValidationError("At least one seat must be selected")

    showtime = db.get(Showtime, showtime_id)
    if not showtime:
        raise NotFoundError("Showtime not found")

    now = datetime.now(timezone.utc)
    started = (
        db.query(Showtime.id)
        .filter(Showtime.id == showtime_id, Showtime.start_time <= now)
        .first()
    )
    if started:
        raise ValidationError("This showtime has already started")

    seats = inventory.load_seats(db, showtime_id, seat_ids)
    amounts = price_seats(showtime, seats, user.membership_level)

    booking = Booking(
        booking_number=_generate_booking_number(db),
        user_id=user.id,
        showtime_id=showtime.id,
        movie_id=showtime.movie_id,
        cinema_id=showtime.cinema_id,
        status=BookingStatus.PENDING,
        payment_method=PaymentMethod(payment_method),
        expires_at=now + timedelta(minutes=settings.PENDING_BOOKING_TTL_MINUTES),
        **amounts,
    )
    db.add(booking)
    db.flush()  # get booking.id

    # Rolls back the booking insert too if any seat is taken
    inventory.claim_seats(db, showtime.id, seat_ids, booking.id)

    for position, seat_id in enumerate(seat_ids):
        db.add(BookingSeat(booking_id=booking.id, seat_id=seat_id, position=position))

    commit_or_raise(db)
    db.refresh(booking)

    logger.info(
        "Booking %s created PENDING for user %s: %d seat(s), total=%s",
        booking.booking_number, user.id, len(seat_ids), booking.total_amount,
    )
    return booking


def confirm_booking(db: Session, booking_id: UUID, payment_reference: str = None) -> Booking:
    """
    PENDING -> CONFIRMED after a successful payment.

    Decrements the showtime's available seats and credits membership points
    for the booking total; all of it lands in one commit.
    """
    booking = get_booking(db, booking_id)
    assert_transition(booking.status, BookingStatus.CONFIRMED)

    now = datetime.now(timezone.utc)
    if not _transition(db, booking_id, BookingStatus.PENDING, {
        "status": BookingStatus.CONFIRMED,
        "confirmed_at": now,
        "payment_reference": payment_reference,
    }):
        db.rollback()
        raise InvalidStateError("Booking status changed while it was being confirmed")

    seat_count = len(booking.seats)
    decremented = (
        db.query(Showtime)
        .filter(
            Showtime.id == booking.showtime_id,
            Showtime.available_seats >= seat_count,
        )
        .update(
            {"available_seats": Showtime.available_seats - seat_count},
            synchronize_session=False,
        )
    )
    if not decremented:
        db.rollback()
        raise ConflictError("The showtime has no remaining capacity")

    earned = membership.apply_points(db, booking.user_id, booking.total_amount)
    db.query(Booking).filter(Booking.id == booking_id).update(
        {"points_earned": earned}, synchronize_session=False
    )

    commit_or_raise(db)
    booking = get_booking(db, booking_id)
    logger.info("Booking %s CONFIRMED, %d point(s) earned", booking.booking_number, earned)
    return booking


def cancel_booking(db: Session, booking_id: UUID, reason: str = "Cancelled by user") -> Booking:
    """PENDING -> CANCELLED. Releases the held seats in the same commit."""
    booking = get_booking(db, booking_id)
    assert_transition(booking.status, BookingStatus.CANCELLED)

    if not _transition(db, booking_id, BookingStatus.PENDING, {
        "status": BookingStatus.CANCELLED,
        "cancelled_at": datetime.now(timezone.utc),
        "cancel_reason": reason,
    }):
        db.rollback()
        raise InvalidStateError("Booking status changed while it was being cancelled")

    inventory.release_seats(db, booking_id)

    commit_or_raise(db)
    booking = get_booking(db, booking_id)
    logger.info("Booking %s CANCELLED: %s", booking.booking_number, reason)
    return booking


# ---------------------------------------------------------------------------
# Reclaim
# ---------------------------------------------------------------------------


def expire_pending_bookings(db: Session) -> int:
    """
    Cancel PENDING bookings whose hold has run out and release their seats.

    Returns the number of bookings cancelled.
    """
    now = datetime.now(timezone.utc)
    stale_ids = [
        row.id
        for row in db.query(Booking.id).filter(
            Booking.status == BookingStatus.PENDING,
            Booking.expires_at < now,
        ).all()
    ]

    count = 0
    for booking_id in stale_ids:
        try:
            cancel_booking(db, booking_id, reason="Payment window expired")
        except InvalidStateError:
            # confirmed or cancelled since the scan
            continue
        count += 1
    return count


def complete_past_bookings(db: Session) -> int:
    """Mark CONFIRMED bookings whose showtime has ended as COMPLETED."""
    now = datetime.now(timezone.utc)
    ended = (
        db.query(Showtime.id)
        .filter(Showtime.end_time < now)
        .scalar_subquery()
    )
    count = (
        db.query(Booking)
        .filter(
            Booking.status == BookingStatus.CONFIRMED,
            Booking.showtime_id.in_(ended),
        )
        .update({"status": BookingStatus.COMPLETED}, synchronize_session=False)
    )
    commit_or_raise(db)
    return count
