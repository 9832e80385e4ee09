from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from moviebooking.core.exceptions import ConflictError, InvalidStateError, ValidationError
from moviebooking.models.booking import Booking, BookingStatus
from moviebooking.models.seat import Seat
from moviebooking.models.showtime import Showtime
from moviebooking.models.user import MembershipLevel, User
from moviebooking.services import bookings


def _reload(db, model, pk):
    return db.query(model).filter(model.id == pk).populate_existing().one()


def test_create_booking_holds_seats_pending(db, make_user, showtime, seat_ids):
    a1, a2 = seat_ids(showtime, "A1", "A2")

    booking = bookings.create_booking(db, make_user(), showtime.id, [a2, a1])

    assert booking.status == BookingStatus.PENDING
    assert booking.booking_number.startswith("MVB-")
    assert booking.seat_ids == [a2, a1]
    assert booking.total_amount == Decimal("300000.00")
    assert booking.points_earned == 0
    for seat_id in (a1, a2):
        seat = _reload(db, Seat, seat_id)
        assert seat.is_available is False
        assert seat.held_by_booking_id == booking.id


def test_member_discount_applied_at_creation(db, make_user, showtime, seat_ids):
    (a1,) = seat_ids(showtime, "A1")

    booking = bookings.create_booking(db, make_user(points=300), showtime.id, [a1])

    assert booking.subtotal_amount == Decimal("150000.00")
    assert booking.discount_amount == Decimal("15000.00")
    assert booking.total_amount == Decimal("135000.00")


def test_started_showtime_cannot_be_booked(db, make_user, make_showtime, seat_ids):
    started = make_showtime(starts_in=-timedelta(minutes=5))
    (a1,) = seat_ids(started, "A1")

    with pytest.raises(ValidationError):
        bookings.create_booking(db, make_user(), started.id, [a1])

    assert db.query(Booking).count() == 0


def test_confirm_credits_points_and_decrements_capacity(db, make_user, showtime, seat_ids):
    user = make_user(points=150)
    booking = bookings.create_booking(db, user, showtime.id, seat_ids(showtime, "A1", "A2"))

    booking = bookings.confirm_booking(db, booking.id, payment_reference="MOCK-1")

    assert booking.status == BookingStatus.CONFIRMED
    assert booking.confirmed_at is not None
    assert booking.payment_reference == "MOCK-1"
    assert booking.points_earned == 30
    user = _reload(db, User, user.id)
    assert user.membership_points == 180
    assert user.membership_level == MembershipLevel.BASIC
    assert _reload(db, Showtime, showtime.id).available_seats == 70


def test_confirm_without_capacity_leaves_booking_pending(db, make_user, showtime, seat_ids):
    user = make_user(points=10)
    booking = bookings.create_booking(db, user, showtime.id, seat_ids(showtime, "A1"))
    db.query(Showtime).filter(Showtime.id == showtime.id).update({"available_seats": 0})
    db.commit()

    with pytest.raises(ConflictError):
        bookings.confirm_booking(db, booking.id)

    assert _reload(db, Booking, booking.id).status == BookingStatus.PENDING
    assert _reload(db, User, user.id).membership_points == 10


def test_cancel_releases_seats(db, make_user, showtime, seat_ids):
    (a1,) = seat_ids(showtime, "A1")
    booking = bookings.create_booking(db, make_user(), showtime.id, [a1])

    booking = bookings.cancel_booking(db, booking.id, reason="Changed my mind")

    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancel_reason == "Changed my mind"
    assert booking.cancelled_at is not None
    assert _reload(db, Seat, a1).is_available is True
    assert _reload(db, Showtime, showtime.id).available_seats == 72


def test_confirm_after_cancel_is_rejected_without_touching_seats(db, make_user, showtime, seat_ids):
    a1, a2 = seat_ids(showtime, "A1", "A2")
    user = make_user()
    booking = bookings.create_booking(db, user, showtime.id, [a1])
    bookings.cancel_booking(db, booking.id)
    # someone else takes the released seat
    other = bookings.create_booking(db, make_user(), showtime.id, [a1, a2])

    with pytest.raises(InvalidStateError):
        bookings.confirm_booking(db, booking.id)

    assert _reload(db, Booking, booking.id).status == BookingStatus.CANCELLED
    assert _reload(db, Seat, a1).held_by_booking_id == other.id
    assert _reload(db, User, user.id).membership_points == 0


def test_confirmed_booking_cannot_be_cancelled(db, make_user, showtime, seat_ids):
    booking = bookings.create_booking(db, make_user(), showtime.id, seat_ids(showtime, "B1"))
    bookings.confirm_booking(db, booking.id)

    with pytest.raises(InvalidStateError):
        bookings.cancel_booking(db, booking.id)


def test_cancel_twice_is_rejected(db, make_user, showtime, seat_ids):
    booking = bookings.create_booking(db, make_user(), showtime.id, seat_ids(showtime, "B1"))
    bookings.cancel_booking(db, booking.id)

    with pytest.raises(InvalidStateError):
        bookings.cancel_booking(db, booking.id)


@pytest.mark.parametrize(
    "current,target",
    [
        (BookingStatus.CANCELLED, BookingStatus.CONFIRMED),
        (BookingStatus.COMPLETED, BookingStatus.CANCELLED),
        (BookingStatus.CONFIRMED, BookingStatus.PENDING),
        (BookingStatus.PENDING, BookingStatus.COMPLETED),
    ],
)
def test_illegal_transitions(current, target):
    with pytest.raises(InvalidStateError):
        bookings.assert_transition(current, target)


def test_expire_pending_bookings_reclaims_seats(db, make_user, showtime, seat_ids):
    a1, a2 = seat_ids(showtime, "A1", "A2")
    stale = bookings.create_booking(db, make_user(), showtime.id, [a1])
    fresh = bookings.create_booking(db, make_user(), showtime.id, [a2])
    db.query(Booking).filter(Booking.id == stale.id).update(
        {"expires_at": datetime.now(timezone.utc) - timedelta(minutes=1)}
    )
    db.commit()

    assert bookings.expire_pending_bookings(db) == 1

    stale = _reload(db, Booking, stale.id)
    assert stale.status == BookingStatus.CANCELLED
    assert stale.cancel_reason == "Payment window expired"
    assert _reload(db, Seat, a1).is_available is True
    assert _reload(db, Booking, fresh.id).status == BookingStatus.PENDING
    assert _reload(db, Seat, a2).is_available is False


def test_complete_past_bookings(db, make_user, showtime, seat_ids):
    confirmed = bookings.create_booking(db, make_user(), showtime.id, seat_ids(showtime, "A1"))
    bookings.confirm_booking(db, confirmed.id)
    pending = bookings.create_booking(db, make_user(), showtime.id, seat_ids(showtime, "A2"))
    past = datetime.now(timezone.utc) - timedelta(days=1)
    db.query(Showtime).filter(Showtime.id == showtime.id).update(
        {"start_time": past - timedelta(hours=2), "end_time": past}
    )
    db.commit()

    assert bookings.complete_past_bookings(db) == 1

    assert _reload(db, Booking, confirmed.id).status == BookingStatus.COMPLETED
    assert _reload(db, Booking, pending.id).status == BookingStatus.PENDING
