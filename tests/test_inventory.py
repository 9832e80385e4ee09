from decimal import Decimal

import pytest

from moviebooking.core.exceptions import ConflictError, NotFoundError, ValidationError
from moviebooking.models.booking import Booking
from moviebooking.models.seat import Seat, SeatType
from moviebooking.services import bookings, inventory


def _seat(db, seat_id):
    return db.query(Seat).filter(Seat.id == seat_id).populate_existing().one()


def test_generated_seat_map_layout(db, showtime):
    seats = db.query(Seat).filter(Seat.showtime_id == showtime.id).all()
    by_label = {s.label: s for s in seats}

    assert len(seats) == 72
    assert showtime.total_seats == showtime.available_seats == 72
    assert by_label["A1"].seat_type == SeatType.STANDARD
    assert by_label["D5"].seat_type == SeatType.PREMIUM
    assert by_label["F9"].seat_type == SeatType.VIP
    assert by_label["H1"].seat_type == SeatType.COUPLE


def test_seat_prices_follow_seat_type():
    assert inventory.seat_price(Decimal("100000"), SeatType.STANDARD) == Decimal("100000.00")
    assert inventory.seat_price(Decimal("100000"), SeatType.PREMIUM) == Decimal("120000.00")
    assert inventory.seat_price(Decimal("100000"), SeatType.VIP) == Decimal("150000.00")
    assert inventory.seat_price(Decimal("100000"), SeatType.COUPLE) == Decimal("200000.00")


def test_claim_is_all_or_nothing(db, make_user, showtime, seat_ids):
    a1, a2 = seat_ids(showtime, "A1", "A2")
    bookings.create_booking(db, make_user(), showtime.id, [a2])

    with pytest.raises(ConflictError) as exc_info:
        bookings.create_booking(db, make_user(), showtime.id, [a1, a2])

    assert exc_info.value.unavailable_seat_ids == [a2]
    assert _seat(db, a1).is_available is True
    assert _seat(db, a1).held_by_booking_id is None
    assert db.query(Booking).count() == 1


def test_claim_seats_directly_rolls_back_partial_claim(db, make_user, showtime, seat_ids):
    a1, a2 = seat_ids(showtime, "A1", "A2")
    holder = bookings.create_booking(db, make_user(), showtime.id, [a2])

    with pytest.raises(ConflictError):
        inventory.claim_seats(db, showtime.id, [a1, a2], holder.id)

    assert _seat(db, a1).is_available is True
    assert _seat(db, a2).held_by_booking_id == holder.id


def test_stale_reader_cannot_claim_a_taken_seat(session_factory, make_user, showtime, seat_ids):
    (a1,) = seat_ids(showtime, "A1")
    alice, bob = make_user(), make_user()

    first = session_factory()
    second = session_factory()
    try:
        # Both sessions see the seat as available before either claims it
        assert first.get(Seat, a1).is_available is True
        assert second.get(Seat, a1).is_available is True

        winner = bookings.create_booking(first, first.get(type(alice), alice.id), showtime.id, [a1])

        with pytest.raises(ConflictError):
            bookings.create_booking(second, second.get(type(bob), bob.id), showtime.id, [a1])

        check = session_factory()
        try:
            seat = check.get(Seat, a1)
            assert seat.is_available is False
            assert seat.held_by_booking_id == winner.id
            assert check.query(Booking).count() == 1
        finally:
            check.close()
    finally:
        first.close()
        second.close()


def test_release_is_idempotent(db, make_user, showtime, seat_ids):
    a1, a2 = seat_ids(showtime, "A1", "A2")
    booking = bookings.create_booking(db, make_user(), showtime.id, [a1, a2])

    assert inventory.release_seats(db, booking.id) == 2
    db.commit()
    assert inventory.release_seats(db, booking.id) == 0
    db.commit()

    assert _seat(db, a1).is_available is True
    assert _seat(db, a2).is_available is True


def test_release_leaves_other_bookings_seats_alone(db, make_user, showtime, seat_ids):
    a1, a2 = seat_ids(showtime, "A1", "A2")
    mine = bookings.create_booking(db, make_user(), showtime.id, [a1])
    theirs = bookings.create_booking(db, make_user(), showtime.id, [a2])

    inventory.release_seats(db, mine.id)
    db.commit()

    assert _seat(db, a2).held_by_booking_id == theirs.id


def test_claim_rejects_empty_and_duplicate_selection(db, showtime, seat_ids):
    (a1,) = seat_ids(showtime, "A1")
    with pytest.raises(ValidationError):
        inventory.claim_seats(db, showtime.id, [], None)
    with pytest.raises(ValidationError):
        inventory.claim_seats(db, showtime.id, [a1, a1], None)


def test_seats_of_another_showtime_are_not_found(db, make_user, make_showtime, seat_ids):
    first, other = make_showtime(), make_showtime()
    (foreign,) = seat_ids(other, "B3")

    with pytest.raises(NotFoundError):
        bookings.create_booking(db, make_user(), first.id, [foreign])


def test_seat_map_groups_rows(db, make_user, showtime, seat_ids):
    (c4,) = seat_ids(showtime, "C4")
    bookings.create_booking(db, make_user(), showtime.id, [c4])

    data = inventory.seat_map(db, showtime.id)

    assert [r["label"] for r in data["rows"]] == list("ABCDEFGH")
    row_c = data["rows"][2]
    assert row_c["seat_type"] == SeatType.PREMIUM
    assert row_c["price"] == Decimal("180000.00")
    assert [s.is_available for s in row_c["seats"]].count(False) == 1
