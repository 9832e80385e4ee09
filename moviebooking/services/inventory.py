"""
Seat inventory for a showtime.

A seat is claimed with a single conditional UPDATE (``... WHERE
is_available``), never with a read followed by a write, so two sessions
racing for the same seat serialize in the database and exactly one wins.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from moviebooking.core.exceptions import ConflictError, NotFoundError, ValidationError
from moviebooking.models.seat import Seat, SeatType
from moviebooking.models.showtime import Showtime

logger = logging.getLogger(__name__)

SEAT_ROWS = ["A", "B", "C", "D", "E", "F", "G", "H"]
SEATS_PER_ROW = 9

PRICE_MULTIPLIERS = {
    SeatType.STANDARD: Decimal("1.0"),
    SeatType.PREMIUM: Decimal("1.2"),
    SeatType.VIP: Decimal("1.5"),
    SeatType.COUPLE: Decimal("2.0"),
}


def seat_type_for_row(row_label: str) -> SeatType:
    if row_label in ("A", "B"):
        return SeatType.STANDARD
    if row_label in ("C", "D", "E"):
        return SeatType.PREMIUM
    if row_label == "F":
        return SeatType.VIP
    return SeatType.COUPLE


def seat_price(base_price, seat_type: SeatType) -> Decimal:
    return (Decimal(str(base_price)) * PRICE_MULTIPLIERS[SeatType(seat_type)]).quantize(Decimal("0.01"))


def generate_seat_map(
    db: Session,
    showtime: Showtime,
    rows: Sequence[str] = SEAT_ROWS,
    seats_per_row: int = SEATS_PER_ROW,
) -> List[Seat]:
    """Create the seats of a new showtime and set its seat counters."""
    seats = [
        Seat(
            showtime_id=showtime.id,
            row_label=row,
            seat_number=number,
            seat_type=seat_type_for_row(row),
            is_available=True,
        )
        for row in rows
        for number in range(1, seats_per_row + 1)
    ]
    db.add_all(seats)
    showtime.total_seats = len(seats)
    showtime.available_seats = len(seats)
    db.flush()
    return seats


def _validate_seat_ids(seat_ids: Sequence[UUID]) -> List[UUID]:
    seat_ids = list(seat_ids)
    if not seat_ids:
        raise ValidationError("At least one seat must be selected")
    if len(set(seat_ids)) != len(seat_ids):
        raise ValidationError("The same seat was selected more than once")
    return seat_ids


def load_seats(db: Session, showtime_id: UUID, seat_ids: Sequence[UUID]) -> List[Seat]:
    """Return the requested seats in request order, or raise if any is not part of the showtime."""
    seat_ids = _validate_seat_ids(seat_ids)
    found = {
        s.id: s
        for s in db.query(Seat).filter(
            Seat.showtime_id == showtime_id,
            Seat.id.in_(seat_ids),
        ).all()
    }
    missing = [sid for sid in seat_ids if sid not in found]
    if missing:
        raise NotFoundError(
            f"Seat(s) not found for this showtime: {', '.join(str(m) for m in missing)}"
        )
    return [found[sid] for sid in seat_ids]


def claim_seats(
    db: Session,
    showtime_id: UUID,
    seat_ids: Sequence[UUID],
    booking_id: UUID,
) -> List[UUID]:
    """
    Claim every seat in ``seat_ids`` for ``booking_id``, or none of them.

    The claim is one conditional UPDATE; if it touches fewer rows than were
    requested, some seat was already taken and the whole transaction is
    rolled back, including any work the caller had pending in it. The
    caller commits on success.
    """
    seat_ids = _validate_seat_ids(seat_ids)

    claimed = (
        db.query(Seat)
        .filter(
            Seat.showtime_id == showtime_id,
            Seat.id.in_(seat_ids),
            Seat.is_available == True,  # noqa: E712
        )
        .update(
            {"is_available": False, "held_by_booking_id": booking_id},
            synchronize_session=False,
        )
    )

    if claimed != len(seat_ids):
        db.rollback()
        taken = [
            s.id
            for s in db.query(Seat).filter(
                Seat.showtime_id == showtime_id,
                Seat.id.in_(seat_ids),
                Seat.is_available == False,  # noqa: E712
            ).all()
        ]
        logger.warning(
            "Seat claim conflict on showtime %s: %d of %d seat(s) unavailable",
            showtime_id, len(taken), len(seat_ids),
        )
        raise ConflictError(
            "One or more selected seats are no longer available",
            unavailable_seat_ids=taken,
        )

    return seat_ids


def release_seats(db: Session, booking_id: UUID) -> int:
    """
    Return every seat held by ``booking_id`` to the pool. Seats that are
    already available, or held by another booking, are left alone, so
    calling this twice is harmless. The caller commits.
    """
    released = (
        db.query(Seat)
        .filter(Seat.held_by_booking_id == booking_id)
        .update(
            {"is_available": True, "held_by_booking_id": None},
            synchronize_session=False,
        )
    )
    if released:
        logger.info("Released %d seat(s) held by booking %s", released, booking_id)
    return released


def seat_map(db: Session, showtime_id: UUID) -> Dict[str, object]:
    """Seats of a showtime grouped by row, with the per-row type and price."""
    showtime = db.get(Showtime, showtime_id)
    if not showtime:
        raise NotFoundError("Showtime not found")

    seats = (
        db.query(Seat)
        .filter(Seat.showtime_id == showtime_id)
        .order_by(Seat.row_label, Seat.seat_number)
        .all()
    )

    rows_dict: Dict[str, dict] = {}
    for seat in seats:
        key = seat.row_label
        if key not in rows_dict:
            rows_dict[key] = {
                "label": seat.row_label,
                "seat_type": seat.seat_type,
                "price": seat_price(showtime.price, seat.seat_type),
                "seats": [],
            }
        rows_dict[key]["seats"].append(seat)

    return {
        "showtime": showtime,
        "rows": list(rows_dict.values()),
    }
