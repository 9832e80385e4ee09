from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from moviebooking.db.session import get_db
from moviebooking.api.deps import get_current_admin_user
from moviebooking.api.v1.public.bookings import serialize_booking
from moviebooking.models.user import User
from moviebooking.models.booking import Booking, BookingSeat, BookingStatus
from moviebooking.schemas.booking import AdminBooking
from moviebooking.schemas.user import UserSummary
from moviebooking.schemas.common import PaginatedResponse, ReclaimResult
from moviebooking.services import bookings as booking_service

router = APIRouter(prefix="/admin/bookings", tags=["Admin - Bookings"])


def _serialize_admin_booking(booking: Booking) -> AdminBooking:
    user_summary = None
    if booking.user:
        user_summary = UserSummary(
            id=booking.user.id,
            full_name=booking.user.full_name,
            email=booking.user.email,
        )
    return serialize_booking(booking, schema=AdminBooking, user=user_summary)


@router.get("/", response_model=PaginatedResponse[AdminBooking])
def list_all_bookings(
    # --- Filters ---
    status: Optional[BookingStatus] = Query(None, description="Filter by booking status"),
    showtime_id: Optional[UUID] = Query(None, description="Filter by showtime"),
    user_id: Optional[UUID] = Query(None, description="Filter by user"),
    # --- Pagination ---
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Return all bookings, newest first."""
    query = (
        db.query(Booking)
        .options(
            joinedload(Booking.user),
            joinedload(Booking.seats).joinedload(BookingSeat.seat),
        )
    )

    if status:
        query = query.filter(Booking.status == status)
    if showtime_id:
        query = query.filter(Booking.showtime_id == showtime_id)
    if user_id:
        query = query.filter(Booking.user_id == user_id)

    total = query.count()
    bookings = (
        query.order_by(Booking.booking_date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=[_serialize_admin_booking(b) for b in bookings],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.post("/reclaim", response_model=ReclaimResult)
def reclaim_bookings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Run one pass of the background reclaim: expire stale holds, complete past bookings."""
    return ReclaimResult(
        expired_bookings=booking_service.expire_pending_bookings(db),
        completed_bookings=booking_service.complete_past_bookings(db),
    )
