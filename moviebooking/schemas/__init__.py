from moviebooking.schemas.common import PaginatedResponse, ErrorResponse, SeatsUnavailableError, PaymentFailedError, ReclaimResult
from moviebooking.schemas.user import User, UserCreate, UserSummary, MembershipInfo
from moviebooking.schemas.catalog import (
    Movie, MovieCreate, Cinema, CinemaCreate, Showtime, ShowtimeCreate,
)
from moviebooking.schemas.seat import SeatMapResponse, SeatRow, SeatStatus
from moviebooking.schemas.booking import (
    Booking, BookingCreate, AdminBooking, BookingSeatResponse,
)
