from moviebooking.models.user import User, MembershipLevel
from moviebooking.models.movie import Movie
from moviebooking.models.cinema import Cinema
from moviebooking.models.showtime import Showtime
from moviebooking.models.seat import Seat, SeatType
from moviebooking.models.booking import Booking, BookingSeat, BookingStatus, PaymentMethod
