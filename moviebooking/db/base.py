from moviebooking.db.session import Base
from moviebooking.models.user import User
from moviebooking.models.movie import Movie
from moviebooking.models.cinema import Cinema
from moviebooking.models.showtime import Showtime
from moviebooking.models.seat import Seat
from moviebooking.models.booking import Booking, BookingSeat
