from typing import List
from pydantic import BaseModel, UUID4
from decimal import Decimal

from moviebooking.models.seat import SeatType


# --- Seat Map (seat selection screen) ---

class SeatStatus(BaseModel):
    id: UUID4
    label: str
    number: int
    is_available: bool


class SeatRow(BaseModel):
    label: str
    seat_type: SeatType
    price: Decimal
    seats: List[SeatStatus]


class SeatMapResponse(BaseModel):
    showtime_id: UUID4
    screen_id: str
    total_seats: int
    available_seats: int
    rows: List[SeatRow]
