from typing import Optional, List
from pydantic import BaseModel, Field, UUID4, model_validator
from decimal import Decimal
from datetime import datetime


# Movie
class MovieCreate(BaseModel):
    title: str
    overview: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    genres: List[str] = []
    rating: Decimal = Decimal("0")
    is_now_showing: bool = False
    is_coming_soon: bool = False


class Movie(BaseModel):
    id: UUID4
    title: str
    overview: Optional[str] = None
    duration_minutes: Optional[int] = None
    genres: List[str] = []
    rating: Optional[Decimal] = None
    is_now_showing: bool
    is_coming_soon: bool


# Cinema
class CinemaCreate(BaseModel):
    name: str
    address: Optional[str] = None
    city: str
    number_of_screens: int = Field(0, ge=0)


class Cinema(CinemaCreate):
    id: UUID4

    class Config:
        from_attributes = True


# Showtime
class ShowtimeCreate(BaseModel):
    movie_id: UUID4
    cinema_id: UUID4
    screen_id: str
    start_time: datetime
    end_time: datetime
    price: Decimal = Field(..., gt=0)
    format: Optional[str] = "2D"

    @model_validator(mode="after")
    def check_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class Showtime(BaseModel):
    id: UUID4
    movie_id: UUID4
    cinema_id: UUID4
    screen_id: str
    start_time: datetime
    end_time: datetime
    price: Decimal
    format: Optional[str] = None
    total_seats: int
    available_seats: int

    class Config:
        from_attributes = True
