from uuid import UUID
from typing import List, Optional
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from moviebooking.db.session import get_db
from moviebooking.models.movie import Movie
from moviebooking.models.cinema import Cinema
from moviebooking.models.showtime import Showtime
from moviebooking.schemas.catalog import (
    Movie as MovieSchema,
    Cinema as CinemaSchema,
    Showtime as ShowtimeSchema,
)
from moviebooking.schemas.seat import SeatMapResponse, SeatRow, SeatStatus
from moviebooking.services import inventory

movies_router = APIRouter(prefix="/movies", tags=["Movies"])
cinemas_router = APIRouter(prefix="/cinemas", tags=["Cinemas"])
showtimes_router = APIRouter(prefix="/showtimes", tags=["Showtimes"])


def serialize_movie(movie: Movie) -> MovieSchema:
    """Genres are stored comma separated."""
    return MovieSchema(
        id=movie.id,
        title=movie.title,
        overview=movie.overview,
        duration_minutes=movie.duration_minutes,
        genres=[g for g in (movie.genres or "").split(",") if g],
        rating=movie.rating,
        is_now_showing=bool(movie.is_now_showing),
        is_coming_soon=bool(movie.is_coming_soon),
    )


# ---------------------------------------------------------------------------
# Movies & cinemas
# ---------------------------------------------------------------------------


@movies_router.get("/", response_model=List[MovieSchema])
def list_movies(
    now_showing: Optional[bool] = Query(None, description="Only movies currently showing"),
    coming_soon: Optional[bool] = Query(None, description="Only upcoming movies"),
    db: Session = Depends(get_db),
):
    query = db.query(Movie)
    if now_showing is not None:
        query = query.filter(Movie.is_now_showing == now_showing)
    if coming_soon is not None:
        query = query.filter(Movie.is_coming_soon == coming_soon)
    return [serialize_movie(m) for m in query.order_by(Movie.title).all()]


@movies_router.get("/{movie_id}", response_model=MovieSchema)
def get_movie(movie_id: UUID, db: Session = Depends(get_db)):
    movie = db.get(Movie, movie_id)
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")
    return serialize_movie(movie)


@cinemas_router.get("/", response_model=List[CinemaSchema])
def list_cinemas(
    city: Optional[str] = Query(None, description="Filter by city (case-insensitive)"),
    db: Session = Depends(get_db),
):
    query = db.query(Cinema)
    if city:
        query = query.filter(Cinema.city.ilike(city))
    return query.order_by(Cinema.name).all()


# ---------------------------------------------------------------------------
# Showtimes & seat map
# ---------------------------------------------------------------------------


@showtimes_router.get("/", response_model=List[ShowtimeSchema])
def list_showtimes(
    movie_id: Optional[UUID] = Query(None),
    cinema_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
):
    """Upcoming showtimes, soonest first."""
    now = datetime.now(timezone.utc)
    query = db.query(Showtime).filter(Showtime.start_time > now)
    if movie_id:
        query = query.filter(Showtime.movie_id == movie_id)
    if cinema_id:
        query = query.filter(Showtime.cinema_id == cinema_id)
    return query.order_by(Showtime.start_time).all()


@showtimes_router.get("/{showtime_id}/seat-map", response_model=SeatMapResponse)
def get_seat_map(showtime_id: UUID, db: Session = Depends(get_db)):
    """
    Returns the seat map for a showtime, grouped by row.
    Does not require authentication - anyone can view availability.
    """
    data = inventory.seat_map(db, showtime_id)
    showtime = data["showtime"]
    return SeatMapResponse(
        showtime_id=showtime.id,
        screen_id=showtime.screen_id,
        total_seats=showtime.total_seats,
        available_seats=showtime.available_seats,
        rows=[
            SeatRow(
                label=row["label"],
                seat_type=row["seat_type"],
                price=row["price"],
                seats=[
                    SeatStatus(
                        id=s.id,
                        label=s.label,
                        number=s.seat_number,
                        is_available=s.is_available,
                    )
                    for s in row["seats"]
                ],
            )
            for row in data["rows"]
        ],
    )
