from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moviebooking.db.session import get_db, commit_or_raise
from moviebooking.api.deps import get_current_admin_user
from moviebooking.api.v1.public.catalog import serialize_movie
from moviebooking.models.user import User
from moviebooking.models.movie import Movie
from moviebooking.models.cinema import Cinema
from moviebooking.models.showtime import Showtime
from moviebooking.schemas.catalog import (
    MovieCreate,
    Movie as MovieSchema,
    CinemaCreate,
    Cinema as CinemaSchema,
    ShowtimeCreate,
    Showtime as ShowtimeSchema,
)
from moviebooking.services import inventory

movies_router = APIRouter(prefix="/admin/movies", tags=["Admin - Movies"])
cinemas_router = APIRouter(prefix="/admin/cinemas", tags=["Admin - Cinemas"])
showtimes_router = APIRouter(prefix="/admin/showtimes", tags=["Admin - Showtimes"])


@movies_router.post("/", response_model=MovieSchema, status_code=status.HTTP_201_CREATED)
def create_movie(
    data: MovieCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = Movie(
        title=data.title,
        overview=data.overview,
        duration_minutes=data.duration_minutes,
        genres=",".join(g.strip() for g in data.genres if g.strip()),
        rating=data.rating,
        is_now_showing=data.is_now_showing,
        is_coming_soon=data.is_coming_soon,
    )
    db.add(movie)
    commit_or_raise(db)
    db.refresh(movie)
    return serialize_movie(movie)


@cinemas_router.post("/", response_model=CinemaSchema, status_code=status.HTTP_201_CREATED)
def create_cinema(
    data: CinemaCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    cinema = Cinema(**data.model_dump())
    db.add(cinema)
    commit_or_raise(db)
    db.refresh(cinema)
    return cinema


@showtimes_router.post("/", response_model=ShowtimeSchema, status_code=status.HTTP_201_CREATED)
def create_showtime(
    data: ShowtimeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Create a showtime together with its full seat map (rows A-H, 9 seats each)."""
    if not db.get(Movie, data.movie_id):
        raise HTTPException(status_code=404, detail="Movie not found")
    if not db.get(Cinema, data.cinema_id):
        raise HTTPException(status_code=404, detail="Cinema not found")

    showtime = Showtime(**data.model_dump())
    db.add(showtime)
    db.flush()  # get showtime.id

    inventory.generate_seat_map(db, showtime)

    commit_or_raise(db)
    db.refresh(showtime)
    return showtime
