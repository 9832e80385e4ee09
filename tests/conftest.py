import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# Settings are read at import time; point them at SQLite before the app loads.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from moviebooking.api.deps import get_provider
from moviebooking.core.security import create_access_token
from moviebooking.db.base import Base
from moviebooking.db.session import get_db
from moviebooking.main import app
from moviebooking.models.cinema import Cinema
from moviebooking.models.movie import Movie
from moviebooking.models.seat import Seat
from moviebooking.models.showtime import Showtime
from moviebooking.models.user import User
from moviebooking.services import inventory, membership
from moviebooking.services.payments import MockPaymentProvider


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'moviebooking.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def provider():
    return MockPaymentProvider()


@pytest.fixture
def client(session_factory, provider):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_provider] = lambda: provider
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(points=0, role="user", level=None):
        counter["n"] += 1
        user = User(
            email=f"user{counter['n']}@example.com",
            full_name=f"User {counter['n']}",
            role=role,
            membership_points=points,
            membership_level=level or membership.tier_for(points),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_showtime(db):
    movie = Movie(title="Dune: Part Two", genres="Sci-Fi,Adventure", is_now_showing=True)
    cinema = Cinema(name="Galaxy Nguyen Du", city="Ho Chi Minh City", number_of_screens=5)
    db.add_all([movie, cinema])
    db.commit()

    def _make_showtime(price="150000", starts_in=timedelta(days=1)):
        start = datetime.now(timezone.utc) + starts_in
        showtime = Showtime(
            movie_id=movie.id,
            cinema_id=cinema.id,
            screen_id="screen-1",
            start_time=start,
            end_time=start + timedelta(hours=2, minutes=46),
            price=Decimal(price),
            format="IMAX",
        )
        db.add(showtime)
        db.flush()
        inventory.generate_seat_map(db, showtime)
        db.commit()
        db.refresh(showtime)
        return showtime

    return _make_showtime


@pytest.fixture
def showtime(make_showtime):
    return make_showtime()


@pytest.fixture
def seat_ids(db):
    """Look up seat ids of a showtime by label, e.g. seat_ids(showtime, "A1", "A2")."""

    def _seat_ids(showtime, *labels):
        seats = {s.label: s.id for s in db.query(Seat).filter(Seat.showtime_id == showtime.id).all()}
        return [seats[label] for label in labels]

    return _seat_ids


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}

    return _auth_headers
