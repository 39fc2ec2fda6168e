import itertools
import os

# Point the application engine at a throwaway database before app modules load
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.movie import Movie
from app.models.room import Room
from app.schemas.showtime import ShowtimeCreate
from app.services.showtimes import create_showtime

SHOW_DAY = datetime(2030, 5, 17)


@pytest.fixture
def engine(tmp_path):
    # File-backed so worker threads get their own connections
    engine = create_engine(
        f"sqlite:///{tmp_path / 'cinema.db'}",
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
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_movie(db):
    counter = itertools.count(1)

    def _make(title=None, genre="Sci-Fi", duration_minutes=116):
        movie = Movie(
            title=title or f"Movie {next(counter)}",
            genre=genre,
            duration_minutes=duration_minutes,
            release_date=date(2016, 11, 11),
        )
        db.add(movie)
        db.commit()
        return movie

    return _make


@pytest.fixture
def make_room(db):
    counter = itertools.count(1)

    def _make(name=None, rows=2, seats_per_row=3):
        room = Room(name=name or f"Room {next(counter)}", rows=rows, seats_per_row=seats_per_row)
        db.add(room)
        db.commit()
        return room

    return _make


@pytest.fixture
def make_showtime(db, make_movie, make_room):
    def _make(room=None, movie=None, start=None, hours=2, base_price="10.00"):
        room = room or make_room()
        movie = movie or make_movie()
        start = start or SHOW_DAY.replace(hour=18)
        return create_showtime(
            db,
            ShowtimeCreate(
                start_time=start,
                end_time=start + timedelta(hours=hours),
                base_price=Decimal(base_price),
                room_id=room.id,
                movie_id=movie.id,
            ),
        )

    return _make


@pytest.fixture
def showtime(make_showtime):
    """A scheduled showtime in a 2x3 room at base price 10.00."""
    return make_showtime()


@pytest.fixture
def seat_ids(showtime):
    return [seat.id for seat in showtime.seats]


@pytest.fixture
def show_day():
    return SHOW_DAY
