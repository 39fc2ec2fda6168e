import threading
import time
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import event

from app.core.config import settings
from app.core.exceptions import (
    IllegalStatusError,
    InvalidRequestError,
    NotFoundError,
    OverlappingShowtimesError,
    ResourceInUseError,
)
from app.models.showtime import Showtime, ShowtimeStatus
from app.schemas.showtime import ShowtimeCreate, ShowtimeUpdate
from app.services.showtimes import (
    cancel_showtime,
    complete_past_showtimes,
    create_showtime,
    room_locks,
    search_showtimes,
    update_showtime,
)


@pytest.fixture
def room(make_room):
    return make_room()


@pytest.fixture
def evening(make_showtime, room, show_day):
    """Scheduled 11:00-13:00 in ``room``."""
    return make_showtime(room=room, start=show_day.replace(hour=11), hours=2)


def test_overlapping_showtime_is_rejected(db, make_showtime, room, evening, show_day):
    with pytest.raises(OverlappingShowtimesError):
        make_showtime(room=room, start=show_day.replace(hour=10), hours=2)
    assert db.query(Showtime).count() == 1


def test_contained_showtime_is_rejected(make_showtime, room, evening, show_day):
    with pytest.raises(OverlappingShowtimesError):
        make_showtime(room=room, start=show_day.replace(hour=11, minute=30), hours=1)


@pytest.mark.parametrize("start_hour", [9, 13])
def test_touching_boundaries_do_not_overlap(make_showtime, room, evening, show_day, start_hour):
    showtime = make_showtime(room=room, start=show_day.replace(hour=start_hour), hours=2)
    assert showtime.status == ShowtimeStatus.SCHEDULED


def test_other_rooms_do_not_overlap(make_showtime, make_room, evening, show_day):
    other = make_showtime(room=make_room(), start=show_day.replace(hour=11), hours=2)
    assert other.id != evening.id


def test_cancelled_showtime_frees_the_slot(db, make_showtime, room, evening, show_day):
    cancel_showtime(db, evening.id)
    replacement = make_showtime(room=room, start=show_day.replace(hour=12), hours=2)
    assert replacement.status == ShowtimeStatus.SCHEDULED


def test_start_must_be_before_end(make_showtime, room, show_day):
    with pytest.raises(InvalidRequestError):
        make_showtime(room=room, start=show_day.replace(hour=11), hours=0)


def test_inactive_room_cannot_be_scheduled(db, make_showtime, room):
    room.is_active = False
    db.commit()
    with pytest.raises(NotFoundError):
        make_showtime(room=room)


def test_update_checks_window_but_ignores_itself(db, make_showtime, room, evening, show_day):
    later = make_showtime(room=room, start=show_day.replace(hour=14), hours=2)

    moved = update_showtime(db, evening.id, ShowtimeUpdate(
        start_time=show_day.replace(hour=11, minute=30),
        end_time=show_day.replace(hour=13, minute=30),
        base_price=Decimal("12.50"),
    ))
    assert moved.base_price == Decimal("12.50")

    with pytest.raises(OverlappingShowtimesError):
        update_showtime(db, evening.id, ShowtimeUpdate(
            start_time=show_day.replace(hour=13),
            end_time=show_day.replace(hour=15),
            base_price=Decimal("12.50"),
        ))

    with pytest.raises(InvalidRequestError):
        update_showtime(db, later.id, ShowtimeUpdate(
            start_time=show_day.replace(hour=16),
            end_time=show_day.replace(hour=15),
            base_price=Decimal("10.00"),
        ))


def test_cancel_is_only_allowed_once(db, evening):
    cancel_showtime(db, evening.id)
    with pytest.raises(IllegalStatusError):
        cancel_showtime(db, evening.id)


def test_complete_past_showtimes(db, evening, make_showtime, room, show_day):
    upcoming = make_showtime(room=room, start=show_day.replace(hour=15), hours=2)

    count = complete_past_showtimes(db, now=show_day.replace(hour=14))

    assert count == 1
    db.expire_all()
    assert db.get(Showtime, evening.id).status == ShowtimeStatus.COMPLETED
    assert db.get(Showtime, upcoming.id).status == ShowtimeStatus.SCHEDULED


def test_search_by_day_and_status(db, evening, make_showtime, room, show_day):
    make_showtime(room=room, start=show_day + timedelta(days=1, hours=11), hours=2)

    on_day = search_showtimes(db, day=show_day.date()).all()
    assert [s.id for s in on_day] == [evening.id]

    assert search_showtimes(db, status=ShowtimeStatus.CANCELLED).count() == 0
    assert search_showtimes(db, room_id=room.id).count() == 2


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


def _window(room_id, movie_id, start, hours=2):
    return ShowtimeCreate(
        start_time=start,
        end_time=start + timedelta(hours=hours),
        base_price=Decimal("10.00"),
        room_id=room_id,
        movie_id=movie_id,
    )


def test_concurrent_overlapping_creations_schedule_only_one(
    db, session_factory, room, make_movie, show_day
):
    room_id, movie_id = room.id, make_movie().id
    starts = [show_day.replace(hour=10), show_day.replace(hour=11)]
    barrier = threading.Barrier(len(starts))
    outcomes, errors = [], []

    def slow_flush(session, flush_context, instances):
        time.sleep(0.2)

    def schedule(start):
        session = session_factory()
        event.listen(session, "before_flush", slow_flush)
        try:
            barrier.wait(5)
            create_showtime(session, _window(room_id, movie_id, start))
            outcomes.append("scheduled")
        except OverlappingShowtimesError:
            outcomes.append("overlap")
        except Exception as exc:  # surfaced by the assertion below
            errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=schedule, args=(start,)) for start in starts]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert sorted(outcomes) == ["overlap", "scheduled"]
    assert db.query(Showtime).filter(Showtime.room_id == room_id).count() == 1
    assert room_locks.held_count() == 0


def test_scheduling_times_out_while_the_room_is_held(db, room, make_movie, show_day, monkeypatch):
    monkeypatch.setattr(settings, "SEAT_LOCK_TIMEOUT_SECONDS", 0.05)
    movie = make_movie()

    with room_locks.hold([room.id]):
        with pytest.raises(ResourceInUseError):
            create_showtime(db, _window(room.id, movie.id, show_day.replace(hour=10)))

    assert db.query(Showtime).count() == 0
    assert room_locks.held_count() == 0
