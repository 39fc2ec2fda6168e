import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    InvalidRequestError,
    NotFoundError,
    OverlappingShowtimesError,
    ResourceInUseError,
)
from app.models.movie import Movie
from app.models.room import Room
from app.models.showtime import Showtime, ShowtimeStatus
from app.schemas.showtime import ShowtimeCreate, ShowtimeUpdate
from app.services.seat_locks import KeyedLockManager, apply_lock_timeout, is_lock_timeout
from app.services.seat_pool import generate_seat_pool

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Window validation
# ---------------------------------------------------------------------------


def validate_start_before_end(start_time: datetime, end_time: datetime) -> None:
    if not start_time < end_time:
        raise InvalidRequestError("Start time must be before end time")


def check_room_overlap(
    db: Session,
    room_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_showtime_id: Optional[int] = None,
) -> None:
    """
    Raise OverlappingShowtimesError if a SCHEDULED showtime in the room shares
    more than a boundary instant with [start_time, end_time).
    """
    filters = [
        Showtime.room_id == room_id,
        Showtime.status == ShowtimeStatus.SCHEDULED,
        Showtime.start_time < end_time,
        Showtime.end_time > start_time,
    ]
    if exclude_showtime_id:
        filters.append(Showtime.id != exclude_showtime_id)

    conflict = db.query(Showtime).filter(*filters).first()
    if conflict:
        raise OverlappingShowtimesError(
            f"Room is already occupied from {conflict.start_time} to {conflict.end_time} "
            f"(showtime {conflict.id})"
        )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

# Serializes scheduling per room inside this process; the room row lock below
# does the same across processes on PostgreSQL.
room_locks = KeyedLockManager(
    resource="room",
    timeout_error=ResourceInUseError,
    timeout_message="The room schedule is being changed by another request, try again",
)


def get_showtime(db: Session, showtime_id: int) -> Showtime:
    showtime = db.get(Showtime, showtime_id)
    if not showtime:
        raise NotFoundError(f"Showtime with id '{showtime_id}' does not exist")
    return showtime


def _lock_room(db: Session, room_id: int, active_only: bool = False) -> Optional[Room]:
    apply_lock_timeout(db)
    query = db.query(Room).filter(Room.id == room_id)
    if active_only:
        query = query.filter(Room.is_active == True)  # noqa: E712
    return query.with_for_update().populate_existing().first()


def _room_busy() -> ResourceInUseError:
    return room_locks.timeout_error(room_locks.timeout_message)


def create_showtime(db: Session, data: ShowtimeCreate) -> Showtime:
    """
    Validate the window, insert the showtime and its full seat pool in one
    transaction.

    The overlap check and the insert run under an exclusive hold on the room,
    so concurrent requests for the same room are checked one after another.
    """
    validate_start_before_end(data.start_time, data.end_time)

    movie = db.get(Movie, data.movie_id)
    if not movie:
        raise NotFoundError(f"Movie with id {data.movie_id} was not found")

    with room_locks.hold([data.room_id], timeout=settings.SEAT_LOCK_TIMEOUT_SECONDS):
        try:
            room = _lock_room(db, data.room_id, active_only=True)
            if not room:
                raise NotFoundError(f"Room with id {data.room_id} was not found")

            check_room_overlap(db, room.id, data.start_time, data.end_time)

            showtime = Showtime(
                start_time=data.start_time,
                end_time=data.end_time,
                base_price=data.base_price,
                status=ShowtimeStatus.SCHEDULED,
                movie_id=movie.id,
                room_id=room.id,
            )
            db.add(showtime)
            db.flush()  # populate showtime.id before the seats reference it
            seats = generate_seat_pool(db, showtime, room)
            db.commit()
        except OperationalError as exc:
            db.rollback()
            if is_lock_timeout(exc):
                raise _room_busy() from exc
            raise
        except Exception:
            db.rollback()
            raise

    db.refresh(showtime)
    logger.info(
        "Scheduled showtime %s in room %s with %d seats",
        showtime.id, data.room_id, len(seats),
    )
    return showtime


def update_showtime(db: Session, showtime_id: int, data: ShowtimeUpdate) -> Showtime:
    showtime = get_showtime(db, showtime_id)
    validate_start_before_end(data.start_time, data.end_time)

    with room_locks.hold([showtime.room_id], timeout=settings.SEAT_LOCK_TIMEOUT_SECONDS):
        try:
            _lock_room(db, showtime.room_id)
            db.refresh(showtime)
            if showtime.status == ShowtimeStatus.SCHEDULED:
                check_room_overlap(
                    db,
                    showtime.room_id,
                    data.start_time,
                    data.end_time,
                    exclude_showtime_id=showtime.id,
                )

            showtime.start_time = data.start_time
            showtime.end_time = data.end_time
            showtime.base_price = data.base_price
            db.commit()
        except OperationalError as exc:
            db.rollback()
            if is_lock_timeout(exc):
                raise _room_busy() from exc
            raise
        except Exception:
            db.rollback()
            raise

    db.refresh(showtime)
    return showtime


def cancel_showtime(db: Session, showtime_id: int) -> Showtime:
    showtime = get_showtime(db, showtime_id)
    # TODO: refuse to cancel (or refund) when the showtime already has active tickets
    showtime.transition_to(ShowtimeStatus.CANCELLED)
    db.commit()
    logger.info("Cancelled showtime %s", showtime_id)
    return showtime


def search_showtimes(
    db: Session,
    day: Optional[date] = None,
    room_id: Optional[int] = None,
    movie_id: Optional[int] = None,
    status: Optional[ShowtimeStatus] = None,
):
    """Query of showtimes starting within ``day`` and matching the optional filters."""
    query = db.query(Showtime)
    if day:
        window_start = datetime.combine(day, datetime.min.time())
        query = query.filter(
            Showtime.start_time >= window_start,
            Showtime.start_time < window_start + timedelta(days=1),
        )
    if room_id:
        query = query.filter(Showtime.room_id == room_id)
    if movie_id:
        query = query.filter(Showtime.movie_id == movie_id)
    if status:
        query = query.filter(Showtime.status == status)
    return query.order_by(Showtime.start_time)


# ---------------------------------------------------------------------------
# Background sweep
# ---------------------------------------------------------------------------


def complete_past_showtimes(db: Session, now: Optional[datetime] = None) -> int:
    """
    Mark SCHEDULED showtimes whose end time has passed as COMPLETED.

    Uses local naive time, like the stored timestamps. Returns the number of
    showtimes completed.
    """
    now = now or datetime.now()
    count = (
        db.query(Showtime)
        .filter(
            Showtime.status == ShowtimeStatus.SCHEDULED,
            Showtime.end_time <= now,
        )
        .update({"status": ShowtimeStatus.COMPLETED}, synchronize_session="fetch")
    )
    db.commit()
    return count
