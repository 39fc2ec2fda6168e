"""
Exclusive holds on seats (and room schedules) for the duration of a write.

Two layers cooperate:

* ``KeyedLockManager`` serializes threads of this process on a per-key mutex,
  always acquired in ascending key order so overlapping purchases cannot
  deadlock each other.
* ``select_available_for_update`` reads the candidate seats with
  ``SELECT ... FOR UPDATE`` (also ascending id), which gives row locks across
  processes on PostgreSQL. SQLite ignores FOR UPDATE and relies on the first
  layer.

Both holds last until the caller commits or rolls back.
"""
import logging
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Type

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import DomainError, SeatLockTimeoutError
from app.models.seat import Seat, SeatStatus

logger = logging.getLogger(__name__)


class KeyedLockManager:
    """Per-key mutexes, created on demand and dropped when nobody holds them.

    ``resource`` names the keys in log lines; ``timeout_error`` is raised with
    ``timeout_message`` when a hold cannot be acquired in time.
    """

    def __init__(
        self,
        resource: str = "seat",
        timeout_error: Type[DomainError] = SeatLockTimeoutError,
        timeout_message: str = "The selected seats are being purchased by another customer, try again",
    ) -> None:
        self.resource = resource
        self.timeout_error = timeout_error
        self.timeout_message = timeout_message
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}
        self._refs: Dict[int, int] = {}

    def _checkout(self, key: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            self._refs[key] = self._refs.get(key, 0) + 1
            return lock

    def _checkin(self, key: int) -> None:
        with self._guard:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]

    def held_count(self) -> int:
        """Number of keys with a live mutex (held or being waited on)."""
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, ids: Iterable[int], timeout: Optional[float] = None) -> Iterator[List[int]]:
        """
        Hold every id in ``ids`` until the block exits.

        Duplicates are collapsed and ids are locked in ascending order. Raises
        ``timeout_error`` when the whole set cannot be acquired within
        ``timeout`` seconds (``None`` waits forever); ids acquired so far are
        released first.
        """
        keys = sorted(set(ids))
        deadline = None if timeout is None else time.monotonic() + timeout
        acquired: List[Tuple[int, threading.Lock]] = []
        try:
            for key in keys:
                lock = self._checkout(key)
                if deadline is None:
                    ok = lock.acquire()
                else:
                    ok = lock.acquire(timeout=max(0.0, deadline - time.monotonic()))
                if not ok:
                    self._checkin(key)
                    logger.warning("Timed out waiting for %s %s lock", self.resource, key)
                    raise self.timeout_error(self.timeout_message)
                acquired.append((key, lock))
            yield keys
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)


seat_locks = KeyedLockManager()


def apply_lock_timeout(db: Session) -> None:
    """Bound row-lock waits of the current transaction (PostgreSQL only)."""
    if db.get_bind().dialect.name == "postgresql":
        millis = int(settings.SEAT_LOCK_TIMEOUT_SECONDS * 1000)
        db.execute(text(f"SET LOCAL lock_timeout = {millis}"))


def select_available_for_update(db: Session, showtime_id: int, seat_ids: List[int]) -> List[Seat]:
    """
    Return the requested seats of ``showtime_id`` that are AVAILABLE right now,
    write-locked and ordered by id.

    Unknown ids, sold seats and seats of other showtimes are simply absent
    from the result.
    """
    apply_lock_timeout(db)
    return (
        db.query(Seat)
        .filter(
            Seat.id.in_(seat_ids),
            Seat.showtime_id == showtime_id,
            Seat.status == SeatStatus.AVAILABLE,
        )
        .order_by(Seat.id)
        .with_for_update()
        .populate_existing()
        .all()
    )


# PostgreSQL "lock_not_available", raised when SET LOCAL lock_timeout expires
LOCK_NOT_AVAILABLE = "55P03"


def is_lock_timeout(exc: OperationalError) -> bool:
    return getattr(exc.orig, "pgcode", None) == LOCK_NOT_AVAILABLE
