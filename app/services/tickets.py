"""
Ticket sales and the ticket lifecycle.

Every mutating function here owns its transaction: it commits on success and
rolls back before re-raising on any failure, while the seat holds from
``app.services.seat_locks`` are still in place.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.core.exceptions import (
    IllegalStatusError,
    InvalidRequestError,
    NotFoundError,
    SeatLockTimeoutError,
    SeatNotAvailableError,
)
from app.models.seat import Seat, SeatStatus
from app.models.showtime import Showtime, ShowtimeStatus
from app.models.ticket import Ticket, TicketStatus
from app.schemas.ticket import TicketDetail, TicketSaleResponse
from app.services.seat_locks import (
    apply_lock_timeout,
    is_lock_timeout,
    seat_locks,
    select_available_for_update,
)

logger = logging.getLogger(__name__)


def ticket_detail(ticket: Ticket) -> TicketDetail:
    seat = ticket.seat
    showtime = seat.showtime
    return TicketDetail(
        id=ticket.id,
        owner=ticket.customer_name,
        movie_title=showtime.movie.title,
        row_number=seat.row_number,
        seat_number=seat.seat_number,
        purchase_timestamp=ticket.purchased_at,
        show_start_time=showtime.start_time,
        price=ticket.price,
        status=ticket.status,
    )


# ---------------------------------------------------------------------------
# Sale
# ---------------------------------------------------------------------------


def sell_tickets(
    db: Session,
    showtime_id: int,
    seat_ids: List[int],
    customer_name: str,
    lock_timeout: Optional[float] = None,
) -> TicketSaleResponse:
    """
    Sell every seat in ``seat_ids`` for one showtime, or none of them.

    Steps:
    1. Load the showtime (NotFoundError if missing).
    2. Hold the requested seats and read their AVAILABLE subset with a write lock.
    3. Abort with SeatNotAvailableError unless every requested id came back.
       A repeated id can only come back once, so duplicates always abort.
    4. Mark each seat SOLD and create an ACTIVE ticket priced at the showtime
       base price.
    5. Flush, build the ticket details, then commit while the holds are still
       in place.
    """
    if not seat_ids:
        raise InvalidRequestError("At least one seat must be selected")

    showtime = db.get(Showtime, showtime_id)
    if not showtime:
        raise NotFoundError(f"Showtime with id {showtime_id} does not exist")

    if (
        settings.SALES_REQUIRE_SCHEDULED_SHOWTIME
        and showtime.status != ShowtimeStatus.SCHEDULED
    ):
        raise IllegalStatusError(
            f"Tickets cannot be sold for a {showtime.status.value.lower()} showtime"
        )

    if lock_timeout is None:
        lock_timeout = settings.SEAT_LOCK_TIMEOUT_SECONDS

    with seat_locks.hold(seat_ids, timeout=lock_timeout):
        try:
            seats = select_available_for_update(db, showtime.id, seat_ids)

            if len(seats) != len(seat_ids):
                logger.info(
                    "Sale rejected for showtime %s: requested %d seat(s), %d available",
                    showtime.id, len(seat_ids), len(seats),
                )
                raise SeatNotAvailableError("At least one selected seat is not available")

            now = datetime.now()
            tickets = []
            for seat in seats:
                seat.transition_to(SeatStatus.SOLD)
                tickets.append(Ticket(
                    seat=seat,
                    customer_name=customer_name,
                    price=showtime.base_price,
                    purchased_at=now,
                    status=TicketStatus.ACTIVE,
                ))
            db.add_all(tickets)
            db.flush()
            # built before commit, which would expire every loaded row
            details = [ticket_detail(t) for t in tickets]
            db.commit()
        except OperationalError as exc:
            db.rollback()
            if is_lock_timeout(exc):
                raise SeatLockTimeoutError(
                    "The selected seats are being purchased by another customer, try again"
                ) from exc
            raise
        except Exception:
            db.rollback()
            raise

    total_price = sum((d.price for d in details), Decimal("0"))
    logger.info(
        "Sold %d ticket(s) for showtime %s to %r, total %s",
        len(details), showtime_id, customer_name, total_price,
    )
    return TicketSaleResponse(
        total_price=total_price,
        total_tickets=len(details),
        tickets=details,
    )


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def _load_ticket(db: Session, ticket_id: int) -> Ticket:
    ticket = (
        db.query(Ticket)
        .options(
            joinedload(Ticket.seat).joinedload(Seat.showtime).joinedload(Showtime.movie),
        )
        .filter(Ticket.id == ticket_id)
        .first()
    )
    if not ticket:
        raise NotFoundError(f"Ticket with id {ticket_id} does not exist")
    return ticket


def get_ticket(db: Session, ticket_id: int) -> TicketDetail:
    return ticket_detail(_load_ticket(db, ticket_id))


# ---------------------------------------------------------------------------
# Lifecycle: cancel / consume
# ---------------------------------------------------------------------------


def _transition_ticket(
    db: Session,
    ticket_id: int,
    target: TicketStatus,
    action: str,
    lock_timeout: Optional[float] = None,
) -> Ticket:
    # seat_id never changes once set, so it is safe to read before locking
    seat_id = db.query(Ticket.seat_id).filter(Ticket.id == ticket_id).scalar()
    if seat_id is None:
        raise NotFoundError(f"Ticket with id {ticket_id} does not exist")

    if lock_timeout is None:
        lock_timeout = settings.SEAT_LOCK_TIMEOUT_SECONDS

    with seat_locks.hold([seat_id], timeout=lock_timeout):
        try:
            apply_lock_timeout(db)
            ticket = (
                db.query(Ticket)
                .filter(Ticket.id == ticket_id)
                .with_for_update()
                .populate_existing()
                .one()
            )
            if ticket.status != TicketStatus.ACTIVE:
                raise IllegalStatusError(f"A non active ticket cannot be {action}")

            ticket.transition_to(target)
            if target == TicketStatus.CANCELLED:
                seat = (
                    db.query(Seat)
                    .filter(Seat.id == seat_id)
                    .with_for_update()
                    .populate_existing()
                    .one()
                )
                seat.transition_to(SeatStatus.AVAILABLE)
            db.commit()
        except OperationalError as exc:
            db.rollback()
            if is_lock_timeout(exc):
                raise SeatLockTimeoutError(
                    f"Ticket {ticket_id} is being modified by another request, try again"
                ) from exc
            raise
        except Exception:
            db.rollback()
            raise

    logger.info("Ticket %s %s", ticket_id, action)
    return ticket


def cancel_ticket(db: Session, ticket_id: int) -> Ticket:
    """ACTIVE -> CANCELLED; the bound seat becomes AVAILABLE again."""
    return _transition_ticket(db, ticket_id, TicketStatus.CANCELLED, "cancelled")


def consume_ticket(db: Session, ticket_id: int) -> Ticket:
    """ACTIVE -> CONSUMED at entry; the seat stays SOLD."""
    return _transition_ticket(db, ticket_id, TicketStatus.CONSUMED, "consumed")
