from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import IllegalStatusError, NotFoundError
from app.models.seat import Seat, SeatStatus
from app.models.ticket import Ticket, TicketStatus
from app.services.tickets import cancel_ticket, consume_ticket, get_ticket, sell_tickets


def _sell_one(db, showtime, seat_id, name="Alice"):
    return sell_tickets(db, showtime.id, [seat_id], name).tickets[0]


def _reload(db, model, id):
    db.expire_all()
    return db.get(model, id)


def test_cancel_releases_the_seat_and_it_can_be_sold_again(db, showtime, seat_ids):
    sold = _sell_one(db, showtime, seat_ids[1])

    cancel_ticket(db, sold.id)

    assert _reload(db, Ticket, sold.id).status == TicketStatus.CANCELLED
    assert _reload(db, Seat, seat_ids[1]).status == SeatStatus.AVAILABLE

    resold = _sell_one(db, showtime, seat_ids[1], "Bob")
    assert resold.owner == "Bob"
    assert _reload(db, Seat, seat_ids[1]).status == SeatStatus.SOLD


def test_consume_keeps_the_seat_sold(db, showtime, seat_ids):
    sold = _sell_one(db, showtime, seat_ids[0])

    consume_ticket(db, sold.id)

    assert _reload(db, Ticket, sold.id).status == TicketStatus.CONSUMED
    assert _reload(db, Seat, seat_ids[0]).status == SeatStatus.SOLD


def test_consumed_ticket_cannot_be_cancelled(db, showtime, seat_ids):
    sold = _sell_one(db, showtime, seat_ids[0])
    consume_ticket(db, sold.id)

    with pytest.raises(IllegalStatusError):
        cancel_ticket(db, sold.id)

    assert _reload(db, Ticket, sold.id).status == TicketStatus.CONSUMED
    assert _reload(db, Seat, seat_ids[0]).status == SeatStatus.SOLD


@pytest.mark.parametrize("operation", [cancel_ticket, consume_ticket])
def test_cancelled_ticket_is_terminal(db, showtime, seat_ids, operation):
    sold = _sell_one(db, showtime, seat_ids[0])
    cancel_ticket(db, sold.id)

    with pytest.raises(IllegalStatusError):
        operation(db, sold.id)

    assert _reload(db, Ticket, sold.id).status == TicketStatus.CANCELLED
    assert _reload(db, Seat, seat_ids[0]).status == SeatStatus.AVAILABLE


def test_cancel_of_old_ticket_does_not_free_a_resold_seat(db, showtime, seat_ids):
    first = _sell_one(db, showtime, seat_ids[0])
    cancel_ticket(db, first.id)
    _sell_one(db, showtime, seat_ids[0], "Bob")

    with pytest.raises(IllegalStatusError):
        cancel_ticket(db, first.id)

    assert _reload(db, Seat, seat_ids[0]).status == SeatStatus.SOLD


@pytest.mark.parametrize("operation", [cancel_ticket, consume_ticket, get_ticket])
def test_unknown_ticket_is_not_found(db, operation):
    with pytest.raises(NotFoundError):
        operation(db, 12345)


def test_get_ticket_detail(db, showtime, seat_ids):
    sold = _sell_one(db, showtime, seat_ids[4])

    detail = get_ticket(db, sold.id)

    assert detail.owner == "Alice"
    assert (detail.row_number, detail.seat_number) == (2, 2)
    assert detail.price == Decimal("10.00")
    assert detail.status == TicketStatus.ACTIVE


def test_storage_rejects_two_live_tickets_for_one_seat(db, showtime, seat_ids):
    _sell_one(db, showtime, seat_ids[0])

    db.add(Ticket(
        seat_id=seat_ids[0],
        customer_name="Mallory",
        price=Decimal("10.00"),
        purchased_at=datetime.now(),
        status=TicketStatus.ACTIVE,
    ))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_seat_transitions_are_checked():
    seat = Seat(id=1, status=SeatStatus.SOLD)
    with pytest.raises(IllegalStatusError):
        seat.transition_to(SeatStatus.SOLD)
    seat.transition_to(SeatStatus.AVAILABLE)
    assert seat.status == SeatStatus.AVAILABLE


def test_transition_from_an_unset_status_is_illegal():
    ticket = Ticket(customer_name="Alice")
    assert ticket.status is None
    with pytest.raises(IllegalStatusError, match="cannot go from None to CANCELLED"):
        ticket.transition_to(TicketStatus.CANCELLED)
