from typing import List

from sqlalchemy.orm import Session

from app.models.room import Room
from app.models.seat import Seat, SeatStatus
from app.models.showtime import Showtime


def generate_seat_pool(db: Session, showtime: Showtime, room: Room) -> List[Seat]:
    """
    Add one AVAILABLE seat per (row, seat number) of the room layout to the
    showtime.

    Rows and seat numbers are 1-based. Nothing is committed here: the seats
    join the caller's transaction so they are persisted together with the
    showtime or not at all.
    """
    seats = [
        Seat(row_number=row, seat_number=number, status=SeatStatus.AVAILABLE)
        for row in range(1, room.rows + 1)
        for number in range(1, room.seats_per_row + 1)
    ]
    showtime.seats.extend(seats)
    db.add_all(seats)
    return seats
